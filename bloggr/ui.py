"""Seams between the view-models and whatever front-end renders them.

View-models never draw anything. They report to a Notifier (the toast
area) and move the user around through a Router.
"""
import logging
import webbrowser
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .config import HOME_PATH, get_logger

logger = get_logger("ui")


@dataclass
class Notice:
    message: str
    severity: str = "information"  # 'information', 'success', 'warning', 'error'
    timeout: float = 5


class Notifier:
    """Default notifier: writes notices to the log."""

    def notify(self, message: str, severity: str = "information", timeout: float = 5) -> None:
        level = {"error": logging.ERROR, "warning": logging.WARNING}.get(severity, logging.INFO)
        logger.log(level, "[%s] %s", severity, message)


class RecordingNotifier(Notifier):
    """Keeps every notice so a front-end (or a test) can render them later."""

    def __init__(self):
        self.notices: List[Notice] = []

    def notify(self, message: str, severity: str = "information", timeout: float = 5) -> None:
        super().notify(message, severity, timeout)
        self.notices.append(Notice(message, severity, timeout))

    def messages(self, severity: Optional[str] = None) -> List[str]:
        return [n.message for n in self.notices if severity is None or n.severity == severity]

    def clear(self) -> None:
        self.notices.clear()


class Router:
    """Tracks the current location and the navigation history."""

    def __init__(self, location: str = HOME_PATH):
        self.location = location
        self.state: Dict[str, Any] = {}
        self.history: List[str] = [location]

    def navigate(self, path: str, state: Optional[Dict[str, Any]] = None) -> None:
        logger.debug("navigate %s -> %s", self.location, path)
        self.location = path
        self.state = dict(state or {})
        self.history.append(path)

    def open_external(self, url: str) -> bool:
        """Open a link outside the app (share targets)."""
        try:
            return webbrowser.open(url)
        except webbrowser.Error:
            logger.warning("Failed to open browser automatically for %s", url)
            return False
