"""
Access control for screens that need a logged-in user.
"""
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, Dict, Optional

from .config import LOGIN_PATH, get_logger

logger = get_logger("guard")

RENDER = "render"
LOADING = "loading"
REDIRECT = "redirect"


@dataclass
class GuardResult:
    action: str
    view: Any = None
    redirect_to: Optional[str] = None
    state: Dict[str, Any] = field(default_factory=dict)


class RouteGuard:
    def __init__(self, session, router, notifier):
        self.session = session
        self.router = router
        self.notifier = notifier
        self._warned_for: Optional[str] = None

    def check(self, location: str, render: Callable[[], Any]) -> GuardResult:
        """Build the view with `render()` if someone is logged in.

        While the session is still rehydrating the caller gets a loading
        placeholder instead of a premature redirect.
        """
        if not self.session.ready:
            return GuardResult(LOADING)

        if self.session.current_user is None:
            if self._warned_for != location:
                self.notifier.notify("Please log in to access this page!", severity="error")
                self._warned_for = location
            logger.debug("No user found, redirecting to login from: %s", location)
            state = {"from": location}
            self.router.navigate(LOGIN_PATH, state=state)
            return GuardResult(REDIRECT, redirect_to=LOGIN_PATH, state=state)

        self._warned_for = None
        return GuardResult(RENDER, view=render())

    def protect(self, factory: Callable[..., Any]) -> Callable[..., GuardResult]:
        """Decorator form: the wrapped factory takes the location as first argument."""

        @wraps(factory)
        def guarded(location: str, *args, **kwargs) -> GuardResult:
            return self.check(location, lambda: factory(*args, **kwargs))

        return guarded
