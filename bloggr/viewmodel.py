"""Shared plumbing for the screen view-models."""
from typing import NoReturn

from .config import LOGIN_PATH, get_logger
from .data_models import User
from .errors import BlogError, SessionExpired, Unauthenticated

logger = get_logger("viewmodel")


class ViewModel:
    def __init__(self, api, session, notifier, router):
        self.api = api
        self.session = session
        self.notifier = notifier
        self.router = router
        self.loading = False
        self.error: BlogError | None = None

    def _require_user(self, message: str, redirect: bool = True) -> User:
        user = self.session.current_user
        if user is None:
            self.notifier.notify(message, severity="error")
            if redirect:
                self.router.navigate(LOGIN_PATH, state={"from": self.router.location})
            raise Unauthenticated(message)
        return user

    def _fail(self, message: str, exc: BlogError) -> NoReturn:
        """Log and surface a failed action, then re-raise it for the caller."""
        self.error = exc
        # session expiry has already been announced by the HTTP client
        if not isinstance(exc, SessionExpired):
            logger.error("%s: %s", message, exc)
            self.notifier.notify(message, severity="error")
        raise exc
