"""Client-side session: the logged-in user and the theme flag.

The store is an ordinary object handed to every view-model that needs it.
It never performs network calls; callers log in against the backend and
then hand the result to `login()`.
"""
from typing import Any, Callable, Dict, List, Optional, Union

from keyring.errors import KeyringError

from .config import DARK_MODE_KEY, TOKEN_KEY, USER_KEY, get_logger
from .data_models import User

logger = get_logger("session")

ThemeListener = Callable[[bool], None]


class SessionStore:
    def __init__(self, storage):
        self.storage = storage
        self.current_user: Optional[User] = None
        self.dark_mode: bool = False
        # False until start() has rehydrated from storage
        self.ready: bool = False
        # set by expire(), cleared by the next login
        self.expired: bool = False
        self._theme_listeners: List[ThemeListener] = []

    # --- lifecycle ---
    def start(self) -> "SessionStore":
        """Rehydrate user and theme from durable storage.

        Both values are read before either is published, so nothing observes
        a logged-out state for a user who is actually stored.
        """
        user = None
        raw = self.storage.get_json(USER_KEY)
        if isinstance(raw, dict) and raw.get("id") is not None:
            user = User.from_dict(raw)
        elif raw is not None:
            logger.warning("ignoring stored user without an id")
        dark = bool(self.storage.get_json(DARK_MODE_KEY, False))

        self.current_user = user
        self.dark_mode = dark
        self.ready = True
        logger.debug("session rehydrated: user=%s dark_mode=%s", user.id if user else None, dark)
        self._apply_theme()
        return self

    def teardown(self) -> None:
        """Drop in-memory state; durable storage is left untouched."""
        self.current_user = None
        self.dark_mode = False
        self.ready = False
        self.expired = False
        self._theme_listeners.clear()

    # --- auth state ---
    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    def is_admin(self) -> bool:
        return self.current_user is not None and self.current_user.is_admin

    def login(self, user: User, token: str) -> None:
        """Persist user and token, then publish the user.

        A failed write leaves both the stored and the in-memory session as
        they were.
        """
        previous = self.storage.get_item(USER_KEY)
        self.storage.set_json(USER_KEY, user.to_dict())
        try:
            self.storage.set_item(TOKEN_KEY, token)
        except (KeyringError, RuntimeError):
            if previous is None:
                self.storage.remove_item(USER_KEY)
            else:
                self.storage.set_item(USER_KEY, previous)
            raise
        self.current_user = user
        self.expired = False
        logger.debug("logged in as %s", user.id)

    def logout(self) -> None:
        self.current_user = None
        self.storage.remove_item(USER_KEY)
        self.storage.remove_item(TOKEN_KEY)
        logger.debug("logged out")

    def expire(self) -> None:
        """Forget the user after the backend rejected the token."""
        if self.current_user is not None:
            logger.info("session expired for user %s", self.current_user.id)
        self.logout()
        self.expired = True

    def update_user(self, updated: Union[User, Dict[str, Any], None]) -> bool:
        if isinstance(updated, dict):
            updated = User.from_dict(updated) if updated.get("id") is not None else None
        if updated is None or updated.id is None:
            logger.error("Invalid user data provided to update_user: %r", updated)
            return False
        self.storage.set_json(USER_KEY, updated.to_dict())
        self.current_user = updated
        return True

    # --- theme ---
    def on_theme_change(self, listener: ThemeListener) -> None:
        self._theme_listeners.append(listener)

    def toggle_theme(self) -> bool:
        self.dark_mode = not self.dark_mode
        self.storage.set_json(DARK_MODE_KEY, self.dark_mode)
        self._apply_theme()
        return self.dark_mode

    def _apply_theme(self) -> None:
        for listener in list(self._theme_listeners):
            listener(self.dark_mode)
