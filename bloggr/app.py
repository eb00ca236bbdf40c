"""
Application shell: wires storage, session, HTTP client and the screen
view-models together, and resolves paths to screens through the route guard.
"""
import threading
from typing import Any, Callable, Dict, Optional, Tuple

from .api_interface import RealAPI
from .auth import AuthViewModel
from .config import API_BASE_URL, LOGIN_PATH, PAGE_SIZE, SITE_URL, get_logger
from .detail_view import PostDetailViewModel
from .editor import PostEditorViewModel
from .errors import BlogError
from .guard import REDIRECT, RENDER, GuardResult, RouteGuard
from .list_view import PostListViewModel
from .profile import ProfileViewModel
from .session import SessionStore
from .storage import KeyringStorage
from .ui import Notifier, Router

logger = get_logger("app")

# path pattern -> (screen name, requires login)
ROUTES: Dict[str, Tuple[str, bool]] = {
    "/": ("home", False),
    "/categories": ("categories", False),
    "/post/:id": ("post", False),
    "/add-post": ("add_post", True),
    "/edit-post/:id": ("edit_post", True),
    "/profile": ("profile", True),
    "/login": ("login", False),
    "/signup": ("signup", False),
}


def match_route(path: str) -> Optional[Tuple[str, Dict[str, str], bool]]:
    """Return (screen, params, protected) for a path, or None."""
    parts = [p for p in path.split("?")[0].split("/") if p]
    for pattern, (screen, protected) in ROUTES.items():
        pattern_parts = [p for p in pattern.split("/") if p]
        if len(pattern_parts) != len(parts):
            continue
        params: Dict[str, str] = {}
        for want, got in zip(pattern_parts, parts):
            if want.startswith(":"):
                params[want[1:]] = got
            elif want != got:
                break
        else:
            return screen, params, protected
    return None


class BlogApp:
    def __init__(
        self,
        base_url: str = API_BASE_URL,
        storage=None,
        notifier: Optional[Notifier] = None,
        router: Optional[Router] = None,
        http_session=None,
        page_size: int = PAGE_SIZE,
        site_url: str = SITE_URL,
    ):
        self.storage = storage if storage is not None else KeyringStorage()
        self.notifier = notifier or Notifier()
        self.router = router or Router()
        self.page_size = page_size
        self.site_url = site_url
        self.session = SessionStore(self.storage)
        self.api = RealAPI(
            base_url,
            storage=self.storage,
            on_session_expired=self._on_session_expired,
            session=http_session,
        )
        self.guard = RouteGuard(self.session, self.router, self.notifier)
        self.theme = "light"
        self.current_view: Any = None
        # concurrent fetches can all come back 401 at once
        self._expiry_lock = threading.Lock()
        self.session.on_theme_change(self._apply_theme)

    # --- lifecycle ---
    def start(self) -> "BlogApp":
        self.session.start()
        return self

    def stop(self) -> None:
        self.session.teardown()
        self.current_view = None

    def _apply_theme(self, dark: bool) -> None:
        self.theme = "dark" if dark else "light"
        logger.debug("theme -> %s", self.theme)

    def _on_session_expired(self) -> None:
        with self._expiry_lock:
            # the other requests of the same batch see the flag and stay quiet
            if self.session.expired:
                return
            self.session.expire()
        self.router.navigate(LOGIN_PATH, state={"from": self.router.location})
        self.notifier.notify("Session expired. Please log in again.", severity="error", timeout=5)

    # --- screens ---
    def _deps(self):
        return self.api, self.session, self.notifier, self.router

    def _list(self, **kwargs) -> PostListViewModel:
        vm = PostListViewModel(*self._deps(), page_size=self.page_size, site_url=self.site_url, **kwargs)
        vm.load()
        return vm

    def _make_home(self) -> PostListViewModel:
        return self._list()

    def _make_categories(self) -> PostListViewModel:
        return self._list()

    def _make_post(self, id: str) -> PostDetailViewModel:
        vm = PostDetailViewModel(*self._deps())
        vm.load(id)
        return vm

    def _make_add_post(self) -> PostEditorViewModel:
        vm = PostEditorViewModel(*self._deps())
        vm.load()
        return vm

    def _make_edit_post(self, id: str) -> PostEditorViewModel:
        vm = PostEditorViewModel(*self._deps())
        vm.load(id)
        return vm

    def _make_profile(self) -> ProfileViewModel:
        vm = ProfileViewModel(*self._deps(), page_size=self.page_size)
        vm.load()
        return vm

    def _make_login(self) -> AuthViewModel:
        return AuthViewModel(*self._deps())

    def _make_signup(self) -> AuthViewModel:
        return AuthViewModel(*self._deps())

    def open(self, path: str) -> GuardResult:
        """Resolve `path` to a screen view-model, honouring the route guard."""
        match = match_route(path)
        if match is None:
            raise ValueError(f"no route for {path}")
        screen, params, protected = match
        factory: Callable[..., Any] = getattr(self, f"_make_{screen}")

        if path != self.router.location:
            self.router.navigate(path)
        try:
            if protected:
                result = self.guard.check(path, lambda: factory(**params))
            else:
                result = GuardResult(RENDER, view=factory(**params))
        except BlogError as e:
            # the view-model already notified and, where needed, navigated away
            logger.debug("opening %s failed: %s", path, e)
            return GuardResult(REDIRECT, redirect_to=self.router.location)

        if result.action == RENDER:
            self.current_view = result.view
        return result
