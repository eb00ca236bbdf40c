"""
API Interface Layer for bloggr.
This module is the only place that talks HTTP. It wraps the blog backend's
REST surface (users, posts, login) and translates transport failures into
the error types in `bloggr.errors`.
"""
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests
from requests import Session
from requests.auth import AuthBase

from .config import API_BASE_URL, REQUEST_TIMEOUT, TOKEN_KEY, USER_KEY, get_logger
from .data_models import Post, User
from .errors import NetworkOrServerError, NotFound, SessionExpired, Unauthenticated

logger = get_logger("api")


class StorageBearerAuth(AuthBase):
    """Attach the stored token, if any, to every outgoing request.

    The token is read at send time so a login or logout takes effect on the
    very next call without touching the session object.
    """

    def __init__(self, storage):
        self.storage = storage

    def __call__(self, r):
        token = self.storage.get_item(TOKEN_KEY) if self.storage is not None else None
        if token:
            r.headers["Authorization"] = f"Bearer {token}"
        return r


def fetch_concurrently(*calls: Callable[[], Any]) -> List[Any]:
    """Run independent reads side by side and return their results in order.

    The first failure (in argument order) is re-raised once all calls have
    finished.
    """
    with ThreadPoolExecutor(max_workers=max(1, len(calls))) as pool:
        futures = [pool.submit(call) for call in calls]
    return [f.result() for f in futures]


class APIInterface:
    def login(self, email: str, password: str) -> Tuple[User, str]: ...
    def get_posts(self, user_id: Any = None) -> List[Post]: ...
    def get_post(self, post_id: Any) -> Post: ...
    def create_post(self, post: Post) -> Post: ...
    def update_post(self, post: Post) -> Post: ...
    def delete_post(self, post_id: Any) -> None: ...
    def get_users(self) -> List[User]: ...
    def get_user(self, user_id: Any) -> User: ...
    def find_users_by_email(self, email: str) -> List[User]: ...
    def create_user(self, payload: Dict[str, Any]) -> User: ...
    def update_user(self, user: User) -> User: ...


class RealAPI(APIInterface):
    """Client for the JSON REST backend.

    `on_session_expired` is invoked after any 401 (outside of /login), once
    the stored user and token have been removed; the app uses it to reset
    the in-memory session and send the user back to the login screen.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        storage=None,
        timeout: float = REQUEST_TIMEOUT,
        on_session_expired: Optional[Callable[[], None]] = None,
        session: Optional[Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.storage = storage
        self.on_session_expired = on_session_expired
        self.session: Session = session or requests.Session()
        self.session.auth = StorageBearerAuth(storage)

    # --- helpers ---
    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json_payload: Any = None,
        expire_on_401: bool = True,
    ) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = self.session.request(method, url, params=params, json=json_payload, timeout=self.timeout)
        except requests.Timeout as e:
            logger.error("%s %s timed out after %ss", method, path, self.timeout)
            raise NetworkOrServerError(f"{method} {path} timed out") from e
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise NetworkOrServerError(f"{method} {path} failed: {e}") from e

        if resp.status_code == 401 and expire_on_401:
            self._expire_session()
            raise SessionExpired("Session expired. Please log in again.")

        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            logger.debug("%s %s -> HTTP %s", method, path, resp.status_code)
            if resp.status_code == 404:
                raise NotFound(f"{method} {path}: not found") from e
            raise NetworkOrServerError(
                f"{method} {path} failed with HTTP {resp.status_code}", status=resp.status_code
            ) from e

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise NetworkOrServerError(f"{method} {path} returned invalid JSON", status=resp.status_code) from e

    def _get(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        return self._request("GET", path, params=params)

    def _post(self, path: str, json_payload: Any = None, expire_on_401: bool = True) -> Any:
        return self._request("POST", path, json_payload=json_payload, expire_on_401=expire_on_401)

    def _put(self, path: str, json_payload: Any = None) -> Any:
        return self._request("PUT", path, json_payload=json_payload)

    def _delete(self, path: str) -> Any:
        return self._request("DELETE", path)

    def _expire_session(self) -> None:
        logger.warning("backend answered 401; clearing stored session")
        if self.storage is not None:
            self.storage.remove_item(TOKEN_KEY)
            self.storage.remove_item(USER_KEY)
        if self.on_session_expired is not None:
            self.on_session_expired()

    # --- auth ---
    def login(self, email: str, password: str) -> Tuple[User, str]:
        try:
            data = self._post("/login", json_payload={"email": email, "password": password}, expire_on_401=False)
        except NetworkOrServerError as e:
            if e.status == 401:
                raise Unauthenticated("Invalid email or password") from e
            raise
        if not data or "user" not in data:
            raise NetworkOrServerError("login response did not include a user")
        return User.from_dict(data["user"]), data.get("token") or ""

    # --- posts ---
    def get_posts(self, user_id: Any = None) -> List[Post]:
        params = {"userId": user_id} if user_id is not None else None
        data = self._get("/posts", params=params)
        return [Post.from_dict(p) for p in data or []]

    def get_post(self, post_id: Any) -> Post:
        return Post.from_dict(self._get(f"/posts/{post_id}"))

    def create_post(self, post: Post) -> Post:
        data = self._post("/posts", json_payload=post.to_dict())
        return Post.from_dict(data) if data else post

    def update_post(self, post: Post) -> Post:
        data = self._put(f"/posts/{post.id}", json_payload=post.to_dict())
        return Post.from_dict(data) if data else post

    def delete_post(self, post_id: Any) -> None:
        self._delete(f"/posts/{post_id}")

    # --- users ---
    def get_users(self) -> List[User]:
        return [User.from_dict(u) for u in self._get("/users") or []]

    def get_user(self, user_id: Any) -> User:
        return User.from_dict(self._get(f"/users/{user_id}"))

    def find_users_by_email(self, email: str) -> List[User]:
        data = self._get("/users", params={"email": email.lower()})
        return [User.from_dict(u) for u in data or []]

    def create_user(self, payload: Dict[str, Any]) -> User:
        return User.from_dict(self._post("/users", json_payload=payload))

    def update_user(self, user: User) -> User:
        data = self._put(f"/users/{user.id}", json_payload=user.to_dict())
        return User.from_dict(data) if data else user
