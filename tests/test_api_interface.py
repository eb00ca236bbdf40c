"""HTTP client against the in-process backend."""
from unittest.mock import MagicMock

import pytest
import requests

from bloggr.api_interface import RealAPI, fetch_concurrently
from bloggr.errors import NetworkOrServerError, NotFound, SessionExpired, Unauthenticated

from .conftest import BASE_URL
from .fake_server import TOKEN


class TestBearerToken:
    def test_no_token_no_header(self, api, server):
        api.get_posts()
        assert "Authorization" not in server.requests[-1].headers

    def test_stored_token_is_attached(self, api, server, storage):
        storage.set_item("token", TOKEN)
        api.get_posts()
        assert server.requests[-1].headers["Authorization"] == f"Bearer {TOKEN}"

    def test_token_is_read_per_request(self, api, server, storage):
        storage.set_item("token", "first")
        api.get_users()
        storage.remove_item("token")
        api.get_users()
        assert server.requests[0].headers["Authorization"] == "Bearer first"
        assert "Authorization" not in server.requests[1].headers


class TestSessionExpiry:
    def test_401_clears_storage_and_calls_hook(self, storage, http, server):
        hook = MagicMock()
        api = RealAPI(BASE_URL, storage=storage, session=http, on_session_expired=hook)
        storage.set_item("token", TOKEN)
        storage.set_json("user", {"id": 1})
        server.reject_tokens = True

        with pytest.raises(SessionExpired):
            api.get_posts()
        assert storage.get_item("token") is None
        assert storage.get_item("user") is None
        hook.assert_called_once_with()

    def test_failed_login_is_not_an_expiry(self, storage, http):
        hook = MagicMock()
        api = RealAPI(BASE_URL, storage=storage, session=http, on_session_expired=hook)
        storage.set_item("token", TOKEN)
        with pytest.raises(Unauthenticated) as exc:
            api.login("a@x.com", "wrong-password")
        assert not isinstance(exc.value, SessionExpired)
        assert storage.get_item("token") == TOKEN
        hook.assert_not_called()


class TestErrorMapping:
    def test_missing_post_is_not_found(self, api):
        with pytest.raises(NotFound):
            api.get_post(999)

    def test_server_error_keeps_status(self, api, server):
        server.fail_next("GET", "/posts", 503)
        with pytest.raises(NetworkOrServerError) as exc:
            api.get_posts()
        assert exc.value.status == 503

    def test_connection_error(self, storage):
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError("refused")
        api = RealAPI(BASE_URL, storage=storage, session=session)
        with pytest.raises(NetworkOrServerError):
            api.get_users()

    def test_timeout(self, storage):
        session = MagicMock()
        session.request.side_effect = requests.Timeout("slow")
        api = RealAPI(BASE_URL, storage=storage, session=session, timeout=0.01)
        with pytest.raises(NetworkOrServerError, match="timed out"):
            api.get_users()


class TestResources:
    def test_login_case_insensitive_email(self, api):
        user, token = api.login("A@X.COM", "secret")
        assert user.username == "alice"
        assert token == TOKEN

    def test_posts_filtered_by_owner(self, api, server):
        posts = api.get_posts(user_id=1)
        assert {p.user_id for p in posts} == {1}
        assert server.requests[-1].query == {"userId": ["1"]}

    def test_update_post_is_full_document_put(self, api, server):
        post = api.get_post(1)
        post.title = "Tokyo, again"
        saved = api.update_post(post)
        body = server.calls("PUT", "/posts/1")[0].body
        assert body["title"] == "Tokyo, again"
        assert body["likesHistory"] == [2, 3]
        assert saved.title == "Tokyo, again"

    def test_create_user_gets_server_defaults(self, api):
        user = api.create_user({"username": "dana", "email": "d@x.com", "password": "secret1"})
        assert user.role == "user"
        assert user.created_at
        assert api.find_users_by_email("D@x.com")[0].id == user.id

    def test_delete_post(self, api, server):
        api.delete_post(2)
        assert server.find("posts", 2) is None


class TestFetchConcurrently:
    def test_results_in_call_order(self):
        assert fetch_concurrently(lambda: 1, lambda: 2) == [1, 2]

    def test_failure_is_raised(self, api):
        with pytest.raises(NotFound):
            fetch_concurrently(lambda: api.get_post(404), api.get_users)
