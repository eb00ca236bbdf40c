"""Login, signup and logout flows."""
import pytest

from bloggr.auth import AuthViewModel
from bloggr.errors import NetworkOrServerError, Unauthenticated, ValidationError
from bloggr.guard import REDIRECT, RENDER, RouteGuard

from .fake_server import TOKEN


@pytest.fixture
def auth(deps):
    return AuthViewModel(*deps)


class TestLogin:
    def test_login_then_protected_route_renders(self, auth, session, storage, router, notifier):
        guard = RouteGuard(session, router, notifier)
        assert guard.check("/profile", lambda: "profile").action == REDIRECT
        assert router.state == {"from": "/profile"}

        user = auth.login("a@x.com", "secret")
        assert user.username == "alice"
        assert session.current_user.id == 1
        assert storage.get_item("token") == TOKEN
        assert router.location == "/profile"
        assert guard.check("/profile", lambda: "profile").action == RENDER

    def test_defaults_to_home(self, auth, router, notifier):
        auth.login("b@x.com", "hunter22")
        assert router.location == "/"
        assert "Logged in successfully!" in notifier.messages("success")

    def test_wrong_password(self, auth, session, router, notifier):
        with pytest.raises(Unauthenticated):
            auth.login("a@x.com", "not-it")
        assert session.current_user is None
        assert notifier.messages("error") == ["Invalid email or password"]
        assert router.location == "/"
        assert not auth.loading

    def test_invalid_input_never_reaches_the_server(self, auth, server):
        with pytest.raises(ValidationError):
            auth.login("not-an-email", "secret")
        assert server.requests == []

    def test_server_error(self, auth, server, notifier):
        server.fail_next("POST", "/login", 500)
        with pytest.raises(NetworkOrServerError):
            auth.login("a@x.com", "secret")
        assert notifier.messages("error") == ["Login failed, please try again"]


class TestSignup:
    def test_signup_creates_and_logs_in(self, auth, server, session, router):
        user = auth.signup("dana", "D@x.com", "secret1", "secret1")
        assert user.email == "d@x.com"
        created = server.find("users", user.id)
        assert created["role"] == "user"
        assert created["createdAt"]
        assert session.current_user.username == "dana"
        assert router.location == "/"

    def test_duplicate_email(self, auth, server, session, notifier):
        with pytest.raises(ValidationError, match="already exists"):
            auth.signup("alice2", "A@x.com", "secret1", "secret1")
        assert server.calls("POST", "/users") == []
        assert session.current_user is None
        assert notifier.messages("error") == ["An account with this email already exists"]

    def test_mismatched_passwords(self, auth, server):
        with pytest.raises(ValidationError, match="Passwords must match"):
            auth.signup("dana", "d@x.com", "secret1", "secret2")
        assert server.requests == []


class TestLogout:
    def test_logout(self, auth, session, storage, router, login_as):
        login_as(1)
        auth.logout()
        assert session.current_user is None
        assert storage.get_item("token") is None
        assert router.location == "/login"
