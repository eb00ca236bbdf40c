"""
Login, signup and logout against the blog backend.
Successful flows hand the user and token to the SessionStore, which owns
persistence.
"""
from typing import Any, Dict

from .config import HOME_PATH, LOGIN_PATH, get_logger
from .data_models import User, now_iso
from .errors import BlogError, Unauthenticated, ValidationError
from .forms import LoginForm, SignupForm, validate
from .viewmodel import ViewModel

logger = get_logger("auth")


class AuthViewModel(ViewModel):
    def _validate(self, form_cls, **values):
        try:
            return validate(form_cls, **values)
        except ValidationError as e:
            self.notifier.notify(str(e), severity="error")
            raise

    def login(self, email: str, password: str) -> User:
        form = self._validate(LoginForm, email=email, password=password)
        # where the guard bounced the user from, captured before any navigation
        target = self.router.state.get("from") or HOME_PATH
        self.loading = True
        try:
            user, token = self.api.login(form.email, form.password)
        except Unauthenticated as e:
            logger.debug("login rejected for %s", form.email)
            self.error = e
            self.notifier.notify("Invalid email or password", severity="error")
            raise
        except BlogError as e:
            self._fail("Login failed, please try again", e)
        finally:
            self.loading = False

        self.session.login(user, token)
        self.notifier.notify("Logged in successfully!", severity="success")
        self.router.navigate(target)
        return user

    def signup(self, username: str, email: str, password: str, confirm_password: str) -> User:
        form = self._validate(
            SignupForm,
            username=username,
            email=email,
            password=password,
            confirm_password=confirm_password,
        )
        payload: Dict[str, Any] = {
            "username": form.username,
            "email": form.email,
            "password": form.password,
            "createdAt": now_iso(),
        }
        self.loading = True
        try:
            if self.api.find_users_by_email(form.email):
                self.notifier.notify("An account with this email already exists", severity="error")
                raise ValidationError("An account with this email already exists")
            self.api.create_user(payload)
            user, token = self.api.login(form.email, form.password)
        except ValidationError:
            raise
        except BlogError as e:
            self._fail("Error signing up", e)
        finally:
            self.loading = False

        self.session.login(user, token)
        self.notifier.notify("Signed up successfully!", severity="success")
        self.router.navigate(HOME_PATH)
        return user

    def logout(self) -> None:
        self.session.logout()
        self.notifier.notify("Logged out", severity="information")
        self.router.navigate(LOGIN_PATH)
