"""
Form schemas for bloggr.

Each form is a pydantic model checked on the client before any request is
sent. `validate()` turns pydantic's errors into a single `ValidationError`
carrying one readable message per failed field.
"""
import re
from typing import Optional, Type, TypeVar
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .config import CATEGORIES
from .errors import ValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")

F = TypeVar("F", bound="Form")


class Form(BaseModel):
    # run validators on defaults too, so a missing field reports "required"
    model_config = ConfigDict(validate_default=True)


def _email(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("Email is required")
    if not EMAIL_RE.match(value):
        raise ValueError("Invalid email")
    return value.lower()


class LoginForm(Form):
    email: str = ""
    password: str = ""

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v


class SignupForm(Form):
    username: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Username is required")
        if len(v) < 3:
            raise ValueError("Username too short")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v

    @field_validator("confirm_password")
    @classmethod
    def check_confirm(cls, v: str) -> str:
        if not v:
            raise ValueError("Confirm Password is required")
        return v

    @model_validator(mode="after")
    def passwords_match(self) -> "SignupForm":
        if self.password != self.confirm_password:
            raise ValueError("Passwords must match")
        return self


class ProfileForm(Form):
    username: str = ""
    email: str = ""
    # blank keeps the current password
    password: Optional[str] = None

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Username is required")
        if len(v) < 3:
            raise ValueError("Username too short")
        if len(v) > 20:
            raise ValueError("Username too long")
        if not USERNAME_RE.match(v):
            raise ValueError("Username can only contain letters, numbers, underscores")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        if len(v) > 50:
            raise ValueError("Password too long")
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"[0-9]", v):
            raise ValueError("Password must contain at least one number")
        if not re.search(r"[^A-Za-z0-9]", v):
            raise ValueError("Password must contain at least one special character")
        return v


class PostForm(Form):
    title: str = ""
    description: str = ""
    image_url: str = ""
    category: str = ""

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Title is required")
        if len(v) < 3:
            raise ValueError("Title too short")
        if len(v) > 100:
            raise ValueError("Title too long")
        return v

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Description is required")
        if len(v) < 10:
            raise ValueError("Description too short")
        return v

    @field_validator("image_url")
    @classmethod
    def check_image_url(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Image is required")
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Invalid URL")
        return v

    @field_validator("category")
    @classmethod
    def check_category(cls, v: str) -> str:
        if not v:
            raise ValueError("Category is required")
        if v not in CATEGORIES:
            raise ValueError(f"Category must be one of: {', '.join(CATEGORIES)}")
        return v


class CommentForm(Form):
    text: str = ""

    @field_validator("text")
    @classmethod
    def check_text(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Comment cannot be empty")
        return v


def _message(error: dict) -> str:
    msg = error.get("msg", "invalid value")
    # pydantic prefixes messages raised from validators
    return msg[len("Value error, "):] if msg.startswith("Value error, ") else msg


def validate(form_cls: Type[F], **values) -> F:
    try:
        return form_cls(**values)
    except PydanticValidationError as e:
        messages = [_message(err) for err in e.errors()]
        raise ValidationError(messages[0], messages) from e
