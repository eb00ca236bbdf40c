"""
Data models for the bloggr client.
These mirror the JSON documents stored by the blog backend. Field names are
snake_case here and camelCase on the wire; unknown wire fields are kept in
`extra` so full-document PUTs never drop data.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .config import ROLE_ADMIN, ROLE_USER


def now_iso() -> str:
    """UTC timestamp in the backend's ISO-8601 format (millisecond precision, Z suffix)."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def same_id(a: Any, b: Any) -> bool:
    """Compare ids that may arrive as int or str depending on the backend."""
    return a is not None and b is not None and str(a) == str(b)


def _split_extra(data: Dict[str, Any], known: tuple) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if k not in known}


@dataclass
class User:
    """Represents a registered user."""
    id: Any
    username: str
    email: str
    password: str = ""
    role: str = ROLE_USER
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _WIRE = ("id", "username", "email", "password", "role", "createdAt", "updatedAt")

    @property
    def is_admin(self) -> bool:
        return (self.role or "").lower() == ROLE_ADMIN

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data.get("id"),
            username=data.get("username") or "",
            email=(data.get("email") or "").lower(),
            password=data.get("password") or "",
            role=data.get("role") or ROLE_USER,
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            extra=_split_extra(data, cls._WIRE),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.extra)
        out.update(
            id=self.id,
            username=self.username,
            email=self.email,
            password=self.password,
            role=self.role,
        )
        if self.created_at is not None:
            out["createdAt"] = self.created_at
        if self.updated_at is not None:
            out["updatedAt"] = self.updated_at
        return out


@dataclass
class Comment:
    """A comment embedded in a post. The author is always referenced by user id."""
    id: str
    user_id: Any
    text: str
    created_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _WIRE = ("id", "userId", "text", "createdAt")

    @property
    def legacy_username(self) -> Optional[str]:
        # older documents stored the author's username instead of userId
        return self.extra.get("username")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comment":
        return cls(
            id=str(data.get("id")),
            user_id=data.get("userId"),
            text=data.get("text") or "",
            created_at=data.get("createdAt"),
            extra=_split_extra(data, cls._WIRE),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.extra)
        out.update(id=self.id, userId=self.user_id, text=self.text)
        if self.created_at is not None:
            out["createdAt"] = self.created_at
        return out


@dataclass
class Post:
    """Represents a blog post with its embedded comments."""
    id: Any
    title: str
    description: str
    category: str
    user_id: Any
    image_url: str = ""
    likes: int = 0
    likes_history: List[Any] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _WIRE = (
        "id", "title", "description", "imageUrl", "category", "userId",
        "likes", "likesHistory", "comments", "createdAt", "updatedAt",
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Post":
        return cls(
            id=data.get("id"),
            title=data.get("title") or "",
            description=data.get("description") or "",
            category=data.get("category") or "",
            user_id=data.get("userId"),
            image_url=data.get("imageUrl") or "",
            likes=max(0, int(data.get("likes") or 0)),
            likes_history=list(data.get("likesHistory") or []),
            comments=[Comment.from_dict(c) for c in data.get("comments") or []],
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            extra=_split_extra(data, cls._WIRE),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.extra)
        out.update(
            title=self.title,
            description=self.description,
            imageUrl=self.image_url,
            category=self.category,
            userId=self.user_id,
            likes=self.likes,
            likesHistory=list(self.likes_history),
            comments=[c.to_dict() for c in self.comments],
        )
        if self.id is not None:
            out["id"] = self.id
        if self.created_at is not None:
            out["createdAt"] = self.created_at
        if self.updated_at is not None:
            out["updatedAt"] = self.updated_at
        return out

    def liked_by(self, user_id: Any) -> bool:
        return any(same_id(u, user_id) for u in self.likes_history)

    def copy(self, **changes) -> "Post":
        """Shallow copy with new list containers, so edits never alias the original."""
        changes.setdefault("likes_history", list(self.likes_history))
        changes.setdefault("comments", list(self.comments))
        changes.setdefault("extra", dict(self.extra))
        return replace(self, **changes)


def author_name(users: List[User], user_id: Any, legacy_username: Optional[str] = None) -> str:
    """Display name for a user id, resolved against a loaded user list."""
    for u in users:
        if same_id(u.id, user_id):
            return u.username
    if legacy_username:
        return legacy_username
    return f"User {user_id}"
