"""Error types raised by the bloggr client and its view-models."""
from typing import List, Optional


class BlogError(Exception):
    """Base class for every error surfaced to the user"""
    pass


class Unauthenticated(BlogError):
    """The action requires a logged-in user"""
    pass


class SessionExpired(Unauthenticated):
    """The backend answered 401; the stored session has been cleared"""
    pass


class Unauthorized(BlogError):
    """Logged in, but neither the owner of the resource nor an admin"""
    pass


class ValidationError(BlogError):
    """Input rejected client-side, before any network call"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class NotFound(BlogError):
    """The requested resource does not exist on the backend"""
    pass


class NetworkOrServerError(BlogError):
    """Catch-all for failed HTTP calls"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
