"""Profile screen: the current user's posts and the profile edit form."""
from typing import Optional

from .config import PAGE_SIZE, get_logger
from .data_models import User, now_iso
from .errors import BlogError, ValidationError
from .forms import ProfileForm, validate
from .list_view import PostListViewModel
from .viewmodel import ViewModel

logger = get_logger("profile")


class ProfileViewModel(ViewModel):
    def __init__(self, api, session, notifier, router, page_size: int = PAGE_SIZE):
        super().__init__(api, session, notifier, router)
        self.page_size = page_size
        self.posts: Optional[PostListViewModel] = None

    @property
    def user(self) -> Optional[User]:
        return self.session.current_user

    def load(self) -> bool:
        user = self._require_user("Please log in to view your profile", redirect=False)
        self.posts = PostListViewModel(
            self.api,
            self.session,
            self.notifier,
            self.router,
            page_size=self.page_size,
            owner_id=user.id,
            with_users=False,
        )
        return self.posts.load()

    def update_profile(self, username: str, email: str, password: str = "") -> User:
        user = self._require_user("Please log in to view your profile")
        try:
            form = validate(ProfileForm, username=username, email=email, password=password)
        except ValidationError as e:
            self.notifier.notify(str(e), severity="error")
            raise

        updated = User(
            id=user.id,
            username=form.username,
            email=form.email,
            password=form.password or user.password,
            role=user.role,
            created_at=user.created_at,
            updated_at=now_iso(),
            extra=dict(user.extra),
        )
        try:
            saved = self.api.update_user(updated)
        except BlogError as e:
            self._fail("Error updating profile", e)

        self.session.update_user(saved)
        self.notifier.notify("Profile updated successfully!", severity="success")
        return saved
