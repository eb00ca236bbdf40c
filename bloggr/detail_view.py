"""View-model for a single post with its comments."""
import uuid
from typing import Any, List, Optional

from .api_interface import fetch_concurrently
from .config import HOME_PATH, get_logger
from .data_models import Comment, Post, User, author_name, now_iso, same_id
from .errors import BlogError, NotFound, SessionExpired, Unauthorized
from .forms import CommentForm, validate
from .viewmodel import ViewModel

logger = get_logger("detail_view")


class PostDetailViewModel(ViewModel):
    def __init__(self, api, session, notifier, router):
        super().__init__(api, session, notifier, router)
        self.item: Optional[Post] = None
        self.users: List[User] = []
        self.liked = False
        self.not_found = False
        self.deleted = False

    def load(self, post_id: Any) -> bool:
        self.loading = True
        self.error = None
        self.not_found = False
        try:
            post, users = fetch_concurrently(lambda: self.api.get_post(post_id), self.api.get_users)
        except BlogError as e:
            logger.error("Fetch post error: %s", e)
            self.item = None
            self.error = e
            self.not_found = True
            self.loading = False
            if isinstance(e, NotFound):
                self.notifier.notify("Post not found", severity="error")
            elif not isinstance(e, SessionExpired):
                self.notifier.notify("Error fetching post", severity="error")
            return False

        self.item = post
        self.users = users
        user = self.session.current_user
        self.liked = bool(user and post.liked_by(user.id))
        self.loading = False
        return True

    def author_name(self, user_id: Any) -> str:
        return author_name(self.users, user_id)

    def comment_author(self, comment: Comment) -> str:
        return author_name(self.users, comment.user_id, comment.legacy_username)

    def _require_item(self) -> Post:
        if self.item is None:
            raise NotFound("no post loaded")
        return self.item

    def toggle_like(self) -> bool:
        """Like or unlike the post for the current user; returns the new liked state."""
        user = self._require_user("Please log in to like posts!")
        post = self._require_item()

        liking = not post.liked_by(user.id)
        if liking:
            history = post.likes_history + [user.id]
            likes = post.likes + 1
        else:
            history = [u for u in post.likes_history if not same_id(u, user.id)]
            likes = max(0, post.likes - 1)

        try:
            saved = self.api.update_post(post.copy(likes=likes, likes_history=history))
        except BlogError as e:
            self._fail("Error updating like", e)
        self.item = saved
        self.liked = liking
        return liking

    def add_comment(self, text: str) -> Comment:
        user = self._require_user("Please log in to comment!")
        post = self._require_item()
        try:
            form = validate(CommentForm, text=text)
        except BlogError as e:
            self.notifier.notify(str(e), severity="error")
            raise

        comment = Comment(id=uuid.uuid4().hex, user_id=user.id, text=form.text, created_at=now_iso())
        try:
            saved = self.api.update_post(post.copy(comments=post.comments + [comment]))
        except BlogError as e:
            self._fail("Error adding comment", e)
        self.item = saved
        self.notifier.notify("Comment added successfully!", severity="success")
        return comment

    def delete_comment(self, comment_id: Any) -> None:
        user = self._require_user("Please log in to delete comments!")
        post = self._require_item()
        comment = next((c for c in post.comments if same_id(c.id, comment_id)), None)
        if comment is None:
            raise NotFound(f"comment {comment_id} not found")
        if not same_id(comment.user_id, user.id):
            self.notifier.notify("You can only delete your own comments!", severity="error")
            raise Unauthorized(f"not allowed to delete comment {comment_id}")

        remaining = [c for c in post.comments if not same_id(c.id, comment_id)]
        try:
            saved = self.api.update_post(post.copy(comments=remaining))
        except BlogError as e:
            self._fail("Error deleting comment", e)
        self.item = saved
        self.notifier.notify("Comment deleted", severity="success")

    def delete_post(self) -> None:
        user = self._require_user("Please log in to delete posts!")
        post = self._require_item()
        if not same_id(post.user_id, user.id):
            self.notifier.notify("You can only delete your own posts!", severity="error")
            raise Unauthorized(f"not allowed to delete post {post.id}")

        try:
            self.api.delete_post(post.id)
        except BlogError as e:
            self._fail("Error deleting post", e)
        self.item = None
        self.deleted = True
        self.notifier.notify("Post deleted successfully", severity="success")
        self.router.navigate(HOME_PATH)
