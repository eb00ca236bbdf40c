"""
View-model behind the Home, Categories and Profile post lists.

The backend returns whole collections, so search, filters and paging all
happen here over the loaded posts. Paging is cumulative ("infinite scroll"):
page N shows the first N * page_size filtered posts.
"""
import math
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlencode

from .api_interface import fetch_concurrently
from .config import ALL, CATEGORIES, PAGE_SIZE, SITE_URL, get_logger
from .data_models import Post, User, author_name, same_id
from .errors import BlogError, NotFound, SessionExpired, Unauthorized, ValidationError
from .viewmodel import ViewModel

logger = get_logger("list_view")

SHARE_PLATFORMS = ("twitter", "facebook", "linkedin", "whatsapp", "copy")


def detail_url(post_id: Any, site_url: str = SITE_URL) -> str:
    return f"{site_url.rstrip('/')}/post/{post_id}"


def share_url(post: Post, platform: str, site_url: str = SITE_URL) -> str:
    """Build the share link for one post on one platform."""
    url = detail_url(post.id, site_url)
    if platform == "twitter":
        return "https://twitter.com/intent/tweet?" + urlencode({"url": url, "text": post.title})
    if platform == "facebook":
        return "https://www.facebook.com/sharer/sharer.php?" + urlencode({"u": url})
    if platform == "linkedin":
        return "https://www.linkedin.com/sharing/share-offsite/?" + urlencode({"url": url})
    if platform == "whatsapp":
        return "https://wa.me/?text=" + quote(f"{post.title} {url}")
    if platform == "copy":
        return url
    raise ValidationError(f"Unknown share platform: {platform}")


class PostListViewModel(ViewModel):
    def __init__(
        self,
        api,
        session,
        notifier,
        router,
        page_size: int = PAGE_SIZE,
        owner_id: Any = None,
        with_users: bool = True,
        site_url: str = SITE_URL,
    ):
        super().__init__(api, session, notifier, router)
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        self.owner_id = owner_id
        self.with_users = with_users
        self.site_url = site_url

        self.items: List[Post] = []
        self.users: List[User] = []
        self.search = ""
        self.category_filter = ALL
        self.author_filter: Any = ALL
        self.page = 1

        # bumped whenever `items` changes; part of the filter cache key
        self._version = 0
        self._filter_key: Optional[tuple] = None
        self._filter_cache: List[Post] = []

    # --- loading ---
    def load(self) -> bool:
        """Fetch posts (and users, for author names). A failure is terminal for this view."""
        self.loading = True
        self.error = None
        try:
            if self.with_users:
                posts, users = fetch_concurrently(
                    lambda: self.api.get_posts(self.owner_id),
                    self.api.get_users,
                )
            else:
                posts, users = self.api.get_posts(self.owner_id), []
        except BlogError as e:
            self.error = e
            self.loading = False
            logger.error("Fetch posts error: %s", e)
            if not isinstance(e, SessionExpired):
                self.notifier.notify("Error fetching posts", severity="error")
            return False

        self._set_items(posts)
        self.users = users
        self.page = 1
        self.loading = False
        return True

    def _set_items(self, items: List[Post]) -> None:
        self.items = items
        self._version += 1

    # --- filters ---
    def set_search(self, text: str) -> None:
        self.search = text or ""
        self.page = 1

    def set_category(self, category: str) -> None:
        if category != ALL and category not in CATEGORIES:
            raise ValidationError(f"Unknown category: {category}")
        self.category_filter = category
        self.page = 1

    def set_author(self, author: Any) -> None:
        self.author_filter = ALL if author in (None, "", ALL) else author
        self.page = 1

    def _matches_author(self, post: Post) -> bool:
        if self.author_filter == ALL:
            return True
        if same_id(post.user_id, self.author_filter):
            return True
        # the filter may also name the author by username
        return author_name(self.users, post.user_id) == self.author_filter

    def filtered(self) -> List[Post]:
        key = (self._version, self.search, self.category_filter, self.author_filter)
        if key != self._filter_key:
            q = self.search.lower()
            self._filter_cache = [
                p
                for p in self.items
                if (self.category_filter == ALL or p.category == self.category_filter)
                and self._matches_author(p)
                and (q in p.title.lower() or q in p.description.lower())
            ]
            self._filter_key = key
        return list(self._filter_cache)

    def by_category(self) -> Dict[str, List[Post]]:
        groups: Dict[str, List[Post]] = {c: [] for c in CATEGORIES}
        for post in self.filtered():
            if post.category in groups:
                groups[post.category].append(post)
        return groups

    # --- paging ---
    @property
    def page_count(self) -> int:
        return max(1, math.ceil(len(self.filtered()) / self.page_size))

    def visible(self) -> List[Post]:
        return self.filtered()[: self.page * self.page_size]

    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < len(self.filtered())

    def load_more(self) -> bool:
        """Advance one page; no-op once every filtered post is shown."""
        if not self.has_more:
            return False
        self.page += 1
        return True

    def go_to_page(self, page: int) -> None:
        self.page = min(max(1, page), self.page_count)

    def maybe_load_more(self, scroll_y: float, container_height: float, virtual_height: float,
                        threshold: float = 100) -> bool:
        """Load the next page when the viewport is within `threshold` of the bottom."""
        if virtual_height > 0 and scroll_y + container_height >= virtual_height - threshold:
            return self.load_more()
        return False

    # --- lookups ---
    def author_name(self, user_id: Any) -> str:
        return author_name(self.users, user_id)

    def _find(self, post_id: Any) -> Post:
        for post in self.items:
            if same_id(post.id, post_id):
                return post
        raise NotFound(f"post {post_id} is not loaded")

    def _replace(self, updated: Post) -> None:
        self._set_items([updated if same_id(p.id, updated.id) else p for p in self.items])

    # --- mutations ---
    def like(self, post_id: Any) -> Post:
        """Add the current user's like; liking an already-liked post changes nothing."""
        user = self._require_user("Please log in to like posts!")
        post = self._find(post_id)
        if post.liked_by(user.id):
            self.notifier.notify("You already liked this post", severity="warning")
            return post

        updated = post.copy(likes=post.likes + 1, likes_history=post.likes_history + [user.id])
        try:
            saved = self.api.update_post(updated)
        except BlogError as e:
            self._fail("Error liking post", e)
        self._replace(saved)
        self.notifier.notify("Post liked!", severity="success")
        return saved

    def can_remove(self, post: Post) -> bool:
        user = self.session.current_user
        return user is not None and (same_id(user.id, post.user_id) or self.session.is_admin())

    def remove(self, post_id: Any) -> None:
        self._require_user("Please log in to delete posts!")
        post = self._find(post_id)
        if not self.can_remove(post):
            self.notifier.notify("You can only delete your own posts!", severity="error")
            raise Unauthorized(f"not allowed to delete post {post_id}")

        try:
            self.api.delete_post(post.id)
        except BlogError as e:
            self._fail("Error deleting post", e)

        self._set_items([p for p in self.items if not same_id(p.id, post.id)])
        # step back when the current page just became empty
        if self.page > 1 and len(self.filtered()) <= (self.page - 1) * self.page_size:
            self.page -= 1
        self.notifier.notify("Post deleted successfully", severity="success")

    # --- sharing ---
    def share(self, post_id: Any, platform: str) -> str:
        return share_url(self._find(post_id), platform, self.site_url)

    def open_share(self, post_id: Any, platform: str) -> str:
        url = self.share(post_id, platform)
        if platform == "copy":
            self.notifier.notify(f"Link: {url}", severity="success")
        else:
            self.router.open_external(url)
        return url
