"""
Create/edit screen for posts, including the image upload to ImgBB.
"""
from pathlib import Path
from typing import Any, Dict, Optional

import requests
from PIL import Image, UnidentifiedImageError

from .config import (
    CATEGORIES,
    HOME_PATH,
    IMAGE_UPLOAD_TIMEOUT,
    IMGBB_API_KEY,
    IMGBB_UPLOAD_URL,
    MAX_IMAGE_BYTES,
    get_logger,
)
from .data_models import Post, now_iso, same_id
from .errors import BlogError, NetworkOrServerError, Unauthorized, ValidationError
from .forms import PostForm, validate
from .viewmodel import ViewModel

logger = get_logger("editor")


def _blank_values() -> Dict[str, Any]:
    return {"title": "", "description": "", "image_url": "", "category": CATEGORIES[0]}


class PostEditorViewModel(ViewModel):
    def __init__(self, api, session, notifier, router, api_key: Optional[str] = IMGBB_API_KEY, http=None):
        super().__init__(api, session, notifier, router)
        self.api_key = api_key
        self.http = http or requests.Session()
        self.values: Dict[str, Any] = _blank_values()
        self.existing: Optional[Post] = None
        self.uploading = False

    @property
    def is_edit(self) -> bool:
        return self.existing is not None

    def load(self, post_id: Any = None) -> None:
        """Prepare an empty form, or the owner's post when `post_id` is given."""
        user = self._require_user("Please log in to access this page!")
        self.existing = None
        self.values = _blank_values()
        if post_id is None:
            return

        self.loading = True
        try:
            post = self.api.get_post(post_id)
        except BlogError as e:
            logger.error("Fetch post error: %s", e)
            self.error = e
            self.notifier.notify("Error fetching post", severity="error")
            self.router.navigate(HOME_PATH)
            raise
        finally:
            self.loading = False

        if not same_id(post.user_id, user.id):
            self.notifier.notify("You can only edit your own posts!", severity="error")
            self.router.navigate(HOME_PATH)
            raise Unauthorized(f"not allowed to edit post {post_id}")

        self.existing = post
        self.values = {
            "title": post.title,
            "description": post.description,
            "image_url": post.image_url,
            "category": post.category,
        }

    def save(self, **values) -> Post:
        user = self._require_user("Please log in to access this page!")
        merged = {**self.values, **values}
        try:
            form = validate(PostForm, **merged)
        except ValidationError as e:
            self.notifier.notify(str(e), severity="error")
            raise

        now = now_iso()
        try:
            if self.existing is not None:
                # likes, likesHistory, comments and createdAt carry over untouched
                saved = self.api.update_post(
                    self.existing.copy(
                        title=form.title,
                        description=form.description,
                        image_url=form.image_url,
                        category=form.category,
                        user_id=user.id,
                        updated_at=now,
                    )
                )
                message = "Post updated successfully!"
            else:
                saved = self.api.create_post(
                    Post(
                        id=None,
                        title=form.title,
                        description=form.description,
                        image_url=form.image_url,
                        category=form.category,
                        user_id=user.id,
                        likes=0,
                        likes_history=[],
                        comments=[],
                        created_at=now,
                        updated_at=now,
                    )
                )
                message = "Post created successfully!"
        except BlogError as e:
            self._fail("Error saving post", e)

        self.values = dict(merged)
        self.notifier.notify(message, severity="success")
        self.router.navigate(HOME_PATH)
        return saved

    def upload_image(self, path) -> str:
        """Upload a local image to ImgBB and put the hosted URL in the form."""
        file = Path(path)
        if not file.is_file():
            raise ValidationError(f"No such file: {file}")
        if file.stat().st_size > MAX_IMAGE_BYTES:
            self.notifier.notify("Image size exceeds 5MB limit", severity="error")
            raise ValidationError("Image size exceeds 5MB limit")
        try:
            with Image.open(file) as img:
                img.verify()
        except (UnidentifiedImageError, OSError) as e:
            self.notifier.notify("Selected file is not an image", severity="error")
            raise ValidationError("Selected file is not an image") from e
        if not self.api_key:
            logger.error("IMGBB_API_KEY is not defined in .env")
            self.notifier.notify("ImgBB API key is missing", severity="error")
            raise ValidationError("ImgBB API key is missing")

        self.uploading = True
        try:
            with file.open("rb") as fh:
                resp = self.http.post(
                    IMGBB_UPLOAD_URL,
                    data={"key": self.api_key},
                    files={"image": (file.name, fh)},
                    timeout=IMAGE_UPLOAD_TIMEOUT,
                )
            resp.raise_for_status()
            url = (resp.json().get("data") or {}).get("url")
        except (requests.RequestException, ValueError) as e:
            logger.exception("ImgBB upload error")
            self.notifier.notify("Error uploading image. Please try again or check your connection.", severity="error")
            raise NetworkOrServerError(f"image upload failed: {e}") from e
        finally:
            self.uploading = False

        if not url:
            self.notifier.notify("Error uploading image", severity="error")
            raise NetworkOrServerError("No image URL returned from ImgBB")
        self.values["image_url"] = url
        self.notifier.notify("Image uploaded successfully!", severity="success")
        return url
