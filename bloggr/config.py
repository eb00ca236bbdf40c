"""Configuration and constants for bloggr"""
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(override=True)

# Collaborator endpoints
API_BASE_URL = os.environ.get("BLOG_API_URL", "http://localhost:3000")
SITE_URL = os.environ.get("BLOG_SITE_URL", "http://localhost:5173")
REQUEST_TIMEOUT = float(os.environ.get("BLOG_REQUEST_TIMEOUT", "10"))

# Image hosting
IMGBB_UPLOAD_URL = "https://api.imgbb.com/1/upload"
IMGBB_API_KEY = os.environ.get("IMGBB_API_KEY")
MAX_IMAGE_BYTES = 5 * 1024 * 1024
IMAGE_UPLOAD_TIMEOUT = 30

# Listing
PAGE_SIZE = int(os.environ.get("BLOG_PAGE_SIZE", "6"))
CATEGORIES = ("Travel", "Tech", "Lifestyle", "Food")
ALL = "all"

# Roles
ROLE_USER = "user"
ROLE_ADMIN = "admin"

# Storage settings
KEYRING_SERVICE = os.environ.get("BLOGGR_KEYRING_SERVICE", "bloggr")
USER_KEY = "user"
TOKEN_KEY = "token"
DARK_MODE_KEY = "darkMode"

# Routes
LOGIN_PATH = "/login"
HOME_PATH = "/"

DEBUG_LOG_FILE = Path.home() / ".bloggr_debug.log"


def get_logger(name: str) -> logging.Logger:
    """Return a `bloggr.<name>` logger.

    Loggers stay at WARNING unless BLOGGR_DEBUG is set, in which case they
    log DEBUG and also append to ~/.bloggr_debug.log.
    """
    logger = logging.getLogger(f"bloggr.{name}")
    if not os.getenv("BLOGGR_DEBUG"):
        logger.setLevel(logging.WARNING)
        return logger

    logger.setLevel(logging.DEBUG)
    already = any(
        isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", "") == str(DEBUG_LOG_FILE)
        for h in logger.handlers
    )
    if not already:
        try:
            fh = logging.FileHandler(str(DEBUG_LOG_FILE), encoding="utf-8")
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
            logger.addHandler(fh)
        except OSError:
            # the debug file is optional
            logger.debug("could not open %s for debug logging", DEBUG_LOG_FILE)
    return logger
