"""URL utility functions shared by the save pipeline."""

import posixpath
from typing import Optional
from urllib.parse import unquote, urlparse

# Extensions Mealie accepts for recipe images, keyed by what appears in a URL path
_KNOWN_IMAGE_EXTENSIONS = {
    "png": "png",
    "jpg": "jpg",
    "jpeg": "jpg",
    "webp": "webp",
    "gif": "gif",
}


def extension_from_url(url: str) -> Optional[str]:
    """
    Infer an image file extension from the path component of a URL.

    Query strings and fragments are ignored, and "jpeg" is folded into "jpg".

    Args:
        url: Image URL (e.g. "https://example.com/img/dish.JPEG?w=800")

    Returns:
        Normalized extension ("png", "jpg", "webp", "gif"), or None if the
        path has no recognizable image extension
    """
    if not url:
        return None
    path = unquote(urlparse(url.strip()).path)
    _, ext = posixpath.splitext(path)
    return _KNOWN_IMAGE_EXTENSIONS.get(ext.lstrip('.').lower())


def recipe_view_url(base_url: str, slug: str) -> str:
    """Build the Mealie UI URL for a recipe slug."""
    return f"{base_url.rstrip('/')}/recipe/{slug}"
