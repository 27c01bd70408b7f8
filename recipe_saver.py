"""
Recipe Save Pipeline
====================

Sequences the Mealie calls that make up one "save recipe" request:

1. create_recipe(name)          -> slug assigned by Mealie
2. update_recipe(slug, recipe)  -> full content (create + update = saved)
3. image (optional, best effort):
   download URL -> infer extension -> stage temp file -> upload -> delete temp

Failure handling:
- create fails: the error propagates, nothing exists in Mealie
- update fails: PartialSaveError carrying the slug that was already created
- any image failure: recorded on SaveResult.image as a warning, never raised

Usage:
    from recipe_saver import save_recipe_with_image

    async with MealieClient(config) as client:
        result = await save_recipe_with_image(client, mealie_recipe, image_url)
        print(result.slug, result.image.status)
"""

import asyncio
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Literal, Optional, Tuple

import aiohttp

from mealie_client import MealieClient, MealieClientError
from tools.logging_utils import get_logger
from utils.url_utils import extension_from_url

# Initialize logger for this module
logger = get_logger(__name__)

# Timeout (seconds) for downloading a recipe image
IMAGE_DOWNLOAD_TIMEOUT = 30


# =============================================================================
# EXCEPTIONS
# =============================================================================

class PartialSaveError(Exception):
    """
    Raised when the recipe stub was created but the full update failed.

    The recipe exists in Mealie under `slug` with only its name set.

    Attributes:
        slug: Slug Mealie assigned on create
        cause: The error raised by the update call
    """

    def __init__(self, slug: str, cause: Exception):
        self.slug = slug
        self.cause = cause
        super().__init__(f"Recipe created with slug '{slug}' but failed to update: {cause}")


class ImageDownloadError(Exception):
    """Raised when a recipe image cannot be downloaded or its type is not supported."""
    pass


class ImageWarning(UserWarning):
    """Non-fatal problem while attaching an image to a saved recipe."""
    pass


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class ImageOutcome:
    """Result of the image step of a save."""
    status: Literal['attached', 'skipped', 'failed']
    image_url: Optional[str] = None
    message: Optional[str] = None

    @property
    def warning(self) -> Optional[ImageWarning]:
        if self.status != 'failed':
            return None
        return ImageWarning(self.message or "Image could not be attached")


@dataclass
class SaveResult:
    """Result of a completed save: the recipe exists in Mealie under `slug`."""
    slug: str
    image: ImageOutcome = field(default_factory=lambda: ImageOutcome(status='skipped'))

    @property
    def warnings(self) -> list:
        warning = self.image.warning
        return [warning] if warning else []


# =============================================================================
# CREATE + UPDATE
# =============================================================================

async def save_recipe(client: MealieClient, recipe: Dict[str, Any]) -> str:
    """
    Save a recipe: create a stub to obtain a slug, then update it with full details.

    Args:
        client: MealieClient instance
        recipe: Mealie recipe dict (must contain 'name')

    Returns:
        Slug of the saved recipe

    Raises:
        MealieClientError: If the create call fails (nothing was created)
        PartialSaveError: If the update call fails after the create succeeded
    """
    slug = await client.create_recipe(recipe["name"])

    try:
        await client.update_recipe(slug, recipe)
    except MealieClientError as e:
        logger.error(f"❌ Recipe '{slug}' was created but the update failed: {e}")
        raise PartialSaveError(slug, e) from e

    return slug


# =============================================================================
# IMAGE STEP
# =============================================================================

def extension_from_content_type(content_type: Optional[str]) -> Optional[str]:
    """
    Map a response content type to a Mealie image extension.

    Args:
        content_type: Content-Type header value (e.g. "image/webp")

    Returns:
        "png", "jpg", "webp" or "gif", or None if the type is not recognized
    """
    if not content_type:
        return None
    content_type = content_type.lower()
    if "png" in content_type:
        return "png"
    if "jpeg" in content_type or "jpg" in content_type:
        return "jpg"
    if "webp" in content_type:
        return "webp"
    if "gif" in content_type:
        return "gif"
    return None


def resolve_image_extension(content_type: Optional[str], url: str) -> str:
    """
    Decide the file extension for a downloaded image.

    A recognized content type wins; otherwise the URL path extension is used
    (servers often answer with no type or application/octet-stream).

    Raises:
        ImageDownloadError: If no supported extension can be determined
    """
    extension = extension_from_content_type(content_type) or extension_from_url(url)
    if extension is None:
        raise ImageDownloadError(
            f"Unsupported image content type {content_type or '(none)'} for {url}"
        )
    return extension


async def download_image(session: aiohttp.ClientSession, url: str) -> Tuple[bytes, str]:
    """
    Download an image over plain HTTP GET.

    Args:
        session: aiohttp session to use
        url: Image URL

    Returns:
        (image bytes, extension)

    Raises:
        ImageDownloadError: On network errors, non-success status or unsupported type
    """
    try:
        async with session.get(
            url, timeout=aiohttp.ClientTimeout(total=IMAGE_DOWNLOAD_TIMEOUT)
        ) as response:
            if response.status >= 400:
                raise ImageDownloadError(f"Image download failed with status {response.status}: {url}")
            content_type = response.headers.get("Content-Type", "")
            extension = resolve_image_extension(content_type, url)
            body = await response.read()
    except aiohttp.ClientError as e:
        raise ImageDownloadError(f"Image download failed: {e}") from e
    except asyncio.TimeoutError as e:
        raise ImageDownloadError(f"Image download timed out after {IMAGE_DOWNLOAD_TIMEOUT}s: {url}") from e

    if not body:
        raise ImageDownloadError(f"Image download returned no data: {url}")

    logger.debug(f"Downloaded image {url} ({len(body)} bytes, .{extension})")
    return body, extension


@contextmanager
def staged_image(data: bytes, extension: str) -> Iterator[str]:
    """
    Write image bytes to a temporary file and yield its path.

    The file is removed when the block exits, whether or not it raised.
    """
    fd, path = tempfile.mkstemp(prefix="mealie-image-", suffix=f".{extension}")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        yield path
    finally:
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass


async def attach_image(client: MealieClient, slug: str, image_url: str) -> ImageOutcome:
    """
    Download an image and upload it to a saved recipe.

    Never raises for image problems; failures are returned as an
    ImageOutcome with status 'failed'.
    """
    try:
        data, extension = await download_image(client.session, image_url)
        with staged_image(data, extension) as path:
            await client.upload_recipe_image(slug, path, extension)
    except (ImageDownloadError, MealieClientError, OSError) as e:
        message = f"Recipe saved, but the image could not be attached: {e}"
        logger.warning(f"⚠️ {message}")
        return ImageOutcome(status='failed', image_url=image_url, message=message)
    except Exception as e:
        # The recipe is already saved at this point
        message = f"Recipe saved, but the image could not be attached: {e}"
        logger.error(f"❌ Unexpected image error for {slug}: {type(e).__name__}: {e}")
        return ImageOutcome(status='failed', image_url=image_url, message=message)

    return ImageOutcome(status='attached', image_url=image_url, message=f"Image attached from {image_url}")


async def save_recipe_with_image(
    client: MealieClient,
    recipe: Dict[str, Any],
    image_url: Optional[str] = None,
) -> SaveResult:
    """
    Save a recipe and, if an image URL is given, attach the image.

    Args:
        client: MealieClient instance
        recipe: Mealie recipe dict
        image_url: Optional image URL to download and upload

    Returns:
        SaveResult with the slug and the image outcome

    Raises:
        MealieClientError: If the create call fails
        PartialSaveError: If the update call fails after the create succeeded
    """
    slug = await save_recipe(client, recipe)

    if not image_url:
        return SaveResult(slug=slug)

    outcome = await attach_image(client, slug, image_url)
    return SaveResult(slug=slug, image=outcome)
