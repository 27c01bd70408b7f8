#!/usr/bin/env python3
"""
Mealie Recipe Client
====================

Async client for the Mealie recipe endpoints used when saving a recipe:

    create   POST   /api/recipes                {"name": ...}  -> slug
    update   PATCH  /api/recipes/{slug}         normalized recipe
    get      GET    /api/recipes/{slug}         -> recipe
    delete   DELETE /api/recipes/{slug}
    image    PUT    /api/recipes/{slug}/image   multipart: image + extension

Every request carries the bearer token from MealieConfig. Each call is made
exactly once; there is no retry layer.

Usage:
    from config import load_config
    from mealie_client import MealieClient, MealieClientError

    async with MealieClient(load_config()) as client:
        slug = await client.create_recipe("Tuna Salad")
        await client.update_recipe(slug, recipe)

Architecture:
    MealieClient
    ├── aiohttp.ClientSession (owned, or injected and left open)
    ├── _request(): status + transport error mapping
    └── normalize_recipe_for_update(): fills Mealie-required fields
"""

import asyncio
import copy
import json
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import aiohttp

from config import MealieConfig
from tools.logging_utils import get_logger

# Module logger
logger = get_logger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================

class MealieClientError(Exception):
    """
    Base exception for MealieClient errors.

    Provides context about what operation failed and why.

    Attributes:
        message: Human-readable error description
        operation: The operation that failed (e.g., "create_recipe")
        details: Additional context (e.g., HTTP status code, response body)
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.operation = operation
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context."""
        parts = [self.message]
        if self.operation:
            parts.insert(0, f"[{self.operation}]")
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)


class MealieAPIError(MealieClientError):
    """Mealie was reachable but rejected the request (non-success status or unusable body)."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop('details', {})
        if status_code is not None:
            details['status_code'] = status_code
        if response_body:
            # Truncate long response bodies
            details['response'] = response_body[:200] + "..." if len(response_body) > 200 else response_body
        super().__init__(message, operation, details)
        self.status_code = status_code
        self.response_body = response_body


class MealieTransportError(MealieClientError):
    """Mealie could not be reached (DNS failure, connection refused, timeout)."""
    pass


# =============================================================================
# NORMALIZATION
# =============================================================================

def _normalize_ingredient(ingredient: Dict[str, Any]) -> Dict[str, Any]:
    if "display" not in ingredient:
        ingredient["display"] = ingredient.get("note", "")
    # Explicit null means "no unit/food", which Mealie distinguishes from unset
    if ingredient.get("unit") is None:
        ingredient["unit"] = None
    if ingredient.get("food") is None:
        ingredient["food"] = None
    ingredient.setdefault("isFood", False)
    ingredient.setdefault("disableAmount", True)
    # REQUIRED: Mealie rejects ingredients without a referenceId
    if not ingredient.get("referenceId"):
        ingredient["referenceId"] = str(uuid.uuid4())
    return ingredient


def _normalize_instruction(step: Dict[str, Any]) -> Dict[str, Any]:
    if step.get("title") is None:
        step["title"] = ""
    # REQUIRED: empty list if no references
    if step.get("ingredientReferences") is None:
        step["ingredientReferences"] = []
    return step


def normalize_recipe_for_update(recipe: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fill in the fields Mealie requires on an update payload.

    Ingredients get display/unit/food/isFood/disableAmount defaults and a
    referenceId; instructions get a title and an ingredientReferences list.
    recipeCategory and tags are replaced with empty lists: Mealie only
    accepts categories and tags that already exist as server-side entities.

    The input is not modified. Running the function on its own output
    returns an equal record (existing referenceIds are kept).

    Args:
        recipe: Mealie recipe dict (e.g. from convert_schema_org_to_mealie)

    Returns:
        A normalized copy of the recipe
    """
    normalized = copy.deepcopy(recipe)

    normalized["recipeIngredient"] = [
        _normalize_ingredient(ingredient)
        for ingredient in (normalized.get("recipeIngredient") or [])
    ]
    normalized["recipeInstructions"] = [
        _normalize_instruction(step)
        for step in (normalized.get("recipeInstructions") or [])
    ]

    normalized["recipeCategory"] = []
    normalized["tags"] = []
    return normalized


def dropped_taxonomy(recipe: Dict[str, Any]) -> Dict[str, List[str]]:
    """Return the categories and tags that update_recipe() will not send."""
    dropped = {}
    if recipe.get("recipeCategory"):
        dropped["categories"] = list(recipe["recipeCategory"])
    if recipe.get("tags"):
        dropped["tags"] = list(recipe["tags"])
    return dropped


# =============================================================================
# CLIENT
# =============================================================================

class MealieClient:
    """
    Async client for Mealie's recipe API.

    The client owns its aiohttp session unless one is injected; injected
    sessions are left open on close().

    Example:
        async with MealieClient(config) as client:
            recipe = await client.get_recipe("tuna-salad")
    """

    # Default timeout (seconds) per request
    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        config: MealieConfig,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the client.

        Args:
            config: Mealie connection settings
            session: Optional shared aiohttp session
            timeout: Per-request timeout in seconds
        """
        self.config = config
        self.recipes_base = f"{config.api_base}/recipes"
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

        logger.debug(f"MealieClient initialized: base_url={config.mealie_url}")

    async def __aenter__(self) -> "MealieClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Clean up connections."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.config.api_token}"}

    async def _request(
        self,
        method: str,
        endpoint: str,
        operation: str,
        json_body: Optional[Dict[str, Any]] = None,
        data: Optional[aiohttp.FormData] = None,
        expect_body: bool = False,
    ) -> Any:
        """
        Perform one HTTP request against the recipes API.

        Args:
            method: HTTP method (GET, POST, PATCH, PUT, DELETE)
            endpoint: Path below /api/recipes (e.g. "" or "/{slug}")
            operation: Operation name used in error messages
            json_body: JSON body
            data: Multipart body
            expect_body: Parse and return the JSON response body

        Returns:
            Parsed JSON body when expect_body is set, otherwise None

        Raises:
            MealieAPIError: On non-success status or unparseable body
            MealieTransportError: On network errors and timeouts
        """
        url = f"{self.recipes_base}{endpoint}"

        try:
            async with self.session.request(
                method,
                url,
                json=json_body,
                data=data,
                headers=self._headers(),
                timeout=self.timeout,
            ) as response:
                text = await response.text()
                status = response.status
                reason = response.reason
        except asyncio.TimeoutError as e:
            raise MealieTransportError(
                f"Request timed out after {self.timeout.total}s",
                operation=operation,
                details={'url': url},
            ) from e
        except aiohttp.ClientError as e:
            raise MealieTransportError(
                f"Network error: {e}",
                operation=operation,
                details={'url': url},
            ) from e

        if status >= 400:
            raise MealieAPIError(
                f"Mealie returned {status} {reason or ''}".rstrip(),
                operation=operation,
                status_code=status,
                response_body=text,
            )

        logger.debug(f"{method} {url} -> {status}")

        if not expect_body:
            return None

        try:
            return json.loads(text)
        except ValueError as e:
            raise MealieAPIError(
                "Mealie returned a non-JSON response",
                operation=operation,
                status_code=status,
                response_body=text,
            ) from e

    # -------------------------------------------------------------------------
    # Recipe operations
    # -------------------------------------------------------------------------

    async def create_recipe(self, name: str) -> str:
        """
        Create a new recipe stub with just a name.

        Mealie's CreateRecipe schema only accepts 'name'; the full content is
        added with update_recipe(). Mealie answers with the new slug as a bare
        JSON string.

        Args:
            name: Recipe name

        Returns:
            Slug assigned by Mealie

        Raises:
            MealieAPIError: If the request fails or no slug is returned
            MealieTransportError: If Mealie cannot be reached
        """
        result = await self._request(
            "POST", "", "create_recipe", json_body={"name": name}, expect_body=True
        )

        if not isinstance(result, str) or not result:
            raise MealieAPIError(
                "No slug returned from create recipe API",
                operation="create_recipe",
                response_body=json.dumps(result),
            )

        logger.info(f"✅ Created recipe stub: {result}")
        return result

    async def update_recipe(self, slug: str, recipe: Dict[str, Any]) -> None:
        """
        Update a recipe with full details.

        The recipe is passed through normalize_recipe_for_update() first, so
        categories and tags are always sent as empty lists.

        Args:
            slug: Recipe slug
            recipe: Mealie recipe dict
        """
        dropped = dropped_taxonomy(recipe)
        if dropped:
            logger.warning(
                f"⚠️ Not saving {dropped} on {slug}: Mealie only accepts categories "
                f"and tags that already exist on the server"
            )

        payload = normalize_recipe_for_update(recipe)
        await self._request("PATCH", f"/{slug}", "update_recipe", json_body=payload)
        logger.info(
            f"✅ Updated recipe {slug}: {len(payload['recipeIngredient'])} ingredients, "
            f"{len(payload['recipeInstructions'])} steps"
        )

    async def get_recipe(self, slug: str) -> Dict[str, Any]:
        """
        Get a recipe by its slug.

        Args:
            slug: Recipe slug

        Returns:
            Full recipe data
        """
        return await self._request("GET", f"/{slug}", "get_recipe", expect_body=True)

    async def delete_recipe(self, slug: str) -> None:
        """Delete a recipe by its slug."""
        await self._request("DELETE", f"/{slug}", "delete_recipe")
        logger.info(f"🗑️ Deleted recipe: {slug}")

    async def upload_recipe_image(
        self,
        slug: str,
        image: Union[bytes, str, Path],
        extension: str,
    ) -> None:
        """
        Upload an image file for a recipe.

        Args:
            slug: Recipe slug
            image: Image bytes, or a path to the image file
            extension: File extension without dot (e.g. "jpg")
        """
        if isinstance(image, (str, Path)):
            image_bytes = Path(image).read_bytes()
        else:
            image_bytes = image

        form = aiohttp.FormData()
        form.add_field(
            "image",
            image_bytes,
            filename=f"{slug}.{extension}",
            content_type="application/octet-stream",
        )
        form.add_field("extension", extension)

        await self._request("PUT", f"/{slug}/image", "upload_recipe_image", data=form)
        logger.info(f"🖼️ Uploaded image for {slug} ({len(image_bytes)} bytes, .{extension})")
