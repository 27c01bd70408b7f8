#!/usr/bin/env python3
"""
Mealie MCP Server
=================

Exposes one MCP tool, `save_recipe`, that takes a recipe in schema.org/Recipe
format and saves it to a Mealie instance:

    tools/call save_recipe {"recipe": {...}}
      -> validate name
      -> load .mealie-mcp.json
      -> convert_schema_org_to_mealie()
      -> save_recipe_with_image()   (create, update, optional image)
      -> text response with slug and recipe URL

Usage:
    python mcp_server.py                     # serve MCP over stdio
    python mcp_server.py --check             # verify config + Mealie connection
    python mcp_server.py --config path.json --log-level DEBUG
"""

import argparse
import asyncio
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from config import ConfigError, load_config, validate_mealie_connection
from mealie_client import MealieClient, dropped_taxonomy
from recipe_converter import convert_schema_org_to_mealie, first_image_url
from recipe_saver import save_recipe_with_image
from tools.logging_utils import get_logger, setup_logging

logger = get_logger(__name__)

SERVER_NAME = "mealie-mcp"
SERVER_VERSION = "1.0.0"


# =============================================================================
# EXCEPTIONS
# =============================================================================

class ValidationError(ValueError):
    """Raised when tool arguments are missing a required field."""
    pass


# =============================================================================
# TOOL DEFINITION
# =============================================================================

_STRING_OR_LIST = [
    {"type": "string"},
    {"type": "array", "items": {"type": "string"}},
]

SAVE_RECIPE_TOOL = types.Tool(
    name="save_recipe",
    description=(
        "Save a recipe to Mealie. Accepts a recipe in schema.org/Recipe format "
        "and saves it to your Mealie instance. Categories and keywords are not "
        "saved: Mealie only accepts categories and tags that already exist."
    ),
    inputSchema={
        "type": "object",
        "properties": {
            "recipe": {
                "type": "object",
                "description": "Recipe in schema.org/Recipe format",
                "properties": {
                    "name": {"type": "string", "description": "Recipe name (required)"},
                    "description": {"type": "string", "description": "Recipe description"},
                    "recipeYield": {
                        "type": "string",
                        "description": 'Number of servings (e.g., "4 servings")',
                    },
                    "totalTime": {
                        "type": "string",
                        "description": 'Total time in ISO 8601 duration format (e.g., "PT30M" for 30 minutes)',
                    },
                    "prepTime": {"type": "string", "description": "Preparation time in ISO 8601 duration format"},
                    "cookTime": {"type": "string", "description": "Cooking time in ISO 8601 duration format"},
                    "recipeCategory": {"oneOf": _STRING_OR_LIST, "description": "Recipe category or categories"},
                    "recipeCuisine": {"oneOf": _STRING_OR_LIST, "description": "Recipe cuisine type"},
                    "keywords": {"oneOf": _STRING_OR_LIST, "description": "Keywords or tags for the recipe"},
                    "recipeIngredient": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "List of ingredients as strings",
                    },
                    "recipeInstructions": {
                        "oneOf": [
                            {"type": "string"},
                            {
                                "type": "array",
                                "items": {
                                    "oneOf": [
                                        {"type": "string"},
                                        {
                                            "type": "object",
                                            "properties": {
                                                "text": {"type": "string"},
                                                "name": {"type": "string"},
                                            },
                                        },
                                    ]
                                },
                            },
                        ],
                        "description": "Cooking instructions",
                    },
                    "nutrition": {
                        "type": "object",
                        "properties": {
                            key: {"type": "string"}
                            for key in (
                                "calories",
                                "fatContent",
                                "proteinContent",
                                "carbohydrateContent",
                                "fiberContent",
                                "sodiumContent",
                                "sugarContent",
                            )
                        },
                        "description": "Nutritional information",
                    },
                    "image": {"oneOf": _STRING_OR_LIST, "description": "Image URL or URLs"},
                    "url": {"type": "string", "description": "Original source URL"},
                    "aggregateRating": {
                        "type": "object",
                        "properties": {"ratingValue": {"type": "number"}},
                        "description": "Recipe rating",
                    },
                },
                "required": ["name"],
            }
        },
        "required": ["recipe"],
    },
)


# =============================================================================
# TOOL HANDLER
# =============================================================================

@dataclass
class ToolResponse:
    """Text returned to the agent for one tool call."""
    text: str
    is_error: bool = False

    def to_result(self) -> types.CallToolResult:
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=self.text)],
            isError=self.is_error,
        )


def validate_arguments(arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Check tool arguments and return the recipe record.

    Raises:
        ValidationError: If `recipe` is missing or has no non-empty `name`
    """
    recipe = (arguments or {}).get("recipe")
    if not isinstance(recipe, dict):
        raise ValidationError("Missing recipe parameter")
    name = recipe.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Recipe name is required")
    return recipe


def _success_text(name: str, slug: str, recipe_url: str, notes: List[str]) -> str:
    lines = [
        f'Recipe "{name}" saved successfully to Mealie!',
        f"Slug: {slug}",
        f"URL: {recipe_url}",
    ]
    lines.extend(notes)
    return "\n".join(lines)


async def handle_save_recipe(
    arguments: Optional[Dict[str, Any]],
    config_path: Optional[str] = None,
) -> ToolResponse:
    """
    Run one save_recipe tool call.

    Args:
        arguments: Tool arguments ({"recipe": {...}})
        config_path: Optional config file path (default: ./.mealie-mcp.json)

    Returns:
        ToolResponse; failures are reported with is_error=True

    Raises:
        ValidationError: If the arguments lack a recipe name (before any side effect)
    """
    source = validate_arguments(arguments)

    try:
        config = load_config(config_path)
        recipe = convert_schema_org_to_mealie(source)
        dropped = dropped_taxonomy(recipe)

        async with MealieClient(config) as client:
            result = await save_recipe_with_image(client, recipe, first_image_url(source))
    except Exception as e:
        # Every failure goes back to the agent as text; the server keeps running
        logger.error(f"❌ save_recipe failed for {source.get('name')!r}: {e}")
        return ToolResponse(text=f"Error saving recipe: {e}", is_error=True)

    notes = []
    if dropped:
        skipped = ", ".join(
            f"{kind}: {', '.join(values)}" for kind, values in dropped.items()
        )
        notes.append(
            f"Note: not saved ({skipped}). Mealie only accepts categories and tags "
            f"that already exist; add them in Mealie manually."
        )
    for warning in result.warnings:
        notes.append(f"Warning: {warning}")

    logger.info(f"✅ Saved recipe {source['name']!r} as {result.slug}")
    return ToolResponse(
        text=_success_text(source["name"], result.slug, config.recipe_url(result.slug), notes)
    )


# =============================================================================
# MCP SERVER
# =============================================================================

server = Server(SERVER_NAME, version=SERVER_VERSION)

# Set by main() from --config
_config_path: Optional[str] = None


@server.list_tools()
async def list_tools() -> List[types.Tool]:
    return [SAVE_RECIPE_TOOL]


async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
    if name != SAVE_RECIPE_TOOL.name:
        raise McpError(types.ErrorData(code=types.METHOD_NOT_FOUND, message=f"Unknown tool: {name}"))

    try:
        response = await handle_save_recipe(arguments, _config_path)
    except ValidationError as e:
        raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=str(e))) from e

    return response.to_result()


async def _handle_call_tool_request(request: types.CallToolRequest) -> types.ServerResult:
    """
    tools/call entry point.

    Registered directly on the request table: an McpError raised here must
    reach the client as a JSON-RPC error, not as a tool result with
    isError set.
    """
    result = await call_tool(request.params.name, request.params.arguments)
    return types.ServerResult(result)


server.request_handlers[types.CallToolRequest] = _handle_call_tool_request


async def serve() -> None:
    """Serve MCP over stdio until the client disconnects."""
    async with stdio_server() as (read_stream, write_stream):
        logger.info("🚀 Mealie MCP server running on stdio")
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="MCP server that saves schema.org recipes to Mealie")
    parser.add_argument("--config", help="Path to config file (default: ./.mealie-mcp.json)")
    parser.add_argument("--check", action="store_true", help="Check config and Mealie connection, then exit")
    parser.add_argument("--log-level", help="Console log level (default: INFO)")

    args = parser.parse_args(argv)

    if args.log_level:
        setup_logging(args.log_level)

    global _config_path
    _config_path = args.config

    # Fail fast on a missing or broken config file
    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error(f"❌ {e}")
        return 1

    if args.check:
        return 0 if validate_mealie_connection(config) else 1

    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
