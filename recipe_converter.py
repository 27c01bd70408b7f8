"""
Schema.org Recipe → Mealie Recipe Conversion
============================================

Maps a loosely structured schema.org/Recipe record (what an LLM produces) to
the record shape Mealie's recipe API expects.

The conversion is a pure reshaping step: no network, no disk, no randomness.
Ingredients and instructions are kept in Mealie's simplified form here
({"note": ...} / {"text": ...}); the fields Mealie additionally requires
(referenceId, ingredientReferences, ...) are filled in by
mealie_client.normalize_recipe_for_update() right before persistence.

Usage:
    from recipe_converter import convert_schema_org_to_mealie

    mealie_recipe = convert_schema_org_to_mealie({"name": "Tuna Salad", ...})
"""

import re
from typing import Any, Dict, List, Optional

# Leading step numbers such as "1.", "2)", "10. "
_STEP_NUMBER_RE = re.compile(r'^\d+[.)]\s*')
_NEWLINES_RE = re.compile(r'\n+')

# Mealie recipe settings applied to every saved recipe
DEFAULT_SETTINGS = {
    "public": False,
    "showNutrition": True,
    "showAssets": False,
    "landscapeView": False,
    "disableComments": False,
    "disableAmount": False,
    "locked": False,
}


def _as_list(value: Any) -> List[str]:
    """Wrap a single string in a list; pass lists through; drop anything else."""
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    if isinstance(value, str):
        return [value]
    return []


def _convert_categories(source: Dict[str, Any]) -> List[str]:
    # recipeCuisine is folded into categories, after recipeCategory
    return _as_list(source.get("recipeCategory")) + _as_list(source.get("recipeCuisine"))


def _convert_tags(keywords: Any) -> List[str]:
    if isinstance(keywords, list):
        return list(keywords)
    if isinstance(keywords, str):
        return [k.strip() for k in keywords.split(',') if k.strip()]
    return []


def _convert_instructions(instructions: Any) -> List[Dict[str, str]]:
    """
    Convert schema.org recipeInstructions to Mealie steps.

    A string is split into one step per non-empty line with leading step
    numbers removed. In a list, strings become steps and HowToStep objects
    contribute their text only; their "name" is not carried over since
    Mealie titles are section headers, not step labels. Entries without
    text are skipped.
    """
    steps: List[Dict[str, str]] = []

    if isinstance(instructions, str):
        for line in _NEWLINES_RE.split(instructions):
            line = line.strip()
            if line:
                steps.append({"text": _STEP_NUMBER_RE.sub('', line)})

    elif isinstance(instructions, list):
        for entry in instructions:
            if isinstance(entry, str):
                steps.append({"text": entry})
            elif isinstance(entry, dict) and entry.get("text"):
                steps.append({"text": entry["text"]})

    return steps


def _image_entry_url(entry: Any) -> Optional[str]:
    # schema.org allows a URL string or an ImageObject with a url
    if isinstance(entry, dict):
        entry = entry.get("url")
    if isinstance(entry, str) and entry.strip():
        return entry
    return None


def first_image_url(source: Dict[str, Any]) -> Optional[str]:
    """Return the image URL to use for a recipe: the first of a list, or the string itself."""
    image = source.get("image")
    if isinstance(image, list):
        return _image_entry_url(image[0]) if image else None
    return _image_entry_url(image)


def _rating(source: Dict[str, Any]) -> Optional[float]:
    aggregate = source.get("aggregateRating")
    if not isinstance(aggregate, dict):
        return None
    value = aggregate.get("ratingValue")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def convert_schema_org_to_mealie(source: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert a schema.org/Recipe formatted record to Mealie's recipe format.

    The caller is responsible for validating that source["name"] is a
    non-empty string.

    NOTE: recipeCategory and tags are converted here, but
    MealieClient.update_recipe() clears them before sending because Mealie
    only accepts categories and tags that already exist server-side.

    Args:
        source: schema.org/Recipe-like dict

    Returns:
        Mealie recipe dict. Optional fields with no value are omitted.
    """
    categories = _convert_categories(source)
    tags = _convert_tags(source.get("keywords"))

    recipe: Dict[str, Any] = {
        "name": source["name"],
        "description": source.get("description") or "",
    }

    for key in ("recipeYield", "totalTime", "prepTime", "cookTime"):
        if source.get(key) is not None:
            recipe[key] = source[key]

    if categories:
        recipe["recipeCategory"] = categories
    if tags:
        recipe["tags"] = tags

    recipe["recipeIngredient"] = [
        {"note": ingredient} for ingredient in (source.get("recipeIngredient") or [])
    ]
    recipe["recipeInstructions"] = _convert_instructions(source.get("recipeInstructions"))

    if source.get("nutrition") is not None:
        recipe["nutrition"] = source["nutrition"]

    image_url = first_image_url(source)
    if image_url:
        recipe["image"] = image_url

    if source.get("url"):
        recipe["orgURL"] = source["url"]

    rating = _rating(source)
    if rating is not None:
        recipe["rating"] = rating

    recipe["settings"] = dict(DEFAULT_SETTINGS)
    return recipe
