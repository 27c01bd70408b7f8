"""
Pytest Configuration and Fixtures
=================================

Provides shared fixtures for the test suite:
- Clean environment (no MEALIE_URL / MEALIE_TOKEN leaking in from the shell)
- Config file factory writing .mealie-mcp.json into a temp directory
- Sample schema.org recipes

No test talks to a real Mealie instance; HTTP tests run against
tests/fake_mealie.py.
"""

import json

import pytest


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Make config loading depend only on what each test sets up."""
    monkeypatch.delenv("MEALIE_URL", raising=False)
    monkeypatch.delenv("MEALIE_TOKEN", raising=False)


@pytest.fixture
def write_config(tmp_path):
    """Write a config file and return its path."""
    def _write(data, name=".mealie-mcp.json"):
        path = tmp_path / name
        if isinstance(data, str):
            path.write_text(data)
        else:
            path.write_text(json.dumps(data))
        return path
    return _write


@pytest.fixture
def tuna_salad():
    """schema.org recipe as an LLM would produce it."""
    return {
        "@type": "Recipe",
        "name": "Tuna & Corn Salad (Classic Style)",
        "description": "A simple and delicious tuna and corn salad.",
        "recipeYield": "4 servings",
        "totalTime": "PT20M",
        "prepTime": "PT15M",
        "cookTime": "PT5M",
        "recipeCategory": ["Salad"],
        "keywords": ["tuna salad", "corn salad", "classic salad"],
        "recipeIngredient": [
            "2 cans of tuna in water or oil (drained)",
            "½ cup sweet corn kernels (fresh or canned)",
            "¼ cup mayonnaise",
            "1 tablespoon lemon juice",
            "1 teaspoon Dijon mustard",
            "Salt and pepper to taste",
            "Optional: chopped dill, red onion, or celery",
        ],
        "recipeInstructions": [
            {"text": "In a large bowl, flake the tuna with a fork.", "name": "Step 1"},
            {"text": "Add the corn kernels, mayonnaise, lemon juice, mustard, salt, and pepper.", "name": "Step 2"},
            {"text": "Mix well until all ingredients are combined.", "name": "Step 3"},
            {"text": "Taste and adjust seasoning if needed.", "name": "Step 4"},
            {"text": "Chill for 1 hour before serving.", "name": "Step 5"},
        ],
        "nutrition": {
            "calories": "280",
            "fatContent": "12g",
            "proteinContent": "25g",
            "carbohydrateContent": "15g",
            "fiberContent": "2g",
            "sodiumContent": "600mg",
            "sugarContent": "3g",
        },
    }


# =============================================================================
# Test Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "readonly: marks test as pure (no network, no files outside tmp_path)"
    )
    config.addinivalue_line(
        "markers", "http: marks test as using the in-process fake Mealie server"
    )
