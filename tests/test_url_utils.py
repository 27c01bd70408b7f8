"""Tests for URL utility functions."""
import pytest


class TestExtensionFromUrl:
    """Tests for extension_from_url function."""

    def test_plain_extension(self):
        from utils.url_utils import extension_from_url
        assert extension_from_url("https://example.com/img/dish.png") == "png"

    def test_jpeg_folded_to_jpg(self):
        from utils.url_utils import extension_from_url
        assert extension_from_url("https://example.com/img/dish.jpeg") == "jpg"

    def test_ignores_query_and_fragment(self):
        from utils.url_utils import extension_from_url
        assert extension_from_url("https://example.com/dish.webp?w=800&h=600#top") == "webp"

    def test_uppercase_extension(self):
        from utils.url_utils import extension_from_url
        assert extension_from_url("https://example.com/DISH.GIF") == "gif"

    def test_extension_in_query_only_is_ignored(self):
        from utils.url_utils import extension_from_url
        assert extension_from_url("https://example.com/render?file=dish.jpg") is None

    def test_unknown_extension(self):
        from utils.url_utils import extension_from_url
        assert extension_from_url("https://example.com/dish.bmp") is None

    def test_no_extension(self):
        from utils.url_utils import extension_from_url
        assert extension_from_url("https://example.com/images/12345") is None

    def test_empty_returns_none(self):
        from utils.url_utils import extension_from_url
        assert extension_from_url("") is None
        assert extension_from_url(None) is None


class TestRecipeViewUrl:

    def test_builds_url(self):
        from utils.url_utils import recipe_view_url
        assert recipe_view_url("https://mealie.example", "tuna") == "https://mealie.example/recipe/tuna"

    def test_strips_trailing_slash(self):
        from utils.url_utils import recipe_view_url
        assert recipe_view_url("https://mealie.example/", "tuna") == "https://mealie.example/recipe/tuna"
