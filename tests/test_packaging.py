"""Tests for the declared dependencies."""
from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


@pytest.mark.readonly
def test_mcp_pinned_to_1x():
    data = tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))
    mcp = [dep for dep in data["project"]["dependencies"] if dep.startswith("mcp")]
    assert mcp == ["mcp>=1.17,<2"]
