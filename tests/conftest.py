"""Pytest configuration for tests."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
# This allows imports like "from services.latex..." to work
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture
def make_soup():
    """Parse an HTML snippet with the parser the engine uses."""
    from bs4 import BeautifulSoup

    def _make(markup: str) -> BeautifulSoup:
        return BeautifulSoup(markup, "html.parser")

    return _make
