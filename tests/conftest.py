"""Pytest configuration and fixtures."""

import base64

import pytest

from collegedocs.config import get_settings
from collegedocs.report.letterhead import Letterhead


# 1x1 RGBA PNG
TINY_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8BQDwAEhQGAhKmMIQAAAABJRU5ErkJggg=="
)

CIRCULAR_CONTENT = """Ref.No.: VIEW/Principal/Cir/2026/014
Date: 20.01.2026

CIRCULAR

This is to inform all the Staff and Students that the 77th Republic Day
will be celebrated on 26.01.2026 in the college auditorium.

[TABLE]
EVENT DETAILS | INFORMATION
Event Name | 77th Republic Day
Date | 26.01.2026
Time | 08:30 AM
Venue | College Auditorium
[/TABLE]

NOTES
1. All staff must be present by 08:15 AM.
2. Students should wear formal uniform.

HAPPY REPUBLIC DAY

[FOOTER_ROW]
Copy to: All Deans / All HODs / Staff | Read in all Class Rooms | PRINCIPAL
[/FOOTER_ROW]"""


class FakeGenerator:
    """Stands in for the chat-completions client."""

    def __init__(self, content=CIRCULAR_CONTENT, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def generate(self, system_prompt, user_prompt):
        self.calls.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self.content


class FakeRasterizer:
    """Returns fixed PNG bytes and records the canvas it was given."""

    def __init__(self, data=TINY_PNG, error=None):
        self.data = data
        self.error = error
        self.documents = []

    def rasterize(self, document):
        self.documents.append(document)
        if self.error is not None:
            raise self.error
        return self.data


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point the settings at a throwaway data directory."""
    root = tmp_path / "data"
    monkeypatch.setenv("DATA_DIR", str(root))
    get_settings.cache_clear()
    yield root
    get_settings.cache_clear()


@pytest.fixture
def output_dir(tmp_path):
    """Create a temporary output directory."""
    out_dir = tmp_path / "output"
    out_dir.mkdir()
    return out_dir


@pytest.fixture
def circular_content():
    return CIRCULAR_CONTENT


@pytest.fixture
def letterhead():
    return Letterhead()


@pytest.fixture
def letterhead_with_logo():
    return Letterhead(logo_bytes=TINY_PNG)


@pytest.fixture
def fake_generator():
    return FakeGenerator()


@pytest.fixture
def fake_rasterizer():
    return FakeRasterizer()
