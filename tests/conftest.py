from __future__ import annotations

from pathlib import Path

import pytest

from spindle.cms import CmsContent


class NullGenerator:
    """Markup generator that leaves every node alone."""

    async def generate(self, node):
        return node

    async def list_contents(self, content_type):
        return []

    def inject(self, node, content_type, content):
        return node


class FakeSource:
    """ContentSource serving fixed contents and recording lookups."""

    def __init__(self, contents):
        self.contents = contents
        self.calls = []

    def list_contents(self, content_type):
        self.calls.append(content_type)
        return self.contents.get(content_type, [])


@pytest.fixture
def null_generator() -> NullGenerator:
    return NullGenerator()


@pytest.fixture
def blog_source() -> FakeSource:
    return FakeSource(
        {
            "blog": [
                CmsContent(alias="hello", fields={"title": "Hello"}),
                CmsContent(alias="world", fields={"title": "World"}),
            ]
        }
    )


@pytest.fixture
def write_project(tmp_path: Path):
    """Write a mapping of relative paths to file contents under tmp_path."""

    def write(files: dict[str, str | bytes]) -> Path:
        for rel_path, content in files.items():
            path = tmp_path / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return tmp_path

    return write
