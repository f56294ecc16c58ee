"""Utility functions for Spindle.

This module contains small helpers shared by the settings loader, the file
collaborator and the dev server: path classification, frontmatter parsing,
URL joining and output directory handling.

Key functions:
    extract_frontmatter: Split a YAML frontmatter block from markup.
    is_page_source: Check if a path is a page/component markup file.
    is_markdown: Check if a path is a Markdown file.
    output_name: Map a source file name to its output file name.
    is_within: Path-component aware containment check.
    is_components_path: Check if a path is (inside) a components directory.
    join_root_url: Join a base URL with a path.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path, PurePath
from typing import Any

import yaml

FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*\n", re.DOTALL)

PAGE_SUFFIXES = (".html", ".spear", ".md")

COMPONENTS_DIR_NAME = "components"


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML frontmatter from content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (frontmatter dict, remaining content).
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1)) or {}
        if not isinstance(data, dict):
            return {}, text
        return data, text[match.end() :]
    except yaml.YAMLError:
        return {}, text


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .md extension (case-insensitive).
    """
    return path.suffix.lower() == ".md"


def is_page_source(path: Path) -> bool:
    """Check if a path is a markup source (``.html``, ``.spear`` or ``.md``)."""
    return path.suffix.lower() in PAGE_SUFFIXES


def output_name(path: PurePath) -> PurePath:
    """Return the output file name for a page source.

    ``.spear`` and ``.md`` sources are written as ``.html``.

    Examples:
        >>> output_name(PurePath("blog/post.md"))
        PurePosixPath('blog/post.html')
    """
    if path.suffix.lower() in (".spear", ".md"):
        return path.with_suffix(".html")
    return path


def is_within(path: PurePath, parent: PurePath) -> bool:
    """Return True if ``path`` equals ``parent`` or lies below it.

    Comparison is per path component, so ``/ab`` is not within ``/a``.
    """
    parent_parts = parent.parts
    return path.parts[: len(parent_parts)] == parent_parts


def is_components_path(path: PurePath) -> bool:
    """Return True if any component of ``path`` is a components directory."""
    return COMPONENTS_DIR_NAME in path.parts


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Args:
        root_url: Base URL (e.g., https://example.com/blog).
        path: Path beginning with or without a leading slash.

    Returns:
        Combined URL with proper slash handling.

    Examples:
        >>> join_root_url('https://example.com', '/about')
        'https://example.com/about'

        >>> join_root_url('https://example.com/', 'about')
        'https://example.com/about'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path), ignore_errors=True)
        if path.exists():
            # Fallback for stubborn directories
            for item in path.rglob("*"):
                if item.is_file():
                    item.unlink()
            for item in sorted(
                [p for p in path.rglob("*") if p.is_dir()], reverse=True
            ):
                item.rmdir()
            path.rmdir()
    path.mkdir(parents=True, exist_ok=True)
