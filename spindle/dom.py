"""Document helpers on top of BeautifulSoup.

Components and pages are parsed with the stdlib-backed ``html.parser`` tree
builder, which keeps custom tag names (``<site-header>``) and the source's
child order as they are.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable

from bs4 import BeautifulSoup, Tag
from bs4.element import PageElement

PARSER = "html.parser"


def parse_fragment(markup: str) -> BeautifulSoup:
    """Parse markup into a detached document root."""
    return BeautifulSoup(markup, PARSER)


def clone_node(node: PageElement) -> PageElement:
    """Return a detached structural copy of ``node`` and its subtree."""
    return copy.copy(node)


def tag_name(node: PageElement) -> str:
    """Lower-cased tag name of an element, empty for text and comments."""
    if isinstance(node, Tag):
        return (node.name or "").lower()
    return ""


def child_nodes(node: Tag) -> list[PageElement]:
    return list(node.contents)


def replace_children(node: Tag, nodes: Iterable[PageElement]) -> None:
    """Replace the children of ``node`` with ``nodes``.

    The previous children are detached from ``node``; ``nodes`` must not
    belong to another tree.
    """
    node.clear()
    for child in nodes:
        node.append(child)


def outer_html(nodes: Iterable[PageElement]) -> str:
    """Serialize a node sequence back to markup."""
    parts = []
    for node in nodes:
        if isinstance(node, Tag):
            parts.append(node.decode())
        else:
            # Comments and doctypes need their delimiters back
            parts.append(node.output_ready())
    return "".join(parts)


def is_full_document(node: Tag) -> bool:
    """Return True if the tree has its own ``<html>`` element."""
    return node.find("html") is not None
