"""Page assembly.

Pages are resolved with two passes of the component resolver each, so that
components introduced by the first pass get expanded by the second. The
resolved pages are then expanded into alias pages:

- Route aliases: frontmatter ``aliases: [old/path.html, /docs/]`` writes a copy
  of the page at each listed path.
- CMS aliases: a ``[alias].html`` page whose markup carries
  ``cms-target-content-type="<type>"`` is a template materialized once per
  content of that type, at ``<alias>.html`` next to it.
"""

from __future__ import annotations

import copy
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from bs4 import Tag

from .dom import clone_node, replace_children
from .resolver import resolve
from .state import Component, Page

if TYPE_CHECKING:
    from .log import SpindleLog
    from .protocols import MarkupGenerator
    from .settings import Settings
    from .state import State

ALIAS_TEMPLATE_STEM = "[alias]"
TARGET_CONTENT_TYPE_ATTRIBUTE = "cms-target-content-type"


async def resolve_components(
    state: State, generator: MarkupGenerator, settings: Settings
) -> list[Component]:
    """Resolve each component's own children once against the catalog.

    Returns:
        A new component list; components keep their order and tag names.
    """
    components = []
    for component in state.components_list:
        nodes = await resolve(state, component.node.contents, generator, settings)
        node = clone_node(component.node)
        replace_children(node, nodes)
        components.append(
            Component(
                fname=component.fname,
                tag_name=component.tag_name,
                raw_data=node.decode_contents(),
                node=node,
                props={},
            )
        )
    return components


async def assemble_pages(
    state: State,
    generator: MarkupGenerator,
    settings: Settings,
    logger: SpindleLog | None = None,
) -> list[Page]:
    """Resolve every page twice and derive alias pages.

    Each page's children are replaced by the output of the second pass.
    ``logger`` receives duplicate output path warnings.

    Returns:
        The final page list, aliases included.
    """
    for page in state.pages_list:
        nodes = await resolve(state, page.child_nodes, generator, settings)
        nodes = await resolve(state, nodes, generator, settings)
        replace_children(page.node, nodes)
    return await generate_alias_pages(state, generator, settings, logger)


async def generate_alias_pages(
    state: State,
    generator: MarkupGenerator,
    settings: Settings,
    logger: SpindleLog | None = None,
) -> list[Page]:
    """Expand resolved pages into the final page list.

    Original pages come first, in order, followed by new alias paths. An alias
    targeting the path of an existing page replaces that page in place. Two
    source pages with the same output path keep the later one, with a warning.
    """
    pages: dict[PurePosixPath, Page] = {}
    aliases: list[Page] = []
    for page in state.pages_list:
        if page.fname.stem == ALIAS_TEMPLATE_STEM:
            content_type = _target_content_type(page.node)
            if content_type:
                aliases.extend(await _content_alias_pages(page, content_type, generator))
                continue
        previous = pages.get(page.fname)
        if previous is not None and logger is not None:
            logger.warn(
                f"Duplicate output path {page.fname}: {page.source} replaces {previous.source}"
            )
        pages[page.fname] = page
        aliases.extend(_route_alias_pages(page))
    for alias in aliases:
        pages[alias.fname] = alias
    return list(pages.values())


def _route_alias_pages(page: Page) -> list[Page]:
    raw = page.frontmatter.get("aliases") or []
    if isinstance(raw, str):
        raw = [raw]
    result = []
    for alias in raw:
        target = alias_path(str(alias))
        if target is None or target == page.fname:
            continue
        clone = copy.deepcopy(page)
        clone.fname = target
        result.append(clone)
    return result


async def _content_alias_pages(
    page: Page, content_type: str, generator: MarkupGenerator
) -> list[Page]:
    result = []
    for content in await generator.list_contents(content_type):
        clone = copy.deepcopy(page)
        for element in clone.node.find_all(attrs={TARGET_CONTENT_TYPE_ATTRIBUTE: True}):
            del element[TARGET_CONTENT_TYPE_ATTRIBUTE]
        generator.inject(clone.node, content_type, content)
        clone.fname = page.fname.with_name(f"{content.alias}{page.fname.suffix}")
        result.append(clone)
    return result


def _target_content_type(node: Tag) -> str:
    element = node.find(attrs={TARGET_CONTENT_TYPE_ATTRIBUTE: True})
    if element is None:
        return ""
    return element.get(TARGET_CONTENT_TYPE_ATTRIBUTE, "")


def alias_path(alias: str) -> PurePosixPath | None:
    """Normalize a route alias to an output path.

    Examples:
        >>> alias_path("/docs/")
        PurePosixPath('docs/index.html')
        >>> alias_path("about-us")
        PurePosixPath('about-us.html')
    """
    cleaned = alias.strip()
    if not cleaned:
        return None
    if cleaned.endswith("/"):
        cleaned += "index.html"
    path = PurePosixPath(cleaned.lstrip("/"))
    if ".." in path.parts or not path.parts:
        return None
    if not path.suffix:
        path = path.with_suffix(".html")
    return path
