"""Component resolution.

``resolve`` walks a node sequence and replaces every element whose tag name
is a registered component with a fresh copy of that component's markup. One
call is one resolution pass: markup inserted by a pass is not searched again
by the same pass, so a component embedding another component needs one more
pass to be fully expanded. The build resolves each component's own children
once while building the catalog and runs two passes over every page (see
``spindle.assembler``); references nested deeper than that are written to the
output unexpanded.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from bs4 import Tag
from bs4.element import PageElement

from .dom import clone_node, replace_children, tag_name

if TYPE_CHECKING:
    from .protocols import MarkupGenerator
    from .settings import Settings
    from .state import Component, State


async def resolve(
    state: State,
    nodes: Iterable[PageElement],
    generator: MarkupGenerator,
    settings: Settings,
) -> list[PageElement]:
    """Run one resolution pass over ``nodes``.

    The input nodes are left untouched; the result is made of detached copies
    in the same sibling order.

    Args:
        state: Build state holding the component catalog.
        nodes: Nodes to resolve.
        generator: Materializes CMS content before component matching.
        settings: Build settings.

    Returns:
        The resolved node sequence.
    """
    catalog = {component.tag_name: component for component in state.components_list}
    return await _resolve_nodes(catalog, nodes, generator)


async def _resolve_nodes(
    catalog: dict[str, Component],
    nodes: Iterable[PageElement],
    generator: MarkupGenerator,
) -> list[PageElement]:
    resolved: list[PageElement] = []
    for node in list(nodes):
        if not isinstance(node, Tag):
            resolved.append(clone_node(node))
            continue

        node = await generator.generate(node)
        component = catalog.get(tag_name(node))
        if component is not None:
            resolved.extend(clone_node(child) for child in component.node.contents)
            continue

        children = await _resolve_nodes(catalog, node.contents, generator)
        element = clone_node(node)
        replace_children(element, children)
        resolved.append(element)
    return resolved
