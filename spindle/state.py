"""Document model of one build pass.

A State is created empty for every build, filled by the file collaborator,
rewritten by the resolver and replaced wholesale by plugins. Deep copies
(``copy.deepcopy``) clone the document trees so a plugin never keeps a live
reference into the pipeline's state.

Key classes:
- State: the working build context.
- Component: a reusable fragment referenced by its tag name.
- Page: one output page.
- AssetFile: a non-markup file copied to the output.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from bs4 import Tag
from bs4.element import PageElement

from .dom import child_nodes, clone_node, parse_fragment


@dataclass
class Component:
    """A named markup fragment.

    Attributes:
        fname: Source file.
        tag_name: Tag name other markup uses to embed the component.
        raw_data: Serialized markup of the component.
        node: Root owning the component's top-level nodes.
        props: Default properties (currently always empty).
    """

    fname: Path
    tag_name: str
    raw_data: str
    node: Tag
    props: dict[str, Any] = field(default_factory=dict)

    def __deepcopy__(self, memo):
        return Component(
            fname=self.fname,
            tag_name=self.tag_name,
            raw_data=self.raw_data,
            node=clone_node(self.node),
            props=copy.deepcopy(self.props, memo),
        )


@dataclass
class Page:
    """A page destined for one output file.

    Attributes:
        fname: Output path relative to the dist directory.
        node: Root whose children are the page content.
        source: Source file, ``None`` for pages created by plugins.
        frontmatter: Mapping from the page's YAML frontmatter block.
    """

    fname: PurePosixPath
    node: Tag
    source: Path | None = None
    frontmatter: dict[str, Any] = field(default_factory=dict)

    @property
    def child_nodes(self) -> list[PageElement]:
        return child_nodes(self.node)

    def __deepcopy__(self, memo):
        return Page(
            fname=self.fname,
            node=clone_node(self.node),
            source=self.source,
            frontmatter=copy.deepcopy(self.frontmatter, memo),
        )


@dataclass
class AssetFile:
    """A file copied verbatim to ``path`` under the dist directory."""

    path: PurePosixPath
    source: Path


@dataclass
class OutFiles:
    assets_files: list[AssetFile] = field(default_factory=list)


@dataclass
class State:
    """Working context of one build pass.

    Attributes:
        pages_list: Pages, in discovery order.
        components_list: Components; tag names are unique.
        body: Root node available to plugins as scratch markup.
        global_props: Shared scratch space for plugins.
        out: Extra output files.
    """

    pages_list: list[Page] = field(default_factory=list)
    components_list: list[Component] = field(default_factory=list)
    body: Tag = field(default_factory=lambda: parse_fragment(""))
    global_props: dict[str, Any] = field(default_factory=dict)
    out: OutFiles = field(default_factory=OutFiles)

    def find_component(self, tag_name: str) -> Component | None:
        """Return the component registered for ``tag_name``, if any."""
        for component in self.components_list:
            if component.tag_name == tag_name:
                return component
        return None

    def __deepcopy__(self, memo):
        return State(
            pages_list=[copy.deepcopy(page, memo) for page in self.pages_list],
            components_list=[
                copy.deepcopy(component, memo) for component in self.components_list
            ],
            body=clone_node(self.body),
            global_props=copy.deepcopy(self.global_props, memo),
            out=copy.deepcopy(self.out, memo),
        )
