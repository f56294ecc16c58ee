"""Protocol definitions for Spindle.

The core talks to its collaborators through these small interfaces, so tests
and plugins can swap in their own implementations.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from bs4.element import PageElement

    from .cms import CmsContent


@runtime_checkable
class ContentSource(Protocol):
    """Protocol for fetching CMS contents of one content type."""

    @abstractmethod
    def list_contents(self, content_type: str) -> list[CmsContent]:
        """Return all contents of ``content_type``, in publication order.

        Raises:
            ContentSourceError: If the contents cannot be fetched.
        """
        ...


@runtime_checkable
class MarkupGenerator(Protocol):
    """Protocol for materializing dynamic content into document nodes.

    The component resolver calls ``generate`` on every element before
    matching it against the component catalog.
    """

    @abstractmethod
    async def generate(self, node: PageElement) -> PageElement:
        """Return ``node`` with its dynamic content materialized.

        Implementations must not mutate ``node``; they return either the same
        node, untouched, or a new one.
        """
        ...

    @abstractmethod
    async def list_contents(self, content_type: str) -> list[CmsContent]:
        """Return the contents of ``content_type``."""
        ...

    @abstractmethod
    def inject(self, node: PageElement, content_type: str, content: CmsContent) -> PageElement:
        """Fill ``content``'s fields into an owned node and return it."""
        ...
