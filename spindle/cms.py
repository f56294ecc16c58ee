"""CMS content for Spindle pages.

Markup can pull content from a headless CMS with a few attributes:

- ``<ul cms-loop cms-content-type="blog" cms-limit="3">``: children are
  repeated once per content of the type.
- ``<article cms-item cms-content-type="blog" cms-content="hello">``: a single
  content, selected by alias.
- ``{%= blog_title %}`` placeholders inside such elements (text and attribute
  values) receive the content's fields; ``{%= blog_#alias %}`` its alias.

Contents come from the CMS API when an auth key is configured, otherwise from
YAML files in ``data/cms/<content_type>.yaml``.

Key classes:
- CmsContent: one content entry.
- CmsClient: requests-based client for the CMS API.
- ApiContentSource / LocalContentSource: ContentSource implementations.
- ContentGenerator: the markup generator used by the component resolver.
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass, field
from http import HTTPStatus
from pathlib import Path
from typing import TYPE_CHECKING, Any

import requests
import yaml
from bs4 import Tag
from bs4.element import NavigableString, PageElement

from .dom import clone_node
from .errors import ContentSourceError

if TYPE_CHECKING:
    from .protocols import ContentSource
    from .settings import Settings

CMS_ATTRIBUTES = ("cms-loop", "cms-item", "cms-content-type", "cms-content", "cms-limit")

_ACCEPT_HEADER = "application/vnd.spearly.v2+json"


@dataclass
class CmsContent:
    """One CMS content entry.

    Attributes:
        alias: Content alias, used in alias page paths.
        fields: Field identifier to value.
    """

    alias: str
    fields: dict[str, Any] = field(default_factory=dict)


class CmsClient:
    """Thin wrapper around the CMS content API.

    The client does not retry failed requests.
    """

    def __init__(
        self,
        *,
        auth_key: str,
        api_domain: str,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._api_base = f"https://{api_domain.strip('/')}/api/v2"
        self._session = session or requests.Session()
        self.timeout = timeout
        self._headers = {
            "Accept": _ACCEPT_HEADER,
            "Authorization": f"Bearer {auth_key}",
        }

    def fetch_contents(self, content_type: str) -> list[CmsContent]:
        """Return the published contents of ``content_type``.

        Raises:
            ContentSourceError: On transport failures, error statuses or
                payloads that are not JSON.
        """
        url = f"{self._api_base}/content_types/{content_type}/contents"
        try:
            response = self._session.get(url, headers=self._headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ContentSourceError(
                f"Failed to reach the CMS for '{content_type}': {exc}"
            ) from exc

        if response.status_code == HTTPStatus.NOT_FOUND:
            return []
        if response.status_code >= HTTPStatus.BAD_REQUEST:
            snippet = response.text[:200]
            raise ContentSourceError(
                f"CMS lookup for '{content_type}' failed with "
                f"status {response.status_code}: {snippet}"
            )
        try:
            payload = response.json()
        except json.JSONDecodeError as exc:
            raise ContentSourceError(
                f"CMS response for '{content_type}' was not valid JSON"
            ) from exc
        return [_parse_api_content(item) for item in payload.get("data") or []]


def _parse_api_content(item: dict[str, Any]) -> CmsContent:
    attributes = item.get("attributes") or {}
    fields: dict[str, Any] = {}
    for entry in (attributes.get("fields") or {}).get("data") or []:
        field_attributes = entry.get("attributes") or {}
        identifier = field_attributes.get("identifier")
        if identifier:
            fields[identifier] = field_attributes.get("value")
    return CmsContent(alias=str(attributes.get("contentAlias") or item.get("id") or ""), fields=fields)


class ApiContentSource:
    """ContentSource backed by the CMS API."""

    def __init__(self, client: CmsClient):
        self.client = client

    def list_contents(self, content_type: str) -> list[CmsContent]:
        return self.client.fetch_contents(content_type)


class LocalContentSource:
    """ContentSource reading ``<data_dir>/<content_type>.yaml``.

    Each file holds a list of mappings with an ``alias`` key; every other key
    is a field.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir

    def list_contents(self, content_type: str) -> list[CmsContent]:
        for suffix in (".yaml", ".yml"):
            path = self.data_dir / f"{content_type}{suffix}"
            if path.exists():
                break
        else:
            return []
        with open(path, encoding="utf-8") as f:
            payload = yaml.safe_load(f) or []
        if not isinstance(payload, list):
            raise ContentSourceError(f"{path}: expected a list of contents")
        contents = []
        for index, entry in enumerate(payload):
            if not isinstance(entry, dict):
                continue
            values = dict(entry)
            alias = str(values.pop("alias", index))
            contents.append(CmsContent(alias=alias, fields=values))
        return contents


class ContentGenerator:
    """Materializes CMS content into document nodes.

    One generator is created per build; contents are fetched at most once per
    content type.
    """

    def __init__(self, source: ContentSource, analytics_domain: str = ""):
        self.source = source
        self.analytics_domain = analytics_domain
        self._cache: dict[str, list[CmsContent]] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> ContentGenerator:
        """Pick the API source when an auth key is set, local data otherwise."""
        if settings.auth_key:
            source: ContentSource = ApiContentSource(
                CmsClient(auth_key=settings.auth_key, api_domain=settings.api_domain)
            )
        else:
            source = LocalContentSource(settings.root_dir / "data" / "cms")
        return cls(source, settings.analytics_domain)

    async def list_contents(self, content_type: str) -> list[CmsContent]:
        if content_type not in self._cache:
            self._cache[content_type] = await asyncio.to_thread(
                self.source.list_contents, content_type
            )
        return self._cache[content_type]

    async def generate(self, node: PageElement) -> PageElement:
        if not isinstance(node, Tag):
            return node
        content_type = node.get("cms-content-type")
        if not content_type:
            return node
        if node.has_attr("cms-loop"):
            return await self._generate_loop(node, content_type)
        if node.has_attr("cms-item"):
            return await self._generate_item(node, content_type)
        return node

    async def _generate_loop(self, node: Tag, content_type: str) -> Tag:
        contents = await self.list_contents(content_type)
        limit = _int_attribute(node, "cms-limit")
        if limit:
            contents = contents[:limit]
        result = _strip_cms_attributes(clone_node(node))
        result.clear()
        for content in contents:
            for child in node.contents:
                result.append(self.inject(clone_node(child), content_type, content))
        return result

    async def _generate_item(self, node: Tag, content_type: str) -> Tag:
        alias = node.get("cms-content", "")
        result = _strip_cms_attributes(clone_node(node))
        for content in await self.list_contents(content_type):
            if content.alias == alias:
                if self.analytics_domain:
                    result["data-analytics-domain"] = self.analytics_domain
                return self.inject(result, content_type, content)
        return result

    def inject(self, node: PageElement, content_type: str, content: CmsContent) -> PageElement:
        """Fill ``{%= <type>_<field> %}`` placeholders of an owned node.

        Text nodes are immutable, so a bare text node comes back as a new one.
        """
        pattern = _placeholder_pattern(content_type)
        if isinstance(node, NavigableString):
            return _fill_string(node, pattern, content)
        for string in list(node.find_all(string=pattern)):
            string.replace_with(_fill_string(string, pattern, content))
        for element in [node, *node.find_all(True)]:
            for name, value in element.attrs.items():
                if isinstance(value, str) and pattern.search(value):
                    element[name] = _fill_text(value, pattern, content)
        return node


def _placeholder_pattern(content_type: str) -> re.Pattern:
    return re.compile(r"\{%=\s*" + re.escape(content_type) + r"_(#?[\w-]+)\s*%\}")


def _fill_text(text: str, pattern: re.Pattern, content: CmsContent) -> str:
    def repl(match: re.Match) -> str:
        name = match.group(1)
        if name == "#alias":
            return content.alias
        value = content.fields.get(name)
        return "" if value is None else str(value)

    return pattern.sub(repl, text)


def _fill_string(string: NavigableString, pattern: re.Pattern, content: CmsContent) -> NavigableString:
    return type(string)(_fill_text(str(string), pattern, content))


def _strip_cms_attributes(node: Tag) -> Tag:
    for name in CMS_ATTRIBUTES:
        if node.has_attr(name):
            del node[name]
    return node


def _int_attribute(node: Tag, name: str) -> int:
    try:
        return int(node.get(name, 0))
    except (TypeError, ValueError):
        return 0
