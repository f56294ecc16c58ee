"""File collaborator for Spindle builds.

FileUtil is the only part of the build that touches the file system: it
prepares the output directory, loads components and pages into the state,
reads the settings file and writes the finished site.

Source conventions:
- Components are ``.html``/``.spear``/``.md`` files in a components directory;
  the lower-cased file stem is the tag name (``site-header.html`` is used as
  ``<site-header></site-header>``).
- Pages are markup files in a source directory outside components
  directories. Files in ``pages_folder`` map to the site root.
- Any other file in a source directory is an asset, copied as is.
- Pages and components may start with a YAML frontmatter block.
"""

from __future__ import annotations

import glob
import shutil
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any

import mistune
import yaml
from jinja2 import Environment, FileSystemLoader, TemplateError
from markupsafe import Markup

from .dom import is_full_document, outer_html, parse_fragment
from .errors import BuildError, SettingsError
from .state import AssetFile, Component, Page
from .utils import (
    ensure_clean_dir,
    extract_frontmatter,
    is_components_path,
    is_markdown,
    is_page_source,
    is_within,
    join_root_url,
    output_name,
)

if TYPE_CHECKING:
    from .log import SpindleLog
    from .settings import Settings
    from .state import State

CONFIG_SUFFIXES = (".yaml", ".yml", ".json")


class FileUtil:
    """Reads sources into a State and writes a State out.

    Attributes:
        logger: Logger used for progress output.
    """

    def __init__(self, logger: SpindleLog):
        self.logger = logger
        self._markdown = mistune.create_markdown(
            escape=False, plugins=["table", "strikethrough"]
        )

    def create_dir(self, settings: Settings) -> None:
        """Create an empty output directory."""
        ensure_clean_dir(settings.dist_dir)

    def load_file(self, pattern: str) -> dict[str, Any] | None:
        """Load the first YAML/JSON file matching ``pattern``.

        Args:
            pattern: Glob pattern, e.g. ``/site/spindle.config.*``.

        Returns:
            The parsed mapping, or None when nothing matches.

        Raises:
            SettingsError: If the file is not a mapping or not valid YAML.
        """
        for match in sorted(glob.glob(pattern)):
            path = Path(match)
            if path.suffix.lower() not in CONFIG_SUFFIXES or not path.is_file():
                continue
            try:
                with open(path, encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise SettingsError(f"{path}: {exc}") from exc
            if data is None:
                return {}
            if not isinstance(data, dict):
                raise SettingsError(f"{path}: expected a mapping of settings")
            self.logger.debug(f"Loaded settings from {path}")
            return data
        return None

    def parse_components(self, state: State, directory: Path, settings: Settings) -> None:
        """Add every component found under ``directory`` to the state.

        Raises:
            BuildError: If a file cannot be read, or if its tag name is
                already registered.
        """
        if not directory.exists():
            self.logger.debug(f"Components directory not found: {directory}")
            return
        for path in _iter_files(directory):
            if not is_page_source(path):
                continue
            tag_name = path.stem.lower()
            existing = state.find_component(tag_name)
            if existing is not None:
                raise BuildError(
                    path, f"Component <{tag_name}> is already defined in {existing.fname}"
                )
            _, markup = self._read_markup(path)
            node = parse_fragment(markup.strip())
            state.components_list.append(
                Component(
                    fname=path,
                    tag_name=tag_name,
                    raw_data=node.decode_contents(),
                    node=node,
                )
            )

    def parse_pages(self, state: State, directory: Path, settings: Settings) -> None:
        """Add pages and assets found under ``directory`` to the state.

        Raises:
            BuildError: If a page cannot be read.
        """
        if not directory.exists():
            raise BuildError(directory, "Source directory does not exist")
        for path in _iter_files(directory):
            if self._is_component_file(path, directory, settings):
                continue
            if is_within(path, settings.dist_dir):
                continue
            relative = _relative_output(path, directory, settings.pages_folder)
            if not is_page_source(path):
                state.out.assets_files.append(AssetFile(path=relative, source=path))
                continue
            frontmatter, markup = self._read_markup(path)
            state.pages_list.append(
                Page(
                    fname=PurePosixPath(output_name(relative)),
                    node=parse_fragment(markup),
                    source=path,
                    frontmatter=frontmatter,
                )
            )

    def dump_pages(self, state: State, settings: Settings) -> None:
        """Write pages, assets and the optional sitemap to ``dist_dir``."""
        dist = settings.dist_dir
        template = self._load_template(settings)
        for page in state.pages_list:
            target = dist / page.fname
            target.parent.mkdir(parents=True, exist_ok=True)
            html = outer_html(page.child_nodes)
            if template is not None and not is_full_document(page.node):
                try:
                    html = template.render(
                        content=Markup(html), page=page, settings=settings
                    )
                except TemplateError as exc:
                    raise BuildError(settings.template, str(exc), exc) from exc
            with open(target, "w", encoding="utf-8") as f:
                f.write(html)
        for asset in state.out.assets_files:
            target = dist / asset.path
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(asset.source, target)
        if settings.generate_sitemap and settings.site_url:
            _write_sitemap(dist, settings.site_url, state.pages_list)
        self.logger.log("Wrote %d pages to %s", len(state.pages_list), dist)

    def _read_markup(self, path: Path) -> tuple[dict[str, Any], str]:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise BuildError(path, f"Cannot read file: {exc}", exc) from exc
        frontmatter, body = extract_frontmatter(text)
        if is_markdown(path):
            body = self._markdown(body)
        return frontmatter, body

    def _is_component_file(self, path: Path, directory: Path, settings: Settings) -> bool:
        if any(is_within(path, folder) for folder in settings.components_folder):
            return True
        return is_components_path(path.relative_to(directory).parent)

    def _load_template(self, settings: Settings):
        template_path = settings.template
        if not template_path.is_file():
            return None
        env = Environment(
            loader=FileSystemLoader(str(template_path.parent)), autoescape=True
        )
        try:
            return env.get_template(template_path.name)
        except TemplateError as exc:
            raise BuildError(template_path, str(exc), exc) from exc


def _iter_files(directory: Path) -> list[Path]:
    return sorted(path for path in directory.rglob("*") if path.is_file())


def _relative_output(path: Path, directory: Path, pages_folder: Path) -> PurePosixPath:
    if is_within(path, pages_folder):
        return PurePosixPath(path.relative_to(pages_folder).as_posix())
    return PurePosixPath(path.relative_to(directory).as_posix())


def _write_sitemap(dist: Path, site_url: str, pages: list[Page]) -> None:
    """Generate and write sitemap.xml.

    Args:
        dist: Output directory for the sitemap.
        site_url: Absolute base URL of the site.
        pages: Pages of the site.
    """
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
    ]
    for page in pages:
        url_path = page.fname.as_posix()
        if page.fname.name == "index.html":
            url_path = url_path[: -len("index.html")]
        lines.append(f"  <url><loc>{join_root_url(site_url, url_path)}</loc></url>")
    lines.append("</urlset>")
    (dist / "sitemap.xml").write_text("\n".join(lines), encoding="utf-8")
