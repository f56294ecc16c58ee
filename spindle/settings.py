"""Settings for a Spindle build.

Settings are resolved once per build invocation: defaults, then the project
settings file (``spindle.config.yaml``/``.yml``/``.json``), then command-line
overrides. Redundant source directories are removed before plugins get to see
the settings through their ``configuration`` hook.

Key pieces:
- Settings: the resolved configuration record.
- default_settings: defaults for a project root.
- load_settings: full resolution including plugin loading and hooks.
- dedupe_src_dirs: removal of source directories nested in other ones.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .errors import SettingsError
from .plugins import HookPipeline, PluginContext, load_plugins
from .utils import is_components_path, is_within

if TYPE_CHECKING:
    from .files import FileUtil
    from .log import SpindleLog

_PATH_FIELDS = ("pages_folder", "dist_dir", "template", "root_dir")
_PATH_LIST_FIELDS = ("components_folder", "src_dir")
_INT_FIELDS = ("port",)
_BOOL_FIELDS = ("cross_origin_isolation", "generate_sitemap", "quiet_mode")


@dataclass
class Settings:
    """Resolved configuration of a project.

    Attributes:
        root_dir: Project root; relative config paths resolve against it.
        pages_folder: Directory whose files map to site-root output paths.
        components_folder: Directories scanned for components.
        src_dir: Directories scanned for pages and assets.
        dist_dir: Output directory.
        entry: Glob of the site entry page.
        template: Optional page shell rendered around page content.
        auth_key: CMS API key; when empty, CMS content comes from ``data/cms``.
        plugins: Plugin objects, invoked in list order.
    """

    root_dir: Path
    pages_folder: Path
    components_folder: list[Path]
    src_dir: list[Path]
    dist_dir: Path
    entry: str
    template: Path
    project_name: str = "Spindle"
    settings_file: str = "spindle.config"
    auth_key: str = ""
    port: int = 8080
    host: str = "0.0.0.0"
    cross_origin_isolation: bool = False
    api_domain: str = "api.spearly.com"
    analytics_domain: str = "analytics.spearly.com"
    generate_sitemap: bool = False
    site_url: str = ""
    plugins: list[Any] = field(default_factory=list)
    quiet_mode: bool = False

    def __deepcopy__(self, memo):
        # Plugin objects are shared, only the list is new.
        values = {
            f.name: copy.deepcopy(getattr(self, f.name), memo)
            for f in fields(self)
            if f.name != "plugins"
        }
        return replace(self, plugins=list(self.plugins), **values)


def default_settings(root_dir: Path) -> Settings:
    """Return the default settings for a project rooted at ``root_dir``."""
    root = Path(root_dir).resolve()
    return Settings(
        root_dir=root,
        pages_folder=root / "src" / "pages",
        components_folder=[root / "src" / "components"],
        src_dir=[root / "src"],
        dist_dir=root / "dist",
        entry=str(root / "src" / "pages" / "index.*"),
        template=root / "public" / "index.html",
    )


def dedupe_src_dirs(src_dirs: list[Path]) -> list[Path]:
    """Drop source directories that are nested in another configured one.

    An entry is kept when, below some entry containing it, its path passes
    through a components directory, since components are scanned on their own.
    Equal entries are never considered redundant with each other.

    Args:
        src_dirs: Configured source directories, in order.

    Returns:
        The directories to scan, in their original order.

    Examples:
        >>> dedupe_src_dirs([Path("/a"), Path("/a/b"), Path("/a/components")])
        [PosixPath('/a'), PosixPath('/a/components')]
    """
    result = []
    for src in src_dirs:
        containing = [other for other in src_dirs if other != src and is_within(src, other)]
        if not containing or any(
            is_components_path(src.relative_to(other)) for other in containing
        ):
            result.append(src)
    return result


def apply_config(
    settings: Settings, data: dict[str, Any], logger: SpindleLog | None = None
) -> Settings:
    """Return ``settings`` updated with values from a config mapping.

    Args:
        settings: Base settings.
        data: Mapping of snake_case field names to raw values.
        logger: Receives a warning for each unknown key.

    Returns:
        New Settings instance; ``settings`` itself is left untouched.

    Raises:
        SettingsError: If a plugin reference cannot be loaded.
    """
    known = {f.name for f in fields(Settings)}
    root = Path(data.get("root_dir") or settings.root_dir)
    updates: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            if logger:
                logger.warn(f"Unknown setting ignored: {key}")
            continue
        updates[key] = _coerce(key, value, root)
    return replace(settings, **updates)


def _coerce(name: str, value: Any, root: Path) -> Any:
    if name == "plugins":
        return load_plugins(value or [])
    if name in _PATH_FIELDS:
        return _resolve_path(value, root)
    if name in _PATH_LIST_FIELDS:
        if isinstance(value, (str, Path)):
            value = [value]
        return [_resolve_path(v, root) for v in value or []]
    if name in _INT_FIELDS:
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise SettingsError(f"Setting '{name}' must be an integer: {value!r}") from exc
    if name in _BOOL_FIELDS:
        return bool(value)
    if name == "entry":
        return str(_resolve_path(value, root))
    return value


def _resolve_path(value: Any, root: Path) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = root / path
    return path.resolve()


async def load_settings(
    root_dir: Path,
    file_util: FileUtil,
    logger: SpindleLog,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Resolve the settings of a project and run ``configuration`` hooks.

    Args:
        root_dir: Project root directory.
        file_util: File collaborator used to read the settings file.
        logger: Logger; its quiet flag follows ``quiet_mode``.
        overrides: Values taking precedence over the settings file (CLI flags).

    Returns:
        Settings as left by the last ``configuration`` hook.
    """
    settings = default_settings(root_dir)
    data = file_util.load_file(str(settings.root_dir / f"{settings.settings_file}.*"))
    if data:
        settings = apply_config(settings, data, logger)
    if overrides:
        settings = apply_config(settings, overrides, logger)
    logger.quiet = settings.quiet_mode

    settings.src_dir = dedupe_src_dirs(settings.src_dir)

    pipeline = HookPipeline(settings.plugins, PluginContext(file_util, logger), logger)
    return await pipeline.run("configuration", settings)
