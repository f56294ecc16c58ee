"""Plugin hook pipeline for Spindle.

Plugins observe and replace the build at four checkpoints:

- ``configuration(settings, ctx)``: after the settings file is loaded.
- ``before_build(state, ctx)``: before components and pages are parsed.
- ``after_build(state, ctx)``: after pages are resolved and aliased.
- ``bundle(state, ctx)``: after pages are written.

Every hook is optional and may be a plain function or a coroutine function.
A hook that returns a value replaces the working settings/state with a deep
copy of it. A hook that raises is reported and its edits are rolled back;
the build goes on. A hook whose input cannot be deep-copied (a lock left in
``global_props``, say) is reported and not called.

Plugins are listed in the settings file as import references::

    plugins:
      - mysite.plugins:sitemap
      - use: spindle_i18n:create_plugin
        options:
          default_locale: en
"""

from __future__ import annotations

import copy
import importlib
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from .errors import SettingsError

if TYPE_CHECKING:
    from .files import FileUtil
    from .log import SpindleLog

HOOK_NAMES = ("configuration", "before_build", "after_build", "bundle")

Hook = Callable[[Any, "PluginContext"], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class PluginContext:
    """Capabilities handed to every hook.

    Attributes:
        file_util: File collaborator (directory creation, parsing, dumping).
        logger: The build logger.
    """

    file_util: FileUtil
    logger: SpindleLog


@dataclass
class Plugin:
    """A plugin made of optional hook functions.

    Any object exposing ``plugin_name`` and some of the hook attributes works
    as a plugin; this record is a convenient way to build one from functions.
    """

    plugin_name: str
    configuration: Hook | None = None
    before_build: Hook | None = None
    after_build: Hook | None = None
    bundle: Hook | None = None


def plugin_name(plugin: Any) -> str:
    """Return the name used to report a plugin."""
    name = getattr(plugin, "plugin_name", None)
    return str(name) if name else type(plugin).__name__


def load_plugin(reference: str | dict[str, Any]) -> Any:
    """Import a plugin from a ``module:attribute`` reference.

    Args:
        reference: Either ``"package.module:attribute"`` or a mapping with a
            ``use`` reference and optional ``options``.

    Returns:
        The plugin object. A class or a function is called with the options
        and its result is the plugin; any other object is the plugin itself,
        hooks or not.

    Raises:
        SettingsError: If the reference is malformed or cannot be imported.
    """
    options: dict[str, Any] = {}
    if isinstance(reference, dict):
        options = dict(reference.get("options") or {})
        reference = reference.get("use", "")
    if not isinstance(reference, str) or ":" not in reference:
        raise SettingsError(
            f"Plugin reference must look like 'package.module:attribute': {reference!r}"
        )
    module_name, _, attribute = reference.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise SettingsError(f"Cannot import plugin module '{module_name}': {exc}") from exc
    try:
        target = getattr(module, attribute)
    except AttributeError as exc:
        raise SettingsError(f"Plugin '{reference}' not found") from exc

    if inspect.isclass(target) or inspect.isfunction(target):
        return target(**options)
    return target


def load_plugins(references: list[Any]) -> list[Any]:
    """Load every entry of a plugin list; plugin objects are kept as they are."""
    plugins = []
    for reference in references:
        if isinstance(reference, (str, dict)):
            plugins.append(load_plugin(reference))
        else:
            plugins.append(reference)
    return plugins


class HookPipeline:
    """Runs one checkpoint's hooks over an ordered plugin list.

    Attributes:
        plugins: Plugins, invoked in list order.
        context: Capabilities passed to each hook.
        logger: Receives a warning for every failing plugin.
    """

    def __init__(self, plugins: list[Any], context: PluginContext, logger: SpindleLog):
        self.plugins = plugins
        self.context = context
        self.logger = logger

    async def run(self, hook_name: str, value: Any) -> Any:
        """Thread ``value`` through every plugin's ``hook_name`` hook.

        Args:
            hook_name: One of ``HOOK_NAMES``.
            value: Current settings or state.

        Returns:
            The working value after the last plugin.
        """
        if hook_name not in HOOK_NAMES:
            raise ValueError(f"Unknown hook: {hook_name}")
        for plugin in self.plugins:
            hook = getattr(plugin, hook_name, None)
            if not callable(hook):
                continue
            name = plugin_name(plugin)
            try:
                snapshot = copy.deepcopy(value)
            except Exception as exc:
                # no snapshot, no rollback
                self.logger.warn(
                    f"plugin process skipped. [{name}] cannot copy {hook_name} input: {exc}"
                )
                continue
            try:
                result = hook(value, self.context)
                if inspect.isawaitable(result):
                    result = await result
                if result:
                    value = copy.deepcopy(result)
            except Exception as exc:
                self.logger.warn(f"plugin process failed. [{name}] {exc}")
                value = snapshot
        return value
