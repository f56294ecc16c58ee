"""Site building functionality for Spindle.

This module sequences one build pass: it loads components and pages into a
fresh State, expands component references, derives alias pages, writes the
output and gives plugins a chance to act at each checkpoint.

Key functions:
- bundle: Run one build pass for a prepared BuildContext.
- create_context: Load settings and wire up the collaborators of a build.
- build_site: Synchronous entry point used by the CLI and the dev server.
"""

from __future__ import annotations

import asyncio
import glob
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .assembler import assemble_pages, resolve_components
from .cms import ContentGenerator
from .errors import BuildError
from .files import FileUtil
from .log import SpindleLog
from .plugins import HookPipeline, PluginContext
from .protocols import MarkupGenerator
from .settings import Settings, load_settings
from .state import State


@dataclass
class BuildContext:
    """Everything one build pass needs, created fresh per build invocation.

    Attributes:
        settings: Resolved settings.
        generator: Materializes CMS content during resolution.
        file_util: File collaborator.
        logger: Build logger.
        pipeline: Plugin hooks over ``settings.plugins``.
    """

    settings: Settings
    generator: MarkupGenerator
    file_util: FileUtil
    logger: SpindleLog
    pipeline: HookPipeline
    state: State | None = field(default=None)


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        success: False when components or pages could not be parsed.
        settings: Settings the build ran with.
        state: Final build state.
    """

    success: bool
    settings: Settings
    state: State

    @property
    def output_dir(self) -> Path:
        return self.settings.dist_dir

    @property
    def pages(self) -> list:
        return self.state.pages_list


def make_context(settings: Settings, file_util: FileUtil, logger: SpindleLog) -> BuildContext:
    """Wire up the collaborators for already-resolved settings."""
    return BuildContext(
        settings=settings,
        generator=ContentGenerator.from_settings(settings),
        file_util=file_util,
        logger=logger,
        pipeline=HookPipeline(settings.plugins, PluginContext(file_util, logger), logger),
    )


async def create_context(
    project_root: Path,
    overrides: dict[str, Any] | None = None,
    logger: SpindleLog | None = None,
) -> BuildContext:
    """Load settings for ``project_root`` and return a fresh build context.

    Args:
        project_root: Root directory of the project.
        overrides: Settings overriding the settings file (CLI flags).
        logger: Logger to use; a new one is created when omitted.
    """
    logger = logger or SpindleLog()
    file_util = FileUtil(logger)
    settings = await load_settings(project_root, file_util, logger, overrides)
    return make_context(settings, file_util, logger)


async def bundle(context: BuildContext) -> bool:
    """Run one build pass.

    Parse failures of components or pages are logged and end the pass with
    ``False`` before ``after_build`` and ``bundle`` hooks run; a page shell
    that fails to render ends it before ``bundle``. Plugin failures never
    stop the pass.

    Args:
        context: Build context; ``context.state`` holds the final state.

    Returns:
        True when the site was written.
    """
    settings = context.settings
    logger = context.logger
    file_util = context.file_util
    state = State()
    context.state = state

    state = await context.pipeline.run("before_build", state)
    context.state = state

    file_util.create_dir(settings)

    try:
        for components_folder in settings.components_folder:
            file_util.parse_components(state, components_folder, settings)
    except Exception as exc:
        logger.error(exc)
        return False

    try:
        for src_dir in settings.src_dir:
            file_util.parse_pages(state, src_dir, settings)
    except Exception as exc:
        logger.error(exc)
        return False

    if not glob.glob(settings.entry):
        logger.warn(f"Entry page not found: {settings.entry}")

    # Components embedding components
    state.components_list = await resolve_components(state, context.generator, settings)
    state.pages_list = await assemble_pages(state, context.generator, settings, logger)

    state = await context.pipeline.run("after_build", state)
    context.state = state

    try:
        file_util.dump_pages(state, settings)
    except BuildError as exc:
        logger.error(exc)
        return False

    state = await context.pipeline.run("bundle", state)
    context.state = state
    return True


def build_site(
    project_root: Path,
    overrides: dict[str, Any] | None = None,
    logger: SpindleLog | None = None,
) -> BuildResult:
    """Build the site of ``project_root`` once.

    Args:
        project_root: Root directory of the project.
        overrides: Settings overriding the settings file.
        logger: Logger to use.

    Returns:
        BuildResult with the success flag, settings and final state.

    Raises:
        SettingsError: If the settings file or a plugin reference is invalid.
    """

    async def run() -> BuildResult:
        context = await create_context(project_root, overrides, logger)
        success = await bundle(context)
        return BuildResult(success=success, settings=context.settings, state=context.state)

    return asyncio.run(run())
