"""Command-line interface for Spindle.

This module defines the CLI commands using Click framework.

Commands:
- new: Scaffold a new Spindle project.
- build: Build the site into the output directory.
- watch: Run development server with live reload.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import click
import questionary
from jinja2 import Environment, DictLoader

from . import __version__
from .errors import ContentSourceError, SettingsError

_SCAFFOLD_TEMPLATES = {
    "spindle.config.yaml": """\
project_name: {{ name }}
pages_folder: src/pages
components_folder:
  - src/components
src_dir:
  - src
dist_dir: dist
generate_sitemap: false
site_url: ""
plugins: []
""",
    "src/pages/index.html": """\
<site-header></site-header>
<main>
  <h1>{{ name }}</h1>
  <p>Edit src/pages/index.html to get started.</p>
</main>
""",
    "src/components/site-header.html": """\
<header class="site-header">
  <a href="/">{{ name }}</a>
</header>
""",
    "public/index.html": """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{{ name }}</title>
</head>
<body>
{{ '{{ content }}' }}
</body>
</html>
""",
    ".gitignore": "dist/\n.spindle/\n",
}


@click.group()
@click.version_option(version=__version__, prog_name="spindle")
def cli():
    """Spindle static site generator."""


@cli.command()
@click.argument("name", required=False)
def new(name: str | None):
    """Scaffold a new Spindle project."""
    if not name:
        name = questionary.text(
            "Project name:",
            validate=lambda x: len(x.strip()) > 0 or "Project name cannot be empty",
            style=_questionary_style(),
        ).ask()
        if name is None:
            raise click.Abort()
        name = name.strip()
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(target)
    click.echo(f"New Spindle site created at {target}")


@cli.command()
@click.option(
    "--src",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project root (defaults to the current directory)",
)
@click.option("--quiet", is_flag=True, help="Only print warnings and errors")
def build(src: Path | None, quiet: bool):
    """Build the site into the output directory."""
    project_root = (src or Path.cwd()).resolve()
    from .build import build_site
    from .log import SpindleLog

    overrides = {"quiet_mode": True} if quiet else None
    try:
        result = build_site(project_root, overrides=overrides, logger=SpindleLog(quiet=quiet))
    except (SettingsError, ContentSourceError) as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  Error: {exc}", fg="white"), err=True)
        raise SystemExit(1) from None
    if not result.success:
        click.echo(click.style("Build failed.", fg="red", bold=True), err=True)
        raise SystemExit(1)
    if not quiet:
        click.echo(f"Built {len(result.pages)} pages into {result.output_dir}")


@cli.command()
@click.option(
    "--src",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project root (defaults to the current directory)",
)
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the dev server (overrides the settings file)",
)
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server (defaults to port + 1)",
)
def watch(src: Path | None, port: int | None, ws_port: int | None):
    """Run dev server with live reload."""
    project_root = (src or Path.cwd()).resolve()
    from .server import DevServer

    try:
        server = DevServer(project_root, http_port=port, ws_port=ws_port)
    except SettingsError as exc:
        raise click.ClickException(str(exc)) from None
    server.start()


def main():
    """Entry point for the CLI application."""
    cli()


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def _scaffold(root: Path) -> None:
    """Create the directory structure and files for a new Spindle project.

    Args:
        root: Root directory for the new project.
    """
    env = Environment(loader=DictLoader(_SCAFFOLD_TEMPLATES), keep_trailing_newline=True)
    for rel_path in _SCAFFOLD_TEMPLATES:
        dest_path = root / rel_path
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        rendered = env.get_template(rel_path).render(name=root.name)
        dest_path.write_text(rendered, encoding="utf-8")
    _try_git_init(root)


def _try_git_init(root: Path) -> None:
    """Initialize a git repository if git is available."""
    if os.environ.get("SPINDLE_SKIP_GIT_INIT") == "1":
        return
    git_bin = shutil.which("git")
    if not git_bin:
        return
    try:
        subprocess.run(
            [git_bin, "init"],
            cwd=root,
            check=True,
            capture_output=True,
        )
    except (OSError, subprocess.CalledProcessError):
        # Non-fatal: user can run git init manually
        pass
