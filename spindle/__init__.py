"""Spindle static site generator.

This package turns a tree of page and component markup files into a static site.
Components are reusable fragments referenced by custom tag names inside pages and
other components; they are expanded at build time.

The main entry point is the CLI module, which provides commands for scaffolding new
projects, building sites, and running the development server with live reload.

Architecture:
- settings: configuration record, config file loading and source dir deduplication
- state: the per-build document model (components, pages, shared props)
- resolver / assembler: component expansion and alias page derivation
- plugins: the hook pipeline third-party plugins attach to
- build: the orchestrator that sequences one build pass
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
