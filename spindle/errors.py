"""Exceptions raised by Spindle.

Only parse failures of component and page sources stop a build; everything
else is reported and degrades in place (see ``spindle.plugins``).
"""

from __future__ import annotations

from pathlib import Path


class BuildError(Exception):
    """Error while loading a source file, with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class SettingsError(Exception):
    """Raised when the settings file or a plugin reference is invalid."""


class ContentSourceError(Exception):
    """Raised when CMS content cannot be fetched."""
