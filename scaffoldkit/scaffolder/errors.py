"""Exception hierarchy for the scaffolder.

Structural problems (bad destinations, unresolved placeholders, malformed
templates or catalogs) are raised before anything touches the filesystem.
Per-file write errors are never raised from ``Scaffolder.apply``; they are
recorded as ``failed`` actions in the manifest instead.
"""

from __future__ import annotations

from pathlib import Path


class ScaffoldError(Exception):
    """Base class for every error raised by the scaffolder."""


class InvalidPathError(ScaffoldError):
    """A template destination resolves outside the target root."""

    def __init__(self, template: str, destination: str, reason: str = "") -> None:
        self.template = template
        self.destination = destination
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Template '{template}' has invalid destination '{destination}'{detail}"
        )


class UnresolvedPlaceholderError(ScaffoldError):
    """A ``{{ key }}`` placeholder has no value in the project context."""

    def __init__(self, key: str, template: str) -> None:
        self.key = key
        self.template = template
        super().__init__(
            f"Unresolved placeholder '{key}' in template '{template}'"
        )


class InvalidTemplateError(ScaffoldError):
    """Template source could not be parsed or rendered."""

    def __init__(self, template: str, message: str) -> None:
        self.template = template
        super().__init__(f"Template '{template}' is invalid: {message}")


class CatalogError(ScaffoldError):
    """A template catalog could not be loaded."""

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"Cannot load catalog {self.path}: {message}")
