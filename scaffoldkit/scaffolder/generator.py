"""Main scaffolding engine.

Materialises a template catalog into a target directory in two passes:

``plan``
    Resolves every destination, substitutes every placeholder and validates
    the whole catalog.  Nothing touches the filesystem, and any structural
    problem raises before a single file is written.

``apply``
    Walks the plan in catalog order, creating parent directories, skipping
    files that already exist (unless the template allows overwriting) and
    writing the rest atomically.  A failure on one file is recorded in the
    manifest and the remaining files are still attempted.
"""

from __future__ import annotations

import asyncio
import os
import stat
import tempfile
from collections.abc import Sequence
from pathlib import Path

from .errors import InvalidPathError, ScaffoldError
from .models import (
    ActionOutcome,
    Manifest,
    PlannedEntry,
    ProjectContext,
    ScaffoldAction,
    TemplateSpec,
)
from .templates import TemplateRenderer


_DEFAULT_FILE_MODE = 0o644


# ---------------------------------------------------------------------------
# Scaffolder
# ---------------------------------------------------------------------------


class Scaffolder:
    """Plans and applies a template catalog against a project context.

    The scaffolder holds no per-run state; one instance can serve any number
    of independent ``plan``/``apply`` calls.
    """

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()

    # -- Public API --------------------------------------------------------

    def plan(
        self, catalog: Sequence[TemplateSpec], context: ProjectContext
    ) -> list[PlannedEntry]:
        """Resolve and render every template in *catalog*.

        Args:
            catalog: Non-empty, ordered template specs.
            context: The project being scaffolded.

        Returns:
            One ``PlannedEntry`` per spec, in catalog order.

        Raises:
            ScaffoldError: The catalog is empty.
            InvalidPathError: A destination escapes the target root, is the
                root itself, or collides with an earlier destination.
            UnresolvedPlaceholderError: Content or destination refers to a
                key the context does not supply.
            InvalidTemplateError: Content or destination is not a valid
                template.
        """
        if not catalog:
            raise ScaffoldError("Template catalog is empty")

        variables = context.variables()
        root = context.target_root
        planned: list[PlannedEntry] = []
        claimed: dict[Path, str] = {}

        for spec in catalog:
            rel = self.renderer.render_string(
                spec.destination, variables, template_name=spec.name
            )
            destination = _resolve_destination(root, rel, spec.name)
            if destination in claimed:
                raise InvalidPathError(
                    spec.name, rel, f"same destination as template '{claimed[destination]}'"
                )
            claimed[destination] = spec.name

            content = self.renderer.render_string(
                spec.content, variables, template_name=spec.name
            )
            planned.append(
                PlannedEntry(spec=spec, destination=destination, content=content)
            )

        return planned

    def apply(self, plan: Sequence[PlannedEntry]) -> Manifest:
        """Materialise *plan* on disk and report what happened to each entry.

        Never raises for filesystem or encoding problems: each ``OSError``
        or ``UnicodeError`` becomes a ``failed`` action and the next entry is
        attempted.  Entries already written are not rolled back.
        """
        actions: list[ScaffoldAction] = []
        created_dirs: list[Path] = []

        for entry in plan:
            actions.append(self._apply_entry(entry, created_dirs))

        return Manifest(
            actions=tuple(actions), created_directories=tuple(created_dirs)
        )

    async def apply_async(self, plan: Sequence[PlannedEntry]) -> Manifest:
        """Run :meth:`apply` in a worker thread so the event loop stays free."""
        return await asyncio.to_thread(self.apply, plan)

    def scaffold(
        self, catalog: Sequence[TemplateSpec], context: ProjectContext
    ) -> Manifest:
        """Plan and apply in one call."""
        return self.apply(self.plan(catalog, context))

    # -- Per-entry materialisation -----------------------------------------

    def _apply_entry(
        self, entry: PlannedEntry, created_dirs: list[Path]
    ) -> ScaffoldAction:
        destination = entry.destination
        try:
            exists = destination.exists() or destination.is_symlink()
            if exists and not entry.spec.overwrite:
                return _action(entry, ActionOutcome.SKIPPED_EXISTING)

            data = entry.content.encode("utf-8")
            _ensure_directory(destination.parent, created_dirs)
            _atomic_write(destination, data)
            if entry.spec.executable:
                _make_executable(destination)
        except (OSError, UnicodeError) as exc:
            return _action(
                entry, ActionOutcome.FAILED, f"{exc.__class__.__name__}: {exc}"
            )

        return _action(entry, ActionOutcome.CREATED)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _action(
    entry: PlannedEntry, outcome: ActionOutcome, error: str | None = None
) -> ScaffoldAction:
    return ScaffoldAction(
        name=entry.spec.name,
        destination=entry.destination,
        outcome=outcome,
        error=error,
    )


def _resolve_destination(root: Path, rel: str, template: str) -> Path:
    """Join *rel* onto *root* and make sure the result stays inside it."""
    cleaned = rel.strip()
    if not cleaned:
        raise InvalidPathError(template, rel, "destination is empty")
    if Path(cleaned).is_absolute() or cleaned.startswith(("/", "\\")):
        raise InvalidPathError(template, rel, "destination must be relative")

    candidate = (root / cleaned).resolve()
    if candidate == root:
        raise InvalidPathError(template, rel, "destination is the target root itself")
    if not candidate.is_relative_to(root):
        raise InvalidPathError(template, rel, "destination escapes the target root")
    return candidate


def _ensure_directory(directory: Path, created_dirs: list[Path]) -> None:
    """Create *directory* and any missing ancestors, recording the new ones."""
    missing: list[Path] = []
    current = directory
    while not current.exists() and current != current.parent:
        missing.append(current)
        current = current.parent

    try:
        directory.mkdir(parents=True, exist_ok=True)
    finally:
        created_dirs.extend(d for d in reversed(missing) if d.is_dir())


def _atomic_write(path: Path, data: bytes) -> None:
    """Write *data* to *path* through a sibling temp file and ``os.replace``.

    Readers see either the previous file (or no file) or the complete new
    content, never a truncated write.
    """
    mode = stat.S_IMODE(path.stat().st_mode) if path.is_file() else _DEFAULT_FILE_MODE
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def _make_executable(path: Path) -> None:
    """Set the executable bit on a file."""
    current = path.stat().st_mode
    path.chmod(current | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
