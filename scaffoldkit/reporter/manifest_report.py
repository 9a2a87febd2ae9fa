"""Human-readable reporting for scaffold plans and manifests.

The scaffolder only returns data; this module turns a ``Manifest`` (or a
dry-run plan) into Rich tables, outcome counts and a JSON-friendly dict.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from scaffoldkit.scaffolder.models import ActionOutcome, Manifest, PlannedEntry
from scaffoldkit.utils import console as default_console


_OUTCOME_STYLES: dict[ActionOutcome, str] = {
    ActionOutcome.CREATED: "green",
    ActionOutcome.SKIPPED_EXISTING: "yellow",
    ActionOutcome.FAILED: "bold red",
}

_OUTCOME_LABELS: dict[ActionOutcome, str] = {
    ActionOutcome.CREATED: "created",
    ActionOutcome.SKIPPED_EXISTING: "skipped (exists)",
    ActionOutcome.FAILED: "FAILED",
}


def summarize(manifest: Manifest) -> dict[str, int]:
    """Return outcome counts plus the number of directories created."""
    counts = manifest.counts()
    counts["directories"] = len(manifest.created_directories)
    return counts


def _display_path(path: Path, root: Optional[Path]) -> str:
    if root is not None and path.is_relative_to(root):
        return path.relative_to(root).as_posix()
    return str(path)


def manifest_table(manifest: Manifest, root: Optional[Path] = None) -> Table:
    """Build a table with one row per action, in manifest order.

    Args:
        manifest: Result of ``Scaffolder.apply``.
        root: When given, destinations under it are shown relative to it.
    """
    table = Table(title="Scaffold Manifest", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Template", no_wrap=True)
    table.add_column("Destination")
    table.add_column("Outcome")

    for index, action in enumerate(manifest.actions, start=1):
        style = _OUTCOME_STYLES[action.outcome]
        table.add_row(
            str(index),
            escape(action.name),
            escape(_display_path(action.destination, root)),
            f"[{style}]{_OUTCOME_LABELS[action.outcome]}[/{style}]",
        )
    return table


def plan_table(plan: Sequence[PlannedEntry], root: Optional[Path] = None) -> Table:
    """Build a dry-run table listing what would be written."""
    table = Table(title="Scaffold Plan (dry run)", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Template", no_wrap=True)
    table.add_column("Destination")
    table.add_column("Exists", justify="center")
    table.add_column("Overwrite", justify="center")
    table.add_column("Bytes", justify="right")

    for index, entry in enumerate(plan, start=1):
        table.add_row(
            str(index),
            escape(entry.spec.name),
            escape(_display_path(entry.destination, root)),
            "yes" if entry.destination.exists() else "no",
            "yes" if entry.spec.overwrite else "no",
            str(len(entry.content.encode("utf-8"))),
        )
    return table


def print_manifest(
    manifest: Manifest,
    root: Optional[Path] = None,
    console: Optional[Console] = None,
) -> None:
    """Print the manifest table, the outcome counts and every failure's cause."""
    out = console or default_console
    out.print(manifest_table(manifest, root))

    counts = summarize(manifest)
    out.print(
        f"  [green]{counts[ActionOutcome.CREATED.value]} created[/green], "
        f"[yellow]{counts[ActionOutcome.SKIPPED_EXISTING.value]} skipped[/yellow], "
        f"[red]{counts[ActionOutcome.FAILED.value]} failed[/red], "
        f"{counts['directories']} director{'y' if counts['directories'] == 1 else 'ies'} created"
    )

    for action in manifest.failed:
        where = escape(_display_path(action.destination, root))
        out.print(f"  [red]x[/red] {where}: {escape(action.error or '')}")


def manifest_to_dict(manifest: Manifest) -> dict[str, Any]:
    """Return a JSON-serialisable representation of *manifest*."""
    return {
        "summary": summarize(manifest),
        "actions": [action.model_dump(mode="json") for action in manifest.actions],
        "created_directories": [str(d) for d in manifest.created_directories],
    }
