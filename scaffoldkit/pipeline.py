"""scaffoldkit pipeline orchestrator.

Implements the three-phase scaffolding run:

Phase 1: PLAN  -- Load the catalog, build the project context, render and
                  validate every template.  Nothing is written.
Phase 2: APPLY -- Materialise the plan, report the manifest, optionally save
                  it as JSON.
Phase 3: HOOKS -- Run the catalog's post-scaffold commands (``git init``,
                  ``uv sync``, ...) when requested and the manifest is clean.

Usage::

    python -m scaffoldkit.pipeline ./weather-cli --name weather-cli \\
        --description "Fetches weather data."
    scaffoldkit ./weather-cli --name weather-cli --dry-run
"""

from __future__ import annotations

import asyncio
import sys
import time
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from rich.markup import escape
from rich.panel import Panel

from scaffoldkit.config import ScaffoldConfig, parse_assignments
from scaffoldkit.reporter import manifest_to_dict, plan_table, print_manifest, summarize
from scaffoldkit.scaffolder import (
    Catalog,
    Manifest,
    PlannedEntry,
    ProjectContext,
    ScaffoldError,
    Scaffolder,
    builtin_catalog_path,
    list_builtin_catalogs,
    load_catalog,
)
from scaffoldkit.utils import (
    PHASE_NAMES,
    console,
    format_duration,
    print_error,
    print_phase_header,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
    save_json,
)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PipelineError(Exception):
    """Raised when a pipeline phase fails irrecoverably."""

    def __init__(self, phase: int, message: str) -> None:
        self.phase = phase
        super().__init__(f"Phase {phase} ({PHASE_NAMES.get(phase, '?')}): {message}")


# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class ScaffoldPipeline:
    """Drives one scaffolding run through PLAN, APPLY and HOOKS.

    Attributes:
        config: Settings for this run.
        state: Accumulates per-phase results, failures and timing.
        scaffolder: The engine that plans and applies templates.
    """

    _PHASE_METHODS: dict[int, str] = {
        1: "phase1_plan",
        2: "phase2_apply",
        3: "phase3_hooks",
    }

    def __init__(self, config: ScaffoldConfig, scaffolder: Optional[Scaffolder] = None) -> None:
        self.config = config
        self.scaffolder = scaffolder or Scaffolder()
        self.state: dict[str, Any] = {
            "started_at": datetime.now(timezone.utc).isoformat(),
            "phases_completed": [],
            "phases_failed": [],
            "success": False,
        }
        self.catalog: Optional[Catalog] = None
        self.context: Optional[ProjectContext] = None
        self.plan: list[PlannedEntry] = []
        self.manifest: Optional[Manifest] = None

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self) -> dict[str, Any]:
        """Execute every phase in order, stopping at the first failure.

        Returns:
            The final state dictionary, including a top-level ``success``
            boolean.
        """
        pipeline_start = time.monotonic()

        console.print(
            Panel(
                f"[bold bright_cyan]scaffoldkit[/bold bright_cyan]\n"
                f"Project : {self.config.project_name or '(unset)'}\n"
                f"Target  : {self.config.target_root.resolve()}\n"
                f"Catalog : {self.config.catalog_path or 'built-in'}\n"
                f"Mode    : {'dry run' if self.config.dry_run else 'write'}",
                title="[bold]Scaffold Start[/bold]",
                border_style="bright_cyan",
            )
        )

        all_success = True

        for phase_num in sorted(self._PHASE_METHODS):
            phase_name = PHASE_NAMES.get(phase_num, "UNKNOWN")
            print_phase_header(phase_num, phase_name)

            phase_start = time.monotonic()
            try:
                method = getattr(self, self._PHASE_METHODS[phase_num])
                result = await method()

                elapsed = time.monotonic() - phase_start
                self.state[f"phase{phase_num}"] = result
                self.state["phases_completed"].append(phase_num)
                print_success(
                    f"Phase {phase_num} ({phase_name}) completed in {format_duration(elapsed)}"
                )

            except PipelineError as exc:
                elapsed = time.monotonic() - phase_start
                all_success = False
                self.state["phases_failed"].append(phase_num)
                self.state[f"phase{phase_num}_error"] = str(exc)
                print_error(
                    f"Phase {phase_num} ({phase_name}) FAILED after "
                    f"{format_duration(elapsed)}: {escape(str(exc))}"
                )
                # Later phases depend on earlier ones.
                break

            except Exception as exc:
                elapsed = time.monotonic() - phase_start
                all_success = False
                self.state["phases_failed"].append(phase_num)
                tb = traceback.format_exc()
                self.state[f"phase{phase_num}_error"] = tb
                print_error(
                    f"Phase {phase_num} ({phase_name}) FAILED after "
                    f"{format_duration(elapsed)}: {escape(str(exc))}"
                )
                console.print(f"[dim]{escape(tb)}[/dim]")
                break

        total_elapsed = time.monotonic() - pipeline_start
        self.state["success"] = all_success
        self.state["total_duration"] = format_duration(total_elapsed)
        self.state["finished_at"] = datetime.now(timezone.utc).isoformat()

        self._print_final_summary(total_elapsed)
        return self.state

    # ------------------------------------------------------------------
    # Phase 1: PLAN
    # ------------------------------------------------------------------

    async def phase1_plan(self) -> dict[str, Any]:
        """Load the catalog and render every template without writing."""
        try:
            catalog_dir = self.config.catalog_path or builtin_catalog_path()
            catalog = load_catalog(catalog_dir)
        except ScaffoldError as exc:
            raise PipelineError(1, str(exc)) from exc

        if self.config.force:
            catalog = catalog.with_overwrite()
        self.catalog = catalog
        console.print(
            f"  [green]+[/green] Catalog '{catalog.name}' loaded "
            f"({len(catalog.templates)} template(s), {len(catalog.hooks)} hook(s))"
        )

        try:
            self.context = self.config.build_context(catalog.defaults)
        except ValidationError as exc:
            raise PipelineError(
                1, f"Invalid project settings: {_describe_validation(exc)}"
            ) from exc

        try:
            self.plan = self.scaffolder.plan(catalog.templates, self.context)
        except ScaffoldError as exc:
            raise PipelineError(1, str(exc)) from exc

        console.print(f"  [green]+[/green] {len(self.plan)} file(s) planned")
        return {
            "catalog": catalog.name,
            "target_root": str(self.context.target_root),
            "planned": len(self.plan),
        }

    # ------------------------------------------------------------------
    # Phase 2: APPLY
    # ------------------------------------------------------------------

    async def phase2_apply(self) -> dict[str, Any]:
        """Write the planned files and report the manifest."""
        root = self.context.target_root if self.context else None

        if self.config.dry_run:
            console.print(plan_table(self.plan, root))
            print_warning("  Dry run -- no files were written.")
            return {"dry_run": True, "planned": len(self.plan)}

        manifest = await self.scaffolder.apply_async(self.plan)
        self.manifest = manifest
        print_manifest(manifest, root)

        if self.config.manifest_path is not None:
            await save_json(manifest_to_dict(manifest), self.config.manifest_path)
            console.print(f"  [dim]Manifest saved to {self.config.manifest_path}[/dim]")

        if not manifest.ok:
            raise PipelineError(
                2, f"{len(manifest.failed)} of {len(manifest.actions)} file(s) could not be written"
            )
        return summarize(manifest)

    # ------------------------------------------------------------------
    # Phase 3: HOOKS
    # ------------------------------------------------------------------

    async def phase3_hooks(self) -> dict[str, Any]:
        """Run post-scaffold commands in the target root, in catalog order."""
        hooks = self.catalog.hooks if self.catalog else []
        if self.config.dry_run or not self.config.run_hooks:
            if hooks:
                console.print(
                    f"  [dim]Skipping {len(hooks)} hook(s) "
                    f"(enable with --run-hooks): "
                    f"{', '.join(h.name for h in hooks)}[/dim]"
                )
            return {"skipped": True, "hooks": []}

        cwd = self.context.target_root if self.context else self.config.target_root
        completed: list[str] = []
        for hook in hooks:
            timeout = hook.timeout or self.config.hook_timeout
            console.print(f"  [dim]$ {hook.display()}[/dim]")
            returncode, stdout, stderr = await run_command(hook.command, cwd=cwd, timeout=timeout)
            if returncode != 0:
                detail = stderr or stdout or f"exit code {returncode}"
                raise PipelineError(3, f"Hook '{hook.name}' failed: {detail}")
            console.print(f"  [green]+[/green] {hook.name}")
            completed.append(hook.name)

        return {"skipped": False, "hooks": completed}

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def _print_final_summary(self, total_elapsed: float) -> None:
        data: dict[str, str] = {
            "Project": self.config.project_name or "(unset)",
            "Target": str(self.context.target_root if self.context else self.config.target_root),
            "Catalog": self.catalog.name if self.catalog else "(not loaded)",
        }
        if self.manifest is not None:
            for key, value in summarize(self.manifest).items():
                data[key.replace("_", " ").capitalize()] = str(value)
        data["Duration"] = format_duration(total_elapsed)
        data["Result"] = "success" if self.state["success"] else "failed"
        print_summary_table(data, title="Scaffold Summary")


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for ``scaffoldkit`` / ``python -m scaffoldkit.pipeline``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="scaffoldkit",
        description="scaffoldkit -- render a project template catalog into a directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  scaffoldkit ./weather-cli --name weather-cli -d 'Fetches weather data.'\n"
            "  scaffoldkit ./weather-cli --name weather-cli --dry-run\n"
            "  scaffoldkit ./app --name app --set python_version=3.11 --run-hooks\n"
        ),
    )
    parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="Target directory (default: $SCAFFOLD_TARGET_ROOT or .)",
    )
    parser.add_argument("--name", "-n", default=None, help="Project name")
    parser.add_argument("--description", "-d", default=None, help="Short project description")
    parser.add_argument(
        "--catalog", "-c",
        default=None,
        help="Catalog directory, catalog.yaml, or built-in catalog name",
    )
    parser.add_argument(
        "--set",
        dest="assignments",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Extra placeholder value (repeatable)",
    )
    parser.add_argument("--config", default=None, help="Load settings from a saved JSON config")
    parser.add_argument("--force", action="store_true", help="Overwrite existing files")
    parser.add_argument("--dry-run", action="store_true", help="Show the plan without writing")
    parser.add_argument("--run-hooks", action="store_true", help="Run the catalog's post-scaffold hooks")
    parser.add_argument("--manifest-out", default=None, help="Save the manifest as JSON to this path")
    parser.add_argument(
        "--list-catalogs", action="store_true", help="List the built-in catalogs and exit"
    )

    args = parser.parse_args(argv)

    if args.list_catalogs:
        for name in list_builtin_catalogs():
            console.print(name)
        return

    try:
        config = ScaffoldConfig.load(Path(args.config)) if args.config else ScaffoldConfig.from_env()
        extras = parse_assignments(args.assignments)
    except ValidationError as exc:
        source = args.config or "environment"
        console.print(
            f"[bold red]Error:[/bold red] Invalid settings in {escape(source)}: "
            f"{escape(_describe_validation(exc))}"
        )
        sys.exit(1)
    except (ValueError, OSError) as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        sys.exit(1)

    updates: dict[str, Any] = {"extras": {**config.extras, **extras}}
    if args.target is not None:
        updates["target_root"] = Path(args.target)
    if args.name is not None:
        updates["project_name"] = args.name
    if args.description is not None:
        updates["description"] = args.description
    if args.catalog is not None:
        updates["catalog_path"] = _resolve_catalog_arg(args.catalog)
    if args.force:
        updates["force"] = True
    if args.dry_run:
        updates["dry_run"] = True
    if args.run_hooks:
        updates["run_hooks"] = True
    if args.manifest_out is not None:
        updates["manifest_path"] = Path(args.manifest_out)
    config = config.model_copy(update=updates)

    if not config.project_name:
        console.print("[bold red]Error:[/bold red] A project name is required (--name)")
        sys.exit(1)

    pipeline = ScaffoldPipeline(config)
    result = asyncio.run(pipeline.run())

    if result.get("success"):
        console.print("[bold green]Scaffolding completed successfully![/bold green]")
    else:
        console.print("[bold red]Scaffolding failed.[/bold red]")
        sys.exit(1)


def _describe_validation(exc: ValidationError) -> str:
    """Join a validation error's entries as ``field: message`` pairs."""
    parts: list[str] = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()))
        message = err.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def _resolve_catalog_arg(value: str) -> Path:
    """Treat a bare built-in catalog name as its directory, anything else as a path."""
    candidate = Path(value)
    if not candidate.exists() and value in list_builtin_catalogs():
        return builtin_catalog_path(value)
    return candidate


if __name__ == "__main__":
    main()
