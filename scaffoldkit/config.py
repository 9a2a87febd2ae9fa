"""scaffoldkit configuration.

Typed settings for one scaffolding run.  Values come from CLI flags, from
``SCAFFOLD_*`` environment variables, or from a saved JSON file; all three
paths go through the same Pydantic v2 model so they are validated at
construction time.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from scaffoldkit.scaffolder.models import ProjectContext

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ScaffoldConfig(BaseModel):
    """Settings for a single scaffolding invocation.

    Instances are typically created once by the CLI entry point and then
    handed to ``ScaffoldPipeline``.
    """

    project_name: str = Field(default="", description="Project name; required to build a context")
    description: str = Field(default="")
    target_root: Path = Field(default=Path("."))
    catalog_path: Optional[Path] = Field(
        default=None, description="Catalog directory or catalog.yaml; None uses the built-in catalog"
    )
    extras: dict[str, str] = Field(default_factory=dict, description="Extra placeholder values")
    force: bool = Field(default=False, description="Allow every template to overwrite existing files")
    dry_run: bool = Field(default=False, description="Plan and print, but write nothing")
    run_hooks: bool = Field(default=False, description="Run the catalog's post-scaffold hooks")
    hook_timeout: int = Field(default=300, ge=1, description="Default per-hook timeout in seconds")
    manifest_path: Optional[Path] = Field(
        default=None, description="Where to save the manifest as JSON"
    )

    @field_validator("extras", mode="before")
    @classmethod
    def _stringify_extras(cls, value: object) -> object:
        if isinstance(value, dict):
            return {str(k): "" if v is None else str(v) for k, v in value.items()}
        return value

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    def build_context(self, defaults: dict[str, str] | None = None) -> ProjectContext:
        """Create the ``ProjectContext`` for this run.

        Args:
            defaults: Catalog defaults that extras may override.

        Raises:
            pydantic.ValidationError: The project name is empty or unsafe, or
                extras try to replace a reserved key.
        """
        context = ProjectContext(
            project_name=self.project_name,
            description=self.description,
            target_root=self.target_root,
            extras=self.extras,
        )
        if defaults:
            context = context.with_defaults(defaults)
        return context

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "ScaffoldConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "ScaffoldConfig":
        """Build a ``ScaffoldConfig`` from environment variables.

        Recognised variables (all optional):
            SCAFFOLD_PROJECT_NAME, SCAFFOLD_DESCRIPTION, SCAFFOLD_TARGET_ROOT,
            SCAFFOLD_CATALOG, SCAFFOLD_VARS (``key=value,key2=value2``),
            SCAFFOLD_RUN_HOOKS, SCAFFOLD_HOOK_TIMEOUT.

        Raises:
            ValueError: A variable cannot be parsed, or the resulting settings
                fail validation.
        """
        kwargs: dict[str, object] = {
            "project_name": os.environ.get("SCAFFOLD_PROJECT_NAME", ""),
            "description": os.environ.get("SCAFFOLD_DESCRIPTION", ""),
            "target_root": Path(os.environ.get("SCAFFOLD_TARGET_ROOT", ".")),
        }
        if os.environ.get("SCAFFOLD_CATALOG"):
            kwargs["catalog_path"] = Path(os.environ["SCAFFOLD_CATALOG"])
        if os.environ.get("SCAFFOLD_VARS"):
            try:
                kwargs["extras"] = parse_assignments(os.environ["SCAFFOLD_VARS"].split(","))
            except ValueError as exc:
                raise ValueError(f"SCAFFOLD_VARS: {exc}") from exc
        if os.environ.get("SCAFFOLD_RUN_HOOKS"):
            kwargs["run_hooks"] = os.environ["SCAFFOLD_RUN_HOOKS"].strip().lower() in _TRUE_VALUES
        if os.environ.get("SCAFFOLD_HOOK_TIMEOUT"):
            raw_timeout = os.environ["SCAFFOLD_HOOK_TIMEOUT"]
            try:
                kwargs["hook_timeout"] = int(raw_timeout)
            except ValueError as exc:
                raise ValueError(
                    f"SCAFFOLD_HOOK_TIMEOUT must be an integer, got '{raw_timeout}'"
                ) from exc
        return cls(**kwargs)


def parse_assignments(items: list[str]) -> dict[str, str]:
    """Parse ``KEY=VALUE`` strings into a mapping.

    Blank items are ignored.  The value may itself contain ``=``.

    Raises:
        ValueError: An item has no ``=`` or an empty key.
    """
    result: dict[str, str] = {}
    for item in items:
        if not item.strip():
            continue
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Expected KEY=VALUE, got '{item}'")
        result[key] = value
    return result
