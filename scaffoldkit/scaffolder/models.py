"""Pydantic v2 models for the scaffolder.

Defines the template catalog entries, the per-run project context, planned
writes and the manifest returned after applying a plan.  Everything except
``Catalog`` is frozen: a context or manifest is never mutated once built.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from scaffoldkit.utils import slugify, snake_case


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ActionOutcome(str, Enum):
    """What happened to a single template when the plan was applied."""
    CREATED = "created"
    SKIPPED_EXISTING = "skipped_existing"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Catalog models
# ---------------------------------------------------------------------------

class TemplateSpec(BaseModel):
    """A single file template in a catalog."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Identifier, unique within a catalog")
    destination: str = Field(
        ..., description="Path relative to the target root; may contain placeholders"
    )
    content: str = Field(default="", description="Raw template text with {{ key }} placeholders")
    overwrite: bool = Field(default=False, description="Whether an existing file may be replaced")
    executable: bool = Field(default=False, description="Set the executable bits after writing")


class HookSpec(BaseModel):
    """An external command to run after a clean scaffold."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    command: list[str] | str = Field(..., description="Argument list or shell string")
    timeout: Optional[int] = Field(default=None, ge=1, description="Seconds; None uses the config default")

    @field_validator("command")
    @classmethod
    def _command_not_empty(cls, value: list[str] | str) -> list[str] | str:
        if not value or (isinstance(value, str) and not value.strip()):
            raise ValueError("hook command must not be empty")
        return value

    def display(self) -> str:
        """Return the command as a single printable string."""
        if isinstance(self.command, str):
            return self.command
        return " ".join(self.command)


class Catalog(BaseModel):
    """A named, ordered set of templates plus defaults and hooks."""

    name: str = Field(..., min_length=1)
    description: str = Field(default="")
    templates: list[TemplateSpec] = Field(..., min_length=1)
    defaults: dict[str, str] = Field(
        default_factory=dict,
        description="Substitution values used when the context does not supply them",
    )
    hooks: list[HookSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_template_names(self) -> "Catalog":
        seen: set[str] = set()
        for spec in self.templates:
            if spec.name in seen:
                raise ValueError(f"duplicate template name '{spec.name}'")
            seen.add(spec.name)
        return self

    def with_overwrite(self) -> "Catalog":
        """Return a copy in which every template may overwrite existing files."""
        templates = [spec.model_copy(update={"overwrite": True}) for spec in self.templates]
        return self.model_copy(update={"templates": templates})


# ---------------------------------------------------------------------------
# Project context
# ---------------------------------------------------------------------------

_PROJECT_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

# Keys that extras may not replace.
RESERVED_KEYS: frozenset[str] = frozenset({"project_name", "description", "target_root"})


class ProjectContext(BaseModel):
    """Inputs for one scaffolding invocation.  Read-only once created."""
    model_config = ConfigDict(frozen=True)

    project_name: str = Field(..., description="Filesystem-safe project name")
    description: str = Field(default="", description="Free-text project description")
    target_root: Path = Field(..., description="Directory the project is materialised into")
    extras: dict[str, str] = Field(
        default_factory=dict, description="Additional placeholder substitutions"
    )

    @field_validator("project_name")
    @classmethod
    def _filesystem_safe(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("project name must not be empty")
        if not _PROJECT_NAME_RE.match(value):
            raise ValueError(
                f"project name '{value}' may only contain letters, digits, '.', '_' and '-'"
            )
        return value

    @field_validator("target_root")
    @classmethod
    def _absolute_root(cls, value: Path) -> Path:
        return Path(value).expanduser().resolve()

    @field_validator("extras")
    @classmethod
    def _no_reserved_extras(cls, value: dict[str, str]) -> dict[str, str]:
        clashes = sorted(RESERVED_KEYS.intersection(value))
        if clashes:
            raise ValueError(f"extras may not override {', '.join(clashes)}")
        return value

    def variables(self) -> dict[str, str]:
        """Return the substitution mapping used to render templates.

        Derived names (``project_slug``, ``package_name``) come first so that
        extras can replace them; the core fields always win.
        """
        return {
            "project_slug": slugify(self.project_name),
            "package_name": snake_case(self.project_name),
            **self.extras,
            "project_name": self.project_name,
            "description": self.description,
            "target_root": str(self.target_root),
        }

    def with_defaults(self, defaults: dict[str, str]) -> "ProjectContext":
        """Return a new context whose extras fall back to *defaults*."""
        merged = {k: v for k, v in defaults.items() if k not in RESERVED_KEYS}
        merged.update(self.extras)
        return self.model_copy(update={"extras": merged})


# ---------------------------------------------------------------------------
# Plan & manifest
# ---------------------------------------------------------------------------

class PlannedEntry(BaseModel):
    """A template resolved to an absolute destination with rendered content."""
    model_config = ConfigDict(frozen=True)

    spec: TemplateSpec
    destination: Path
    content: str


class ScaffoldAction(BaseModel):
    """The result of materialising one planned entry."""
    model_config = ConfigDict(frozen=True)

    name: str
    destination: Path
    outcome: ActionOutcome
    error: Optional[str] = None


class Manifest(BaseModel):
    """Ordered record of what ``Scaffolder.apply`` did, one action per entry."""
    model_config = ConfigDict(frozen=True)

    actions: tuple[ScaffoldAction, ...] = ()
    created_directories: tuple[Path, ...] = ()

    def _with_outcome(self, outcome: ActionOutcome) -> list[ScaffoldAction]:
        return [a for a in self.actions if a.outcome is outcome]

    @property
    def created(self) -> list[ScaffoldAction]:
        return self._with_outcome(ActionOutcome.CREATED)

    @property
    def skipped(self) -> list[ScaffoldAction]:
        return self._with_outcome(ActionOutcome.SKIPPED_EXISTING)

    @property
    def failed(self) -> list[ScaffoldAction]:
        return self._with_outcome(ActionOutcome.FAILED)

    @property
    def ok(self) -> bool:
        """``True`` when no entry failed."""
        return not self.failed

    def counts(self) -> dict[str, int]:
        """Return ``{outcome value: count}`` for every outcome, zeros included."""
        return {
            outcome.value: len(self._with_outcome(outcome)) for outcome in ActionOutcome
        }
