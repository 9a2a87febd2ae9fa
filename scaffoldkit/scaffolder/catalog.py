"""Template catalog loading.

A catalog lives in a directory containing a ``catalog.yaml`` manifest and the
template source files it references::

    name: python-project
    description: Minimal Python package layout
    defaults:
      python_version: "3.12"
    templates:
      - name: readme
        source: README.md.j2
        destination: README.md
      - name: package-init
        source: package_init.py.j2
        destination: "src/{{ package_name }}/__init__.py"
    hooks:
      - name: git-init
        command: [git, init]

Each template supplies either ``source`` (a file relative to the manifest) or
inline ``content``.  Template order in the manifest is the catalog order.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .errors import CatalogError
from .models import Catalog


CATALOG_FILENAME = "catalog.yaml"

_BUILTIN_DIR = Path(__file__).parent / "catalogs"

DEFAULT_CATALOG = "python-project"


def builtin_catalog_path(name: str = DEFAULT_CATALOG) -> Path:
    """Return the directory of a catalog shipped with scaffoldkit."""
    path = _BUILTIN_DIR / name
    if not (path / CATALOG_FILENAME).is_file():
        available = ", ".join(list_builtin_catalogs()) or "none"
        raise CatalogError(path, f"no built-in catalog named '{name}' (available: {available})")
    return path


def list_builtin_catalogs() -> list[str]:
    """Return the sorted names of the built-in catalogs."""
    if not _BUILTIN_DIR.is_dir():
        return []
    return sorted(
        p.name for p in _BUILTIN_DIR.iterdir() if (p / CATALOG_FILENAME).is_file()
    )


def load_catalog(path: str | Path) -> Catalog:
    """Load a catalog from a directory or directly from its ``catalog.yaml``.

    Raises:
        CatalogError: The manifest or a referenced source file is missing or
            unreadable, the YAML is malformed, or the data does not describe
            a valid catalog.
    """
    manifest_path = Path(path)
    if manifest_path.is_dir():
        manifest_path = manifest_path / CATALOG_FILENAME
    if not manifest_path.is_file():
        raise CatalogError(manifest_path, "catalog manifest not found")

    try:
        raw = yaml.safe_load(manifest_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise CatalogError(manifest_path, f"malformed YAML: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise CatalogError(manifest_path, str(exc)) from exc

    if not isinstance(raw, dict):
        raise CatalogError(manifest_path, "top level must be a mapping")

    templates = _section(raw, "templates", list, manifest_path)
    defaults = _section(raw, "defaults", dict, manifest_path)
    hooks = _section(raw, "hooks", list, manifest_path)

    base_dir = manifest_path.parent
    data = dict(raw)
    data.setdefault("name", base_dir.name)
    data["templates"] = [
        _load_template_entry(entry, base_dir, manifest_path) for entry in templates
    ]
    data["defaults"] = {
        str(k): "" if v is None else str(v) for k, v in defaults.items()
    }
    data["hooks"] = hooks

    try:
        return Catalog.model_validate(data)
    except ValidationError as exc:
        raise CatalogError(manifest_path, _first_error(exc)) from exc


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _section(raw: dict[str, Any], key: str, kind: type, manifest_path: Path) -> Any:
    """Return ``raw[key]`` (empty when absent or null), checking its YAML shape."""
    value = raw.get(key)
    if value is None:
        return kind()
    if not isinstance(value, kind):
        expected = "a mapping" if kind is dict else "a list"
        raise CatalogError(
            manifest_path, f"'{key}' must be {expected}, got {type(value).__name__}"
        )
    return value


def _load_template_entry(
    entry: Any, base_dir: Path, manifest_path: Path
) -> dict[str, Any]:
    """Turn one manifest entry into ``TemplateSpec`` fields, reading its source."""
    if not isinstance(entry, dict):
        raise CatalogError(manifest_path, f"template entry must be a mapping, got {entry!r}")

    fields = dict(entry)
    source = fields.pop("source", None)
    name = fields.get("name", "?")

    if source is not None and "content" in fields:
        raise CatalogError(
            manifest_path, f"template '{name}' sets both 'source' and 'content'"
        )
    if source is not None:
        source_path = base_dir / str(source)
        try:
            fields["content"] = source_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise CatalogError(
                manifest_path, f"template '{name}' source {source_path}: {exc}"
            ) from exc
    elif fields.get("content") is None:
        fields["content"] = ""

    return fields


def _first_error(exc: ValidationError) -> str:
    """Return a short ``location: message`` description of a validation error."""
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message
