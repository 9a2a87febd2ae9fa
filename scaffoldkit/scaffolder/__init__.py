"""scaffoldkit scaffolder -- materialises template catalogs into projects.

Takes a template catalog and a ``ProjectContext`` and writes the rendered
files under the context's target root, never clobbering files that already
exist unless a template explicitly allows it.

Quick usage::

    from scaffoldkit.scaffolder import ProjectContext, Scaffolder, load_catalog
    from scaffoldkit.scaffolder import builtin_catalog_path

    catalog = load_catalog(builtin_catalog_path())
    context = ProjectContext(
        project_name="weather-cli",
        description="Fetches weather data.",
        target_root="/tmp/weather-cli",
    ).with_defaults(catalog.defaults)
    scaffolder = Scaffolder()
    manifest = scaffolder.apply(scaffolder.plan(catalog.templates, context))
"""

from scaffoldkit.scaffolder.catalog import (
    builtin_catalog_path,
    list_builtin_catalogs,
    load_catalog,
)
from scaffoldkit.scaffolder.errors import (
    CatalogError,
    InvalidPathError,
    InvalidTemplateError,
    ScaffoldError,
    UnresolvedPlaceholderError,
)
from scaffoldkit.scaffolder.generator import Scaffolder
from scaffoldkit.scaffolder.models import (
    ActionOutcome,
    Catalog,
    HookSpec,
    Manifest,
    PlannedEntry,
    ProjectContext,
    ScaffoldAction,
    TemplateSpec,
)
from scaffoldkit.scaffolder.templates import TemplateRenderer

__all__ = [
    "ActionOutcome",
    "Catalog",
    "CatalogError",
    "HookSpec",
    "InvalidPathError",
    "InvalidTemplateError",
    "Manifest",
    "PlannedEntry",
    "ProjectContext",
    "ScaffoldAction",
    "ScaffoldError",
    "Scaffolder",
    "TemplateRenderer",
    "TemplateSpec",
    "UnresolvedPlaceholderError",
    "builtin_catalog_path",
    "list_builtin_catalogs",
    "load_catalog",
]
