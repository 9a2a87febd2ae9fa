"""Reporting layer: presents scaffold plans and manifests to the operator."""

from scaffoldkit.reporter.manifest_report import (
    manifest_table,
    manifest_to_dict,
    plan_table,
    print_manifest,
    summarize,
)

__all__ = [
    "manifest_table",
    "manifest_to_dict",
    "plan_table",
    "print_manifest",
    "summarize",
]
