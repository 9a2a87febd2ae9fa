"""Shared pytest fixtures for the scaffoldkit test suite.

Provides reusable fixtures for:
- Temporary target directories
- Sample project contexts and template catalogs
- An on-disk catalog directory (catalog.yaml + template sources)
- A pre-populated project with user-edited files
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from scaffoldkit.scaffolder import ProjectContext, Scaffolder, TemplateSpec


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Empty target directory for a scaffolded project (auto-cleanup)."""
    project_dir = tmp_path / "weather-cli"
    project_dir.mkdir()
    yield project_dir


# ---------------------------------------------------------------------------
# Contexts
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_context(tmp_project_dir: Path) -> ProjectContext:
    """Context for the ``weather-cli`` example project."""
    return ProjectContext(
        project_name="weather-cli",
        description="Fetches weather data.",
        target_root=tmp_project_dir,
    )


# ---------------------------------------------------------------------------
# Catalogs
# ---------------------------------------------------------------------------

@pytest.fixture
def readme_spec() -> TemplateSpec:
    """The single-readme template used throughout the examples."""
    return TemplateSpec(
        name="readme",
        destination="README.md",
        content="# {{project_name}}\n{{description}}\n",
    )


@pytest.fixture
def sample_catalog(readme_spec: TemplateSpec) -> list[TemplateSpec]:
    """A three-entry catalog touching nested and templated destinations."""
    return [
        readme_spec,
        TemplateSpec(
            name="package-init",
            destination="src/{{ package_name }}/__init__.py",
            content='"""{{ project_name }} package."""\n',
        ),
        TemplateSpec(
            name="ci-workflow",
            destination=".github/workflows/ci.yml",
            content="name: {{ project_slug }} CI\n",
        ),
    ]


@pytest.fixture
def scaffolder() -> Scaffolder:
    return Scaffolder()


@pytest.fixture
def catalog_dir(tmp_path: Path) -> Path:
    """A catalog on disk with one source-file template, one inline template and a hook."""
    directory = tmp_path / "catalogs" / "mini"
    directory.mkdir(parents=True)
    (directory / "README.md.j2").write_text(
        "# {{ project_name }}\n\n{{ description }}\n\nLicense: {{ license }}\n",
        encoding="utf-8",
    )
    (directory / "catalog.yaml").write_text(
        textwrap.dedent(
            """\
            name: mini
            description: Minimal test catalog
            defaults:
              license: MIT
            templates:
              - name: readme
                source: README.md.j2
                destination: README.md
              - name: setup-script
                destination: scripts/setup.sh
                content: |
                  #!/bin/sh
                  echo "setting up {{ project_slug }}"
                executable: true
              - name: version-file
                destination: VERSION
                content: "0.1.0\\n"
                overwrite: true
            hooks:
              - name: say-hello
                command: [echo, hello]
            """
        ),
        encoding="utf-8",
    )
    return directory


# ---------------------------------------------------------------------------
# Pre-existing project fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def user_edited_project(tmp_project_dir: Path) -> Path:
    """A target directory where the user already wrote some of the files."""
    files: dict[str, str] = {
        "README.md": "# My hand-written readme\n",
        ".gitignore": "*.secret\n",
    }
    for rel_path, content in files.items():
        file_path = tmp_project_dir / rel_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
    return tmp_project_dir
