"""Tests for TemplateRenderer placeholder handling and filters."""

from __future__ import annotations

import tomllib

import pytest

from scaffoldkit.scaffolder import (
    InvalidTemplateError,
    TemplateRenderer,
    UnresolvedPlaceholderError,
)


pytestmark = pytest.mark.unit


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


class TestRenderString:
    def test_compact_placeholders(self, renderer):
        out = renderer.render_string("# {{project_name}}\n", {"project_name": "weather-cli"})
        assert out == "# weather-cli\n"

    def test_spaced_placeholders(self, renderer):
        out = renderer.render_string("{{ a }}-{{  b  }}", {"a": "x", "b": "y"})
        assert out == "x-y"

    def test_keeps_trailing_newline(self, renderer):
        assert renderer.render_string("line\n", {}) == "line\n"

    def test_no_html_escaping(self, renderer):
        out = renderer.render_string("{{ text }}", {"text": "<a href='x'>&</a>"})
        assert out == "<a href='x'>&</a>"

    def test_raw_block_passes_through(self, renderer):
        source = "run: echo {% raw %}${{ github.sha }}{% endraw %}\n"
        assert renderer.render_string(source, {}) == "run: echo ${{ github.sha }}\n"

    def test_block_tags_trimmed(self, renderer):
        source = "a\n{% if flag %}\nb\n{% endif %}\nc\n"
        assert renderer.render_string(source, {"flag": "yes"}) == "a\nb\nc\n"
        assert renderer.render_string(source, {"flag": ""}) == "a\nc\n"

    def test_missing_key_raises_with_name(self, renderer):
        with pytest.raises(UnresolvedPlaceholderError) as exc_info:
            renderer.render_string("{{ unknown_key }}", {}, template_name="notes")
        assert exc_info.value.key == "unknown_key"
        assert exc_info.value.template == "notes"
        assert "unknown_key" in str(exc_info.value)

    def test_missing_key_inside_if_still_reported(self, renderer):
        with pytest.raises(UnresolvedPlaceholderError):
            renderer.render_string("{% if maybe %}x{% endif %}", {})

    def test_missing_attribute_raises(self, renderer):
        with pytest.raises(UnresolvedPlaceholderError) as exc_info:
            renderer.render_string("{{ meta.owner }}", {"meta": {}})
        assert exc_info.value.key == "meta.owner"

    @pytest.mark.parametrize(
        "source, variables, expected",
        [
            ("{{ meta['owner'] }}", {"meta": {}}, "meta.owner"),
            ("{{ meta.repo.url }}", {"meta": {"repo": {}}}, "meta.repo.url"),
            ("{{ items[3] }}", {"items": ["a"]}, "items[3]"),
            ("ok {{ meta.name }} then {{ meta.owner }}", {"meta": {"name": "x"}}, "meta.owner"),
        ],
    )
    def test_missing_lookup_reports_expression(self, renderer, source, variables, expected):
        with pytest.raises(UnresolvedPlaceholderError) as exc_info:
            renderer.render_string(source, variables, template_name="lookup")
        assert exc_info.value.key == expected
        assert exc_info.value.template == "lookup"

    def test_syntax_error(self, renderer):
        with pytest.raises(InvalidTemplateError, match="broken"):
            renderer.render_string("{% if %}", {}, template_name="broken")

    def test_unknown_filter(self, renderer):
        with pytest.raises(InvalidTemplateError):
            renderer.render_string("{{ name | no_such_filter }}", {"name": "x"})


class TestMissingVariables:
    def test_sorted_and_deduplicated(self, renderer):
        missing = renderer.missing_variables("{{ b }} {{ a }} {{ b }}", {})
        assert missing == ["a", "b"]

    def test_ignores_supplied(self, renderer):
        assert renderer.missing_variables("{{ a }}", {"a": "1"}) == []

    def test_ignores_locally_assigned(self, renderer):
        assert renderer.missing_variables("{% set x = 1 %}{{ x }}", {}) == []

    def test_ignores_jinja_globals(self, renderer):
        assert renderer.missing_variables("{% for i in range(2) %}{{ i }}{% endfor %}", {}) == []


class TestFilters:
    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("{{ name | slugify }}", "weather-cli"),
            ("{{ name | snake_case }}", "weather_cli"),
            ("{{ name | pascal_case }}", "WeatherCli"),
            ("{{ name | camel_case }}", "weatherCli"),
        ],
    )
    def test_naming_filters(self, renderer, expression, expected):
        assert renderer.render_string(expression, {"name": "Weather CLI"}) == expected

    @pytest.mark.parametrize(
        "value",
        [
            'plain',
            'A "quoted" tool',
            r"Reads C:\Users\q files",
            "two\nlines\tand\rreturns",
            "bell\x07 and del\x7f",
        ],
    )
    def test_toml_string_round_trips(self, renderer, value):
        rendered = renderer.render_string("key = {{ value | toml_string }}\n", {"value": value})
        assert tomllib.loads(rendered) == {"key": value}
