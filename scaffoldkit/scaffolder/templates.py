"""Jinja2 placeholder rendering for project scaffolding.

Provides the TemplateRenderer class which substitutes ``{{ key }}``
placeholders in template content and destination patterns.  Before rendering,
the template source is parsed and every referenced variable is checked
against the supplied mapping so that a missing key is reported by name
instead of silently rendering as an empty string.
"""

from __future__ import annotations

from typing import Any

from jinja2 import (
    Environment,
    StrictUndefined,
    TemplateError,
    TemplateSyntaxError,
    UndefinedError,
    meta,
    nodes,
)

from scaffoldkit.utils import camel_case, pascal_case, slugify, snake_case

from .errors import InvalidTemplateError, UnresolvedPlaceholderError


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders catalog template strings with a project's variables.

    The environment is strict: any placeholder that is not supplied raises
    instead of rendering empty.  Trailing newlines are kept so that rendered
    files end exactly as their templates do.
    """

    def __init__(self) -> None:
        self.env = Environment(
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        # Register custom filters
        self.env.filters["slugify"] = slugify
        self.env.filters["pascal_case"] = pascal_case
        self.env.filters["snake_case"] = snake_case
        self.env.filters["camel_case"] = camel_case
        self.env.filters["toml_string"] = toml_string

    # -- Inspection --------------------------------------------------------

    def referenced_variables(self, source: str, *, template_name: str = "<string>") -> set[str]:
        """Return every top-level variable name *source* refers to.

        Names assigned inside the template (``{% set %}``, loop targets) and
        Jinja2 globals such as ``range`` are excluded.
        """
        try:
            ast = self.env.parse(source)
            undeclared = meta.find_undeclared_variables(ast)
        except TemplateSyntaxError as exc:
            # TemplateAssertionError (e.g. unknown filter) is a subclass
            raise InvalidTemplateError(template_name, _describe(exc)) from exc
        return undeclared - set(self.env.globals)

    def missing_variables(
        self,
        source: str,
        variables: dict[str, Any],
        *,
        template_name: str = "<string>",
    ) -> list[str]:
        """Return the sorted placeholder names in *source* absent from *variables*."""
        referenced = self.referenced_variables(source, template_name=template_name)
        return sorted(referenced - set(variables))

    # -- Rendering ---------------------------------------------------------

    def render_string(
        self,
        source: str,
        variables: dict[str, Any],
        *,
        template_name: str = "<string>",
    ) -> str:
        """Render an inline template string with the provided variables.

        Raises:
            UnresolvedPlaceholderError: A referenced key is not in *variables*.
            InvalidTemplateError: The source is not a valid template.
        """
        missing = self.missing_variables(source, variables, template_name=template_name)
        if missing:
            raise UnresolvedPlaceholderError(missing[0], template_name)

        try:
            template = self.env.from_string(source)
            return template.render(**variables)
        except UndefinedError as exc:
            # Attribute or item lookups on a supplied value, e.g. {{ extra.missing }}
            name = _unresolved_lookup(self.env.parse(source), variables)
            raise UnresolvedPlaceholderError(
                name or exc.message or "<unknown>", template_name
            ) from exc
        except TemplateError as exc:
            raise InvalidTemplateError(template_name, _describe(exc)) from exc


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _describe(exc: TemplateError) -> str:
    lineno = getattr(exc, "lineno", None)
    message = exc.message or exc.__class__.__name__
    return f"line {lineno}: {message}" if lineno else message


_MISSING = object()


def _unresolved_lookup(ast: nodes.Template, variables: dict[str, Any]) -> str | None:
    """Return the first ``a.b`` or ``a["b"]`` expression that does not resolve.

    Only chains of plain names, attributes and constant subscripts are
    checked; the result is the expression up to the failing lookup.
    """
    for node in ast.find_all((nodes.Getattr, nodes.Getitem)):
        chain = _lookup_chain(node)
        if chain is None or chain[0] not in variables:
            continue
        value = variables[chain[0]]
        expression = chain[0]
        for key in chain[1:]:
            if isinstance(key, str):
                expression = f"{expression}.{key}"
            else:
                expression = f"{expression}[{key!r}]"
            value = _lookup(value, key)
            if value is _MISSING:
                return expression
    return None


def _lookup_chain(node: nodes.Node) -> list[Any] | None:
    """Flatten ``Name(.attr|[const])*`` into ``[name, key, ...]``."""
    keys: list[Any] = []
    while True:
        if isinstance(node, nodes.Getattr):
            keys.append(node.attr)
        elif isinstance(node, nodes.Getitem) and isinstance(node.arg, nodes.Const):
            keys.append(node.arg.value)
        elif isinstance(node, nodes.Name):
            keys.append(node.name)
            return keys[::-1]
        else:
            return None
        node = node.node


def _lookup(obj: Any, key: Any) -> Any:
    """Resolve one lookup the way Jinja2 does: item first, then attribute."""
    try:
        return obj[key]
    except (TypeError, LookupError):
        pass
    if isinstance(key, str):
        try:
            return getattr(obj, key)
        except AttributeError:
            pass
    return _MISSING


_TOML_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}


def toml_string(value: Any) -> str:
    """Quote *value* as a TOML basic string, escaping backslashes and controls."""
    out: list[str] = []
    for char in str(value):
        if char in _TOML_ESCAPES:
            out.append(_TOML_ESCAPES[char])
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            out.append(f"\\u{ord(char):04X}")
        else:
            out.append(char)
    return '"' + "".join(out) + '"'
