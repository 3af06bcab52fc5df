"""Mustache-style template rendering.

``{{ path }}`` tokens are looked up as dotted paths in the data context.
Rendering is backed by a sandboxed jinja2 environment tuned to behave like a
logic-less mustache renderer:
- a tag holding a single name (``{{ X-Total-Count }}``, ``{{{ body }}}``,
  ``{{& body }}``) is a key path: split on ``.``, looked up key by key
- mapping keys win over Python attributes (``form.items`` is the ``items`` key)
- unresolved paths and ``None`` render as an empty string
- dicts and lists render as JSON, booleans as ``true``/``false``
- no HTML escaping, so triple and ampersand tags are plain interpolation
"""

import json
import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Any, Optional

from jinja2 import ChainableUndefined, Template, TemplateError, Undefined, pass_context
from jinja2.runtime import Context
from jinja2.sandbox import SandboxedEnvironment

from restbridge.errors import TemplateRenderError

# {{{ name }}}, {{& name }} or {{ name }} where name has no whitespace or braces
_MUSTACHE_TAG = re.compile(
    r"\{\{\{\s*(?P<raw>[^\s{}]+)\s*\}\}\}"
    r"|\{\{(?:\s*&)?\s*(?P<name>[^\s{}#^/!>=&'\"][^\s{}]*)\s*\}\}"
)

PATH_LOOKUP = "__rb_path__"


def resolve_path(context: Mapping, path: str) -> Any:
    """Walk a dotted key path through mappings and list indices; None when unresolved."""
    current: Any = context
    for segment in path.split("."):
        if isinstance(current, Mapping) and segment in current:
            current = current[segment]
        elif isinstance(current, (list, tuple)) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return None
    return current


@pass_context
def _lookup(context: Context, path: str) -> Any:
    return resolve_path(context.get_all(), path)


def to_jinja(source: str) -> str:
    """Rewrite single-name mustache tags into key path lookups.

    Other ``{{ ... }}`` tags are left for jinja2. Literal ``{`` directly in
    front of a tag is emitted as a string so jinja2 does not read it as part
    of the tag.
    """
    parts = []
    position = 0
    for match in _MUSTACHE_TAG.finditer(source):
        text = source[position : match.start()]
        literal = text.rstrip("{")
        parts.append(literal)
        if len(literal) < len(text):
            parts.append("{{ %s }}" % json.dumps(text[len(literal) :]))
        path = match.group("raw") or match.group("name")
        parts.append("{{ %s(%s) }}" % (PATH_LOOKUP, json.dumps(path)))
        position = match.end()
    parts.append(source[position:])
    return "".join(parts)


class DataContextEnvironment(SandboxedEnvironment):
    """Sandboxed environment that resolves dotted paths against mapping keys first."""

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, Mapping):
            try:
                return obj[attribute]
            except KeyError:
                return self.undefined(obj=obj, name=attribute)
        return super().getattr(obj, attribute)


def _finalize(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return value


def create_template_environment(undefined: type = ChainableUndefined) -> DataContextEnvironment:
    """Environment used for ``{{ path }}`` interpolation."""
    return DataContextEnvironment(
        undefined=undefined,
        finalize=_finalize,
        autoescape=False,
        keep_trailing_newline=True,
    )


def create_expression_environment() -> DataContextEnvironment:
    """Environment used to compile FEEL-like expressions.

    Missing names evaluate to None, but attribute access on a missing
    name raises.
    """
    return DataContextEnvironment(undefined=Undefined, autoescape=False)


class TemplateRenderer:
    """Renders mustache-style templates against a data context."""

    # Render failures surfaced as TemplateRenderError
    _FAILURES = (TemplateError, TypeError, ValueError, ArithmeticError, LookupError, AttributeError)

    def __init__(self, environment: Optional[DataContextEnvironment] = None, cache_size: int = 256):
        self.environment = environment or create_template_environment()
        self._compile = lru_cache(maxsize=cache_size)(self.compile)

    def compile(self, source: str) -> Template:
        """Compile a mustache-style template into a jinja2 template."""
        return self.environment.from_string(to_jinja(source), globals={PATH_LOOKUP: _lookup})

    def render(self, template: Any, context: Mapping) -> str:
        """Render ``template`` against ``context``.

        Raises:
            TemplateRenderError: If the template does not compile or rendering fails.
        """
        source = "" if template is None else str(template)
        if "{" not in source:
            return source
        try:
            return self._compile(source).render(dict(context))
        except self._FAILURES as exc:
            raise TemplateRenderError(source, str(exc)) from exc
