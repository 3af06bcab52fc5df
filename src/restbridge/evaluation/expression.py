"""FEEL-like expression evaluation.

Examples, against ``{"foo": "bar", "_request": {"id": 1001}, "form": {...}}``::

    foo                                         => "bar"
    _request.id                                 => 1001
    10                                          => 10
    form.age >= 18 and form.country == "NO"     => True
    {{ form.age }}                              => 21
    "{{ form.lastname }} {{ form.firstname }}"  => "John Doe"

Expressions compile through a sandboxed jinja2 expression parser. The
evaluator is a pure function of (expression, context): it raises
ExpressionError and leaves the diagnostic-string policy to the caller.
"""

import re
from collections.abc import Mapping
from typing import Any, Optional

from jinja2 import TemplateError

from restbridge.errors import ExpressionError, TemplateRenderError
from restbridge.evaluation.template import (
    DataContextEnvironment,
    TemplateRenderer,
    create_expression_environment,
)
from restbridge.models import MUSTACHE_OPEN

# A value wrapped as a whole in a single {{ ... }} pair
_WRAPPED = re.compile(r"^\s*\{\{(?P<inner>(?:(?!\{\{|\}\}).)*)\}\}\s*$", re.DOTALL)


class ExpressionEvaluator:
    """Evaluates FEEL-like expressions against a data context."""

    _FAILURES = (TemplateError, TypeError, ValueError, ArithmeticError, LookupError, AttributeError)

    def __init__(
        self,
        renderer: Optional[TemplateRenderer] = None,
        environment: Optional[DataContextEnvironment] = None,
    ):
        """Initialize the evaluator.

        Args:
            renderer: Renders string results that embed ``{{ }}`` interpolation
            environment: jinja2 environment expressions are compiled with
        """
        self.renderer = renderer or TemplateRenderer()
        self.environment = environment or create_expression_environment()

    def evaluate(self, expression: Any, context: Mapping) -> Any:
        """Evaluate ``expression`` against ``context``.

        Raises:
            ExpressionError: On parse errors or failing resolution.
        """
        source = "" if expression is None else str(expression)
        wrapped = _WRAPPED.match(source)
        body = (wrapped.group("inner") if wrapped else source).strip()
        if not body:
            raise ExpressionError(source, "empty expression")

        try:
            compiled = self.environment.compile_expression(body, undefined_to_none=True)
            value = compiled(dict(context))
        except self._FAILURES as exc:
            raise ExpressionError(source, str(exc)) from exc

        # Quoted strings may embed template interpolation
        if isinstance(value, str) and MUSTACHE_OPEN in value:
            try:
                return self.renderer.render(value, context)
            except TemplateRenderError as exc:
                raise ExpressionError(source, exc.message) from exc
        return value
