"""Boundary where evaluation errors become inline diagnostic strings.

A broken mapping must degrade visibly in the output (``"<expression>: <message>"``)
instead of aborting the whole request. The evaluators raise typed errors;
only these helpers absorb them.
"""

import logging
from collections.abc import Mapping
from typing import Any

from restbridge.errors import EvaluationError
from restbridge.evaluation.expression import ExpressionEvaluator
from restbridge.evaluation.template import TemplateRenderer
from restbridge.models import MappingFormat

logger = logging.getLogger(__name__)


def render_safely(renderer: TemplateRenderer, template: Any, context: Mapping) -> str:
    """Render a template, returning the diagnostic string on failure."""
    try:
        return renderer.render(template, context)
    except EvaluationError as exc:
        logger.warning(f"Template degraded to diagnostic: {exc.diagnostic()}")
        return exc.diagnostic()


def evaluate_safely(evaluator: ExpressionEvaluator, expression: Any, context: Mapping) -> Any:
    """Evaluate an expression, returning the diagnostic string on failure."""
    try:
        return evaluator.evaluate(expression, context)
    except EvaluationError as exc:
        logger.warning(f"Expression degraded to diagnostic: {exc.diagnostic()}")
        return exc.diagnostic()


def evaluate_value(
    value: str,
    fmt: MappingFormat,
    context: Mapping,
    renderer: TemplateRenderer,
    evaluator: ExpressionEvaluator,
) -> Any:
    """Evaluate a mapping value in the given format."""
    if fmt == MappingFormat.FEEL:
        return evaluate_safely(evaluator, value, context)
    return render_safely(renderer, value, context)
