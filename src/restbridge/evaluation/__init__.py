"""Expression and template evaluation against a data context.

Key components:
- TemplateRenderer: mustache-style ``{{ path }}`` interpolation
- ExpressionEvaluator: FEEL-like expressions with typed results
- render_safely / evaluate_safely: convert evaluation errors to diagnostic strings
"""

from .expression import ExpressionEvaluator
from .safe import evaluate_safely, evaluate_value, render_safely
from .template import (
    DataContextEnvironment,
    TemplateRenderer,
    create_expression_environment,
    create_template_environment,
)

__all__ = [
    "DataContextEnvironment",
    "ExpressionEvaluator",
    "TemplateRenderer",
    "create_expression_environment",
    "create_template_environment",
    "evaluate_safely",
    "evaluate_value",
    "render_safely",
]
