"""Tests for template rendering and expression evaluation.

Covers:
- mustache-style interpolation against dotted paths
- FEEL-like expressions with typed results
- the diagnostic-string boundary for failing evaluations
"""

import pytest

from restbridge.errors import ExpressionError, TemplateRenderError
from restbridge.evaluation import (
    ExpressionEvaluator,
    TemplateRenderer,
    evaluate_safely,
    evaluate_value,
    render_safely,
)
from restbridge.models import MappingFormat

DATA = {
    "foo": "bar",
    "_request": {"id": 1001},
    "_user": {"id": 101},
    "form": {
        "age": 21,
        "firstname": "John",
        "lastname": "Doe",
        "items": ["a", "b"],
        "tags": [{"name": "first"}, {"name": "second"}],
        "active": True,
        "nothing": None,
        "address": {"city": "Oslo"},
    },
}


# =============================================================================
# Template Renderer
# =============================================================================


class TestTemplateRenderer:
    """Tests for TemplateRenderer."""

    def test_plain_text_unchanged(self, renderer: TemplateRenderer):
        """Text without delimiters renders as-is."""
        assert renderer.render("foo", DATA) == "foo"
        assert renderer.render("10", DATA) == "10"

    def test_dotted_path(self, renderer: TemplateRenderer):
        """Dotted paths resolve into nested mappings."""
        assert renderer.render("{{ _user.id }}", DATA) == "101"
        assert renderer.render("{{form.age}}", DATA) == "21"

    def test_multiple_tokens(self, renderer: TemplateRenderer):
        """Several tokens interpolate in one template."""
        assert renderer.render("{{ form.lastname }} {{ form.firstname }}", DATA) == "Doe John"

    def test_unresolved_path_is_empty(self, renderer: TemplateRenderer):
        """Missing paths, even deep ones, render as empty strings."""
        assert renderer.render("[{{ missing }}]", DATA) == "[]"
        assert renderer.render("[{{ missing.deep.path }}]", DATA) == "[]"
        assert renderer.render("[{{ form.unknown }}]", DATA) == "[]"

    def test_mapping_keys_win_over_attributes(self, renderer: TemplateRenderer):
        """A key named like a dict method resolves to the key."""
        assert renderer.render("{{ form.items }}", DATA) == '["a", "b"]'

    def test_list_index(self, renderer: TemplateRenderer):
        """Numeric path segments index into lists."""
        assert renderer.render("{{ form.tags.1.name }}", DATA) == "second"

    def test_value_formatting(self, renderer: TemplateRenderer):
        """None, booleans and structures render in JSON style."""
        assert renderer.render("{{ form.nothing }}", DATA) == ""
        assert renderer.render("{{ form.active }}", DATA) == "true"
        assert renderer.render("{{ form.address }}", DATA) == '{"city": "Oslo"}'

    def test_no_html_escaping(self, renderer: TemplateRenderer):
        """Values are interpolated verbatim."""
        assert renderer.render("{{ v }}", {"v": "<b>&</b>"}) == "<b>&</b>"

    def test_unicode(self, renderer: TemplateRenderer):
        """Multibyte values survive rendering."""
        assert renderer.render("{{ name }}", {"name": "Jörg 日本"}) == "Jörg 日本"

    def test_json_body_template(self, renderer: TemplateRenderer):
        """Typical JSON request body template."""
        body = renderer.render('{"id": {{ _request.id }}, "name": "{{ form.firstname }}"}', DATA)
        assert body == '{"id": 1001, "name": "John"}'

    def test_hyphenated_names(self, renderer: TemplateRenderer):
        """Single-name tags are key paths, hyphens included."""
        context = {"X-Total-Count": "7", "user": {"first-name": "Ann"}}
        assert renderer.render("{{X-Total-Count}}", context) == "7"
        assert renderer.render("{{ user.first-name }}", context) == "Ann"
        assert renderer.render("[{{ user.last-name }}]", context) == "[]"

    def test_triple_and_ampersand_tags(self, renderer: TemplateRenderer):
        """Triple-stash and ampersand tags interpolate unescaped."""
        context = {"x": "b&c", "form": {"name": "<Ann>"}}
        assert renderer.render('{"a": "{{{ x }}}"}', context) == '{"a": "b&c"}'
        assert renderer.render("{{& form.name }}", context) == "<Ann>"
        assert renderer.render("{{{form.name}}}", context) == "<Ann>"

    def test_brace_before_tag(self, renderer: TemplateRenderer):
        """A literal brace directly before a tag stays literal."""
        assert renderer.render("{{{ x }}, {{ y }}}", {"x": 1, "y": 2}) == "{1, 2}"

    def test_expressions_still_render(self, renderer: TemplateRenderer):
        """Tags that are not a single name are evaluated as expressions."""
        assert renderer.render("{{ form.age + 1 }}", DATA) == "22"

    def test_syntax_error_raises(self, renderer: TemplateRenderer):
        """Broken templates raise TemplateRenderError carrying the template."""
        with pytest.raises(TemplateRenderError) as exc_info:
            renderer.render("{{ form.age", DATA)
        assert exc_info.value.expression == "{{ form.age"
        assert exc_info.value.message

    def test_caller_context_not_modified(self, renderer: TemplateRenderer):
        """Rendering does not touch the context."""
        context = {"a": {"b": 1}}
        renderer.render("{{ a.b }}", context)
        assert context == {"a": {"b": 1}}


# =============================================================================
# Expression Evaluator
# =============================================================================


class TestExpressionEvaluator:
    """Tests for ExpressionEvaluator."""

    def test_identifier(self, evaluator: ExpressionEvaluator):
        """Bare identifiers resolve from the context."""
        assert evaluator.evaluate("foo", DATA) == "bar"

    def test_underscore_path(self, evaluator: ExpressionEvaluator):
        """Dotted paths starting with an underscore resolve."""
        assert evaluator.evaluate("_request.id", DATA) == 1001

    def test_numeric_literal(self, evaluator: ExpressionEvaluator):
        """Numeric literals keep their type."""
        assert evaluator.evaluate("10", DATA) == 10
        assert evaluator.evaluate("2.5", DATA) == 2.5

    def test_wrapped_expression_is_typed(self, evaluator: ExpressionEvaluator):
        """An expression wrapped in {{ }} evaluates to the typed value."""
        assert evaluator.evaluate("{{ form.age }}", DATA) == 21

    def test_string_literal_with_interpolation(self, evaluator: ExpressionEvaluator):
        """Quoted strings embedding {{ }} are rendered as templates."""
        result = evaluator.evaluate('"{{ form.firstname }} {{ form.lastname }}"', DATA)
        assert result == "John Doe"

    def test_plain_string_literal(self, evaluator: ExpressionEvaluator):
        """Quoted strings without delimiters are returned as-is."""
        assert evaluator.evaluate("'hello'", DATA) == "hello"

    def test_comparison_and_logic(self, evaluator: ExpressionEvaluator):
        """Comparisons and boolean operators return booleans."""
        assert evaluator.evaluate("form.age >= 18 and form.active", DATA) is True
        assert evaluator.evaluate("form.age < 18 or not form.active", DATA) is False

    def test_arithmetic(self, evaluator: ExpressionEvaluator):
        """Arithmetic works on resolved values."""
        assert evaluator.evaluate("form.age + 1", DATA) == 22

    def test_structured_value(self, evaluator: ExpressionEvaluator):
        """Paths to structures return the structure itself."""
        assert evaluator.evaluate("form.address", DATA) == {"city": "Oslo"}
        assert evaluator.evaluate("form.items", DATA) == ["a", "b"]

    def test_missing_name_is_none(self, evaluator: ExpressionEvaluator):
        """A missing top-level name evaluates to None."""
        assert evaluator.evaluate("unknown", DATA) is None

    def test_attribute_of_missing_name_raises(self, evaluator: ExpressionEvaluator):
        """Attribute access on a missing name raises ExpressionError."""
        with pytest.raises(ExpressionError) as exc_info:
            evaluator.evaluate("unknown.value", DATA)
        assert "unknown" in exc_info.value.message

    def test_syntax_error_raises(self, evaluator: ExpressionEvaluator):
        """Unparseable expressions raise ExpressionError."""
        with pytest.raises(ExpressionError) as exc_info:
            evaluator.evaluate("form.age +", DATA)
        assert exc_info.value.expression == "form.age +"

    def test_runtime_error_raises(self, evaluator: ExpressionEvaluator):
        """Runtime failures raise ExpressionError."""
        with pytest.raises(ExpressionError):
            evaluator.evaluate("form.age / 0", DATA)

    def test_empty_expression_raises(self, evaluator: ExpressionEvaluator):
        """Empty expressions are errors."""
        with pytest.raises(ExpressionError):
            evaluator.evaluate("   ", DATA)


# =============================================================================
# Diagnostic Boundary
# =============================================================================


class TestSafeEvaluation:
    """Failures degrade to "<expression>: <message>" strings."""

    def test_evaluate_safely_success(self, evaluator: ExpressionEvaluator):
        """Successful evaluations pass through unchanged."""
        assert evaluate_safely(evaluator, "form.age", DATA) == 21

    def test_evaluate_safely_failure(self, evaluator: ExpressionEvaluator):
        """Failing expressions produce the diagnostic string."""
        expression = "form.age +"
        try:
            evaluator.evaluate(expression, DATA)
        except ExpressionError as exc:
            expected = f"{expression}: {exc.message}"
        assert evaluate_safely(evaluator, expression, DATA) == expected

    def test_render_safely_failure(self, renderer: TemplateRenderer):
        """Failing templates produce the diagnostic string."""
        result = render_safely(renderer, "{{ form.age", DATA)
        assert result.startswith("{{ form.age: ")

    def test_evaluate_value_dispatch(self, renderer: TemplateRenderer, evaluator: ExpressionEvaluator):
        """evaluate_value picks the language from the format."""
        assert evaluate_value("{{ form.age }}", MappingFormat.MUSTACHE, DATA, renderer, evaluator) == "21"
        assert evaluate_value("{{ form.age }}", MappingFormat.FEEL, DATA, renderer, evaluator) == 21
