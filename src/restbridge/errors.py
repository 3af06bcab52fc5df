"""Error hierarchy for the connector engine.

Two families:
- Request errors (HttpResponseError, MalformedUrlError, ...) propagate to the caller.
- Evaluation errors (ExpressionError, TemplateRenderError) are raised by the
  evaluators and converted to inline diagnostic strings by
  restbridge.evaluation.safe, so a broken mapping never aborts a request.

Network failures raised by httpx are not wrapped.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from restbridge.models import ResponseContext


class RestBridgeError(Exception):
    """Base exception for connector engine errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.details = details or {}
        super().__init__(message)


class HttpResponseError(RestBridgeError):
    """The remote service answered with an error status.

    Carries the full response so callers can inspect status, body and headers.
    """

    def __init__(self, response: "ResponseContext", message: Optional[str] = None):
        self.response = response
        super().__init__(
            message or f"HTTP error {response.status}",
            {"status": response.status},
        )

    @property
    def status(self) -> int:
        return self.response.status


class MalformedUrlError(RestBridgeError):
    """The configured endpoint URL could not be parsed."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Malformed URL: {url}", {"url": url})


class AuthenticationError(RestBridgeError):
    """Token could not be obtained for the configured credentials."""

    pass


class UnknownEndpointError(RestBridgeError):
    """The connector config references an endpoint the data source does not define."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Endpoint not found: {name}", {"endpoint": name})


class EvaluationError(RestBridgeError):
    """Base for expression and template failures."""

    def __init__(self, expression: str, message: str):
        self.expression = expression
        self.message = message
        super().__init__(message, {"expression": expression})

    def diagnostic(self) -> str:
        """Inline form used in mapped output: ``<expression>: <message>``."""
        return f"{self.expression}: {self.message}"


class ExpressionError(EvaluationError):
    """A FEEL-like expression failed to parse or evaluate."""

    pass


class TemplateRenderError(EvaluationError):
    """A mustache-style template failed to compile or render."""

    pass
