"""restbridge: configuration-driven outbound HTTP connectors.

Builds an HTTP request from an endpoint definition, outbound mapping rules
and a process-data context, sends it, and maps the response back into named
output variables using mustache-style templates or FEEL-like expressions.

Key components:
- ConnectorEngine: build -> authorize -> send -> map
- RequestBuilder / ResponseMapper: the two mapping directions
- TemplateRenderer / ExpressionEvaluator: the two expression languages
- AuthStrategy: BASIC, OAUTH2_BEARER, OAUTH2_PASSWORD
"""

from .auth import AuthStrategy, AuthType, get_auth_strategy
from .engine import ConnectorEngine
from .errors import (
    AuthenticationError,
    EvaluationError,
    ExpressionError,
    HttpResponseError,
    MalformedUrlError,
    RestBridgeError,
    TemplateRenderError,
    UnknownEndpointError,
)
from .evaluation import ExpressionEvaluator, TemplateRenderer
from .http import CallOptions, HTTPTransport
from .models import (
    ConnectorConfig,
    Credentials,
    DataSource,
    EndpointDefinition,
    EndpointParam,
    InboundMappingRule,
    MappingFormat,
    MappingType,
    OutboundMappingRule,
    RequestContext,
    ResponseContext,
)
from .request_builder import RequestBuilder
from .response_mapper import ResponseMapper

__version__ = "0.1.0"

__all__ = [
    # Engine
    "ConnectorEngine",
    "RequestBuilder",
    "ResponseMapper",
    # Evaluation
    "ExpressionEvaluator",
    "TemplateRenderer",
    # Auth
    "AuthStrategy",
    "AuthType",
    "get_auth_strategy",
    # HTTP
    "CallOptions",
    "HTTPTransport",
    # Models
    "ConnectorConfig",
    "Credentials",
    "DataSource",
    "EndpointDefinition",
    "EndpointParam",
    "InboundMappingRule",
    "MappingFormat",
    "MappingType",
    "OutboundMappingRule",
    "RequestContext",
    "ResponseContext",
    # Errors
    "AuthenticationError",
    "EvaluationError",
    "ExpressionError",
    "HttpResponseError",
    "MalformedUrlError",
    "RestBridgeError",
    "TemplateRenderError",
    "UnknownEndpointError",
]
