"""Connector engine: build -> authorize -> send -> map.

One ConnectorEngine wraps one data source. ``request`` is synchronous and
keeps no state between calls: per-call options (TLS verification, timeouts)
are derived from the credentials for every invocation and passed along.
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional, Union

from restbridge.auth import AuthStrategy, get_auth_strategy
from restbridge.config import Config, config
from restbridge.errors import UnknownEndpointError
from restbridge.evaluation import ExpressionEvaluator, TemplateRenderer
from restbridge.http.transport import CallOptions, HTTPTransport
from restbridge.models import ConnectorConfig, DataSource, EndpointDefinition, RequestContext
from restbridge.request_builder import RequestBuilder
from restbridge.response_mapper import ResponseMapper

logger = logging.getLogger(__name__)


class ConnectorEngine:
    """Executes connector calls against one data source.

    Example:
        engine = ConnectorEngine(DataSource(endpoints={"list": {...}}, authtype="BASIC", ...))
        output = engine.request({"form": {"id": 42}}, {"endpoint": "list", "dataMapping": [...]})
    """

    def __init__(
        self,
        data_source: Union[DataSource, Mapping],
        renderer: Optional[TemplateRenderer] = None,
        evaluator: Optional[ExpressionEvaluator] = None,
        transport: Optional[HTTPTransport] = None,
        settings: Optional[Config] = None,
    ):
        """Initialize the engine.

        Args:
            data_source: Endpoints, auth type tag and credentials
            renderer: Template renderer shared by every stage
            evaluator: Expression evaluator shared by every stage
            transport: HTTP transport
            settings: Configuration (base URL, timeouts, TLS default)
        """
        self.data_source = DataSource.model_validate(data_source)
        self.settings = settings or config
        self.renderer = renderer or TemplateRenderer()
        self.evaluator = evaluator or ExpressionEvaluator(self.renderer)
        self.transport = transport or HTTPTransport()
        self.builder = RequestBuilder(self.renderer, self.evaluator, self.settings)
        self.mapper = ResponseMapper(self.renderer, self.evaluator)
        self.auth: AuthStrategy = get_auth_strategy(self.data_source.authtype, mapper=self.mapper)

    def endpoint(self, name: str) -> EndpointDefinition:
        """Endpoint definition by name."""
        try:
            return self.data_source.endpoints[name]
        except KeyError:
            raise UnknownEndpointError(name) from None

    def call_options(self) -> CallOptions:
        """Fresh options for one invocation."""
        return CallOptions.for_call(self.data_source.credentials, self.settings)

    def prepare_request(
        self,
        data: Mapping,
        connector_config: Union[ConnectorConfig, Mapping],
        options: Optional[CallOptions] = None,
    ) -> RequestContext:
        """Build and authorize the request for a call, without sending it."""
        connector_config = ConnectorConfig.model_validate(connector_config)
        options = options or self.call_options()
        request = self.builder.build(data, self.endpoint(connector_config.endpoint), connector_config)
        return self.auth.apply(request, self.data_source.credentials, self.transport, options)

    def request(
        self,
        data: Optional[Mapping],
        connector_config: Union[ConnectorConfig, Mapping],
    ) -> Dict[str, Any]:
        """Send a request described by ``connector_config`` and map its response.

        Args:
            data: Process data context (not modified)
            connector_config: Endpoint name, outbound/inbound rules, query string

        Returns:
            Mapped output variables, including ``status`` and ``response``

        Raises:
            HttpResponseError: On 4xx and 5xx responses and non-2xx JSON responses
            MalformedUrlError: If the endpoint URL cannot be parsed
            UnknownEndpointError: If the endpoint is not defined
            httpx.TransportError: On network failures
        """
        data = dict(data or {})
        connector_config = ConnectorConfig.model_validate(connector_config)
        endpoint = self.endpoint(connector_config.endpoint)
        options = self.call_options()

        request = self.prepare_request(data, connector_config, options)
        logger.info(
            f"Calling endpoint '{connector_config.endpoint}' "
            f"({self.auth.auth_type.value}): {request.method} {request.url}"
        )
        response = self.transport.send(request, options)
        return self.mapper.map(response, data, endpoint, connector_config)
