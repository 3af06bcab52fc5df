"""Request building from endpoint definitions and outbound mapping rules.

The request is assembled in three stages: PARAM (method and URL), HEADER
and BODY. Before each stage the outbound rules of that type are evaluated
against the caller's data and injected under their key into a copy of it.
Stages are isolated: every stage starts again from the caller's data, so a
value injected for one stage is never visible to another.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional

from restbridge.config import Config, config
from restbridge.evaluation import ExpressionEvaluator, TemplateRenderer, evaluate_value, render_safely
from restbridge.http.url import compose_url
from restbridge.models import ConnectorConfig, EndpointDefinition, MappingType, RequestContext

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Accept": "application/json"}


def header_value(value: Any) -> str:
    """String form of a computed header value."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


class RequestBuilder:
    """Builds RequestContext objects for endpoint calls."""

    def __init__(
        self,
        renderer: Optional[TemplateRenderer] = None,
        evaluator: Optional[ExpressionEvaluator] = None,
        settings: Optional[Config] = None,
    ):
        self.renderer = renderer or TemplateRenderer()
        self.evaluator = evaluator or ExpressionEvaluator(self.renderer)
        self.settings = settings or config

    def prepare_data(
        self,
        data: Mapping,
        connector_config: ConnectorConfig,
        stage: MappingType,
    ) -> Dict[str, Any]:
        """Data context for one stage.

        Every rule of the stage is evaluated against the caller's data (not
        against values injected by earlier rules) and stored under its key.
        """
        prepared = dict(data)
        for rule in connector_config.outbound_for(stage):
            prepared[rule.key] = evaluate_value(
                rule.value, rule.resolved_format, data, self.renderer, self.evaluator
            )
        return prepared

    def build_headers(
        self,
        endpoint: EndpointDefinition,
        connector_config: ConnectorConfig,
        data: Mapping,
    ) -> Dict[str, str]:
        """Request headers, rendered against HEADER-stage data.

        Without outbound rules every endpoint header is sent. With outbound
        rules only required endpoint headers are kept; a HEADER rule replaces
        the value of the endpoint header with the same key, or adds a header.
        """
        headers = dict(DEFAULT_HEADERS)

        if connector_config.outbound_config is None:
            for header in endpoint.headers:
                name = render_safely(self.renderer, header.key, data)
                headers[name] = render_safely(self.renderer, header.value, data)
            return headers

        rule_keys = [rule.key for rule in connector_config.outbound_for(MappingType.HEADER)]
        required = [header for header in endpoint.headers if header.required]
        required_keys = {header.key for header in required}

        for header in required:
            name = render_safely(self.renderer, header.key, data)
            if header.key in rule_keys:
                headers[name] = header_value(data.get(header.key))
            else:
                headers[name] = render_safely(self.renderer, header.value, data)

        for key in rule_keys:
            if key not in required_keys:
                headers[render_safely(self.renderer, key, data)] = header_value(data.get(key))

        return headers

    def build(
        self,
        data: Mapping,
        endpoint: EndpointDefinition,
        connector_config: ConnectorConfig,
    ) -> RequestContext:
        """Build the request for an endpoint call.

        Args:
            data: Caller's data context (left unmodified)
            endpoint: Endpoint definition
            connector_config: Connector config with outbound rules

        Returns:
            Resolved request (without authorization)

        Raises:
            MalformedUrlError: If the composed URL cannot be parsed.
        """
        param_data = self.prepare_data(data, connector_config, MappingType.PARAM)
        method = render_safely(self.renderer, endpoint.method, param_data).strip().upper()
        url = compose_url(endpoint, connector_config, param_data, self.renderer, self.settings)

        header_data = self.prepare_data(data, connector_config, MappingType.HEADER)
        headers = self.build_headers(endpoint, connector_config, header_data)

        body_data = self.prepare_data(data, connector_config, MappingType.BODY)
        body = render_safely(self.renderer, endpoint.body, body_data)
        body_type = None
        if endpoint.body_type is not None:
            body_type = render_safely(self.renderer, endpoint.body_type, body_data)

        logger.debug(f"Built request {method} {url} (body_type={body_type})")
        return RequestContext(method=method, url=url, headers=headers, body=body, body_type=body_type)
