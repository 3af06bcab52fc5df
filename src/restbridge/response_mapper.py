"""Response mapping: HTTP response -> named output variables.

Classification of JSON responses:
- 200: the body is the content
- 201..299: success with no content (``{}``)
- anything else: HttpResponseError

Non-JSON bodies short-circuit to ``{"response": <raw body>, "status": <status>}``.

Each inbound mapping rule names an output variable (``key``, itself a
template over the request data) and a value evaluated against the request
data merged with the response content and the first value of each response
header.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from restbridge.errors import HttpResponseError
from restbridge.evaluation import ExpressionEvaluator, TemplateRenderer, evaluate_value, render_safely
from restbridge.models import ConnectorConfig, EndpointDefinition, InboundMappingRule, ResponseContext

logger = logging.getLogger(__name__)

_COLLECTIONS_URL = re.compile(r"/api/[0-9.]+/collections", re.MULTILINE)
_MUSTACHE_TOKEN = re.compile(r"\{\{(.*?)\}\}")

COLLECTIONS_ROOT = "data.data"


def is_collections_url(url: str) -> bool:
    """True for collection APIs (``/api/<version>/collections``)."""
    return _COLLECTIONS_URL.search(url) is not None


def add_collections_root(value: str) -> str:
    """Prefix mapping paths with ``data.data`` for collection APIs.

    Collection records nest their payload one level deeper. A path that
    already mentions ``data`` anywhere is left alone (substring match).
    """

    def _rooted(path: str) -> str:
        if "data" in path:
            return path.strip()
        return f"{COLLECTIONS_ROOT}.{path.strip()}"

    if _MUSTACHE_TOKEN.search(value):
        return _MUSTACHE_TOKEN.sub(lambda match: "{{" + _rooted(match.group(1)) + "}}", value)
    return _rooted(value)


def get_path(data: Any, path: str, default: Any = None) -> Any:
    """Dotted-path lookup; an exact key match wins over traversal."""
    if isinstance(data, Mapping) and path in data:
        return data[path]
    current = data
    for segment in path.split("."):
        if isinstance(current, Mapping) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return default
    return current


def set_path(target: Dict[str, Any], path: str, value: Any) -> None:
    """Dotted-path assignment, creating intermediate dicts."""
    segments = path.split(".")
    current = target
    for segment in segments[:-1]:
        if not isinstance(current.get(segment), dict):
            current[segment] = {}
        current = current[segment]
    current[segments[-1]] = value


class ResponseMapper:
    """Maps responses into output variables."""

    def __init__(
        self,
        renderer: Optional[TemplateRenderer] = None,
        evaluator: Optional[ExpressionEvaluator] = None,
    ):
        self.renderer = renderer or TemplateRenderer()
        self.evaluator = evaluator or ExpressionEvaluator(self.renderer)

    def _content(self, response: ResponseContext) -> Any:
        if response.status == 200:
            return response.content()
        if 200 < response.status < 300:
            return {}
        raise HttpResponseError(response)

    def map(
        self,
        response: ResponseContext,
        data: Mapping,
        endpoint: EndpointDefinition,
        connector_config: ConnectorConfig,
    ) -> Dict[str, Any]:
        """Map a response using the connector's inbound rules.

        Args:
            response: Response from the transport
            data: Original request data context
            endpoint: Endpoint that was called (its URL selects collection handling)
            connector_config: Connector config holding the ``dataMapping`` rules

        Returns:
            Mapped output, always including ``status`` and ``response``

        Raises:
            HttpResponseError: If a JSON response has a non-2xx status.
        """
        if not response.is_json():
            return {"response": response.body, "status": response.status}

        content = self._content(response)
        mapped: Dict[str, Any] = {"status": response.status, "response": content}
        if connector_config.data_mapping is None:
            return mapped

        headers = response.first_headers()
        if isinstance(content, Mapping):
            merged = {**data, **content, **headers}
            response_data: Any = {**content, **headers}
        else:
            merged = {**data, **headers}
            response_data = content

        collections = is_collections_url(endpoint.url)
        for rule in connector_config.data_mapping:
            name = render_safely(self.renderer, rule.key, data)
            if rule.value.strip() == "":
                mapped[name] = response_data
                continue

            value = add_collections_root(rule.value) if collections else rule.value
            fmt = rule.model_copy(update={"value": value}).resolved_format
            mapped[name] = evaluate_value(value, fmt, merged, self.renderer, self.evaluator)

        logger.debug(f"Mapped {len(connector_config.data_mapping)} response variables")
        return mapped

    def map_basic(
        self,
        response: ResponseContext,
        data: Optional[Mapping] = None,
        data_mapping: Optional[List[InboundMappingRule]] = None,
    ) -> Dict[str, Any]:
        """Map a response with plain dotted-path rules.

        Used for token responses. Rule values are paths into the request
        data merged with the content (missing paths map to ``""``); rule keys
        are dotted output paths.
        """
        if not response.is_json():
            return {"response": response.body, "status": response.status}

        content = self._content(response)
        merged = {**(data or {}), **content} if isinstance(content, Mapping) else dict(data or {})
        mapped: Dict[str, Any] = {"status": response.status, "response": content}
        for rule in data_mapping or []:
            value = get_path(merged, rule.value, "") if rule.value else content
            set_path(mapped, rule.key, value)
        return mapped
