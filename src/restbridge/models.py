"""Connector data models.

Plain JSON-compatible configuration is validated into these Pydantic models
at the engine boundary. Field aliases keep the camelCase keys used by stored
connector configurations (``outboundConfig``, ``dataMapping``, ``queryString``).

The data context itself stays a plain ``dict``: it is arbitrary process data.
"""

import json
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

MUSTACHE_OPEN = "{{"


class MappingType(str, Enum):
    """Request stage an outbound mapping is applied before."""

    PARAM = "PARAM"
    HEADER = "HEADER"
    BODY = "BODY"


class MappingFormat(str, Enum):
    """Expression language used to evaluate a mapping value."""

    FEEL = "feel"
    MUSTACHE = "mustache"


class EndpointParam(BaseModel):
    """Header or query parameter declared on an endpoint."""

    key: str
    value: str = ""
    required: bool = False
    type: str = "string"


class EndpointDefinition(BaseModel):
    """Abstract endpoint: every string field is a template."""

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    url: str
    headers: List[EndpointParam] = Field(default_factory=list)
    params: List[EndpointParam] = Field(default_factory=list)
    body: str = ""
    body_type: Optional[str] = None


class _MappingRule(BaseModel):
    key: str
    value: str = ""
    format: Optional[MappingFormat] = None

    @property
    def resolved_format(self) -> MappingFormat:
        """Explicit format, else mustache when the value holds a ``{{`` delimiter, else feel."""
        if self.format is not None:
            return self.format
        if MUSTACHE_OPEN in self.value:
            return MappingFormat.MUSTACHE
        return MappingFormat.FEEL


class OutboundMappingRule(_MappingRule):
    """Computes one value injected into the request data context."""

    type: MappingType


class InboundMappingRule(_MappingRule):
    """Extracts one output variable from the response. Empty value maps everything."""

    pass


class Credentials(BaseModel):
    """Opaque credential bag; which fields matter depends on the auth type."""

    model_config = ConfigDict(extra="allow")

    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    url: Optional[str] = None
    verify_certificate: Optional[bool] = None


class DataSource(BaseModel):
    """A caller-defined connector: named endpoints plus authentication."""

    endpoints: Dict[str, EndpointDefinition] = Field(default_factory=dict)
    authtype: Optional[str] = None
    credentials: Optional[Credentials] = None


class ConnectorConfig(BaseModel):
    """Per-call configuration: which endpoint, and how data flows in and out."""

    model_config = ConfigDict(populate_by_name=True)

    endpoint: str
    outbound_config: Optional[List[OutboundMappingRule]] = Field(None, alias="outboundConfig")
    data_mapping: Optional[List[InboundMappingRule]] = Field(None, alias="dataMapping")
    query_string: Optional[str] = Field(None, alias="queryString")

    def outbound_for(self, stage: MappingType) -> List[OutboundMappingRule]:
        """Outbound rules applied before the given stage."""
        return [rule for rule in self.outbound_config or [] if rule.type == stage]


class RequestContext(BaseModel):
    """Fully resolved outbound request."""

    model_config = ConfigDict(frozen=True)

    method: str
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    body: str = ""
    body_type: Optional[str] = None

    def with_header(self, name: str, value: str) -> "RequestContext":
        """Copy of this request with one header set."""
        return self.model_copy(update={"headers": {**self.headers, name: value}})


class ResponseContext(BaseModel):
    """Raw HTTP response as received by the transport."""

    model_config = ConfigDict(frozen=True)

    status: int
    body: str = ""
    headers: Dict[str, List[str]] = Field(default_factory=dict)

    def is_json(self) -> bool:
        """True when the body is valid JSON. An empty body counts as JSON with no content."""
        if not self.body.strip():
            return True
        try:
            json.loads(self.body)
        except ValueError:
            return False
        return True

    def content(self) -> Any:
        """Parsed body, ``{}`` when empty."""
        if not self.body.strip():
            return {}
        return json.loads(self.body)

    def first_headers(self) -> Dict[str, str]:
        """First value of each response header."""
        return {name: values[0] for name, values in self.headers.items() if values}
