"""HTTP transport for connector requests.

Thin wrapper around httpx:
- TLS verification and timeouts come from a per-call CallOptions value
- ``form-data`` bodies are decoded from JSON and sent as flattened form fields
- redirects are followed
- 4xx and 5xx responses raise HttpResponseError carrying the response
- network failures (httpx.TransportError) propagate unchanged
- no retries; the caller owns any retry policy
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from restbridge.config import Config, config
from restbridge.errors import HttpResponseError
from restbridge.models import Credentials, RequestContext, ResponseContext

logger = logging.getLogger(__name__)

FORM_DATA = "form-data"


@dataclass(frozen=True)
class CallOptions:
    """Per-invocation transport options.

    Built once per connector call and threaded through every stage, never
    stored on a long-lived object.
    """

    verify: bool = True
    connect_timeout: float = 10.0  # seconds
    read_timeout: float = 30.0  # seconds

    @classmethod
    def for_call(cls, credentials: Optional[Credentials], settings: Optional[Config] = None) -> "CallOptions":
        """Options for one call: ``credentials.verify_certificate`` overrides the configured default."""
        settings = settings or config
        verify = settings.verify_ssl
        if credentials is not None and credentials.verify_certificate is not None:
            verify = credentials.verify_certificate
        return cls(
            verify=verify,
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
        )

    def get_timeout(self) -> httpx.Timeout:
        """Timeout for httpx."""
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=self.read_timeout,
            pool=self.connect_timeout,
        )


def form_fields(value: Any, prefix: str = "") -> Dict[str, str]:
    """Flatten a decoded JSON body into form fields, PHP style.

    Nested keys become ``a[b]`` and ``a[0]``, booleans ``1``/``0``;
    ``None`` values are left out.
    """
    if isinstance(value, dict):
        items = value.items()
    elif isinstance(value, list):
        items = enumerate(value)
    else:
        return {}

    fields: Dict[str, str] = {}
    for key, item in items:
        name = f"{prefix}[{key}]" if prefix else str(key)
        if isinstance(item, (dict, list)):
            fields.update(form_fields(item, name))
        elif item is not None:
            fields[name] = _scalar(item)
    return fields


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def _collect_headers(response: httpx.Response) -> Dict[str, List[str]]:
    """Group response headers by name, keeping the name as sent."""
    headers: Dict[str, List[str]] = {}
    for raw_name, raw_value in response.headers.raw:
        name = raw_name.decode("latin-1")
        headers.setdefault(name, []).append(raw_value.decode("latin-1"))
    return headers


class HTTPTransport:
    """Sends resolved requests with httpx."""

    def __init__(self, transport: Optional[httpx.BaseTransport] = None):
        """Initialize the transport.

        Args:
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        """
        self.transport = transport

    def _request_kwargs(self, request: RequestContext) -> dict:
        if request.body_type == FORM_DATA:
            return {"data": form_fields(json.loads(request.body)) if request.body else {}}
        if request.body:
            return {"content": request.body.encode("utf-8")}
        return {}

    def send(self, request: RequestContext, options: Optional[CallOptions] = None) -> ResponseContext:
        """Send a request.

        Args:
            request: Fully resolved request
            options: Per-call options (TLS verification, timeouts)

        Returns:
            ResponseContext with status, raw body and headers

        Raises:
            HttpResponseError: On 4xx and 5xx responses
            httpx.TransportError: On network failures
        """
        options = options or CallOptions()
        start_time = time.monotonic()
        with httpx.Client(
            verify=options.verify,
            timeout=options.get_timeout(),
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            response = client.request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                **self._request_kwargs(request),
            )
        elapsed = time.monotonic() - start_time

        result = ResponseContext(
            status=response.status_code,
            body=response.text,
            headers=_collect_headers(response),
        )
        logger.info(f"{request.method} {request.url} -> {result.status} ({elapsed:.3f}s)")

        if result.status >= 400:
            raise HttpResponseError(result)
        return result
