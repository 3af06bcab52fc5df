"""Endpoint URL composition.

Builds the final request URL from an endpoint definition:
1. server-relative paths are resolved against the application base URL
2. the connector's ``queryString`` is appended
3. the URL is rendered as a template against the PARAM-stage data
4. the URL is parsed multibyte-safely
5. endpoint params are merged into the existing query
6. the URL is rebuilt from its components

Parsing percent-encodes every run of characters outside ``:/@?&=#`` before
splitting and percent-decodes each component afterwards, so unicode path and
query segments survive unchanged.
"""

import logging
import re
from collections.abc import Mapping
from typing import Dict, Optional
from urllib.parse import parse_qsl, quote_plus, unquote_plus, urlencode, urlsplit

from restbridge.config import Config, config
from restbridge.errors import MalformedUrlError
from restbridge.evaluation import TemplateRenderer, render_safely
from restbridge.models import ConnectorConfig, EndpointDefinition

logger = logging.getLogger(__name__)

_UNSAFE_RUN = re.compile(r"[^:/@?&=#]+")
_PORT = re.compile(r"^[0-9]*$")


def parse_url(url: str) -> Dict[str, str]:
    """Split a URL into its components, preserving multibyte characters.

    Returns only the components present in the URL, among
    ``scheme, user, pass, host, port, path, query, fragment``.

    Raises:
        MalformedUrlError: If the URL cannot be split into components.
    """
    encoded = _UNSAFE_RUN.sub(lambda match: quote_plus(match.group(0), safe=""), url)
    try:
        split = urlsplit(encoded)
    except ValueError as exc:
        raise MalformedUrlError(url) from exc

    parts: Dict[str, str] = {}
    if split.scheme:
        parts["scheme"] = split.scheme

    authority = encoded[len(split.scheme) + 1 :] if split.scheme else encoded
    if split.netloc or authority.startswith("//"):
        userinfo, at, hostport = split.netloc.rpartition("@")
        if at:
            user, colon, password = userinfo.partition(":")
            parts["user"] = user
            if colon:
                parts["pass"] = password
        host, colon, port = hostport.rpartition(":")
        if not colon or hostport.endswith("%5D"):
            host, port = hostport, ""
        elif not _PORT.match(port) or (port and int(port) > 65535):
            raise MalformedUrlError(url)
        if not host:
            raise MalformedUrlError(url)
        parts["host"] = host
        if port:
            parts["port"] = port

    if split.path:
        parts["path"] = split.path
    if split.query:
        parts["query"] = split.query
    if split.fragment:
        parts["fragment"] = split.fragment

    return {name: unquote_plus(value) for name, value in parts.items()}


def unparse_url(parts: Mapping) -> str:
    """Rebuild a URL from ``parse_url`` components, omitting absent ones."""
    scheme = f"{parts['scheme']}://" if parts.get("scheme") else ""
    host = parts.get("host", "")
    port = f":{parts['port']}" if parts.get("port") else ""
    user = parts.get("user", "")
    password = f":{parts['pass']}" if "pass" in parts else ""
    credentials = f"{user}{password}@" if user or password else ""
    path = parts.get("path", "")
    query = f"?{parts['query']}" if parts.get("query") else ""
    fragment = f"#{parts['fragment']}" if parts.get("fragment") else ""
    return f"{scheme}{credentials}{host}{port}{path}{query}{fragment}"


def compose_url(
    endpoint: EndpointDefinition,
    connector_config: ConnectorConfig,
    data: Mapping,
    renderer: TemplateRenderer,
    settings: Optional[Config] = None,
) -> str:
    """Compose the request URL for an endpoint call.

    Args:
        endpoint: Endpoint definition (url and params are templates)
        connector_config: Connector config, may carry an extra ``queryString``
        data: PARAM-stage data context
        renderer: Template renderer for the URL and params
        settings: Configuration providing the application base URL

    Returns:
        Fully composed URL

    Raises:
        MalformedUrlError: If the rendered URL cannot be parsed.
    """
    settings = settings or config
    url = endpoint.url
    if url.startswith("/"):
        url = settings.url(url)

    if connector_config.query_string is not None:
        separator = "&" if "?" in url else "?"
        url = f"{url}{separator}{connector_config.query_string}"

    url = render_safely(renderer, url, data)
    parts = parse_url(url)

    query = dict(parse_qsl(parts.get("query", ""), keep_blank_values=True))
    for param in endpoint.params:
        key = render_safely(renderer, param.key, data)
        value = render_safely(renderer, param.value, data)
        if value != "" or param.required:
            query[key] = value
    parts["query"] = urlencode(query)

    composed = unparse_url(parts)
    logger.debug(f"Composed URL: {composed}")
    return composed
