"""HTTP layer: URL composition and transport."""

from .transport import FORM_DATA, CallOptions, HTTPTransport
from .url import compose_url, parse_url, unparse_url

__all__ = [
    "FORM_DATA",
    "CallOptions",
    "HTTPTransport",
    "compose_url",
    "parse_url",
    "unparse_url",
]
