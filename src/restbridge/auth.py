"""Authentication strategies for connector requests.

Each data source names its authentication with a type tag:
- BASIC: ``Authorization: Basic base64(username:password)``
- OAUTH2_BEARER: ``Authorization: Bearer <token>``
- OAUTH2_PASSWORD: fetch a token with the password grant, then send it as a bearer token

Unknown or missing tags resolve to NoAuth (requests go out unchanged).
Strategies are stateless; credentials and call options are passed per call.
"""

import base64
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Type

from restbridge.errors import AuthenticationError
from restbridge.http.transport import FORM_DATA, CallOptions, HTTPTransport
from restbridge.models import Credentials, RequestContext
from restbridge.response_mapper import ResponseMapper

logger = logging.getLogger(__name__)

AUTHORIZATION = "Authorization"


class AuthType(str, Enum):
    """Authentication type tag of a data source."""

    NONE = "NONE"
    BASIC = "BASIC"
    OAUTH2_BEARER = "OAUTH2_BEARER"
    OAUTH2_PASSWORD = "OAUTH2_PASSWORD"


@dataclass
class AuthStrategy:
    """Base authentication strategy.

    Subclasses override ``authorize`` to compute the Authorization header.
    """

    auth_type: AuthType = AuthType.NONE

    def authorize(
        self,
        credentials: Credentials,
        transport: HTTPTransport,
        options: CallOptions,
    ) -> Optional[str]:
        """Authorization header value, or None to leave the request unchanged."""
        return None

    def apply(
        self,
        request: RequestContext,
        credentials: Optional[Credentials],
        transport: HTTPTransport,
        options: CallOptions,
    ) -> RequestContext:
        """Return the request with authorization applied.

        Without credentials the request passes through unchanged.
        """
        if credentials is None:
            return request
        value = self.authorize(credentials, transport, options)
        if value is None:
            return request
        return request.with_header(AUTHORIZATION, value)


@dataclass
class NoAuth(AuthStrategy):
    """No authentication."""

    auth_type: AuthType = field(default=AuthType.NONE, init=False)


@dataclass
class BasicAuth(AuthStrategy):
    """Basic authentication (username/password)."""

    auth_type: AuthType = field(default=AuthType.BASIC, init=False)

    def authorize(self, credentials, transport, options):
        pair = f"{credentials.username or ''}:{credentials.password or ''}"
        return "Basic " + base64.b64encode(pair.encode("utf-8")).decode("ascii")


@dataclass
class BearerAuth(AuthStrategy):
    """Static OAuth2 bearer token."""

    auth_type: AuthType = field(default=AuthType.OAUTH2_BEARER, init=False)

    def authorize(self, credentials, transport, options):
        return f"Bearer {credentials.token or ''}"


@dataclass
class PasswordGrantAuth(AuthStrategy):
    """OAuth2 resource owner password grant.

    Performs a nested POST to ``credentials.url`` and sends the returned
    ``access_token`` as a bearer token. The token is not cached.
    """

    auth_type: AuthType = field(default=AuthType.OAUTH2_PASSWORD, init=False)
    mapper: Optional[ResponseMapper] = None

    def token_request(self, credentials: Credentials) -> RequestContext:
        """Token request for the password grant."""
        form = {
            "username": credentials.username,
            "password": credentials.password,
            "grant_type": "password",
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
        }
        return RequestContext(
            method="POST",
            url=credentials.url or "",
            headers={"Accept": "application/json"},
            body=json.dumps(form),
            body_type=FORM_DATA,
        )

    def authorize(self, credentials, transport, options):
        mapper = self.mapper or ResponseMapper()
        logger.info(f"Requesting password grant token from {credentials.url}")
        token = mapper.map_basic(transport.send(self.token_request(credentials), options))
        response = token.get("response")
        if not isinstance(response, dict) or "access_token" not in response:
            raise AuthenticationError(
                f"Token endpoint did not return an access_token (status {token.get('status')})",
                {"url": credentials.url},
            )
        return f"Bearer {response['access_token']}"


_STRATEGIES: Dict[AuthType, Type[AuthStrategy]] = {
    AuthType.BASIC: BasicAuth,
    AuthType.OAUTH2_BEARER: BearerAuth,
    AuthType.OAUTH2_PASSWORD: PasswordGrantAuth,
}


def resolve_auth_type(tag: Optional[str]) -> AuthType:
    """Map a type tag to AuthType; unknown tags resolve to NONE."""
    try:
        return AuthType(tag)
    except ValueError:
        return AuthType.NONE


def get_auth_strategy(tag: Optional[str], mapper: Optional[ResponseMapper] = None) -> AuthStrategy:
    """Strategy for a data source's type tag."""
    auth_type = resolve_auth_type(tag)
    if auth_type == AuthType.OAUTH2_PASSWORD:
        return PasswordGrantAuth(mapper=mapper)
    return _STRATEGIES.get(auth_type, NoAuth)()
