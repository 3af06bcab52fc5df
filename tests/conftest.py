"""Test configuration and fixtures."""

from typing import Callable, List, Tuple

import httpx
import pytest

from restbridge.config import Config
from restbridge.evaluation import ExpressionEvaluator, TemplateRenderer
from restbridge.http.transport import HTTPTransport


@pytest.fixture
def settings() -> Config:
    """Configuration with a fixed application base URL."""
    cfg = Config()
    cfg.app_url = "http://app.test"
    cfg.verify_ssl = True
    return cfg


@pytest.fixture
def renderer() -> TemplateRenderer:
    """Fresh template renderer."""
    return TemplateRenderer()


@pytest.fixture
def evaluator(renderer: TemplateRenderer) -> ExpressionEvaluator:
    """Expression evaluator sharing the renderer fixture."""
    return ExpressionEvaluator(renderer)


@pytest.fixture
def make_transport() -> Callable[..., Tuple[HTTPTransport, List[httpx.Request]]]:
    """Build an HTTPTransport backed by httpx.MockTransport.

    Returns the transport and the list of requests it received.
    """

    def _make(responder: Callable[[httpx.Request], httpx.Response]):
        sent: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return responder(request)

        return HTTPTransport(httpx.MockTransport(handler)), sent

    return _make
