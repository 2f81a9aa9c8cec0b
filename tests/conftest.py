import json

import httpx
import pytest

from apiprobe.client import ProbeClient
from apiprobe.models.scan import ScanOptions, Target

BASE_URL = "http://api.test"


def body_of(request: httpx.Request):
    """Decoded JSON body of a captured request, or None."""
    if not request.content:
        return None
    return json.loads(request.content)


@pytest.fixture
def make_client():
    """Build a ProbeClient whose transport is the given handler."""
    def _make(handler) -> ProbeClient:
        return ProbeClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    return _make


@pytest.fixture
def options():
    return ScanOptions(request_timeout_ms=1000, debug_path_timeout_ms=500)


@pytest.fixture
def target():
    def _target(path: str, token: str | None = None) -> Target:
        return Target(base_url=BASE_URL, endpoint_path=path, auth_token=token)
    return _target
