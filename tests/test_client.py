import httpx

from apiprobe.client import ProbeClient
from apiprobe.models.scan import ACCEPT_ALL, ACCEPT_BELOW_500, ProbeRequestSpec, ProbeResponse, TransportFailure
from conftest import body_of


async def test_json_response_is_parsed(make_client):
    client = make_client(lambda request: httpx.Response(200, json={"token": "x"}))
    resp = await client.send(ProbeRequestSpec(url="http://api.test/login"))
    assert isinstance(resp, ProbeResponse)
    assert resp.status_code == 200
    assert resp.body == {"token": "x"}


async def test_text_response_stays_text(make_client):
    client = make_client(lambda request: httpx.Response(200, text="hello"))
    resp = await client.send(ProbeRequestSpec(url="http://api.test/"))
    assert resp.body == "hello"


async def test_json_looking_text_with_bad_json_stays_text(make_client):
    client = make_client(lambda request: httpx.Response(200, text="{not json"))
    resp = await client.send(ProbeRequestSpec(url="http://api.test/"))
    assert resp.body == "{not json"


async def test_error_status_is_data_when_policy_accepts_it(make_client):
    client = make_client(lambda request: httpx.Response(404, json={}))
    resp = await client.send(ProbeRequestSpec(url="http://api.test/", accepted_status=ACCEPT_BELOW_500))
    assert isinstance(resp, ProbeResponse)
    assert resp.status_code == 404


async def test_rejected_status_becomes_status_failure(make_client):
    client = make_client(lambda request: httpx.Response(503))
    resp = await client.send(ProbeRequestSpec(url="http://api.test/", accepted_status=ACCEPT_BELOW_500))
    assert isinstance(resp, TransportFailure)
    assert resp.kind == "status"
    assert resp.status_code == 503


async def test_timeout_is_a_failure_value(make_client):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    resp = await make_client(handler).send(ProbeRequestSpec(url="http://api.test/", timeout_ms=250))
    assert isinstance(resp, TransportFailure)
    assert resp.kind == "timeout"
    assert "250ms" in resp.message


async def test_connect_errors_are_classified(make_client):
    messages = {
        "[Errno -2] Name or service not known": "dns",
        "[SSL: CERTIFICATE_VERIFY_FAILED] certificate verify failed": "tls",
        "[Errno 111] Connection refused": "connection",
    }
    for message, kind in messages.items():
        def handler(request, message=message):
            raise httpx.ConnectError(message, request=request)

        resp = await make_client(handler).send(ProbeRequestSpec(url="http://api.test/"))
        assert isinstance(resp, TransportFailure)
        assert resp.kind == kind


async def test_other_transport_errors(make_client):
    def handler(request):
        raise httpx.RemoteProtocolError("server disconnected", request=request)

    resp = await make_client(handler).send(ProbeRequestSpec(url="http://api.test/"))
    assert isinstance(resp, TransportFailure)
    assert resp.kind == "other"


async def test_request_carries_headers_json_body_and_timeout(make_client):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200)

    client = make_client(handler)
    await client.send(ProbeRequestSpec(
        method="post",
        url="http://api.test/login",
        headers={"Authorization": "Bearer abc", "User-Agent": "custom"},
        body={"username": "admin"},
        timeout_ms=1500,
        accepted_status=ACCEPT_ALL,
    ))

    request = seen[0]
    assert request.method == "POST"
    assert request.headers["authorization"] == "Bearer abc"
    assert request.headers["user-agent"] == "custom"
    assert request.headers["content-type"] == "application/json"
    assert body_of(request) == {"username": "admin"}
    assert request.extensions["timeout"]["read"] == 1.5


async def test_default_headers_are_applied(make_client):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200)

    await make_client(handler).send(ProbeRequestSpec(url="http://api.test/"))
    assert seen[0].headers["user-agent"].startswith("api-security-tester/")


async def test_injected_client_is_not_closed():
    inner = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    async with ProbeClient(inner) as client:
        await client.send(ProbeRequestSpec(url="http://api.test/"))
    assert not inner.is_closed
    await inner.aclose()
