import httpx

from apiprobe.presets import SQLInjectionPreset
from apiprobe.probes.sql_injection import SQLInjectionProbe, _build_query, _split_query
from conftest import body_of


def test_query_values_are_encoded_like_encode_uri_component():
    assert _build_query({"id": "' OR '1'='1"}) == "id='%20OR%20'1'%3D'1"
    assert _build_query({"q": "a b&c", "n": "1"}) == "q=a%20b%26c&n=1"


def test_split_query_keeps_order_and_last_value():
    base, params = _split_query("http://api.test/items?b=2&a=1&b=3#frag")
    assert base == "http://api.test/items"
    assert list(params.items()) == [("b", "3"), ("a", "1")]


async def test_first_matching_parameter_and_payload_is_reported(make_client, target, options):
    calls = []

    def handler(request):
        calls.append(request)
        if request.method == "GET" and request.url.params.get("id") == "' OR '1'='1":
            return httpx.Response(400, text="You have an error in your SQL syntax")
        return httpx.Response(404, json={})

    result = await SQLInjectionProbe().run(target("/items?id=1&sort=asc"), make_client(handler), options)

    assert result.vulnerable
    assert "'id'" in result.details
    assert "payload: ' OR '1'='1" in result.details
    assert "sort" not in result.details
    assert result.recommendation == (
        "Use parameterized queries or prepared statements instead of string concatenation"
    )
    # id is the first parameter and the payload is the first one: one request
    assert len(calls) == 1


async def test_parameters_are_tried_in_order(make_client, target, options):
    def handler(request):
        params = request.url.params
        if params.get("sort") != "asc" or params.get("id") == "' OR 1=1 --":
            return httpx.Response(400, text="sqlstate[42000]")
        return httpx.Response(404)

    result = await SQLInjectionProbe().run(target("/items?id=1&sort=asc"), make_client(handler), options)

    # every sort payload also matches, but id comes first
    assert "'id'" in result.details
    assert "payload: ' OR 1=1 --" in result.details


async def test_other_parameters_keep_their_values(make_client, target, options):
    seen = []

    def handler(request):
        seen.append(dict(request.url.params))
        return httpx.Response(404)

    await SQLInjectionProbe().run(target("/items?id=1&sort=asc"), make_client(handler), options)

    get_params = [p for p in seen if p]
    assert get_params[0] == {"id": "' OR '1'='1", "sort": "asc"}
    assert get_params[9] == {"id": "1", "sort": "' OR '1'='1"}


async def test_suspicious_success_on_get(make_client, target, options):
    def handler(request):
        if request.method == "GET":
            return httpx.Response(200, json=[{"username": "admin"}])
        return httpx.Response(404)

    result = await SQLInjectionProbe().run(target("/users?name=bob"), make_client(handler), options)

    assert result.vulnerable
    assert "'name'" in result.details
    assert "suspicious" in result.details


async def test_body_phase_finds_field(make_client, target, options):
    calls = []

    def handler(request):
        calls.append(request)
        if request.method == "POST" and body_of(request) == {"email": "' OR 1=1 --"}:
            return httpx.Response(400, json={"error": "SQLSTATE[42000]: syntax error"})
        return httpx.Response(400, json={"error": "bad request"})

    result = await SQLInjectionProbe().run(target("/search"), make_client(handler), options)

    assert result.vulnerable
    assert "'email'" in result.details
    assert "payload: ' OR 1=1 --" in result.details
    # payloads outer, fields inner: two full rounds of six fields, then the fourth field
    assert len(calls) == 2 * 6 + 4
    assert all(r.method == "POST" for r in calls)


async def test_suspicious_success_is_ignored_for_post(make_client, target, options):
    client = make_client(lambda request: httpx.Response(200, json={"username": "bob"}))

    result = await SQLInjectionProbe().run(target("/search"), client, options)

    assert not result.vulnerable


async def test_server_errors_and_failures_are_skipped(make_client, target, options):
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) % 2:
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)
        # rejected by the below-500 policy, body never inspected
        return httpx.Response(500, text="mysql error")

    preset = SQLInjectionPreset(payloads=("'",), body_fields=("id", "q"))
    result = await SQLInjectionProbe(preset).run(target("/items?id=1"), make_client(handler), options)

    assert not result.vulnerable
    assert result.details == ""
    assert len(calls) == 3


async def test_same_responses_give_same_result(make_client, target, options):
    def handler(request):
        if request.url.params.get("id") == "admin' --":
            return httpx.Response(200, text="PostgreSQL ERROR")
        return httpx.Response(404)

    probe = SQLInjectionProbe()
    first = await probe.run(target("/items?id=1"), make_client(handler), options)
    second = await probe.run(target("/items?id=1"), make_client(handler), options)
    assert first.vulnerable
    assert first == second
