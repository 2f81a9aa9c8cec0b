import httpx

from apiprobe.models.scan import ScanOptions
from apiprobe.probes.rate_limiting import RateLimitProbe, spoofed_headers


def _octet(request: httpx.Request) -> int:
    return int(request.headers["x-forwarded-for"].rsplit(".", 1)[1])


def test_spoofed_headers_wrap_at_255():
    assert spoofed_headers(3) == {"X-Forwarded-For": "192.168.1.3", "X-Real-IP": "10.0.0.3"}
    assert spoofed_headers(256)["X-Forwarded-For"] == "192.168.1.1"


async def test_no_throttling_at_all(make_client, target, options):
    client = make_client(lambda request: httpx.Response(200, json={"ok": True}))

    result = await RateLimitProbe().run(target("/users"), client, options)

    assert result.vulnerable
    assert "No rate limiting detected" in result.details
    assert "50/50" in result.details
    assert result.recommendation == "Implement rate limiting to prevent abuse and DoS attacks"


async def test_limiter_bypassed_by_spoofed_ips(make_client, target, options):
    def handler(request):
        return httpx.Response(429 if _octet(request) < 10 else 200)

    result = await RateLimitProbe().run(target("/users"), make_client(handler), options)

    assert result.vulnerable
    assert "bypassed" in result.details
    assert "40/50" in result.details
    assert "robust IP detection" in result.recommendation


async def test_mostly_throttled_is_safe(make_client, target, options):
    def handler(request):
        return httpx.Response(429 if _octet(request) < 45 else 200)

    result = await RateLimitProbe().run(target("/users"), make_client(handler), options)

    assert not result.vulnerable
    assert result.details.startswith("Rate limiting enforced")


async def test_each_request_uses_a_distinct_source_ip(make_client, target, options):
    seen = []

    def handler(request):
        seen.append((request.headers["x-forwarded-for"], request.headers["x-real-ip"]))
        return httpx.Response(429)

    await RateLimitProbe().run(target("/users"), make_client(handler), options)

    assert len(seen) == 50
    assert len(set(seen)) == 50


async def test_all_requests_failing_is_not_a_finding(make_client, target, options):
    def handler(request):
        raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

    result = await RateLimitProbe().run(target("/users"), make_client(handler), options)

    assert not result.vulnerable
    assert result.details == "No evidence: all 50 requests failed"


async def test_few_successes_without_429_is_inconclusive(make_client, target, options):
    def handler(request):
        return httpx.Response(200 if _octet(request) < 20 else 503)

    result = await RateLimitProbe().run(target("/users"), make_client(handler), options)

    assert not result.vulnerable
    assert result.details.startswith("Inconclusive")


async def test_burst_size_and_thresholds_are_configurable(make_client, target):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200 if len(calls) <= 7 else 503)

    options = ScanOptions(rate_limit_burst_size=10, rate_limit_max_concurrent=1, no_limit_threshold=0.6)
    result = await RateLimitProbe().run(target("/users"), make_client(handler), options)

    assert len(calls) == 10
    assert result.vulnerable
    assert "7/10" in result.details


async def test_unexpected_error_counts_as_one_failed_request(make_client, target, options):
    def handler(request):
        if _octet(request) < 5:
            raise RuntimeError("transport bug")
        return httpx.Response(200)

    result = await RateLimitProbe().run(target("/users"), make_client(handler), options)

    assert result.vulnerable
    assert result.details == "No rate limiting detected (45/50 requests succeeded)"


async def test_same_responses_give_same_result(make_client, target, options):
    def handler(request):
        return httpx.Response(429 if _octet(request) < 10 else 200)

    probe = RateLimitProbe()
    first = await probe.run(target("/users"), make_client(handler), options)
    second = await probe.run(target("/users"), make_client(handler), options)
    assert first.vulnerable
    assert first == second
