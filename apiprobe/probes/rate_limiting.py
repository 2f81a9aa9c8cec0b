"""
Rate-limit bypass probe: fires one concurrent burst of GET requests, each
with a different spoofed client IP, and judges the whole batch.

Two findings are possible from the same sample:
  - no HTTP 429 at all and most requests succeeded → no rate limiting
  - some HTTP 429 but most requests still succeeded → limiter keyed on
    spoofable source headers
"""

import asyncio
import time

from apiprobe.client import ProbeClient
from apiprobe.models.scan import ACCEPT_ALL, ProbeRequestSpec, ProbeResponse, ProbeResult, ScanOptions, Target, TransportFailure
from apiprobe.probes.base import BaseProbe


def spoofed_headers(i: int) -> dict[str, str]:
    return {
        "X-Forwarded-For": f"192.168.1.{i % 255}",
        "X-Real-IP": f"10.0.0.{i % 255}",
    }


class RateLimitProbe(BaseProbe):
    name = "rate-limiting"
    description = "Sends a burst of requests with spoofed source IPs"
    vulnerable_label = "Rate limiting can be bypassed"
    clean_label = "Rate limiting is properly implemented"

    async def _probe(
        self, target: Target, client: ProbeClient, options: ScanOptions,
    ) -> ProbeResult:
        total = options.rate_limit_burst_size
        # Every request of the burst has to finish inside the window
        timeout_ms = min(options.request_timeout_ms, options.rate_limit_window_ms)
        semaphore = asyncio.Semaphore(options.rate_limit_max_concurrent)

        self._trace(
            options, "sending %d requests within %dms to %s",
            total, options.rate_limit_window_ms, target.url,
        )

        async def _one(i: int) -> ProbeResponse | TransportFailure:
            async with semaphore:
                return await client.send(ProbeRequestSpec(
                    method="GET",
                    url=target.url,
                    headers=spoofed_headers(i),
                    timeout_ms=timeout_ms,
                    accepted_status=ACCEPT_ALL,
                ))

        start = time.time()
        responses = await asyncio.gather(
            *(_one(i) for i in range(total)), return_exceptions=True,
        )
        duration = round((time.time() - start) * 1000)

        throttled = 0
        succeeded = 0
        failed = 0
        for resp in responses:
            if isinstance(resp, BaseException):
                failed += 1
                self._trace(options, "request raised: %r", resp)
            elif isinstance(resp, TransportFailure):
                failed += 1
                self._trace(options, "request failed: %s", resp.message)
            elif resp.status_code == 429:
                throttled += 1
            elif 200 <= resp.status_code < 300:
                succeeded += 1

        self._trace(
            options, "burst finished in %dms: %d succeeded, %d throttled, %d failed",
            duration, succeeded, throttled, failed,
        )

        if throttled == 0 and succeeded > total * options.no_limit_threshold:
            return self.finding(
                target,
                f"No rate limiting detected ({succeeded}/{total} requests succeeded)",
                "Implement rate limiting to prevent abuse and DoS attacks",
            )

        if throttled > 0 and succeeded > total * options.bypass_threshold:
            return self.finding(
                target,
                "Rate limiting bypassed by spoofing IP addresses via X-Forwarded-For/X-Real-IP "
                f"({succeeded}/{total} requests succeeded, {throttled} throttled)",
                "Implement rate limiting based on authenticated user or use a more robust "
                "IP detection mechanism",
            )

        if throttled > 0:
            return self.clean(target, f"Rate limiting enforced ({throttled}/{total} requests throttled)")
        if failed == total:
            return self.clean(target, f"No evidence: all {total} requests failed")
        return self.clean(
            target,
            f"Inconclusive: {succeeded}/{total} requests succeeded without HTTP 429",
        )
