"""
Information disclosure probe.

One GET against the endpoint is checked for version-revealing headers,
verbose error bodies and sensitive terms; then a fixed list of debug and
management paths on the same origin is tried.  Every finding goes into
the details, not just the first.
"""

from urllib.parse import urljoin

from apiprobe.client import ProbeClient
from apiprobe.matchers import ERROR_FINGERPRINTS, SENSITIVE_HEADERS, SENSITIVE_TERMS, contains_any, present_headers
from apiprobe.models.scan import ACCEPT_ALL, ProbeRequestSpec, ProbeResponse, ProbeResult, ScanOptions, Target, TransportFailure
from apiprobe.presets import INFO_DISCLOSURE, InfoDisclosurePreset
from apiprobe.probes.base import BaseProbe

RECOMMENDATION = (
    "Remove version information from headers, disable detailed error messages "
    "in production, and secure or disable debug endpoints"
)


class InfoDisclosureProbe(BaseProbe):
    name = "info-disclosure"
    description = "Looks for leaking headers, verbose errors, sensitive data and debug endpoints"
    vulnerable_label = "Information disclosure detected"
    clean_label = "No information disclosure detected"

    def __init__(self, preset: InfoDisclosurePreset = INFO_DISCLOSURE) -> None:
        self.preset = preset

    async def _probe(
        self, target: Target, client: ProbeClient, options: ScanOptions,
    ) -> ProbeResult:
        resp = await client.send(ProbeRequestSpec(
            method="GET",
            url=target.url,
            timeout_ms=options.request_timeout_ms,
            accepted_status=ACCEPT_ALL,
        ))
        if isinstance(resp, TransportFailure):
            return self.error(target, resp)

        self._trace(options, "GET %s -> %d, headers: %s", target.url, resp.status_code, resp.headers)

        findings: list[str] = []

        leaked = present_headers(resp.headers, SENSITIVE_HEADERS)
        if leaked:
            findings.append(f"Sensitive headers: {', '.join(leaked)}")

        text = resp.text()
        if 400 <= resp.status_code < 600:
            pattern = contains_any(text, ERROR_FINGERPRINTS)
            if pattern is not None:
                findings.append(f'Error response contains "{pattern}"')

        term = contains_any(text, SENSITIVE_TERMS)
        if term is not None:
            findings.append(f'Response contains "{term}"')

        debug_path = await self._find_debug_endpoint(target, client, options)
        if debug_path is not None:
            findings.append(f"Debug endpoint accessible: {debug_path}")

        if not findings:
            return self.clean(target)
        return self.finding(target, "; ".join(findings), RECOMMENDATION)

    async def _find_debug_endpoint(
        self, target: Target, client: ProbeClient, options: ScanOptions,
    ) -> str | None:
        """Return the first debug path on the target's origin answering HTTP 200."""
        for path in self.preset.debug_paths:
            url = urljoin(target.url, path)
            resp = await client.send(ProbeRequestSpec(
                method="GET",
                url=url,
                timeout_ms=options.debug_path_timeout_ms,
                accepted_status=ACCEPT_ALL,
            ))
            if isinstance(resp, ProbeResponse) and resp.status_code == 200:
                self._trace(options, "debug endpoint %s answered 200", url)
                return path
        return None
