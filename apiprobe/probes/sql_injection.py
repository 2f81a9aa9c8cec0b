"""
SQL injection probe: error-based detection.

Phase 1 injects every payload into each existing query parameter (GET).
Phase 2 posts JSON bodies with common field names.  The first payload /
parameter combination that leaks a SQL error (or, for GET, returns
suspicious rows with HTTP 200) is reported and the probe stops.
"""

from urllib.parse import parse_qsl, quote, urlsplit

from apiprobe.client import ProbeClient
from apiprobe.matchers import SQL_ERROR_FINGERPRINTS, SUSPICIOUS_SQL_TERMS, contains_any
from apiprobe.models.scan import ACCEPT_BELOW_500, ProbeRequestSpec, ProbeResult, ScanOptions, Target, TransportFailure
from apiprobe.presets import SQL_INJECTION, SQLInjectionPreset
from apiprobe.probes.base import BaseProbe

RECOMMENDATION = "Use parameterized queries or prepared statements instead of string concatenation"

# Characters left unescaped by JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def _split_query(url: str) -> tuple[str, dict[str, str]]:
    """Return (url without query/fragment, query params in order).

    Repeated keys keep the last value.
    """
    parsed = urlsplit(url)
    base = f"{parsed.scheme}://{parsed.netloc}{parsed.path}"
    params: dict[str, str] = {}
    for k, v in parse_qsl(parsed.query, keep_blank_values=True):
        params[k] = v
    return base, params


def _build_query(params: dict[str, str]) -> str:
    return "&".join(f"{k}={quote(v, safe=_URI_COMPONENT_SAFE)}" for k, v in params.items())


class SQLInjectionProbe(BaseProbe):
    name = "sql-injection"
    description = "Injects SQL payloads into query parameters and JSON body fields"
    vulnerable_label = "Vulnerable to SQL injection"
    clean_label = "Not vulnerable to SQL injection"

    def __init__(self, preset: SQLInjectionPreset = SQL_INJECTION) -> None:
        self.preset = preset

    async def _probe(
        self, target: Target, client: ProbeClient, options: ScanOptions,
    ) -> ProbeResult:
        hit = await self._probe_query(target, client, options)
        if hit is None:
            hit = await self._probe_body(target, client, options)
        if hit is None:
            return self.clean(target)
        return self.finding(target, hit, RECOMMENDATION)

    # ── Phase 1: query parameters ─────────────────────────────────────

    async def _probe_query(
        self, target: Target, client: ProbeClient, options: ScanOptions,
    ) -> str | None:
        base, params = _split_query(target.url)
        for key in params:
            for payload in self.preset.payloads:
                test_params = dict(params)
                test_params[key] = payload
                test_url = f"{base}?{_build_query(test_params)}"
                self._trace(options, "testing parameter %s with payload %r", key, payload)

                resp = await client.send(ProbeRequestSpec(
                    method="GET",
                    url=test_url,
                    timeout_ms=options.request_timeout_ms,
                    accepted_status=ACCEPT_BELOW_500,
                ))
                if isinstance(resp, TransportFailure):
                    self._trace(options, "payload %r failed: %s", payload, resp.message)
                    continue

                text = resp.text()
                fingerprint = contains_any(text, SQL_ERROR_FINGERPRINTS)
                if fingerprint is not None:
                    return (
                        f"Vulnerable to SQL injection via query parameter '{key}' "
                        f"with payload: {payload} (response contains \"{fingerprint}\")"
                    )
                if resp.status_code == 200:
                    term = contains_any(text, SUSPICIOUS_SQL_TERMS)
                    if term is not None:
                        return (
                            f"Vulnerable to SQL injection via query parameter '{key}' "
                            f"with payload: {payload} (suspicious \"{term}\" data in response)"
                        )
        return None

    # ── Phase 2: JSON body fields ─────────────────────────────────────

    async def _probe_body(
        self, target: Target, client: ProbeClient, options: ScanOptions,
    ) -> str | None:
        for payload in self.preset.payloads:
            for field in self.preset.body_fields:
                self._trace(options, "testing POST body field %s with payload %r", field, payload)
                resp = await client.send(ProbeRequestSpec(
                    method="POST",
                    url=target.url,
                    body={field: payload},
                    timeout_ms=options.request_timeout_ms,
                    accepted_status=ACCEPT_BELOW_500,
                ))
                if isinstance(resp, TransportFailure):
                    self._trace(options, "POST body %s=%r failed: %s", field, payload, resp.message)
                    continue

                fingerprint = contains_any(resp.text(), SQL_ERROR_FINGERPRINTS)
                if fingerprint is not None:
                    return (
                        f"Vulnerable to SQL injection via JSON body field '{field}' "
                        f"with payload: {payload} (response contains \"{fingerprint}\")"
                    )
        return None
