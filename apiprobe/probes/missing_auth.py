"""
Missing-authentication probe: requests the endpoint without credentials
and classifies the status code.

Any 200/201 is reported, with or without sensitive-looking data; the data
check only changes the wording.
"""

from apiprobe.client import ProbeClient
from apiprobe.matchers import PROTECTED_DATA_TERMS, PUBLIC_PATH_MARKERS, contains_any
from apiprobe.models.scan import ACCEPT_BELOW_500, ProbeRequestSpec, ProbeResult, ScanOptions, Target, TransportFailure
from apiprobe.probes.base import BaseProbe


class MissingAuthProbe(BaseProbe):
    name = "missing-auth"
    description = "Checks whether the endpoint answers unauthenticated requests"
    vulnerable_label = "Missing authentication"
    clean_label = "Authentication is properly implemented"

    def applicability(self, target: Target) -> str | None:
        if contains_any(target.endpoint_path, PUBLIC_PATH_MARKERS) is not None:
            return "public endpoint"
        return None

    async def _probe(
        self, target: Target, client: ProbeClient, options: ScanOptions,
    ) -> ProbeResult:
        # No Authorization header on purpose
        resp = await client.send(ProbeRequestSpec(
            method="GET",
            url=target.url,
            timeout_ms=options.request_timeout_ms,
            accepted_status=ACCEPT_BELOW_500,
        ))
        if isinstance(resp, TransportFailure):
            return self.error(target, resp)

        self._trace(options, "unauthenticated GET %s -> %d", target.url, resp.status_code)

        if resp.status_code in (200, 201):
            if contains_any(resp.text(), PROTECTED_DATA_TERMS) is not None:
                return self.finding(
                    target,
                    "Endpoint accessible without authentication and returns sensitive data",
                    "Implement proper authentication for this endpoint",
                )
            return self.finding(
                target,
                "Endpoint accessible without authentication",
                "Verify if this endpoint should require authentication",
            )

        if resp.status_code in (401, 403):
            return self.clean(target, f"Authentication required (HTTP {resp.status_code})")

        return self.clean(target, f"Unexpected response ({resp.status_code})")
