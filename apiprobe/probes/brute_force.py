"""
Brute-force probe: tries a short list of default credentials against a
login endpoint, then checks whether repeated failed logins get throttled.
"""

from apiprobe.client import ProbeClient
from apiprobe.matchers import LOGIN_PATH_MARKERS, contains_any
from apiprobe.models.scan import ACCEPT_ALL, ProbeRequestSpec, ProbeResponse, ProbeResult, ScanOptions, Target
from apiprobe.presets import BRUTE_FORCE, BruteForcePreset
from apiprobe.probes.base import BaseProbe

LOCKOUT_RECOMMENDATION = (
    "Implement account lockout after multiple failed attempts, use CAPTCHA, "
    "and enforce strong password policies"
)
RATE_LIMIT_RECOMMENDATION = "Implement rate limiting to prevent brute force attacks"


def _login_succeeded(resp: ProbeResponse) -> bool:
    """HTTP 200 carrying a token or an explicit success flag."""
    if resp.status_code != 200 or not isinstance(resp.body, dict):
        return False
    body = resp.body
    return bool(body.get("token") or body.get("access_token") or body.get("success") is True)


class BruteForceProbe(BaseProbe):
    """Default-credential login attempts followed by a failed-login burst."""

    name = "brute-force"
    description = "Tries common credentials and checks for login throttling"
    vulnerable_label = "Vulnerable to brute force attacks"
    clean_label = "Not vulnerable to brute force attacks"

    def __init__(self, preset: BruteForcePreset = BRUTE_FORCE) -> None:
        self.preset = preset

    def applicability(self, target: Target) -> str | None:
        if contains_any(target.endpoint_path, LOGIN_PATH_MARKERS) is None:
            return "not a login endpoint"
        return None

    async def _probe(
        self, target: Target, client: ProbeClient, options: ScanOptions,
    ) -> ProbeResult:
        headers = {"Authorization": f"Bearer {target.auth_token}"} if target.auth_token else {}

        for cred in self.preset.credentials:
            self._trace(options, "trying credentials %s/%s", cred.username, cred.password)
            resp = await client.send(ProbeRequestSpec(
                method="POST",
                url=target.url,
                headers=headers,
                body={"username": cred.username, "password": cred.password},
                timeout_ms=options.request_timeout_ms,
                accepted_status=ACCEPT_ALL,
            ))
            if isinstance(resp, ProbeResponse) and _login_succeeded(resp):
                return self.finding(
                    target,
                    f"Successfully logged in with {cred.username}/{cred.password}",
                    LOCKOUT_RECOMMENDATION,
                )
            self._trace(options, "login failed with %s/%s", cred.username, cred.password)

        throttled, answered = await self._burst(target, client, options)
        if throttled:
            return self.clean(target, "Failed login attempts are rate limited (HTTP 429)")
        if answered == 0:
            return self.clean(target, "No evidence: failed login attempts got no response")

        return self.finding(
            target,
            "No rate limiting detected for multiple failed login attempts",
            RATE_LIMIT_RECOMMENDATION,
        )

    async def _burst(
        self, target: Target, client: ProbeClient, options: ScanOptions,
    ) -> tuple[bool, int]:
        """Send failed logins one after another until an HTTP 429 shows up.

        Returns (throttled, number of attempts that got an HTTP response).
        """
        answered = 0
        for i in range(options.brute_force_burst_size):
            resp = await client.send(ProbeRequestSpec(
                method="POST",
                url=target.url,
                body={
                    "username": self.preset.burst_username,
                    "password": f"{self.preset.burst_password_prefix}{i}",
                },
                timeout_ms=options.request_timeout_ms,
                accepted_status=ACCEPT_ALL,
            ))
            if not isinstance(resp, ProbeResponse):
                continue
            answered += 1
            if resp.status_code == 429:
                self._trace(options, "throttled after %d failed logins", i + 1)
                return True, answered
        return False, answered
