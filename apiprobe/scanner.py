"""
Scan orchestrator: runs the selected probes against each endpoint and
collects the results into a ScanReport.

Endpoints are tested in the order given; probes always run (and are
reported) in the fixed registry order.  A failing probe only costs its
own result, never the rest of the scan.

*control* is a mutable dict with a ``signal`` key, checked between
endpoints and between probes: ``"pause"`` suspends, ``"stop"`` returns
the partial report.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable
from urllib.parse import urlsplit

from apiprobe import config
from apiprobe.client import ProbeClient
from apiprobe.models.scan import EndpointReport, ProbeResult, ScanOptions, ScanReport, Target
from apiprobe.probes import (
    BaseProbe,
    BruteForceProbe,
    InfoDisclosureProbe,
    MissingAuthProbe,
    RateLimitProbe,
    SQLInjectionProbe,
)

log = logging.getLogger(__name__)

ALL = "all"

# Selection name → probe class, in execution / report order
PROBES: dict[str, type[BaseProbe]] = {
    "brute-force": BruteForceProbe,
    "missing-auth": MissingAuthProbe,
    "sql-injection": SQLInjectionProbe,
    "rate-limiting": RateLimitProbe,
    "info-disclosure": InfoDisclosureProbe,
}

OnResult = Callable[[Target, ProbeResult], Awaitable[None]]


class ScanConfigError(ValueError):
    """Invalid scan configuration, raised before any probe runs."""


# ── Validation ──────────────────────────────────────────────────────


def resolve_probes(selected: Iterable[str]) -> list[str]:
    """Expand ``all``, drop duplicates and return names in registry order."""
    if isinstance(selected, str):
        selected = selected.split(",")
    names = {s.strip().lower() for s in selected if s and s.strip()}
    if not names:
        names = {ALL}
    unknown = names - set(PROBES) - {ALL}
    if unknown:
        raise ScanConfigError(
            f"Unknown test(s): {', '.join(sorted(unknown))}. "
            f"Choose from: {ALL}, {', '.join(PROBES)}"
        )
    if ALL in names:
        return list(PROBES)
    return [name for name in PROBES if name in names]


def validate_base_url(base_url: str) -> str:
    """Return *base_url* without a trailing slash, or raise ScanConfigError."""
    candidate = (base_url or "").strip()
    try:
        parsed = urlsplit(candidate)
    except ValueError as e:
        raise ScanConfigError(f"Invalid base URL {base_url!r}: {e}") from e
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ScanConfigError(f"Invalid base URL {base_url!r}: expected http(s)://host[:port][/path]")
    return candidate.rstrip("/")


# ── Helpers ─────────────────────────────────────────────────────────


async def _check_control(control: dict | None) -> bool:
    """Pause-loop and stop-check. Returns True if we should stop."""
    if control is None:
        return False
    while control.get("signal") == "pause":
        await asyncio.sleep(config.CONTROL_POLL_INTERVAL)
    return control.get("signal") == "stop"


# ── Orchestrator ────────────────────────────────────────────────────


class Scanner:
    """Runs probes against endpoints through one shared ProbeClient."""

    def __init__(
        self,
        client: ProbeClient,
        options: ScanOptions | None = None,
        probes: dict[str, BaseProbe] | None = None,
    ) -> None:
        self.client = client
        self.options = options or ScanOptions()
        self.probes = probes if probes is not None else {name: cls() for name, cls in PROBES.items()}

    async def run_scan(
        self,
        base_url: str,
        endpoint_paths: Iterable[str],
        selected: Iterable[str] = (ALL,),
        auth_token: str | None = None,
        control: dict | None = None,
        on_result: OnResult | None = None,
    ) -> ScanReport:
        base_url = validate_base_url(base_url)
        names = resolve_probes(selected)
        missing = [name for name in names if name not in self.probes]
        if missing:
            raise ScanConfigError(f"No probe configured for test(s): {', '.join(missing)}")
        paths = list(endpoint_paths)

        report = ScanReport(base_url=base_url)
        log.info("scanning %s: %d endpoint(s), tests: %s", base_url, len(paths), ", ".join(names))

        for path in paths:
            if await _check_control(control):
                report.stopped = True
                break

            target = Target(base_url=base_url, endpoint_path=path, auth_token=auth_token)
            section = EndpointReport(target=target)
            report.endpoints.append(section)
            log.info("testing endpoint %s", target.url)

            if self.options.concurrent_probes:
                results = await asyncio.gather(
                    *(self._run_isolated(name, target) for name in names)
                )
                # gather keeps argument order, so results follow the registry order
                for result in results:
                    await self._record(section, result, on_result)
            else:
                for name in names:
                    if await _check_control(control):
                        report.stopped = True
                        break
                    result = await self._run_isolated(name, target)
                    await self._record(section, result, on_result)

            if report.stopped:
                break

        if report.stopped:
            log.info("scan stopped after %d result(s)", len(report.results))
        log.info("scan finished: %d vulnerabilities found", report.vulnerability_count)
        return report

    async def _run_isolated(self, name: str, target: Target) -> ProbeResult:
        probe = self.probes[name]
        try:
            return await probe.run(target, self.client, self.options)
        except Exception as e:
            log.warning("probe %s crashed on %s: %s", name, target.url, e)
            return ProbeResult(
                probe_name=name,
                url=target.url,
                details=f"Error during test: {str(e) or e.__class__.__name__}",
            )

    @staticmethod
    async def _record(section: EndpointReport, result: ProbeResult, on_result: OnResult | None) -> None:
        section.record(result)
        if result.vulnerable:
            log.info("%s: vulnerable on %s: %s", result.probe_name, result.url, result.details)
        if on_result:
            await on_result(section.target, result)


async def scan(
    base_url: str,
    endpoints: Iterable[str],
    auth_token: str | None = None,
    selected_tests: Iterable[str] = (ALL,),
    verbose: bool = False,
    options: ScanOptions | None = None,
    control: dict | None = None,
    on_result: OnResult | None = None,
    client: ProbeClient | None = None,
) -> ScanReport:
    """Run a complete scan and return its report.

    Configuration errors raise ScanConfigError before any request is sent;
    everything else ends up in the report.
    """
    options = options or ScanOptions()
    selected_tests = list(selected_tests) if not isinstance(selected_tests, str) else selected_tests
    if verbose and not options.verbose:
        options = options.model_copy(update={"verbose": True})

    # Validate before opening a connection pool
    validate_base_url(base_url)
    resolve_probes(selected_tests)

    own_client = client is None
    client = client or ProbeClient()
    try:
        return await Scanner(client, options).run_scan(
            base_url,
            endpoints,
            selected_tests,
            auth_token=auth_token,
            control=control,
            on_result=on_result,
        )
    finally:
        if own_client:
            await client.aclose()
