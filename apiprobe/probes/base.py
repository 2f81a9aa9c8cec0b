import logging
from abc import ABC, abstractmethod

from apiprobe.client import ProbeClient
from apiprobe.models.scan import ProbeResult, ScanOptions, Target, TransportFailure

log = logging.getLogger(__name__)


class BaseProbe(ABC):
    """
    Abstract base class for all vulnerability probes.

    Subclass and implement:
      - _probe()
      - applicability()   (optional, default: always applies)

    The base class handles the skip decision and the failure boundary:
    ``run()`` never raises, an internal error becomes a non-vulnerable
    result whose details describe the error.
    """

    name: str = "base"
    description: str = ""
    # Console wording, e.g. "Vulnerable to brute force attacks"
    vulnerable_label: str = ""
    clean_label: str = ""

    # ── Abstract interface ────────────────────────────────────────────

    @abstractmethod
    async def _probe(
        self, target: Target, client: ProbeClient, options: ScanOptions,
    ) -> ProbeResult:
        """Run the detection heuristic against *target*."""
        ...

    def applicability(self, target: Target) -> str | None:
        """Return a skip reason when the probe does not apply to *target*."""
        return None

    # ── Public API ────────────────────────────────────────────────────

    async def run(
        self,
        target: Target,
        client: ProbeClient,
        options: ScanOptions | None = None,
    ) -> ProbeResult:
        options = options or ScanOptions()

        reason = self.applicability(target)
        if reason:
            self._trace(options, "skipping %s on %s: %s", self.name, target.url, reason)
            return ProbeResult(
                probe_name=self.name, url=target.url, skipped=True, skip_reason=reason,
            )

        try:
            return await self._probe(target, client, options)
        except Exception as e:
            log.warning("%s probe failed on %s: %s", self.name, target.url, e)
            log.debug("%s probe traceback", self.name, exc_info=True)
            return self.error(target, e)

    # ── Result helpers ────────────────────────────────────────────────

    def clean(self, target: Target, details: str = "") -> ProbeResult:
        return ProbeResult(probe_name=self.name, url=target.url, details=details)

    def finding(self, target: Target, details: str, recommendation: str) -> ProbeResult:
        return ProbeResult(
            probe_name=self.name,
            url=target.url,
            vulnerable=True,
            details=details,
            recommendation=recommendation,
        )

    def error(self, target: Target, err: Exception | TransportFailure | str) -> ProbeResult:
        if isinstance(err, TransportFailure):
            message = err.message
        else:
            message = str(err) or err.__class__.__name__
        return self.clean(target, f"Error during test: {message}")

    def _trace(self, options: ScanOptions, msg: str, *args) -> None:
        """Per-attempt trace: INFO when the scan is verbose, DEBUG otherwise."""
        logging.getLogger(self.__class__.__module__).log(
            logging.INFO if options.verbose else logging.DEBUG, msg, *args,
        )
