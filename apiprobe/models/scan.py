import json
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from apiprobe import config


class Target(BaseModel):
    """One endpoint under test: base URL plus endpoint path."""
    model_config = ConfigDict(frozen=True)

    base_url: str
    endpoint_path: str = ""
    auth_token: Optional[str] = None

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.endpoint_path}"


class StatusPolicy(BaseModel):
    """Which HTTP status codes count as a usable response."""
    model_config = ConfigDict(frozen=True)

    min_status: int = 100
    below: int = 600

    def accepts(self, status_code: int) -> bool:
        return self.min_status <= status_code < self.below


ACCEPT_ALL = StatusPolicy(below=600)
ACCEPT_BELOW_500 = StatusPolicy(below=500)
ACCEPT_SUCCESS = StatusPolicy(min_status=200, below=300)


class ProbeRequestSpec(BaseModel):
    """A single outbound probe request."""
    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    url: str
    headers: dict[str, str] = {}
    body: Any = None           # JSON value, sent as application/json
    timeout_ms: int = Field(default_factory=lambda: config.REQUEST_TIMEOUT_MS)
    accepted_status: StatusPolicy = ACCEPT_ALL


class ProbeResponse(BaseModel):
    """Normalized HTTP response. Header keys are lower-cased."""
    status_code: int
    headers: dict[str, str] = {}
    body: Any = ""             # parsed JSON or raw text
    elapsed_ms: float = 0.0

    @field_validator("headers", mode="before")
    @classmethod
    def _lower_keys(cls, value):
        return {str(k).lower(): str(v) for k, v in dict(value or {}).items()}

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())

    def text(self) -> str:
        """Lower-cased body text used for fingerprint matching."""
        if isinstance(self.body, str):
            return self.body.lower()
        return json.dumps(self.body, separators=(",", ":"), ensure_ascii=False).lower()


class TransportFailure(BaseModel):
    """A request that produced no usable response."""
    kind: Literal["timeout", "connection", "dns", "tls", "status", "other"]
    message: str
    status_code: Optional[int] = None   # set when kind == "status"


class ProbeResult(BaseModel):
    """Outcome of one probe against one endpoint."""
    model_config = ConfigDict(frozen=True)

    probe_name: str
    url: str = ""
    vulnerable: bool = False
    details: str = ""
    recommendation: str = ""
    skipped: bool = False
    skip_reason: Optional[str] = None

    @model_validator(mode="after")
    def _check_invariants(self):
        if self.vulnerable and not (self.details and self.recommendation):
            raise ValueError("a vulnerable result needs details and a recommendation")
        if self.skipped and self.vulnerable:
            raise ValueError("a skipped result cannot be vulnerable")
        return self


class EndpointReport(BaseModel):
    """Results for one endpoint, in fixed probe order."""
    target: Target
    results: list[ProbeResult] = []

    def record(self, result: ProbeResult) -> None:
        # A re-run probe replaces its earlier result instead of adding a second one
        for i, existing in enumerate(self.results):
            if existing.probe_name == result.probe_name:
                self.results[i] = result
                return
        self.results.append(result)

    @computed_field
    @property
    def vulnerability_count(self) -> int:
        return sum(1 for r in self.results if r.vulnerable)


class ScanReport(BaseModel):
    """Aggregated outcome of a scan across all endpoints."""
    base_url: str
    endpoints: list[EndpointReport] = []
    stopped: bool = False

    @property
    def results(self) -> list[ProbeResult]:
        return [r for section in self.endpoints for r in section.results]

    @computed_field
    @property
    def vulnerability_count(self) -> int:
        return sum(1 for r in self.results if r.vulnerable)

    @property
    def recommendations(self) -> list[str]:
        return [r.recommendation for r in self.results if r.vulnerable]


class ScanOptions(BaseModel):
    """Per-scan tunables. Defaults come from apiprobe.config."""
    verbose: bool = False
    request_timeout_ms: int = Field(default_factory=lambda: config.REQUEST_TIMEOUT_MS, gt=0)
    debug_path_timeout_ms: int = Field(default_factory=lambda: config.DEBUG_PATH_TIMEOUT_MS, gt=0)
    rate_limit_burst_size: int = Field(default_factory=lambda: config.RATE_LIMIT_BURST_SIZE, gt=0)
    rate_limit_window_ms: int = Field(default_factory=lambda: config.RATE_LIMIT_WINDOW_MS, gt=0)
    rate_limit_max_concurrent: int = Field(default_factory=lambda: config.RATE_LIMIT_MAX_CONCURRENT, gt=0)
    no_limit_threshold: float = Field(default_factory=lambda: config.RATE_LIMIT_NO_LIMIT_THRESHOLD, ge=0, le=1)
    bypass_threshold: float = Field(default_factory=lambda: config.RATE_LIMIT_BYPASS_THRESHOLD, ge=0, le=1)
    brute_force_burst_size: int = Field(default_factory=lambda: config.BRUTE_FORCE_BURST_SIZE, ge=0)
    concurrent_probes: bool = Field(default_factory=lambda: config.CONCURRENT_PROBES)
