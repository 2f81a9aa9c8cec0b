from apiprobe.models.scan import (
    ACCEPT_ALL,
    ACCEPT_BELOW_500,
    ACCEPT_SUCCESS,
    EndpointReport,
    ProbeRequestSpec,
    ProbeResponse,
    ProbeResult,
    ScanOptions,
    ScanReport,
    StatusPolicy,
    Target,
    TransportFailure,
)
