"""
HTTP probe client: one request in, a normalized response or a
TransportFailure out.

No retries: a probe decides for itself what a failed attempt means.
"""

import json
import logging
import time

import httpx

from apiprobe import config
from apiprobe.models.scan import ProbeRequestSpec, ProbeResponse, TransportFailure

log = logging.getLogger(__name__)

_DNS_HINTS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo",
    "name resolution",
    "no address associated",
)
_TLS_HINTS = ("ssl", "certificate", "tls")


def _message(exc: Exception) -> str:
    return str(exc) or exc.__class__.__name__


def _classify_connect_error(exc: httpx.ConnectError) -> str:
    text = _message(exc).lower()
    if any(h in text for h in _DNS_HINTS):
        return "dns"
    if any(h in text for h in _TLS_HINTS):
        return "tls"
    return "connection"


def _parse_body(resp: httpx.Response):
    """Parsed JSON when the response looks like JSON, raw text otherwise."""
    text = resp.text[:config.RESPONSE_BODY_CAP]
    content_type = resp.headers.get("content-type", "").lower()
    stripped = text.strip()
    if "json" in content_type or stripped.startswith(("{", "[")):
        try:
            return json.loads(stripped)
        except (json.JSONDecodeError, ValueError):
            pass
    return text


class ProbeClient:
    """Shared async HTTP client for every probe of a scan.

    Pass *client* to reuse an existing ``httpx.AsyncClient`` (tests pass one
    backed by ``httpx.MockTransport``); otherwise one is created and closed
    by ``aclose()``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        default_headers: dict | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            verify=config.VERIFY_TLS,
            follow_redirects=config.FOLLOW_REDIRECTS,
            limits=httpx.Limits(
                max_connections=config.MAX_CONNECTIONS,
                max_keepalive_connections=config.MAX_KEEPALIVE_CONNECTIONS,
            ),
        )
        self._default_headers = dict(
            config.DEFAULT_HEADERS if default_headers is None else default_headers
        )

    async def __aenter__(self) -> "ProbeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def send(self, spec: ProbeRequestSpec) -> ProbeResponse | TransportFailure:
        """Issue *spec* once. Never raises for network or status problems."""
        headers = dict(self._default_headers)
        headers.update(spec.headers)
        extra = {}
        if spec.body is not None:
            extra["json"] = spec.body

        start = time.time()
        try:
            resp = await self._client.request(
                spec.method.upper(),
                spec.url,
                headers=headers,
                timeout=spec.timeout_ms / 1000,
                **extra,
            )
        except httpx.TimeoutException as e:
            log.debug("%s %s timed out: %s", spec.method, spec.url, e)
            return TransportFailure(kind="timeout", message=f"timeout of {spec.timeout_ms}ms exceeded")
        except httpx.ConnectError as e:
            kind = _classify_connect_error(e)
            log.debug("%s %s connect failed (%s): %s", spec.method, spec.url, kind, e)
            return TransportFailure(kind=kind, message=_message(e))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.debug("%s %s failed: %s", spec.method, spec.url, e)
            return TransportFailure(kind="other", message=_message(e))
        elapsed = round((time.time() - start) * 1000, 2)

        if not spec.accepted_status.accepts(resp.status_code):
            return TransportFailure(
                kind="status",
                message=f"Request failed with status code {resp.status_code}",
                status_code=resp.status_code,
            )

        return ProbeResponse(
            status_code=resp.status_code,
            headers=dict(resp.headers),
            body=_parse_body(resp),
            elapsed_ms=elapsed,
        )
