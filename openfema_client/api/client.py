# openfema_client/api/client.py
"""
Synchronous HTTP transport for the OpenFEMA API.

OpenFemaClient issues exactly one request per call and never retries. Timeouts
and connectivity failures become TransientNetworkError; deciding what a
non-2xx status means is left to the caller for page requests (fetch_page) and
raised directly for single-shot metadata calls (get_json).
"""

import logging
import time
from json import JSONDecodeError
from typing import Any, Dict, Optional

import httpx

from openfema_client.api.errors import TransientNetworkError, UpstreamError
from openfema_client.api.models import PageResponse, QueryDescriptor
from openfema_client.config import ClientSettings, get_settings

logger = logging.getLogger(__name__)


class OpenFemaClient:
    """
    Thin wrapper around ``httpx.Client`` bound to the OpenFEMA API root.

    Usage:
        with OpenFemaClient() as client:
            response = client.fetch_page(descriptor)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        settings: Optional[ClientSettings] = None,
    ):
        """
        Args:
            base_url: API root (defaults to OPENFEMA_BASE_URL / settings)
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header value
            transport: Custom httpx transport (tests use httpx.MockTransport)
            settings: Explicit settings instead of the environment
        """
        settings = settings or get_settings()
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.timeout_seconds
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={
                "User-Agent": user_agent or settings.user_agent,
                "Accept": "application/json",
            },
            transport=transport,
        )

    def fetch_page(self, descriptor: QueryDescriptor) -> PageResponse:
        """
        Request one page described by ``descriptor``.

        Returns the status and decoded body without judging the status.

        Raises:
            TransientNetworkError: On timeout or connectivity failure
        """
        params = descriptor.to_params()
        logger.debug(f"GET {descriptor.path} params={params}")
        response = self._send(descriptor.path, params)
        return PageResponse(
            status_code=response.status_code,
            reason=response.reason_phrase,
            body=_decode_body(response),
            url=str(response.request.url),
        )

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Single-shot GET for metadata endpoints (DataSets, DataSetFields).

        Raises:
            TransientNetworkError: On timeout or connectivity failure
            UpstreamError: On non-2xx status or a body that is not JSON
        """
        response = self._send(path, params or {})
        body = _decode_body(response)
        page = PageResponse(
            status_code=response.status_code,
            reason=response.reason_phrase,
            body=body,
            url=str(response.request.url),
        )
        if not page.ok:
            message = page.upstream_message()
            raise UpstreamError(
                f"OpenFEMA returned {page.status_code} for {path}: {message}",
                status_code=page.status_code,
                upstream_message=message,
            )
        if isinstance(body, str):
            raise UpstreamError(
                f"OpenFEMA returned a non-JSON body for {path}",
                status_code=page.status_code,
            )
        return body

    def _send(self, path: str, params: Dict[str, Any]) -> httpx.Response:
        start = time.perf_counter()
        try:
            response = self._http.get(path, params=params)
        except httpx.TimeoutException as exc:
            raise TransientNetworkError(
                f"Request to {path} timed out after {self.timeout}s", url=path
            ) from exc
        except httpx.TransportError as exc:
            raise TransientNetworkError(
                f"Request to {path} failed: {exc}", url=path
            ) from exc
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(f"{path} -> {response.status_code} in {elapsed_ms:.0f}ms")
        return response

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "OpenFemaClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _decode_body(response: httpx.Response) -> Any:
    """JSON body when decodable, raw text otherwise."""
    try:
        return response.json()
    except (JSONDecodeError, ValueError):
        return response.text
