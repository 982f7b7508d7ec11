# aetherfy_vectors/transport.py
# SPDX-License-Identifier: Apache-2.0
"""
HTTP transport for the Aetherfy Vectors client.

`BaseTransport` owns the public request surface (default headers, debug
logging with redacted headers) and delegates the actual I/O to a single
`_do_request` hook. Non-2xx responses are returned, not raised: the caller
decides how to classify them, which lets the upsert path see a 412 directly.

Only transport-level failures raise here:
- timeouts -> RequestTimeoutError
- connection/protocol failures -> NetworkError
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import httpx

from aetherfy_vectors.exceptions import (
    AetherfyVectorsError,
    NetworkError,
    RequestTimeoutError,
    create_error_from_response,
)
from aetherfy_vectors.validators import sanitize_for_logging

LOG = logging.getLogger(__name__)

REQUEST_ID_HEADERS = ("x-request-id", "request-id")


@dataclass
class HttpResponse:
    """Decoded HTTP response."""

    status: int
    data: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    status_text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    @property
    def request_id(self) -> Optional[str]:
        for name in REQUEST_ID_HEADERS:
            value = self.header(name)
            if value:
                return value
        return None


def error_from_response(response: HttpResponse) -> AetherfyVectorsError:
    return create_error_from_response(
        response.data,
        response.status,
        response.status_text,
        request_id=response.request_id,
        headers=response.headers,
    )


def raise_for_status(response: HttpResponse) -> HttpResponse:
    """Raise the classified SDK error for a non-2xx response."""
    if not response.ok:
        raise error_from_response(response)
    return response


class BaseTransport:
    """
    Base class for request transports.

    Subclasses implement `_do_request`; everything else is shared.
    """

    def __init__(self, base_url: str = "", *, headers: Optional[Mapping[str, str]] = None):
        self.base_url = base_url.rstrip("/")
        self.default_headers: Dict[str, str] = dict(headers or {})

    def build_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Any] = None,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> HttpResponse:
        merged = dict(self.default_headers)
        if headers:
            merged.update(headers)
        url = self.build_url(path)
        LOG.debug(
            "%s %s params=%s headers=%s",
            method.upper(),
            url,
            params,
            sanitize_for_logging(merged),
        )
        response = await self._do_request(method.upper(), url, json=json, headers=merged, params=params)
        LOG.debug("%s %s -> %d", method.upper(), url, response.status)
        return response

    async def get(self, path: str, **kwargs: Any) -> HttpResponse:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> HttpResponse:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> HttpResponse:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> HttpResponse:
        return await self.request("DELETE", path, **kwargs)

    async def _do_request(
        self,
        method: str,
        url: str,
        *,
        json: Optional[Any],
        headers: Dict[str, str],
        params: Optional[Mapping[str, Any]],
    ) -> HttpResponse:
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release resources. Safe to call more than once."""

    async def __aenter__(self) -> "BaseTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


def _decode_body(response: httpx.Response) -> Dict[str, Any]:
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError:
        return {"message": response.text}
    if isinstance(data, dict):
        return data
    return {"result": data}


class HttpxTransport(BaseTransport):
    """Transport backed by `httpx.AsyncClient`."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        headers: Optional[Mapping[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(base_url, headers=headers)
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._closed = False

    async def _do_request(
        self,
        method: str,
        url: str,
        *,
        json: Optional[Any],
        headers: Dict[str, str],
        params: Optional[Mapping[str, Any]],
    ) -> HttpResponse:
        if self._closed:
            raise RuntimeError("HttpxTransport is closed")
        try:
            response = await self._client.request(
                method, url, json=json, headers=headers, params=params
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(
                f"Request timed out after {self.timeout}s: {method} {url}",
                timeout=self.timeout,
            ) from e
        except httpx.TransportError as e:
            raise NetworkError(f"Network error during {method} {url}: {e}") from e

        return HttpResponse(
            status=response.status_code,
            data=_decode_body(response),
            headers=dict(response.headers),
            status_text=response.reason_phrase,
        )

    async def aclose(self) -> None:
        if not self._closed:
            await self._client.aclose()
            self._closed = True
            LOG.debug("HttpxTransport closed")


__all__ = [
    "HttpResponse",
    "BaseTransport",
    "HttpxTransport",
    "error_from_response",
    "raise_for_status",
]
