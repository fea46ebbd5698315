"""Flight Recorder HTTP client.

Provides both synchronous (``FlightRecorderClient``) and asynchronous
(``AsyncFlightRecorderClient``) wrappers around the daemon REST API.
"""

from __future__ import annotations

from typing import Any

import httpx

from flight_recorder.exceptions import APIResponseError

DEFAULT_BASE_URL = "http://127.0.0.1:8083"
DEFAULT_PREFIX = "/recorder"


def _raise_for_error(resp: httpx.Response) -> None:
    if resp.is_success:
        return
    message = resp.text or resp.reason_phrase
    code: str | None = None
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = str(body.get("error") or body.get("detail") or message)
        code = body.get("code")
    raise APIResponseError(status_code=resp.status_code, message=message, code=code)


def _update_payload(period: str | None, size: str | int | None) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    if period is not None:
        payload["period"] = period
    if size is not None:
        payload["size"] = size
    return payload


class FlightRecorderClient:
    """Synchronous HTTP client for the flight recorder daemon.

    Usage::

        with FlightRecorderClient("http://127.0.0.1:8083") as client:
            client.start()
            client.update(period="2s", size="128MB")
            data = client.snapshot()
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        prefix: str = DEFAULT_PREFIX,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._prefix = prefix.rstrip("/")
        self._http = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def health(self) -> dict[str, Any]:
        resp = self._http.get("/health")
        _raise_for_error(resp)
        return resp.json()  # type: ignore[no-any-return]

    def status(self) -> dict[str, Any]:
        resp = self._http.get(f"{self._prefix}/status")
        _raise_for_error(resp)
        return resp.json()  # type: ignore[no-any-return]

    def start(self) -> dict[str, Any]:
        resp = self._http.post(f"{self._prefix}/start")
        _raise_for_error(resp)
        return resp.json()  # type: ignore[no-any-return]

    def stop(self) -> dict[str, Any]:
        resp = self._http.post(f"{self._prefix}/stop")
        _raise_for_error(resp)
        return resp.json()  # type: ignore[no-any-return]

    def update(
        self, period: str | None = None, size: str | int | None = None
    ) -> dict[str, Any]:
        resp = self._http.post(f"{self._prefix}/update", json=_update_payload(period, size))
        _raise_for_error(resp)
        return resp.json()  # type: ignore[no-any-return]

    def snapshot(self) -> bytes:
        resp = self._http.get(f"{self._prefix}/snapshot")
        _raise_for_error(resp)
        return resp.content

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "FlightRecorderClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class AsyncFlightRecorderClient:
    """Asynchronous HTTP client for the flight recorder daemon."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        prefix: str = DEFAULT_PREFIX,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._prefix = prefix.rstrip("/")
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def health(self) -> dict[str, Any]:
        resp = await self._http.get("/health")
        _raise_for_error(resp)
        return resp.json()  # type: ignore[no-any-return]

    async def status(self) -> dict[str, Any]:
        resp = await self._http.get(f"{self._prefix}/status")
        _raise_for_error(resp)
        return resp.json()  # type: ignore[no-any-return]

    async def start(self) -> dict[str, Any]:
        resp = await self._http.post(f"{self._prefix}/start")
        _raise_for_error(resp)
        return resp.json()  # type: ignore[no-any-return]

    async def stop(self) -> dict[str, Any]:
        resp = await self._http.post(f"{self._prefix}/stop")
        _raise_for_error(resp)
        return resp.json()  # type: ignore[no-any-return]

    async def update(
        self, period: str | None = None, size: str | int | None = None
    ) -> dict[str, Any]:
        resp = await self._http.post(
            f"{self._prefix}/update", json=_update_payload(period, size)
        )
        _raise_for_error(resp)
        return resp.json()  # type: ignore[no-any-return]

    async def snapshot(self) -> bytes:
        resp = await self._http.get(f"{self._prefix}/snapshot")
        _raise_for_error(resp)
        return resp.content

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "AsyncFlightRecorderClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
