"""HTTP transport for the fleet REST API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from pyfleet.config import FleetConfig
from pyfleet.exceptions import FleetTransportError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApiResponse:
    """Status and decoded JSON body of one HTTP exchange.

    ``body`` is ``None`` when the response had no body or, for error
    statuses, a body that was not JSON.
    """

    status: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def request(self, method: str, endpoint: str, *, json_body: Any = None) -> ApiResponse:
        ...


class HttpTransport:
    """JSON-over-HTTP transport backed by an ``aiohttp`` session.

    Status codes are returned to the caller untouched; only failures that
    leave no usable response (network errors, unreadable success bodies)
    raise :class:`FleetTransportError` here.
    """

    def __init__(self, config: FleetConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    async def request(self, method: str, endpoint: str, *, json_body: Any = None) -> ApiResponse:
        url = f"{self._config.base_url.rstrip('/')}{endpoint}"
        headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": self._config.user_agent,
        }

        _logger.debug("%s %s", method, url)

        try:
            async with self._http.request(method, url, json=json_body, headers=headers) as resp:
                status = resp.status
                text = await resp.text()
        except aiohttp.ClientError as exc:
            raise FleetTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        _logger.debug("%s %s -> %d", method, url, status)

        if not text.strip():
            return ApiResponse(status=status)

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            if 200 <= status < 300:
                raise FleetTransportError(
                    f"Invalid JSON from {endpoint}: {text[:200]}",
                    status_code=status,
                    endpoint=endpoint,
                ) from exc
            _logger.debug("Non-JSON error body from %s: %s", endpoint, text[:200])
            return ApiResponse(status=status)

        return ApiResponse(status=status, body=body)
