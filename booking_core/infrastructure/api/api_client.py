from __future__ import annotations

import logging
from typing import Any

import httpx

from booking_core.application.exceptions import BookingError, RequestFailedError, error_from_response
from booking_core.core.config import settings
from booking_core.domain.entities.actor import ActorContext


class ApiClient:
    """Authenticated JSON client for the bookings API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout if timeout is not None else settings.API_TIMEOUT_SECONDS,
            transport=transport,
        )
        self._logger = logging.getLogger(__name__)

    async def request(
        self,
        method: str,
        path: str,
        actor: ActorContext,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        require_auth: bool = True,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if require_auth:
            if not actor.access_token:
                raise RequestFailedError("Not authenticated", 401, "UNAUTHENTICATED")
            headers["Authorization"] = f"Bearer {actor.access_token}"

        query = {k: v for k, v in (params or {}).items() if v is not None}

        try:
            resp = await self._client.request(method, path, json=json, params=query or None, headers=headers)
        except httpx.HTTPError as e:
            self._logger.error("Bookings API unreachable", extra={"error": str(e)})
            raise RequestFailedError(str(e) or "Network request failed") from e

        if resp.status_code >= 400:
            raise self._error_for(resp)

        try:
            return resp.json()
        except ValueError as e:
            raise RequestFailedError("Malformed response from bookings API", resp.status_code) from e

    def _error_for(self, resp: httpx.Response) -> BookingError:
        code: str | None = None
        message: str | None = None
        try:
            body = resp.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict):
                code = error.get("code")
                message = error.get("message")
            code = code or body.get("code")
            message = message or body.get("message")

        err = error_from_response(resp.status_code, code, message or "Request failed")
        self._logger.warning(
            "Bookings API request failed",
            extra={"status": resp.status_code, "code": err.code, "error": err.message},
        )
        return err

    async def aclose(self) -> None:
        await self._client.aclose()
