from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import TransportError

logger = logging.getLogger(__name__)

ResponseHook = Callable[[httpx.Response], None]

JsonPayload = dict[str, Any] | list[Any] | None


class HttpClient:
    """Thin async wrapper around ``httpx.AsyncClient`` for the console API.

    Every call is single-shot: there is no retry loop, a transport failure or a
    non-2xx status is raised as an ``UpstreamError`` carrying the method,
    endpoint and status.
    """

    def __init__(self, config: ClientConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=config.api_base_url.rstrip("/") + "/",
            timeout=config.timeout_seconds,
            verify=config.verify_ssl,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | list[Any] | None = None,
        response_hook: ResponseHook | None = None,
    ) -> JsonPayload:
        request_headers = {"Accept": "application/json"}
        if headers:
            request_headers.update(headers)
        normalized_method = method.upper()
        endpoint = path.lstrip("/")

        try:
            response = await self._client.request(
                normalized_method,
                endpoint,
                headers=request_headers,
                json=json_body,
            )
        except httpx.TimeoutException as exc:
            logger.warning("upstream_timeout", extra={"method": normalized_method, "endpoint": path})
            raise TransportError(
                code="TIMEOUT_ERROR",
                message=str(exc) or "Request timed out",
                details={"type": type(exc).__name__},
                method=normalized_method,
                endpoint=path,
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("upstream_transport_error", extra={"method": normalized_method, "endpoint": path})
            raise TransportError(
                code="TRANSPORT_ERROR",
                message=str(exc) or type(exc).__name__,
                details={"type": type(exc).__name__},
                method=normalized_method,
                endpoint=path,
            ) from exc

        if response_hook:
            response_hook(response)

        if response.is_success:
            return self._safe_json(response)

        payload = self._safe_json(response)
        logger.warning(
            "upstream_error_status",
            extra={"method": normalized_method, "endpoint": path, "status_code": response.status_code},
        )
        raise map_error(
            normalized_method,
            path,
            response.status_code,
            payload if isinstance(payload, dict) else {"items": payload},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @staticmethod
    def _safe_json(response: httpx.Response) -> JsonPayload:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return {"message": response.text}
