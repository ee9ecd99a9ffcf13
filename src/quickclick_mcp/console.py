from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

import httpx

from .availability_cache import AvailabilityCache
from .config import ClientConfig
from .exceptions import NotFoundError, UpstreamError
from .http_client import HttpClient, JsonPayload
from .models import (
    Credential,
    DayOff,
    Product,
    ProductCreate,
    ProductSummary,
    ProductUpdate,
    Settings,
    availability_from_flag,
    empty_variations,
    flag_from_availability,
)
from .session import SessionManager
from .validation import validate_record_id, validate_special_date, validate_waiting_time

logger = logging.getLogger(__name__)

SETTINGS_TABLE = "settings"

T = TypeVar("T")


def _as_list(payload: JsonPayload) -> list[dict[str, Any]]:
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]
    if isinstance(payload, dict) and isinstance(payload.get("items"), list):
        return [item for item in payload["items"] if isinstance(item, dict)]
    return []


def _shaped(method: str, path: str, payload: JsonPayload, build: Callable[[], T]) -> T:
    """Run ``build`` over an upstream payload, reporting shape mismatches as ``UpstreamError``."""
    try:
        return build()
    except (KeyError, TypeError, ValueError) as exc:
        raise UpstreamError(
            code="UNEXPECTED_PAYLOAD",
            message=f"unexpected response shape: {exc}",
            method=method,
            endpoint=path,
            status_code=200,
            raw_payload=payload,
        ) from exc


class ConsoleClient:
    """Domain operations against one QuickClick console account.

    Each call obtains a session header from the ``SessionManager`` and issues a
    single upstream request; ``update_product`` reads the full record first
    because the upstream PUT replaces the whole product.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], datetime] | None = None,
        now: Callable[[], float] | None = None,
    ) -> None:
        self.config = config
        self.http = HttpClient(config, client=client)
        self.session = SessionManager(
            self.http,
            Credential(username=config.username, password=config.password),
            clock=clock,
        )
        self.availability = AvailabilityCache(ttl_seconds=config.availability_ttl_seconds, now=now or time.monotonic)

    async def __aenter__(self) -> "ConsoleClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    def _account_path(self, suffix: str) -> str:
        return f"/eaa/console/{self.config.account_id}{suffix}"

    def _menu_products_path(self) -> str:
        return self._account_path(f"/menus/{self.config.menu_id}/products")

    def _product_path(self, product_id: int) -> str:
        return self._account_path(f"/products/{product_id}")

    async def _request(self, method: str, path: str, **kwargs: Any) -> JsonPayload:
        cookie = await self.session.obtain_session_header()
        headers = {**kwargs.pop("headers", {}), "Cookie": cookie}
        return await self.http.request(method, path, headers=headers, **kwargs)

    # Settings

    async def get_settings(self) -> Settings:
        path = self._account_path("/settings")
        payload = await self._request("GET", path)
        rows = _as_list(payload)
        if not rows:
            raise NotFoundError(code="SETTINGS_NOT_FOUND", message="settings collection is empty")
        return _shaped("GET", path, payload, lambda: Settings.model_validate(rows[0]))

    async def _put_setting(self, key: str, value: str, label: str) -> None:
        await self._request(
            "PUT",
            self._account_path("/settings"),
            json_body={"key": key, "value": value, "label": label, "dbTable": SETTINGS_TABLE},
        )

    async def enable_ordering(self, enabled: bool) -> None:
        await self._put_setting("enable_online_order", "1" if enabled else "0", "Enable online ordering")

    async def update_to_go_waiting_time(self, minutes: int) -> None:
        minutes = validate_waiting_time(minutes)
        await self._put_setting("to_go_waiting_time", str(minutes), "To-go waiting time")

    # Day offs

    async def list_day_offs(self) -> list[DayOff]:
        path = self._account_path("/opening-specials")
        payload = await self._request("GET", path)
        return _shaped("GET", path, payload, lambda: [DayOff.model_validate(row) for row in _as_list(payload)])

    async def add_day_off(self, date: str) -> None:
        special_date = validate_special_date(date)
        await self._request(
            "POST",
            self._account_path("/opening-specials"),
            json_body={"specialDate": special_date},
        )

    async def delete_day_off(self, day_off_id: int) -> None:
        day_off_id = validate_record_id(day_off_id)
        await self._request("DELETE", self._account_path(f"/opening-specials/{day_off_id}"))

    # Products

    async def list_products(self, name: str | None = None) -> list[ProductSummary]:
        path = self._menu_products_path()
        payload = await self._request("GET", path)
        rows = _as_list(payload)
        if name is not None:
            needle = name.casefold()
            rows = [row for row in rows if needle in str(row.get("name") or "").casefold()]

        summaries = _shaped(
            "GET",
            path,
            payload,
            lambda: [
                ProductSummary(
                    id=row["id"],
                    name=row.get("name") or "",
                    price=row.get("amount") or 0,
                    is_available=False,
                )
                for row in rows
            ],
        )
        availability = await asyncio.gather(*(self._resolve_availability(summary.id) for summary in summaries))
        return [
            summary.model_copy(update={"is_available": is_available})
            for summary, is_available in zip(summaries, availability)
        ]

    async def _resolve_availability(self, product_id: int) -> bool:
        cached = self.availability.get(product_id)
        if cached is not None:
            logger.debug("availability_cache_hit", extra={"product_id": product_id})
            return cached
        logger.debug("availability_cache_refresh", extra={"product_id": product_id})
        product = await self.get_product(product_id)
        return product.is_available

    async def _read_product(self, product_id: int) -> tuple[dict[str, Any], Product]:
        path = self._product_path(product_id)
        payload = await self._request("GET", path)
        if not isinstance(payload, dict) or "id" not in payload:
            raise UpstreamError(
                code="UNEXPECTED_PAYLOAD",
                message="expected a product object",
                method="GET",
                endpoint=path,
                status_code=200,
                raw_payload=payload,
            )
        product = _shaped("GET", path, payload, lambda: Product.from_upstream(payload))
        self.availability.set(product.id, product.is_available)
        return payload, product

    async def get_product(self, product_id: int) -> Product:
        _, product = await self._read_product(validate_record_id(product_id))
        return product

    async def create_product(
        self,
        *,
        price: int,
        name: str,
        is_available: bool,
        category_id: int,
        description: str | None = None,
    ) -> None:
        fields = ProductCreate(
            price=price,
            name=name,
            description=description,
            is_available=is_available,
            category_id=category_id,
        )
        record = {
            "calories": None,
            "code": "",
            "image": "",
            "stock": None,
            "stockReset": None,
            "tempFile": None,
            "variations": empty_variations(),
            "amount": fields.price,
            "name": fields.name,
            "description": fields.description or "",
            "isVisibled": flag_from_availability(fields.is_available),
            "categoryId": fields.category_id,
        }
        await self._request("POST", self._menu_products_path(), json_body=record)
        logger.info("product_created", extra={"product_name": fields.name})

    async def update_product(
        self,
        product_id: int,
        *,
        price: int | None = None,
        name: str | None = None,
        description: str | None = None,
        is_available: bool | None = None,
    ) -> Product:
        fields = ProductUpdate(
            id=validate_record_id(product_id),
            price=price,
            name=name,
            description=description,
            is_available=is_available,
        )
        current, _ = await self._read_product(fields.id)

        record = dict(current)
        if fields.price is not None:
            record["amount"] = fields.price
        if fields.name is not None:
            record["name"] = fields.name
        if fields.description is not None:
            record["description"] = fields.description
        if fields.is_available is not None:
            record["isVisibled"] = flag_from_availability(fields.is_available)
        record["variations"] = empty_variations()

        await self._request("PUT", self._product_path(fields.id), json_body=record)
        self.availability.set(fields.id, availability_from_flag(record.get("isVisibled")))
        logger.info("product_updated", extra={"product_id": fields.id})
        return Product.from_upstream(record)
