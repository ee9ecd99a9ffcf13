from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

CHANNELS = ("uberEats", "foodPanda")


def empty_variations() -> dict[str, list[Any]]:
    return {channel: [] for channel in CHANNELS}


def availability_from_flag(flag: Any) -> bool:
    """Upstream encodes visibility as 0/1, sometimes as a string."""
    if isinstance(flag, str):
        return flag.strip().lower() in {"1", "true"}
    return bool(flag)


def flag_from_availability(is_available: bool) -> int:
    return 1 if is_available else 0


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class Credential(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    password: str = Field(repr=False)


class SessionToken(BaseModel):
    name: str
    value: str
    expires_at: datetime | None = None
    attributes: dict[str, str] = Field(default_factory=dict)

    def is_usable(self, now: datetime) -> bool:
        if self.expires_at is None:
            return True
        return self.expires_at > now

    def header(self) -> str:
        return f"{self.name}={self.value}"


class Settings(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = None
    to_go_waiting_time: str | int | float | bool | None = None


class DayOff(CamelModel):
    id: int
    special_date: str = Field(alias="specialDate")


class ProductSummary(CamelModel):
    id: int
    name: str
    price: int
    is_available: bool = Field(alias="isAvailable")


class Product(CamelModel):
    id: int
    name: str
    price: int
    description: str | None = None
    category_id: int | None = Field(default=None, alias="categoryId")
    is_available: bool = Field(alias="isAvailable")

    @classmethod
    def from_upstream(cls, record: dict[str, Any]) -> "Product":
        return cls(
            id=record["id"],
            name=record.get("name") or "",
            price=record.get("amount") or 0,
            description=record.get("description"),
            category_id=record.get("categoryId"),
            is_available=availability_from_flag(record.get("isVisibled")),
        )


class ProductCreate(CamelModel):
    price: int
    name: str
    description: str | None = None
    is_available: bool = Field(alias="isAvailable")
    category_id: int = Field(alias="categoryId")


class ProductUpdate(CamelModel):
    id: int
    price: int | None = None
    name: str | None = None
    description: str | None = None
    is_available: bool | None = Field(default=None, alias="isAvailable")
