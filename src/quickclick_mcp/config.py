from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable

from dotenv import load_dotenv

DEFAULT_API_BASE_URL = "https://app.quickclick.cc/console/apis"
TRANSPORTS = ("stdio", "sse", "streamable-http")


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    username: str
    password: str
    account_id: int
    menu_id: int
    api_base_url: str = DEFAULT_API_BASE_URL
    timeout_seconds: float = 15.0
    verify_ssl: bool = True
    availability_ttl_seconds: float = 600.0
    transport: str = "streamable-http"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    def __repr__(self) -> str:
        return (
            f"ClientConfig(username={self.username!r}, password='***', "
            f"account_id={self.account_id}, menu_id={self.menu_id}, "
            f"api_base_url={self.api_base_url!r})"
        )


def _require(values: dict[str, str | None], required: Iterable[str]) -> None:
    missing = [key for key in required if not values.get(key)]
    if missing:
        raise ConfigError(f"Missing required config values: {', '.join(missing)}")


def _coerce_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc


def _read_int(name: str, default: str | None = None) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected an integer, got {raw!r}") from exc


def _validate(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load config from environment with optional .env override."""
    load_dotenv(env_file)

    username = (os.getenv("QUICKCLICK_USERNAME") or "").strip()
    password = os.getenv("QUICKCLICK_PASSWORD") or ""
    values = {
        "QUICKCLICK_USERNAME": username,
        "QUICKCLICK_PASSWORD": password,
        "QUICKCLICK_ACCOUNT_ID": os.getenv("QUICKCLICK_ACCOUNT_ID"),
        "QUICKCLICK_MENU_ID": os.getenv("QUICKCLICK_MENU_ID"),
    }
    _require(values, values.keys())
    _validate(
        "@" in username and not username.startswith("@"),
        f"Invalid QUICKCLICK_USERNAME: expected an e-mail address, got {username!r}",
    )

    account_id = _read_int("QUICKCLICK_ACCOUNT_ID")
    _validate(account_id > 0, f"Invalid QUICKCLICK_ACCOUNT_ID: expected > 0, got {account_id}")

    menu_id = _read_int("QUICKCLICK_MENU_ID")
    _validate(menu_id > 0, f"Invalid QUICKCLICK_MENU_ID: expected > 0, got {menu_id}")

    api_base_url = (os.getenv("QUICKCLICK_API_BASE_URL") or "").strip() or DEFAULT_API_BASE_URL

    timeout_seconds = _read_float("QUICKCLICK_TIMEOUT_SECONDS", "15")
    _validate(
        timeout_seconds > 0,
        f"Invalid QUICKCLICK_TIMEOUT_SECONDS: expected > 0, got {timeout_seconds}",
    )

    availability_ttl_seconds = _read_float("QUICKCLICK_AVAILABILITY_TTL_SECONDS", "600")
    _validate(
        availability_ttl_seconds > 0,
        (
            "Invalid QUICKCLICK_AVAILABILITY_TTL_SECONDS: "
            f"expected > 0, got {availability_ttl_seconds}"
        ),
    )

    transport = (os.getenv("QUICKCLICK_TRANSPORT") or "streamable-http").strip().lower()
    _validate(
        transport in TRANSPORTS,
        f"Invalid QUICKCLICK_TRANSPORT: expected one of {', '.join(TRANSPORTS)}, got {transport!r}",
    )

    port = _read_int("PORT", "3000")
    _validate(0 < port < 65536, f"Invalid PORT: expected 1-65535, got {port}")

    log_level = (os.getenv("QUICKCLICK_LOG_LEVEL") or "INFO").strip().upper()
    _validate(
        isinstance(logging.getLevelName(log_level), int),
        f"Invalid QUICKCLICK_LOG_LEVEL: unknown level {log_level!r}",
    )

    return ClientConfig(
        username=username,
        password=password,
        account_id=account_id,
        menu_id=menu_id,
        api_base_url=api_base_url.rstrip("/"),
        timeout_seconds=timeout_seconds,
        verify_ssl=_coerce_bool(os.getenv("QUICKCLICK_VERIFY_SSL"), True),
        availability_ttl_seconds=availability_ttl_seconds,
        transport=transport,
        host=(os.getenv("QUICKCLICK_HOST") or "0.0.0.0").strip(),
        port=port,
        log_level=log_level,
    )
