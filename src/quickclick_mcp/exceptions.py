from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ConsoleError(Exception):
    code: str
    message: str
    details: object | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class AuthenticationError(ConsoleError):
    """Login exchange did not yield a usable session cookie."""


class NotFoundError(ConsoleError):
    """An expected singleton was absent from an upstream collection."""


class ValidationError(ConsoleError):
    """Caller input failed a format or range check."""


@dataclass
class UpstreamError(ConsoleError):
    method: str = ""
    endpoint: str = ""
    status_code: int = 0
    raw_payload: object | None = None

    def __str__(self) -> str:
        return f"[{self.status_code}] {self.method} {self.endpoint} {self.code}: {self.message}"


class TransportError(UpstreamError):
    """Network/transport failure before an HTTP response was returned."""
