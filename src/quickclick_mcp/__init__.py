from .availability_cache import AvailabilityCache, AvailabilityCacheEntry
from .config import ClientConfig, ConfigError, load_config
from .console import ConsoleClient
from .exceptions import (
    AuthenticationError,
    ConsoleError,
    NotFoundError,
    TransportError,
    UpstreamError,
    ValidationError,
)
from .models import DayOff, Product, ProductSummary, SessionToken, Settings
from .session import SESSION_COOKIE_NAME, SessionManager

__version__ = "0.1.0"

__all__ = [
    "AuthenticationError",
    "AvailabilityCache",
    "AvailabilityCacheEntry",
    "ClientConfig",
    "ConfigError",
    "ConsoleClient",
    "ConsoleError",
    "DayOff",
    "NotFoundError",
    "Product",
    "ProductSummary",
    "SESSION_COOKIE_NAME",
    "SessionManager",
    "SessionToken",
    "Settings",
    "TransportError",
    "UpstreamError",
    "ValidationError",
    "load_config",
]
