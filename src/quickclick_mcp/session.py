from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from http.cookies import CookieError, SimpleCookie

import httpx

from .exceptions import AuthenticationError
from .http_client import HttpClient
from .models import Credential, SessionToken

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "connect.sid"
SIGNIN_PATH = "/eaa/signin"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_expires(raw: str) -> datetime | None:
    try:
        parsed = parsedate_to_datetime(raw)
    except (TypeError, ValueError, IndexError):
        logger.warning("cookie_expires_unparseable", extra={"expires": raw})
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_set_cookie(header: str, now: datetime | None = None) -> SessionToken | None:
    """Parse one ``Set-Cookie`` header value.

    ``Max-Age`` wins over ``Expires``; a cookie with neither never expires.
    """
    cookie = SimpleCookie()
    try:
        cookie.load(header)
    except CookieError:
        logger.warning("cookie_unparseable")
        return None
    morsel = next(iter(cookie.values()), None)
    if morsel is None:
        return None

    attributes = {key: str(value) for key, value in morsel.items() if value}
    expires_at = None
    if morsel["max-age"]:
        try:
            expires_at = (now or _utcnow()) + timedelta(seconds=int(morsel["max-age"]))
        except ValueError:
            expires_at = None
    if expires_at is None and morsel["expires"]:
        expires_at = _parse_expires(morsel["expires"])

    return SessionToken(name=morsel.key, value=morsel.value, expires_at=expires_at, attributes=attributes)


class SessionManager:
    """Keeps one console session alive across operations.

    The stored fragments are replaced wholesale after each successful login
    and are otherwise read-only. Concurrent callers that both find no usable
    token each perform their own login; the last one to finish wins.
    """

    def __init__(
        self,
        http: HttpClient,
        credential: Credential,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.http = http
        self.credential = credential
        self._clock = clock or _utcnow
        self._fragments: list[SessionToken] = []

    @property
    def fragments(self) -> tuple[SessionToken, ...]:
        return tuple(self._fragments)

    def _usable_token(self, fragments: Sequence[SessionToken]) -> SessionToken | None:
        if not fragments:
            return None
        token = next((fragment for fragment in fragments if fragment.name == SESSION_COOKIE_NAME), None)
        if token is None:
            return None
        if not token.is_usable(self._clock()):
            return None
        return token

    async def obtain_session_header(self) -> str:
        token = self._usable_token(self._fragments)
        if token is not None:
            return token.header()

        fragments = await self._login()
        token = self._usable_token(fragments)
        if token is None:
            logger.warning("login_missing_session_cookie", extra={"username": self.credential.username})
            raise AuthenticationError(
                code="SESSION_TOKEN_MISSING",
                message="session token missing after login",
                details={"cookie": SESSION_COOKIE_NAME},
            )

        self._fragments = list(fragments)
        logger.info("login_success", extra={"username": self.credential.username})
        return token.header()

    async def _login(self) -> list[SessionToken]:
        captured: list[str] = []

        def _capture(response: httpx.Response) -> None:
            captured.extend(response.headers.get_list("set-cookie"))

        logger.info("login_attempt", extra={"username": self.credential.username})
        await self.http.request(
            "POST",
            SIGNIN_PATH,
            json_body={
                "type": "eaa",
                "username": self.credential.username,
                "password": self.credential.password,
            },
            response_hook=_capture,
        )
        if not captured:
            logger.warning("login_no_cookies", extra={"username": self.credential.username})
            raise AuthenticationError(code="NO_CREDENTIALS", message="no credentials returned")

        now = self._clock()
        parsed = (parse_set_cookie(header, now) for header in captured)
        return [fragment for fragment in parsed if fragment is not None]
