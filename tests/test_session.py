from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from conftest import FAR_FUTURE, account_path
from quickclick_mcp.exceptions import AuthenticationError, UpstreamError
from quickclick_mcp.session import SESSION_COOKIE_NAME, parse_set_cookie

pytestmark = pytest.mark.anyio

SETTINGS_PATH = account_path("/settings")


def _http_date(moment: datetime) -> str:
    return moment.strftime("%a, %d %b %Y %H:%M:%S GMT")


def _settings_route(upstream) -> None:
    upstream.route("GET", SETTINGS_PATH, httpx.Response(200, json=[{"name": "Shop"}]))


async def test_reuses_session_while_cookie_valid(upstream, make_console) -> None:
    _settings_route(upstream)
    console = make_console()

    await console.get_settings()
    await console.get_settings()

    assert upstream.signins() == 1
    assert upstream.count("GET", SETTINGS_PATH) == 2


async def test_login_precedes_first_domain_call_and_sets_cookie(upstream, make_console) -> None:
    _settings_route(upstream)
    console = make_console()

    await console.get_settings()

    assert upstream.log() == ["POST /eaa/signin", f"GET {SETTINGS_PATH}"]
    assert upstream.calls[1].headers["Cookie"] == "connect.sid=s%3Aabc.def"


async def test_login_payload(upstream, make_console) -> None:
    _settings_route(upstream)
    console = make_console()

    await console.get_settings()

    assert upstream.bodies("POST", "/eaa/signin") == [
        {"type": "eaa", "username": "owner@example.com", "password": "secret"}
    ]


async def test_renews_session_after_expiry(upstream, make_console, clock) -> None:
    _settings_route(upstream)
    upstream.signin_cookies = [f"connect.sid=first; Expires={_http_date(clock() + timedelta(minutes=5))}"]
    console = make_console()

    await console.get_settings()
    clock.advance(minutes=4)
    await console.get_settings()
    assert upstream.signins() == 1

    upstream.signin_cookies = [f"connect.sid=second; Expires={_http_date(clock() + timedelta(hours=1))}"]
    clock.advance(minutes=2)
    await console.get_settings()

    assert upstream.signins() == 2
    assert upstream.log()[-2:] == ["POST /eaa/signin", f"GET {SETTINGS_PATH}"]
    assert upstream.calls[-1].headers["Cookie"] == "connect.sid=second"


async def test_cookie_expiring_exactly_now_is_renewed(upstream, make_console, clock) -> None:
    _settings_route(upstream)
    upstream.signin_cookies = [f"connect.sid=first; Expires={_http_date(clock() + timedelta(minutes=5))}"]
    console = make_console()
    await console.get_settings()

    upstream.signin_cookies = [f"connect.sid=second; Expires={FAR_FUTURE}"]
    clock.advance(minutes=5)
    await console.get_settings()

    assert upstream.signins() == 2
    assert upstream.calls[-1].headers["Cookie"] == "connect.sid=second"


async def test_no_set_cookie_raises_and_leaves_state_empty(upstream, make_console) -> None:
    upstream.signin_cookies = []
    console = make_console()

    with pytest.raises(AuthenticationError) as excinfo:
        await console.session.obtain_session_header()

    assert excinfo.value.code == "NO_CREDENTIALS"
    assert excinfo.value.message == "no credentials returned"
    assert console.session.fragments == ()


async def test_missing_session_cookie_after_login(upstream, make_console) -> None:
    upstream.signin_cookies = [f"lang=zh-TW; Expires={FAR_FUTURE}"]
    console = make_console()

    with pytest.raises(AuthenticationError) as excinfo:
        await console.session.obtain_session_header()

    assert excinfo.value.message == "session token missing after login"
    assert console.session.fragments == ()


async def test_cookie_already_expired_at_login_is_rejected(upstream, make_console) -> None:
    upstream.signin_cookies = ["connect.sid=old; Expires=Thu, 01 Jan 2015 00:00:00 GMT"]
    console = make_console()

    with pytest.raises(AuthenticationError):
        await console.session.obtain_session_header()


async def test_failed_relogin_keeps_previous_fragments(upstream, make_console, clock) -> None:
    upstream.signin_cookies = [f"connect.sid=first; Expires={_http_date(clock() + timedelta(minutes=5))}"]
    console = make_console()
    await console.session.obtain_session_header()
    before = console.session.fragments

    clock.advance(minutes=10)
    upstream.signin_cookies = []
    with pytest.raises(AuthenticationError):
        await console.session.obtain_session_header()

    assert console.session.fragments == before


async def test_signin_error_status_is_upstream_error(upstream, make_console) -> None:
    upstream.route("POST", "/eaa/signin", httpx.Response(500, json={"message": "down"}))
    console = make_console()

    with pytest.raises(UpstreamError) as excinfo:
        await console.session.obtain_session_header()

    assert excinfo.value.status_code == 500
    assert excinfo.value.endpoint == "/eaa/signin"
    assert console.session.fragments == ()


async def test_session_state_replaced_wholesale(upstream, make_console, clock) -> None:
    upstream.signin_cookies = [
        f"connect.sid=first; Expires={_http_date(clock() + timedelta(minutes=5))}",
        f"lang=zh-TW; Expires={FAR_FUTURE}",
    ]
    console = make_console()
    await console.session.obtain_session_header()
    assert [fragment.name for fragment in console.session.fragments] == [SESSION_COOKIE_NAME, "lang"]

    clock.advance(minutes=10)
    upstream.signin_cookies = [f"connect.sid=second; Expires={FAR_FUTURE}"]
    header = await console.session.obtain_session_header()

    assert header == "connect.sid=second"
    assert [fragment.name for fragment in console.session.fragments] == [SESSION_COOKIE_NAME]


def test_parse_set_cookie_attributes() -> None:
    token = parse_set_cookie(f"connect.sid=abc; Path=/; Expires={FAR_FUTURE}; HttpOnly")

    assert token is not None
    assert token.name == "connect.sid"
    assert token.value == "abc"
    assert token.attributes["path"] == "/"
    assert token.attributes["httponly"] == "True"
    assert token.expires_at == datetime(2099, 1, 1, tzinfo=timezone.utc)


def test_parse_set_cookie_max_age_wins_over_expires() -> None:
    now = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
    token = parse_set_cookie(f"connect.sid=abc; Max-Age=60; Expires={FAR_FUTURE}", now)

    assert token is not None
    assert token.expires_at == now + timedelta(seconds=60)


def test_parse_set_cookie_without_expiry_never_expires() -> None:
    token = parse_set_cookie('connect.sid="quoted"')

    assert token is not None
    assert token.value == "quoted"
    assert token.expires_at is None
    assert token.is_usable(datetime(2999, 1, 1, tzinfo=timezone.utc))


def test_parse_set_cookie_rejects_garbage() -> None:
    assert parse_set_cookie("HttpOnly") is None
    assert parse_set_cookie("=value") is None
    assert parse_set_cookie("") is None


def test_parse_set_cookie_invalid_max_age_falls_back_to_expires() -> None:
    token = parse_set_cookie(f"connect.sid=abc; Max-Age=soon; Expires={FAR_FUTURE}")

    assert token is not None
    assert token.expires_at == datetime(2099, 1, 1, tzinfo=timezone.utc)


def test_token_is_unusable_at_its_expiry_instant() -> None:
    moment = datetime(2026, 10, 19, 9, 5, tzinfo=timezone.utc)
    token = parse_set_cookie(f"connect.sid=abc; Expires={moment.strftime('%a, %d %b %Y %H:%M:%S GMT')}")

    assert token is not None
    assert token.expires_at == moment
    assert not token.is_usable(moment)
    assert token.is_usable(moment - timedelta(seconds=1))
