"""
Tests de la máquina de estados de autenticación FAST2.
"""
import base64

import pytest
import requests

from fast2_sync.infrastructure.external.fast2.auth_session import Fast2AuthSession, SessionState
from fast2_sync.shared.exceptions.sync import AuthError, ParseError
from tests.conftest import FakeResponse, FakeSession


@pytest.fixture
def http():
    return FakeSession()


@pytest.fixture
def auth(settings, http):
    return Fast2AuthSession(settings.fast2_credentials(), session=http, timeout_s=5)


def _gateway_ok():
    return FakeResponse(200, {"access_token": "gw-token", "expires_in": 3600})


def _login_ok():
    return FakeResponse(200, {"access_token": "session-token", "expires_in": "1800"})


class TestGatewayToken:
    def test_starts_unauthenticated(self, auth):
        assert auth.state is SessionState.UNAUTHENTICATED

    def test_uses_basic_auth_and_client_credentials_grant(self, auth, http):
        http.queue(_gateway_ok())

        token = auth.acquire_gateway_token()

        call = http.calls[0]
        expected = base64.b64encode(b"key:secret").decode("ascii")
        assert call["method"] == "POST"
        assert call["url"] == "https://gw.example.se/oauth2/token"
        assert call["headers"]["Authorization"] == f"Basic {expected}"
        assert call["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
        assert call["data"] == "grant_type=client_credentials"
        assert token.access_token == "gw-token"
        assert token.expires_in == 3600
        assert auth.state is SessionState.GATEWAY_AUTHENTICATED

    def test_is_cached_after_first_call(self, auth, http):
        http.queue(_gateway_ok())

        first = auth.acquire_gateway_token()
        second = auth.acquire_gateway_token()

        assert first is second
        assert len(http.calls) == 1

    def test_non_200_raises_auth_error(self, auth, http):
        http.queue(FakeResponse(401, {"error": "invalid_client"}))

        with pytest.raises(AuthError) as exc_info:
            auth.acquire_gateway_token()

        assert exc_info.value.status_code == 401
        assert auth.state is SessionState.UNAUTHENTICATED

    def test_missing_access_token_raises_auth_error(self, auth, http):
        http.queue(FakeResponse(200, {"token_type": "Bearer"}))

        with pytest.raises(AuthError, match="access_token"):
            auth.acquire_gateway_token()

    def test_invalid_json_raises_parse_error(self, auth, http):
        http.queue(FakeResponse(200, text="<html>gateway</html>"))

        with pytest.raises(ParseError):
            auth.acquire_gateway_token()


class TestSession:
    def test_requires_gateway_token(self, auth, http):
        with pytest.raises(AuthError):
            auth.establish_session("user", "pass")

        assert http.calls == []

    def test_login_uses_gateway_bearer(self, auth, http):
        http.queue(_gateway_ok(), _login_ok())
        auth.acquire_gateway_token()

        token = auth.establish_session("user", "pass")

        call = http.calls[1]
        assert call["url"] == "https://fast2.example.se/ao-produkt/v1/auth/login"
        assert call["headers"]["Authorization"] == "Bearer gw-token"
        assert call["json"] == {"username": "user", "password": "pass"}
        assert token.access_token == "session-token"
        assert token.expires_in == 1800
        assert auth.state is SessionState.SESSION_ESTABLISHED

    def test_login_failure_keeps_gateway_state(self, auth, http):
        http.queue(_gateway_ok(), FakeResponse(403, text="Forbidden"))
        auth.acquire_gateway_token()

        with pytest.raises(AuthError) as exc_info:
            auth.establish_session("user", "wrong")

        assert exc_info.value.status_code == 403
        assert auth.state is SessionState.GATEWAY_AUTHENTICATED

    def test_ensure_authenticated_runs_both_steps_once(self, auth, http):
        http.queue(_gateway_ok(), _login_ok())

        auth.ensure_authenticated()
        auth.ensure_authenticated()

        assert len(http.calls) == 2
        assert auth.state is SessionState.SESSION_ESTABLISHED


class TestAuthHeaders:
    def test_not_available_before_session(self, auth):
        with pytest.raises(AuthError):
            auth.auth_headers()

    def test_carry_both_tokens(self, auth, http):
        http.queue(_gateway_ok(), _login_ok())
        auth.ensure_authenticated()

        headers = auth.auth_headers()

        assert headers["Authorization"] == "Bearer gw-token"
        assert headers["X-Auth-Token"] == "session-token"


class TestTransportErrors:
    def test_gateway_connection_error_is_auth_error(self, auth, http):
        http.queue(requests.ConnectionError("connection refused"))

        with pytest.raises(AuthError, match="connection refused"):
            auth.acquire_gateway_token()

        assert auth.state is SessionState.UNAUTHENTICATED

    def test_login_timeout_is_auth_error(self, auth, http):
        http.queue(_gateway_ok(), requests.Timeout("read timed out"))
        auth.acquire_gateway_token()

        with pytest.raises(AuthError, match="read timed out"):
            auth.establish_session("user", "pass")

        assert auth.state is SessionState.GATEWAY_AUTHENTICATED


def test_auth_headers_require_both_tokens_even_if_state_says_established(auth):
    # Estado inconsistente: nunca debe producir headers con tokens vacios
    auth._state = SessionState.SESSION_ESTABLISHED

    with pytest.raises(AuthError):
        auth.auth_headers()
