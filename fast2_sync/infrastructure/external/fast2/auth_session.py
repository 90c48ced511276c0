"""
Autenticacion en dos capas contra FAST2.

1. Gateway (WSO2): client_credentials con Basic auth -> token del gateway
2. Login de aplicacion: usuario/clave con Bearer del gateway -> token de sesion

Cada llamada posterior a la API lleva ambos headers:
- Authorization: Bearer <token gateway>
- X-Auth-Token: <token sesion>

No hay refresh automatico: si un token vence a mitad de corrida, el listado
falla con FetchError y la corrida aborta.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import requests
from loguru import logger

from fast2_sync.core.config import Fast2Credentials
from fast2_sync.shared.exceptions.sync import AuthError, ParseError

LOGIN_PATH = "/ao-produkt/v1/auth/login"
SESSION_TOKEN_HEADER = "X-Auth-Token"


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    GATEWAY_AUTHENTICATED = "gateway_authenticated"
    SESSION_ESTABLISHED = "session_established"


@dataclass(frozen=True)
class AccessToken:
    """Token opaco y su vigencia declarada (solo informativa)."""

    access_token: str
    expires_in: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "AccessToken":
        expires_in = payload.get("expires_in")
        try:
            expires = int(expires_in) if expires_in is not None else None
        except (TypeError, ValueError):
            expires = None
        return cls(access_token=str(payload["access_token"]), expires_in=expires)


class Fast2AuthSession:
    """
    Maquina de estados de la cadena de credenciales FAST2.

    UNAUTHENTICATED -> GATEWAY_AUTHENTICATED -> SESSION_ESTABLISHED

    El token de sesion solo existe emparejado con el token de gateway que se
    uso para obtenerlo; ambos viven en el mismo objeto y solo avanzan juntos.
    """

    def __init__(
        self,
        credentials: Fast2Credentials,
        *,
        session: Optional[requests.Session] = None,
        timeout_s: int = 30,
    ) -> None:
        self._creds = credentials
        self._session = session or requests.Session()
        self._timeout_s = timeout_s
        self._state = SessionState.UNAUTHENTICATED
        self._gateway_token: Optional[AccessToken] = None
        self._session_token: Optional[AccessToken] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def http(self) -> requests.Session:
        """Sesion HTTP compartida con el cliente de listados."""
        return self._session

    def acquire_gateway_token(self) -> AccessToken:
        """
        Obtiene el token del gateway (grant client_credentials).

        Idempotente: si ya se obtuvo, no vuelve a llamar a la red.
        """
        if self._state is not SessionState.UNAUTHENTICATED and self._gateway_token:
            return self._gateway_token

        logger.info("Autenticando contra gateway OAuth2...")
        raw = f"{self._creds.consumer_key}:{self._creds.consumer_secret}".encode("utf-8")
        headers = {
            "Authorization": "Basic " + base64.b64encode(raw).decode("ascii"),
            "Content-Type": "application/x-www-form-urlencoded",
        }
        try:
            resp = self._session.post(
                self._creds.token_endpoint,
                data="grant_type=client_credentials",
                headers=headers,
                timeout=self._timeout_s,
            )
        except requests.RequestException as e:
            raise AuthError(f"Fallo la solicitud de token OAuth2: {e}") from e

        payload = self._token_payload(resp, what="token OAuth2")
        self._gateway_token = AccessToken.from_payload(payload)
        self._state = SessionState.GATEWAY_AUTHENTICATED
        logger.success("Autenticacion OAuth2 exitosa")
        if self._gateway_token.expires_in is not None:
            logger.debug(f"Token de gateway expira en {self._gateway_token.expires_in}s")
        return self._gateway_token

    def establish_session(self, username: str, password: str) -> AccessToken:
        """
        Login de aplicacion con usuario/clave, autenticado con el token del gateway.

        Requiere estado GATEWAY_AUTHENTICATED.
        """
        if self._state is SessionState.SESSION_ESTABLISHED and self._session_token:
            return self._session_token
        if self._state is not SessionState.GATEWAY_AUTHENTICATED or not self._gateway_token:
            raise AuthError("No se puede iniciar sesion en FAST2 sin token de gateway")

        logger.info("Iniciando sesion en FAST2 API...")
        url = self._creds.base_url.rstrip("/") + LOGIN_PATH
        headers = {
            "Authorization": f"Bearer {self._gateway_token.access_token}",
            "Content-Type": "application/json",
        }
        try:
            resp = self._session.post(
                url,
                json={"username": username, "password": password},
                headers=headers,
                timeout=self._timeout_s,
            )
        except requests.RequestException as e:
            raise AuthError(f"Fallo la solicitud de login FAST2: {e}") from e

        payload = self._token_payload(resp, what="login FAST2")
        self._session_token = AccessToken.from_payload(payload)
        self._state = SessionState.SESSION_ESTABLISHED
        logger.success("Login FAST2 exitoso")
        if self._session_token.expires_in is not None:
            logger.debug(f"Token de sesion expira en {self._session_token.expires_in}s")
        return self._session_token

    def ensure_authenticated(self) -> None:
        """Avanza la maquina hasta SESSION_ESTABLISHED con las credenciales configuradas."""
        self.acquire_gateway_token()
        self.establish_session(self._creds.username, self._creds.password)

    def auth_headers(self) -> dict[str, str]:
        """Headers obligatorios para cualquier llamada a la API FAST2."""
        if self._state is not SessionState.SESSION_ESTABLISHED or not (self._gateway_token and self._session_token):
            raise AuthError(f"Sesion FAST2 no establecida (estado: {self._state.value})")
        return {
            "Authorization": f"Bearer {self._gateway_token.access_token}",
            SESSION_TOKEN_HEADER: self._session_token.access_token,
            "Content-Type": "application/json",
        }

    @staticmethod
    def _token_payload(resp: requests.Response, *, what: str) -> dict[str, Any]:
        if resp.status_code != 200:
            raise AuthError(
                f"Fallo {what} (HTTP {resp.status_code}): {resp.text[:500]}",
                status_code=resp.status_code,
                body=resp.text,
            )
        try:
            payload = resp.json()
        except ValueError as e:
            raise ParseError(f"Respuesta de {what} no es JSON valido", body=resp.text) from e

        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise AuthError(f"Respuesta de {what} sin access_token", status_code=resp.status_code, body=resp.text)
        return payload
