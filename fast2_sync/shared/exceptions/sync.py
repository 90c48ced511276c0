"""
Taxonomía de errores del pipeline FAST2 -> Directus.

Fatales (abortan la corrida): ConfigError, AuthError, FetchError, ParseError.
Recuperables (se registran por registro): WriteError.
"""
from typing import Any, Optional

from fast2_sync.shared.exceptions.base import AppException

# Cuerpos de respuesta muy largos ensucian el resumen final.
_MAX_BODY_CHARS = 500


def _truncate(body: Optional[str]) -> str:
    if not body:
        return ""
    if len(body) <= _MAX_BODY_CHARS:
        return body
    return body[:_MAX_BODY_CHARS] + "..."


class ConfigError(AppException):
    """Falta configuración obligatoria o la configuración es inválida."""

    def __init__(self, message: str, missing_keys: Optional[list[str]] = None):
        details = {"missing_keys": missing_keys} if missing_keys else None
        super().__init__(message=message, error_code="CONFIG_ERROR", details=details)
        self.missing_keys = missing_keys or []


class AuthError(AppException):
    """Falló el token del gateway o el login de sesión en FAST2."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="AUTH_ERROR",
            details={"status_code": status_code, "body": _truncate(body)},
        )
        self.status_code = status_code
        self.body = body


class FetchError(AppException):
    """Respuesta no-200 al listar registros (origen o destino)."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(
            message=f"{message} (HTTP {status_code}): {_truncate(body)}" if status_code else message,
            error_code="FETCH_ERROR",
            details={"status_code": status_code, "body": _truncate(body)},
        )
        self.status_code = status_code
        self.body = body


class ParseError(AppException):
    """El cuerpo de la respuesta no es JSON válido o no tiene la forma esperada."""

    def __init__(self, message: str, body: Optional[Any] = None):
        super().__init__(
            message=message,
            error_code="PARSE_ERROR",
            details={"body": _truncate(str(body)) if body is not None else ""},
        )
        self.body = body


class WriteError(AppException):
    """Falló un create/update individual en Directus."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(
            message=f"{message} (HTTP {status_code}): {_truncate(body)}" if status_code else message,
            error_code="WRITE_ERROR",
            details={"status_code": status_code, "body": _truncate(body)},
        )
        self.status_code = status_code
        self.body = body
