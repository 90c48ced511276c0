"""
Configuración de fixtures para pytest.

Fakes sin red: sesión HTTP con respuestas encoladas, gateway Directus en
memoria y fuente FAST2 en memoria.
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional

import pytest

from fast2_sync.core.config import Settings
from fast2_sync.domain.entities import EntityType
from fast2_sync.shared.exceptions.sync import WriteError


FIXED_NOW = datetime(2024, 1, 15, 8, 30, 0, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        payload: Any = None,
        *,
        text: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text
        self.content = text.encode("utf-8")
        self.headers = headers or {}

    def json(self) -> Any:
        if self._payload is None:
            # Igual que requests: cuerpo no-JSON -> ValueError
            return json.loads(self.text)
        return self._payload


class FakeSession:
    """
    Imita requests.Session: registra cada llamada y devuelve respuestas en orden.

    Si lo encolado es una excepcion (ej. requests.ConnectionError) se lanza.
    """

    def __init__(self, responses: Optional[list[Any]] = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[dict[str, Any]] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"Request inesperado: {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.request("POST", url, **kwargs)

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.request("GET", url, **kwargs)


class InMemoryDirectus:
    """Gateway de destino en memoria; permite forzar fallos por id."""

    def __init__(self, items: Optional[list[dict[str, Any]]] = None, *, exists: bool = True) -> None:
        self.items: dict[str, dict[str, Any]] = {str(i["id"]): dict(i) for i in items or []}
        self.exists = exists
        self.fail_create_ids: set[str] = set()
        self.fail_update_ids: set[str] = set()
        self.creates: list[dict[str, Any]] = []
        self.updates: list[tuple[Any, dict[str, Any]]] = []

    def collection_exists(self, collection: str) -> bool:
        return self.exists

    def read_all(self, collection: str) -> list[dict[str, Any]]:
        return [dict(item) for item in self.items.values()]

    def create(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        if str(record["id"]) in self.fail_create_ids:
            raise WriteError("No se pudo crear item", status_code=400, body='{"errors":[{"message":"invalid"}]}')
        self.creates.append(record)
        self.items[str(record["id"])] = dict(record)
        return record

    def update(self, collection: str, record_id: Any, partial: dict[str, Any]) -> dict[str, Any]:
        if str(record_id) in self.fail_update_ids:
            raise WriteError("No se pudo actualizar item", status_code=500, body="boom")
        self.updates.append((record_id, partial))
        self.items[str(record_id)].update(partial)
        return self.items[str(record_id)]

    def status_of(self, record_id: Any) -> Optional[str]:
        return self.items[str(record_id)].get("status")


class InMemorySource:
    def __init__(self, records: Optional[dict[EntityType, list[dict[str, Any]]]] = None) -> None:
        self.records = records or {}
        self.calls: list[EntityType] = []

    def fetch_all(self, entity_type: EntityType, filters: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        self.calls.append(entity_type)
        return list(self.records.get(entity_type, []))


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def settings() -> Settings:
    """Settings completos sin leer .env ni variables de entorno del host."""
    return Settings(
        _env_file=None,
        OAUTH2_TOKEN_ENDPOINT="https://gw.example.se/oauth2/token",
        CONSUMER_KEY="key",
        CONSUMER_SECRET="secret",
        FAST2_BASE_URL="https://fast2.example.se",
        FAST2_USERNAME="user",
        FAST2_PASSWORD="pass",
        KUND_ID="KUND-1",
        KUND_NR="1001",
        DIRECTUS_API_URL="https://directus.example.se",
        DIRECTUS_API_TOKEN="dtoken",
    )
