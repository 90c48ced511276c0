"""
Contratos que consume el motor de reconciliacion.

El caso de uso solo conoce estos protocolos; las implementaciones HTTP viven
en infrastructure/external y los fakes en memoria en tests/conftest.py.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from fast2_sync.domain.entities import EntityType


class DestinationGateway(Protocol):
    """
    Capacidades del store de destino (Directus).

    Implementaciones:
    - DirectusClient (HTTP).
    - Fake en memoria para tests.
    """

    def collection_exists(self, collection: str) -> bool:
        """Precondicion del sync: si es False la corrida aborta con ConfigError."""

    def read_all(self, collection: str) -> list[dict[str, Any]]:
        """Todos los registros actuales de la coleccion."""

    def create(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        """Crea un registro. Debe lanzar WriteError si el destino lo rechaza."""

    def update(self, collection: str, record_id: Any, partial: dict[str, Any]) -> dict[str, Any]:
        """Actualiza solo los campos enviados. Debe lanzar WriteError si falla."""


class SourceFetcher(Protocol):
    """Lectura del conjunto completo de registros de origen (FAST2)."""

    def fetch_all(self, entity_type: EntityType, filters: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        """Registros crudos, ya sin los confidenciales."""
