"""
Resultado de una corrida de sync.

Se mantiene pequeño y determinista para logging y para el resumen final.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from fast2_sync.domain.entities import EntityType


class SyncStage(str, Enum):
    """Paso del loop en el que fallo un registro."""

    TRANSFORM = "transform"
    CREATE = "create"
    UPDATE = "update"
    DEACTIVATE = "deactivate"


@dataclass(frozen=True)
class SyncErrorEntry:
    record_id: Optional[Any]
    stage: SyncStage
    message: str

    def describe(self) -> str:
        return f"[{self.stage.value}] {self.record_id}: {self.message}"


@dataclass
class SyncResult:
    """
    Estadisticas de una corrida para una entidad.

    active_after / inactive_after se derivan de lo que se sabe al final de la
    corrida (estado previo + escrituras exitosas), sin releer Directus.
    """

    entity_type: EntityType
    collection: str
    source_total: int = 0
    destination_before: int = 0
    created: int = 0
    updated: int = 0
    deactivated: int = 0
    errors: list[SyncErrorEntry] = field(default_factory=list)
    elapsed_s: float = 0.0
    active_after: int = 0
    inactive_after: int = 0

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def summary_lines(self) -> list[str]:
        """Resumen legible para el final del script."""
        lines = [
            f"Sync {self.entity_type.value} -> {self.collection}",
            f"  FAST2: {self.source_total} | Directus antes del sync: {self.destination_before}",
            f"  Creados: {self.created} | Actualizados: {self.updated} | Marcados inactivos: {self.deactivated}",
            f"  Total en Directus: {self.active_after + self.inactive_after} "
            f"({self.active_after} activos, {self.inactive_after} inactivos)",
            f"  Duracion: {self.elapsed_s:.2f}s",
        ]
        if self.errors:
            lines.append(f"  Errores: {len(self.errors)}")
            lines.extend(f"    - {err.describe()}" for err in self.errors)
        return lines
