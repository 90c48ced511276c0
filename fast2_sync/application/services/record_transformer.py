"""
Transformacion de registros FAST2 a la forma plana/JSON de Directus.

Reglas:
- Rutas anidadas opcionales: si falta cualquier nivel, el campo queda en None
- Fechas YYYYMMDD -> YYYY-MM-DD (ver normalize_fast2_date)
- Subobjetos complejos y raw_data se guardan como texto JSON
- Cada transformacion marca status=active y last_synced=ahora; la
  desactivacion la decide despues el motor de reconciliacion
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional

from fast2_sync.domain.entities import EntityType, RecordStatus
from fast2_sync.shared.utils.date_utils import format_directus_timestamp, utc_now

from .field_mappings import MAPPINGS_BY_ENTITY, FieldMapping

Clock = Callable[[], datetime]

_MISSING = object()


def get_path(record: Any, path: Iterable[str]) -> Any:
    """
    Lee una ruta anidada sin lanzar errores.

    Retorna _MISSING si algun nivel no existe o no es un dict.
    """
    current = record
    for key in path:
        if not isinstance(current, Mapping) or key not in current:
            return _MISSING
        current = current[key]
    return current


def to_json_text(value: Any) -> str:
    """Serializa manteniendo caracteres suecos (å, ä, ö) legibles."""
    return json.dumps(value, ensure_ascii=False)


def _apply(mapping: FieldMapping, record: Mapping[str, Any]) -> Any:
    value = get_path(record, mapping.path)
    # null explicito se trata igual que un campo ausente
    if value is _MISSING or value is None:
        return mapping.default
    if mapping.as_json:
        return to_json_text(value)
    if mapping.transform:
        return mapping.transform(value)
    return value


def transform_record(
    record: Mapping[str, Any],
    mappings: Iterable[FieldMapping],
    *,
    clock: Optional[Clock] = None,
) -> dict[str, Any]:
    """
    Mapea un registro FAST2 a un dict listo para create/update en Directus.
    """
    now = (clock or utc_now)()
    row: dict[str, Any] = {m.target: _apply(m, record) for m in mappings}
    row["raw_data"] = to_json_text(record)
    row["status"] = RecordStatus.ACTIVE.value
    row["last_synced"] = format_directus_timestamp(now)
    return row


def transform_property(node: Mapping[str, Any], *, clock: Optional[Clock] = None) -> dict[str, Any]:
    return transform_record(node, MAPPINGS_BY_ENTITY[EntityType.FASTIGHETER], clock=clock)


def transform_work_order(order: Mapping[str, Any], *, clock: Optional[Clock] = None) -> dict[str, Any]:
    return transform_record(order, MAPPINGS_BY_ENTITY[EntityType.ARBETSORDRAR], clock=clock)


def transform_for(entity_type: EntityType, record: Mapping[str, Any], *, clock: Optional[Clock] = None) -> dict[str, Any]:
    """Despacha la transformacion segun la entidad."""
    if entity_type is EntityType.FASTIGHETER:
        return transform_property(record, clock=clock)
    return transform_work_order(record, clock=clock)
