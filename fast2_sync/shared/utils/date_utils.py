"""
Utilidades de fechas para el sync FAST2 -> Directus.

Funciones puras: no hacen I/O, salvo leer el reloj en utc_now().
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

# Formato que Directus acepta para campos timestamp
DIRECTUS_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


def format_directus_timestamp(dt: datetime) -> str:
    """Serializa un datetime al formato 'YYYY-MM-DD HH:MM:SS' usado en last_synced."""
    return dt.strftime(DIRECTUS_TIMESTAMP_FORMAT)


def normalize_fast2_date(value: Any) -> Optional[Any]:
    """
    Convierte fechas FAST2 'YYYYMMDD' a ISO 'YYYY-MM-DD'.

    Reglas:
    - None o vacío -> None
    - Si ya contiene '-' o 'T' (ISO o timestamp) se retorna tal cual
    - 8 dígitos -> 'YYYY-MM-DD'
    - Cualquier otro valor se retorna sin cambios (opaco)
    """
    if value is None or value == "":
        return None

    # FAST2 a veces entrega la fecha como entero (20240115)
    text = str(value)
    if "-" in text or "T" in text:
        return value

    if len(text) == 8 and text.isdigit():
        return f"{text[0:4]}-{text[4:6]}-{text[6:8]}"

    return value
