"""
Tipos de dominio compartidos por el pipeline FAST2 -> Directus.

Se mantienen libres de I/O para poder testearlos fácilmente.
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class EntityType(str, Enum):
    """Tipos de registro que se sincronizan desde FAST2."""

    FASTIGHETER = "fastigheter"
    ARBETSORDRAR = "arbetsordrar"


class RecordStatus(str, Enum):
    """
    Estado de un registro en Directus.

    Nunca se borra físicamente: un registro que desaparece de FAST2 pasa a INACTIVE.
    """

    ACTIVE = "active"
    INACTIVE = "inactive"

    @classmethod
    def parse(cls, value: Any) -> "RecordStatus | None":
        """Interpreta el status leído desde Directus; valores desconocidos -> None."""
        try:
            return cls(value)
        except ValueError:
            return None


def record_key(record_id: Any) -> str:
    """
    Clave de identidad para comparar ids de origen y destino.

    FAST2 entrega ids enteros para arbetsordrar y Directus puede devolverlos
    como string (o al revés); comparamos siempre por su forma de texto.
    """
    return str(record_id)
