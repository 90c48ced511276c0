"""
Servicios de aplicacion.

Transformacion pura de registros FAST2 hacia Directus.
"""
from fast2_sync.application.services.record_transformer import (
    get_path,
    transform_for,
    transform_property,
    transform_record,
    transform_work_order,
)

__all__ = [
    "get_path",
    "transform_for",
    "transform_property",
    "transform_record",
    "transform_work_order",
]
