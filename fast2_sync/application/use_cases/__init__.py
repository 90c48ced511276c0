"""
Casos de uso de la aplicacion.
"""
from .sync_use_cases import Fast2ToDirectusSync, build_from_settings

__all__ = ["Fast2ToDirectusSync", "build_from_settings"]
