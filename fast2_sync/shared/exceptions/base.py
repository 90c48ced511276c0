"""
Raiz de la jerarquia de errores del sync FAST2 -> Directus.
"""
from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Error conocido del pipeline, con codigo estable para logs y resumen.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def describe(self) -> str:
        """Linea corta para el log de salida de los scripts."""
        return f"Error [{self.error_code}]: {self.message}"
