"""
Configuracion de loguru para los scripts de sync.

- Consola (stderr) con nivel segun LOG_LEVEL o --verbose
- Archivo con rotacion para revisar corridas nocturnas
"""
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {name}:{function}:{line} | {message}"


def configure_logging(level: str = "INFO", log_file: Optional[str] = None, verbose: bool = False) -> None:
    """
    Reemplaza el sink por defecto de loguru.

    Args:
        level: Nivel para consola (INFO, WARNING, ...)
        log_file: Ruta del archivo de log; None o "" desactiva el archivo
        verbose: Fuerza DEBUG en consola
    """
    console_level = "DEBUG" if verbose else level.upper()

    logger.remove()
    logger.add(sys.stderr, level=console_level, format=CONSOLE_FORMAT)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            rotation="10 MB",
            retention="10 days",
            level="DEBUG",
            encoding="utf-8",
        )
