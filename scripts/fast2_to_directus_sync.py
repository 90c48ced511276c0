"""
CLI: FAST2 -> Directus (one-way sync con soft delete).

Uso recomendado:
  - Ejecutar como job (cron/systemd timer).
  - Una corrida por entidad; "all" ejecuta fastigheter y luego arbetsordrar.

Variables de entorno requeridas:
  - OAUTH2_TOKEN_ENDPOINT, CONSUMER_KEY, CONSUMER_SECRET
  - FAST2_BASE_URL, FAST2_USERNAME, FAST2_PASSWORD
  - KUND_ID (fastigheter) / KUND_NR (arbetsordrar)
  - DIRECTUS_API_URL, DIRECTUS_API_TOKEN

Ejecución:
  python scripts/fast2_to_directus_sync.py
  python scripts/fast2_to_directus_sync.py arbetsordrar -v
  python scripts/fast2_to_directus_sync.py fastigheter --env-file /etc/fast2/.env

Códigos de salida:
  0 - la corrida terminó (aunque haya errores por registro)
  1 - error de configuración, autenticación o listado
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv
from loguru import logger

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from fast2_sync.application.use_cases.sync_use_cases import build_from_settings
from fast2_sync.core.config import load_settings
from fast2_sync.core.logging import configure_logging
from fast2_sync.domain.entities import EntityType
from fast2_sync.shared.exceptions.base import AppException

ALL_ENTITIES = "all"


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sincroniza fastigheter y arbetsordrar de FAST2 hacia Directus.")
    parser.add_argument(
        "entity",
        nargs="?",
        default=ALL_ENTITIES,
        choices=[e.value for e in EntityType] + [ALL_ENTITIES],
        help="Entidad a sincronizar (por defecto: all).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log detallado (DEBUG) en consola.")
    parser.add_argument("--env-file", default=None, help="Archivo .env alternativo.")
    return parser.parse_args(argv)


def _selected_entities(value: str) -> list[EntityType]:
    if value == ALL_ENTITIES:
        return list(EntityType)
    return [EntityType(value)]


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)

    # Cargar variables desde .env si existe (scripts/.env o raiz del repo).
    load_dotenv(_REPO_ROOT / "scripts" / ".env", override=False)
    load_dotenv(_REPO_ROOT / ".env", override=False)

    settings = load_settings(args.env_file)
    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE, verbose=args.verbose)

    entities = _selected_entities(args.entity)
    try:
        settings.validate_for(entities)
        service = build_from_settings(settings)

        for entity in entities:
            logger.info(f"Iniciando FAST2 -> Directus sync ({entity.value})...")
            result = service.run(entity)
            for line in result.summary_lines():
                logger.info(line)
            if result.has_errors:
                logger.warning(f"Sync {entity.value} terminó con {len(result.errors)} errores por registro")
    except AppException as e:
        logger.error(e.describe())
        return 1
    except Exception:
        logger.exception("Error inesperado durante el sync")
        return 1

    logger.success("Sync completado")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
