"""
CLI: descarga un snapshot de FAST2 a un archivo JSON (diagnóstico).

No escribe en Directus. Sirve para revisar qué entrega FAST2 antes de
sincronizar, o para buscar las arbetsordrar de un anmälare por e-mail
(FAST2 no filtra por e-mail del lado servidor).

Ejecución:
  python scripts/fetch_fast2_snapshot.py fastigheter
  python scripts/fetch_fast2_snapshot.py arbetsordrar --status PAGAR,REG --feltyp F
  python scripts/fetch_fast2_snapshot.py arbetsordrar --epost anna@example.se -o anna.json
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Sequence

import requests
from dotenv import load_dotenv
from loguru import logger

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from fast2_sync.core.config import load_settings
from fast2_sync.core.logging import configure_logging
from fast2_sync.domain.entities import EntityType
from fast2_sync.infrastructure.external.fast2.auth_session import Fast2AuthSession
from fast2_sync.infrastructure.external.fast2.fast2_client import Fast2Client, filter_by_reporter_email
from fast2_sync.shared.exceptions.base import AppException

# Opciones CLI -> filtros del endpoint de arbetsordrar
_FILTER_OPTIONS = {
    "objekt_id": "objektId",
    "utforare": "utforare",
    "status": "status",
    "feltyp": "feltyp",
    "skapad_efter": "skapadEfter",
    "modifierad_efter": "modifieradEfter",
    "limit": "limit",
    "offset": "offset",
}


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Guarda un snapshot JSON de FAST2.")
    parser.add_argument("entity", choices=[e.value for e in EntityType])
    parser.add_argument("-o", "--output", default=None, help="Archivo de salida (por defecto con timestamp).")
    parser.add_argument("--epost", default=None, help="Solo arbetsordrar de este anmälare (annanAnmalare.epostAdress).")
    parser.add_argument("--objekt-id", dest="objekt_id", default=None)
    parser.add_argument("--utforare", default=None)
    parser.add_argument("--status", default=None, help="Ej: PAGAR,REG")
    parser.add_argument("--feltyp", default=None)
    parser.add_argument("--skapad-efter", dest="skapad_efter", default=None)
    parser.add_argument("--modifierad-efter", dest="modifierad_efter", default=None)
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument("--offset", type=int, default=None)
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--env-file", default=None)
    return parser.parse_args(argv)


def build_work_order_filters(args: argparse.Namespace) -> dict[str, Any]:
    return {
        api_name: getattr(args, option)
        for option, api_name in _FILTER_OPTIONS.items()
        if getattr(args, option) is not None
    }


def default_output_path(entity: EntityType, now: Optional[datetime] = None) -> Path:
    stamp = (now or datetime.now()).strftime("%Y-%m-%d_%H%M%S")
    return Path(f"{entity.value}_{stamp}.json")


def write_snapshot(records: list[dict[str, Any]], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(records, indent=4, ensure_ascii=False), encoding="utf-8")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)

    load_dotenv(_REPO_ROOT / "scripts" / ".env", override=False)
    load_dotenv(_REPO_ROOT / ".env", override=False)

    settings = load_settings(args.env_file)
    # El snapshot es un diagnóstico puntual: no se escribe archivo de log.
    configure_logging(settings.LOG_LEVEL, None, verbose=args.verbose)

    entity = EntityType(args.entity)
    filters = build_work_order_filters(args)
    if entity is EntityType.FASTIGHETER and (filters or args.epost):
        logger.error("Los filtros solo aplican a arbetsordrar")
        return 2

    try:
        settings.validate_for([entity], with_directus=False)
        auth = Fast2AuthSession(
            settings.fast2_credentials(), session=requests.Session(), timeout_s=settings.FAST2_TIMEOUT_S
        )
        client = Fast2Client(
            auth, base_url=settings.FAST2_BASE_URL, scope=settings.fast2_scope(), timeout_s=settings.FAST2_TIMEOUT_S
        )
        records = client.fetch_all(entity, filters or None)
    except AppException as e:
        logger.error(e.describe())
        return 1

    if args.epost:
        records = filter_by_reporter_email(records, args.epost)
        logger.info(f"{len(records)} arbetsordrar coinciden con el e-mail indicado")

    output = Path(args.output) if args.output else default_output_path(entity)
    write_snapshot(records, output)
    logger.success(f"Guardados {len(records)} registros en {output} ({output.stat().st_size:,} bytes)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
