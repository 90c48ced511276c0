"""
Caso de uso de sincronizacion FAST2 -> Directus.

Diseño (resumen):
- Verifica que la coleccion destino exista (si no, ConfigError)
- Trae el conjunto completo de FAST2 y captura los ids crudos
- Lee el estado actual de Directus y lo indexa por id
- Por cada registro FAST2: update si ya existe, create si no
- Marca como inactive (soft delete) lo que ya no viene de FAST2

Tolerancia a fallos parciales:
- Todo lo anterior al loop es fatal (auth, listados, precondicion)
- Dentro del loop cualquier error de un registro (incluido uno de red) se
  registra y se sigue con el resto; nunca aborta la corrida

Idempotencia: correr dos veces con el mismo origen produce 0 creates,
N updates (solo cambia last_synced) y 0 desactivaciones.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

import requests
from loguru import logger

from fast2_sync.application.dto.sync_dto import SyncErrorEntry, SyncResult, SyncStage
from fast2_sync.application.interfaces.destination_gateway import DestinationGateway, SourceFetcher
from fast2_sync.application.services.record_transformer import transform_for
from fast2_sync.core.config import Settings
from fast2_sync.domain.entities import EntityType, RecordStatus, record_key
from fast2_sync.infrastructure.external.directus.directus_client import DirectusClient
from fast2_sync.infrastructure.external.fast2.auth_session import Fast2AuthSession
from fast2_sync.infrastructure.external.fast2.fast2_client import Fast2Client
from fast2_sync.shared.exceptions.base import AppException
from fast2_sync.shared.exceptions.sync import ConfigError
from fast2_sync.shared.utils.date_utils import format_directus_timestamp, utc_now

Clock = Callable[[], datetime]

PROGRESS_EVERY = 10


class Fast2ToDirectusSync:
    """
    Orquestador del sync para una entidad por corrida.
    """

    def __init__(
        self,
        *,
        source: SourceFetcher,
        destination: DestinationGateway,
        collections: Mapping[EntityType, str],
        clock: Optional[Clock] = None,
        progress_every: int = PROGRESS_EVERY,
    ) -> None:
        self._source = source
        self._destination = destination
        self._collections = dict(collections)
        self._clock = clock or utc_now
        self._progress_every = max(1, progress_every)

    def run(self, entity_type: EntityType) -> SyncResult:
        """
        Ejecuta una corrida completa (create/update/soft delete) para la entidad.
        """
        started = time.monotonic()
        collection = self._collections[entity_type]
        result = SyncResult(entity_type=entity_type, collection=collection)

        if not self._destination.collection_exists(collection):
            raise ConfigError(
                f"La coleccion '{collection}' no existe en Directus. Creala antes de sincronizar."
            )

        # Paso 1: origen completo. Los ids se capturan del registro crudo para que
        # un fallo de transformacion no provoque una desactivacion indebida.
        logger.info(f"Paso 1/4: obteniendo {entity_type.value} desde FAST2...")
        source_records = self._source.fetch_all(entity_type)
        result.source_total = len(source_records)
        source_ids = {
            record_key(rec["id"])
            for rec in source_records
            if isinstance(rec, Mapping) and rec.get("id") is not None
        }

        # Paso 2: estado actual del destino
        logger.info(f"Paso 2/4: leyendo '{collection}' desde Directus...")
        existing_items = self._destination.read_all(collection)
        result.destination_before = len(existing_items)
        existing_by_id: dict[str, dict[str, Any]] = {}
        for item in existing_items:
            if item.get("id") is not None:
                existing_by_id[record_key(item["id"])] = item
        logger.info(f"Encontrados {len(existing_by_id)} registros existentes en Directus")

        final_status: dict[str, Optional[RecordStatus]] = {
            key: RecordStatus.parse(item.get("status")) for key, item in existing_by_id.items()
        }

        # Paso 3: create/update
        logger.info(f"Paso 3/4: sincronizando {result.source_total} registros...")
        known_ids = dict(existing_by_id)
        for index, record in enumerate(source_records, start=1):
            record_id = self._sync_record(entity_type, collection, record, known_ids, final_status, result)
            if index % self._progress_every == 0 or index == result.source_total:
                logger.info(f"  Procesando: {index}/{result.source_total} - {record_id}")

        # Paso 4: soft delete de lo que ya no viene de FAST2
        logger.info("Paso 4/4: marcando registros inactivos...")
        for key, item in existing_by_id.items():
            if key in source_ids:
                continue
            if RecordStatus.parse(item.get("status")) is RecordStatus.INACTIVE:
                continue
            self._deactivate(collection, item["id"], key, final_status, result)

        result.inactive_after = sum(1 for s in final_status.values() if s is RecordStatus.INACTIVE)
        result.active_after = len(final_status) - result.inactive_after
        result.elapsed_s = round(time.monotonic() - started, 2)

        logger.success(
            f"Sync {entity_type.value} completado. creados={result.created}, "
            f"actualizados={result.updated}, inactivos={result.deactivated}, errores={len(result.errors)}"
        )
        return result

    def _sync_record(
        self,
        entity_type: EntityType,
        collection: str,
        record: Any,
        known_ids: dict[str, dict[str, Any]],
        final_status: dict[str, Optional[RecordStatus]],
        result: SyncResult,
    ) -> Any:
        record_id = record.get("id") if isinstance(record, Mapping) else None
        if record_id is None:
            self._record_error(result, None, SyncStage.TRANSFORM, "Registro FAST2 sin 'id'")
            return None

        key = record_key(record_id)
        try:
            payload = transform_for(entity_type, record, clock=self._clock)
        except Exception as e:
            self._record_error(result, record_id, SyncStage.TRANSFORM, f"{type(e).__name__}: {e}")
            return record_id

        existing = known_ids.get(key)
        stage = SyncStage.UPDATE if existing is not None else SyncStage.CREATE
        try:
            if existing is not None:
                self._destination.update(collection, existing.get("id", record_id), payload)
                result.updated += 1
                logger.debug(f"    Actualizado: {record_id}")
            else:
                self._destination.create(collection, payload)
                result.created += 1
                # Un id repetido en el mismo snapshot se trata como update
                known_ids[key] = {"id": record_id}
                logger.debug(f"    Creado: {record_id}")
        except AppException as e:
            self._record_error(result, record_id, stage, e.message)
            return record_id
        except Exception as e:
            self._record_error(result, record_id, stage, str(e))
            return record_id

        final_status[key] = RecordStatus.ACTIVE
        return record_id

    def _deactivate(
        self,
        collection: str,
        record_id: Any,
        key: str,
        final_status: dict[str, Optional[RecordStatus]],
        result: SyncResult,
    ) -> None:
        partial = {
            "status": RecordStatus.INACTIVE.value,
            "last_synced": format_directus_timestamp(self._clock()),
        }
        try:
            self._destination.update(collection, record_id, partial)
        except AppException as e:
            self._record_error(result, record_id, SyncStage.DEACTIVATE, e.message)
            return
        except Exception as e:
            self._record_error(result, record_id, SyncStage.DEACTIVATE, str(e))
            return

        result.deactivated += 1
        final_status[key] = RecordStatus.INACTIVE
        logger.debug(f"  Marcado inactivo: {record_id}")

    @staticmethod
    def _record_error(result: SyncResult, record_id: Any, stage: SyncStage, message: str) -> None:
        entry = SyncErrorEntry(record_id=record_id, stage=stage, message=message)
        result.errors.append(entry)
        logger.warning(f"    Error: {entry.describe()}")


def build_from_settings(
    settings: Settings,
    *,
    session: Optional[requests.Session] = None,
) -> Fast2ToDirectusSync:
    """
    Constructor "oficial" del pipeline a partir de Settings ya validados.

    La sesion FAST2 se comparte entre entidades de una misma ejecucion; cada
    run() sigue siendo independiente.
    """
    http = session or requests.Session()
    auth = Fast2AuthSession(settings.fast2_credentials(), session=http, timeout_s=settings.FAST2_TIMEOUT_S)
    fast2 = Fast2Client(
        auth,
        base_url=settings.FAST2_BASE_URL,
        scope=settings.fast2_scope(),
        timeout_s=settings.FAST2_TIMEOUT_S,
    )
    directus = DirectusClient(settings.directus_options())
    return Fast2ToDirectusSync(
        source=fast2,
        destination=directus,
        collections={entity: settings.collection_for(entity) for entity in EntityType},
    )
