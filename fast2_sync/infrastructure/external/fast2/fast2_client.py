"""
Cliente de listados de la API FAST2 (sin SDKs externos).

Requisitos cubiertos:
- requests
- arbetsordrar: GET con filtros por querystring (kundNr por defecto)
- fastigheter: POST con filtro en el body (kundId) y respuesta edges/node
- filtro de confidencialidad (externtNr == "CONFIDENTIAL")

No pagina: se asume que una respuesta trae el conjunto completo.
"""

from __future__ import annotations

from typing import Any, Optional

import requests
from loguru import logger

from fast2_sync.core.config import Fast2Scope
from fast2_sync.domain.entities import EntityType
from fast2_sync.shared.exceptions.sync import ConfigError, FetchError, ParseError

from .auth_session import Fast2AuthSession

WORK_ORDERS_PATH = "/ao-produkt/v1/arbetsorder"
PROPERTIES_PATH = "/ao-produkt/v1/fastastrukturen/objekt/felanmalningsbara/uthyrningsbara"

CONFIDENTIAL_MARKER = "CONFIDENTIAL"

# Filtros que acepta el endpoint de arbetsordrar
WORK_ORDER_FILTERS = frozenset(
    {
        "offset",
        "limit",
        "objektId",
        "kundNr",
        "utforare",
        "status",
        "feltyp",
        "skapadEfter",
        "modifieradEfter",
    }
)


def is_confidential(work_order: dict[str, Any]) -> bool:
    return work_order.get("externtNr") == CONFIDENTIAL_MARKER


def drop_confidential(work_orders: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Quita arbetsordrar marcadas como confidenciales, sin importar el resto de sus campos."""
    return [wo for wo in work_orders if not is_confidential(wo)]


def filter_by_reporter_email(work_orders: list[dict[str, Any]], email: str) -> list[dict[str, Any]]:
    """
    Filtra por e-mail del anmälare (annanAnmalare.epostAdress).

    FAST2 no soporta este filtro del lado servidor; se compara sin
    mayusculas/minusculas ni espacios.
    """
    wanted = email.strip().lower()
    result = []
    for wo in work_orders:
        reporter = wo.get("annanAnmalare")
        if not isinstance(reporter, dict):
            continue
        address = reporter.get("epostAdress")
        if address and str(address).strip().lower() == wanted:
            result.append(wo)
    return result


class Fast2Client:
    """
    Cliente HTTP de FAST2. Retorna los registros crudos (dicts anidados).

    Importante:
    - No transforma campos: eso lo decide el mapeo hacia Directus.
    - Autentica en forma perezosa en el primer listado.
    """

    def __init__(
        self,
        auth: Fast2AuthSession,
        *,
        base_url: str,
        scope: Fast2Scope,
        timeout_s: int = 60,
    ) -> None:
        self._auth = auth
        self._base_url = base_url.rstrip("/")
        self._scope = scope
        self._timeout_s = timeout_s

    def fetch_all(self, entity_type: EntityType, filters: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        """Conjunto completo actual de registros para la entidad."""
        if entity_type is EntityType.FASTIGHETER:
            if filters:
                raise ConfigError("El listado de fastigheter no acepta filtros adicionales")
            return self.fetch_properties()
        return self.fetch_work_orders(filters)

    def fetch_work_orders(self, filters: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        filters = dict(filters or {})
        unknown = sorted(set(filters) - WORK_ORDER_FILTERS)
        if unknown:
            raise ConfigError(f"Filtros de arbetsordrar no soportados: {', '.join(unknown)}")

        params: dict[str, Any] = {}
        if "kundNr" not in filters:
            if not self._scope.kund_nr:
                raise ConfigError("Falta KUND_NR para listar arbetsordrar", missing_keys=["KUND_NR"])
            params["kundNr"] = self._scope.kund_nr
        params.update({k: v for k, v in filters.items() if v is not None})

        logger.info("Obteniendo arbetsordrar desde FAST2...")
        payload = self._request_json("GET", WORK_ORDERS_PATH, params=params, what="arbetsordrar")
        if not isinstance(payload, list):
            raise ParseError("Respuesta de arbetsordrar no es una lista", body=payload)

        work_orders = [wo for wo in payload if isinstance(wo, dict)]
        visible = drop_confidential(work_orders)
        hidden = len(work_orders) - len(visible)
        if hidden:
            logger.debug(f"Descartadas {hidden} arbetsordrar confidenciales")
        logger.success(f"Obtenidas {len(visible)} arbetsordrar")
        return visible

    def fetch_properties(self) -> list[dict[str, Any]]:
        if not self._scope.kund_id:
            raise ConfigError("Falta KUND_ID para listar fastigheter", missing_keys=["KUND_ID"])

        logger.info("Obteniendo fastigheter desde FAST2...")
        body = {"filter": {"kundId": self._scope.kund_id}}
        payload = self._request_json("POST", PROPERTIES_PATH, json_body=body, what="fastigheter")

        edges = payload.get("edges") if isinstance(payload, dict) else None
        if not isinstance(edges, list):
            raise ParseError("Respuesta de fastigheter sin lista 'edges'", body=payload)

        nodes = [edge.get("node") for edge in edges if isinstance(edge, dict)]
        properties = [node for node in nodes if isinstance(node, dict)]
        logger.success(f"Obtenidas {len(properties)} fastigheter")
        return properties

    def _request_json(
        self,
        method: str,
        path: str,
        *,
        what: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Request autenticado. Sin reintentos: un fallo aqui es fatal para la corrida.
        """
        self._auth.ensure_authenticated()
        url = f"{self._base_url}{path}"
        logger.debug(f"{method} {url} params={params or {}}")

        try:
            resp = self._auth.http.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=self._auth.auth_headers(),
                timeout=self._timeout_s,
            )
        except requests.RequestException as e:
            raise FetchError(f"Fallo la solicitud de {what}: {e}") from e

        if resp.status_code != 200:
            raise FetchError(f"Fallo el listado de {what}", status_code=resp.status_code, body=resp.text)

        try:
            return resp.json()
        except ValueError as e:
            raise ParseError(f"Respuesta de {what} no es JSON valido", body=resp.text) from e
