"""
Cliente minimo de la items API de Directus (sin SDKs externos).

Requisitos cubiertos:
- requests
- paginacion por limit/offset con techo configurable
- rate-limit del lado cliente (intervalo minimo entre requests)
- backoff en 429/5xx respetando Retry-After
"""

from __future__ import annotations

import time
from typing import Any, Optional
from urllib.parse import quote

import requests
from loguru import logger

from fast2_sync.core.config import DirectusOptions
from fast2_sync.shared.exceptions.sync import ConfigError, FetchError, ParseError, WriteError


class _RetryableStatus(Exception):
    """Uso interno: la respuesta agoto los reintentos."""

    def __init__(self, response: requests.Response) -> None:
        super().__init__(response.status_code)
        self.response = response


class DirectusClient:
    """
    Implementacion HTTP del gateway de destino.

    Importante:
    - update() es PATCH: solo cambian los campos enviados.
    - Los errores de escritura se levantan como WriteError para que el motor
      de reconciliacion los registre por registro sin abortar la corrida.
    """

    def __init__(
        self,
        options: DirectusOptions,
        *,
        session: Optional[requests.Session] = None,
        min_backoff_s: float = 0.8,
        max_backoff_s: float = 20.0,
    ) -> None:
        self._opts = options
        self._base_url = options.base_url.rstrip("/")
        self._session = session or requests.Session()
        self._min_backoff_s = min_backoff_s
        self._max_backoff_s = max_backoff_s
        self._last_request_at: Optional[float] = None

    def collection_exists(self, collection: str) -> bool:
        """
        True en 200, False en 404.

        401/403 no se reportan como "no existe": suelen ser token invalido o
        sin permisos (Directus tambien responde 403 a colecciones desconocidas
        si el token no es admin).
        """
        url = f"{self._base_url}/collections/{quote(collection, safe='')}"
        try:
            resp = self._send("GET", url)
        except _RetryableStatus as e:
            raise FetchError(
                f"No se pudo consultar la coleccion '{collection}'",
                status_code=e.response.status_code,
                body=e.response.text,
            ) from e
        except requests.RequestException as e:
            raise FetchError(f"No se pudo consultar la coleccion '{collection}': {e}") from e

        if resp.status_code == 200:
            return True
        if resp.status_code == 404:
            return False
        if resp.status_code in (401, 403):
            raise ConfigError(
                f"Directus rechazo el acceso a la coleccion '{collection}' (HTTP {resp.status_code}). "
                "Revisa DIRECTUS_API_TOKEN y sus permisos, y que la coleccion exista."
            )
        raise FetchError(
            f"No se pudo consultar la coleccion '{collection}'", status_code=resp.status_code, body=resp.text
        )

    def read_all(self, collection: str) -> list[dict[str, Any]]:
        """
        Lee todos los items de la coleccion, pagina a pagina.

        Se detiene en la primera pagina corta o al llegar a read_limit; en el
        segundo caso avisa, porque los registros no leidos no se reconcilian.
        """
        url = f"{self._base_url}/items/{quote(collection, safe='')}"
        page_size = max(1, self._opts.page_size)
        items: list[dict[str, Any]] = []
        offset = 0

        while True:
            limit = min(page_size, self._opts.read_limit - len(items))
            if limit <= 0:
                logger.warning(
                    f"Lectura de '{collection}' truncada en {len(items)} items "
                    f"(DIRECTUS_READ_LIMIT={self._opts.read_limit})"
                )
                break

            payload = self._read_json(url, params={"limit": limit, "offset": offset}, collection=collection)
            page = payload.get("data") if isinstance(payload, dict) else None
            if not isinstance(page, list):
                raise ParseError(f"Respuesta de Directus sin 'data' para '{collection}'", body=payload)

            items.extend(item for item in page if isinstance(item, dict))
            if len(page) < limit:
                break
            offset += len(page)

        return items

    def create(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}/items/{quote(collection, safe='')}"
        return self._write("POST", url, record, what=f"crear item en '{collection}'")

    def update(self, collection: str, record_id: Any, partial: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}/items/{quote(collection, safe='')}/{quote(str(record_id), safe='')}"
        return self._write("PATCH", url, partial, what=f"actualizar item {record_id} en '{collection}'")

    def _read_json(self, url: str, *, params: dict[str, Any], collection: str) -> Any:
        try:
            resp = self._send("GET", url, params=params)
        except _RetryableStatus as e:
            raise FetchError(
                f"Fallo la lectura de '{collection}'", status_code=e.response.status_code, body=e.response.text
            ) from e
        except requests.RequestException as e:
            raise FetchError(f"Fallo la lectura de '{collection}': {e}") from e

        if resp.status_code != 200:
            raise FetchError(f"Fallo la lectura de '{collection}'", status_code=resp.status_code, body=resp.text)
        try:
            return resp.json()
        except ValueError as e:
            raise ParseError(f"Respuesta de Directus no es JSON valido para '{collection}'", body=resp.text) from e

    def _write(self, method: str, url: str, body: dict[str, Any], *, what: str) -> dict[str, Any]:
        try:
            resp = self._send(method, url, json_body=body)
        except _RetryableStatus as e:
            raise WriteError(f"No se pudo {what}", status_code=e.response.status_code, body=e.response.text) from e
        except requests.RequestException as e:
            raise WriteError(f"No se pudo {what}: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise WriteError(f"No se pudo {what}", status_code=resp.status_code, body=resp.text)

        # 204 No Content es valido para Directus
        if not resp.content:
            return {}
        try:
            payload = resp.json()
        except ValueError:
            return {}
        data = payload.get("data") if isinstance(payload, dict) else None
        return data if isinstance(data, dict) else {}

    def _send(
        self,
        method: str,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[dict[str, Any]] = None,
    ) -> requests.Response:
        """
        Request HTTP con backoff para 429/5xx.

        Estrategia:
        - 429: respeta Retry-After si existe, si no exponencial con jitter simple.
        - 5xx: exponencial con jitter.
        - 4xx (no 429): se retorna tal cual y decide el caller.
        """
        headers = {
            "Authorization": f"Bearer {self._opts.token}",
            "Content-Type": "application/json",
        }

        max_retries = max(0, self._opts.max_retries)
        for attempt in range(max_retries + 1):
            self._throttle()
            resp = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self._opts.timeout_s,
            )

            if resp.status_code != 429 and not 500 <= resp.status_code < 600:
                return resp

            if attempt >= max_retries:
                raise _RetryableStatus(resp)

            retry_after = resp.headers.get("Retry-After")
            if retry_after:
                try:
                    sleep_s = float(retry_after)
                except ValueError:
                    sleep_s = self._min_backoff_s
            else:
                # Exponencial simple + jitter proporcional
                base = min(self._max_backoff_s, self._min_backoff_s * (2**attempt))
                sleep_s = base + (0.15 * base)

            logger.warning(
                f"Directus respondio {resp.status_code} en {method} {url}; "
                f"reintento {attempt + 1}/{max_retries} en {sleep_s:.1f}s"
            )
            time.sleep(sleep_s)

        raise AssertionError("unreachable")

    def _throttle(self) -> None:
        """Intervalo minimo entre requests consecutivos."""
        interval = self._opts.min_request_interval_s
        now = time.monotonic()
        if interval > 0 and self._last_request_at is not None:
            wait = interval - (now - self._last_request_at)
            if wait > 0:
                time.sleep(wait)
                now = time.monotonic()
        self._last_request_at = now
