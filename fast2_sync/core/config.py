"""
Configuracion central del sync FAST2 -> Directus.
Gestiona variables de entorno (.env) y las valida por tipo de entidad.

No existe una instancia global: el script construye Settings una vez y
pasa structs explicitos (credenciales, opciones) a cada componente.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fast2_sync.domain.entities import EntityType
from fast2_sync.shared.exceptions.sync import ConfigError


# Claves obligatorias comunes a cualquier sync
_FAST2_AUTH_KEYS = (
    "OAUTH2_TOKEN_ENDPOINT",
    "CONSUMER_KEY",
    "CONSUMER_SECRET",
    "FAST2_BASE_URL",
    "FAST2_USERNAME",
    "FAST2_PASSWORD",
)
_DIRECTUS_KEYS = ("DIRECTUS_API_URL", "DIRECTUS_API_TOKEN")

# Filtro de cliente que cada listado necesita
_ENTITY_KEYS = {
    EntityType.FASTIGHETER: ("KUND_ID",),
    EntityType.ARBETSORDRAR: ("KUND_NR",),
}


class Settings(BaseSettings):
    """
    Clase de configuracion del sync.
    Lee variables de entorno y proporciona valores por defecto.

    Las credenciales quedan vacias por defecto; validate_for() decide
    cuales son obligatorias segun la entidad a sincronizar.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",  # Ignorar campos extra del .env
    )

    # FAST2 - gateway OAuth2 (WSO2) y login de aplicacion
    OAUTH2_TOKEN_ENDPOINT: str = Field(default="")
    CONSUMER_KEY: str = Field(default="")
    CONSUMER_SECRET: str = Field(default="")
    FAST2_BASE_URL: str = Field(default="")
    FAST2_USERNAME: str = Field(default="")
    FAST2_PASSWORD: str = Field(default="")
    FAST2_TIMEOUT_S: int = Field(default=60)

    # FAST2 - alcance por cliente
    KUND_ID: str = Field(default="")
    KUND_NR: str = Field(default="")

    # Directus
    DIRECTUS_API_URL: str = Field(default="")
    DIRECTUS_API_TOKEN: str = Field(default="")
    DIRECTUS_TIMEOUT_S: int = Field(default=30)
    DIRECTUS_PAGE_SIZE: int = Field(default=1000)
    DIRECTUS_READ_LIMIT: int = Field(default=10000)
    DIRECTUS_MAX_RETRIES: int = Field(default=3)
    DIRECTUS_MIN_REQUEST_INTERVAL_S: float = Field(default=0.05)

    # Colecciones destino
    FASTIGHETER_COLLECTION: str = Field(default="fast2_fastigheter")
    ARBETSORDRAR_COLLECTION: str = Field(default="fast2_arbetsordrar")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/fast2_sync.log")

    def collection_for(self, entity_type: EntityType) -> str:
        """Coleccion Directus destino para la entidad."""
        if entity_type is EntityType.FASTIGHETER:
            return self.FASTIGHETER_COLLECTION
        return self.ARBETSORDRAR_COLLECTION

    def validate_for(self, entity_types: Iterable[EntityType], *, with_directus: bool = True) -> None:
        """
        Verifica que existan todas las claves obligatorias.

        Se reportan todas las faltantes juntas para no obligar a corregir de a una.
        """
        required: list[str] = list(_FAST2_AUTH_KEYS)
        if with_directus:
            required.extend(_DIRECTUS_KEYS)
        for entity_type in entity_types:
            for key in _ENTITY_KEYS[entity_type]:
                if key not in required:
                    required.append(key)

        missing = [key for key in required if not str(getattr(self, key, "") or "").strip()]
        if missing:
            raise ConfigError(
                f"Falta configuracion obligatoria: {', '.join(missing)}",
                missing_keys=missing,
            )

    def fast2_credentials(self) -> "Fast2Credentials":
        return Fast2Credentials(
            token_endpoint=self.OAUTH2_TOKEN_ENDPOINT,
            consumer_key=self.CONSUMER_KEY,
            consumer_secret=self.CONSUMER_SECRET,
            base_url=self.FAST2_BASE_URL,
            username=self.FAST2_USERNAME,
            password=self.FAST2_PASSWORD,
        )

    def fast2_scope(self) -> "Fast2Scope":
        return Fast2Scope(kund_id=self.KUND_ID or None, kund_nr=self.KUND_NR or None)

    def directus_options(self) -> "DirectusOptions":
        return DirectusOptions(
            base_url=self.DIRECTUS_API_URL,
            token=self.DIRECTUS_API_TOKEN,
            timeout_s=self.DIRECTUS_TIMEOUT_S,
            page_size=self.DIRECTUS_PAGE_SIZE,
            read_limit=self.DIRECTUS_READ_LIMIT,
            max_retries=self.DIRECTUS_MAX_RETRIES,
            min_request_interval_s=self.DIRECTUS_MIN_REQUEST_INTERVAL_S,
        )


@dataclass(frozen=True)
class Fast2Credentials:
    """Credenciales de las dos capas de autenticacion FAST2."""

    token_endpoint: str
    consumer_key: str
    consumer_secret: str
    base_url: str
    username: str
    password: str


@dataclass(frozen=True)
class Fast2Scope:
    """Filtros de cliente por defecto para los listados."""

    kund_id: Optional[str] = None
    kund_nr: Optional[str] = None


@dataclass(frozen=True)
class DirectusOptions:
    base_url: str
    token: str
    timeout_s: int = 30
    page_size: int = 1000
    read_limit: int = 10000
    max_retries: int = 3
    min_request_interval_s: float = 0.05


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Construye Settings leyendo entorno y, si se indica, un .env especifico.
    """
    if env_file:
        return Settings(_env_file=env_file)
    return Settings()
