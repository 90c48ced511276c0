"""
Entidades de dominio del sync.
"""
from .sync_entities import EntityType, RecordStatus, record_key

__all__ = ["EntityType", "RecordStatus", "record_key"]
