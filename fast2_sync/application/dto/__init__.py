"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .sync_dto import SyncErrorEntry, SyncResult, SyncStage

__all__ = ["SyncErrorEntry", "SyncResult", "SyncStage"]
