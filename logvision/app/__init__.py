"""Ingestion scheduling and session coordination."""

from .ingestion import (
    ChunkedIngestionScheduler,
    IngestionOutcome,
    IngestionProgress,
    IngestionRun,
)
from .session_manager import SessionManager

__all__ = [
    "ChunkedIngestionScheduler",
    "IngestionOutcome",
    "IngestionProgress",
    "IngestionRun",
    "SessionManager",
]
