"""Flow use cases: event ingestion and manual trigger emission."""

from app.application.use_cases.flows.event_ingestion import EventIngestionUseCase

__all__ = [
    "EventIngestionUseCase",
]
