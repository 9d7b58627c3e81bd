"""Application use cases: one entry point per workflow."""

from app.application.use_cases.flows import EventIngestionUseCase

__all__ = ["EventIngestionUseCase"]
