"""Application layer: DTOs, ports, template rendering and use cases.

Depends only on domain and protocol definitions. Infrastructure implements
the interfaces (repositories, channel dispatch, credential resolution).
"""

from app.application.use_cases.flows import EventIngestionUseCase

__all__ = ["EventIngestionUseCase"]
