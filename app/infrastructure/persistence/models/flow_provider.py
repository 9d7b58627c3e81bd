"""FlowProvider ORM model: per-organization channel connection state and credentials."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import OrganizationModel
from app.shared.enums import ProviderConnectionStatus


class FlowProvider(OrganizationModel, Base):
    """Provider connection. Table: flow_providers. One row per (organization, provider)."""

    __tablename__ = "flow_providers"

    provider: Mapped[str] = mapped_column("provider_id", String, nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=ProviderConnectionStatus.PENDING.value
    )
    # Opaque blob, e.g. {"webhook_url": "https://hooks.slack.com/..."}; never logged.
    credentials: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def is_connected(self) -> bool:
        return self.status == ProviderConnectionStatus.CONNECTED.value

    __table_args__ = (
        UniqueConstraint(
            "organizacion_id", "provider_id", name="flow_providers_org_provider_idx"
        ),
    )
