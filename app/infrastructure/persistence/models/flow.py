"""Flow and FlowStep ORM models. A flow is a trigger key plus ordered notification steps."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import (
    OrganizationModel,
    TimestampMixin,
)


class Flow(OrganizationModel, TimestampMixin, Base):
    """Flow definition. Table: flows. Eligible to run only while active."""

    __tablename__ = "flows"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    trigger: Mapped[str] = mapped_column("trigger", String, nullable=False, index=True)
    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.true()
    )
    meta: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)

    steps: Mapped[list["FlowStep"]] = relationship(
        back_populates="flow",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="FlowStep.position",
    )

    __table_args__ = (
        CheckConstraint("length(trigger) > 0", name="flows_trigger_not_empty"),
        Index("ix_flows_org_trigger_active", "organizacion_id", "trigger", "active"),
    )


class FlowStep(OrganizationModel, Base):
    """One ordered action of a flow. Table: flow_steps. Deleted with its flow."""

    __tablename__ = "flow_steps"

    flow_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("flows.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    step_type: Mapped[str] = mapped_column("type", String, nullable=False)
    config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    flow: Mapped[Flow] = relationship(back_populates="steps")

    __table_args__ = (
        UniqueConstraint("flow_id", "position", name="uq_flow_steps_flow_position"),
        CheckConstraint("position >= 1", name="flow_steps_position_positive"),
        Index("ix_flow_steps_flow_position", "flow_id", "position"),
    )
