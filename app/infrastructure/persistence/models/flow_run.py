"""FlowRun ORM model. One execution of a flow, tracked through its status lifecycle."""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import OrganizationModel
from app.shared.enums import FlowRunStatus
from app.shared.utils.datetime import utc_now


class FlowRun(OrganizationModel, Base):
    """Flow run. Table: flow_runs. Survives flow deletion (flow_id set to NULL)."""

    __tablename__ = "flow_runs"

    flow_id: Mapped[str | None] = mapped_column(
        String,
        ForeignKey("flows.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=FlowRunStatus.PENDING.value
    )
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=utc_now
    )
    finished_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # When the run entered `running`; basis for stale-run reaping.
    claimed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    meta: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("flow_runs_org_idx", "organizacion_id", "started_at"),
        Index("ix_flow_runs_status_started", "status", "started_at", "id"),
        CheckConstraint(
            "status IN ({})".format(
                ", ".join(
                    "'{}'".format(v.replace("'", "''")) for v in FlowRunStatus.values()
                )
            ),
            name="flow_runs_status_check",
        ),
    )
