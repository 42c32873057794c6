"""SQLAlchemy model for audit runs."""

from sqlalchemy import Float, ForeignKey, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from scanara_engine.common.models import Base, TimestampMixin, generate_uuid


class AuditModel(Base, TimestampMixin):
    __tablename__ = "audits"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id"), nullable=False, index=True
    )
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    snapshot_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("codebase_snapshots.id"), nullable=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="running")
    compliance_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    compliance_tier: Mapped[str | None] = mapped_column(String(20), nullable=True)
    scores: Mapped[dict] = mapped_column(JSON, default=dict)
    summary: Mapped[dict] = mapped_column(JSON, default=dict)
    detailed_findings: Mapped[list] = mapped_column(JSON, default=list)
    metrics: Mapped[dict] = mapped_column(JSON, default=dict)
    remediation_plan: Mapped[list] = mapped_column(JSON, default=list)
    component_analysis: Mapped[dict] = mapped_column(JSON, default=dict)
    actions_required: Mapped[dict] = mapped_column(JSON, default=dict)
    metadata_: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
