"""SQLAlchemy model for codebase snapshots."""

from sqlalchemy import ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from scanara_engine.common.models import Base, TimestampMixin, generate_uuid


class SnapshotModel(Base, TimestampMixin):
    __tablename__ = "codebase_snapshots"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id"), nullable=False, index=True
    )
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    origin_name: Mapped[str] = mapped_column(String(255), default="")
    repo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # [{"path": str, "content": str, "size_bytes": int}, ...] in capture order
    files: Mapped[list] = mapped_column(JSON, default=list)
    file_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
