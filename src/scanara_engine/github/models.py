"""SQLAlchemy model for per-owner remote host tokens."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from scanara_engine.common.models import Base, TimestampMixin


class RemoteTokenModel(Base, TimestampMixin):
    __tablename__ = "remote_tokens"

    # One token per owner; reconnecting overwrites it
    owner_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    project_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    remote_username: Mapped[str] = mapped_column(String(255), default="")
    remote_user_id: Mapped[str] = mapped_column(String(64), default="")
