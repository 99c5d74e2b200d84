"""Vector rows: one embedding per log record, plus the metadata needed to
filter without touching the relational table."""

from datetime import datetime
from typing import Optional

from pgvector.sqlalchemy import Vector
from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from agentlog.config import settings

from .base import Base


class LogVector(Base):
    __tablename__ = "log_vectors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    embedding: Mapped[list[float]] = mapped_column(
        Vector(settings.embedding_dimensions), nullable=False
    )
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    kind: Mapped[str] = mapped_column(String(100), nullable=False)
    operation_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    source: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    session_id: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    tags: Mapped[str] = mapped_column(Text, nullable=False, server_default="[]")
