"""Relational log tables.

``log_records`` is the canonical column set. ``event_log`` is the legacy
flat table older deployments wrote to; it is still read, and written to as
a fallback when the canonical insert fails.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class LogRecordRow(Base):
    __tablename__ = "log_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    operation_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    original_operation_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    kind: Mapped[str] = mapped_column(String(100), nullable=False)
    level: Mapped[str] = mapped_column(String(20), nullable=False, server_default="info")
    source: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    session_id: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # JSON-encoded list of strings
    tags: Mapped[str] = mapped_column(Text, nullable=False, server_default="[]")

    trace_id: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    # Serialized, already-redacted payload
    detail: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error_code: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    artifact_key: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    idx1: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    idx2: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    has_embedding: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_log_records_timestamp", "timestamp"),
        Index("ix_log_records_session_id", "session_id"),
        Index("ix_log_records_kind", "kind"),
    )


class LegacyEvent(Base):
    __tablename__ = "event_log"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    ts: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    who: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    session_id: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    tags: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payload: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
