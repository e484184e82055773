# app/models/audit_log.py
from __future__ import annotations

import datetime as dt

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import INET
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import String as SQLString, TypeDecorator

from app.db.base_class import Base


class PortableINET(TypeDecorator):
    """INET no PostgreSQL, texto no SQLite."""

    impl = SQLString(45)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(INET())
        return dialect.type_descriptor(SQLString(45))


class AuditLog(Base):
    """
    Trilha de auditoria gravada na mesma transação da mutação.
    occurrence_date: data da ocorrência afetada (exceções e reservas), para
    responder "quem mexeu neste dia".
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_timestamp_utc", "timestamp_utc"),
        Index("ix_audit_entity", "entity", "entity_id"),
        Index("ix_audit_occurrence_date", "occurrence_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True
    )
    action: Mapped[str] = mapped_column(
        String(80), nullable=False
    )  # "CREATE", "DISABLE_OCCURRENCE", "PROMOTE_WAITLIST"...
    entity: Mapped[str] = mapped_column(
        String(80), nullable=False
    )  # "appointment", "schedule_override"...
    entity_id: Mapped[int | None] = mapped_column(Integer)
    occurrence_date: Mapped[dt.date | None] = mapped_column(Date())
    details: Mapped[str | None] = mapped_column(String(255))
    timestamp_utc: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    ip: Mapped[str | None] = mapped_column(PortableINET())
