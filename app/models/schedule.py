from __future__ import annotations

import datetime as dt

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base

DEFAULT_COLOR = "#3B82F6"


class ScheduleTemplate(Base):
    """
    Bloco semanal recorrente ("horário base") de uma agenda.
    weekday: 0=segunda ... 6=domingo (mesma convenção de date.weekday()).
    """

    __tablename__ = "schedule_templates"
    __table_args__ = (
        CheckConstraint(
            "weekday >= 0 AND weekday <= 6", name="ck_template_weekday"
        ),
        CheckConstraint("ends_at > starts_at", name="ck_template_time_order"),
        Index("ix_template_agenda_weekday", "agenda_id", "weekday"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    agenda_id: Mapped[int] = mapped_column(
        ForeignKey("agendas.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    weekday: Mapped[int] = mapped_column(Integer, nullable=False)
    starts_at: Mapped[dt.time] = mapped_column(Time(), nullable=False)
    ends_at: Mapped[dt.time] = mapped_column(Time(), nullable=False)
    color: Mapped[str] = mapped_column(String(16), nullable=False, default=DEFAULT_COLOR)
    notes: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: dt.datetime.now(tz=dt.UTC),
        nullable=False,
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: dt.datetime.now(tz=dt.UTC),
        onupdate=lambda: dt.datetime.now(tz=dt.UTC),
        nullable=False,
    )

    agenda = relationship("Agenda", back_populates="templates")


class ScheduleOverride(Base):
    """
    Exceção de um horário base para UMA data ("horário específico").
    is_active=False => a ocorrência não existe nesta data.

    template_id não tem FK: apagar o horário base deixa a exceção órfã
    (o resolvedor simplesmente a ignora).
    """

    __tablename__ = "schedule_overrides"
    __table_args__ = (
        UniqueConstraint("template_id", "date", name="uq_override_template_date"),
        CheckConstraint("ends_at > starts_at", name="ck_override_time_order"),
        Index("ix_override_date", "date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    template_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date(), nullable=False)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    starts_at: Mapped[dt.time] = mapped_column(Time(), nullable=False)
    ends_at: Mapped[dt.time] = mapped_column(Time(), nullable=False)
    color: Mapped[str] = mapped_column(String(16), nullable=False, default=DEFAULT_COLOR)
    notes: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: dt.datetime.now(tz=dt.UTC),
        nullable=False,
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: dt.datetime.now(tz=dt.UTC),
        onupdate=lambda: dt.datetime.now(tz=dt.UTC),
        nullable=False,
    )
