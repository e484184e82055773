from __future__ import annotations

import datetime as dt
import enum

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base


class AppointmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


# "ativo" = ocupa a ocorrência (tudo menos CANCELLED)
ACTIVE_STATUSES = (
    AppointmentStatus.PENDING,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.COMPLETED,
)

_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {
            AppointmentStatus.PENDING,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
        }
    ),
    AppointmentStatus.COMPLETED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CANCELLED: frozenset(),
}


def is_valid_transition(current: AppointmentStatus, new: AppointmentStatus) -> bool:
    if current == new:
        return True
    return new in _TRANSITIONS[current]


class Appointment(Base):
    """
    Reserva de uma ocorrência (template_id, date). Horários são copiados no
    momento da reserva, não derivados do horário base/exceção.
    """

    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    agenda_id: Mapped[int] = mapped_column(
        ForeignKey("agendas.id", ondelete="CASCADE"), nullable=False
    )
    # sem FK: a reserva sobrevive à remoção do horário base/exceção
    template_id: Mapped[int] = mapped_column(Integer, nullable=False)
    override_id: Mapped[int | None] = mapped_column(Integer)

    client_name: Mapped[str] = mapped_column(String(160), nullable=False)
    client_phone: Mapped[str | None] = mapped_column(String(40))
    client_email: Mapped[str | None] = mapped_column(String(320))
    service: Mapped[str] = mapped_column(String(160), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date(), nullable=False)
    starts_at: Mapped[dt.time] = mapped_column(Time(), nullable=False)
    ends_at: Mapped[dt.time] = mapped_column(Time(), nullable=False)
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(AppointmentStatus, name="appointment_status_enum"),
        nullable=False,
        default=AppointmentStatus.PENDING,
    )
    notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: dt.datetime.now(tz=dt.UTC),
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: dt.datetime.now(tz=dt.UTC),
        onupdate=lambda: dt.datetime.now(tz=dt.UTC),
    )

    agenda = relationship("Agenda")
    creator = relationship("User")

    __table_args__ = (
        CheckConstraint("ends_at > starts_at", name="ck_appt_time_order"),
        # no máximo UMA reserva ativa por ocorrência
        Index(
            "ux_appt_occurrence_active",
            "template_id",
            "date",
            unique=True,
            postgresql_where=text("status <> 'CANCELLED'"),
            sqlite_where=text("status <> 'CANCELLED'"),
        ),
        Index("ix_appt_agenda_date", "agenda_id", "date"),
    )
