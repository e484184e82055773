from __future__ import annotations

import datetime as dt

from pydantic import BaseModel

from app.models.appointment import AppointmentStatus


class AppointmentSummary(BaseModel):
    id: int
    client_name: str
    client_phone: str | None = None
    service: str
    status: AppointmentStatus
    notes: str | None = None


class ResolvedOccurrence(BaseModel):
    id: int  # id da exceção quando is_override, senão do horário base
    template_id: int
    override_id: int | None = None
    agenda_id: int
    title: str
    starts_at: str  # "HH:MM:SS"
    ends_at: str
    color: str
    notes: str | None = None
    available: bool
    is_override: bool
    appointment: AppointmentSummary | None = None


class ResolvedDay(BaseModel):
    date: dt.date
    day: int
    weekday: int  # 0=segunda ... 6=domingo
    weekday_name: str
    is_today: bool
    is_past: bool
    occurrences: list[ResolvedOccurrence]


class AgendaSummary(BaseModel):
    id: int
    name: str
    description: str | None = None
    is_active: bool
    operator_id: int
    operator_name: str | None = None


class CalendarMonth(BaseModel):
    agenda: AgendaSummary
    month: int
    year: int
    month_name: str
    days: list[ResolvedDay]


class CalendarDays(BaseModel):
    agenda: AgendaSummary
    days: list[ResolvedDay]


class AgendaSlots(BaseModel):
    agenda_id: int
    date: dt.date
    total: int
    available: int
    occurrences: list[ResolvedOccurrence]


class AgendaLoad(BaseModel):
    agenda_id: int
    agenda_name: str
    operator_name: str | None = None
    free: int
    booked: int
    occurrences: list[ResolvedOccurrence]


class RealtimeAvailability(BaseModel):
    date: dt.date
    total_agendas: int
    total_free: int
    total_booked: int
    agendas: list[AgendaLoad]
    occurrences: list[ResolvedOccurrence]  # lista plana, todas as agendas

    def first_open(self, agenda_id: int | None = None) -> ResolvedOccurrence | None:
        for occ in self.occurrences:
            if occ.available and (agenda_id is None or occ.agenda_id == agenda_id):
                return occ
        return None
