"""
Resolvedor de disponibilidade.

Para cada data: horários base do dia da semana -> substituídos pela exceção
da data (se houver) -> descartados se inativos -> marcados como ocupados se
houver agendamento ativo para (template_id, data).

Precedência: exceção > horário base (campos e existência);
agendamento > flag de disponibilidade.

"Hoje" é sempre recebido por parâmetro; nada aqui lê o relógio.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.models.agenda import Agenda
from app.models.appointment import Appointment
from app.models.schedule import ScheduleOverride, ScheduleTemplate
from app.schemas.calendar import (
    AgendaLoad,
    AgendaSlots,
    AgendaSummary,
    AppointmentSummary,
    CalendarDays,
    CalendarMonth,
    RealtimeAvailability,
    ResolvedDay,
    ResolvedOccurrence,
)
from app.services.appointments import active_appointments_by_occurrence
from app.services.occurrences import Occurrence, materialize
from app.utils.time import format_time
from app.utils.week import month_days, month_name, sunday_week, weekday_name

log = get_logger(component="resolver")


def _ensure_agenda(db: Session, agenda_id: int) -> Agenda:
    agenda = db.get(Agenda, agenda_id)
    if not agenda:
        raise NotFoundError("Agenda não encontrada")
    return agenda


def agenda_summary(agenda: Agenda) -> AgendaSummary:
    return AgendaSummary(
        id=agenda.id,
        name=agenda.name,
        description=agenda.description,
        is_active=agenda.is_active,
        operator_id=agenda.operator_id,
        operator_name=agenda.operator.name if agenda.operator else None,
    )


def _to_resolved(occ: Occurrence, appointment: Appointment | None) -> ResolvedOccurrence:
    src = occ.source
    summary = None
    if appointment is not None:
        summary = AppointmentSummary(
            id=appointment.id,
            client_name=appointment.client_name,
            client_phone=appointment.client_phone,
            service=appointment.service,
            status=appointment.status,
            notes=appointment.notes,
        )
    return ResolvedOccurrence(
        id=occ.id,
        template_id=occ.template_id,
        override_id=occ.override_id,
        agenda_id=occ.template.agenda_id,
        title=src.title,
        starts_at=format_time(src.starts_at),
        ends_at=format_time(src.ends_at),
        color=src.color,
        notes=src.notes,
        available=appointment is None,
        is_override=occ.is_override,
        appointment=summary,
    )


def _resolve(
    db: Session, agenda_ids: list[int], days: list[date]
) -> dict[int, dict[date, list[ResolvedOccurrence]]]:
    """Núcleo: três consultas (base, exceções, agendamentos) e merge em memória."""
    result: dict[int, dict[date, list[ResolvedOccurrence]]] = {
        aid: {d: [] for d in days} for aid in agenda_ids
    }
    if not agenda_ids or not days:
        return result

    weekdays = {d.weekday() for d in days}
    templates: list[ScheduleTemplate] = (
        db.query(ScheduleTemplate)
        .filter(
            ScheduleTemplate.agenda_id.in_(agenda_ids),
            ScheduleTemplate.weekday.in_(weekdays),
        )
        .all()
    )
    template_ids = [t.id for t in templates]

    overrides: dict[tuple[int, date], ScheduleOverride] = {}
    if template_ids:
        rows = (
            db.query(ScheduleOverride)
            .filter(
                ScheduleOverride.template_id.in_(template_ids),
                ScheduleOverride.date >= min(days),
                ScheduleOverride.date <= max(days),
            )
            .all()
        )
        overrides = {(o.template_id, o.date): o for o in rows}

    booked = active_appointments_by_occurrence(db, template_ids, days)

    by_agenda: dict[int, list[ScheduleTemplate]] = {}
    for tpl in templates:
        by_agenda.setdefault(tpl.agenda_id, []).append(tpl)

    for aid in agenda_ids:
        agenda_templates = by_agenda.get(aid, [])
        for d in days:
            result[aid][d] = [
                _to_resolved(occ, booked.get((occ.template_id, d)))
                for occ in materialize(agenda_templates, overrides, d)
            ]
    return result


def _day(d: date, occurrences: list[ResolvedOccurrence], today: date) -> ResolvedDay:
    return ResolvedDay(
        date=d,
        day=d.day,
        weekday=d.weekday(),
        weekday_name=weekday_name(d),
        is_today=d == today,
        is_past=d < today,
        occurrences=occurrences,
    )


def resolve_days(
    db: Session, agenda_id: int, days: Iterable[date], *, today: date
) -> list[ResolvedDay]:
    _ensure_agenda(db, agenda_id)
    ordered = sorted(set(days))
    resolved = _resolve(db, [agenda_id], ordered)[agenda_id]
    return [_day(d, resolved[d], today) for d in ordered]


def resolve_day(db: Session, agenda_id: int, day: date, *, today: date) -> ResolvedDay:
    return resolve_days(db, agenda_id, [day], today=today)[0]


def resolve_dates(
    db: Session, agenda_id: int, days: Iterable[date], *, today: date
) -> CalendarDays:
    agenda = _ensure_agenda(db, agenda_id)
    return CalendarDays(
        agenda=agenda_summary(agenda),
        days=resolve_days(db, agenda_id, days, today=today),
    )


def resolve_week(
    db: Session, agenda_id: int, reference: date, *, today: date
) -> CalendarDays:
    return resolve_dates(db, agenda_id, sunday_week(reference), today=today)


def resolve_month(
    db: Session, agenda_id: int, year: int, month: int, *, today: date
) -> CalendarMonth:
    agenda = _ensure_agenda(db, agenda_id)
    days = resolve_days(db, agenda_id, month_days(year, month), today=today)
    log.info(
        "calendar.resolved",
        agenda_id=agenda_id,
        year=year,
        month=month,
        occurrences=sum(len(d.occurrences) for d in days),
    )
    return CalendarMonth(
        agenda=agenda_summary(agenda),
        month=month,
        year=year,
        month_name=month_name(month),
        days=days,
    )


def agenda_slots(
    db: Session, agenda_id: int, day: date, *, today: date
) -> AgendaSlots:
    resolved = resolve_day(db, agenda_id, day, today=today)
    return AgendaSlots(
        agenda_id=agenda_id,
        date=day,
        total=len(resolved.occurrences),
        available=sum(1 for o in resolved.occurrences if o.available),
        occurrences=resolved.occurrences,
    )


def realtime_availability(db: Session, day: date, *, today: date) -> RealtimeAvailability:
    """Visão cruzada: todas as agendas ativas numa data (painel + lista de espera)."""
    agendas: list[Agenda] = (
        db.query(Agenda)
        .filter(Agenda.is_active.is_(True))
        .order_by(Agenda.name.asc(), Agenda.id.asc())
        .all()
    )
    resolved = _resolve(db, [a.id for a in agendas], [day])

    loads: list[AgendaLoad] = []
    flat: list[ResolvedOccurrence] = []
    for agenda in agendas:
        occs = resolved[agenda.id][day]
        free = sum(1 for o in occs if o.available)
        loads.append(
            AgendaLoad(
                agenda_id=agenda.id,
                agenda_name=agenda.name,
                operator_name=agenda.operator.name if agenda.operator else None,
                free=free,
                booked=len(occs) - free,
                occurrences=occs,
            )
        )
        flat.extend(occs)

    return RealtimeAvailability(
        date=day,
        total_agendas=len(agendas),
        total_free=sum(a.free for a in loads),
        total_booked=sum(a.booked for a in loads),
        agendas=loads,
        occurrences=flat,
    )
