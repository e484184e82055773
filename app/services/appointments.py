"""
Reservas de ocorrências. A checagem de conflito é feita aqui (antes do
INSERT) e garantida pelo índice único parcial `ux_appt_occurrence_active`
quando duas sessões disputam o mesmo horário.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Any

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from app.core.logging import get_logger
from app.models.agenda import Agenda
from app.models.appointment import (
    ACTIVE_STATUSES,
    Appointment,
    AppointmentStatus,
    is_valid_transition,
)
from app.models.user import Role, User
from app.services.occurrences import load_occurrence

log = get_logger(component="appointment_store")

TAKEN_MSG = (
    "Ops, o horário acabou de ser reservado por outra pessoa. "
    "Atualize os horários e escolha outro."
)

UPDATABLE_FIELDS = (
    "client_name",
    "client_phone",
    "client_email",
    "service",
    "status",
    "notes",
)


def _is_unique_violation(e: IntegrityError) -> bool:
    orig = getattr(e, "orig", None)
    return (
        "ux_appt_occurrence_active" in str(orig)
        or "unique" in str(orig).lower()
        or getattr(orig, "pgcode", None) == "23505"
    )


def _required(value: str | None, label: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{label} é obrigatório.")
    return value.strip()


def get_appointment(db: Session, appointment_id: int) -> Appointment:
    ap = db.get(Appointment, appointment_id)
    if not ap:
        raise NotFoundError("Agendamento não encontrado")
    return ap


def find_active(db: Session, template_id: int, day: date) -> Appointment | None:
    return (
        db.query(Appointment)
        .filter(
            and_(
                Appointment.template_id == template_id,
                Appointment.date == day,
                Appointment.status.in_(ACTIVE_STATUSES),
            )
        )
        .first()
    )


def active_appointments_by_occurrence(
    db: Session, template_ids: Iterable[int], days: Iterable[date]
) -> dict[tuple[int, date], Appointment]:
    template_ids, days = list(set(template_ids)), list(set(days))
    if not template_ids or not days:
        return {}
    rows = (
        db.query(Appointment)
        .filter(
            and_(
                Appointment.template_id.in_(template_ids),
                Appointment.date.in_(days),
                Appointment.status.in_(ACTIVE_STATUSES),
            )
        )
        .order_by(Appointment.id.asc())
        .all()
    )
    out: dict[tuple[int, date], Appointment] = {}
    for ap in rows:
        out.setdefault((ap.template_id, ap.date), ap)
    return out


def list_appointments(
    db: Session,
    *,
    agenda_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    status: AppointmentStatus | None = None,
) -> list[Appointment]:
    q = db.query(Appointment)
    if agenda_id is not None:
        q = q.filter(Appointment.agenda_id == agenda_id)
    if date_from is not None:
        q = q.filter(Appointment.date >= date_from)
    if date_to is not None:
        q = q.filter(Appointment.date <= date_to)
    if status is not None:
        q = q.filter(Appointment.status == status)
    return q.order_by(Appointment.date.asc(), Appointment.starts_at.asc()).all()


def ensure_can_manage(db: Session, user: User, ap: Appointment) -> None:
    # ADMIN pode tudo; OPERATOR só na própria agenda ou no que ele mesmo criou
    if user.role == Role.ADMIN:
        return
    agenda = db.get(Agenda, ap.agenda_id)
    if agenda is not None and agenda.operator_id == user.id:
        return
    if ap.created_by == user.id:
        return
    raise AuthorizationError("Você não tem permissão para alterar este agendamento.")


def create_appointment(
    db: Session,
    *,
    agenda_id: int,
    template_id: int,
    date: date,
    client_name: str,
    service: str,
    client_phone: str | None = None,
    client_email: str | None = None,
    status: AppointmentStatus = AppointmentStatus.PENDING,
    notes: str | None = None,
    created_by: int | None = None,
) -> Appointment:
    client_name = _required(client_name, "O nome do cliente")
    service = _required(service, "O serviço")
    if status == AppointmentStatus.CANCELLED:
        raise ValidationError("Um agendamento não pode nascer cancelado.")

    occ = load_occurrence(db, template_id, date)
    if occ is None or occ.template.agenda_id != agenda_id or not occ.visible:
        raise NotFoundError("Este horário não existe na data informada.")

    if find_active(db, template_id, date) is not None:
        log.info("appointment.conflict", template_id=template_id, date=date.isoformat())
        raise ConflictError("Horário indisponível (já existe um agendamento).")

    # horários copiados agora: a reserva não depende mais do base/exceção
    source = occ.source
    ap = Appointment(
        agenda_id=agenda_id,
        template_id=template_id,
        override_id=occ.override_id,
        client_name=client_name,
        client_phone=client_phone,
        client_email=client_email,
        service=service,
        date=date,
        starts_at=source.starts_at,
        ends_at=source.ends_at,
        status=status,
        notes=notes,
        created_by=created_by,
    )
    db.add(ap)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        if _is_unique_violation(e):
            log.info("appointment.race_lost", template_id=template_id, date=date.isoformat())
            raise ConflictError(TAKEN_MSG) from e
        raise
    log.info(
        "appointment.created",
        appointment_id=ap.id,
        template_id=template_id,
        date=date.isoformat(),
    )
    return ap


def update_appointment(
    db: Session, appointment_id: int, fields: dict[str, Any], *, user: User
) -> Appointment:
    ap = get_appointment(db, appointment_id)
    ensure_can_manage(db, user, ap)

    changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
    for key, label in (("client_name", "O nome do cliente"), ("service", "O serviço")):
        if key in changes:
            changes[key] = _required(changes[key], label)

    if "status" in changes and changes["status"] is not None:
        new_status = AppointmentStatus(changes["status"])
        if not is_valid_transition(ap.status, new_status):
            raise ValidationError(
                f"Transição de status inválida: {ap.status.value} → {new_status.value}"
            )
        changes["status"] = new_status
    else:
        changes.pop("status", None)

    for key, value in changes.items():
        setattr(ap, key, value)
    db.flush()
    log.info("appointment.updated", appointment_id=ap.id, fields=sorted(changes))
    return ap


def delete_appointment(db: Session, appointment_id: int, *, user: User) -> Appointment:
    """Remoção física: libera a ocorrência na hora (diferente de cancelar)."""
    ap = get_appointment(db, appointment_id)
    ensure_can_manage(db, user, ap)
    db.delete(ap)
    db.flush()
    log.info("appointment.deleted", appointment_id=appointment_id)
    return ap
