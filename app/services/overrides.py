"""
Exceções por data ("horários específicos") de um horário base.

No máximo uma exceção por (horário base, data). Campos não informados na
criação são copiados do horário base naquele momento (cópia, não
referência: editar o base depois não propaga). Desativar uma data com
agendamento ativo é conflito.
"""
from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.logging import get_logger
from app.models.schedule import DEFAULT_COLOR, ScheduleOverride, ScheduleTemplate
from app.services.appointments import find_active
from app.services.templates import get_template
from app.utils.time import ensure_time_order, parse_time

log = get_logger(component="override_store")

OVERRIDE_FIELDS = ("title", "starts_at", "ends_at", "color", "notes", "is_active")
# colunas NOT NULL: null explícito é ignorado
REQUIRED_FIELDS = ("title", "starts_at", "ends_at", "color", "is_active")

BOOKED_MSG = "Há um agendamento ativo neste horário; cancele-o antes de desativar."


def _normalize(fields: dict[str, Any]) -> dict[str, Any]:
    out = {
        k: v
        for k, v in fields.items()
        if k in OVERRIDE_FIELDS and not (v is None and k in REQUIRED_FIELDS)
    }
    for key in ("starts_at", "ends_at"):
        if key in out:
            out[key] = parse_time(out[key])
    if "title" in out:
        if not str(out["title"]).strip():
            raise ValidationError("O título é obrigatório.")
        out["title"] = str(out["title"]).strip()
    return out


def _ensure_not_booked(db: Session, template_id: int, day: date) -> None:
    """Ocorrência reservada não pode sumir do calendário."""
    if find_active(db, template_id, day) is not None:
        raise ConflictError(BOOKED_MSG)


def find_override(
    db: Session, template_id: int, day: date
) -> ScheduleOverride | None:
    return (
        db.query(ScheduleOverride)
        .filter(
            ScheduleOverride.template_id == template_id,
            ScheduleOverride.date == day,
        )
        .one_or_none()
    )


def get_override(db: Session, override_id: int) -> ScheduleOverride:
    row = db.get(ScheduleOverride, override_id)
    if not row:
        raise NotFoundError("Horário específico não encontrado")
    return row


def list_overrides(
    db: Session,
    agenda_id: int,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[ScheduleOverride]:
    q = (
        db.query(ScheduleOverride)
        .join(ScheduleTemplate, ScheduleTemplate.id == ScheduleOverride.template_id)
        .filter(ScheduleTemplate.agenda_id == agenda_id)
    )
    if date_from:
        q = q.filter(ScheduleOverride.date >= date_from)
    if date_to:
        q = q.filter(ScheduleOverride.date <= date_to)
    return q.order_by(ScheduleOverride.date.asc(), ScheduleOverride.starts_at.asc()).all()


def create_override(
    db: Session, template_id: int, day: date, fields: dict[str, Any] | None = None
) -> ScheduleOverride:
    values = _normalize(fields or {})
    template: ScheduleTemplate = get_template(db, template_id)

    if day.weekday() != template.weekday:
        raise ValidationError(
            "A data não cai no dia da semana do horário base."
        )
    if find_override(db, template_id, day) is not None:
        raise ConflictError(
            "Já existe um horário específico para esta data; atualize-o."
        )

    snapshot = {
        "title": template.title,
        "starts_at": template.starts_at,
        "ends_at": template.ends_at,
        "color": template.color or DEFAULT_COLOR,
        "notes": template.notes,
        "is_active": True,
    }
    snapshot.update(values)
    ensure_time_order(snapshot["starts_at"], snapshot["ends_at"])
    if not snapshot["is_active"]:
        _ensure_not_booked(db, template_id, day)

    row = ScheduleOverride(template_id=template_id, date=day, **snapshot)
    db.add(row)
    db.flush()
    log.info(
        "override.created",
        override_id=row.id,
        template_id=template_id,
        date=day.isoformat(),
        is_active=row.is_active,
    )
    return row


def update_override(
    db: Session, override_id: int, fields: dict[str, Any]
) -> ScheduleOverride:
    """Atualização parcial; a âncora (template_id, date) não muda."""
    row = get_override(db, override_id)
    changes = _normalize(fields)
    ensure_time_order(
        changes.get("starts_at", row.starts_at), changes.get("ends_at", row.ends_at)
    )
    if changes.get("is_active") is False:
        _ensure_not_booked(db, row.template_id, row.date)
    for key, value in changes.items():
        setattr(row, key, value)
    db.flush()
    log.info("override.updated", override_id=row.id, fields=sorted(changes))
    return row


def delete_override(db: Session, override_id: int) -> None:
    """A data volta a seguir o horário base."""
    row = get_override(db, override_id)
    db.delete(row)
    db.flush()
    log.info(
        "override.deleted",
        override_id=override_id,
        template_id=row.template_id,
        date=row.date.isoformat(),
    )
