"""
Horários base: blocos semanais recorrentes de uma agenda.

Atualizar/remover um horário base vale para todas as ocorrências futuras
daquele dia da semana e nunca toca nas exceções por data já existentes.
"""
from __future__ import annotations

from datetime import time
from typing import Any

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.models.agenda import Agenda
from app.models.schedule import DEFAULT_COLOR, ScheduleTemplate
from app.utils.time import ensure_time_order, parse_time

log = get_logger(component="template_store")

UPDATABLE_FIELDS = (
    "title",
    "weekday",
    "starts_at",
    "ends_at",
    "color",
    "notes",
    "is_active",
)


def _ensure_agenda(db: Session, agenda_id: int) -> Agenda:
    agenda = db.get(Agenda, agenda_id)
    if not agenda:
        raise NotFoundError("Agenda não encontrada")
    return agenda


def _check_weekday(weekday: Any) -> int:
    if not isinstance(weekday, int) or isinstance(weekday, bool) or not 0 <= weekday <= 6:
        raise ValidationError("weekday deve ser um inteiro entre 0 (segunda) e 6 (domingo)")
    return weekday


def _check_title(title: str | None) -> str:
    if not title or not title.strip():
        raise ValidationError("O título é obrigatório.")
    return title.strip()


def get_template(db: Session, template_id: int) -> ScheduleTemplate:
    row = db.get(ScheduleTemplate, template_id)
    if not row:
        raise NotFoundError("Horário não encontrado")
    return row


def list_templates(
    db: Session,
    agenda_id: int,
    *,
    weekday: int | None = None,
    include_inactive: bool = True,
) -> list[ScheduleTemplate]:
    q = db.query(ScheduleTemplate).filter(ScheduleTemplate.agenda_id == agenda_id)
    if weekday is not None:
        q = q.filter(ScheduleTemplate.weekday == weekday)
    if not include_inactive:
        q = q.filter(ScheduleTemplate.is_active.is_(True))
    return q.order_by(
        ScheduleTemplate.weekday.asc(),
        ScheduleTemplate.starts_at.asc(),
        ScheduleTemplate.id.asc(),
    ).all()


def create_template(
    db: Session,
    *,
    agenda_id: int,
    title: str,
    weekday: int,
    starts_at: str | time,
    ends_at: str | time,
    color: str | None = None,
    notes: str | None = None,
    is_active: bool = True,
) -> ScheduleTemplate:
    # valida tudo antes de tocar no banco
    title = _check_title(title)
    weekday = _check_weekday(weekday)
    s, e = parse_time(starts_at), parse_time(ends_at)
    ensure_time_order(s, e)
    _ensure_agenda(db, agenda_id)

    row = ScheduleTemplate(
        agenda_id=agenda_id,
        title=title,
        weekday=weekday,
        starts_at=s,
        ends_at=e,
        color=color or DEFAULT_COLOR,
        notes=notes,
        is_active=is_active,
    )
    db.add(row)
    db.flush()
    log.info("template.created", template_id=row.id, agenda_id=agenda_id, weekday=weekday)
    return row


def update_template(
    db: Session, template_id: int, fields: dict[str, Any]
) -> ScheduleTemplate:
    row = get_template(db, template_id)
    changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}

    if "title" in changes:
        changes["title"] = _check_title(changes["title"])
    if "weekday" in changes:
        changes["weekday"] = _check_weekday(changes["weekday"])
    if "is_active" in changes and changes["is_active"] is None:
        raise ValidationError("is_active não pode ser nulo.")
    for key in ("starts_at", "ends_at"):
        if key in changes:
            changes[key] = parse_time(changes[key])
    if "color" in changes and not changes["color"]:
        changes["color"] = DEFAULT_COLOR

    ensure_time_order(
        changes.get("starts_at", row.starts_at), changes.get("ends_at", row.ends_at)
    )

    for key, value in changes.items():
        setattr(row, key, value)
    db.flush()
    log.info("template.updated", template_id=row.id, fields=sorted(changes))
    return row


def delete_template(db: Session, template_id: int) -> None:
    """Remoção incondicional: exceções e reservas ficam órfãs."""
    row = get_template(db, template_id)
    db.delete(row)
    db.flush()
    log.info("template.deleted", template_id=template_id)
