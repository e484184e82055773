from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.models.waitlist import WaitlistEntry
from app.utils.time import parse_date

log = get_logger(component="waitlist")

UPDATABLE_FIELDS = ("name", "service", "phone", "notes", "date")


def _required(value: str | None, label: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{label} é obrigatório.")
    return value.strip()


def get_entry(db: Session, entry_id: int) -> WaitlistEntry:
    row = db.get(WaitlistEntry, entry_id)
    if not row:
        raise NotFoundError("Pessoa não encontrada na lista de espera")
    return row


def list_entries(db: Session, day: date) -> list[WaitlistEntry]:
    return (
        db.query(WaitlistEntry)
        .filter(WaitlistEntry.date == day)
        .order_by(WaitlistEntry.created_at.asc(), WaitlistEntry.id.asc())
        .all()
    )


def create_entry(
    db: Session,
    *,
    name: str,
    service: str,
    date: date,
    phone: str | None = None,
    notes: str | None = None,
) -> WaitlistEntry:
    row = WaitlistEntry(
        name=_required(name, "O nome"),
        service=_required(service, "O serviço"),
        date=parse_date(date),
        phone=phone,
        notes=notes,
    )
    db.add(row)
    db.flush()
    log.info("waitlist.created", entry_id=row.id, date=row.date.isoformat())
    return row


def update_entry(db: Session, entry_id: int, fields: dict[str, Any]) -> WaitlistEntry:
    """Atualização parcial; mudar `date` move a pessoa para outro dia."""
    row = get_entry(db, entry_id)
    changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
    if "name" in changes:
        changes["name"] = _required(changes["name"], "O nome")
    if "service" in changes:
        changes["service"] = _required(changes["service"], "O serviço")
    if "date" in changes:
        changes["date"] = parse_date(changes["date"])
    for key, value in changes.items():
        setattr(row, key, value)
    db.flush()
    log.info("waitlist.updated", entry_id=row.id, fields=sorted(changes))
    return row


def delete_entry(db: Session, entry_id: int) -> None:
    row = get_entry(db, entry_id)
    db.delete(row)
    db.flush()
    log.info("waitlist.deleted", entry_id=entry_id)
