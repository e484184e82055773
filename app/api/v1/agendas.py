from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.audit.helpers import record_audit
from app.db import get_db
from app.deps import get_current_user, require_roles
from app.models.agenda import Agenda
from app.models.schedule import ScheduleTemplate
from app.models.user import Role, User
from app.schemas.agendas import AgendaIn, AgendaOut, AgendaUpdateIn

router = APIRouter(prefix="/agendas", tags=["agendas"])


def _ensure_operator(db: Session, operator_id: int) -> User:
    op = db.get(User, operator_id)
    if not op:
        raise HTTPException(404, "Operador não encontrado")
    if not op.is_active:
        raise HTTPException(400, "Operador inativo")
    return op


def _load_agenda(db: Session, agenda_id: int) -> Agenda:
    agenda = db.get(Agenda, agenda_id)
    if not agenda:
        raise HTTPException(404, "Agenda não encontrada")
    return agenda


def _to_out(agenda: Agenda, templates_count: int) -> AgendaOut:
    return AgendaOut(
        id=agenda.id,
        operator_id=agenda.operator_id,
        operator_name=agenda.operator.name if agenda.operator else None,
        name=agenda.name,
        description=agenda.description,
        is_active=agenda.is_active,
        templates_count=templates_count,
    )


def _count_templates(db: Session, agenda_ids: list[int]) -> dict[int, int]:
    if not agenda_ids:
        return {}
    rows = (
        db.query(ScheduleTemplate.agenda_id, func.count(ScheduleTemplate.id))
        .filter(ScheduleTemplate.agenda_id.in_(agenda_ids))
        .group_by(ScheduleTemplate.agenda_id)
        .all()
    )
    return {aid: int(c) for aid, c in rows}


@router.get("", response_model=list[AgendaOut])
def list_agendas(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    only_active: bool = Query(False),
):
    q = db.query(Agenda)
    if only_active:
        q = q.filter(Agenda.is_active.is_(True))
    rows = q.order_by(Agenda.name.asc(), Agenda.id.asc()).all()
    counts = _count_templates(db, [a.id for a in rows])
    return [_to_out(a, counts.get(a.id, 0)) for a in rows]


@router.get("/{agenda_id}", response_model=AgendaOut)
def get_agenda(
    agenda_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    agenda = _load_agenda(db, agenda_id)
    return _to_out(agenda, _count_templates(db, [agenda.id]).get(agenda.id, 0))


@router.post("", response_model=AgendaOut, status_code=201)
def create_agenda(
    payload: AgendaIn,
    request: Request,
    current_user: Annotated[User, Depends(require_roles(Role.ADMIN))],
    db: Annotated[Session, Depends(get_db)],
):
    _ensure_operator(db, payload.operator_id)
    agenda = Agenda(**payload.model_dump())
    db.add(agenda)
    db.flush()
    record_audit(
        db,
        request=request,
        user_id=current_user.id,
        action="CREATE",
        entity="agenda",
        entity_id=agenda.id,
    )
    db.commit()
    db.refresh(agenda)
    return _to_out(agenda, 0)


@router.put("/{agenda_id}", response_model=AgendaOut)
def update_agenda(
    agenda_id: int,
    payload: AgendaUpdateIn,
    request: Request,
    current_user: Annotated[User, Depends(require_roles(Role.ADMIN))],
    db: Annotated[Session, Depends(get_db)],
):
    agenda = _load_agenda(db, agenda_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("operator_id") is not None:
        _ensure_operator(db, changes["operator_id"])
    for key, value in changes.items():
        if value is not None or key == "description":
            setattr(agenda, key, value)
    record_audit(
        db,
        request=request,
        user_id=current_user.id,
        action="UPDATE",
        entity="agenda",
        entity_id=agenda.id,
    )
    db.commit()
    db.refresh(agenda)
    return _to_out(agenda, _count_templates(db, [agenda.id]).get(agenda.id, 0))


@router.delete("/{agenda_id}", status_code=204)
def delete_agenda(
    agenda_id: int,
    request: Request,
    current_user: Annotated[User, Depends(require_roles(Role.ADMIN))],
    db: Annotated[Session, Depends(get_db)],
):
    agenda = _load_agenda(db, agenda_id)
    db.delete(agenda)
    record_audit(
        db,
        request=request,
        user_id=current_user.id,
        action="DELETE",
        entity="agenda",
        entity_id=agenda_id,
    )
    db.commit()
    return
