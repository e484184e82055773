from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.audit.helpers import changed_fields, record_audit
from app.db import get_db
from app.deps import get_current_user
from app.models.user import User
from app.schemas.schedule import TemplateIn, TemplateOut, TemplateUpdateIn
from app.services import templates as template_store

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("", response_model=list[TemplateOut])
def list_templates(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    agenda_id: int = Query(..., ge=1),
    weekday: int | None = Query(None, ge=0, le=6),
):
    return template_store.list_templates(db, agenda_id, weekday=weekday)


@router.post("", response_model=TemplateOut, status_code=201)
def create_template(
    payload: TemplateIn,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    row = template_store.create_template(db, **payload.model_dump())
    record_audit(
        db,
        request=request,
        user_id=current_user.id,
        action="CREATE",
        entity="schedule_template",
        entity_id=row.id,
    )
    db.commit()
    db.refresh(row)
    return row


@router.put("/{template_id}", response_model=TemplateOut)
def update_template(
    template_id: int,
    payload: TemplateUpdateIn,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    # vale para todas as ocorrências futuras deste dia da semana
    fields = payload.model_dump(exclude_unset=True)
    row = template_store.update_template(db, template_id, fields)
    record_audit(
        db,
        request=request,
        user_id=current_user.id,
        action="UPDATE",
        entity="schedule_template",
        entity_id=row.id,
        details=changed_fields(fields),
    )
    db.commit()
    db.refresh(row)
    return row


@router.delete("/{template_id}", status_code=204)
def delete_template(
    template_id: int,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    template_store.delete_template(db, template_id)
    record_audit(
        db,
        request=request,
        user_id=current_user.id,
        action="DELETE",
        entity="schedule_template",
        entity_id=template_id,
    )
    db.commit()
    return
