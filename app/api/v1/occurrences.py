from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.responses import mutation_response
from app.deps import get_orchestrator
from app.schemas.schedule import OccurrenceFieldsIn
from app.services.orchestrator import Orchestrator

router = APIRouter(prefix="/occurrences", tags=["occurrences"])


@router.put("/{template_id}/{day}")
def edit_occurrence(
    template_id: int,
    day: date,
    payload: OccurrenceFieldsIn,
    orchestrator: Annotated[Orchestrator, Depends(get_orchestrator)],
):
    """Edita só esta data (cria ou atualiza a exceção)."""
    result = orchestrator.edit_occurrence(
        template_id, day, payload.model_dump(exclude_unset=True)
    )
    return mutation_response(result)


@router.post("/{template_id}/{day}/disable")
def disable_occurrence(
    template_id: int,
    day: date,
    orchestrator: Annotated[Orchestrator, Depends(get_orchestrator)],
):
    """Remove só esta data; as demais semanas seguem o horário base."""
    return mutation_response(orchestrator.disable_occurrence(template_id, day))


@router.post("/{template_id}/{day}/restore")
def restore_occurrence(
    template_id: int,
    day: date,
    orchestrator: Annotated[Orchestrator, Depends(get_orchestrator)],
):
    """Descarta a exceção da data e volta ao horário base."""
    return mutation_response(orchestrator.restore_occurrence(template_id, day))
