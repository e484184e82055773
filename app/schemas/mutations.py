from __future__ import annotations

import enum

from pydantic import BaseModel

from app.schemas.calendar import ResolvedDay


class Outcome(str, enum.Enum):
    APPLIED = "applied"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"


class MutationResult(BaseModel):
    outcome: Outcome
    message: str | None = None
    target_id: int | None = None  # linha criada/alterada (exceção ou agendamento)
    day: ResolvedDay | None = None  # dia re-resolvido após a mutação

    @property
    def applied(self) -> bool:
        return self.outcome == Outcome.APPLIED
