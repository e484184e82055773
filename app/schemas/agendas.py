from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AgendaIn(BaseModel):
    operator_id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=120)
    description: str | None = None
    is_active: bool = True


class AgendaUpdateIn(BaseModel):
    operator_id: int | None = Field(None, ge=1)
    name: str | None = Field(None, min_length=1, max_length=120)
    description: str | None = None
    is_active: bool | None = None


class AgendaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    operator_id: int
    operator_name: str | None = None
    name: str
    description: str | None = None
    is_active: bool
    templates_count: int = 0
