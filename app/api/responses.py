from __future__ import annotations

from fastapi import status
from starlette.responses import JSONResponse

from app.schemas.mutations import MutationResult, Outcome

_STATUS_BY_OUTCOME = {
    Outcome.CONFLICT: status.HTTP_409_CONFLICT,
    Outcome.FORBIDDEN: status.HTTP_403_FORBIDDEN,
}


def mutation_response(
    result: MutationResult, success_status: int = status.HTTP_200_OK
) -> JSONResponse:
    """Conflito/permissão viram 409/403, sempre com o dia já re-resolvido."""
    code = _STATUS_BY_OUTCOME.get(result.outcome, success_status)
    body = result.model_dump(mode="json")
    body["detail"] = result.message
    return JSONResponse(body, status_code=code)
