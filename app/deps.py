from __future__ import annotations

from collections.abc import Callable
from datetime import date

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.audit.helpers import get_client_ip
from app.core.logging import set_user_id
from app.core.security import decode_token
from app.db import get_db
from app.models.user import Role, User
from app.services.orchestrator import Orchestrator
from app.utils.tz import today_local


def _extract_token_from_request(request: Request) -> str | None:
    auth = request.headers.get("Authorization")
    if auth and auth.lower().startswith("bearer "):
        return auth.split(" ", 1)[1]
    return None


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:  # noqa: B008
    token = _extract_token_from_request(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Não autenticado"
        )

    try:
        payload = decode_token(token, expected_type="access")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido ou expirado",
        ) from ValueError

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token malformado"
        )

    user: User | None = db.get(User, int(user_id))
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuário inativo ou inexistente",
        )

    set_user_id(user.id)
    return user


def require_roles(*allowed: Role) -> Callable[[Request, Session], User]:
    def wrapper(request: Request, db: Session = Depends(get_db)) -> User:  # noqa: B008
        user = get_current_user(request, db)
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Sem permissão"
            )
        return user

    return wrapper


def get_today() -> date:
    """Data de referência ("hoje") injetada no resolvedor; sobrescrevível nos testes."""
    return today_local()


def get_orchestrator(
    request: Request,
    db: Session = Depends(get_db),  # noqa: B008
    user: User = Depends(get_current_user),  # noqa: B008
    today: date = Depends(get_today),  # noqa: B008
) -> Orchestrator:
    return Orchestrator(db, user, today=today, ip=get_client_ip(request))
