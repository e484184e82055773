from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from app.core.settings import settings


def _now() -> datetime:
    return datetime.now(UTC)


def create_token(sub: str, type_: str, expires_delta: timedelta) -> str:
    now = _now()
    payload: dict[str, Any] = {
        "sub": sub,  # user id (string)
        "type": type_,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def create_access_token(sub: str) -> str:
    return create_token(
        sub, "access", timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )


def decode_token(token: str, expected_type: str) -> dict:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError as e:
        raise ValueError("Token inválido.") from e
    if payload.get("type") != expected_type:
        raise ValueError("Tipo de token inválido.")
    return payload


# API só JSON: nada de estilo ou script inline
CSP_POLICY = (
    "default-src 'none'; "
    "connect-src 'self'; "
    "object-src 'none'; "
    "base-uri 'none'; "
    "frame-ancestors 'none'"
)


class CSPMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, policy: str = CSP_POLICY):
        super().__init__(app)
        self.policy = policy

    async def dispatch(self, request, call_next):
        response: Response = await call_next(request)
        response.headers["Content-Security-Policy"] = self.policy
        return response
