from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime

from fastapi import Request
from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog


def get_client_ip(request: Request) -> str | None:
    # atrás de proxy vale o 1º IP do X-Forwarded-For
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    xri = request.headers.get("x-real-ip")
    if xri:
        return xri.strip()
    return request.client.host if request.client else None


def changed_fields(fields: Iterable[str]) -> str | None:
    """Resumo curto para a coluna details: "fields=ends_at,title"."""
    names = sorted(fields)
    return f"fields={','.join(names)}" if names else None


def record_audit(
    db: Session,
    *,
    user_id: int | None,
    action: str,
    entity: str,
    entity_id: int | None,
    occurrence_date: date | None = None,
    details: str | None = None,
    ip: str | None = None,
    request: Request | None = None,
) -> AuditLog:
    """
    Só adiciona à sessão: o commit é de quem chamou, junto com a mutação,
    e um rollback descarta mutação e auditoria juntas.
    """
    if ip is None and request is not None:
        ip = get_client_ip(request)
    row = AuditLog(
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=entity_id,
        occurrence_date=occurrence_date,
        details=details[:255] if details else None,
        timestamp_utc=datetime.now(UTC),
        ip=ip,
    )
    db.add(row)
    return row
