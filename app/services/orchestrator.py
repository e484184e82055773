"""
Orquestrador de mutações sobre ocorrências resolvidas.

O estado de uma ocorrência é inferido, nunca persistido:
    BASE        -> não há exceção para (template_id, data)
    OVERRIDDEN  -> já existe uma exceção para (template_id, data)

Toda mutação termina com commit + re-resolução do dia afetado. Conflitos e
falta de permissão são resultados esperados: viram MutationResult com o
dia atualizado, nunca exceção não tratada.
"""
from __future__ import annotations

import enum
from collections.abc import Callable
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from app.audit.helpers import changed_fields, record_audit
from app.core.exceptions import AuthorizationError, ConflictError
from app.core.logging import get_logger
from app.models.appointment import AppointmentStatus
from app.models.schedule import ScheduleOverride
from app.models.user import User
from app.schemas.calendar import ResolvedDay
from app.schemas.mutations import MutationResult, Outcome
from app.services import appointments as appointment_store
from app.services import overrides as override_store
from app.services import waitlist as waitlist_store
from app.services.resolver import realtime_availability, resolve_day
from app.services.templates import get_template

log = get_logger(component="orchestrator")

FROM_WAITLIST_NOTE = "Agendamento criado a partir da lista de espera"


class OccurrenceState(str, enum.Enum):
    BASE = "BASE"
    OVERRIDDEN = "OVERRIDDEN"


def occurrence_state(
    db: Session, template_id: int, day: date
) -> tuple[OccurrenceState, ScheduleOverride | None]:
    override = override_store.find_override(db, template_id, day)
    if override is None:
        return OccurrenceState.BASE, None
    return OccurrenceState.OVERRIDDEN, override


class Orchestrator:
    def __init__(
        self, db: Session, user: User, *, today: date, ip: str | None = None
    ) -> None:
        self.db = db
        self.user = user
        self.today = today
        self.ip = ip

    # ---------- infra ----------

    def _refresh(self, agenda_id: int | None, day: date) -> ResolvedDay | None:
        if agenda_id is None:
            return None
        return resolve_day(self.db, agenda_id, day, today=self.today)

    def _run(
        self,
        *,
        agenda_id: int | None,
        day: date,
        action: str,
        entity: str,
        mutate: Callable[[], int | None],
        details: str | None = None,
    ) -> MutationResult:
        try:
            target_id = mutate()
            record_audit(
                self.db,
                user_id=self.user.id,
                action=action,
                entity=entity,
                entity_id=target_id,
                occurrence_date=day,
                details=details,
                ip=self.ip,
            )
            self.db.commit()
        except (ConflictError, AuthorizationError) as e:
            self.db.rollback()
            outcome = (
                Outcome.CONFLICT if isinstance(e, ConflictError) else Outcome.FORBIDDEN
            )
            log.info(
                "mutation.rejected",
                action=action,
                entity=entity,
                outcome=outcome.value,
                date=day.isoformat(),
            )
            return MutationResult(
                outcome=outcome,
                message=e.message,
                day=self._refresh(agenda_id, day),
            )
        except Exception:
            self.db.rollback()
            raise

        log.info(
            "mutation.applied",
            action=action,
            entity=entity,
            entity_id=target_id,
            date=day.isoformat(),
        )
        return MutationResult(
            outcome=Outcome.APPLIED,
            target_id=target_id,
            day=self._refresh(agenda_id, day),
        )

    def _ensure_not_booked(self, template_id: int, day: date, message: str) -> None:
        if appointment_store.find_active(self.db, template_id, day) is not None:
            raise ConflictError(message)

    # ---------- ocorrências (horário base x exceção) ----------

    def edit_occurrence(
        self, template_id: int, day: date, fields: dict[str, Any]
    ) -> MutationResult:
        """Editar só esta data: cria a exceção (BASE) ou atualiza a existente."""
        template = get_template(self.db, template_id)

        def mutate() -> int:
            state, override = occurrence_state(self.db, template_id, day)
            if state is OccurrenceState.BASE:
                row = override_store.create_override(self.db, template_id, day, fields)
            else:
                row = override_store.update_override(self.db, override.id, fields)
            return row.id

        return self._run(
            agenda_id=template.agenda_id,
            day=day,
            action="EDIT_OCCURRENCE",
            entity="schedule_override",
            mutate=mutate,
            details=changed_fields(fields),
        )

    def disable_occurrence(self, template_id: int, day: date) -> MutationResult:
        """Remover só esta data, preservando o horário base e a exceção."""
        template = get_template(self.db, template_id)

        def mutate() -> int:
            state, override = occurrence_state(self.db, template_id, day)
            if state is OccurrenceState.BASE:
                row = override_store.create_override(
                    self.db, template_id, day, {"is_active": False}
                )
            else:
                row = override_store.update_override(
                    self.db, override.id, {"is_active": False}
                )
            return row.id

        return self._run(
            agenda_id=template.agenda_id,
            day=day,
            action="DISABLE_OCCURRENCE",
            entity="schedule_override",
            mutate=mutate,
        )

    def restore_occurrence(self, template_id: int, day: date) -> MutationResult:
        """Voltar ao padrão: remove a exceção da data (BASE = nada a fazer)."""
        template = get_template(self.db, template_id)

        def mutate() -> int | None:
            state, override = occurrence_state(self.db, template_id, day)
            if state is OccurrenceState.BASE:
                return None
            if not template.is_active:
                # voltar ao base inativo esconderia uma ocorrência reservada
                self._ensure_not_booked(
                    template_id,
                    day,
                    "Há um agendamento ativo neste horário; o horário base está inativo.",
                )
            override_store.delete_override(self.db, override.id)
            return override.id

        return self._run(
            agenda_id=template.agenda_id,
            day=day,
            action="RESTORE_OCCURRENCE",
            entity="schedule_override",
            mutate=mutate,
        )

    # ---------- agendamentos ----------

    def book(
        self, *, agenda_id: int, template_id: int, day: date, **fields: Any
    ) -> MutationResult:
        def mutate() -> int:
            ap = appointment_store.create_appointment(
                self.db,
                agenda_id=agenda_id,
                template_id=template_id,
                date=day,
                created_by=self.user.id,
                **fields,
            )
            return ap.id

        return self._run(
            agenda_id=agenda_id,
            day=day,
            action="CREATE",
            entity="appointment",
            mutate=mutate,
        )

    def change_appointment(
        self, appointment_id: int, fields: dict[str, Any]
    ) -> MutationResult:
        ap = appointment_store.get_appointment(self.db, appointment_id)
        agenda_id, day = ap.agenda_id, ap.date

        def mutate() -> int:
            appointment_store.update_appointment(
                self.db, appointment_id, fields, user=self.user
            )
            return appointment_id

        return self._run(
            agenda_id=agenda_id,
            day=day,
            action="UPDATE",
            entity="appointment",
            mutate=mutate,
            details=changed_fields(fields),
        )

    def remove_appointment(self, appointment_id: int) -> MutationResult:
        ap = appointment_store.get_appointment(self.db, appointment_id)
        agenda_id, day = ap.agenda_id, ap.date

        def mutate() -> int:
            appointment_store.delete_appointment(self.db, appointment_id, user=self.user)
            return appointment_id

        return self._run(
            agenda_id=agenda_id,
            day=day,
            action="DELETE",
            entity="appointment",
            mutate=mutate,
        )

    def promote_waitlist(
        self,
        entry_id: int,
        *,
        agenda_id: int | None = None,
        template_id: int | None = None,
    ) -> MutationResult:
        """
        Lista de espera -> agendamento CONFIRMED na data da pessoa.
        Sem horário informado, usa o primeiro livre entre as agendas ativas.
        A entrada só sai da lista se o agendamento for criado.
        """
        entry = waitlist_store.get_entry(self.db, entry_id)
        day = entry.date
        if template_id is not None and agenda_id is None:
            agenda_id = get_template(self.db, template_id).agenda_id
        target = {"agenda_id": agenda_id}

        def mutate() -> int:
            tid = template_id
            if tid is None:
                snapshot = realtime_availability(self.db, day, today=self.today)
                occ = snapshot.first_open(agenda_id)
                if occ is None:
                    raise ConflictError("Não há horários livres nesta data.")
                target["agenda_id"], tid = occ.agenda_id, occ.template_id
            ap = appointment_store.create_appointment(
                self.db,
                agenda_id=target["agenda_id"],
                template_id=tid,
                date=day,
                client_name=entry.name,
                client_phone=entry.phone,
                service=entry.service,
                status=AppointmentStatus.CONFIRMED,
                notes=entry.notes or FROM_WAITLIST_NOTE,
                created_by=self.user.id,
            )
            waitlist_store.delete_entry(self.db, entry_id)
            return ap.id

        result = self._run(
            agenda_id=None,
            day=day,
            action="PROMOTE_WAITLIST",
            entity="appointment",
            mutate=mutate,
        )
        # dia da agenda efetivamente usada (ou da pedida, em caso de conflito)
        result.day = self._refresh(target["agenda_id"], day)
        return result
