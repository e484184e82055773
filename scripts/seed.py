# scripts/seed.py
from __future__ import annotations

import os
import random
from collections.abc import Iterable
from datetime import date, time, timedelta

from sqlalchemy import select, text
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError
from app.core.security import create_access_token
from app.db import get_db
from app.models.agenda import Agenda
from app.models.appointment import AppointmentStatus
from app.models.schedule import ScheduleTemplate
from app.models.user import Role, User
from app.services import appointments as appointment_store
from app.services import templates as template_store
from app.utils.tz import today_local

# ---------------- Configuráveis por ENV ----------------
SEED_DAYS = int(os.getenv("SEED_DAYS", "14"))

# ---------------- Dados de Exemplo ----------------
OPERATORS_DATA = [
    {"name": "Ana Souza", "agenda": "Consultório 1"},
    {"name": "Bruno Lima", "agenda": "Consultório 2"},
]

# (weekday, título, início, fim) - 0=segunda ... 6=domingo
WEEKLY_BLOCKS = [
    (0, "Manhã", time(9), time(10)),
    (0, "Manhã", time(10), time(11)),
    (1, "Tarde", time(14), time(15)),
    (2, "Manhã", time(9), time(10)),
    (3, "Tarde", time(14), time(15)),
    (4, "Manhã", time(9), time(10)),
]

CLIENTS = ["Marcos Lima", "Patrícia Alves", "Roberta Dias", "Carlos Nogueira"]
SERVICES = ["Consulta", "Retorno", "Avaliação"]


# ---------------- Helpers ----------------
def get_session() -> Session:
    gen = get_db()
    session: Session = next(gen)
    return session


def _days(start: date, n_days: int) -> Iterable[date]:
    for offset in range(n_days):
        yield start + timedelta(days=offset)


# ---------------- Funções de Seed ----------------
def ensure_user(db: Session, *, name: str, email: str, role: Role) -> User:
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user:
        return user

    user = User(name=name, email=email, role=role, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    print(f"[Seed] User criado: {user.name} ({user.email}) - Role: {user.role.value}")
    return user


def ensure_agendas(db: Session) -> list[Agenda]:
    agendas = []
    for i, data in enumerate(OPERATORS_DATA):
        operator = ensure_user(
            db,
            name=data["name"],
            email=f"operador{i + 1}@example.com",
            role=Role.OPERATOR,
        )
        agenda = db.execute(
            select(Agenda).where(Agenda.name == data["agenda"])
        ).scalar_one_or_none()
        if not agenda:
            agenda = Agenda(name=data["agenda"], operator_id=operator.id, is_active=True)
            db.add(agenda)
            db.commit()
            db.refresh(agenda)
            print(f"[Seed] Agenda criada: {agenda.name}")
        agendas.append(agenda)
    return agendas


def ensure_templates(db: Session, agendas: list[Agenda]) -> None:
    for agenda in agendas:
        for weekday, title, starts_at, ends_at in WEEKLY_BLOCKS:
            existing = db.execute(
                select(ScheduleTemplate).where(
                    ScheduleTemplate.agenda_id == agenda.id,
                    ScheduleTemplate.weekday == weekday,
                    ScheduleTemplate.starts_at == starts_at,
                )
            ).scalar_one_or_none()
            if not existing:
                template_store.create_template(
                    db,
                    agenda_id=agenda.id,
                    title=title,
                    weekday=weekday,
                    starts_at=starts_at,
                    ends_at=ends_at,
                )
    db.commit()
    print("[Seed] Horários base criados para as agendas.")


def ensure_appointments(db: Session, agendas: list[Agenda], admin: User, n_days: int):
    print("[Seed] Gerando agendamentos...")
    total = 0
    for day in _days(today_local(), n_days):
        for agenda in agendas:
            for tpl in template_store.list_templates(db, agenda.id, weekday=day.weekday()):
                # ~50% das ocorrências ficam ocupadas
                if random.random() > 0.5:
                    continue
                try:
                    appointment_store.create_appointment(
                        db,
                        agenda_id=agenda.id,
                        template_id=tpl.id,
                        date=day,
                        client_name=random.choice(CLIENTS),
                        service=random.choice(SERVICES),
                        status=random.choice(
                            [AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED]
                        ),
                        created_by=admin.id,
                    )
                except ConflictError:
                    continue
                total += 1
    db.commit()
    print(f"[Seed] {total} agendamentos criados.")


def check_tables_exist(db: Session) -> bool:
    """Check if all required tables exist in the database."""
    required_tables = ["users", "agendas", "schedule_templates", "appointments"]

    try:
        for table in required_tables:
            db.execute(text(f"SELECT 1 FROM {table} LIMIT 1"))
        return True
    except (ProgrammingError, OperationalError):
        db.rollback()
        return False


def main():
    print("[Seed] Iniciando seed do banco de dados...")
    db = get_session()
    try:
        if not check_tables_exist(db):
            print("[Seed] Erro: as tabelas ainda não foram criadas.")
            print("[Seed] Rode `alembic upgrade head` e execute o seed novamente.")
            return

        admin = ensure_user(
            db, name="Administração", email="admin@example.com", role=Role.ADMIN
        )
        agendas = ensure_agendas(db)
        ensure_templates(db, agendas)
        ensure_appointments(db, agendas, admin, SEED_DAYS)

        print("\n[Seed] Concluído!")
        print("-------------------------------------------------")
        print(f"Token ADMIN (expira em minutos): {create_access_token(str(admin.id))}")
        print("-------------------------------------------------")
    finally:
        db.close()


if __name__ == "__main__":
    main()
