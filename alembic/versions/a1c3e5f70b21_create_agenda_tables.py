"""create agenda tables

Revision ID: a1c3e5f70b21
Revises:
Create Date: 2025-10-02 18:12:40.512304

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1c3e5f70b21"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ACTIVE_INDEX = "ux_appt_occurrence_active"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    bind = op.get_bind()

    # 1) Enums
    role_enum = sa.Enum("ADMIN", "OPERATOR", name="role_enum")
    appt_status_enum = sa.Enum(
        "PENDING", "CONFIRMED", "CANCELLED", "COMPLETED", name="appointment_status_enum"
    )
    role_enum.create(bind, checkfirst=True)
    appt_status_enum.create(bind, checkfirst=True)

    # 2) users
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column(
            "role",
            sa.Enum("ADMIN", "OPERATOR", name="role_enum", create_type=False),
            nullable=False,
        ),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("TRUE")
        ),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # 3) agendas
    op.create_table(
        "agendas",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "operator_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("TRUE")
        ),
        *_timestamps(),
    )
    op.create_index("ix_agendas_operator_id", "agendas", ["operator_id"])

    # 4) horários base
    op.create_table(
        "schedule_templates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "agenda_id",
            sa.Integer(),
            sa.ForeignKey("agendas.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=120), nullable=False),
        sa.Column("weekday", sa.Integer(), nullable=False),
        sa.Column("starts_at", sa.Time(), nullable=False),
        sa.Column("ends_at", sa.Time(), nullable=False),
        sa.Column("color", sa.String(length=16), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("TRUE")
        ),
        *_timestamps(),
        sa.CheckConstraint("weekday >= 0 AND weekday <= 6", name="ck_template_weekday"),
        sa.CheckConstraint("ends_at > starts_at", name="ck_template_time_order"),
    )
    op.create_index(
        "ix_template_agenda_weekday", "schedule_templates", ["agenda_id", "weekday"]
    )

    # 5) exceções por data (template_id sem FK de propósito)
    op.create_table(
        "schedule_overrides",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("template_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("title", sa.String(length=120), nullable=False),
        sa.Column("starts_at", sa.Time(), nullable=False),
        sa.Column("ends_at", sa.Time(), nullable=False),
        sa.Column("color", sa.String(length=16), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("TRUE")
        ),
        *_timestamps(),
        sa.UniqueConstraint("template_id", "date", name="uq_override_template_date"),
        sa.CheckConstraint("ends_at > starts_at", name="ck_override_time_order"),
    )
    op.create_index(
        "ix_schedule_overrides_template_id", "schedule_overrides", ["template_id"]
    )
    op.create_index("ix_override_date", "schedule_overrides", ["date"])

    # 6) appointments
    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "agenda_id",
            sa.Integer(),
            sa.ForeignKey("agendas.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("template_id", sa.Integer(), nullable=False),
        sa.Column("override_id", sa.Integer(), nullable=True),
        sa.Column("client_name", sa.String(length=160), nullable=False),
        sa.Column("client_phone", sa.String(length=40), nullable=True),
        sa.Column("client_email", sa.String(length=320), nullable=True),
        sa.Column("service", sa.String(length=160), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("starts_at", sa.Time(), nullable=False),
        sa.Column("ends_at", sa.Time(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "PENDING",
                "CONFIRMED",
                "CANCELLED",
                "COMPLETED",
                name="appointment_status_enum",
                create_type=False,
            ),
            nullable=False,
            server_default="PENDING",
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_by",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
        sa.CheckConstraint("ends_at > starts_at", name="ck_appt_time_order"),
    )
    op.create_index("ix_appt_agenda_date", "appointments", ["agenda_id", "date"])

    # 7) no máximo UMA reserva ativa por ocorrência (template_id, date)
    op.create_index(
        ACTIVE_INDEX,
        "appointments",
        ["template_id", "date"],
        unique=True,
        postgresql_where=sa.text("status <> 'CANCELLED'"),
        sqlite_where=sa.text("status <> 'CANCELLED'"),
    )

    # 8) lista de espera
    op.create_table(
        "waitlist_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("service", sa.String(length=160), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_waitlist_entries_date", "waitlist_entries", ["date"])

    # 9) audit_logs
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity", sa.String(length=80), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("occurrence_date", sa.Date(), nullable=True),
        sa.Column("details", sa.String(length=255), nullable=True),
        sa.Column("timestamp_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ip", sa.String(length=45), nullable=True),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_timestamp_utc", "audit_logs", ["timestamp_utc"])
    op.create_index("ix_audit_entity", "audit_logs", ["entity", "entity_id"])
    op.create_index("ix_audit_occurrence_date", "audit_logs", ["occurrence_date"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("waitlist_entries")
    op.drop_index(ACTIVE_INDEX, table_name="appointments")
    op.drop_table("appointments")
    op.drop_table("schedule_overrides")
    op.drop_table("schedule_templates")
    op.drop_table("agendas")
    op.drop_table("users")

    bind = op.get_bind()
    sa.Enum(name="appointment_status_enum").drop(bind, checkfirst=True)
    sa.Enum(name="role_enum").drop(bind, checkfirst=True)
