from datetime import time

import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.models.schedule import DEFAULT_COLOR
from app.services import overrides as override_store
from app.services import templates as template_store

from .conftest import TUESDAY


def test_create_template_defaults(db_session, agenda):
    row = template_store.create_template(
        db_session,
        agenda_id=agenda.id,
        title="  Manhã ",
        weekday=1,
        starts_at="9:00",
        ends_at="10:00",
    )
    db_session.commit()

    assert row.id is not None
    assert row.title == "Manhã"
    assert row.starts_at == time(9)
    assert row.color == DEFAULT_COLOR
    assert row.is_active is True


@pytest.mark.parametrize(
    "kwargs",
    [
        {"title": "", "weekday": 1, "starts_at": "09:00", "ends_at": "10:00"},
        {"title": "X", "weekday": 7, "starts_at": "09:00", "ends_at": "10:00"},
        {"title": "X", "weekday": -1, "starts_at": "09:00", "ends_at": "10:00"},
        {"title": "X", "weekday": 1, "starts_at": "10:00", "ends_at": "10:00"},
        {"title": "X", "weekday": 1, "starts_at": "11:00", "ends_at": "10:00"},
        {"title": "X", "weekday": 1, "starts_at": "nine", "ends_at": "10:00"},
    ],
)
def test_create_template_validation(db_session, agenda, kwargs):
    with pytest.raises(ValidationError):
        template_store.create_template(db_session, agenda_id=agenda.id, **kwargs)


def test_create_template_unknown_agenda(db_session):
    with pytest.raises(NotFoundError):
        template_store.create_template(
            db_session,
            agenda_id=999,
            title="X",
            weekday=1,
            starts_at="09:00",
            ends_at="10:00",
        )


def test_update_template_checks_final_time_order(db_session, tuesday_template):
    # só o início mudando para depois do fim atual deve falhar
    with pytest.raises(ValidationError):
        template_store.update_template(
            db_session, tuesday_template.id, {"starts_at": "10:30"}
        )

    row = template_store.update_template(
        db_session, tuesday_template.id, {"starts_at": "08:00", "title": "Cedo"}
    )
    assert row.starts_at == time(8)
    assert row.ends_at == time(10)
    assert row.title == "Cedo"


@pytest.mark.parametrize("fields", [{"is_active": None}, {"weekday": None}, {"title": None}])
def test_update_template_rejects_null_required_fields(db_session, tuesday_template, fields):
    with pytest.raises(ValidationError):
        template_store.update_template(db_session, tuesday_template.id, fields)


def test_update_template_can_clear_notes(db_session, tuesday_template):
    template_store.update_template(db_session, tuesday_template.id, {"notes": "Sala 1"})
    row = template_store.update_template(db_session, tuesday_template.id, {"notes": None})
    assert row.notes is None
    assert row.is_active is True


def test_update_template_does_not_touch_existing_overrides(db_session, tuesday_template):
    ov = override_store.create_override(
        db_session, tuesday_template.id, TUESDAY, {"starts_at": "11:00", "ends_at": "12:00"}
    )
    db_session.commit()

    template_store.update_template(db_session, tuesday_template.id, {"title": "Novo"})
    db_session.commit()
    db_session.refresh(ov)

    assert ov.title == "Atendimento"
    assert ov.starts_at == time(11)


def test_delete_template_leaves_overrides_orphaned(db_session, tuesday_template):
    ov = override_store.create_override(db_session, tuesday_template.id, TUESDAY, {})
    db_session.commit()

    template_store.delete_template(db_session, tuesday_template.id)
    db_session.commit()

    assert override_store.get_override(db_session, ov.id).template_id == tuesday_template.id
    with pytest.raises(NotFoundError):
        template_store.get_template(db_session, tuesday_template.id)


def test_list_templates_filters(db_session, agenda, tuesday_template):
    inactive = template_store.create_template(
        db_session,
        agenda_id=agenda.id,
        title="Tarde",
        weekday=1,
        starts_at="14:00",
        ends_at="15:00",
        is_active=False,
    )
    template_store.create_template(
        db_session,
        agenda_id=agenda.id,
        title="Quarta",
        weekday=2,
        starts_at="09:00",
        ends_at="10:00",
    )
    db_session.commit()

    tuesday = template_store.list_templates(db_session, agenda.id, weekday=1)
    assert [t.id for t in tuesday] == [tuesday_template.id, inactive.id]

    active_only = template_store.list_templates(
        db_session, agenda.id, weekday=1, include_inactive=False
    )
    assert [t.id for t in active_only] == [tuesday_template.id]
