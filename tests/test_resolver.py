from datetime import date

import pytest

from app.core.exceptions import NotFoundError
from app.models.appointment import AppointmentStatus
from app.services import appointments as appointment_store
from app.services import overrides as override_store
from app.services import resolver
from app.services import templates as template_store

from .conftest import NEXT_TUESDAY, TODAY, TUESDAY


def _occurrences(db_session, agenda_id, day):
    return resolver.resolve_day(db_session, agenda_id, day, today=TODAY).occurrences


def _book(db_session, template, day=TUESDAY, client_name="A"):
    ap = appointment_store.create_appointment(
        db_session,
        agenda_id=template.agenda_id,
        template_id=template.id,
        date=day,
        client_name=client_name,
        service="Consulta",
    )
    db_session.commit()
    return ap


def test_booking_lifecycle_on_template_occurrence(db_session, tuesday_template, admin_user):
    occs = _occurrences(db_session, tuesday_template.agenda_id, TUESDAY)
    assert len(occs) == 1
    assert occs[0].available is True
    assert occs[0].starts_at == "09:00:00"
    assert occs[0].is_override is False

    ap = _book(db_session, tuesday_template)
    occs = _occurrences(db_session, tuesday_template.agenda_id, TUESDAY)
    assert occs[0].available is False
    assert occs[0].appointment.client_name == "A"

    appointment_store.delete_appointment(db_session, ap.id, user=admin_user)
    db_session.commit()
    occs = _occurrences(db_session, tuesday_template.agenda_id, TUESDAY)
    assert occs[0].available is True
    assert occs[0].appointment is None


def test_override_changes_only_its_date(db_session, tuesday_template):
    ov = override_store.create_override(
        db_session, tuesday_template.id, TUESDAY, {"starts_at": "11:00", "ends_at": "12:00"}
    )
    db_session.commit()

    [occ] = _occurrences(db_session, tuesday_template.agenda_id, TUESDAY)
    assert occ.starts_at == "11:00:00"
    assert occ.is_override is True
    assert occ.id == ov.id
    assert occ.template_id == tuesday_template.id

    [occ] = _occurrences(db_session, tuesday_template.agenda_id, NEXT_TUESDAY)
    assert occ.starts_at == "09:00:00"
    assert occ.is_override is False
    assert occ.id == tuesday_template.id


def test_disabled_override_hides_the_occurrence(db_session, tuesday_template):
    override_store.create_override(
        db_session, tuesday_template.id, TUESDAY, {"is_active": False}
    )
    db_session.commit()

    assert _occurrences(db_session, tuesday_template.agenda_id, TUESDAY) == []
    assert len(_occurrences(db_session, tuesday_template.agenda_id, NEXT_TUESDAY)) == 1


def test_inactive_template_renders_only_on_active_override_dates(db_session, tuesday_template):
    override_store.create_override(db_session, tuesday_template.id, TUESDAY, {})
    template_store.update_template(db_session, tuesday_template.id, {"is_active": False})
    db_session.commit()

    assert len(_occurrences(db_session, tuesday_template.agenda_id, TUESDAY)) == 1
    assert _occurrences(db_session, tuesday_template.agenda_id, NEXT_TUESDAY) == []


def test_booking_wins_over_availability(db_session, tuesday_template):
    _book(db_session, tuesday_template)
    override_store.create_override(
        db_session, tuesday_template.id, TUESDAY, {"title": "Editado"}
    )
    db_session.commit()

    [occ] = _occurrences(db_session, tuesday_template.agenda_id, TUESDAY)
    assert occ.title == "Editado"
    assert occ.available is False


def test_cancelled_booking_does_not_block(db_session, tuesday_template, admin_user):
    ap = _book(db_session, tuesday_template)
    appointment_store.update_appointment(
        db_session, ap.id, {"status": AppointmentStatus.CANCELLED}, user=admin_user
    )
    db_session.commit()

    [occ] = _occurrences(db_session, tuesday_template.agenda_id, TUESDAY)
    assert occ.available is True


def test_resolution_is_idempotent(db_session, tuesday_template):
    _book(db_session, tuesday_template)
    first = resolver.resolve_month(db_session, tuesday_template.agenda_id, 2024, 6, today=TODAY)
    second = resolver.resolve_month(db_session, tuesday_template.agenda_id, 2024, 6, today=TODAY)
    assert first == second


def test_duplicate_templates_are_independent(db_session, agenda, tuesday_template):
    twin = template_store.create_template(
        db_session,
        agenda_id=agenda.id,
        title="Atendimento",
        weekday=1,
        starts_at="09:00",
        ends_at="10:00",
    )
    db_session.commit()
    _book(db_session, tuesday_template)

    occs = _occurrences(db_session, agenda.id, TUESDAY)
    assert [o.template_id for o in occs] == [tuesday_template.id, twin.id]
    assert [o.available for o in occs] == [False, True]


def test_occurrences_sorted_by_start(db_session, agenda, tuesday_template):
    early = template_store.create_template(
        db_session,
        agenda_id=agenda.id,
        title="Cedo",
        weekday=1,
        starts_at="07:00",
        ends_at="08:00",
    )
    db_session.commit()

    occs = _occurrences(db_session, agenda.id, TUESDAY)
    assert [o.template_id for o in occs] == [early.id, tuesday_template.id]


def test_orphans_are_ignored(db_session, tuesday_template):
    _book(db_session, tuesday_template)
    override_store.create_override(db_session, tuesday_template.id, NEXT_TUESDAY, {})
    template_store.delete_template(db_session, tuesday_template.id)
    db_session.commit()

    assert _occurrences(db_session, tuesday_template.agenda_id, TUESDAY) == []
    assert _occurrences(db_session, tuesday_template.agenda_id, NEXT_TUESDAY) == []


def test_no_appointment_is_reported_twice(db_session, agenda, tuesday_template):
    _book(db_session, tuesday_template)
    month = resolver.resolve_month(db_session, agenda.id, 2024, 6, today=TODAY)
    ids = [
        o.appointment.id for d in month.days for o in d.occurrences if o.appointment
    ]
    assert len(ids) == len(set(ids)) == 1


def test_month_grid_metadata(db_session, agenda, tuesday_template):
    month = resolver.resolve_month(db_session, agenda.id, 2024, 6, today=TODAY)

    assert month.month_name == "junho"
    assert len(month.days) == 30
    assert month.agenda.operator_name == "Ana Souza"
    tuesdays = [d for d in month.days if d.occurrences]
    assert [d.date for d in tuesdays] == [
        date(2024, 6, 4),
        date(2024, 6, 11),
        date(2024, 6, 18),
        date(2024, 6, 25),
    ]
    flags = {d.date: (d.is_today, d.is_past) for d in month.days}
    assert flags[TODAY] == (True, False)
    assert flags[date(2024, 6, 1)] == (False, True)
    assert flags[TUESDAY] == (False, False)


def test_resolve_dates_and_week(db_session, agenda, tuesday_template):
    days = resolver.resolve_dates(
        db_session, agenda.id, [NEXT_TUESDAY, TUESDAY, TUESDAY], today=TODAY
    )
    assert [d.date for d in days.days] == [TUESDAY, NEXT_TUESDAY]

    week = resolver.resolve_week(db_session, agenda.id, TUESDAY, today=TODAY)
    assert week.days[0].date == date(2024, 6, 2)
    assert sum(len(d.occurrences) for d in week.days) == 1


def test_unknown_agenda(db_session):
    with pytest.raises(NotFoundError):
        resolver.resolve_day(db_session, 999, TUESDAY, today=TODAY)


def test_agenda_slots_counts(db_session, agenda, tuesday_template):
    template_store.create_template(
        db_session,
        agenda_id=agenda.id,
        title="Tarde",
        weekday=1,
        starts_at="14:00",
        ends_at="15:00",
    )
    db_session.commit()
    _book(db_session, tuesday_template)

    slots = resolver.agenda_slots(db_session, agenda.id, TUESDAY, today=TODAY)
    assert (slots.total, slots.available) == (2, 1)


def test_realtime_availability_across_agendas(
    db_session, agenda, other_agenda, tuesday_template
):
    other_tpl = template_store.create_template(
        db_session,
        agenda_id=other_agenda.id,
        title="Outro",
        weekday=1,
        starts_at="08:00",
        ends_at="09:00",
    )
    db_session.commit()
    _book(db_session, other_tpl)

    snap = resolver.realtime_availability(db_session, TUESDAY, today=TODAY)
    assert snap.total_agendas == 2
    assert (snap.total_free, snap.total_booked) == (1, 1)
    assert [a.agenda_name for a in snap.agendas] == ["Consultório 1", "Consultório 2"]

    first = snap.first_open()
    assert first.template_id == tuesday_template.id
    assert snap.first_open(other_agenda.id) is None


def test_realtime_skips_inactive_agendas(db_session, agenda, tuesday_template):
    agenda.is_active = False
    db_session.commit()

    snap = resolver.realtime_availability(db_session, TUESDAY, today=TODAY)
    assert snap.total_agendas == 0
    assert snap.occurrences == []
