"""
Tests for the SQLAlchemy stores against an in-memory SQLite database
"""

import pytest
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.schema import CreateIndex, CreateTable

from telehealth_scheduler.errors import ProviderNotFound, ProviderUnavailable, SlotConflict, TransactionFailure
from telehealth_scheduler.models.appointment import Appointment, AppointmentKind, AppointmentStatus
from telehealth_scheduler.models.availability import DayOfWeek, ProviderAvailability
from telehealth_scheduler.models.provider import ApprovalStatus, Provider
from telehealth_scheduler.services.appointment_store import SqlAppointmentStore, SqlAvailabilityStore
from telehealth_scheduler.services.provider_directory import SqlProviderDirectory
from telehealth_scheduler.services.scheduling_service import SchedulingService

from helpers import PATIENT_ID, PROVIDER_ID, utc


def appointment(start, status=AppointmentStatus.SCHEDULED, provider_id=PROVIDER_ID, duration=30):
    return Appointment(
        provider_id=provider_id,
        patient_id=PATIENT_ID,
        appointment_date=start,
        duration=duration,
        status=status.value,
    )


@pytest.fixture
def seed(session_factory):
    def _seed(*rows):
        with session_factory() as session, session.begin():
            session.add_all(rows)
        return rows
    return _seed


@pytest.fixture
def store(session_factory):
    return SqlAppointmentStore(session_factory)


def count_appointments(session_factory):
    with session_factory() as session:
        return session.query(Appointment).count()


def test_list_active_appointments_filters_and_orders(store, seed):
    later, earlier, _, _, _, _ = seed(
        appointment(utc(2026, 1, 5, 11, 0)),
        appointment(utc(2026, 1, 5, 9, 0), status=AppointmentStatus.CONFIRMED),
        appointment(utc(2026, 1, 5, 10, 0), status=AppointmentStatus.CANCELLED),
        appointment(utc(2026, 1, 5, 10, 0), provider_id="provider-2"),
        appointment(utc(2026, 1, 5, 12, 0)),  # range end is exclusive
        appointment(utc(2026, 1, 4, 23, 0)),
    )

    found = store.list_active_appointments(PROVIDER_ID, utc(2026, 1, 5, 0, 0), utc(2026, 1, 5, 12, 0))

    assert [a.id for a in found] == [earlier.id, later.id]


def test_list_active_appointments_returns_utc_instants(store, seed):
    seed(appointment(utc(2026, 1, 5, 9, 0)))

    (found,) = store.list_active_appointments(PROVIDER_ID, utc(2026, 1, 5), utc(2026, 1, 6))

    assert found.start_utc == utc(2026, 1, 5, 9, 0)
    assert found.start_utc.utcoffset().total_seconds() == 0


def test_list_active_appointments_excludes_given_id(store, seed):
    first, second = seed(appointment(utc(2026, 1, 5, 9, 0)), appointment(utc(2026, 1, 5, 10, 0)))

    found = store.list_active_appointments(
        PROVIDER_ID, utc(2026, 1, 5), utc(2026, 1, 6), exclude_appointment_id=first.id
    )

    assert [a.id for a in found] == [second.id]


def test_create_appointments_transactionally(store, session_factory):
    records = [appointment(utc(2026, 1, 5, 9, 0)), appointment(utc(2026, 1, 12, 9, 0))]

    ids = store.create_appointments_transactionally(records)

    assert ids == [r.id for r in records]
    assert count_appointments(session_factory) == 2


def test_taken_slot_rejects_whole_batch(store, seed, session_factory):
    seed(appointment(utc(2026, 1, 12, 9, 0)))

    with pytest.raises(SlotConflict):
        store.create_appointments_transactionally([
            appointment(utc(2026, 1, 5, 9, 0)),
            appointment(utc(2026, 1, 12, 9, 0)),
            appointment(utc(2026, 1, 19, 9, 0)),
        ])

    assert count_appointments(session_factory) == 1


def test_inactive_row_does_not_hold_the_slot(store, seed, session_factory):
    seed(
        appointment(utc(2026, 1, 5, 9, 0), status=AppointmentStatus.CANCELLED),
        appointment(utc(2026, 1, 5, 9, 0), status=AppointmentStatus.NO_SHOW),
    )

    store.create_appointments_transactionally([appointment(utc(2026, 1, 5, 9, 0))])

    assert count_appointments(session_factory) == 3


def test_cancelling_frees_the_slot(store, seed, session_factory):
    (booked,) = seed(appointment(utc(2026, 1, 5, 9, 0)))
    with session_factory() as session, session.begin():
        session.get(Appointment, booked.id).status = AppointmentStatus.CANCELLED.value

    store.create_appointments_transactionally([appointment(utc(2026, 1, 5, 9, 0))])

    assert count_appointments(session_factory) == 2


@pytest.mark.parametrize("dialect", [mysql.dialect(), postgresql.dialect(), sqlite.dialect()], ids=lambda d: d.name)
def test_slot_index_ignores_inactive_rows_on_every_dialect(dialect):
    table = Appointment.__table__
    (index,) = [i for i in table.indexes if i.name == "uq_appointment_provider_active_slot"]

    table_ddl = str(CreateTable(table).compile(dialect=dialect))
    index_ddl = str(CreateIndex(index).compile(dialect=dialect))

    assert (
        "GENERATED ALWAYS AS (CASE WHEN status IN ('SCHEDULED', 'CONFIRMED', 'IN_PROGRESS') "
        "THEN provider_id END) STORED"
    ) in table_ddl
    assert index_ddl.startswith("CREATE UNIQUE INDEX")
    assert "(active_slot_provider_id, appointment_date)" in index_ddl
    assert "WHERE" not in index_ddl


def test_other_provider_can_share_start_time(store, seed):
    seed(appointment(utc(2026, 1, 5, 9, 0), provider_id="provider-2"))

    ids = store.create_appointments_transactionally([appointment(utc(2026, 1, 5, 9, 0))])

    assert len(ids) == 1


def test_database_error_becomes_transaction_failure(store, engine):
    Appointment.__table__.drop(engine)

    with pytest.raises(TransactionFailure):
        store.create_appointments_transactionally([appointment(utc(2026, 1, 5, 9, 0))])


def test_blocked_slot_lifecycle(store, session_factory):
    blocked = store.create_blocked_slot(PROVIDER_ID, utc(2026, 1, 5, 12, 0), 60, "Lunch")

    assert blocked.kind == AppointmentKind.BLOCKED.value
    assert blocked.patient_id is None
    assert blocked.reason == "Lunch"
    assert store.list_active_appointments(PROVIDER_ID, utc(2026, 1, 5), utc(2026, 1, 6)) == []

    assert not store.delete_blocked_slot("provider-2", blocked.id)
    assert store.delete_blocked_slot(PROVIDER_ID, blocked.id)
    assert not store.delete_blocked_slot(PROVIDER_ID, blocked.id)
    assert count_appointments(session_factory) == 0


def test_blocked_slot_default_reason(store):
    blocked = store.create_blocked_slot(PROVIDER_ID, utc(2026, 1, 5, 12, 0), 30)

    assert blocked.reason == "Time slot blocked"


def test_delete_blocked_slot_leaves_patient_appointments(store, seed, session_factory):
    (booked,) = seed(appointment(utc(2026, 1, 5, 9, 0)))

    assert not store.delete_blocked_slot(PROVIDER_ID, booked.id)
    assert count_appointments(session_factory) == 1


def test_availability_windows_by_day(session_factory, seed):
    seed(
        ProviderAvailability(provider_id=PROVIDER_ID, day_of_week=DayOfWeek.MONDAY, start_time="13:00", end_time="17:00"),
        ProviderAvailability(provider_id=PROVIDER_ID, day_of_week=DayOfWeek.MONDAY, start_time="09:00", end_time="12:00"),
        ProviderAvailability(provider_id=PROVIDER_ID, day_of_week=DayOfWeek.TUESDAY, start_time="09:00", end_time="12:00"),
        ProviderAvailability(provider_id="provider-2", day_of_week=DayOfWeek.MONDAY, start_time="08:00", end_time="09:00"),
    )

    windows = SqlAvailabilityStore(session_factory).list_availability_windows(PROVIDER_ID, DayOfWeek.MONDAY)

    assert [(w.start_time, w.end_time) for w in windows] == [("09:00", "12:00"), ("13:00", "17:00")]


def test_provider_directory(session_factory, seed):
    seed(
        Provider(id=PROVIDER_ID, name="Dr. Ada Lovelace", approval_status=ApprovalStatus.APPROVED.value),
        Provider(id="provider-suspended", name="Dr. Gone", approval_status=ApprovalStatus.SUSPENDED.value),
    )
    directory = SqlProviderDirectory(session_factory)

    assert directory.ensure_bookable(PROVIDER_ID).name == "Dr. Ada Lovelace"
    with pytest.raises(ProviderUnavailable):
        directory.ensure_bookable("provider-suspended")
    with pytest.raises(ProviderNotFound):
        directory.ensure_bookable("provider-missing")


def test_service_on_database_stores(session_factory, seed):
    seed(ProviderAvailability(provider_id=PROVIDER_ID, day_of_week=DayOfWeek.MONDAY, start_time="09:00", end_time="11:00"))
    service = SchedulingService(SqlAvailabilityStore(session_factory), SqlAppointmentStore(session_factory))
    seed(appointment(utc(2026, 1, 5, 9, 30), duration=60))

    slots = service.get_available_slots(PROVIDER_ID, "2026-01-05", "UTC", 30)

    assert [slot.is_available for slot in slots] == [True, False, False, True]
    assert not service.is_slot_available(PROVIDER_ID, utc(2026, 1, 5, 10, 0), 30, timezone="UTC").available
