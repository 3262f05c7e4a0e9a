"""
Tests for the scheduling service helpers
"""

from datetime import datetime

from helpers import PROVIDER_ID, utc


def test_format_time_for_timezone(service):
    assert service.format_time_for_timezone(utc(2026, 7, 6, 13, 0), "America/New_York") == "2026-07-06 09:00:00 EDT"
    assert service.format_time_for_timezone(utc(2026, 1, 5, 9, 0), "Asia/Tokyo") == "2026-01-05 18:00:00 JST"


def test_convert_to_utc(service):
    assert service.convert_to_utc(datetime(2026, 1, 5, 18, 0), "Asia/Tokyo") == utc(2026, 1, 5, 9, 0)


def test_block_slot_is_stored_without_patient(service, appointment_store):
    blocked = service.block_slot(PROVIDER_ID, datetime(2026, 1, 5, 12, 0), 45, "Admin time")

    assert appointment_store.get(blocked.id) is blocked
    assert blocked.is_blocked
    assert not blocked.is_active
    assert blocked.patient_id is None
    assert service.blocked_slot_end(blocked) == utc(2026, 1, 5, 12, 45)


def test_unblock_slot(service):
    blocked = service.block_slot(PROVIDER_ID, utc(2026, 1, 5, 12, 0), 30)

    assert not service.unblock_slot("provider-2", blocked.id)
    assert service.unblock_slot(PROVIDER_ID, blocked.id)
    assert not service.unblock_slot(PROVIDER_ID, blocked.id)
