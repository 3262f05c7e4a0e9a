"""
Constants and small builders shared by the tests
"""

from datetime import date, datetime

import pytz

PROVIDER_ID = "provider-1"
PATIENT_ID = "patient-1"

# 2026-01-05 is a Monday
MONDAY = date(2026, 1, 5)


def utc(year, month, day, hour=0, minute=0):
    return pytz.UTC.localize(datetime(year, month, day, hour, minute))
