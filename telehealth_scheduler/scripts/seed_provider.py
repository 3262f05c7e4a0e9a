"""
Script to create an approved provider with a default weekly schedule
Run this after check_database.py to get bookable slots in development
"""

import sys

from telehealth_scheduler.database import SessionLocal, init_db
from telehealth_scheduler.models.availability import DayOfWeek, ProviderAvailability
from telehealth_scheduler.models.provider import ApprovalStatus, Provider

WEEKDAYS = [DayOfWeek.MONDAY, DayOfWeek.TUESDAY, DayOfWeek.WEDNESDAY, DayOfWeek.THURSDAY, DayOfWeek.FRIDAY]

# Morning and afternoon blocks with a lunch break
DEFAULT_WINDOWS = [("09:00", "12:00"), ("13:00", "17:00")]


def build_default_schedule(provider_id: str):
    return [
        ProviderAvailability(provider_id=provider_id, day_of_week=day, start_time=start, end_time=end)
        for day in WEEKDAYS
        for start, end in DEFAULT_WINDOWS
    ]


def seed_provider(name: str) -> str:
    """Create the provider and its windows, returning the provider id"""
    if not init_db():
        raise RuntimeError("Database is not available")

    provider = Provider(name=name, approval_status=ApprovalStatus.APPROVED.value, is_active=True)
    with SessionLocal() as session, session.begin():
        session.add(provider)
        session.add_all(build_default_schedule(provider.id))
    return provider.id


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Create an approved provider with Mon-Fri availability")
    parser.add_argument("--name", default="Dr. Demo Provider", help="Provider display name")
    args = parser.parse_args()

    try:
        provider_id = seed_provider(args.name)
    except Exception as e:
        print(f"❌ Seeding failed: {e}")
        sys.exit(1)

    print(f"✅ Created provider {args.name} ({provider_id})")
    for start, end in DEFAULT_WINDOWS:
        print(f"   Mon-Fri {start}-{end}")
