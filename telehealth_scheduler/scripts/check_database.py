"""
Script to check database connection and table creation
Run this to verify the database setup
"""

import sys

from sqlalchemy import inspect, text

from telehealth_scheduler.database import DATABASE_URL, engine, init_db

EXPECTED_TABLES = ["appointments", "provider_availability", "providers"]


def check_database() -> bool:
    """Check database connection and tables"""
    print(f"🔍 Checking database connection ({DATABASE_URL.split('://')[0]})...")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Connected to database")

        print("\n📦 Creating tables...")
        if not init_db():
            print("❌ Table creation failed")
            return False

        inspector = inspect(engine)
        tables = inspector.get_table_names()
        missing = [table for table in EXPECTED_TABLES if table not in tables]

        for table in tables:
            print(f"   - {table} ({len(inspector.get_columns(table))} columns)")

        if missing:
            print(f"\n❌ Missing tables: {', '.join(missing)}")
            return False

        indexes = [index["name"] for index in inspector.get_indexes("appointments")]
        if "uq_appointment_provider_active_slot" not in indexes:
            print("\n⚠️  Slot uniqueness index not found, concurrent bookings can double-book")

    except Exception as e:
        print(f"\n❌ Database check failed: {e}")
        return False

    print("\n✅ Scheduling tables exist and are ready!")
    return True


if __name__ == "__main__":
    success = check_database()
    sys.exit(0 if success else 1)
