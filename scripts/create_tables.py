#!/usr/bin/env python3
"""
Create the instructor verification tables:
- users, instructor_applications, application_documents
- ai_verifications, manual_reviews, manual_review_records, interviews
- instructor_profiles, notification_requests
"""
import sys
import os

# Add parent directory to path to import package modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sqlalchemy import inspect

from instructor_verification.database import engine, Base, init_db


def create_tables():
    """Create tables if they don't exist"""
    print("=" * 60)
    print("Creating Instructor Verification Tables")
    print("=" * 60)

    try:
        existing_tables = set(inspect(engine).get_table_names())
        print(f"\nExisting tables: {len(existing_tables)}")

        # This will only create tables that don't exist
        init_db()

        inspector = inspect(engine)
        for table in sorted(Base.metadata.tables):
            if table not in inspector.get_table_names():
                print(f"  ✗ {table} table NOT found")
            elif table in existing_tables:
                print(f"  - {table} (already present)")
            else:
                print(f"  ✓ {table} table created")

        print("\n" + "=" * 60)
        print("Tables Created Successfully!")
        print("=" * 60)
        return True

    except Exception as e:
        print(f"\n✗ Error creating tables: {e}")
        import traceback
        traceback.print_exc()
        return False


if __name__ == "__main__":
    success = create_tables()
    sys.exit(0 if success else 1)
