#!/usr/bin/env python3
"""
Deliver notification requests left PENDING (e.g. the process stopped
between commit and dispatch). Safe to run from cron.
"""
import sys
import os
import argparse
import logging

# Add parent directory to path to import package modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from instructor_verification.config import settings
from instructor_verification.database import SessionLocal
from instructor_verification.services.notification_service import get_notification_service


def main():
    parser = argparse.ArgumentParser(description="Dispatch pending notification requests")
    parser.add_argument("--limit", type=int, default=100, help="Maximum requests to deliver")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    db = SessionLocal()
    try:
        delivered = get_notification_service().dispatch_pending(db, limit=args.limit)
        print(f"Delivered {delivered} notification(s)")
    finally:
        db.close()


if __name__ == "__main__":
    main()
