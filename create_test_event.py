#!/usr/bin/env python3
"""
Create one calendar event with the configured credentials.

Useful to check that the target calendar has been shared with the service
account before pointing VAPI at the webhook.
"""
import argparse
import os
import sys
from datetime import datetime, timedelta
from dotenv import load_dotenv
import logging

logging.basicConfig(level=logging.WARNING)  # Reduce noise

load_dotenv()
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app.calendar.event_creator import create_calendar_event
from app.calendar.types import CalendarEventRequest
from app.core.config import load_config


def main() -> int:
    tomorrow = (datetime.now() + timedelta(days=1)).strftime("%Y-%m-%d")

    parser = argparse.ArgumentParser(description="Create a test calendar event")
    parser.add_argument("--name", default="Test Caller")
    parser.add_argument("--date", default=tomorrow, help="YYYY-MM-DD (default: tomorrow)")
    parser.add_argument("--start", default="10:00", help="HH:MM, 24h")
    parser.add_argument("--end", default=None, help="HH:MM, 24h (default: start + 30 min)")
    parser.add_argument("--title", default=None)
    args = parser.parse_args()

    cfg = load_config()
    missing = cfg.missing_calendar_settings()
    if missing and cfg.calendar_provider != "mock":
        print("[ERROR] Missing required settings:")
        for name in missing:
            print(f"   {name}: MISSING")
        return 1

    print(f"[TEST] Creating event on calendar: {cfg.google_calendar_id}")
    print(f"   Provider: {cfg.calendar_provider}")
    print(f"   Service account: {cfg.google_service_account_email}")
    print()

    result = create_calendar_event(
        CalendarEventRequest(
            name=args.name,
            date=args.date,
            start_time=args.start,
            end_time=args.end,
            title=args.title,
        ),
        config=cfg,
    )

    if not result.success:
        print(f"[ERROR] {result.error}")
        return 1

    print(f"[OK] {result.summary}")
    print(f"   Time: {result.start} - {result.end} ({cfg.calendar_timezone})")
    print(f"   Event id: {result.event_id}")
    print(f"   Link: {result.event_link}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
