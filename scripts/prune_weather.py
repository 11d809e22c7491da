#!/usr/bin/env python3
"""
Delete weather slices older than the retention window now, without waiting for the :00 tick.
Run: python scripts/prune_weather.py [--minutes 720]
"""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from rainwatch.core.check_config import get_check_config
from rainwatch.db.session import SessionLocal
from rainwatch.services.retention import retention_cutoff
from rainwatch.services.slot_clock import utc_now
from rainwatch.services.stores.sql import SqlIngestionStore


def main():
    cfg = get_check_config()
    parser = argparse.ArgumentParser(description="Prune old weather slices")
    parser.add_argument("--minutes", type=int, default=cfg.retention_minutes, help="Keep slices newer than this")
    args = parser.parse_args()

    store = SqlIngestionStore(SessionLocal)
    cutoff = retention_cutoff(utc_now(), args.minutes, cfg.utc_offset_hours)
    before = store.count()
    deleted = store.delete_older_than(cutoff)
    print(f"Deleted {deleted} of {before} slices older than {cutoff}")


if __name__ == "__main__":
    main()
