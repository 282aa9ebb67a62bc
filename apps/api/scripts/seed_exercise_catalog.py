"""
Seed or refresh the exercise catalog.

Loads a JSON array of exercise records (slug optional, derived from name)
and runs it through the same bulk upsert as POST /exercises/bulk-upsert,
in chunks of the per-call cap. Without a file the built-in starter
exercises are used.

Usage (inside api container):
  python scripts/seed_exercise_catalog.py
  python scripts/seed_exercise_catalog.py catalog.json --commit
"""

from __future__ import annotations

import json
import os
import sys


# Ensure /app is on sys.path when run as a script inside the container.
_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _ROOT not in sys.path:
    sys.path.insert(0, _ROOT)


def main() -> int:
    import argparse

    parser = argparse.ArgumentParser()
    parser.add_argument("path", nargs="?", default=None, help="JSON file with an array of exercises")
    parser.add_argument(
        "--commit",
        action="store_true",
        help="Write to the database. Default is dry-run (prints what would be sent).",
    )
    args = parser.parse_args()

    from core.config import settings
    from core.database import SessionLocal
    from core.logging import setup_logging
    from services.exercise_bulk_upsert import bulk_upsert_exercises
    from services.exercise_seed import SEED_EXERCISES

    setup_logging()

    if args.path:
        with open(args.path, "r", encoding="utf-8") as f:
            items = json.load(f)
        if not isinstance(items, list):
            print("ERROR: catalog file must contain a JSON array")
            return 2
    else:
        items = [{k: v for k, v in item.items() if k != "id"} for item in SEED_EXERCISES]

    if not args.commit:
        print(f"Dry run: {len(items)} exercise(s) would be upserted. Pass --commit to write.")
        return 0

    chunk = settings.EXERCISE_BULK_UPSERT_MAX_ITEMS
    totals = {"inserted": 0, "updated": 0, "skipped": 0, "total": 0}
    db = SessionLocal()
    try:
        for start in range(0, len(items), chunk):
            result = bulk_upsert_exercises(db, items[start:start + chunk], max_items=chunk)
            for key in totals:
                totals[key] += result[key]
            for err in result["validation_errors"]:
                print(f"  item {start + err['index']}: {err['error']}")
    finally:
        db.close()

    print(json.dumps(totals))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
