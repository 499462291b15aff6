#!/usr/bin/env python
"""
Reclassify Strava activities stored as 'other'.

This script:
1. Loads every Strava-sourced activity with category 'other'
2. Re-runs the heuristic classifier over notes, heart rate, duration, distance
3. Updates category and points together (unless --dry-run)
4. Prints how many activities moved to each category

Usage:
    python scripts/reclassify_activities.py --dry-run
    python scripts/reclassify_activities.py
"""

import argparse
import asyncio
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.db.session import AsyncSessionLocal, init_db
from app.features.fitness import FitnessService


async def run(dry_run: bool) -> None:
    await init_db()

    async with AsyncSessionLocal() as db:
        summary = await FitnessService(db).reclassify_other_activities(dry_run=dry_run)

    print("=" * 50)
    print("RECLASSIFY 'OTHER' ACTIVITIES" + (" (DRY RUN)" if dry_run else ""))
    print("=" * 50)
    print(f"Candidates: {summary.total}")
    print(f"Changed:    {summary.changed}")
    for category, count in sorted(summary.by_category.items()):
        print(f"  -> {category:<6} {count}")
    if dry_run and summary.changed:
        print("\nRun without --dry-run to apply.")


def main():
    parser = argparse.ArgumentParser(description="Reclassify Strava activities stored as 'other'")
    parser.add_argument("--dry-run", action="store_true", help="Show changes without writing")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    asyncio.run(run(args.dry_run))


if __name__ == "__main__":
    main()
