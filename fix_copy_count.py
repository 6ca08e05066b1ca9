"""
Backfill copyCount on prompts created before the field existed.

    python fix_copy_count.py
"""

import logging
import sys

import database

logger = logging.getLogger(__name__)


def backfill_copy_count(db) -> dict:
    prompts = db["prompt"]
    total = prompts.count_documents({})
    missing = prompts.count_documents({"copyCount": {"$exists": False}})
    updated = 0
    if missing:
        result = prompts.update_many({"copyCount": {"$exists": False}}, {"$set": {"copyCount": 0}})
        updated = result.modified_count
    total_copies = sum(p.get("copyCount", 0) for p in prompts.find({}, {"copyCount": 1}))
    return {"total": total, "missing": missing, "updated": updated, "totalCopies": total_copies}


def main() -> int:
    try:
        database.ping()
        summary = backfill_copy_count(database.db)
    except Exception:
        logger.exception("copyCount backfill failed")
        return 1
    if summary["total"] == 0:
        logger.warning("No prompts found in database")
    logger.info(
        "Prompts: %(total)d, missing copyCount: %(missing)d, updated: %(updated)d, total copies: %(totalCopies)d",
        summary,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
