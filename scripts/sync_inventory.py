"""
Sync articles and inventory with lager.json: delete rows that left the
snapshot, upsert the rest.

Run from the repo root: `python scripts/sync_inventory.py --file data/lager.json`
"""

import argparse
import sys
import time
from pathlib import Path

# Allow running from anywhere by ensuring the repo root is on sys.path
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.core.config import settings  # noqa: E402
from app.core.database import session_scope  # noqa: E402
from app.services.lager_snapshot import SnapshotValidationError  # noqa: E402
from app.services.lager_sync import sync_inventory  # noqa: E402


def main(argv=None) -> int:
    p = argparse.ArgumentParser()
    p.add_argument("--file", default=settings.LAGER_JSON_PATH, help="Path to lager.json")
    args = p.parse_args(argv)

    print(f"⏳ [sync_inventory] Sync inventory from {args.file} → DB")
    start = time.time()

    try:
        with session_scope() as db:
            summary = sync_inventory(db, args.file)
    except SnapshotValidationError as e:
        print(f"❌ [sync_inventory] {e}", file=sys.stderr)
        for error in e.errors:
            print(f"   - {error}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"❌ [sync_inventory] Sync failed: {e}", file=sys.stderr)
        return 1

    if summary["deleted_inventory"]:
        print(f"🗑️ [sync_inventory] Deleted inventory rows: {summary['deleted_inventory']}")
    if summary["deleted_articles"]:
        print(f"🗑️ [sync_inventory] Deleted articles: {summary['deleted_articles']}")

    elapsed_ms = int((time.time() - start) * 1000)
    print(
        f"✅ [sync_inventory] upserted articles={summary['upserted_articles']} "
        f"inventory={summary['upserted_inventory']} in {elapsed_ms}ms"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
