"""
Seed articles and inventory from lager.json, replacing existing rows.

Run from the repo root: `python scripts/seed_inventory.py --file data/lager.json`
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
from app.core.database import create_tables, session_scope  # noqa: E402
from app.services.lager_snapshot import SnapshotValidationError  # noqa: E402
from app.services.lager_sync import seed_inventory  # noqa: E402


def main(argv=None) -> int:
    p = argparse.ArgumentParser()
    p.add_argument("--file", default=settings.LAGER_JSON_PATH, help="Path to lager.json")
    p.add_argument("--create-tables", action="store_true", help="Create missing tables first")
    args = p.parse_args(argv)

    print(f"⏳ [seed_inventory] Seeding from {args.file}...")
    start = time.time()

    try:
        if args.create_tables:
            create_tables()
        with session_scope() as db:
            result = seed_inventory(db, args.file)
    except SnapshotValidationError as e:
        print(f"❌ [seed_inventory] {e}", file=sys.stderr)
        for error in e.errors:
            print(f"   - {error}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"❌ [seed_inventory] Seed failed: {e}", file=sys.stderr)
        return 1

    elapsed_ms = int((time.time() - start) * 1000)
    print(f"✅ [seed_inventory] articles={result['articles']} inventory={result['inventory']} in {elapsed_ms}ms")
    return 0


if __name__ == "__main__":
    sys.exit(main())
