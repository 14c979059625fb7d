"""
Seed the tasks table with generated demo tasks.

Run from the repo root: `python scripts/seed_tasks.py --count 200`
"""

import argparse
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.core.database import session_scope  # noqa: E402
from app.services.lager_sync import seed_tasks  # noqa: E402


def main(argv=None) -> int:
    p = argparse.ArgumentParser()
    p.add_argument("--count", type=int, default=100, help="Number of tasks to create")
    p.add_argument("--seed", type=int, default=42, help="Random seed")
    args = p.parse_args(argv)

    with session_scope() as db:
        created = seed_tasks(db, count=args.count, seed=args.seed)

    print(f"[seed_tasks] created={created}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
