"""
Create the articles, inventory and tasks tables, and optionally write the
JSON Schema of the lager.json snapshot.

Run from the repo root: `python scripts/create_tables.py --schema-out data/lager.schema.json`
"""

import argparse
import json
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.core.database import create_tables  # noqa: E402
from app.services.lager_snapshot import export_json_schema  # noqa: E402


def main(argv=None) -> int:
    p = argparse.ArgumentParser()
    p.add_argument("--schema-out", default=None, help="Write the snapshot JSON Schema to this path")
    p.add_argument("--skip-db", action="store_true", help="Only write the schema file")
    args = p.parse_args(argv)

    if not args.skip_db:
        create_tables()
        print("[create_tables] tables created")

    if args.schema_out:
        out = Path(args.schema_out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(export_json_schema(), indent=2, ensure_ascii=False), encoding="utf-8")
        print(f"[create_tables] schema written to {out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
