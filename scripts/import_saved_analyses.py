#!/usr/bin/env python3
"""Import the legacy file-based analyses store into the database.

Usage:
  python scripts/import_saved_analyses.py --input ./data/saved_analyses.json
  python scripts/import_saved_analyses.py --input ./data/saved_analyses.json --migrate

The legacy dashboard kept saved analyses as a JSON array on disk. This script:
  1) Optionally runs Alembic migrations up to head.
  2) Reads the JSON array.
  3) Inserts every entry into saved_analyses, keeping its id and created_at.
     Entries whose id is already present are skipped.
"""
import argparse, json, sys
from pathlib import Path
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import uuid4

ROOT = Path(__file__).resolve().parents[1]
DATA = ROOT / "data"

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from alembic.config import Config as AlembicConfig
from alembic import command as alembic_command

from backend.app.db import models
from backend.app.db.session import session_scope
from backend.app.services.analyses import SAVEABLE_FIELDS


def parse_created_at(value: Any) -> datetime:
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc)


def build_rows(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    rows = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        row = {field: entry[field] for field in SAVEABLE_FIELDS if entry.get(field) is not None}
        row["status"] = row.get("status") or models.STATUS_ACTIVE
        row["id"] = str(entry.get("id") or uuid4())
        row["created_at"] = parse_created_at(entry.get("created_at"))
        rows.append(row)
    return rows


def load_rows(rows: List[Dict[str, Any]]) -> Dict[str, int]:
    inserted = skipped = 0
    with session_scope() as session:
        for row in rows:
            if session.get(models.Analysis, row["id"]) is not None:
                skipped += 1
                continue
            session.add(models.Analysis(**row))
            session.flush()
            inserted += 1
    return {"inserted": inserted, "skipped": skipped}


def run_migrations():
    alembic_cfg = AlembicConfig(str(ROOT / "alembic.ini"))
    alembic_command.upgrade(alembic_cfg, "head")


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--input", type=str, help="Path to saved_analyses.json", default=str(DATA / "saved_analyses.json"))
    ap.add_argument("--migrate", action="store_true", help="Run Alembic migrations before importing")
    args = ap.parse_args()

    source = Path(args.input)
    if not source.exists():
        sys.exit(f"Input file not found: {source}")

    entries = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(entries, list):
        sys.exit("Expected a JSON array of analyses")

    if args.migrate:
        run_migrations()

    counts = load_rows(build_rows(entries))
    print(f"Imported {counts['inserted']} analyses ({counts['skipped']} already present)")


if __name__ == "__main__":
    main()
