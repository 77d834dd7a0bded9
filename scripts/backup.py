"""Export a snapshot of all business data.

Without ``--output`` the snapshot is stored in the backups table (same as
``POST /api/backup``); with it, the JSON document is written to that file.
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.falcon_erp.falcon_erp.backups import codec
from src.falcon_erp.falcon_erp.common.log import configure_logging
from src.falcon_erp.falcon_erp.container import build_container
from src.falcon_erp.falcon_erp.core.exceptions import DomainError


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a FalconERP backup")
    parser.add_argument("--name", help="Backup name (defaults to a timestamp)")
    parser.add_argument("--output", type=Path, help="Write the document to this file instead of storing it")
    parser.add_argument("--created-by", default="cli", help="User id recorded as the creator")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(db_config=settings.DB_CONFIG)

    try:
        document = container.snapshot_exporter.export()
        if args.output:
            payload = codec.dumps(document)
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(payload, encoding="utf-8")
            print(f"OK: Backup written: {args.output} ({codec.size_of(payload)} bytes)")
            return

        meta = container.snapshot_registry.store(args.name, document, created_by=args.created_by)
        print(f"OK: Backup stored: {meta.snapshot_id} {meta.name!r} ({meta.size_bytes} bytes)")
    except DomainError as e:
        raise SystemExit(f"Backup failed: {e}")


if __name__ == "__main__":
    main()
