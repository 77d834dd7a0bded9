"""Restore business data from a stored backup or a JSON file.

WARNING: deletes all companies, contacts, products, invoices and attendance
records before recreating them from the snapshot. Users are kept.
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
    parser = argparse.ArgumentParser(description="Restore a FalconERP backup")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--backup-id", help="Id of a stored backup")
    source.add_argument("--file", type=Path, help="Backup JSON document")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(
        db_config=settings.DB_CONFIG,
        restore_lock_timeout=int(getattr(settings, "RESTORE_LOCK_TIMEOUT", 10)),
    )
    importer = container.snapshot_importer

    try:
        if args.backup_id:
            report = importer.restore_snapshot(args.backup_id)
        else:
            report = importer.restore(codec.loads(args.file.read_bytes()))
    except DomainError as e:
        raise SystemExit(f"Restore failed: {e}")

    for key, count in report.created.items():
        print(f"  {key}: {count} restored")
    for failure in report.failures:
        print(f"  skipped {failure.entity} {failure.row_id}: {failure.reason}")
    print("OK: Backup restored")


if __name__ == "__main__":
    main()
