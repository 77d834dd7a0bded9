"""Ensure the demo admin and its default company exist, then show row counts."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.falcon_erp.falcon_erp.backups.entities import CREATE_ORDER
from src.falcon_erp.falcon_erp.common.log import configure_logging
from src.falcon_erp.falcon_erp.database.bootstrap import DEMO_ADMIN_EMAIL, ensure_demo_data, table_counts


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    ensure_demo_data(db_config)

    print(f"OK: login with {DEMO_ADMIN_EMAIL}")
    for table, count in table_counts(db_config, [e.table for e in CREATE_ORDER]).items():
        print(f"  {table:<14} {count}")


if __name__ == "__main__":
    main()
