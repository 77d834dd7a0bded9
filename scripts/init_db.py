"""Create the database (if needed) and apply database/schema.sql."""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.falcon_erp.falcon_erp.common.log import configure_logging
from src.falcon_erp.falcon_erp.database.bootstrap import apply_schema, ensure_demo_data, list_tables


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Initialise the FalconERP schema")
    parser.add_argument(
        "--schema",
        type=Path,
        default=REPO_ROOT / "database" / "schema.sql",
        help="Schema file to apply",
    )
    parser.add_argument("--seed", action="store_true", help="Also create the demo admin and company")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=args.schema)
    if args.seed:
        ensure_demo_data(db_config)

    target = f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    print(f"OK: {args.schema.name} -> {target} (tables={', '.join(list_tables(db_config))})")


if __name__ == "__main__":
    main()
