"""Example: use the backup services directly, without Flask."""

import importlib

from config import get_settings_module

from src.falcon_erp.falcon_erp.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    for meta in container.snapshot_registry.list():
        print(meta.to_dict())


if __name__ == "__main__":
    main()
