import os

from .config import LOG_JSON, MAX_CONTENT_LENGTH, db_config

SECRET_KEY = "test-secret"

DB_CONFIG = db_config(default_password="falcon")

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

RESTORE_LOCK_TIMEOUT = 1

AUTO_INIT_DB = False
AUTO_SEED_DB = False
