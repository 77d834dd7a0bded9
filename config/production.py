import os

from .config import LOG_JSON, LOG_LEVEL, MAX_CONTENT_LENGTH, RESTORE_LOCK_TIMEOUT, db_config, env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = db_config()

DEBUG = False
TESTING = False

AUTO_INIT_DB = env_flag("AUTO_INIT_DB")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB")
