"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

SNAPSHOT_FORMAT_VERSION = "2.0"
DEFAULT_SNAPSHOT_NAME_FORMAT = "Backup %Y-%m-%d %H:%M:%S"
DEFAULT_RESTORE_LOCK_TIMEOUT = 10
RESTORE_LOCK_NAME = "falcon_erp.restore"
DEFAULT_SESSION_DAYS = 7
