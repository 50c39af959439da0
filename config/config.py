"""Settings shared by every environment; each environment module overrides what differs."""

import os


def env_flag(name: str, default: str = "0") -> bool:
    return bool(int(os.getenv(name, default)))


def db_config_from_env(*, default_password: str = "", default_name: str = "workhub") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", default_name),
    }


# Signed session cookie lifetime; sessions are never extended.
SESSION_DAYS = int(os.getenv("SESSION_DAYS", "30"))

# Minutes after shift start before a clock-in counts as late.
LATE_GRACE_MINUTES = int(os.getenv("LATE_GRACE_MINUTES", "15"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
