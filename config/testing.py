from config.config import LATE_GRACE_MINUTES, SESSION_DAYS, db_config_from_env

SECRET_KEY = "test-secret"

DB_CONFIG = db_config_from_env(default_name="workhub_test")

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
AUTO_SEED_DB = False
