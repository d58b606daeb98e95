import os

from .config import REGULARIZATION_FIRST_LEVELS, UPLOAD_FOLDER, WORK_CHECK_IN, WORK_CHECK_OUT, db_config, env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = db_config()

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")
# Optional: also create one demo account per role
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")
