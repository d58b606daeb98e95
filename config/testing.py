import os

from .config import REGULARIZATION_FIRST_LEVELS, WORK_CHECK_IN, WORK_CHECK_OUT, db_config, env_flag

SECRET_KEY = "test-secret"

DB_CONFIG = db_config()

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "/tmp/hr_workflow_uploads")

AUTO_INIT_DB = env_flag("AUTO_INIT_DB")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB")
