import os

from .config import REGULARIZATION_FIRST_LEVELS, UPLOAD_FOLDER, WORK_CHECK_IN, WORK_CHECK_OUT, db_config, env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = db_config()

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = env_flag("AUTO_INIT_DB")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB")
