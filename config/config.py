"""Settings shared by every environment module.

Values come from the process environment (``.env`` is loaded by the app
factory through python-dotenv) with the defaults below.
"""
import os


def env_flag(name: str, default: str = "0") -> bool:
    return bool(int(os.environ.get(name, default)))


def db_config(default_password: str = "") -> dict:
    return {
        "host": os.environ.get("DB_HOST", "localhost"),
        "port": int(os.environ.get("DB_PORT", "3306")),
        "user": os.environ.get("DB_USER", "root"),
        "password": os.environ.get("DB_PASSWORD", default_password),
        "database": os.environ.get("DB_NAME", "hr_workflow"),
    }


def first_levels_from_env(name: str = "REGULARIZATION_FIRST_LEVELS"):
    """Parse ``"Employee=Team Leader;HR=VP/Admin"``; unset means the built-in routing."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    levels = {}
    for pair in raw.split(";"):
        if not pair.strip():
            continue
        role, _, level = pair.partition("=")
        levels[role.strip()] = level.strip()
    return levels


UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", "uploads/regularization")
WORK_CHECK_IN = os.environ.get("WORK_CHECK_IN", "09:00")
WORK_CHECK_OUT = os.environ.get("WORK_CHECK_OUT", "17:00")
REGULARIZATION_FIRST_LEVELS = first_levels_from_env()
