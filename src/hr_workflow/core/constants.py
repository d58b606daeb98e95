"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
Settings modules may override the work-hour and upload values.
"""

DEFAULT_SESSION_DAYS = 7

DEFAULT_CHECK_IN = "09:00"
DEFAULT_CHECK_OUT = "17:00"
HALF_DAY_CHECK_OUT = "13:00"

REQUEST_CODE_PREFIX = "REG"
REQUEST_CODE_DIGITS = 6
REASON_MAX_LENGTH = 500

MAX_DOCUMENT_SIZE = 5 * 1024 * 1024
MAX_DOCUMENTS = 5
ALLOWED_DOCUMENT_TYPES = {
    "image/jpeg": {".jpg", ".jpeg"},
    "image/png": {".png"},
    "image/gif": {".gif"},
    "application/pdf": {".pdf"},
    "application/msword": {".doc"},
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": {".docx"},
}
DEFAULT_UPLOAD_FOLDER = "uploads/regularization"

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

DEFAULT_FIRST_LEVELS = {
    "Employee": "Team Leader",
    "Team Leader": "Team Manager",
    "Team Manager": "HR",
    "HR": "VP/Admin",
}
