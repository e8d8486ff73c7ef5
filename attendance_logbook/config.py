import os


class Config:
    """Base configuration loaded from environment variables."""

    # --- General ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_DIR = os.getenv("LOG_DIR", os.path.join(os.path.dirname(__file__), "logs"))
    PORT = int(os.getenv("PORT", "3000"))

    # --- Google Sheets / Logbook ---
    AUTH_JSON = os.getenv("AUTH_JSON", "")
    LOGBOOK_EXCEL_ID = os.getenv("LOGBOOK_EXCEL_ID")
    TEMPLATE_SHEET_NAME = os.getenv("TEMPLATE_SHEET_NAME", "TEMPLATE")
    LOOKUP_SHEET_NAME = os.getenv("LOOKUP_SHEET_NAME", "LOOKUP_SHEET")
    LOOKUP_CELL = os.getenv("LOOKUP_CELL", "A1")
    LOG_RANGE = os.getenv("LOG_RANGE", "A2:E")
    # "rows" counts in-process, "formula" evaluates COUNTIF in the lookup sheet
    ATTENDANCE_COUNT_MODE = os.getenv("ATTENDANCE_COUNT_MODE", "rows").lower()

    # --- Time ---
    UTC_OFFSET_HOURS = int(os.getenv("UTC_OFFSET_HOURS", "8"))

    # --- Student lookup ---
    STUDENT_INFO_URL = os.getenv(
        "STUDENT_INFO_URL", "https://student-info.tyronscott.me/api/student"
    )
    STUDENT_INFO_TIMEOUT = float(os.getenv("STUDENT_INFO_TIMEOUT", "10"))

    # --- Scheduler ---
    PROVISION_SCHEDULER = os.getenv("PROVISION_SCHEDULER", "False").lower() == "true"

    # --- Misc ---
    DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"
