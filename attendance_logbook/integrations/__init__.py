"""
Remote services used by the logbook.

- google_sheets_logbook: the attendance spreadsheet (daily sheets, counts, appends)
- student_info: the student profile lookup service

Setup
-----
1) Create a Service Account in Google Cloud & download the JSON key.
2) Share the logbook spreadsheet with the service account's email (Editor).
3) Export the key's full JSON as AUTH_JSON and the spreadsheet id as LOGBOOK_EXCEL_ID.
4) The spreadsheet needs a TEMPLATE sheet (headers in row 1, log table in A2:E)
   and, for ATTENDANCE_COUNT_MODE=formula, a hidden LOOKUP_SHEET.
"""

from .google_sheets_logbook import (
    DIRECTION_IN,
    DIRECTION_OUT,
    ConfigurationMissing,
    Logbook,
    LogbookError,
    get_logbook,
    open_logbook,
)
from .student_info import StudentProfile, get_student_info

__all__ = [
    "DIRECTION_IN",
    "DIRECTION_OUT",
    "ConfigurationMissing",
    "Logbook",
    "LogbookError",
    "StudentProfile",
    "get_logbook",
    "get_student_info",
    "open_logbook",
]
