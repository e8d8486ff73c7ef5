#!/usr/bin/env python3
"""High level helpers for reading and writing the attendance logbook.

The logbook is a single Google spreadsheet holding one worksheet per day
(titled ``YYYY-MM-DD`` in logbook time) cloned from a ``TEMPLATE``
worksheet.  Every scan appends a row ``email, id, department, IN|OUT, time``
to the day's table; whether a student is currently "in" is the parity of
the number of times their id appears in that table.

Nothing here caches spreadsheet metadata.  ``Logbook`` re-lists the
worksheets each time it searches for one so a sheet created by another
worker (or by the scheduler) is always seen.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

import gspread
import pandas as pd
from google.oauth2.service_account import Credentials

from ..utils.clock import DEFAULT_OFFSET_HOURS, date_title, time_label
from .student_info import StudentProfile

log = logging.getLogger(__name__)

DIRECTION_IN = "IN"
DIRECTION_OUT = "OUT"

COUNT_MODES = ("rows", "formula")

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
]


class LogbookError(Exception):
    """Base error for logbook operations."""


class ConfigurationMissing(LogbookError):
    """A worksheet the logbook depends on (template, lookup) does not exist."""


# ---------------------------------------------------------------------------
# Google client utilities
# ---------------------------------------------------------------------------


def _client_from_json(creds_json: str) -> gspread.Client:
    log.debug("Initialising Google Sheets client from service account JSON")
    if not creds_json:
        log.error("Service account JSON is not configured.")
        raise RuntimeError(
            "AUTH_JSON not found. Set it to the full JSON payload of your service account key."
        )

    try:
        info = json.loads(creds_json)
    except json.JSONDecodeError as exc:
        log.exception("Failed to parse service account JSON")
        raise RuntimeError("Invalid service account JSON payload.") from exc

    try:
        creds = Credentials.from_service_account_info(info, scopes=SCOPES)
    except Exception:
        log.exception("Failed to build Google credentials from service account info.")
        raise

    try:
        client = gspread.authorize(creds)
    except Exception:
        log.exception("Failed to authorise Google Sheets client.")
        raise

    log.debug("Google Sheets client initialised successfully.")
    return client


def open_logbook(sheet_id: Optional[str], creds_json: str, **options: Any) -> "Logbook":
    """Authorise and open the logbook spreadsheet identified by ``sheet_id``."""
    if not sheet_id:
        log.error("Logbook spreadsheet id is not configured.")
        raise RuntimeError("LOGBOOK_EXCEL_ID is not configured.")

    log.debug("Opening logbook spreadsheet %s", sheet_id)
    try:
        gc = _client_from_json(creds_json)
        spreadsheet = gc.open_by_key(sheet_id)
    except Exception:
        log.exception("Failed to open logbook spreadsheet", extra={"sheet_id": sheet_id})
        raise

    log.info("Logbook spreadsheet opened: %s", sheet_id)
    return Logbook(spreadsheet, **options)


def get_logbook(app) -> "Logbook":
    """Return the app's logbook handle, opening the spreadsheet on first use."""
    logbook = app.extensions.get("logbook")
    if logbook is None:
        logbook = Logbook.from_config(app.config)
        app.extensions["logbook"] = logbook
    return logbook


def _escape_formula_string(value: str) -> str:
    # ~ escapes COUNTIF wildcards so the id is matched literally
    for char in ("~", "*", "?"):
        value = value.replace(char, "~" + char)
    return value.replace('"', '""')


def _as_number(value: str) -> Optional[float]:
    """Numeric reading of ``value`` the way a COUNTIF criterion is parsed."""
    if not value or "_" in value:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _parse_count(raw: Any) -> int:
    try:
        return int(float(raw))
    except (TypeError, ValueError):
        return 0


# ---------------------------------------------------------------------------
# Logbook handle
# ---------------------------------------------------------------------------


class Logbook:
    """Refreshable handle on the logbook spreadsheet."""

    def __init__(
        self,
        spreadsheet: gspread.Spreadsheet,
        template_name: str = "TEMPLATE",
        lookup_name: str = "LOOKUP_SHEET",
        lookup_cell: str = "A1",
        log_range: str = "A2:E",
        count_mode: str = "rows",
        offset_hours: int = DEFAULT_OFFSET_HOURS,
    ):
        if count_mode not in COUNT_MODES:
            raise ValueError(f"Unknown attendance count mode: {count_mode}")
        self.spreadsheet = spreadsheet
        self.template_name = template_name
        self.lookup_name = lookup_name
        self.lookup_cell = lookup_cell
        self.log_range = log_range
        self.count_mode = count_mode
        self.offset_hours = offset_hours

    @classmethod
    def from_config(cls, config) -> "Logbook":
        return open_logbook(
            config.get("LOGBOOK_EXCEL_ID"),
            config.get("AUTH_JSON", ""),
            template_name=config.get("TEMPLATE_SHEET_NAME", "TEMPLATE"),
            lookup_name=config.get("LOOKUP_SHEET_NAME", "LOOKUP_SHEET"),
            lookup_cell=config.get("LOOKUP_CELL", "A1"),
            log_range=config.get("LOG_RANGE", "A2:E"),
            count_mode=config.get("ATTENDANCE_COUNT_MODE", "rows"),
            offset_hours=config.get("UTC_OFFSET_HOURS", DEFAULT_OFFSET_HOURS),
        )

    # -- metadata ---------------------------------------------------------

    def worksheets(self) -> List[gspread.Worksheet]:
        # fetches fresh metadata on every call
        return self.spreadsheet.worksheets()

    def find_worksheet(self, title: str) -> Optional[gspread.Worksheet]:
        for ws in self.worksheets():
            if ws.title == title:
                return ws
        return None

    def date_title(self, now: Optional[datetime] = None) -> str:
        return date_title(now, self.offset_hours)

    # -- daily sheet provisioning -----------------------------------------

    def get_or_create_daily_sheet(self, now: Optional[datetime] = None) -> gspread.Worksheet:
        """Return today's worksheet, cloning the template when it is missing."""
        title = self.date_title(now)

        existing = self.find_worksheet(title)
        if existing is not None:
            log.debug("Daily sheet %s already exists", title)
            return existing

        template = self.find_worksheet(self.template_name)
        if template is None:
            log.error("Template worksheet %s not found", self.template_name)
            raise ConfigurationMissing(f"{self.template_name} sheet not found")

        log.info("Creating daily sheet %s from %s", title, self.template_name)
        copied = template.copy_to(self.spreadsheet.id)
        new_sheet_id = copied["sheetId"]

        self.spreadsheet.batch_update(
            {
                "requests": [
                    {
                        "updateSheetProperties": {
                            "properties": {"sheetId": new_sheet_id, "title": title},
                            "fields": "title",
                        }
                    }
                ]
            }
        )
        log.debug("Renamed copied sheet %s to %s", new_sheet_id, title)
        return self.spreadsheet.get_worksheet_by_id(new_sheet_id)

    # -- attendance state -------------------------------------------------

    def count_entries(self, student_id: str, sheet_title: Optional[str] = None) -> int:
        """Number of cells in the day's log table equal to ``student_id``."""
        sheet_title = sheet_title or self.date_title()
        if self.count_mode == "formula":
            count = self._count_with_formula(student_id, sheet_title)
        else:
            count = self._count_rows(student_id, sheet_title)
        log.debug("Count for %s on %s: %d", student_id, sheet_title, count)
        return count

    def _count_rows(self, student_id: str, sheet_title: str) -> int:
        sheet = self.find_worksheet(sheet_title)
        if sheet is None:
            return 0

        rows = sheet.get_values(self.log_range)
        if not rows:
            return 0

        df = pd.DataFrame(rows).fillna("").astype(str)
        needle = str(student_id).strip()
        number = _as_number(needle)
        if number is not None:
            # USER_ENTERED stores "0123" as the number 123
            numeric = df.apply(lambda col: pd.to_numeric(col, errors="coerce"))
            matches = numeric == number
        else:
            # COUNTIF compares text case-insensitively, without trimming
            matches = df.apply(lambda col: col.str.casefold() == needle.casefold())
        return int(matches.to_numpy().sum())

    def _count_with_formula(self, student_id: str, sheet_title: str) -> int:
        lookup = self.find_worksheet(self.lookup_name)
        if lookup is None:
            log.error("Lookup worksheet %s not found", self.lookup_name)
            raise ConfigurationMissing(f"{self.lookup_name} not found")

        formula = (
            f"=IFERROR(COUNTIF('{sheet_title}'!{self.log_range}, "
            f"\"{_escape_formula_string(str(student_id))}\"), 0)"
        )
        response = lookup.update(
            values=[[formula]],
            range_name=self.lookup_cell,
            value_input_option="USER_ENTERED",
            include_values_in_response=True,
            response_value_render_option="UNFORMATTED_VALUE",
        )
        values = (response or {}).get("updatedData", {}).get("values")
        return _parse_count(values[0][0]) if values and values[0] else 0

    def has_student_logged(self, student_id: str, sheet_title: Optional[str] = None) -> bool:
        """True when the student's last entry today is an unmatched IN."""
        return self.count_entries(student_id, sheet_title) % 2 == 1

    # -- writes -----------------------------------------------------------

    def append_entry(
        self,
        sheet: gspread.Worksheet,
        profile: StudentProfile,
        student_id: str,
        direction: str,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        row = [
            profile.email,
            student_id,
            profile.department,
            direction,
            time_label(now, self.offset_hours),
        ]
        log.debug("Appending %s to %s", row, sheet.title)
        return sheet.append_row(
            row,
            value_input_option="USER_ENTERED",
            table_range=self.log_range,
        )

    def log_student(
        self, student_id: str, profile: StudentProfile, now: Optional[datetime] = None
    ) -> bool:
        """Toggle a student's state; returns True when they are now logged in."""
        log.info("Logging student %s", student_id)
        try:
            sheet = self.get_or_create_daily_sheet(now)
            was_in = self.has_student_logged(student_id, sheet.title)
            direction = DIRECTION_OUT if was_in else DIRECTION_IN
            self.append_entry(sheet, profile, student_id, direction, now)
        except Exception:
            log.exception("Failed to log student", extra={"student_id": student_id})
            raise

        log.info("Student %s logged %s", student_id, direction)
        return direction == DIRECTION_IN
