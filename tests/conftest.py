import pathlib
import re
import sys

import pytest

SYS_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(SYS_ROOT) not in sys.path:
    sys.path.insert(0, str(SYS_ROOT))

from attendance_logbook import create_app
from attendance_logbook.integrations.google_sheets_logbook import Logbook
from attendance_logbook.integrations.student_info import StudentProfile

COUNTIF_RE = re.compile(r"COUNTIF\('(?P<title>[^']+)'!A2:E, \"(?P<needle>(?:[^\"]|\"\")*)\"\)")
NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")


def user_entered(value):
    """Cell text after Sheets parses a USER_ENTERED value."""
    text = str(value)
    if NUMBER_RE.match(text):
        number = float(text)
        return str(int(number)) if number.is_integer() else str(number)
    return text


def countif_matches(cell, criterion):
    if NUMBER_RE.match(criterion):
        return NUMBER_RE.match(str(cell)) is not None and float(cell) == float(criterion)
    return str(cell).casefold() == criterion.casefold()


class FakeWorksheet:
    """In-memory stand-in for gspread.Worksheet."""

    def __init__(self, spreadsheet, sheet_id, title, rows=None):
        self.spreadsheet = spreadsheet
        self.id = sheet_id
        self.title = title
        self.rows = [list(r) for r in rows or []]
        self.cells = {}
        self.appended = []

    def get_values(self, range_name=None, **kwargs):
        return [list(r) for r in self.rows]

    def append_row(self, values, value_input_option=None, table_range=None, **kwargs):
        if value_input_option == "USER_ENTERED":
            values = [user_entered(v) for v in values]
        self.rows.append(list(values))
        self.appended.append(
            {"values": list(values), "value_input_option": value_input_option, "table_range": table_range}
        )
        return {"updates": {"updatedRows": 1}}

    def update(self, values=None, range_name=None, **kwargs):
        formula = values[0][0]
        self.cells[range_name] = formula
        self.last_update = {"values": values, "range_name": range_name, **kwargs}
        match = COUNTIF_RE.search(formula)
        count = 0
        if match:
            target = self.spreadsheet.by_title(match.group("title"))
            needle = re.sub(r"~([~*?])", r"\1", match.group("needle").replace('""', '"'))
            if target is not None:
                count = sum(
                    1 for row in target.rows for cell in row if countif_matches(cell, needle)
                )
        return {"updatedData": {"values": [[count]]}}

    def copy_to(self, destination_spreadsheet_id):
        assert destination_spreadsheet_id == self.spreadsheet.id
        copy = self.spreadsheet.add_sheet(f"Copy of {self.title}", rows=self.rows)
        self.spreadsheet.copies += 1
        return {"sheetId": copy.id, "title": copy.title}


class FakeSpreadsheet:
    """In-memory stand-in for gspread.Spreadsheet."""

    def __init__(self, spreadsheet_id="logbook-id"):
        self.id = spreadsheet_id
        self.sheets = []
        self.metadata_fetches = 0
        self.copies = 0
        self.batch_updates = []
        self._next_id = 100

    def add_sheet(self, title, rows=None):
        ws = FakeWorksheet(self, self._next_id, title, rows)
        self._next_id += 1
        self.sheets.append(ws)
        return ws

    def by_title(self, title):
        for ws in self.sheets:
            if ws.title == title:
                return ws
        return None

    def worksheets(self, exclude_hidden=False):
        self.metadata_fetches += 1
        return list(self.sheets)

    def get_worksheet_by_id(self, sheet_id):
        for ws in self.sheets:
            if ws.id == sheet_id:
                return ws
        raise LookupError(sheet_id)

    def batch_update(self, body):
        self.batch_updates.append(body)
        for req in body["requests"]:
            props = req["updateSheetProperties"]["properties"]
            self.get_worksheet_by_id(props["sheetId"]).title = props["title"]
        return {"replies": [{}]}


@pytest.fixture
def spreadsheet():
    ss = FakeSpreadsheet()
    ss.add_sheet("TEMPLATE")
    ss.add_sheet("LOOKUP_SHEET")
    return ss


@pytest.fixture
def logbook(spreadsheet):
    return Logbook(spreadsheet)


@pytest.fixture
def profile():
    return StudentProfile(email="a@x.com", department="CS")


@pytest.fixture
def app(tmp_path, logbook):
    app = create_app({"TESTING": True, "LOG_DIR": str(tmp_path / "logs")})
    app.extensions["logbook"] = logbook
    return app


@pytest.fixture
def client(app):
    return app.test_client()
