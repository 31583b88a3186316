import re

import pytest

from configure import Configure

RANGE = re.compile(r"!A(\d+):Z(\d*)$")


class FakeSpreadsheet:
    """Stands in for gspread.Spreadsheet, serving `grid` like the Sheets API does

    Trailing blank rows are trimmed from each response and a range of only blank
    rows has no 'values' key.
    """

    id = "fake-spreadsheet"

    def __init__(self, grid, sheet_name="Class Data", row_count=None, error=None):
        self.grid = grid
        self.sheet_name = sheet_name
        self.row_count = len(grid) if row_count is None else row_count
        self.error = error
        self.requested = []
        self.metadata_calls = 0

    def fetch_sheet_metadata(self):
        self.metadata_calls += 1
        return {
            "sheets": [
                {"properties": {"title": "Other", "gridProperties": {"rowCount": 5}}},
                {
                    "properties": {
                        "title": self.sheet_name,
                        "gridProperties": {"rowCount": self.row_count},
                    }
                },
            ]
        }

    def values_get(self, range_name):
        self.requested.append(range_name)
        if self.error is not None:
            raise self.error
        match = RANGE.search(range_name)
        start = int(match.group(1))
        end = int(match.group(2)) if match.group(2) else len(self.grid)
        rows = [list(row) for row in self.grid[start - 1 : end]]
        while rows and len(rows[-1]) == 0:
            rows.pop()
        if not rows:
            return {"range": range_name, "majorDimension": "ROWS"}
        return {"range": range_name, "majorDimension": "ROWS", "values": rows}


@pytest.fixture
def spreadsheet_factory():
    return FakeSpreadsheet


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Run each test in an empty directory with no configuration in the environment"""

    for key in Configure.DEFAULTS:
        monkeypatch.delenv(key.upper(), raising=False)
    monkeypatch.chdir(tmp_path)
