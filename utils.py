"""Models and helper utilities"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

import argparse
import gspread
import requests
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials

from errors import SheetNotFoundError, SheetReadError

logger = logging.getLogger(__name__)

# Mapping of sample spreadsheet headers to ExampleStudent attributes
SHEET_TO_STUDENT = {
    "Student Name": "student_name",
    "Gender": "gender",
    "Class Level": "class_level",
    "Home State": "home_state",
    "Major": "major",
    "Extracurricular Activity": "extracurricular_activity",
}

# Errors raised by gspread or its transport when a request fails
API_ERRORS = (
    gspread.exceptions.GSpreadException,
    GoogleAuthError,
    requests.exceptions.RequestException,
)


@dataclass(frozen=True)
class ExampleStudent:
    """A row of the Google Sheets API sample spreadsheet

    https://docs.google.com/spreadsheets/d/1BxiMVs0XRA5nFMdKvBdBZjgmUUqptlbs74OgvE2upms/edit

    Parsing to a fixed record is only possible when the sheet layout is known ahead
    of time; other sheets decode to GenericRecord.
    """

    student_name: str = ""
    gender: str = ""
    class_level: str = ""
    home_state: str = ""
    major: str = ""
    extracurricular_activity: str = ""

    def is_complete(self) -> bool:
        """Whether every attribute was populated from the row"""

        return all(value != "" for value in vars(self).values())


@dataclass(frozen=True)
class GenericRecord:
    """A row of a sheet with unknown layout, keyed by header label"""

    fields: dict[str, str] = field(default_factory=dict)


Record = ExampleStudent | GenericRecord


def _cell_text(row: list, i: int) -> str:
    """Return cell `i` of `row` as text; missing or non-text cells are blank"""

    value = row[i] if i < len(row) else ""
    return value if isinstance(value, str) else ""


def decode_row(headers: list, row: list) -> Record:
    """Decode a row using the header labels as keys

    Returns an ExampleStudent if the headers fill every one of its attributes, else
    a GenericRecord of the non-blank label/value pairs.
    """

    student = {}
    generic = {}
    for i in range(len(headers)):
        label = _cell_text(headers, i)
        value = _cell_text(row, i)
        if label != "" and value != "":
            generic[label] = value
        if label in SHEET_TO_STUDENT:
            student[SHEET_TO_STUDENT[label]] = value

    record = ExampleStudent(**student)
    if record.is_complete():
        return record
    return GenericRecord(generic)


def a1_range(sheet_name: str, start: int, end: int | None = None, last_column="Z") -> str:
    """Return A1 notation for rows `start`..`end` e.g. 'Class Data'!A1:Z10

    If `end` is None the range is open-ended.
    """

    title = sheet_name.replace("'", "''")
    end = "" if end is None else end
    return f"'{title}'!A{start}:{last_column}{end}"


def open_spreadsheet(credentials: Credentials, spreadsheet_id: str) -> gspread.Spreadsheet:
    """Authorize a Sheets API client and open a spreadsheet by its ID"""

    client = gspread.authorize(credentials)
    logger.info("Opening Google Sheet %s", spreadsheet_id)
    try:
        return client.open_by_key(spreadsheet_id)
    except API_ERRORS as err:
        raise SheetReadError(
            f"Unable to open spreadsheet {spreadsheet_id}: {err}"
        ) from err


class SheetReader:
    """Read a sheet's rows in fixed-size batches

    Args:
        spreadsheet: Exposes `fetch_sheet_metadata()` and `values_get(range)`, e.g.
            a gspread.Spreadsheet
        sheet_name: Title of the sheet (tab) to read
    """

    def __init__(self, spreadsheet, sheet_name: str) -> None:
        self.spreadsheet = spreadsheet
        self.sheet_name = sheet_name

    @property
    def spreadsheet_id(self) -> str | None:
        return getattr(self.spreadsheet, "id", None)

    def row_count(self) -> int:
        """Return the sheet's declared row count

        The count includes blank rows, which are returned as empty lists when
        reading values.
        """

        try:
            metadata = self.spreadsheet.fetch_sheet_metadata()
        except API_ERRORS as err:
            raise SheetReadError(f"Unable to retrieve sheet row count: {err}") from err

        for sheet in metadata.get("sheets", []):
            properties = sheet.get("properties", {})
            if properties.get("title") == self.sheet_name:
                return int(properties.get("gridProperties", {}).get("rowCount", 0))

        raise SheetNotFoundError(self.sheet_name, self.spreadsheet_id)

    @staticmethod
    def batches(row_count: int, batch_size: int) -> Iterator[tuple[int, int]]:
        """Yield inclusive (start, end) row ranges covering rows 1..`row_count`"""

        if batch_size < 1:
            raise ValueError(f"Batch size must be positive; got {batch_size}")
        for start in range(1, row_count + 1, batch_size):
            yield start, min(start + batch_size - 1, row_count)

    def get_rows(self, start: int, end: int) -> list[list]:
        """Return rows `start`..`end`; trailing blank rows and cells are omitted"""

        read_range = a1_range(self.sheet_name, start, end)
        try:
            response = self.spreadsheet.values_get(read_range)
        except API_ERRORS as err:
            raise SheetReadError(f"Unable to retrieve data from sheet: {err}") from err

        return response.get("values", [])

    def read_records(self, batch_size: int) -> Iterator[Record]:
        """Yield a record for each non-blank row after the header row

        The first row of the sheet holds the headers used to decode every following
        row. Blank rows are skipped.
        """

        row_count = self.row_count()
        logger.info("Sheet '%s' has %s rows", self.sheet_name, row_count)

        headers = []
        for start, end in self.batches(row_count, batch_size):
            logger.info("Reading rows %s-%s", start, end)
            rows = self.get_rows(start, end)

            # Not necessarily the end of the sheet; a batch of blank rows returns no
            # values, and later batches may still have data
            if len(rows) == 0:
                logger.info("No data found in rows %s-%s", start, end)
                continue

            for i, row in enumerate(rows):
                if start == 1 and i == 0:
                    headers = row
                    logger.debug("Headers: %s", headers)
                    if len(headers) == 0:
                        logger.warning("Header row of sheet '%s' is blank", self.sheet_name)
                    continue
                if len(row) == 0:
                    logger.info("Blank row found at row %s", start + i)
                    continue

                yield decode_row(headers, row)


def sheet_argparser(description: str | None = None) -> argparse.ArgumentParser:
    """Return a parser for the command-line arguments shared by the scripts"""

    parser = argparse.ArgumentParser(
        description=description,
        epilog="Settings are read from configuration.yml, the environment, and .env."
        + " The first run prints a link to authorize access and caches the token.",
    )
    parser.add_argument("-s", "--sheet-name", help="title of the sheet (tab) to read")
    parser.add_argument("--spreadsheet-id", help="ID of the spreadsheet to read")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="display DEBUG level messages"
    )

    return parser
