#!/usr/bin/env python3

"""Print the names and majors of students in the Google Sheets API sample sheet"""

import logging
import sys

from auth import obtain_credentials
from configure import Configure
from errors import SheetBatchError, SheetReadError
from utils import API_ERRORS, a1_range, open_spreadsheet, sheet_argparser


logger = logging.getLogger(__name__)


def sheets2names(spreadsheet, sheet_name: str) -> list[tuple[str, str]]:
    """Print columns A and E (name, major) of every row below the header

    Reads the whole sheet in one request, so only suits small sheets; see
    readsheet.py for batched reads.
    """

    try:
        response = spreadsheet.values_get(a1_range(sheet_name, 2))
    except API_ERRORS as err:
        raise SheetReadError(f"Unable to retrieve data from sheet: {err}") from err

    rows = response.get("values", [])
    if len(rows) == 0:
        print("No data found.")
        return []

    names = []
    print("Name, Major:")
    for row in rows:
        if len(row) == 0:
            continue
        name = row[0]
        major = row[4] if len(row) > 4 else ""
        print(f"{name}, {major}")
        names.append((name, major))

    return names


def main(argv: list[str] | None = None) -> int:
    parser = sheet_argparser(description=__doc__)
    args = parser.parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        config = Configure.from_args(args)
        credentials = obtain_credentials(
            config.token_file_name, config.credentials_file_name, config.scopes
        )
        spreadsheet = open_spreadsheet(credentials, config.spreadsheet_id)
        sheets2names(spreadsheet, config.sheet_name)
    except SheetBatchError as err:
        logger.error("%s: %s", type(err).__name__, err)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
