#!/usr/bin/env python3

"""Read every row of a Google Sheet in batches and print the decoded records"""

import json
import logging
import sys
from collections.abc import Callable

from auth import obtain_credentials
from configure import Configure
from errors import SheetBatchError
from utils import (
    ExampleStudent,
    GenericRecord,
    SheetReader,
    open_spreadsheet,
    sheet_argparser,
)


logger = logging.getLogger(__name__)


def print_scopes(scopes: list[str]) -> None:
    """Print the OAuth scopes that will be requested"""

    print("\nThe following scopes will be used:")
    for scope in scopes:
        print(f"\t• {scope}")
    print()


def print_records(reader: SheetReader, batch_size: int) -> int:
    """Print each record of the sheet and return the number printed

    Rows of the Google Sheets API sample spreadsheet print as ExampleStudent; rows
    of any other layout print as JSON keyed by header.
    """

    n_records = 0
    for record in reader.read_records(batch_size):
        match record:
            case ExampleStudent():
                print(f"ExampleStudent:\t{record}")
            case GenericRecord(fields=fields):
                print(f"\t\tjson:\t{json.dumps(fields, ensure_ascii=False)}\n")
        n_records += 1

    return n_records


def readsheet(config: Configure, prompt: Callable[[str], str] = input) -> int:
    """Authorize, then print the records of the configured sheet"""

    print_scopes(config.scopes)
    credentials = obtain_credentials(
        config.token_file_name, config.credentials_file_name, config.scopes, prompt
    )
    spreadsheet = open_spreadsheet(credentials, config.spreadsheet_id)

    print(f"spreadsheetId: {config.spreadsheet_id}")
    print(f"sheetName: {config.sheet_name}")
    reader = SheetReader(spreadsheet, config.sheet_name)
    n_records = print_records(reader, config.batch_count)

    logger.info("Finished; %s records read", n_records)
    return n_records


def main(argv: list[str] | None = None) -> int:
    parser = sheet_argparser(
        description="Read a Google Sheet in batches of rows and print each row as a"
        + " record keyed by the sheet's header row"
    )
    parser.add_argument(
        "-b", "--batch-count", type=int, help="number of rows to request at a time"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        readsheet(Configure.from_args(args))
    except SheetBatchError as err:
        logger.error("%s: %s", type(err).__name__, err)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
