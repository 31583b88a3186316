"""Exceptions raised while configuring, authorizing, and reading a sheet"""


class SheetBatchError(Exception):
    """Base class for errors handled by the scripts' top-level handler"""


class ConfigurationError(SheetBatchError):
    """Configuration could not be loaded or a required value is invalid"""


class ClientSecretsError(SheetBatchError):
    """The OAuth client secret file is missing or malformed"""


class AuthorizationError(SheetBatchError):
    """The interactive authorization code exchange failed"""


class CredentialCacheError(SheetBatchError):
    """The authorized credential could not be written to disk"""


class SheetNotFoundError(SheetBatchError):
    """No sheet with the requested title exists in the spreadsheet"""

    def __init__(self, sheet_name: str, spreadsheet_id: str | None = None) -> None:
        self.sheet_name = sheet_name
        self.spreadsheet_id = spreadsheet_id
        msg = f"Sheet '{sheet_name}' not found"
        if spreadsheet_id is not None:
            msg += f" in spreadsheet {spreadsheet_id}"
        super().__init__(msg)


class SheetReadError(SheetBatchError):
    """Spreadsheet metadata or values could not be retrieved"""
