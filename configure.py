import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

from errors import ConfigurationError


class Configure:
    """Runtime configuration

    Values come from defaults, then configuration.yml (if present), then the
    environment, then .env (if present), then `overrides`. A .env file overrides the
    environment.
    """

    CONFIG_FILE = "configuration.yml"
    ENV_FILE = ".env"

    # Defaults point at the public Google Sheets API sample spreadsheet:
    # https://docs.google.com/spreadsheets/d/1BxiMVs0XRA5nFMdKvBdBZjgmUUqptlbs74OgvE2upms/edit
    DEFAULTS = {
        "batch_count": "1000",
        "credentials_file_name": "credentials.json",
        "token_file_name": "token.json",
        "spreadsheet_id": "1BxiMVs0XRA5nFMdKvBdBZjgmUUqptlbs74OgvE2upms",
        "sheet_name": "Class Data",
        "scopes": "https://www.googleapis.com/auth/drive.readonly",
    }

    def __init__(
        self,
        config_file: str | Path | None = None,
        env_file: str | Path | None = None,
        overrides: dict | None = None,
    ) -> None:
        config_file = Path(config_file or self.CONFIG_FILE)
        env_file = Path(env_file or self.ENV_FILE)

        values = dict(self.DEFAULTS)
        values |= {
            k: v for k, v in self._read_yaml(config_file).items() if k in self.DEFAULTS
        }

        # Don't care if there is no .env file as we have defaults
        if env_file.exists():
            load_dotenv(env_file, override=True)
        for key in self.DEFAULTS:
            if key.upper() in os.environ:
                values[key] = os.environ[key.upper()]

        # Command-line options
        values |= {k: v for k, v in (overrides or {}).items() if v is not None}

        for key, value in values.items():
            if value is None or (isinstance(value, str) and value.strip() == ""):
                raise ConfigurationError(f"Missing required setting {key.upper()}")

        self.batch_count = self._parse_batch_count(values["batch_count"])
        self.credentials_file_name = Path(values["credentials_file_name"])
        self.token_file_name = Path(values["token_file_name"])
        self.spreadsheet_id = str(values["spreadsheet_id"]).strip()
        self.sheet_name = str(values["sheet_name"])
        self.scopes = self._parse_scopes(values["scopes"])

    @classmethod
    def from_args(cls, args) -> "Configure":
        """Load configuration, overridden by parsed command-line arguments"""

        names = ["batch_count", "sheet_name", "spreadsheet_id"]
        return cls(overrides={name: getattr(args, name, None) for name in names})

    def __repr__(self) -> str:
        return (
            f"Configure(spreadsheet_id='{self.spreadsheet_id}',"
            + f" sheet_name='{self.sheet_name}', batch_count={self.batch_count})"
        )

    @staticmethod
    def _read_yaml(path: Path) -> dict:
        """Read lower-case settings from a YAML file, if it exists"""

        if not path.exists():
            return {}
        try:
            config = yaml.safe_load(path.read_text("utf-8"))
        except yaml.YAMLError as err:
            raise ConfigurationError(f"Unable to parse {path}: {err}") from err
        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Expected a mapping in {path}; got {config!r}")

        return {str(k).lower(): v for k, v in config.items()}

    @staticmethod
    def _parse_batch_count(value) -> int:
        try:
            batch_count = int(value)
        except (TypeError, ValueError) as err:
            raise ConfigurationError(
                f"BATCH_COUNT must be an integer; got '{value}'"
            ) from err
        if batch_count < 1:
            raise ConfigurationError(f"BATCH_COUNT must be positive; got {batch_count}")

        return batch_count

    @staticmethod
    def _parse_scopes(value) -> list[str]:
        """Split a comma-separated string (or YAML list) of OAuth scopes"""

        if isinstance(value, str):
            items = value.split(",")
        elif isinstance(value, (list, tuple)):
            items = value
        else:
            raise ConfigurationError(f"SCOPES must be a string or list; got {value!r}")
        scopes = [str(scope).strip() for scope in items if str(scope).strip()]
        if not scopes:
            raise ConfigurationError("SCOPES must list at least one scope")

        return scopes
