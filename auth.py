"""Obtain Google OAuth credentials, caching them in a local token file"""

import json
import logging
from collections.abc import Callable
from pathlib import Path

import requests
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from errors import AuthorizationError, ClientSecretsError, CredentialCacheError

logger = logging.getLogger(__name__)

# Echoed back by the authorization server; the code is pasted by hand so it is
# never checked
STATE = "state-token"


def obtain_credentials(
    token_path: Path,
    secrets_path: Path,
    scopes: list[str],
    prompt: Callable[[str], str] = input,
) -> Credentials:
    """Load cached credentials, or authorize interactively and cache the result

    The token file stores the user's access and refresh tokens and is created the
    first time authorization completes. If you change the scopes, delete it.

    Args:
        token_path: Path to the cached authorized-user JSON file
        secrets_path: Path to the OAuth client secret JSON file
        scopes: OAuth scopes to request
        prompt: Reads one line of console input (default: `input`)
    """

    credentials = load_cached_credentials(Path(token_path), scopes)
    if credentials is None:
        credentials = authorize_from_console(Path(secrets_path), scopes, prompt)
        save_credentials(Path(token_path), credentials)

    return credentials


def load_cached_credentials(token_path: Path, scopes: list[str]) -> Credentials | None:
    """Return the credentials in `token_path`, or None if absent or unreadable"""

    if not token_path.exists():
        logger.debug("No cached token at %s", token_path)
        return None
    try:
        return Credentials.from_authorized_user_file(str(token_path), scopes)
    except (OSError, ValueError, AttributeError, TypeError) as err:
        logger.warning("Ignoring unreadable token file %s: %s", token_path, err)
        return None


def load_client_config(secrets_path: Path) -> dict:
    """Read the OAuth client secret file downloaded from the Google Cloud console"""

    try:
        config = json.loads(Path(secrets_path).read_text("utf-8"))
    except OSError as err:
        raise ClientSecretsError(
            f"Unable to read client secret file {secrets_path}: {err}"
        ) from err
    except ValueError as err:
        raise ClientSecretsError(
            f"Unable to parse client secret file {secrets_path}: {err}"
        ) from err

    if not isinstance(config, dict) or not ({"installed", "web"} & config.keys()):
        raise ClientSecretsError(
            f"Client secret file {secrets_path} must have an 'installed' or 'web' section"
        )

    return config


def authorize_from_console(
    secrets_path: Path,
    scopes: list[str],
    prompt: Callable[[str], str] = input,
) -> Credentials:
    """Print an authorization URL, read the code typed back, and exchange it"""

    config = load_client_config(secrets_path)
    client = config.get("installed") or config.get("web")
    redirect_uris = client.get("redirect_uris") or []
    if not redirect_uris:
        raise ClientSecretsError(f"No redirect_uris in client secret file {secrets_path}")

    try:
        flow = Flow.from_client_config(config, scopes=scopes, redirect_uri=redirect_uris[0])
    except ValueError as err:
        raise ClientSecretsError(
            f"Unable to parse client secret file to config: {err}"
        ) from err
    auth_url, _ = flow.authorization_url(access_type="offline", state=STATE)
    print(
        "Go to the following link in your browser then type the authorization code:"
        + f"\n{auth_url}"
    )

    try:
        code = prompt("Authorization code: ").strip()
    except EOFError as err:
        raise AuthorizationError("Unable to read authorization code") from err
    if code == "":
        raise AuthorizationError("No authorization code entered")

    try:
        flow.fetch_token(code=code)
    except (OAuth2Error, requests.exceptions.RequestException, ValueError) as err:
        raise AuthorizationError(f"Unable to retrieve token from web: {err}") from err

    return flow.credentials


def save_credentials(token_path: Path, credentials: Credentials) -> None:
    """Write credentials to `token_path`, readable by the current user only"""

    logger.info("Saving credential file to %s", token_path)
    try:
        token_path.touch(mode=0o600)
        token_path.write_text(credentials.to_json(), encoding="utf-8")
    except OSError as err:
        raise CredentialCacheError(f"Unable to cache oauth token: {err}") from err
