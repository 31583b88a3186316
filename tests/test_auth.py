import json
import time
from urllib.parse import parse_qs, urlparse

import pytest
from google.oauth2.credentials import Credentials
from oauthlib.oauth2.rfc6749.errors import InvalidGrantError
from requests_oauthlib import OAuth2Session

import auth
from errors import AuthorizationError, ClientSecretsError, CredentialCacheError

SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]

CLIENT_SECRETS = {
    "installed": {
        "client_id": "client-id.apps.googleusercontent.com",
        "client_secret": "client-secret",
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
        "redirect_uris": ["http://localhost"],
    }
}


def make_credentials(token="access-token"):
    return Credentials(
        token=token,
        refresh_token="refresh-token",
        token_uri="https://oauth2.googleapis.com/token",
        client_id="client-id.apps.googleusercontent.com",
        client_secret="client-secret",
        scopes=SCOPES,
    )


def no_prompt(message):
    raise AssertionError(f"Unexpected prompt: {message}")


@pytest.fixture
def secrets_path(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text(json.dumps(CLIENT_SECRETS))
    return path


@pytest.fixture
def console_auth(monkeypatch):
    """Replace the interactive exchange, recording each call"""

    calls = []

    def authorize(secrets_path, scopes, prompt=input):
        calls.append((secrets_path, scopes))
        return make_credentials()

    monkeypatch.setattr(auth, "authorize_from_console", authorize)
    return calls


def test_cached_token_skips_authorization(tmp_path, secrets_path, console_auth):
    token_path = tmp_path / "token.json"
    token_path.write_text(make_credentials("cached").to_json())

    credentials = auth.obtain_credentials(token_path, secrets_path, SCOPES, no_prompt)

    assert credentials.refresh_token == "refresh-token"
    assert console_auth == []


def test_missing_token_authorizes_and_caches(tmp_path, secrets_path, console_auth):
    token_path = tmp_path / "token.json"

    credentials = auth.obtain_credentials(token_path, secrets_path, SCOPES, no_prompt)

    assert credentials.token == "access-token"
    assert console_auth == [(secrets_path, SCOPES)]
    saved = json.loads(token_path.read_text())
    assert saved["refresh_token"] == "refresh-token"
    assert token_path.stat().st_mode & 0o077 == 0

    # A second run reuses the cached token
    auth.obtain_credentials(token_path, secrets_path, SCOPES, no_prompt)
    assert len(console_auth) == 1


def test_unreadable_token_authorizes_again(tmp_path, secrets_path, console_auth):
    token_path = tmp_path / "token.json"
    token_path.write_text("not json")

    auth.obtain_credentials(token_path, secrets_path, SCOPES, no_prompt)

    assert len(console_auth) == 1
    assert json.loads(token_path.read_text())["client_id"].startswith("client-id")


def test_save_credentials_unwritable(tmp_path):
    with pytest.raises(CredentialCacheError):
        auth.save_credentials(tmp_path / "missing" / "token.json", make_credentials())


def test_load_client_config_missing_file(tmp_path):
    with pytest.raises(ClientSecretsError):
        auth.load_client_config(tmp_path / "credentials.json")


def test_load_client_config_malformed(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text("{")
    with pytest.raises(ClientSecretsError):
        auth.load_client_config(path)


def test_load_client_config_requires_client_section(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text(json.dumps({"client_id": "x"}))
    with pytest.raises(ClientSecretsError):
        auth.load_client_config(path)


def test_authorize_requires_redirect_uri(tmp_path):
    path = tmp_path / "credentials.json"
    secrets = {"installed": dict(CLIENT_SECRETS["installed"], redirect_uris=[])}
    path.write_text(json.dumps(secrets))
    with pytest.raises(ClientSecretsError):
        auth.authorize_from_console(path, SCOPES, no_prompt)


def test_authorize_prints_url_and_exchanges_code(secrets_path, monkeypatch, capsys):
    codes = []

    def fetch_token(self, token_url, **kwargs):
        codes.append(kwargs["code"])
        self.token = {
            "access_token": "access-token",
            "refresh_token": "refresh-token",
            "token_type": "Bearer",
            "expires_in": 3600,
            "expires_at": time.time() + 3600,
        }
        return self.token

    monkeypatch.setattr(OAuth2Session, "fetch_token", fetch_token)

    credentials = auth.authorize_from_console(
        secrets_path, SCOPES, lambda message: " the-code\n"
    )

    assert codes == ["the-code"]
    assert credentials.token == "access-token"
    assert credentials.refresh_token == "refresh-token"

    url = capsys.readouterr().out.strip().splitlines()[-1]
    query = parse_qs(urlparse(url).query)
    assert query["client_id"] == ["client-id.apps.googleusercontent.com"]
    assert query["access_type"] == ["offline"]
    assert query["state"] == [auth.STATE]
    assert query["redirect_uri"] == ["http://localhost"]


def test_authorize_empty_code(secrets_path):
    with pytest.raises(AuthorizationError):
        auth.authorize_from_console(secrets_path, SCOPES, lambda message: "  ")


def test_authorize_exchange_failure(secrets_path, monkeypatch):
    def fetch_token(self, token_url, **kwargs):
        raise InvalidGrantError(description="Bad Request")

    monkeypatch.setattr(OAuth2Session, "fetch_token", fetch_token)
    with pytest.raises(AuthorizationError):
        auth.authorize_from_console(secrets_path, SCOPES, lambda message: "bad-code")


@pytest.mark.parametrize("content", ['["not", "a", "dict"]', "5", "null"])
def test_token_file_not_an_object_is_ignored(tmp_path, content):
    token_path = tmp_path / "token.json"
    token_path.write_text(content)
    assert auth.load_cached_credentials(token_path, SCOPES) is None
