"""Tests for Google OAuth authentication."""

import json
import stat

import pytest
from authlib.oauth2 import OAuth2Error

from calendar_csv.google import (
    ClientSecretsError,
    CredentialsNotFoundError,
    GoogleOAuth,
    ScopeMismatchError,
    TokenError,
    authorize_interactively,
    obtain_credentials,
)
from calendar_csv.google.oauth import SCOPES

READONLY = "https://www.googleapis.com/auth/calendar.readonly"


@pytest.fixture
def mock_credentials(tmp_path):
    """Create a mock credentials file."""
    creds = {
        "installed": {
            "client_id": "test-client-id.apps.googleusercontent.com",
            "client_secret": "test-client-secret",
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "redirect_uris": ["http://localhost"],
        }
    }
    creds_path = tmp_path / "credentials.json"
    with open(creds_path, "w") as f:
        json.dump(creds, f)
    return creds_path


def write_token(path, scopes, expiry="2099-01-01T00:00:00Z"):
    token = {
        "token": "test-access-token",
        "refresh_token": "test-refresh-token",
        "token_uri": "https://oauth2.googleapis.com/token",
        "client_id": "test-client-id.apps.googleusercontent.com",
        "client_secret": "test-client-secret",
        "scopes": scopes,
        "type": "Bearer",
        "expiry": expiry,
    }
    with open(path, "w") as f:
        json.dump(token, f)
    return path


@pytest.fixture
def mock_token(tmp_path):
    """Create a mock token file."""
    return write_token(tmp_path / "token.json", [READONLY])


def fetched_token(scope=READONLY):
    return {
        "access_token": "new-access-token",
        "refresh_token": "new-refresh-token",
        "token_type": "Bearer",
        "expires_at": 4102444800,
        "scope": scope,
    }


class TestGoogleOAuthBasics:
    """Test basic GoogleOAuth functionality."""

    def test_unknown_scope_raises(self):
        """Should raise error for unknown scope names."""
        with pytest.raises(ValueError, match="Unknown scope"):
            GoogleOAuth(scopes=["unknown_scope"])

    def test_credentials_not_found(self, tmp_path):
        """Should raise error when credentials file is missing."""
        with pytest.raises(CredentialsNotFoundError):
            GoogleOAuth(credentials_path=tmp_path / "nonexistent.json")

    def test_malformed_credentials(self, tmp_path):
        """Should raise a config error for unparsable credentials."""
        creds_path = tmp_path / "credentials.json"
        creds_path.write_text("{not json")
        with pytest.raises(ClientSecretsError, match="Unable to parse client secret file"):
            GoogleOAuth(credentials_path=creds_path)

    def test_credentials_without_app_key(self, tmp_path):
        """Should reject credentials without an 'installed' or 'web' section."""
        creds_path = tmp_path / "credentials.json"
        creds_path.write_text(json.dumps({"client_id": "x"}))
        with pytest.raises(ClientSecretsError, match="'installed' or 'web'"):
            GoogleOAuth(credentials_path=creds_path)

    @pytest.mark.parametrize(
        "creds",
        [
            {"installed": "oops"},
            {"web": ["client-id"]},
            {"installed": {"client_id": "x", "client_secret": "y", "redirect_uris": "http://x"}},
        ],
    )
    def test_malformed_client_section(self, tmp_path, creds):
        """Should reject a client section that is not a well-formed object."""
        creds_path = tmp_path / "credentials.json"
        creds_path.write_text(json.dumps(creds))
        with pytest.raises(ClientSecretsError, match="Unable to parse client secret file"):
            GoogleOAuth(credentials_path=creds_path, token_path=tmp_path / "token.json")

    def test_available_scopes(self):
        """Should have calendar scopes defined."""
        assert SCOPES["calendar_readonly"] == READONLY


class TestGoogleOAuthWithCredentials:
    """Tests that require mock credentials."""

    def test_load_installed_credentials(self, mock_credentials, tmp_path):
        """Should load installed app credentials."""
        auth = GoogleOAuth(
            credentials_path=str(mock_credentials),
            token_path=str(tmp_path / "token.json"),
        )
        assert auth.client_id == "test-client-id.apps.googleusercontent.com"
        assert auth.client_secret == "test-client-secret"
        assert auth.redirect_uri == "http://localhost"

    def test_load_web_credentials(self, tmp_path):
        """Should load web app credentials."""
        creds = {
            "web": {
                "client_id": "web-client-id.apps.googleusercontent.com",
                "client_secret": "web-client-secret",
            }
        }
        creds_path = tmp_path / "credentials.json"
        with open(creds_path, "w") as f:
            json.dump(creds, f)

        auth = GoogleOAuth(
            credentials_path=str(creds_path),
            token_path=str(tmp_path / "token.json"),
        )
        assert auth.client_id == "web-client-id.apps.googleusercontent.com"

    def test_is_authorized_without_token(self, mock_credentials, tmp_path):
        """Should return False when no token exists."""
        auth = GoogleOAuth(
            credentials_path=str(mock_credentials),
            token_path=str(tmp_path / "token.json"),
        )
        assert auth.is_authorized() is False

    def test_is_authorized_with_valid_token(self, mock_credentials, mock_token):
        """Should return True when valid token exists."""
        auth = GoogleOAuth(credentials_path=mock_credentials, token_path=mock_token)
        assert auth.is_authorized() is True

    def test_malformed_token_is_ignored(self, mock_credentials, tmp_path):
        """Should treat a corrupt token file as missing."""
        token_path = tmp_path / "token.json"
        token_path.write_text("garbage")
        auth = GoogleOAuth(credentials_path=mock_credentials, token_path=token_path)
        assert auth.is_authorized() is False

    def test_scope_validation_on_token_load(self, mock_credentials, tmp_path):
        """Should reject token with missing scopes."""
        token_path = write_token(
            tmp_path / "token.json", ["https://www.googleapis.com/auth/documents"]
        )
        auth = GoogleOAuth(credentials_path=mock_credentials, token_path=token_path)
        assert auth.is_authorized() is False

    def test_get_authorization_url(self, mock_credentials, tmp_path):
        """Should generate authorization URL."""
        auth = GoogleOAuth(
            credentials_path=str(mock_credentials),
            token_path=str(tmp_path / "token.json"),
        )
        url = auth.get_authorization_url()
        assert "accounts.google.com" in url
        assert "client_id=" in url
        assert "scope=" in url
        assert "access_type=offline" in url

    def test_get_credentials_requires_token(self, mock_credentials, tmp_path):
        """Should refuse to build credentials without a token."""
        auth = GoogleOAuth(credentials_path=mock_credentials, token_path=tmp_path / "token.json")
        with pytest.raises(TokenError):
            auth.get_credentials()

    def test_get_credentials_from_cached_token(self, mock_credentials, mock_token):
        """Should build Google credentials from the cached token."""
        auth = GoogleOAuth(credentials_path=mock_credentials, token_path=mock_token)
        creds = auth.get_credentials()
        assert creds.token == "test-access-token"
        assert creds.refresh_token == "test-refresh-token"

    def test_fetch_token_with_code(self, mock_credentials, tmp_path, monkeypatch):
        """Should exchange a bare code and persist the token owner-only."""
        token_path = tmp_path / "token.json"
        auth = GoogleOAuth(credentials_path=mock_credentials, token_path=token_path)
        calls = {}

        def fake_fetch(url, **kwargs):
            calls.update(kwargs)
            return fetched_token()

        monkeypatch.setattr(auth.session, "fetch_token", fake_fetch)
        auth.fetch_token("4/abc")

        assert calls["code"] == "4/abc"
        assert calls["grant_type"] == "authorization_code"
        assert auth.is_authorized() is True
        saved = json.loads(token_path.read_text())
        assert saved["token"] == "new-access-token"
        assert saved["scopes"] == [READONLY]
        assert stat.S_IMODE(token_path.stat().st_mode) == 0o600

    def test_fetch_token_scope_mismatch(self, mock_credentials, tmp_path, monkeypatch):
        """Should refuse a token granted without the calendar scope."""
        auth = GoogleOAuth(credentials_path=mock_credentials, token_path=tmp_path / "token.json")
        monkeypatch.setattr(
            auth.session, "fetch_token", lambda url, **kwargs: fetched_token(scope="openid")
        )
        with pytest.raises(ScopeMismatchError):
            auth.fetch_token("4/abc")

    def test_fetch_token_failure(self, mock_credentials, tmp_path, monkeypatch):
        """Should wrap exchange failures in TokenError."""
        auth = GoogleOAuth(credentials_path=mock_credentials, token_path=tmp_path / "token.json")

        def failing_fetch(url, **kwargs):
            raise OAuth2Error(description="invalid_grant")

        monkeypatch.setattr(auth.session, "fetch_token", failing_fetch)
        with pytest.raises(TokenError, match="Unable to retrieve token"):
            auth.fetch_token("bad-code")


class TestObtainCredentials:
    """Tests for the credential provider."""

    def test_uses_cached_token_without_prompt(self, mock_credentials, mock_token):
        """Should not prompt when a valid token is cached."""
        auth = GoogleOAuth(credentials_path=mock_credentials, token_path=mock_token)

        def read_line():
            raise AssertionError("should not prompt")

        creds = obtain_credentials(auth, read_line=read_line, open_browser=False)
        assert creds.token == "test-access-token"

    def test_authorizes_when_token_missing(self, mock_credentials, tmp_path, monkeypatch, capsys):
        """Should prompt on stderr, exchange the code and save the token."""
        token_path = tmp_path / "token.json"
        auth = GoogleOAuth(credentials_path=mock_credentials, token_path=token_path)
        monkeypatch.setattr(auth.session, "fetch_token", lambda url, **kwargs: fetched_token())

        creds = obtain_credentials(auth, read_line=lambda: "  4/abc \n", open_browser=False)

        assert creds.token == "new-access-token"
        assert token_path.exists()
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "accounts.google.com" in captured.err
        assert "Saving credential file to" in captured.err

    def test_reauthorizes_when_refresh_fails(self, mock_credentials, tmp_path, monkeypatch):
        """Should fall back to the interactive flow if an expired token can't refresh."""
        token_path = write_token(tmp_path / "token.json", [READONLY], expiry="2000-01-01T00:00:00Z")
        auth = GoogleOAuth(credentials_path=mock_credentials, token_path=token_path)

        def failing_refresh(url, **kwargs):
            raise OAuth2Error(description="invalid_grant")

        monkeypatch.setattr(auth.session, "refresh_token", failing_refresh)
        monkeypatch.setattr(auth.session, "fetch_token", lambda url, **kwargs: fetched_token())

        creds = obtain_credentials(auth, read_line=lambda: "4/abc", open_browser=False)
        assert creds.token == "new-access-token"

    def test_empty_code_is_fatal(self, mock_credentials, tmp_path):
        """Should fail without retrying when no code is entered."""
        auth = GoogleOAuth(credentials_path=mock_credentials, token_path=tmp_path / "token.json")
        with pytest.raises(TokenError, match="No authorization code"):
            authorize_interactively(auth, read_line=lambda: "", open_browser=False)

    def test_closed_stdin_is_fatal(self, mock_credentials, tmp_path):
        """Should report unreadable input as an authorization failure."""
        auth = GoogleOAuth(credentials_path=mock_credentials, token_path=tmp_path / "token.json")

        def read_line():
            raise EOFError

        with pytest.raises(TokenError, match="Unable to read authorization code"):
            authorize_interactively(auth, read_line=read_line, open_browser=False)

    @pytest.mark.parametrize(
        "overrides",
        [{"scopes": 5}, {"expiry": [1]}, {"expiry": {"at": 1}}, {"expiry": "1700000000"}],
    )
    def test_reauthorizes_when_token_fields_malformed(
        self, mock_credentials, tmp_path, monkeypatch, overrides
    ):
        """Should treat a token with badly typed fields as missing and re-authorize."""
        token_path = write_token(tmp_path / "token.json", [READONLY])
        data = json.loads(token_path.read_text())
        data.update(overrides)
        token_path.write_text(json.dumps(data))

        auth = GoogleOAuth(credentials_path=mock_credentials, token_path=token_path)
        assert auth.is_authorized() is False
        monkeypatch.setattr(auth.session, "fetch_token", lambda url, **kwargs: fetched_token())

        creds = obtain_credentials(auth, read_line=lambda: "4/abc", open_browser=False)
        assert creds.token == "new-access-token"
