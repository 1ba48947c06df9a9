"""Google OAuth management using Authlib.

This module provides OAuth 2.0 authentication for the Calendar API with:
- Automatic token refresh with scope preservation
- Token caching through :mod:`calendar_csv.google.token_store`
- Google API service creation

Files default to the working directory (see :mod:`calendar_csv.config`):
    credentials.json - OAuth client credentials
    token.json       - OAuth tokens
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import requests
from authlib.integrations.requests_client import OAuth2Session
from authlib.oauth2 import OAuth2Error
from google.oauth2.credentials import Credentials as GoogleCredentials
from googleapiclient.discovery import build

from calendar_csv import config
from calendar_csv.google.exceptions import (
    ClientSecretsError,
    CredentialsNotFoundError,
    ScopeMismatchError,
    TokenError,
    TokenStoreError,
)
from calendar_csv.google.token_store import load_token, save_token

logger = logging.getLogger(__name__)


SCOPES = {
    "calendar_readonly": "https://www.googleapis.com/auth/calendar.readonly",
}

DEFAULT_REDIRECT_URI = "http://localhost"


class GoogleOAuth:
    """Google OAuth management using Authlib.

    Handles OAuth 2.0 authorization flow, token management, and
    Google API service creation.

    Example:
        >>> auth = GoogleOAuth(scopes=["calendar_readonly"])
        >>> if not auth.is_authorized():
        ...     print(f"Visit: {auth.get_authorization_url()}")
        ...     auth.fetch_token(input())
        >>> service = auth.build_service("calendar", "v3")
    """

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        scopes: list[str] | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        token_path: str | Path | None = None,
        credentials_path: str | Path | None = None,
        redirect_uri: str | None = None,
    ):
        """Initialize Google OAuth.

        Args:
            scopes: List of scope names (e.g., ["calendar_readonly"]) or full URLs.
                   If None, defaults to ["calendar_readonly"].
            client_id: OAuth client ID (loaded from credentials file if not provided).
            client_secret: OAuth client secret (loaded from credentials file if not provided).
            token_path: Path to store/load tokens. Defaults to ``config.token_path()``.
            credentials_path: Path to OAuth credentials file.
                Defaults to ``config.credentials_path()``.
            redirect_uri: Redirect URI registered for the client. Defaults to the
                first redirect URI in the credentials file.

        Raises:
            CredentialsNotFoundError: If the credentials file does not exist.
            ClientSecretsError: If the credentials file cannot be read or parsed.
        """
        self.token_path = Path(token_path) if token_path else config.token_path()
        self.credentials_path = (
            Path(credentials_path) if credentials_path else config.credentials_path()
        )

        self.required_scopes = self._resolve_scopes(scopes or ["calendar_readonly"])

        app_creds: dict[str, Any] = {}
        if not client_id or not client_secret:
            app_creds = self._load_client_credentials()
            client_id, client_secret = app_creds["client_id"], app_creds["client_secret"]

        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri or (
            app_creds.get("redirect_uris") or [DEFAULT_REDIRECT_URI]
        )[0]

        self.session = OAuth2Session(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=" ".join(self.required_scopes),
            redirect_uri=self.redirect_uri,
            token=self._load_token(),
            update_token=self._save_token,
            token_endpoint=self.TOKEN_URL,
            grant_type="refresh_token",
            token_endpoint_auth_method="client_secret_post",
        )

        self._state: str | None = None

    def _resolve_scopes(self, scopes: list[str]) -> list[str]:
        """Resolve scope names to full URLs."""
        resolved = []
        for scope in scopes:
            if scope.startswith("https://"):
                resolved.append(scope)
            elif scope in SCOPES:
                resolved.append(SCOPES[scope])
            else:
                raise ValueError(
                    f"Unknown scope: {scope}. Use full URL or one of: {list(SCOPES.keys())}"
                )
        return resolved

    def _load_client_credentials(self) -> dict[str, Any]:
        """Load OAuth client credentials from file."""
        if not self.credentials_path.exists():
            raise CredentialsNotFoundError(str(self.credentials_path))

        try:
            with open(self.credentials_path) as f:
                creds = json.load(f)
        except (OSError, ValueError) as e:
            raise ClientSecretsError(str(self.credentials_path), str(e)) from e

        # Handle both web and installed app credential formats
        if isinstance(creds, dict) and "installed" in creds:
            app_creds = creds["installed"]
        elif isinstance(creds, dict) and "web" in creds:
            app_creds = creds["web"]
        else:
            raise ClientSecretsError(
                str(self.credentials_path), "expected 'installed' or 'web' key"
            )

        if not isinstance(app_creds, dict):
            raise ClientSecretsError(
                str(self.credentials_path), "client section must be a JSON object"
            )
        if not app_creds.get("client_id") or not app_creds.get("client_secret"):
            raise ClientSecretsError(
                str(self.credentials_path), "missing client_id or client_secret"
            )
        redirect_uris = app_creds.get("redirect_uris", [])
        if not isinstance(redirect_uris, list) or not all(
            isinstance(uri, str) for uri in redirect_uris
        ):
            raise ClientSecretsError(
                str(self.credentials_path), "redirect_uris must be a list of URLs"
            )
        return app_creds

    def _load_token(self) -> dict[str, Any] | None:
        """Load token from storage, or None if it is unusable."""
        try:
            token = load_token(self.token_path)
        except TokenStoreError as e:
            logger.info(f"No usable cached token: {e}")
            return None

        current_scopes = set(token["scope"].split())
        missing = set(self.required_scopes) - current_scopes
        if missing:
            logger.warning(f"Token missing required scopes: {missing}")
            return None

        logger.info(f"Loaded token with scopes: {current_scopes}")
        return token

    def _save_token(
        self,
        token: dict[str, Any],
        refresh_token: str | None = None,
        access_token: str | None = None,
    ):
        """Save token to storage (Authlib callback)."""
        if access_token:
            token["access_token"] = access_token
        if refresh_token:
            token["refresh_token"] = refresh_token

        token_scopes = set((token.get("scope") or "").split())
        missing = set(self.required_scopes) - token_scopes
        if missing:
            raise ScopeMismatchError(missing)

        save_token(
            self.token_path,
            token,
            client_id=self.client_id,
            client_secret=self.client_secret,
            token_uri=self.TOKEN_URL,
        )

    def is_authorized(self) -> bool:
        """Check if we have a token with all required scopes."""
        if not self.session.token:
            return False

        token_scopes = set((self.session.token.get("scope") or "").split())
        return set(self.required_scopes).issubset(token_scopes)

    def get_authorization_url(self) -> str:
        """Start OAuth authorization flow.

        Returns:
            Authorization URL for user to visit.
        """
        authorization_url, state = self.session.create_authorization_url(
            self.AUTHORIZE_URL,
            access_type="offline",
            prompt="consent",
            include_granted_scopes="true",
        )

        self._state = state
        return authorization_url

    def fetch_token(self, authorization_response: str) -> dict[str, Any]:
        """Complete authorization flow and fetch token.

        Args:
            authorization_response: The full redirect URL from the OAuth callback,
                or the bare authorization code.

        Returns:
            The fetched OAuth token dict.

        Raises:
            TokenError: If the code exchange fails.
            ScopeMismatchError: If the granted token lacks a required scope.
        """
        if authorization_response.startswith(("http://", "https://")):
            grant = {"authorization_response": authorization_response, "state": self._state}
        else:
            grant = {"code": authorization_response}

        try:
            token = self.session.fetch_token(
                self.TOKEN_URL,
                grant_type="authorization_code",
                client_secret=self.client_secret,
                **grant,
            )
        except (OAuth2Error, requests.RequestException) as e:
            raise TokenError(f"Unable to retrieve token from web: {e}") from e

        self._save_token(token)
        self.session.token = token
        return token

    def get_credentials(self) -> GoogleCredentials:
        """Get Google Credentials object for API client libraries.

        Returns:
            Google Credentials object with current token.

        Raises:
            TokenError: If not authorized or token refresh fails.
        """
        if not self.is_authorized():
            raise TokenError("Not authorized or missing required scopes")

        # Refresh if expired
        expires_at = self.session.token.get("expires_at", 0)
        if expires_at and expires_at < datetime.now().timestamp():
            logger.info("Token expired, refreshing...")
            refresh_token = self.session.token.get("refresh_token")
            if not refresh_token:
                raise TokenError("Token expired and no refresh token is available")
            try:
                self.session.refresh_token(self.TOKEN_URL, refresh_token=refresh_token)
            except (OAuth2Error, requests.RequestException) as e:
                raise TokenError(f"Failed to refresh token: {e}") from e

        return GoogleCredentials(
            token=self.session.token["access_token"],
            refresh_token=self.session.token.get("refresh_token"),
            token_uri=self.TOKEN_URL,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.required_scopes,
        )

    def build_service(self, service_name: str = "calendar", version: str = "v3"):
        """Build a Google API service with current credentials.

        Args:
            service_name: Name of the service.
            version: API version.

        Returns:
            Google API service object.
        """
        creds = self.get_credentials()
        return build(service_name, version, credentials=creds)
