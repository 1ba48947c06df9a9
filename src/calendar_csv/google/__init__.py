"""Google OAuth authentication for the Calendar API."""

from calendar_csv.google.exceptions import (
    ClientSecretsError,
    CredentialsNotFoundError,
    GoogleAuthError,
    ScopeMismatchError,
    TokenDecodeError,
    TokenError,
    TokenNotFoundError,
    TokenSaveError,
    TokenStoreError,
)
from calendar_csv.google.oauth import GoogleOAuth
from calendar_csv.google.provider import authorize_interactively, obtain_credentials
from calendar_csv.google.token_store import load_token, save_token

__all__ = [
    "GoogleOAuth",
    "obtain_credentials",
    "authorize_interactively",
    "load_token",
    "save_token",
    "GoogleAuthError",
    "ClientSecretsError",
    "CredentialsNotFoundError",
    "TokenError",
    "ScopeMismatchError",
    "TokenStoreError",
    "TokenNotFoundError",
    "TokenDecodeError",
    "TokenSaveError",
]
