"""Cached OAuth token storage.

Tokens are kept in memory in Authlib's format and written to disk in the
Google authorized-user format, so ``token.json`` stays readable by
``google.oauth2.credentials.Credentials.from_authorized_user_file``.
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from calendar_csv.google.exceptions import (
    TokenDecodeError,
    TokenNotFoundError,
    TokenSaveError,
)

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"


def load_token(path: str | Path) -> dict[str, Any]:
    """Load a cached token.

    Args:
        path: Token file written by :func:`save_token` or google-auth.

    Returns:
        Authlib token dict with ``access_token``, ``refresh_token``,
        ``token_type``, ``expires_at`` and ``scope``.

    Raises:
        TokenNotFoundError: If the file does not exist.
        TokenDecodeError: If the file is not a valid token.
    """
    path = Path(path)
    try:
        with open(path) as f:
            token_data = json.load(f)
    except FileNotFoundError as e:
        raise TokenNotFoundError(str(path)) from e
    except (OSError, ValueError) as e:
        raise TokenDecodeError(str(path), f"Malformed token file ({e})") from e

    if not isinstance(token_data, dict) or not token_data.get("token"):
        raise TokenDecodeError(str(path), "Token file has no access token")

    for key in ("token", "refresh_token", "type"):
        value = token_data.get(key)
        if value is not None and not isinstance(value, str):
            raise TokenDecodeError(str(path), f"Invalid {key} {value!r}")

    scopes = token_data.get("scopes") or []
    if not isinstance(scopes, list) or not all(isinstance(s, str) for s in scopes):
        raise TokenDecodeError(str(path), f"Invalid scopes {scopes!r}")

    # google-auth writes an ISO timestamp; older files may hold epoch seconds
    expiry = token_data.get("expiry")
    if isinstance(expiry, str):
        try:
            dt = datetime.fromisoformat(expiry.replace("Z", "+00:00"))
        except ValueError as e:
            raise TokenDecodeError(str(path), f"Invalid expiry {expiry!r}") from e
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        expires_at = dt.timestamp()
    elif expiry is None or (isinstance(expiry, (int, float)) and not isinstance(expiry, bool)):
        expires_at = expiry
    else:
        raise TokenDecodeError(str(path), f"Invalid expiry {expiry!r}")

    return {
        "access_token": token_data["token"],
        "refresh_token": token_data.get("refresh_token"),
        "token_type": token_data.get("type") or "Bearer",
        "expires_at": expires_at,
        "scope": " ".join(scopes),
    }


def save_token(
    path: str | Path,
    token: dict[str, Any],
    client_id: str | None = None,
    client_secret: str | None = None,
    token_uri: str = TOKEN_URI,
) -> None:
    """Write a token to disk, readable and writable by the owner only.

    Raises:
        TokenSaveError: If the file cannot be opened or written.
    """
    path = Path(path)
    google_token = {
        "token": token["access_token"],
        "refresh_token": token.get("refresh_token"),
        "token_uri": token_uri,
        "client_id": client_id,
        "client_secret": client_secret,
        "scopes": (token.get("scope") or "").split(),
        "type": token.get("token_type", "Bearer"),
        "expiry": _format_expiry(token.get("expires_at")),
        "_class": "google.oauth2.credentials.Credentials",
    }

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(google_token, f, indent=2)
        os.chmod(path, 0o600)
    except OSError as e:
        raise TokenSaveError(str(path), f"Unable to cache oauth token ({e})") from e

    logger.info(f"Token saved to {path}")


def _format_expiry(expires_at: float | None) -> str | None:
    """Render epoch seconds the way google-auth serializes ``expiry``."""
    if expires_at is None:
        return None
    return datetime.fromtimestamp(expires_at, timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
