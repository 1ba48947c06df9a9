"""Runtime configuration.

Files are resolved relative to the working directory unless overridden:
    credentials.json - Google OAuth client credentials (required)
    token.json       - cached OAuth token (created on first authorization)
    .env             - optional overrides, loaded by the CLI

Environment variables:
    CALENDAR_CSV_CREDENTIALS - path to the OAuth client credentials file
    CALENDAR_CSV_TOKEN       - path to the cached token file

Command-line flags take precedence over environment variables.
"""

import os
from pathlib import Path

ENV_FILE = Path(".env")
DEFAULT_CREDENTIALS_FILE = Path("credentials.json")
DEFAULT_TOKEN_FILE = Path("token.json")

CREDENTIALS_ENV_VAR = "CALENDAR_CSV_CREDENTIALS"
TOKEN_ENV_VAR = "CALENDAR_CSV_TOKEN"

DEFAULT_CALENDAR_ID = "primary"
DEFAULT_LIMIT = 250
# Deadline for the whole paginated query, in seconds
DEFAULT_TIMEOUT = 10.0
# Events requested per round trip
PAGE_SIZE = 10


def credentials_path() -> Path:
    """Path to the OAuth client credentials file."""
    return Path(os.environ.get(CREDENTIALS_ENV_VAR) or DEFAULT_CREDENTIALS_FILE)


def token_path() -> Path:
    """Path to the cached OAuth token file."""
    return Path(os.environ.get(TOKEN_ENV_VAR) or DEFAULT_TOKEN_FILE)


def load_env_file(env_path: Path = ENV_FILE) -> dict[str, str]:
    """Load environment variables from a file.

    Args:
        env_path: Path to .env file.

    Returns:
        Dictionary of loaded variables.
    """
    loaded = {}
    if not env_path.exists():
        return loaded

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            # Existing environment wins
            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded
