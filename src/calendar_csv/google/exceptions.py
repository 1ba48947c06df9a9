"""Google authentication exceptions."""

from calendar_csv.exceptions import AuthError, ConfigError


class GoogleAuthError(AuthError):
    """Base exception for Google authentication errors."""

    pass


class ClientSecretsError(ConfigError):
    """Raised when the OAuth client credentials file cannot be read or parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Unable to parse client secret file {path}: {reason}")


class CredentialsNotFoundError(ClientSecretsError):
    """Raised when OAuth credentials file is not found."""

    def __init__(self, path: str):
        self.path = path
        ConfigError.__init__(
            self,
            f"Credentials file not found at {path}. "
            "Please download OAuth credentials from Google Cloud Console.",
        )


class TokenError(GoogleAuthError):
    """Raised when there's an issue with the OAuth token."""

    pass


class ScopeMismatchError(GoogleAuthError):
    """Raised when token scopes don't match required scopes."""

    def __init__(self, missing_scopes: set[str]):
        self.missing_scopes = missing_scopes
        super().__init__(f"Token missing required scopes: {missing_scopes}")


class TokenStoreError(ConfigError):
    """Base exception for cached token file errors."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"{reason}: {path}")


class TokenNotFoundError(TokenStoreError):
    """Raised when no cached token file exists."""

    def __init__(self, path: str):
        super().__init__(path, "No cached token")


class TokenDecodeError(TokenStoreError):
    """Raised when the cached token file is malformed."""


class TokenSaveError(TokenStoreError):
    """Raised when the token file cannot be written."""
