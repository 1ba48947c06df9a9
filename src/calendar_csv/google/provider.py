"""Obtain usable Google credentials, authorizing interactively if needed."""

from __future__ import annotations

import logging
import sys
import webbrowser
from collections.abc import Callable
from typing import TextIO

from google.oauth2.credentials import Credentials as GoogleCredentials

from calendar_csv.google.exceptions import TokenError
from calendar_csv.google.oauth import GoogleOAuth

logger = logging.getLogger(__name__)


def authorize_interactively(
    auth: GoogleOAuth,
    read_line: Callable[[], str] = input,
    open_browser: bool = True,
    stream: TextIO | None = None,
) -> dict:
    """Run the one-time console authorization flow.

    Prints the authorization URL, blocks on a single line of input holding
    the authorization code (or the full redirect URL), exchanges it and
    caches the resulting token.

    Args:
        auth: OAuth manager whose token should be replaced.
        read_line: Returns one line of user input.
        open_browser: Also open the URL in a browser.
        stream: Where prompts are written. Defaults to stderr so stdout
            only carries exported rows.

    Returns:
        The fetched OAuth token dict.

    Raises:
        TokenError: If no code is entered or the exchange fails.
    """
    stream = stream or sys.stderr

    url = auth.get_authorization_url()
    print(
        "Go to the following link in your browser then type the authorization code:",
        file=stream,
    )
    print(url, file=stream)
    if open_browser:
        webbrowser.open(url)

    try:
        code = read_line().strip()
    except EOFError as e:
        raise TokenError("Unable to read authorization code") from e
    if not code:
        raise TokenError("No authorization code provided")

    token = auth.fetch_token(code)
    print(f"Saving credential file to: {auth.token_path}", file=stream)
    return token


def obtain_credentials(
    auth: GoogleOAuth,
    read_line: Callable[[], str] = input,
    open_browser: bool = True,
    stream: TextIO | None = None,
) -> GoogleCredentials:
    """Return valid credentials from the cache or a fresh authorization.

    A cached token that is missing, malformed, lacks the required scopes
    or cannot be refreshed leads to the interactive flow. A failure in
    that flow is final.
    """
    if auth.is_authorized():
        try:
            return auth.get_credentials()
        except TokenError as e:
            logger.warning(f"Cached token unusable, re-authorizing: {e}")

    authorize_interactively(auth, read_line=read_line, open_browser=open_browser, stream=stream)
    return auth.get_credentials()
