"""Authentication module for loading Outline credentials.

This module handles loading the Outline API token and endpoint from
environment variables using python-dotenv. It validates that the token is
present and raises an appropriate error if it is missing.
"""

import os
from typing import NamedTuple, Optional

from dotenv import load_dotenv

from .errors import InvalidCredentialsError

DEFAULT_API_URL = "https://app.getoutline.com/api"


class Credentials(NamedTuple):
    """Outline API credentials."""
    api_url: str
    api_token: str


class Authenticator:
    """Loads and validates Outline credentials from environment variables.

    Credentials are loaded from a .env file using python-dotenv and are never
    cached or logged.

    Environment variables:
        OUTLINE_API_TOKEN: API token (required)
        OUTLINE_API_URL: API base URL (optional, overrides the configured URL)

    Example:
        >>> auth = Authenticator(default_api_url="https://docs.example.com/api")
        >>> creds = auth.get_credentials()
    """

    def __init__(self, default_api_url: Optional[str] = None):
        """Initialize the authenticator by loading environment variables from .env file.

        Args:
            default_api_url: API URL to use when OUTLINE_API_URL is not set
        """
        load_dotenv()
        self._default_api_url = default_api_url or DEFAULT_API_URL

    def get_credentials(self) -> Credentials:
        """Get Outline credentials from environment variables.

        Returns:
            Credentials: A named tuple containing api_url and api_token

        Raises:
            InvalidCredentialsError: If OUTLINE_API_TOKEN is missing
        """
        api_url = os.getenv('OUTLINE_API_URL') or self._default_api_url
        api_token = os.getenv('OUTLINE_API_TOKEN')

        if not api_token:
            raise InvalidCredentialsError(endpoint=api_url)

        return Credentials(api_url=api_url.rstrip('/'), api_token=api_token)
