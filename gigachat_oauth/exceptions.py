"""Errors raised by the GigaChat OAuth token exchange"""

from typing import Optional


class AuthenticationError(Exception):
    """The OAuth token exchange failed

    Fatal to the current call and never retried by the token cache.

    Attributes:
        status_code: HTTP status of the auth response, None for transport failures
        detail: Status text or failure description
    """

    def __init__(self, status_code: Optional[int], detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        if status_code is not None:
            message = f"Failed to get auth token: {status_code} {detail}".rstrip()
        else:
            message = f"Failed to get auth token: {detail}"
        super().__init__(message)
