"""GigaChat OAuth token exchange"""

import logging
import uuid
from typing import Optional

import httpx

from settings import GIGACHAT_AUTH_URL, GIGACHAT_SCOPE
from .exceptions import AuthenticationError
from .models import CachedCredential, normalize_expires_at

logger = logging.getLogger(__name__)


def build_auth_headers(credentials: str, rq_uid: Optional[str] = None) -> dict:
    """Build headers for the token request

    Args:
        credentials: Base64 authorization key ("client_id:client_secret" encoded)
        rq_uid: Correlation ID; a fresh uuid4 when omitted

    Returns:
        Header dict for the OAuth request
    """
    return {
        "Content-Type": "application/x-www-form-urlencoded",
        "Accept": "application/json",
        "Authorization": f"Basic {credentials}",
        "RqUID": rq_uid or str(uuid.uuid4()),
    }


async def request_access_token(
    credentials: str,
    auth_url: str = GIGACHAT_AUTH_URL,
    scope: str = GIGACHAT_SCOPE,
    http_client: Optional[httpx.AsyncClient] = None,
    verify: bool = True,
) -> CachedCredential:
    """Exchange the authorization key for a bearer token

    Args:
        credentials: Base64 authorization key
        auth_url: OAuth endpoint
        scope: API scope requested
        http_client: Client to send the request with; a temporary one is used when None
        verify: TLS verification for the temporary client

    Returns:
        Freshly issued credential

    Raises:
        AuthenticationError: If the exchange fails or the response is unusable
    """
    headers = build_auth_headers(credentials)
    logger.info(f"Requesting GigaChat access token (scope={scope}, RqUID={headers['RqUID']})")

    try:
        if http_client is not None:
            response = await http_client.post(auth_url, data={"scope": scope}, headers=headers)
        else:
            async with httpx.AsyncClient(verify=verify) as client:
                response = await client.post(auth_url, data={"scope": scope}, headers=headers)
    except httpx.HTTPError as e:
        logger.error(f"Token request failed with exception: {e}")
        raise AuthenticationError(None, f"{type(e).__name__}: {e}") from e

    if not response.is_success:
        logger.error(f"Token request failed with status {response.status_code}: {response.text}")
        raise AuthenticationError(response.status_code, response.reason_phrase)

    try:
        token_data = response.json()
        credential = CachedCredential(
            token=token_data["access_token"],
            expires_at=normalize_expires_at(float(token_data["expires_at"])),
        )
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Token response could not be parsed: {e}")
        raise AuthenticationError(response.status_code, f"Malformed token response: {e}") from e

    logger.info(f"Obtained GigaChat access token, expires at {credential.expires_at:.0f}")
    return credential
