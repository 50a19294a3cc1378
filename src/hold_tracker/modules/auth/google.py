"""
Google Sign-In

Verifies a Google ID token by asking Google's tokeninfo endpoint, then checks
the audience, the verified-email flag and (optionally) the email domain.
"""

import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
GOOGLE_TIMEOUT_SECONDS = 10.0


class GoogleTokenError(Exception):
    """The ID token was rejected by Google or failed one of our checks."""


@dataclass
class GoogleIdentity:
    email: str
    name: str


async def verify_google_id_token(
    id_token: str,
    client_id: str,
    allowed_domain: str | None = None,
) -> GoogleIdentity:
    """
    Verify a Google ID token.

    Args:
        id_token: The credential returned by Google Sign-In in the browser
        client_id: Our OAuth client id; must equal the token audience
        allowed_domain: If set, the email must belong to this domain

    Returns:
        The verified identity

    Raises:
        GoogleTokenError: If the token is invalid or fails a check
    """
    try:
        async with httpx.AsyncClient(timeout=GOOGLE_TIMEOUT_SECONDS) as client:
            response = await client.get(GOOGLE_TOKENINFO_URL, params={"id_token": id_token})
    except httpx.HTTPError as e:
        logger.error(f"Google tokeninfo request failed: {e}")
        raise GoogleTokenError("Could not reach Google to verify the token") from e

    if response.status_code != 200:
        raise GoogleTokenError("Google rejected the ID token")

    claims = response.json()

    if claims.get("aud") != client_id:
        raise GoogleTokenError("ID token was issued for a different client")

    email = (claims.get("email") or "").strip().lower()
    if not email or str(claims.get("email_verified", "")).lower() != "true":
        raise GoogleTokenError("Google account email is not verified")

    if allowed_domain and not email.endswith(f"@{allowed_domain.lower()}"):
        raise GoogleTokenError(f"Only {allowed_domain} accounts may sign in")

    return GoogleIdentity(email=email, name=claims.get("name") or email.split("@")[0])
