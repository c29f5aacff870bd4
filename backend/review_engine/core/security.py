"""Merchant authentication - platform session token verification.

The embedded admin sends the platform-issued session token as a bearer
token. It is an HS256 JWT signed with the app's API secret whose ``dest``
claim is the shop's admin URL (``https://<shop>.myshopify.com``).
"""

from typing import Any
from urllib.parse import urlparse

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from review_engine.config import settings
from review_engine.core.exceptions import UnauthorizedError
from review_engine.core.logging import bind_context, get_logger
from review_engine.core.tenant import is_storefront_host

logger = get_logger(__name__)

# HTTP Bearer token scheme
bearer_scheme = HTTPBearer(auto_error=False)

SESSION_TOKEN_ALGORITHM = "HS256"


class SessionToken:
    """Parsed session token payload."""

    def __init__(self, payload: dict[str, Any]) -> None:
        self.dest: str = payload["dest"]
        self.issuer: str | None = payload.get("iss")
        self.subject: str | None = payload.get("sub")
        self.session_id: str | None = payload.get("sid")
        self.shop: str = urlparse(self.dest).netloc.lower()


def decode_session_token(token: str) -> SessionToken:
    """Decode and validate a session token.

    Raises:
        UnauthorizedError: When no secret is configured, or on a bad
            signature, expired token, wrong audience, an issuer on another
            shop, or a destination outside the storefront domain.
    """
    if not settings.shopify_api_secret:
        logger.error("session_token_secret_missing")
        raise UnauthorizedError("Merchant authentication is not configured")

    options = {"verify_aud": bool(settings.shopify_api_key)}
    try:
        payload = jwt.decode(
            token,
            settings.shopify_api_secret,
            algorithms=[SESSION_TOKEN_ALGORITHM],
            audience=settings.shopify_api_key or None,
            options=options,
        )
    except ExpiredSignatureError:
        raise UnauthorizedError("Session token has expired")
    except JWTError:
        raise UnauthorizedError("Invalid session token")

    if "dest" not in payload:
        raise UnauthorizedError("Invalid session token")

    session = SessionToken(payload)
    if not is_storefront_host(session.shop):
        logger.warning("session_token_foreign_dest", dest=session.dest)
        raise UnauthorizedError("Invalid session token")

    # The admin URL in iss must belong to the same shop as dest
    if session.issuer is None or urlparse(session.issuer).netloc.lower() != session.shop:
        logger.warning("session_token_issuer_mismatch", dest=session.dest, iss=session.issuer)
        raise UnauthorizedError("Invalid session token")

    return session


async def get_current_shop(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Dependency: the authenticated merchant's shop domain.

    Verified on every call; nothing is cached between requests.
    """
    if credentials is None:
        raise UnauthorizedError("Unauthorized")

    session = decode_session_token(credentials.credentials)
    bind_context(
        shop=session.shop,
        merchant_user=session.subject,
        merchant_session=session.session_id,
    )
    return session.shop
