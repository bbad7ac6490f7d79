"""No-auth adapter for local development without authentication."""

from __future__ import annotations

from ...config import settings
from ...logging import get_logger
from .base import AuthenticationError, Principal

logger = get_logger(__name__)


class NoAuthAdapter:
    """
    Development adapter: the bearer token *is* the acting user's id.

    WARNING: Only use this in development environments!
    """

    def __init__(self) -> None:
        if settings.environment.lower() in ("production", "prod"):
            raise RuntimeError(
                "NoAuthAdapter cannot be used in production environments. "
                "Please configure a proper authentication provider."
            )
        logger.warning(
            "NoAuthAdapter is active - bearer tokens are trusted as user ids",
            environment=settings.environment,
        )

    async def verify_token(self, token: str) -> Principal:
        if not token:
            raise AuthenticationError("Token required (even in no-auth mode)")
        return Principal(provider="none", subject=token)
