"""Factory for creating auth adapters based on configuration."""

from __future__ import annotations

from functools import lru_cache

from ..config import settings
from .adapters.base import AuthAdapter
from .adapters.jwt import JWTAuthAdapter
from .adapters.none import NoAuthAdapter


def get_auth_adapter() -> AuthAdapter:
    """Create and return the configured auth adapter."""
    provider = settings.auth_provider.lower()

    if provider == "none":
        return NoAuthAdapter()

    if provider == "jwt":
        if not settings.jwt_secret:
            raise ValueError("JWT secret key is required. Set SCHOOLHUB_JWT_SECRET.")
        return JWTAuthAdapter(
            secret_key=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
        )

    raise ValueError(f"Unsupported auth provider: {provider}")


@lru_cache(maxsize=1)
def get_auth_adapter_cached() -> AuthAdapter:
    return get_auth_adapter()
