"""Resolve the acting user from request headers."""

from __future__ import annotations

from uuid import UUID

from ..logging import get_logger
from .adapters.base import AuthAdapter, AuthenticationError
from .context import ActorContext
from .factory import get_auth_adapter_cached

logger = get_logger(__name__)


async def get_actor_context(
    authorization: str | None, adapter: AuthAdapter | None = None
) -> ActorContext:
    """
    Build the ``ActorContext`` for a request.

    Missing or invalid credentials yield an anonymous context; mutations then
    reject it with ``Unauthorized``.
    """
    if not authorization:
        return ActorContext.anonymous()

    if not authorization.startswith("Bearer "):
        logger.warning("Invalid authorization format received")
        return ActorContext.anonymous()

    token = authorization[7:].strip()
    adapter = adapter or get_auth_adapter_cached()

    try:
        principal = await adapter.verify_token(token)
        user_id = UUID(principal["subject"])
    except AuthenticationError as e:
        logger.warning("Authentication failed", error=str(e))
        return ActorContext.anonymous()
    except ValueError:
        logger.warning("Token subject is not a user id")
        return ActorContext.anonymous()

    return ActorContext(user_id=user_id, principal=principal, token=token)
