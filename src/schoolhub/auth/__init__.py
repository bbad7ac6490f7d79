"""Authentication for SchoolHub."""

from .adapters.base import AuthAdapter, Principal
from .context import ActorContext
from .factory import get_auth_adapter
from .middleware import get_actor_context

__all__ = [
    "AuthAdapter",
    "Principal",
    "ActorContext",
    "get_actor_context",
    "get_auth_adapter",
]
