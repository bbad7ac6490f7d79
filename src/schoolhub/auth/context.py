"""Authentication context for request handling."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from .adapters.base import Principal


@dataclass
class ActorContext:
    """Who is performing the current GraphQL operation."""

    user_id: UUID | None
    principal: Principal | None = None
    token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def anonymous(cls) -> ActorContext:
        return cls(user_id=None)
