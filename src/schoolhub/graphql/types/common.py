"""
Shared GraphQL enum definitions
"""

from enum import Enum

import strawberry


@strawberry.enum
class EntityStatus(Enum):
    """Lifecycle status of a user, school or student."""

    ACTIVE = "active"
    DELETED = "deleted"
