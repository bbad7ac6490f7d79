"""Entity store gateway and its backends."""

from .base import EntityGateway, EntityKind, Record, Status, Update, UpdateOne
from .factory import create_gateway, get_gateway, set_gateway
from .memory import MemoryEntityGateway

__all__ = [
    "EntityGateway",
    "EntityKind",
    "MemoryEntityGateway",
    "Record",
    "Status",
    "Update",
    "UpdateOne",
    "create_gateway",
    "get_gateway",
    "set_gateway",
]
