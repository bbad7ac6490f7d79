"""Factory for the configured entity store gateway."""

from ..config import settings
from ..logging import get_logger
from .base import EntityGateway
from .memory import MemoryEntityGateway

logger = get_logger(__name__)

_gateway: EntityGateway | None = None


def create_gateway(backend: str | None = None) -> EntityGateway:
    """Build a gateway for ``backend`` (defaults to ``settings.store_backend``)."""
    backend = (backend or settings.store_backend).lower()

    if backend == "memory":
        logger.info("Using in-memory entity store")
        return MemoryEntityGateway()
    if backend == "sql":
        from .sql import SqlEntityGateway

        logger.info("Using SQL entity store")
        return SqlEntityGateway()

    raise ValueError(f"Unsupported store backend: {backend}")


def get_gateway() -> EntityGateway:
    """Return the process-wide gateway, creating it on first use."""
    global _gateway
    if _gateway is None:
        _gateway = create_gateway()
    return _gateway


def set_gateway(gateway: EntityGateway | None) -> None:
    """Replace the process-wide gateway (used by tests and the app lifespan)."""
    global _gateway
    _gateway = gateway
