"""
Fire-and-forget persistence of resolver failures.

The sink never raises into the caller: a failed write is logged and dropped.
"""

import asyncio
import dataclasses
import json
import traceback
from datetime import UTC, datetime
from typing import Any

from ..logging import get_logger
from ..store.base import EntityGateway, EntityKind

logger = get_logger(__name__)

SENSITIVE_KEYS = {
    "password",
    "password_hash",
    "token",
    "secret",
    "authorization",
    "access_token",
    "refresh_token",
    "jwt",
}


def sanitize_parameters(value: Any) -> Any:
    """Redact sensitive keys at any depth; dataclass inputs become dicts."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)
    if isinstance(value, dict):
        return {
            key: "[REDACTED]"
            if any(sensitive in str(key).lower() for sensitive in SENSITIVE_KEYS)
            else sanitize_parameters(item)
            for key, item in value.items()
        }
    if isinstance(value, list | tuple):
        return [sanitize_parameters(item) for item in value]
    return value


def serialize_parameters(parameters: dict[str, Any]) -> str:
    return json.dumps(sanitize_parameters(parameters), default=str, sort_keys=True)


class ErrorLogSink:
    """Schedules ``error_log`` records on the running event loop."""

    def __init__(self, gateway: EntityGateway, enabled: bool = True):
        self.gateway = gateway
        self.enabled = enabled
        self._tasks: set[asyncio.Task[None]] = set()

    def log_error(
        self,
        error: BaseException,
        function_name: str,
        path: str,
        parameter_input: dict[str, Any] | None = None,
    ) -> asyncio.Task[None] | None:
        """Queue an error log write and return immediately."""
        if not self.enabled:
            return None

        doc = {
            "error_stack": "".join(traceback.format_exception(error)),
            "function_name": function_name,
            "path": path,
            "parameter_input": serialize_parameters(parameter_input or {}),
            "created_at": datetime.now(UTC),
        }
        task = asyncio.get_running_loop().create_task(self._write(doc))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _write(self, doc: dict[str, Any]) -> None:
        try:
            await self.gateway.create(EntityKind.ERROR_LOG, doc)
        except Exception as e:
            logger.error(
                "Failed to persist error log",
                function_name=doc["function_name"],
                error=str(e),
            )

    async def drain(self) -> None:
        """Wait for queued writes (shutdown and tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks))
