"""Compensating actions for multi-step mutations without a transaction."""

from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import Any

from ..logging import get_logger

logger = get_logger(__name__)

UndoFn = Callable[[], Awaitable[Any]]


class CompensationStack:
    """Record an undo step after each successful write.

    Used as an async context manager: if the block raises, undo steps run in
    reverse order and the original exception is re-raised. An undo that fails
    is logged and skipped; it never replaces the original error.

        async with CompensationStack("create_student_with_user") as undo:
            user = await gateway.create(EntityKind.USER, doc)
            undo.push("delete user", lambda: gateway.delete_one(EntityKind.USER, user["id"]))
    """

    def __init__(self, operation: str):
        self.operation = operation
        self._steps: list[tuple[str, UndoFn]] = []

    def push(self, description: str, undo: UndoFn) -> None:
        self._steps.append((description, undo))

    async def unwind(self) -> list[str]:
        """Run every recorded undo step in reverse; return descriptions of failed ones."""
        failed: list[str] = []
        while self._steps:
            description, undo = self._steps.pop()
            try:
                await undo()
                logger.info("Compensation applied", operation=self.operation, step=description)
            except Exception as e:
                failed.append(description)
                logger.error(
                    "Compensation failed",
                    operation=self.operation,
                    step=description,
                    error=str(e),
                )
        return failed

    async def __aenter__(self) -> "CompensationStack":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc is None:
            self._steps.clear()
            return False
        logger.warning(
            "Rolling back partial mutation",
            operation=self.operation,
            steps=len(self._steps),
            error=str(exc),
        )
        await self.unwind()
        return False
