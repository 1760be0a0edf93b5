"""
Reconciliation context.

Carries the deadline of a reconciliation pass. Every store call made during
the pass goes through ``ReconcileContext.bounded`` so that a slow backend
surfaces as a retryable DeadlineExceededError instead of blocking the pass.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Optional, TypeVar

from transportca.constants import DEFAULT_OPERATION_TIMEOUT_SECONDS
from transportca.exceptions import DeadlineExceededError

T = TypeVar("T")


@dataclass(frozen=True)
class ReconcileContext:
    """Deadline for a single reconciliation pass.

    Attributes:
        deadline: ``time.monotonic()`` value after which the pass is late,
            or None for no pass-wide deadline.
        operation_timeout: Upper bound for any single store operation.
    """

    deadline: Optional[float] = None
    operation_timeout: float = DEFAULT_OPERATION_TIMEOUT_SECONDS

    @classmethod
    def with_timeout(
        cls,
        seconds: float,
        operation_timeout: float = DEFAULT_OPERATION_TIMEOUT_SECONDS,
    ) -> "ReconcileContext":
        return cls(deadline=time.monotonic() + seconds, operation_timeout=operation_timeout)

    def remaining(self) -> float:
        """Seconds left for the next operation."""
        if self.deadline is None:
            return self.operation_timeout
        return min(self.operation_timeout, self.deadline - time.monotonic())

    async def bounded(self, awaitable: Awaitable[T], operation: str = "operation") -> T:
        """Await ``awaitable`` within the remaining time.

        Raises:
            DeadlineExceededError: If the deadline passes first.
        """
        remaining = self.remaining()
        if remaining <= 0:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise DeadlineExceededError(f"deadline exceeded before {operation}")
        try:
            return await asyncio.wait_for(awaitable, timeout=remaining)
        except asyncio.TimeoutError as exc:
            raise DeadlineExceededError(
                f"{operation} did not complete within {remaining:.2f}s"
            ) from exc
