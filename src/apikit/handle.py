"""
Request handles.

Every public client operation returns a ``RequestHandle`` immediately. The
handle is awaitable (it resolves to the request's ``Result``) and cancellable.
The completion callback fires at most once, and never after ``cancel()``.
An exception raised by the callback is logged and does not change the
outcome.

All methods must be called on the event loop thread that created the handle;
delivery and cancellation are then serialized by the loop.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Callable, Generator, Generic, TypeVar

from apikit.exceptions import NetworkError
from apikit.logging import get_logger
from apikit.models.response import Result

logger = get_logger(__name__)

T = TypeVar("T")

Completion = Callable[[Result[Any]], None]


class HandleState(str, Enum):
    PENDING = "pending"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class RequestHandle(Generic[T]):
    """
    Cancellable, awaitable handle to one request.

    Example:
        >>> handle = client.request(endpoint, User, completion=on_done)
        >>> handle.cancel()              # on_done will never fire
        >>> result = await client.request(endpoint, User)
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        completion: Completion | None = None,
    ) -> None:
        self._future: asyncio.Future[Result[T]] = loop.create_future()
        self._completion = completion
        self._task: asyncio.Task[Any] | None = None
        self._state = HandleState.PENDING

    @property
    def state(self) -> HandleState:
        return self._state

    @property
    def pending(self) -> bool:
        return self._state is HandleState.PENDING

    @property
    def cancelled(self) -> bool:
        return self._state is HandleState.CANCELLED

    @property
    def done(self) -> bool:
        return self._state is not HandleState.PENDING

    def attach(self, task: asyncio.Task[Any]) -> None:
        """Bind the task running the request pipeline."""
        self._task = task

    def deliver(self, result: Result[T]) -> bool:
        """
        Deliver the terminal outcome.

        Returns:
            False when the handle was already delivered or cancelled.
        """
        if self._state is not HandleState.PENDING:
            return False
        self._state = HandleState.DELIVERED
        self._future.set_result(result)
        if self._completion is not None:
            try:
                self._completion(result)
            except Exception as e:
                logger.warning(f"Completion callback failed: {e}")
        return True

    def reject(self, error: NetworkError) -> bool:
        return self.deliver(Result.failure(error))

    def cancel(self) -> bool:
        """
        Cancel the request and suppress its completion.

        Safe to call any number of times.

        Returns:
            True only for the call that actually cancelled the request.
        """
        if self._state is not HandleState.PENDING:
            return False
        self._state = HandleState.CANCELLED
        self._future.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        return True

    def result(self) -> Result[T]:
        """Outcome of a delivered request; raises if pending or cancelled."""
        return self._future.result()

    def __await__(self) -> Generator[Any, None, Result[T]]:
        return self._future.__await__()

    def __repr__(self) -> str:
        return f"<RequestHandle {self._state.value}>"


__all__ = ["Completion", "HandleState", "RequestHandle"]
