"""
ResponseCorrelator - hands each reply to the caller waiting on its id.

Every outbound request registers a future under its id before the frame is
sent. The receive loop resolves that future with ``deliver`` (or ``fail``)
and the caller suspended in ``await_result`` resumes and consumes the slot.

All methods must be called from the event loop that owns the connection;
the loop serialises access to the slot table.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .errors import TimeoutError

__all__ = ["ResponseCorrelator"]

logger = logging.getLogger(__name__)


class ResponseCorrelator:
    """
    Table of pending requests keyed by request id.

    Example:
        correlator = ResponseCorrelator()
        correlator.register("7")
        # ... receive loop calls correlator.deliver("7", result)
        value = await correlator.await_result("7", timeout=30.0)
    """

    __slots__ = ("_slots",)

    def __init__(self) -> None:
        self._slots: dict[str, asyncio.Future[Any]] = {}

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._slots

    def register(self, request_id: str) -> asyncio.Future[Any]:
        """Create the slot for ``request_id``; must precede sending the request."""
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._slots[request_id] = future
        return future

    def is_pending(self, request_id: str) -> bool:
        """True while a registered request has not been resolved."""
        future = self._slots.get(request_id)
        return future is not None and not future.done()

    def pending_ids(self) -> list[str]:
        return [rid for rid, fut in self._slots.items() if not fut.done()]

    def deliver(self, request_id: str, value: Any) -> bool:
        """
        Resolve the slot for ``request_id`` with ``value``.

        Returns:
            False if nobody is waiting for that id (never requested, already
            consumed or timed out); the value is dropped.
        """
        future = self._resolvable(request_id)
        if future is None:
            return False
        future.set_result(value)
        return True

    def fail(self, request_id: str, error: BaseException) -> bool:
        """Resolve the slot for ``request_id`` with an exception."""
        future = self._resolvable(request_id)
        if future is None:
            return False
        future.set_exception(error)
        return True

    def discard(self, request_id: str) -> None:
        """Drop a registration whose request never went out."""
        future = self._slots.pop(request_id, None)
        if future is not None and not future.done():
            future.cancel()

    def fail_all(self, error: BaseException) -> int:
        """Fail every unresolved slot; returns how many were failed."""
        failed = 0
        for future in self._slots.values():
            if not future.done():
                future.set_exception(error)
                failed += 1
        self._slots.clear()
        return failed

    async def await_result(self, request_id: str, timeout: float | None = None) -> Any:
        """
        Suspend until ``request_id`` is resolved, then consume its slot.

        Args:
            request_id: Id the request was registered under
            timeout: Seconds to wait; None waits indefinitely

        Raises:
            TimeoutError: If no reply arrived in time. The slot is removed,
                so a late reply is dropped.
        """
        future = self._slots.get(request_id)
        if future is None:
            future = self.register(request_id)

        try:
            await asyncio.wait([future], timeout=timeout)
            if not future.done():
                future.cancel()
                raise TimeoutError(
                    f"No reply for request {request_id} within {timeout}s",
                    timeout=timeout,
                )
            # A later delivery may have replaced the slot before this task resumed
            return self._slots.get(request_id, future).result()
        finally:
            self._slots.pop(request_id, None)

    def _resolvable(self, request_id: str) -> asyncio.Future[Any] | None:
        future = self._slots.get(request_id)
        if future is None or future.cancelled():
            logger.debug("Dropping reply for unknown request %s", request_id)
            return None

        if future.done():
            # Second reply before the caller consumed the first: last one wins
            logger.debug("Overwriting unconsumed reply for request %s", request_id)
            future = future.get_loop().create_future()
            self._slots[request_id] = future
        return future
