import asyncio
import logging
from typing import Awaitable, Dict, Optional, Set, TypeVar

from ..exceptions import RequestCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")

CANCELLED = "cancelled"
SUPERSEDED = "superseded"
TIMED_OUT = "timed out"


class CancellationHandle:
    """Cancellation token for one in-flight request.

    Work started through ``run`` is bound to the handle: ``cancel()`` cancels
    the underlying task, which aborts whatever transport it is awaiting.
    """

    def __init__(self, request_id: str):
        self.request_id = request_id
        self.reason: Optional[str] = None
        self._tasks: Set[asyncio.Future] = set()

    @property
    def cancelled(self) -> bool:
        return self.reason is not None

    def cancel(self, reason: str = CANCELLED) -> bool:
        """Signal cancellation. Returns False if the handle was already cancelled."""
        if self.cancelled:
            return False
        self.reason = reason
        for task in list(self._tasks):
            task.cancel()
        return True

    async def run(self, awaitable: Awaitable[T], timeout: Optional[float] = None) -> T:
        """Await ``awaitable`` as a task that this handle can cancel.

        ``timeout`` (seconds) cancels through the same handle. Either way the
        caller sees RequestCancelled.
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise RequestCancelled(f"Request {self.request_id} {self.reason}")

        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        timer = None
        if timeout is not None:
            timer = asyncio.get_running_loop().call_later(timeout, self.cancel, TIMED_OUT)
        try:
            return await task
        except asyncio.CancelledError:
            if not self.cancelled:
                raise
            raise RequestCancelled(f"Request {self.request_id} {self.reason}") from None
        finally:
            if timer is not None:
                timer.cancel()
            self._tasks.discard(task)


class RequestCoordinator:
    """Keeps at most one in-flight request per id."""

    def __init__(self):
        self._active: Dict[str, CancellationHandle] = {}

    def __contains__(self, request_id: str) -> bool:
        return request_id in self._active

    def __len__(self) -> int:
        return len(self._active)

    def active(self, request_id: str) -> Optional[CancellationHandle]:
        return self._active.get(request_id)

    def begin(self, request_id: str) -> CancellationHandle:
        """Register a new attempt, cancelling any earlier one with the same id."""
        previous = self._active.pop(request_id, None)
        if previous is not None:
            previous.cancel(SUPERSEDED)
            logger.info(f"Request {request_id} superseded by a newer attempt")
        handle = CancellationHandle(request_id)
        self._active[request_id] = handle
        return handle

    def cancel(self, request_id: str) -> None:
        """Cancel and forget ``request_id``; unknown ids are ignored."""
        handle = self._active.pop(request_id, None)
        if handle is not None:
            handle.cancel()

    def finish(self, handle: CancellationHandle) -> None:
        """Release bookkeeping for ``handle`` unless a newer attempt owns the id."""
        if self._active.get(handle.request_id) is handle:
            del self._active[handle.request_id]
