"""Lazy, single-flight initialisation of an expensive client handle.

The first caller starts one background attempt; every caller that arrives
while it runs awaits the same attempt and sees the same handle or the same
exception. A successful handle is cached. A failed or timed-out attempt leaves
the initializer uninitialised so the next call starts over.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

from core.event_log import BoundedEventLog
from core.exceptions import DependencyUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InitializationState(str, Enum):
    UNINITIALIZED = "uninitialized"
    IN_FLIGHT = "in_flight"
    READY = "ready"


class SingleFlightInitializer(Generic[T]):
    """Create a handle at most once at a time and cache it once it exists.

    Args:
        factory: Async callable producing the handle. May raise.
        name: Human-readable dependency name used in events and errors.
        timeout: Ceiling for one attempt, in seconds. An attempt exceeding it
            counts as failed.
        event_log: Where ``initialized`` / ``initialization_failed`` go.
        describe: Builds the ``initialized`` payload from the handle.
    """

    def __init__(
        self,
        factory: Callable[[], Awaitable[T]],
        *,
        name: str,
        timeout: float = 5.0,
        event_log: Optional[BoundedEventLog] = None,
        describe: Optional[Callable[[T], Dict[str, Any]]] = None,
    ):
        self._factory = factory
        self.name = name
        self.timeout = timeout
        self._event_log = event_log
        self._describe = describe or (lambda handle: {})
        self._handle: Optional[T] = None
        self._in_flight: Optional[asyncio.Task] = None

    @property
    def state(self) -> InitializationState:
        if self._handle is not None:
            return InitializationState.READY
        if self._in_flight is not None:
            return InitializationState.IN_FLIGHT
        return InitializationState.UNINITIALIZED

    @property
    def handle(self) -> Optional[T]:
        return self._handle

    async def ensure(self) -> T:
        """Return the handle, joining or starting the shared attempt if needed.

        Raises:
            DependencyUnavailable: The attempt failed or hit its timeout.
        """
        if self._handle is not None:
            return self._handle
        return await asyncio.shield(self._start())

    async def ensure_within(self, timeout: float) -> T:
        """Like :meth:`ensure`, but stop waiting after ``timeout`` seconds.

        Giving up only affects this caller. The shared attempt keeps running
        and may still populate the cache for later callers.

        Raises:
            DependencyUnavailable: The attempt failed, or was not done in time.
        """
        if self._handle is not None:
            return self._handle
        try:
            return await asyncio.wait_for(asyncio.shield(self._start()), timeout)
        except asyncio.TimeoutError as e:
            raise DependencyUnavailable(
                self.name, f"{self.name} not ready after {timeout:g} seconds"
            ) from e

    def reset(self) -> Optional[T]:
        """Forget a ready handle so the next call initialises again.

        An attempt already in flight is left alone. Returns the dropped handle
        so the owner can release it.
        """
        handle, self._handle = self._handle, None
        if handle is not None:
            self._record("reset", {})
        return handle

    async def close(self) -> Optional[T]:
        """Cancel an attempt in flight, then forget the handle.

        Call this before releasing whatever the factory depends on. Callers
        waiting on the cancelled attempt see ``asyncio.CancelledError``.
        """
        task = self._in_flight
        if task is not None:
            task.cancel()
            await asyncio.wait([task])
            if self._in_flight is task:
                # Cancelled before it ever ran, so its cleanup never did
                self._in_flight = None
        return self.reset()

    def _start(self) -> asyncio.Task:
        if self._in_flight is None:
            task = asyncio.create_task(self._attempt(), name=f"init-{self.name}")
            task.add_done_callback(self._consume_outcome)
            self._in_flight = task
        return self._in_flight

    async def _attempt(self) -> T:
        try:
            handle = await asyncio.wait_for(self._factory(), timeout=self.timeout)
        except asyncio.TimeoutError:
            error = DependencyUnavailable(
                self.name,
                f"{self.name} initialization timeout after {self.timeout:g} seconds",
            )
            self._record("initialization_failed", {"error": error.message})
            raise error from None
        except Exception as e:
            message = str(e) or type(e).__name__
            self._record("initialization_failed", {"error": message})
            raise DependencyUnavailable(self.name, message) from e
        else:
            self._handle = handle
            self._record("initialized", self._describe(handle))
            return handle
        finally:
            self._in_flight = None

    def _record(self, event: str, payload: Dict[str, Any]) -> None:
        payload = {"client": self.name, **payload}
        if self._event_log is not None:
            self._event_log.record(event, payload)
        else:
            logger.info(f"{event}: {payload}")

    @staticmethod
    def _consume_outcome(task: asyncio.Task) -> None:
        # Failures are already in the event log; callers may all have timed out.
        if not task.cancelled():
            task.exception()
