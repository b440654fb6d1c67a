"""Lifecycle-driven flush scheduling.

The coordinator is the only thing that ever triggers a flush.  It registers
with the extensions API, then loops on ``/event/next``:

- INVOKE: flush with a short fixed budget, whatever the invocation's own
  deadline says.  The sandbox is frozen once every extension is back in
  ``/event/next``.
- SHUTDOWN: flush with whatever time remains until the event deadline, then
  stop.  The host kills the process at that deadline.

Everything blocking is raced against a shared stop event, so a signal
unblocks the long-poll and abandons an in-flight flush.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from lambda_otel_exporter.shared.exceptions import ConfigError, NextEventError

from .models import EventType

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from lambda_otel_exporter.forwarder.forwarder import FlushResult

    from .client import ExtensionClient
    from .models import NextEventResponse, RegisterResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_INVOKE_FLUSH_TIMEOUT = 3.0
DEFAULT_POLL_ERROR_DELAY = 0.1


class CoordinatorState(str, Enum):
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"
    AWAITING_EVENT = "awaiting_event"
    HANDLING_INVOKE = "handling_invoke"
    HANDLING_SHUTDOWN = "handling_shutdown"
    TERMINATED = "terminated"


class LifecycleCoordinator:
    """Owns the register → poll → flush cycle of the extension."""

    def __init__(
        self,
        client: ExtensionClient | None,
        flush: Callable[[float], Awaitable[FlushResult]],
        *,
        stop_event: asyncio.Event,
        invoke_flush_timeout: float = DEFAULT_INVOKE_FLUSH_TIMEOUT,
        local_mode: bool = False,
        poll_error_delay: float = DEFAULT_POLL_ERROR_DELAY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the coordinator.

        Args:
            client: Extensions API client; may be None only in local mode
            flush: Coroutine function taking a budget in seconds
            stop_event: Shared cancellation signal; set on SIGINT/SIGTERM or after SHUTDOWN
            invoke_flush_timeout: Fixed flush budget after an INVOKE event
            local_mode: Skip registration and polling, just wait for ``stop_event``
            poll_error_delay: Pause before polling again after a failed poll
            clock: Epoch-seconds clock used against event deadlines
        """
        if client is None and not local_mode:
            raise ConfigError("An extensions API client is required outside local mode")
        self._client = client
        self._flush = flush
        self._stop = stop_event
        self._invoke_flush_timeout = invoke_flush_timeout
        self._local_mode = local_mode
        self._poll_error_delay = poll_error_delay
        self._clock = clock
        self.state = CoordinatorState.UNREGISTERED

    async def run(self) -> None:
        """Run until SHUTDOWN has been handled or the stop event is set.

        Raises:
            ExtensionRegistrationError: if registration fails.
        """
        if self._local_mode:
            logger.info("Local mode: not registering, waiting for a termination signal")
            await self._stop.wait()
            self.state = CoordinatorState.TERMINATED
            return

        await self.register()

        while not self._stop.is_set():
            self.state = CoordinatorState.AWAITING_EVENT
            try:
                event = await self._until_stopped(self._client.next_event())  # type: ignore[union-attr]
            except NextEventError as e:
                logger.warning("Error from next event: %s", e)
                if self._poll_error_delay > 0:
                    await self._until_stopped(asyncio.sleep(self._poll_error_delay))
                continue

            if event is None:
                break
            await self.handle_event(event)

        self.state = CoordinatorState.TERMINATED

    async def register(self) -> RegisterResponse:
        logger.debug("Registering extension")
        registration = await self._client.register()  # type: ignore[union-attr]
        self.state = CoordinatorState.REGISTERED
        logger.info("Registered for function %s", registration.function_name or "<unknown>")
        return registration

    def flush_budget(self, event: NextEventResponse) -> float:
        """Seconds the flush triggered by ``event`` may take."""
        if event.event_type is EventType.SHUTDOWN:
            return max(event.seconds_until_deadline(self._clock()), 0.0)
        return self._invoke_flush_timeout

    async def handle_event(self, event: NextEventResponse) -> None:
        logger.debug(
            "Received %s event: requestId=%s deadlineMs=%d",
            event.event_type.value,
            event.request_id,
            event.deadline_ms,
        )
        budget = self.flush_budget(event)

        if event.event_type is EventType.SHUTDOWN:
            self.state = CoordinatorState.HANDLING_SHUTDOWN
            if event.shutdown_reason:
                logger.info("Shutting down: %s", event.shutdown_reason)
            await self._run_flush(budget, "Failed to flush on shutdown")
            self.state = CoordinatorState.TERMINATED
            self._stop.set()
            return

        self.state = CoordinatorState.HANDLING_INVOKE
        await self._run_flush(budget, "Failed to flush")

    async def _run_flush(self, budget: float, failure_message: str) -> None:
        result = await self._until_stopped(self._flush(budget))
        if result is None:
            logger.warning("Flush abandoned, extension is stopping")
            return
        if not result.ok:
            logger.error("%s: %s", failure_message, result.error)

    async def _until_stopped(self, aw: Awaitable[T]) -> T | None:
        """Await ``aw`` unless the stop event fires first, in which case cancel it."""
        work: asyncio.Future[Any] = asyncio.ensure_future(aw)
        stopped = asyncio.ensure_future(self._stop.wait())
        try:
            await asyncio.wait({work, stopped}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopped.cancel()
            if not work.done():
                work.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await work

        if work.cancelled():
            return None
        return work.result()
