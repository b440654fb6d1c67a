"""Composition root: wires the batch forwarder to the lifecycle loop."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

from lambda_otel_exporter.extension import ExtensionClient, LifecycleCoordinator
from lambda_otel_exporter.forwarder import BatchForwarder, ForwarderConfig

if TYPE_CHECKING:
    from lambda_otel_exporter.settings import Settings

logger = logging.getLogger(__name__)

_SERVER_SHUTDOWN_TIMEOUT = 5.0


def _install_signal_handlers(stop_event: asyncio.Event) -> list[signal.Signals]:
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []

    for sig in (signal.SIGTERM, signal.SIGINT):

        def handle_signal(sig: signal.Signals = sig) -> None:
            logger.info("Exiting due to signal %s", sig.name)
            stop_event.set()

        try:
            loop.add_signal_handler(sig, handle_signal)
            installed.append(sig)
        except (NotImplementedError, ValueError, OSError) as e:
            logger.warning("Could not register %s handler: %s", sig.name, e)

    return installed


def _log_server_exit(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Batch forwarder server failed: %s", exc, exc_info=exc)


async def run_extension(
    settings: Settings, *, local_mode: bool = False, verbose: bool = False
) -> None:
    """Run the extension until SHUTDOWN has been flushed or a signal arrives.

    Raises:
        ConfigError: if the destination or runtime API is not configured.
        ExtensionRegistrationError: if the extension cannot register.
    """
    settings.validate_destination()

    extension_client: ExtensionClient | None = None
    if not local_mode:
        extension_client = ExtensionClient(settings.require_runtime_api(), settings.extension_name)

    forwarder = BatchForwarder(ForwarderConfig.from_settings(settings))
    stop_event = asyncio.Event()
    installed = _install_signal_handlers(stop_event)

    logger.debug("Starting batch forwarder")
    server_task = asyncio.create_task(forwarder.run(verbose=verbose), name="ingest-server")
    server_task.add_done_callback(_log_server_exit)

    coordinator = LifecycleCoordinator(
        extension_client,
        forwarder.flush,
        stop_event=stop_event,
        invoke_flush_timeout=settings.invoke_flush_timeout,
        local_mode=local_mode,
    )
    try:
        await coordinator.run()
    finally:
        stop_event.set()
        forwarder.stop()
        _, pending = await asyncio.wait({server_task}, timeout=_SERVER_SHUTDOWN_TIMEOUT)
        for task in pending:
            task.cancel()

        loop = asyncio.get_running_loop()
        for sig in installed:
            loop.remove_signal_handler(sig)

        await forwarder.aclose()
        if extension_client is not None:
            await extension_client.aclose()
        logger.debug("Extension stopped in state %s", coordinator.state.value)
