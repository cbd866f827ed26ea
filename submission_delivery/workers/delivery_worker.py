"""Delivery queue worker.

Scheduler for the delivery queue: calls drain() every poll interval
until stopped. The same cycle can be triggered externally (cron or the
POST /v1/delivery/drain endpoint) through run_once(), so deployments
without a long-running worker still deliver mail.

Each cycle runs under its own correlation id. A failing cycle is logged
and the loop carries on; queued jobs stay persisted either way.
"""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

from submission_delivery.application.services.delivery_queue_service import (
    DeliveryQueueService,
    DrainResult,
)
from submission_delivery.infrastructure.observability.correlation import (
    generate_correlation_id,
    set_correlation_id,
)

logger = structlog.get_logger(__name__)

ReminderSender = Callable[[], Awaitable[int]]


@dataclass
class WorkerStats:
    """Counters kept across cycles."""

    cycles: int = 0
    failed_cycles: int = 0
    jobs_sent: int = 0
    jobs_dead_lettered: int = 0
    reminders_queued: int = 0


class DeliveryQueueWorker:
    """Periodically drains the delivery queue."""

    def __init__(
        self,
        queue: DeliveryQueueService,
        poll_interval_seconds: float = 30.0,
        batch_size: int | None = None,
        reminder_sender: ReminderSender | None = None,
    ) -> None:
        """Initialize the worker.

        Args:
            queue: Delivery queue to drain.
            poll_interval_seconds: Pause between cycles.
            batch_size: Jobs per drain (queue default when None).
            reminder_sender: Optional callable queuing review reminders,
                run once per cycle before the drain.
        """
        self._queue = queue
        self._poll_interval = poll_interval_seconds
        self._batch_size = batch_size
        self._send_reminders = reminder_sender
        self._stop_event = asyncio.Event()
        self._running = False
        self.stats = WorkerStats()

    @property
    def running(self) -> bool:
        return self._running

    async def run_once(self) -> DrainResult:
        """Run a single cycle: reminders (if configured), then one drain."""
        correlation_id = generate_correlation_id()
        set_correlation_id(correlation_id)
        log = logger.bind(cycle=self.stats.cycles + 1)

        if self._send_reminders is not None:
            queued = await self._send_reminders()
            self.stats.reminders_queued += queued

        result = await self._queue.drain(self._batch_size)
        self.stats.cycles += 1
        self.stats.jobs_sent += result.sent
        self.stats.jobs_dead_lettered += result.dead_lettered
        if result.claimed:
            log.info("delivery_cycle_completed", **result.to_dict())
        return result

    async def run(self) -> None:
        """Drain every poll interval until stop() is called."""
        self._running = True
        self._stop_event.clear()
        logger.info("delivery_worker_started", poll_interval_seconds=self._poll_interval)

        try:
            while not self._stop_event.is_set():
                try:
                    await self.run_once()
                except Exception as error:
                    self.stats.failed_cycles += 1
                    logger.error(
                        "delivery_cycle_failed",
                        error=str(error),
                        error_class=type(error).__name__,
                    )

                try:
                    await asyncio.wait_for(
                        self._stop_event.wait(), timeout=self._poll_interval
                    )
                except asyncio.TimeoutError:
                    continue
        finally:
            self._running = False
            logger.info(
                "delivery_worker_stopped",
                cycles=self.stats.cycles,
                failed_cycles=self.stats.failed_cycles,
            )

    def stop(self) -> None:
        """Signal the worker to stop after the current cycle."""
        self._stop_event.set()


async def run_delivery_worker(worker: DeliveryQueueWorker) -> None:
    """Run a worker until SIGINT or SIGTERM."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, worker.stop)
    await worker.run()
