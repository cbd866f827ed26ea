#!/usr/bin/env python3
"""Run the delivery queue worker.

Drains the email queue every poll interval until SIGINT/SIGTERM. With
--once, runs a single cycle (reminders, then one drain) and exits, for
deployments that schedule the queue from cron.

Usage:
    python scripts/run_delivery_worker.py
    python scripts/run_delivery_worker.py --once
    python scripts/run_delivery_worker.py --poll-interval 10 --batch-size 25
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from dataclasses import replace
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

from submission_delivery.bootstrap.container import build_container  # noqa: E402
from submission_delivery.bootstrap.database import close_database_engine  # noqa: E402
from submission_delivery.bootstrap.logging import configure_structlog  # noqa: E402
from submission_delivery.config.pipeline_config import PipelineConfig  # noqa: E402
from submission_delivery.workers.delivery_worker import (  # noqa: E402
    DeliveryQueueWorker,
    run_delivery_worker,
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the delivery queue worker")
    parser.add_argument(
        "--once", action="store_true", help="Run a single cycle and exit"
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds between drains (default: DELIVERY_POLL_INTERVAL)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Jobs claimed per drain (default: DELIVERY_BATCH_SIZE)",
    )
    parser.add_argument(
        "--no-reminders",
        action="store_true",
        help="Do not queue review reminders",
    )
    return parser.parse_args(argv)


async def main(args: argparse.Namespace) -> int:
    config = PipelineConfig.from_environment()
    if args.poll_interval is not None or args.batch_size is not None:
        config = replace(
            config,
            queue=replace(
                config.queue,
                poll_interval_seconds=args.poll_interval
                or config.queue.poll_interval_seconds,
                batch_size=args.batch_size or config.queue.batch_size,
            ),
        )
    container = build_container(config)

    send_reminders = (
        None
        if args.no_reminders or not config.review.deadline_days
        else container.orchestrator.send_review_reminders
    )
    worker = DeliveryQueueWorker(
        container.delivery_queue,
        poll_interval_seconds=config.queue.poll_interval_seconds,
        batch_size=config.queue.batch_size,
        reminder_sender=send_reminders,
    )

    try:
        if args.once:
            result = await worker.run_once()
            print(json.dumps(result.to_dict()))
        else:
            await run_delivery_worker(worker)
    finally:
        await close_database_engine()
    return 0


if __name__ == "__main__":
    configure_structlog(os.environ.get("ENVIRONMENT", "development"))
    sys.exit(asyncio.run(main(parse_args())))
