"""
Temporal Worker — registers the analysis workflow and activities, then polls for tasks.

Usage:
    python worker.py
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

from temporalio.client import Client
from temporalio.worker import Worker

import config
from workflows.analysis import BacklogAnalysisWorkflow
from activities.cluster import build_beads_activity, cluster_signals_activity
from activities.dependencies import infer_dependencies_activity
from activities.prioritize import infer_priorities_activity
from activities.run_log import save_run_log

logging.basicConfig(
    level=config.LOG_LEVEL,
    format=config.LOG_FORMAT,
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)

ALL_ACTIVITIES = [
    cluster_signals_activity,
    build_beads_activity,
    infer_priorities_activity,
    infer_dependencies_activity,
    save_run_log,
]

# Activities are synchronous and block on LLM calls
ACTIVITY_WORKERS = 8


async def main():
    log.info("Connecting to Temporal at %s", config.TEMPORAL_HOST)
    client = await Client.connect(config.TEMPORAL_HOST, namespace=config.TEMPORAL_NAMESPACE)

    log.info("Starting worker on queue: %s", config.TEMPORAL_TASK_QUEUE)
    with ThreadPoolExecutor(max_workers=ACTIVITY_WORKERS) as executor:
        worker = Worker(
            client,
            task_queue=config.TEMPORAL_TASK_QUEUE,
            workflows=[BacklogAnalysisWorkflow],
            activities=ALL_ACTIVITIES,
            activity_executor=executor,
        )
        log.info("Worker ready — listening for tasks")
        await worker.run()


if __name__ == "__main__":
    asyncio.run(main())
