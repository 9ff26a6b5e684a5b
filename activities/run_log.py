"""
Activity: Save Run Log — writes an analysis run record to ANALYSIS_RUNS_DIR.
"""

from __future__ import annotations

import json
import logging

from temporalio import activity

import config

log = logging.getLogger(__name__)


@activity.defn
def save_run_log(run_id: str, run_record: dict) -> str:
    """Save the run record as <ANALYSIS_RUNS_DIR>/<run_id>.json and return its path."""
    runs_dir = config.ANALYSIS_RUNS_DIR
    runs_dir.mkdir(parents=True, exist_ok=True)
    file_path = runs_dir / f"{run_id}.json"
    with open(file_path, "w") as f:
        json.dump(run_record, f, indent=2, default=str)
    log.info("Run log saved: %s", file_path)
    return str(file_path)
