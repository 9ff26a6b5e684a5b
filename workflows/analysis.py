"""
Temporal Workflow: Backlog Analysis

Orchestrates the semantic analysis of one batch of signals:
  1. Cluster signals (pre-filter + LLM)
  2. Build beads from clusters (epics for large clusters)
  3. Infer priorities        ┐ independent LLM round-trips,
  4. Infer dependencies      ┘ run in parallel
  5. Merge priority and dependency fields onto one signal list
  6. Save the run record
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from activities.cluster import build_beads_activity, cluster_signals_activity
    from activities.dependencies import infer_dependencies_activity
    from activities.prioritize import infer_priorities_activity
    from activities.run_log import save_run_log
    import config

log = logging.getLogger(__name__)

LLM_ACTIVITY_TIMEOUT = timedelta(minutes=5)
BEADS_ACTIVITY_TIMEOUT = timedelta(minutes=30)


def merge_enrichments(prioritized: list[dict], linked: list[dict]) -> list[dict]:
    """Combine the priority pass and the dependency pass, position by position.

    The two passes write disjoint fields, so each signal takes ``priority``
    from the first list and ``blocks`` / ``depends_on`` from the second.
    """
    merged = []
    for prio_sig, dep_sig in zip(prioritized, linked):
        sig = dict(prio_sig)
        sig["blocks"] = list(dep_sig.get("blocks") or [])
        sig["depends_on"] = list(dep_sig.get("depends_on") or [])
        merged.append(sig)
    return merged


@workflow.defn
class BacklogAnalysisWorkflow:
    """Runs every analysis stage over one batch of signals."""

    @workflow.run
    async def run(self, request: dict) -> dict:
        run_id = workflow.info().workflow_id
        started = workflow.now()
        signals = request.get("signals", [])
        id_prefix = request.get("id_prefix") or config.BEAD_ID_PREFIX
        log.info("Analysis %s starting for %d signals", run_id, len(signals))

        run_record: dict = {
            "run_id": run_id,
            "started_at": started.isoformat(),
            "status": "running",
            "signal_count": len(signals),
        }

        try:
            # ━━ Step 1-2: Cluster + Beads ━━━━━━━━━━━━━━━━━━━━━━━━━━━━
            cluster_result = await workflow.execute_activity(
                cluster_signals_activity,
                {"signals": signals, "cluster_config": request.get("cluster_config") or {}},
                start_to_close_timeout=LLM_ACTIVITY_TIMEOUT,
            )
            run_record["clusters"] = cluster_result["clusters"]
            run_record["unclustered"] = cluster_result["unclustered"]

            beads = await workflow.execute_activity(
                build_beads_activity,
                {"signals": signals, "cluster_result": cluster_result},
                start_to_close_timeout=BEADS_ACTIVITY_TIMEOUT,
            )
            run_record["beads"] = beads["beads"]
            run_record["bead_signals"] = beads["bead_signals"]

            # ━━ Step 3-4: Priorities + Dependencies ━━━━━━━━━━━━━━━━━━
            priority_payload: dict = {"signals": signals}
            if "overrides" in request:
                priority_payload["overrides"] = request["overrides"]

            prioritized, linked = await asyncio.gather(
                workflow.execute_activity(
                    infer_priorities_activity,
                    priority_payload,
                    start_to_close_timeout=LLM_ACTIVITY_TIMEOUT,
                ),
                workflow.execute_activity(
                    infer_dependencies_activity,
                    {"signals": signals, "id_prefix": id_prefix},
                    start_to_close_timeout=LLM_ACTIVITY_TIMEOUT,
                ),
            )

            # ━━ Step 5: Merge ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
            run_record["dependencies"] = linked["dependencies"]
            run_record["signals"] = merge_enrichments(prioritized["signals"], linked["signals"])
            run_record["status"] = "completed"

        except Exception as e:
            log.error("Analysis %s failed: %s", run_id, e)
            run_record["status"] = "failed"
            run_record["error"] = str(e)

        # ━━ Step 6: Save ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
        finished = workflow.now()
        run_record["completed_at"] = finished.isoformat()
        run_record["duration_sec"] = round((finished - started).total_seconds(), 2)
        run_record["log_file"] = await workflow.execute_activity(
            save_run_log,
            args=[run_id, run_record],
            start_to_close_timeout=timedelta(minutes=1),
        )

        log.info("Analysis %s complete in %.1fs — status: %s",
                 run_id, run_record["duration_sec"], run_record["status"])
        return run_record
