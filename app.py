"""
FastAPI application — REST API for backlog analysis.

Endpoints:
  POST /analysis/cluster       — Cluster signals and build beads
  POST /analysis/priorities    — Assign P1-P4 priorities
  POST /analysis/dependencies  — Infer dependencies and apply them
  POST /analysis/start         — Run the full analysis workflow
  GET  /analysis/runs          — List analysis runs
  GET  /analysis/{run_id}      — Get an analysis run record
  GET  /health                 — Health check
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field
from temporalio.client import Client

import config
from features.beads import beads_to_signals, create_epic_hierarchy
from features.clustering import ClusterConfig, cluster_signals
from features.dependencies import apply_deps_to_signals, infer_dependencies
from features.priority import PriorityOverride, infer_priorities, parse_priority_overrides
from models.schemas import Signal
from utils.llm import OperationContext, Provider, get_provider
from workflows.analysis import BacklogAnalysisWorkflow, merge_enrichments

logging.basicConfig(
    level=config.LOG_LEVEL,
    format=config.LOG_FORMAT,
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)

temporal_client: Client | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global temporal_client
    try:
        temporal_client = await Client.connect(config.TEMPORAL_HOST, namespace=config.TEMPORAL_NAMESPACE)
        log.info("Connected to Temporal at %s", config.TEMPORAL_HOST)
    except Exception as e:
        log.warning("Could not connect to Temporal: %s (analysis will run in-process)", e)
        temporal_client = None
    yield


app = FastAPI(
    title="Backlog Analysis",
    description="Turns raw repository signals into clustered, prioritized, dependency-linked beads",
    version="1.0.0",
    lifespan=lifespan,
)


# ── Request models ────────────────────────────────────────────────────

class SignalPayload(BaseModel):
    title: str
    kind: str = ""
    source: str = ""
    file_path: str = ""
    line: int = 0
    description: str = ""
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    tags: list[str] = []
    priority: int | None = Field(None, ge=1, le=4)
    blocks: list[str] = []
    depends_on: list[str] = []
    author: str = ""
    timestamp: datetime | None = None
    workspace: str = ""

    def to_signal(self) -> Signal:
        return Signal(**self.model_dump())


class ClusterConfigPayload(BaseModel):
    similarity_threshold: float = config.SIMILARITY_THRESHOLD
    min_cluster_size: int = config.MIN_CLUSTER_SIZE
    max_cluster_size: int = config.MAX_CLUSTER_SIZE


class OverridePayload(BaseModel):
    pattern: str
    priority: int = Field(ge=1, le=4)


class ClusterRequest(BaseModel):
    signals: list[SignalPayload]
    cluster_config: ClusterConfigPayload = ClusterConfigPayload()


class PriorityRequest(BaseModel):
    signals: list[SignalPayload]
    overrides: list[OverridePayload] | None = None  # None = PRIORITY_OVERRIDES env


class DependencyRequest(BaseModel):
    signals: list[SignalPayload]
    id_prefix: str = config.BEAD_ID_PREFIX


class AnalysisStartRequest(BaseModel):
    signals: list[SignalPayload]
    cluster_config: ClusterConfigPayload = ClusterConfigPayload()
    overrides: list[OverridePayload] | None = None
    id_prefix: str = config.BEAD_ID_PREFIX

    def to_workflow_input(self) -> dict:
        data = {
            "signals": [s.to_signal().to_dict() for s in self.signals],
            "cluster_config": self.cluster_config.model_dump(),
            "id_prefix": self.id_prefix,
        }
        if self.overrides is not None:
            data["overrides"] = [o.model_dump() for o in self.overrides]
        return data


class AnalysisStartResponse(BaseModel):
    run_id: str
    status: str
    message: str


def _context() -> OperationContext:
    return OperationContext(timeout=config.OPENAI_TIMEOUT)


# ── Health ────────────────────────────────────────────────────────────

@app.get("/health")
def health():
    return {
        "status": "ok",
        "service": "backlog-analysis",
        "temporal_connected": temporal_client is not None,
    }


# ── Single-stage endpoints ────────────────────────────────────────────

@app.post("/analysis/cluster")
def cluster_endpoint(req: ClusterRequest, provider: Provider = Depends(get_provider)):
    """Cluster signals and fold each cluster into beads."""
    signals = [s.to_signal() for s in req.signals]
    cfg = ClusterConfig(**req.cluster_config.model_dump())
    result = cluster_signals(signals, provider, cfg, ctx=_context())

    beads = []
    for cluster in result.clusters:
        beads.extend(create_epic_hierarchy(cluster, signals, provider, ctx=_context()))

    return {
        **result.to_dict(),
        "beads": [b.to_dict() for b in beads],
        "bead_signals": [s.to_dict() for s in beads_to_signals(beads)],
    }


@app.post("/analysis/priorities")
def priorities_endpoint(req: PriorityRequest, provider: Provider = Depends(get_provider)):
    """Assign priorities; path overrides win over the model."""
    signals = [s.to_signal() for s in req.signals]
    if req.overrides is None:
        overrides = parse_priority_overrides(config.PRIORITY_OVERRIDES)
    else:
        overrides = [PriorityOverride(o.pattern, o.priority) for o in req.overrides]
    infer_priorities(signals, provider, overrides, ctx=_context())
    return {"signals": [s.to_dict() for s in signals]}


@app.post("/analysis/dependencies")
def dependencies_endpoint(req: DependencyRequest, provider: Provider = Depends(get_provider)):
    """Infer dependencies and mirror blocking edges onto the signals."""
    signals = [s.to_signal() for s in req.signals]
    deps = infer_dependencies(signals, provider, req.id_prefix, ctx=_context())
    apply_deps_to_signals(signals, deps, req.id_prefix)
    return {
        "dependencies": [d.to_dict() for d in deps],
        "signals": [s.to_dict() for s in signals],
    }


# ── Full analysis ─────────────────────────────────────────────────────

@app.post("/analysis/start", response_model=AnalysisStartResponse)
async def start_analysis(req: AnalysisStartRequest):
    """Run every analysis stage over the submitted signals."""
    if not req.signals:
        raise HTTPException(status_code=400, detail="No signals submitted")

    run_id = f"run-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}-{uuid.uuid4().hex[:6]}"
    workflow_input = req.to_workflow_input()

    if temporal_client:
        await temporal_client.start_workflow(
            BacklogAnalysisWorkflow.run,
            workflow_input,
            id=run_id,
            task_queue=config.TEMPORAL_TASK_QUEUE,
        )
        return AnalysisStartResponse(
            run_id=run_id,
            status="started",
            message=f"Analysis started via Temporal. Workflow ID: {run_id}",
        )

    record = await _run_analysis_inprocess(run_id, workflow_input)
    return AnalysisStartResponse(
        run_id=run_id,
        status=record["status"],
        message=f"Analysis ran in-process (no Temporal). Run ID: {run_id}",
    )


@app.get("/analysis/runs")
async def list_analysis_runs(limit: int = 50):
    """List analysis runs, newest first."""
    runs = []
    if not config.ANALYSIS_RUNS_DIR.is_dir():
        return {"runs": runs}
    for log_file in sorted(config.ANALYSIS_RUNS_DIR.glob("*.json"), reverse=True)[:limit]:
        try:
            with open(log_file) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            log.warning("Skipping unreadable run log %s: %s", log_file, e)
            continue
        runs.append({
            "run_id": data.get("run_id"),
            "status": data.get("status"),
            "started_at": data.get("started_at"),
            "duration_sec": data.get("duration_sec"),
            "signals": data.get("signal_count", 0),
            "beads": len(data.get("beads", [])),
        })
    return {"runs": runs}


@app.get("/analysis/{run_id}")
async def get_analysis_run(run_id: str):
    """Get the record of an analysis run."""
    log_file = config.ANALYSIS_RUNS_DIR / f"{run_id}.json"
    if log_file.exists():
        with open(log_file) as f:
            return json.load(f)

    if temporal_client:
        try:
            handle = temporal_client.get_workflow_handle(run_id)
            desc = await handle.describe()
            result = None
            if desc.status.name == "COMPLETED":
                result = await handle.result()
            return {
                "run_id": run_id,
                "temporal_status": desc.status.name,
                "result": result,
            }
        except Exception as e:
            log.debug("Temporal lookup for %s failed: %s", run_id, e)

    raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")


# ── In-process analysis (fallback when Temporal is not available) ─────

async def _run_analysis_inprocess(run_id: str, workflow_input: dict) -> dict:
    """Run the same stages as BacklogAnalysisWorkflow without Temporal."""
    from activities.cluster import build_beads_activity, cluster_signals_activity
    from activities.dependencies import infer_dependencies_activity
    from activities.prioritize import infer_priorities_activity
    from activities.run_log import save_run_log

    loop = asyncio.get_running_loop()
    signals = workflow_input["signals"]
    started = datetime.now(timezone.utc)
    run_record: dict = {
        "run_id": run_id,
        "started_at": started.isoformat(),
        "status": "running",
        "signal_count": len(signals),
    }

    try:
        cluster_result = await loop.run_in_executor(
            None, cluster_signals_activity,
            {"signals": signals, "cluster_config": workflow_input.get("cluster_config") or {}},
        )
        run_record["clusters"] = cluster_result["clusters"]
        run_record["unclustered"] = cluster_result["unclustered"]

        beads = await loop.run_in_executor(
            None, build_beads_activity,
            {"signals": signals, "cluster_result": cluster_result},
        )
        run_record["beads"] = beads["beads"]
        run_record["bead_signals"] = beads["bead_signals"]

        priority_payload: dict = {"signals": signals}
        if "overrides" in workflow_input:
            priority_payload["overrides"] = workflow_input["overrides"]
        prioritized, linked = await asyncio.gather(
            loop.run_in_executor(None, infer_priorities_activity, priority_payload),
            loop.run_in_executor(
                None, infer_dependencies_activity,
                {"signals": signals, "id_prefix": workflow_input["id_prefix"]},
            ),
        )
        run_record["dependencies"] = linked["dependencies"]
        run_record["signals"] = merge_enrichments(prioritized["signals"], linked["signals"])
        run_record["status"] = "completed"

    except Exception as e:
        log.error("Analysis %s failed: %s", run_id, e, exc_info=True)
        run_record["status"] = "failed"
        run_record["error"] = str(e)

    finished = datetime.now(timezone.utc)
    run_record["completed_at"] = finished.isoformat()
    run_record["duration_sec"] = round((finished - started).total_seconds(), 2)
    run_record["log_file"] = await loop.run_in_executor(None, save_run_log, run_id, run_record)

    log.info("Analysis %s complete in %.1fs — %s", run_id, run_record["duration_sec"], run_record["status"])
    return run_record
