"""Per-tick metrics, action log and relationship network endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from ssdsim.api.schemas import NetworkResponse, SummaryResponse, TimeSeriesResponse
from ssdsim.api.serializers import serialize_metrics
from ssdsim.metrics.collector import MetricsCollector

router = APIRouter()


def _get_session(request: Request, session_id: str):
    mgr = request.app.state.session_manager
    try:
        return mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


@router.get("/{session_id}/ticks")
def get_ticks(
    session_id: str,
    request: Request,
    from_tick: int = Query(0, ge=0),
    to_tick: int | None = Query(None),
) -> list[dict[str, Any]]:
    session = _get_session(request, session_id)
    metrics = session.collector.metrics_history
    end = to_tick if to_tick is not None else len(metrics)
    return [serialize_metrics(m) for m in metrics[from_tick:end]]


@router.get("/{session_id}/time-series/{field_name}", response_model=TimeSeriesResponse)
def get_time_series(session_id: str, field_name: str, request: Request):
    session = _get_session(request, session_id)

    collector = session.collector
    try:
        values = collector.get_time_series(field_name)
    except AttributeError:
        raise HTTPException(status_code=400, detail=f"Unknown metric field: '{field_name}'")

    return {
        "field": field_name,
        "ticks": [m.tick for m in collector.metrics_history],
        "values": values,
    }


@router.get("/{session_id}/summary", response_model=SummaryResponse)
def get_summary(session_id: str, request: Request):
    session = _get_session(request, session_id)

    summary = session.collector.summary()
    if summary["ticks"] == 0:
        return {
            "total_ticks": 0,
            "alive_count": session.alive_count,
            "total_deaths": 0,
            "death_ticks": {},
            "action_totals": {},
            "mean_E": 0.0,
            "peak_E": 0.0,
        }

    return {
        "total_ticks": summary["ticks"],
        "alive_count": summary["alive_count"],
        "total_deaths": len(summary["death_ticks"]),
        "death_ticks": summary["death_ticks"],
        "action_totals": summary["action_totals"],
        "mean_E": round(summary["mean_E"], 4),
        "peak_E": round(summary["peak_E"], 4),
    }


@router.get("/{session_id}/log")
def get_log(
    session_id: str,
    request: Request,
    agent: str | None = Query(None),
    action: str | None = Query(None),
    limit: int = Query(200, ge=1, le=5000),
) -> list[dict[str, Any]]:
    """Most recent action log entries, optionally filtered."""
    session = _get_session(request, session_id)
    entries = session.engine.state.log
    if agent is not None:
        entries = [e for e in entries if e.agent_name == agent]
    if action is not None:
        entries = [e for e in entries if e.action == action]
    return [e.to_dict() for e in entries[-limit:]]


@router.get("/{session_id}/network", response_model=NetworkResponse)
def get_network(session_id: str, request: Request):
    session = _get_session(request, session_id)
    snapshots = [a.snapshot() for a in session.engine.state.agents]
    return MetricsCollector.relationship_network(snapshots)
