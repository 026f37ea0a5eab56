"""Simulation session management endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from ssdsim.api.schemas import (
    CreateSessionRequest,
    PresetInfo,
    RunRequest,
    SessionResponse,
    SessionSummary,
    StepRequest,
)
from ssdsim.core.config import SimulationConfig
from ssdsim.experiment.presets import get_preset, list_presets

router = APIRouter()


def _session_response(session) -> dict:
    return {
        "id": session.id,
        "name": session.name,
        "status": session.status,
        "current_tick": session.current_tick,
        "max_ticks": session.max_ticks,
        "alive_count": session.alive_count,
        "config": session.config.to_dict(),
    }


@router.get("/presets", response_model=list[PresetInfo])
def get_presets():
    return [{"name": name, "config": get_preset(name).to_dict()} for name in list_presets()]


@router.post("/sessions", response_model=SessionResponse)
def create_session(req: CreateSessionRequest, request: Request):
    mgr = request.app.state.session_manager

    config = None
    if req.preset:
        try:
            config = get_preset(req.preset)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown preset: '{req.preset}'")

    try:
        if req.config:
            base = config.to_dict() if config is not None else {}
            config = SimulationConfig.from_dict({**base, **req.config})
        session = mgr.create_session(config=config, name=req.name)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _session_response(session)


@router.get("/sessions", response_model=list[SessionSummary])
def list_sessions(request: Request):
    mgr = request.app.state.session_manager
    return mgr.list_sessions()


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        session = mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return _session_response(session)


@router.delete("/sessions/{session_id}")
def delete_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        mgr.delete_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return {"deleted": True}


@router.post("/sessions/{session_id}/run", response_model=SessionResponse)
def run_session(session_id: str, req: RunRequest, request: Request):
    mgr = request.app.state.session_manager
    try:
        session = mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")

    mgr.run_full_async(session_id, ticks=req.ticks)
    return _session_response(session)


@router.post("/sessions/{session_id}/step", response_model=SessionResponse)
def step_session(session_id: str, req: StepRequest, request: Request):
    mgr = request.app.state.session_manager
    try:
        session = mgr.step(session_id, req.n)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return _session_response(session)


@router.post("/sessions/{session_id}/tick")
def tick_session(session_id: str, request: Request):
    """Advance one tick and return everything it produced."""
    mgr = request.app.state.session_manager
    try:
        session = mgr.step(session_id, 1)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    result = session.last_result
    return {
        "session_status": session.status,
        "current_tick": session.current_tick,
        "result": result.to_dict() if result is not None else None,
    }


@router.post("/sessions/{session_id}/reset", response_model=SessionResponse)
def reset_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    if mgr.is_running(session_id):
        raise HTTPException(status_code=409, detail="Cannot reset while running")
    try:
        session = mgr.reset_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return _session_response(session)
