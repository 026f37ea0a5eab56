"""
Environment API router — berry patches, hunt zones and time of day.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

router = APIRouter()


def _get_session(request: Request, session_id: str):
    sm = request.app.state.session_manager
    try:
        return sm.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


@router.get("/{session_id}")
def get_environment(request: Request, session_id: str):
    """Current resource state of the world."""
    session = _get_session(request, session_id)
    env = session.engine.environment
    data = env.snapshot().to_dict()
    data["size"] = env.size
    data["visibility"] = env.visibility()
    data["unsafe_zones"] = [
        key for key, zone in env.hunt_zones.items() if env.is_unsafe(zone, env.tick)
    ]
    return data
