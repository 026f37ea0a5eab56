"""Agent list and detail endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from ssdsim.api.schemas import AgentDetailResponse, AgentSummaryResponse
from ssdsim.api.serializers import serialize_agent_detail, serialize_agent_summary

router = APIRouter()


def _get_session(request: Request, session_id: str):
    mgr = request.app.state.session_manager
    try:
        return mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


@router.get("/{session_id}", response_model=list[AgentSummaryResponse])
def list_agents(
    session_id: str,
    request: Request,
    alive_only: bool = Query(False),
) -> list[dict[str, Any]]:
    session = _get_session(request, session_id)
    agents = session.engine.state.agents
    if alive_only:
        agents = [a for a in agents if a.alive]
    return [serialize_agent_summary(a) for a in agents]


@router.get("/{session_id}/{agent_name}", response_model=AgentDetailResponse)
def get_agent(
    session_id: str,
    agent_name: str,
    request: Request,
    log_limit: int = Query(20, ge=0, le=500),
) -> dict[str, Any]:
    session = _get_session(request, session_id)
    try:
        agent = session.engine.find_agent(agent_name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Agent '{agent_name}' not found")
    return serialize_agent_detail(agent, session.engine.state, log_limit=log_limit)
