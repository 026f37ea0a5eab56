"""
Serializers for converting simulation objects to JSON-safe dicts.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from ssdsim.core.agent import Agent
from ssdsim.core.engine import SimulationState
from ssdsim.metrics.collector import TickMetrics


def _round(v: float, digits: int = 4) -> float:
    return round(float(v), digits)


def serialize_agent_summary(agent: Agent) -> dict[str, Any]:
    """Lightweight agent summary for list views."""
    return {
        "name": agent.name,
        "x": agent.x,
        "y": agent.y,
        "hunger": _round(agent.hunger, 2),
        "fatigue": _round(agent.fatigue, 2),
        "injury": _round(agent.injury, 2),
        "alive": agent.alive,
        "state": agent.state,
        "E": _round(agent.E),
        "T": _round(agent.T),
        "is_sleeping": agent.is_sleeping,
    }


def serialize_agent_detail(
    agent: Agent, state: SimulationState, log_limit: int = 20,
) -> dict[str, Any]:
    """Full agent state plus the drivers of its next decision."""
    data = serialize_agent_summary(agent)
    behavior = state.behavior

    hazard, theta, prob = behavior.ssd.leap_hazard(agent)
    decision = None
    if agent.alive:
        decision = behavior.explain(agent, state.roster, state.environment, state.tick)["decision"]

    own_log = [e for e in state.log if e.agent_name == agent.name]
    data.update({
        "preset": agent.preset.to_dict(),
        "kappa": {k: _round(v) for k, v in agent.kappa.items()},
        "relationship": {k: _round(v) for k, v in agent.relationship.items()},
        "help_debt": {k: _round(v) for k, v in agent.help_debt.items()},
        "forage_failures": dict(agent.forage_failures),
        "boredom": _round(agent.boredom),
        "sleep_debt": _round(agent.sleep_debt, 2),
        "leap": {"hazard": _round(hazard, 6), "theta": _round(theta), "probability": _round(prob, 6)},
        "decision": decision,
        "recent_log": [e.to_dict() for e in own_log[-log_limit:]],
    })
    return data


def serialize_metrics(m: TickMetrics) -> dict[str, Any]:
    """Convert TickMetrics to a JSON-safe dict."""
    return asdict(m)
