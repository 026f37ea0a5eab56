"""
Metrics Collector — per-tick population statistics.

Summarises each ``TickResult`` into a ``TickMetrics`` record (vitals, SSD
state, habits, action counts, resource state), and exposes time series,
a JSON-ready export and the relationship network between NPCs.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field, fields
from typing import Any

import numpy as np

from ssdsim.core.agent import AgentSnapshot
from ssdsim.core.config import SimulationConfig
from ssdsim.core.engine import TickResult
from ssdsim.core.events import HabitKind


@dataclass
class TickMetrics:
    """Aggregated metrics for a single tick."""

    tick: int
    is_night: bool

    # Population
    alive_count: int
    deaths: int
    dead_names: list[str]

    # Vitals (living agents only)
    mean_hunger: float
    mean_fatigue: float
    mean_injury: float

    # SSD
    mean_E: float
    mean_T: float
    max_E: float
    mean_kappa: dict[str, float]   # habit kind -> mean over living agents that have it

    # Actions
    action_counts: dict[str, int]

    # Resources
    mean_patch_abundance: float
    mean_zone_success: float
    unsafe_zone_count: int

    # Circadian
    sleeping_count: int = 0
    mean_sleep_debt: float = 0.0

    # Social
    total_relationship: float = 0.0

    extra: dict[str, Any] = field(default_factory=dict)


_FIELD_NAMES = frozenset(f.name for f in fields(TickMetrics))


def _mean(values: list[float]) -> float:
    return float(np.mean(values)) if values else 0.0


class MetricsCollector:
    """
    Collects and aggregates metrics across ticks.

    Works alongside the simulation driver; feed it every ``TickResult``.
    """

    def __init__(self, config: SimulationConfig):
        self.config = config
        self.metrics_history: list[TickMetrics] = []

    def collect(self, result: TickResult) -> TickMetrics:
        """Collect metrics for one tick."""
        living = [a for a in result.agents if a.alive]
        env = result.environment

        kappa_means: dict[str, float] = {}
        for kind in HabitKind:
            values = [a.kappa[kind.value] for a in living if kind.value in a.kappa]
            if values:
                kappa_means[kind.value] = _mean(values)

        abundances = [p["abundance"] for p in env.patches.values()]
        successes = [z["base_success"] for z in env.hunt_zones.values()]
        # windows still open after the environment step, i.e. unsafe next tick
        unsafe = sum(1 for z in env.hunt_zones.values() if z["unsafe_until"] is not None)

        metrics = TickMetrics(
            tick=result.tick,
            is_night=env.is_night,
            alive_count=len(living),
            deaths=len(result.deaths),
            dead_names=result.deaths,
            mean_hunger=_mean([a.hunger for a in living]),
            mean_fatigue=_mean([a.fatigue for a in living]),
            mean_injury=_mean([a.injury for a in living]),
            mean_E=_mean([a.E for a in living]),
            mean_T=_mean([a.T for a in living]),
            max_E=max((a.E for a in living), default=0.0),
            mean_kappa=kappa_means,
            action_counts=dict(Counter(e.action for e in result.new_logs)),
            mean_patch_abundance=_mean(abundances),
            mean_zone_success=_mean(successes),
            unsafe_zone_count=unsafe,
            sleeping_count=sum(1 for a in living if a.is_sleeping),
            mean_sleep_debt=_mean([a.sleep_debt for a in living]),
            total_relationship=float(sum(
                sum(a.relationship.values()) for a in result.agents
            )),
        )

        self.metrics_history.append(metrics)
        return metrics

    def get_time_series(self, field_name: str) -> list[Any]:
        """Extract a time series for a specific metric field.

        Raises AttributeError for unknown fields.
        """
        if field_name not in _FIELD_NAMES:
            raise AttributeError(f"TickMetrics has no field '{field_name}'")
        return [getattr(m, field_name) for m in self.metrics_history]

    def export_for_visualization(self) -> list[dict[str, Any]]:
        """Export all metrics as a list of JSON-serializable dicts."""
        return [asdict(m) for m in self.metrics_history]

    def summary(self) -> dict[str, Any]:
        """Whole-run summary: survivors, death ticks and action totals."""
        if not self.metrics_history:
            return {"ticks": 0}
        totals: Counter[str] = Counter()
        death_ticks: dict[str, int] = {}
        for m in self.metrics_history:
            totals.update(m.action_counts)
            for name in m.dead_names:
                death_ticks[name] = m.tick
        last = self.metrics_history[-1]
        return {
            "ticks": len(self.metrics_history),
            "final_tick": last.tick,
            "alive_count": last.alive_count,
            "death_ticks": death_ticks,
            "action_totals": dict(totals),
            "mean_E": _mean([m.mean_E for m in self.metrics_history]),
            "peak_E": max(m.max_E for m in self.metrics_history),
        }

    # ------------------------------------------------------------------
    # Relationship network
    # ------------------------------------------------------------------

    @staticmethod
    def relationship_network(agents: list[AgentSnapshot]) -> dict[str, list[dict[str, Any]]]:
        """Nodes for every agent, one directed link per positive relationship."""
        nodes = [
            {"id": a.name, "alive": a.alive, "state": a.state, "E": a.E}
            for a in agents
        ]
        known = {a.name for a in agents}
        links = [
            {"source": a.name, "target": peer, "weight": weight}
            for a in agents
            for peer, weight in sorted(a.relationship.items())
            if weight > 0 and peer in known
        ]
        return {"nodes": nodes, "links": links}
