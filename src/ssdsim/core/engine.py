"""
Simulation driver.

Owns the roster, the environment and the single random generator. Each tick
every living NPC steps in roster order, then the environment advances
exactly once. Hosts only ever call ``reset`` / ``advance_tick`` (or ``run``
for batch experiments) and read the plain-data snapshots that come back.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable

import numpy as np

from ssdsim.core.agent import Agent, AgentSnapshot, NPCPreset
from ssdsim.core.behavior import NPCBehavior
from ssdsim.core.config import SimulationConfig
from ssdsim.core.environment import Environment, EnvironmentSnapshot
from ssdsim.core.events import Action, LogEntry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State & results
# ---------------------------------------------------------------------------

@dataclass
class SimulationState:
    """Everything one simulation run owns."""
    config: SimulationConfig
    rng: np.random.Generator
    environment: Environment
    roster: dict[str, Agent]
    behavior: NPCBehavior
    tick: int = 0
    log: list[LogEntry] = field(default_factory=list)

    @property
    def agents(self) -> list[Agent]:
        return list(self.roster.values())

    @property
    def living(self) -> list[Agent]:
        return [a for a in self.roster.values() if a.alive]

    def find_agent(self, name: str) -> Agent:
        """Look up an agent by name; raises KeyError when unknown."""
        if name not in self.roster:
            raise KeyError(f"Unknown agent: '{name}'")
        return self.roster[name]


@dataclass(frozen=True)
class TickResult:
    """What one tick produced."""
    tick: int
    agents: list[AgentSnapshot]
    new_logs: list[LogEntry]
    environment: EnvironmentSnapshot

    @property
    def deaths(self) -> list[str]:
        return [e.agent_name for e in self.new_logs if e.action == Action.DEATH.value]

    def to_dict(self) -> dict[str, Any]:
        return {
            "tick": self.tick,
            "agents": [a.to_dict() for a in self.agents],
            "new_logs": [e.to_dict() for e in self.new_logs],
            "environment": self.environment.to_dict(),
        }


@dataclass
class TickSnapshot:
    """Per-tick summary kept by ``SimulationEngine.run``."""
    tick: int
    alive: int
    deaths: int
    action_counts: dict[str, int]
    mean_hunger: float
    mean_fatigue: float
    mean_E: float
    mean_T: float
    is_night: bool


# ---------------------------------------------------------------------------
# Functional driver
# ---------------------------------------------------------------------------

def _spawn_roster(config: SimulationConfig) -> dict[str, Agent]:
    centre = config.env_size // 2
    roster: dict[str, Agent] = {}
    for name, preset_dict in config.roster.items():
        dx, dy = preset_dict.get("start_offset", [0, 0])
        roster[name] = Agent(
            name=name,
            preset=NPCPreset.from_dict(preset_dict),
            x=int(np.clip(centre + dx, 0, config.env_size - 1)),
            y=int(np.clip(centre + dy, 0, config.env_size - 1)),
            T=config.ssd_params["T_initial"],
        )
    return roster


def reset_state(config: SimulationConfig) -> SimulationState:
    """Build a fresh world and roster from ``config``."""
    config.validate()
    rng = np.random.default_rng(config.random_seed)
    environment = Environment(config, rng)
    return SimulationState(
        config=config,
        rng=rng,
        environment=environment,
        roster=_spawn_roster(config),
        behavior=NPCBehavior(config),
    )


def advance_tick(state: SimulationState, tick: int | None = None) -> TickResult:
    """Step every living agent, then the environment, and collect the output.

    ``tick`` is the number of the tick being advanced; when given it must
    match ``state.tick``, otherwise ValueError is raised.
    """
    if tick is not None and tick != state.tick:
        raise ValueError(f"Expected tick {state.tick}, got {tick}")
    tick = state.tick
    env = state.environment
    new_logs: list[LogEntry] = []

    for agent in state.roster.values():
        if not agent.alive:
            continue
        state.behavior.step(agent, state.roster, env, tick, state.rng)

    # drain in roster order so helpers' entries stay grouped per agent
    for agent in state.roster.values():
        new_logs.extend(agent.flush_log())

    env.advance_tick(state.rng)
    state.tick += 1
    state.log.extend(new_logs)

    for entry in new_logs:
        if entry.action == Action.DEATH.value:
            logger.info(
                "Tick %d: %s died (hunger=%.1f, injury=%.1f, E=%.2f)",
                tick, entry.agent_name, entry.hunger, entry.injury, entry.E,
            )
    logger.debug("Tick %d: %d alive, %d log entries", tick, len(state.living), len(new_logs))

    return TickResult(
        tick=tick,
        agents=[a.snapshot() for a in state.roster.values()],
        new_logs=new_logs,
        environment=env.snapshot(),
    )


# ---------------------------------------------------------------------------
# Simulation Engine
# ---------------------------------------------------------------------------

class SimulationEngine:
    """
    Object wrapper around the functional driver.

    Phases per tick:
    1. Each living NPC steps (metabolism, death, temperature, sleep,
       help, rest, food, patrol)
    2. Environment regeneration and drift
    3. Log collection and snapshots
    """

    def __init__(self, config: SimulationConfig):
        self.config = config
        self.state: SimulationState = reset_state(config)
        self.history: list[TickSnapshot] = []

    @property
    def tick(self) -> int:
        return self.state.tick

    @property
    def environment(self) -> Environment:
        return self.state.environment

    @property
    def roster(self) -> dict[str, Agent]:
        return self.state.roster

    def reset(self) -> tuple[list[AgentSnapshot], EnvironmentSnapshot]:
        """Rebuild the world from the config (same seed, same world)."""
        self.state = reset_state(self.config)
        self.history = []
        return (
            [a.snapshot() for a in self.state.roster.values()],
            self.state.environment.snapshot(),
        )

    def advance_tick(self, tick: int | None = None) -> TickResult:
        return advance_tick(self.state, tick)

    def step(self) -> TickResult:
        """Advance one tick and record its summary in ``history``."""
        result = self.advance_tick()
        self.history.append(self._build_snapshot(result))
        return result

    def run(
        self,
        ticks: int | None = None,
        on_tick: Callable[[TickResult], Any] | None = None,
    ) -> list[TickSnapshot]:
        """Run from a fresh state for ``ticks`` ticks (default from config).

        ``on_tick`` receives every ``TickResult``, e.g. a metrics collector.
        Stops early once every agent is dead.
        """
        ticks = self.config.ticks_to_run if ticks is None else ticks
        self.reset()
        for _ in range(ticks):
            result = self.step()
            if on_tick is not None:
                on_tick(result)
            if not self.state.living:
                logger.info("All agents dead at tick %d", result.tick)
                break
        return self.history

    def find_agent(self, name: str) -> Agent:
        return self.state.find_agent(name)

    def _build_snapshot(self, result: TickResult) -> TickSnapshot:
        living = [a for a in result.agents if a.alive]
        counts = Counter(e.action for e in result.new_logs)

        def _mean(attr: str) -> float:
            return float(np.mean([getattr(a, attr) for a in living])) if living else 0.0

        return TickSnapshot(
            tick=result.tick,
            alive=len(living),
            deaths=len(result.deaths),
            action_counts=dict(counts),
            mean_hunger=_mean("hunger"),
            mean_fatigue=_mean("fatigue"),
            mean_E=_mean("E"),
            mean_T=_mean("T"),
            is_night=self.state.environment.is_night(result.tick),
        )
