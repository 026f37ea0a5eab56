"""
Core NPC dataclass for the SSD Forager Sandbox.

An NPC owns its biological vitals, its SSD state (habit strengths, pressure,
temperature), social ledgers toward peers, and optional circadian state.
Peers are never referenced directly: they are looked up by name in the
roster owned by the simulation state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ssdsim.core.events import LogEntry, NPCState


# ---------------------------------------------------------------------------
# Explicit default-valued mapping access
# ---------------------------------------------------------------------------

def get_or_default(mapping: dict[str, float], key: str, default: float = 0.0) -> float:
    """Read ``mapping[key]`` without inserting it."""
    return mapping.get(key, default)


def get_or_insert(mapping: dict[str, float], key: str, default: float) -> float:
    """Read ``mapping[key]``, inserting ``default`` first if it is missing."""
    if key not in mapping:
        mapping[key] = default
    return mapping[key]


# ---------------------------------------------------------------------------
# Preset
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NPCPreset:
    """Immutable personality of an NPC. All traits lie in [0, 1]."""
    risk_tolerance: float = 0.5
    curiosity: float = 0.5
    avoidance: float = 0.5
    stamina: float = 0.5
    empathy: float = 0.5

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> NPCPreset:
        return cls(**{k: float(d[k]) for k in cls.__dataclass_fields__ if k in d})

    def to_dict(self) -> dict[str, float]:
        return {
            "risk_tolerance": self.risk_tolerance,
            "curiosity": self.curiosity,
            "avoidance": self.avoidance,
            "stamina": self.stamina,
            "empathy": self.empathy,
        }


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AgentSnapshot:
    """Plain-data view of one NPC after a tick."""
    name: str
    x: int
    y: int
    hunger: float
    fatigue: float
    injury: float
    alive: bool
    state: str
    E: float
    T: float
    kappa: dict[str, float]
    preset: NPCPreset
    sleep_debt: float = 0.0
    is_sleeping: bool = False
    relationship: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "hunger": self.hunger,
            "fatigue": self.fatigue,
            "injury": self.injury,
            "alive": self.alive,
            "state": self.state,
            "E": self.E,
            "T": self.T,
            "kappa": dict(self.kappa),
            "preset": self.preset.to_dict(),
            "sleep_debt": self.sleep_debt,
            "is_sleeping": self.is_sleeping,
            "relationship": dict(self.relationship),
        }


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------

@dataclass
class Agent:
    """A simulated NPC with vitals, SSD state and social ledgers."""

    # === Identity ===
    name: str
    preset: NPCPreset
    x: int
    y: int

    # === Vitals (soft cap 120; above 100 is a crisis) ===
    hunger: float = 50.0
    fatigue: float = 30.0
    injury: float = 0.0
    alive: bool = True
    state: str = NPCState.IDLE.value

    # === SSD ===
    kappa: dict[str, float] = field(default_factory=dict)   # action kind -> habit strength
    E: float = 0.0                                          # unprocessed pressure ("heat")
    T: float = 0.3                                          # exploration temperature

    # === Social ===
    relationship: dict[str, float] = field(default_factory=dict)   # peer name -> affinity
    help_debt: dict[str, float] = field(default_factory=dict)      # peer name -> owed help

    # === Foraging circuit breaker ===
    forage_failures: dict[str, int] = field(default_factory=dict)  # patch key -> consecutive fails

    boredom: float = 0.0

    # === Circadian ===
    sleep_debt: float = 0.0
    is_sleeping: bool = False

    # === Pending log entries (drained by the driver every tick) ===
    log: list[LogEntry] = field(default_factory=list, repr=False)

    @property
    def position(self) -> tuple[int, int]:
        return (self.x, self.y)

    def distance_to(self, other: Agent) -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)

    def move_towards(self, target: tuple[int, int]) -> None:
        """One Manhattan step toward ``target`` (x axis first)."""
        tx, ty = target
        if tx != self.x:
            self.x += 1 if tx > self.x else -1
        elif ty != self.y:
            self.y += 1 if ty > self.y else -1

    def mean_kappa(self, default: float = 0.1) -> float:
        if not self.kappa:
            return default
        return sum(self.kappa.values()) / len(self.kappa)

    def flush_log(self) -> list[LogEntry]:
        entries = self.log
        self.log = []
        return entries

    def snapshot(self) -> AgentSnapshot:
        return AgentSnapshot(
            name=self.name,
            x=self.x,
            y=self.y,
            hunger=self.hunger,
            fatigue=self.fatigue,
            injury=self.injury,
            alive=self.alive,
            state=self.state,
            E=self.E,
            T=self.T,
            kappa=dict(self.kappa),
            preset=self.preset,
            sleep_debt=self.sleep_debt,
            is_sleeping=self.is_sleeping,
            relationship=dict(self.relationship),
        )

    def __repr__(self) -> str:
        status = "alive" if self.alive else "dead"
        return (
            f"Agent(name={self.name!r}, pos=({self.x}, {self.y}), "
            f"hunger={self.hunger:.1f}, E={self.E:.2f}, {status})"
        )
