"""
Action/state vocabulary and the immutable log entry emitted by agents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NPCState(str, Enum):
    """High-level state label shown for an agent."""
    IDLE = "Idle"
    DEAD = "Dead"
    SLEEP = "Sleep"
    HELP = "Help"
    HUNT = "Hunt"
    FOOD = "Food"
    PATROL = "Patrol"
    SEARCHING = "Searching"


class HabitKind(str, Enum):
    """Action kinds that carry a habit strength (kappa)."""
    FORAGE = "forage"
    HUNT = "hunt"
    REST = "rest"
    HELP = "help"


class Action(str, Enum):
    """Log entry action names."""
    DEATH = "death"
    SLEEP = "sleep"
    WAKE = "wake"
    SHARE_FOOD = "share_food"
    TEND_WOUNDS = "tend_wounds"
    REST = "rest"
    EAT_SUCCESS = "eat_success"
    EAT_FAIL = "eat_fail"
    HUNT_SUCCESS = "hunt_success"
    HUNT_FAIL = "hunt_fail"
    SEARCH_FOOD_FALLBACK = "search_food_fallback"
    PATROL = "patrol"


@dataclass(frozen=True)
class LogEntry:
    """One meaningful action by one agent. Never read back by the kernel."""
    tick: int
    agent_name: str
    state: str
    action: str
    hunger: float
    fatigue: float
    injury: float
    E: float
    T: float
    kappa: dict[str, float] = field(default_factory=dict)
    target: str | None = None
    amount: float | None = None
    details: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tick": self.tick,
            "agent_name": self.agent_name,
            "state": self.state,
            "action": self.action,
            "target": self.target,
            "amount": self.amount,
            "hunger": self.hunger,
            "fatigue": self.fatigue,
            "injury": self.injury,
            "E": self.E,
            "T": self.T,
            "kappa": dict(self.kappa),
            "details": dict(self.details),
        }
