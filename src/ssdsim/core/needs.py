"""
Metabolism for the SSD Forager Sandbox.

Each tick every living NPC grows hungrier and more tired, and fatigue slowly
wears into injury. Growth rates are modified by the time of day and by
whether the NPC is asleep. With sleep-debt tracking on, awake NPCs build up
debt that sleep pays back; overloaded debt bleeds into fatigue.

All rates and caps come from config dicts, never hardcoded.
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from ssdsim.core.agent import Agent


VITALS: tuple[str, ...] = ("hunger", "fatigue", "injury")


# ---------------------------------------------------------------------------
# Time-of-day rate modifiers
# ---------------------------------------------------------------------------

DEFAULT_MODIFIERS: dict[str, float] = {vital: 1.0 for vital in VITALS}


def phase_modifiers(night_fatigue_multiplier: float) -> dict[str, dict[str, float]]:
    return {
        "day": dict(DEFAULT_MODIFIERS),
        "night": {"hunger": 1.0, "fatigue": night_fatigue_multiplier, "injury": 1.0},
    }


# ---------------------------------------------------------------------------
# MetabolismSystem
# ---------------------------------------------------------------------------

class MetabolismSystem:
    """
    Applies per-tick vital growth and sleep-debt bookkeeping.
    """

    def __init__(
        self,
        config: dict[str, Any],
        sleep_config: dict[str, Any] | None = None,
    ) -> None:
        self._config = config
        self.hunger_rate: float = config.get("hunger_rate", 1.8)
        self.fatigue_rate: float = config.get("fatigue_rate", 0.8)
        self.injury_fatigue_coeff: float = config.get("injury_fatigue_coeff", 0.02)
        self.vital_cap: float = config.get("vital_cap", 120.0)
        self.crisis_threshold: float = config.get("crisis_threshold", 100.0)
        self.hard_death_threshold: float = config.get("hard_death_threshold", 110.0)
        self.modifiers = phase_modifiers(config.get("night_fatigue_multiplier", 1.25))

        sleep = sleep_config or {}
        self.debt_rate: float = sleep.get("debt_rate", 1.0)
        self.debt_cap: float = sleep.get("debt_cap", 200.0)
        self.overload_threshold: float = sleep.get("overload_threshold", 100.0)
        self.overload_fatigue_coeff: float = sleep.get("overload_fatigue_coeff", 0.01)
        self.sleeping_hunger_multiplier: float = sleep.get("sleeping_hunger_multiplier", 0.5)

    # ------------------------------------------------------------------
    # Metabolism
    # ------------------------------------------------------------------

    def apply(self, agent: Agent, is_night: bool = False) -> None:
        """One tick of hunger, fatigue and fatigue-driven injury growth."""
        mods = self.modifiers["night" if is_night else "day"]
        hunger_rate = self.hunger_rate * mods["hunger"]
        if agent.is_sleeping:
            hunger_rate *= self.sleeping_hunger_multiplier

        agent.hunger = min(self.vital_cap, agent.hunger + hunger_rate)
        agent.fatigue = min(self.vital_cap, agent.fatigue + self.fatigue_rate * mods["fatigue"])
        agent.injury = min(
            self.vital_cap,
            agent.injury + self.injury_fatigue_coeff * mods["injury"] * agent.fatigue / 100.0,
        )

    def accrue_sleep_debt(self, agent: Agent) -> None:
        """Awake NPCs build sleep debt; overload beyond the threshold tires them."""
        if agent.is_sleeping:
            return
        agent.sleep_debt = min(self.debt_cap, agent.sleep_debt + self.debt_rate)
        overload = agent.sleep_debt - self.overload_threshold
        if overload > 0:
            agent.fatigue = min(
                self.vital_cap, agent.fatigue + overload * self.overload_fatigue_coeff,
            )

    # ------------------------------------------------------------------
    # Crisis helpers
    # ------------------------------------------------------------------

    def in_crisis(self, agent: Agent) -> bool:
        return agent.hunger >= self.crisis_threshold or agent.injury >= self.crisis_threshold

    def past_hard_limit(self, agent: Agent) -> bool:
        return (
            agent.hunger >= self.hard_death_threshold
            or agent.injury >= self.hard_death_threshold
        )

    def clip_vitals(self, agent: Agent) -> None:
        """Force every vital back into [0, vital_cap]."""
        for vital in VITALS:
            value = getattr(agent, vital)
            setattr(agent, vital, max(0.0, min(self.vital_cap, value)))
        agent.sleep_debt = max(0.0, min(self.debt_cap, agent.sleep_debt))
