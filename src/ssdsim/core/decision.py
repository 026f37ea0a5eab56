"""
Utility-based food decision model.

A hungry NPC scores the nearby hunt zones and berry patches:

  U_hunt(z)   = (success(z) * visibility + coop - danger(z) * (1 - risk_tolerance)) * 30
                - hunt_distance_penalty * d(z)
  U_forage(p) = abundance(p) * 0.7 * 15 - forage_distance_penalty * d(p)

and picks the best of each. Hunting wins only when its utility is strictly
higher and the NPC is either bold enough or has allies nearby. Patches that
failed repeatedly from where the NPC stood are skipped (circuit breaker);
zones recently marked unsafe are skipped by injury-aware NPCs.

Every decision produces a DecisionResult with the utilities that drove it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from ssdsim.core.agent import get_or_default
from ssdsim.core.environment import Environment, manhattan

if TYPE_CHECKING:
    from ssdsim.core.agent import Agent
    from ssdsim.core.config import SimulationConfig
    from ssdsim.core.environment import BerryPatch, HuntZone


class FoodChoice(Enum):
    """What a hungry NPC does this tick."""
    HUNT = "hunt"
    FORAGE = "forage"
    SEARCH = "search"


@dataclass
class DecisionResult:
    """Result of a food decision with explainability data."""
    choice: FoodChoice
    target_key: str | None
    utilities: dict[str, float]     # best utility per available option
    coop_bonus: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "choice": self.choice.value,
            "target": self.target_key,
            "utilities": self.utilities,
            "coop_bonus": self.coop_bonus,
        }


class FoodDecisionModel:
    """Chooses between hunting, foraging and searching."""

    def __init__(self, config: SimulationConfig):
        self.config = config
        d = config.decision_config
        self.coop_bonus_per_ally = d["coop_bonus_per_ally"]
        self.hunt_candidates_k = int(d["hunt_candidates"])
        self.forage_candidates_k = int(d["forage_candidates"])
        self.hunt_scale = d["hunt_scale"]
        self.forage_scale = d["forage_scale"]
        self.forage_abundance_weight = d["forage_abundance_weight"]
        self.hunt_distance_penalty = d["hunt_distance_penalty"]
        self.forage_distance_penalty = d["forage_distance_penalty"]
        self.min_risk_tolerance_to_hunt = d["min_risk_tolerance_to_hunt"]
        self.circuit_breaker_failures = int(d["circuit_breaker_failures"])
        self.unsafe_avoidance_trait = d["unsafe_avoidance_trait"]
        self.unsafe_avoidance_injury = d["unsafe_avoidance_injury"]

    # ------------------------------------------------------------------
    # Cooperation
    # ------------------------------------------------------------------

    def coop_bonus(self, ally_count: int) -> float:
        if not self.config.cooperation_enabled:
            return 0.0
        return ally_count * self.coop_bonus_per_ally

    # ------------------------------------------------------------------
    # Hunting
    # ------------------------------------------------------------------

    def avoids_unsafe_zones(self, agent: Agent) -> bool:
        """Injury-aware NPCs stay away from zones that recently hurt someone."""
        return (
            agent.preset.avoidance >= self.unsafe_avoidance_trait
            or agent.injury >= self.unsafe_avoidance_injury
        )

    def hunt_candidates(self, agent: Agent, env: Environment, tick: int) -> list[HuntZone]:
        zones = env.find_nearest(agent.position, env.hunt_zones, self.hunt_candidates_k)
        if self.avoids_unsafe_zones(agent):
            zones = [z for z in zones if not env.is_unsafe(z, tick)]
        return zones

    def hunt_utility(
        self, agent: Agent, zone: HuntZone, coop_bonus: float, visibility: float = 1.0,
    ) -> float:
        value = (
            zone.base_success * visibility
            + coop_bonus
            - zone.danger * (1.0 - agent.preset.risk_tolerance)
        ) * self.hunt_scale
        return value - self.hunt_distance_penalty * manhattan(agent.position, zone.position)

    # ------------------------------------------------------------------
    # Foraging
    # ------------------------------------------------------------------

    def forage_candidates(self, agent: Agent, env: Environment) -> list[BerryPatch]:
        patches = env.find_nearest(agent.position, env.berries, self.forage_candidates_k)
        return [
            p for p in patches
            if get_or_default(agent.forage_failures, p.key, 0) < self.circuit_breaker_failures
        ]

    def forage_utility(self, agent: Agent, patch: BerryPatch) -> float:
        value = patch.abundance * self.forage_abundance_weight * self.forage_scale
        return value - self.forage_distance_penalty * manhattan(agent.position, patch.position)

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    def decide(
        self, agent: Agent, env: Environment, ally_count: int, tick: int,
    ) -> DecisionResult:
        coop = self.coop_bonus(ally_count)
        visibility = env.visibility(tick)
        utilities: dict[str, float] = {}

        best_zone: HuntZone | None = None
        for zone in self.hunt_candidates(agent, env, tick):
            u = self.hunt_utility(agent, zone, coop, visibility)
            if best_zone is None or u > utilities["hunt"]:
                best_zone, utilities["hunt"] = zone, u

        best_patch: BerryPatch | None = None
        for patch in self.forage_candidates(agent, env):
            u = self.forage_utility(agent, patch)
            if best_patch is None or u > utilities["forage"]:
                best_patch, utilities["forage"] = patch, u

        may_hunt = agent.preset.risk_tolerance > self.min_risk_tolerance_to_hunt or coop > 0
        if (
            best_zone is not None
            and may_hunt
            and (best_patch is None or utilities["hunt"] > utilities["forage"])
        ):
            return DecisionResult(FoodChoice.HUNT, best_zone.key, utilities, coop)
        if best_patch is not None:
            return DecisionResult(FoodChoice.FORAGE, best_patch.key, utilities, coop)
        return DecisionResult(FoodChoice.SEARCH, None, utilities, coop)
