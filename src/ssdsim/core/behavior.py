"""
Per-tick NPC state machine.

One call to ``NPCBehavior.step`` advances one living NPC by one tick:

  1. metabolism          hunger/fatigue/injury growth, sleep-debt accrual
  2. death check         leap hazard while in crisis, hard limit at 110
  3. temperature         T from E and habit dispersion
  4. sleep               circadian sleep/wake (sleep-debt tracking only)
  5. help                share food or tend wounds of a nearby peer
  6. rest                recover fatigue when tired but not hungry
  7. food                hunt, forage or search when hungry
  8. patrol              wander when nothing else applies

Steps 4-6 end the tick when they act. Every meaningful action appends a
``LogEntry`` to ``agent.log``; the driver drains it.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

import numpy as np

from ssdsim.core.agent import get_or_default
from ssdsim.core.decision import FoodChoice, FoodDecisionModel
from ssdsim.core.environment import manhattan
from ssdsim.core.events import Action, HabitKind, LogEntry, NPCState
from ssdsim.core.needs import MetabolismSystem
from ssdsim.core.ssd import SSDModel

if TYPE_CHECKING:
    from ssdsim.core.agent import Agent
    from ssdsim.core.config import SimulationConfig
    from ssdsim.core.decision import DecisionResult
    from ssdsim.core.environment import BerryPatch, Environment, HuntZone


class NPCBehavior:
    """Runs the per-tick decision cascade for one NPC at a time."""

    def __init__(self, config: SimulationConfig):
        self.config = config
        self.ssd = SSDModel(config)
        self.metabolism = MetabolismSystem(config.metabolism_config, config.sleep_config)
        self.decision = FoodDecisionModel(config)

        self.hunger_threshold = config.thresholds["hunger"]
        self.fatigue_threshold = config.thresholds["fatigue"]
        self.rest_hunger_fraction = config.thresholds["rest_hunger_fraction"]
        self.vital_cap = self.metabolism.vital_cap

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def step(
        self,
        agent: Agent,
        roster: dict[str, Agent],
        env: Environment,
        tick: int,
        rng: np.random.Generator,
    ) -> None:
        """Advance ``agent`` by one tick. Dead agents are left untouched."""
        if not agent.alive:
            return

        night = env.is_night(tick)
        self.metabolism.apply(agent, is_night=night)
        if self.config.sleep_debt_enabled:
            self.metabolism.accrue_sleep_debt(agent)
        self.metabolism.clip_vitals(agent)

        if self._check_death(agent, tick, rng):
            return

        self.ssd.update_temperature(agent)
        self._act(agent, roster, env, tick, night, rng)
        self.metabolism.clip_vitals(agent)

    def _act(
        self,
        agent: Agent,
        roster: dict[str, Agent],
        env: Environment,
        tick: int,
        night: bool,
        rng: np.random.Generator,
    ) -> None:
        if self.config.sleep_debt_enabled and self._handle_sleep(agent, tick, night):
            return
        if self._try_help(agent, roster, tick):
            return
        if self._try_rest(agent, tick):
            return
        if agent.hunger > self.hunger_threshold:
            self._seek_food(agent, roster, env, tick, rng)
        else:
            self._patrol(agent, env, tick, rng)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def _log(
        self,
        agent: Agent,
        tick: int,
        action: Action,
        target: str | None = None,
        amount: float | None = None,
        **details: float,
    ) -> None:
        agent.log.append(LogEntry(
            tick=tick,
            agent_name=agent.name,
            state=agent.state,
            action=action.value,
            hunger=agent.hunger,
            fatigue=agent.fatigue,
            injury=agent.injury,
            E=agent.E,
            T=agent.T,
            kappa=dict(agent.kappa),
            target=target,
            amount=amount,
            details=dict(details),
        ))

    # ------------------------------------------------------------------
    # Death
    # ------------------------------------------------------------------

    def _check_death(self, agent: Agent, tick: int, rng: np.random.Generator) -> bool:
        if not self.metabolism.in_crisis(agent):
            return False
        leap = self.ssd.check_leap(agent, rng)
        if not (leap.occurred or self.metabolism.past_hard_limit(agent)):
            return False

        agent.alive = False
        agent.is_sleeping = False
        agent.state = NPCState.DEAD.value
        self._log(agent, tick, Action.DEATH, jump_rate=leap.hazard, theta=leap.theta)
        return True

    # ------------------------------------------------------------------
    # Sleep
    # ------------------------------------------------------------------

    def _handle_sleep(self, agent: Agent, tick: int, night: bool) -> bool:
        """Circadian sleep. Returns True when the agent spent the tick asleep."""
        s = self.config.sleep_config

        if agent.is_sleeping:
            hungry = agent.hunger > self.hunger_threshold + s["wake_hunger_margin"]
            rested = agent.sleep_debt <= s["wake_threshold"] and not night
            if hungry or rested:
                agent.is_sleeping = False
                agent.state = NPCState.IDLE.value
                self._log(agent, tick, Action.WAKE, sleep_debt=agent.sleep_debt)
                return False
            self._sleep(agent, tick)
            return True

        sleep_window = night or not self.config.day_night_enabled
        drowsy = (
            agent.sleep_debt >= s["sleep_threshold"]
            and agent.hunger < self.hunger_threshold + s["sleep_hunger_margin"]
        )
        collapsed = agent.sleep_debt >= s["collapse_threshold"]
        if (sleep_window and drowsy) or collapsed:
            agent.is_sleeping = True
            self._sleep(agent, tick)
            return True
        return False

    def _sleep(self, agent: Agent, tick: int) -> None:
        s = self.config.sleep_config
        stamina_bonus = self.config.rest_config["stamina_bonus"]

        agent.sleep_debt = max(0.0, agent.sleep_debt - s["debt_recovery"])
        relief = s["fatigue_recovery"] * (1.0 + stamina_bonus * agent.preset.stamina)
        agent.fatigue = max(0.0, agent.fatigue - relief)

        self.ssd.update_kappa(agent, HabitKind.REST.value, True, relief)
        self.ssd.update_heat(
            agent, self.metabolism.fatigue_rate, relief / s["fatigue_recovery"],
        )
        agent.state = NPCState.SLEEP.value
        self._log(agent, tick, Action.SLEEP, amount=relief, sleep_debt=agent.sleep_debt)

    # ------------------------------------------------------------------
    # Help
    # ------------------------------------------------------------------

    def unmet_need(self, agent: Agent) -> float:
        """How badly ``agent`` needs help, summed over its vitals."""
        h = self.config.help_config
        return (
            max(0.0, (agent.hunger - self.hunger_threshold) / h["need_hunger_scale"])
            + max(0.0, (agent.injury - h["need_injury_threshold"]) / h["need_injury_scale"])
            + max(0.0, (agent.fatigue - self.fatigue_threshold) / h["need_fatigue_scale"])
        )

    def help_utility(self, helper: Agent, target: Agent) -> float:
        h = self.config.help_config
        base = (
            h["empathy_weight"] * helper.preset.empathy
            + h["relationship_weight"] * get_or_default(helper.relationship, target.name)
            + h["debt_weight"] * get_or_default(helper.help_debt, target.name)
        )
        return self.unmet_need(target) * base - h["self_need_weight"] * self.unmet_need(helper)

    @staticmethod
    def nearby_peers(agent: Agent, roster: dict[str, Agent], radius: int) -> list[Agent]:
        """Living peers within ``radius`` (Manhattan), in roster order."""
        return [
            other for other in roster.values()
            if other.name != agent.name and other.alive and agent.distance_to(other) <= radius
        ]

    def _try_help(self, agent: Agent, roster: dict[str, Agent], tick: int) -> bool:
        h = self.config.help_config
        best: Agent | None = None
        best_utility = 0.0
        for other in self.nearby_peers(agent, roster, int(h["radius"])):
            u = self.help_utility(agent, other)
            if u > best_utility:
                best, best_utility = other, u

        if best is None or best_utility <= h["activation_threshold"]:
            return False

        if agent.hunger < h["share_max_helper_hunger"] and best.hunger > h["share_min_target_hunger"]:
            self._share_food(agent, best, tick)
            return True
        if best.injury > h["tend_min_injury"] or best.fatigue > h["tend_min_fatigue"]:
            self._tend_wounds(agent, best, tick)
            return True
        return False

    def _record_help(
        self, helper: Agent, target: Agent, gain: float, reciprocal: float, debt: float,
    ) -> None:
        helper.relationship[target.name] = get_or_default(helper.relationship, target.name) + gain
        target.relationship[helper.name] = get_or_default(target.relationship, helper.name) + reciprocal
        target.help_debt[helper.name] = get_or_default(target.help_debt, helper.name) + debt
        # helping repays what the helper owed
        owed = get_or_default(helper.help_debt, target.name)
        if owed > 0:
            helper.help_debt[target.name] = max(0.0, owed - debt)

    def _share_food(self, helper: Agent, target: Agent, tick: int) -> None:
        h = self.config.help_config
        amount = h["share_amount"]
        helper.hunger = min(self.vital_cap, helper.hunger + h["share_helper_cost"])
        target.hunger = max(0.0, target.hunger - amount)
        self._record_help(
            helper, target,
            h["share_relationship_gain"], h["share_reciprocal_gain"], h["share_debt_gain"],
        )
        self.ssd.update_kappa(helper, HabitKind.HELP.value, True, h["share_kappa_reward"])
        helper.state = NPCState.HELP.value
        self._log(helper, tick, Action.SHARE_FOOD, target=target.name, amount=amount)

    def _tend_wounds(self, helper: Agent, target: Agent, tick: int) -> None:
        h = self.config.help_config
        relief = h["tend_fatigue_relief"] * (1.0 + h["tend_stamina_bonus"] * helper.preset.stamina)
        target.fatigue = max(0.0, target.fatigue - relief)
        target.injury = max(0.0, target.injury - h["tend_injury_relief"])
        helper.fatigue = min(self.vital_cap, helper.fatigue + h["tend_helper_cost"])
        self._record_help(
            helper, target,
            h["tend_relationship_gain"], h["tend_reciprocal_gain"], h["tend_debt_gain"],
        )
        self.ssd.update_kappa(helper, HabitKind.HELP.value, True, h["tend_kappa_reward"])
        helper.state = NPCState.HELP.value
        self._log(helper, tick, Action.TEND_WOUNDS, target=target.name, amount=relief)

    # ------------------------------------------------------------------
    # Rest
    # ------------------------------------------------------------------

    def _try_rest(self, agent: Agent, tick: int) -> bool:
        if agent.fatigue <= self.fatigue_threshold:
            return False
        if agent.hunger >= self.hunger_threshold * self.rest_hunger_fraction:
            return False

        r = self.config.rest_config
        stamina = agent.preset.stamina
        amount = r["amount"] * (1.0 + r["stamina_bonus"] * stamina)
        agent.fatigue = max(0.0, agent.fatigue - amount)
        agent.hunger = min(self.vital_cap, agent.hunger + r["hunger_cost"])
        agent.injury = max(0.0, agent.injury - r["injury_relief"] * (1.0 + r["injury_stamina_bonus"] * stamina))

        self.ssd.update_kappa(agent, HabitKind.REST.value, True, amount)
        self.ssd.update_heat(agent, self.metabolism.fatigue_rate, amount / r["amount"])
        agent.state = NPCState.SLEEP.value
        self._log(agent, tick, Action.REST, amount=amount)
        return True

    # ------------------------------------------------------------------
    # Food
    # ------------------------------------------------------------------

    def meaning_pressure(self, agent: Agent) -> float:
        """Hunger above the threshold, normalised to the 100-point crisis line."""
        return (agent.hunger - self.hunger_threshold) / (100.0 - self.hunger_threshold)

    def _seek_food(
        self,
        agent: Agent,
        roster: dict[str, Agent],
        env: Environment,
        tick: int,
        rng: np.random.Generator,
    ) -> None:
        pressure = self.meaning_pressure(agent)
        allies = self.nearby_peers(agent, roster, int(self.config.decision_config["coop_radius"]))
        decision = self.decision.decide(agent, env, len(allies), tick)

        if decision.choice is FoodChoice.HUNT:
            self._hunt(agent, env.hunt_zones[decision.target_key], decision, pressure, env, tick, rng)
        elif decision.choice is FoodChoice.FORAGE:
            self._forage(agent, env.berries[decision.target_key], pressure, env, tick, rng)
        else:
            self._search(agent, pressure, env, tick, rng)

    def _hunt(
        self,
        agent: Agent,
        zone: HuntZone,
        decision: DecisionResult,
        pressure: float,
        env: Environment,
        tick: int,
        rng: np.random.Generator,
    ) -> None:
        d = self.config.decision_config
        agent.move_towards(zone.position)
        injury_factor = 1.0 - agent.injury / d["hunt_injury_scale"]
        outcome = env.hunt(
            agent.position, zone, rng,
            injury_factor=injury_factor,
            coop_bonus=decision.coop_bonus,
            visibility=env.visibility(tick),
        )
        flow = self.ssd.alignment_flow(agent, HabitKind.HUNT.value, pressure)
        agent.state = NPCState.HUNT.value

        if outcome.success:
            agent.hunger = max(0.0, agent.hunger - outcome.food)
            agent.fatigue = min(self.vital_cap, agent.fatigue + outcome.food * d["hunt_fatigue_per_food"])
            if rng.random() < outcome.risk:
                agent.injury = min(self.vital_cap, agent.injury + float(rng.uniform(*d["hunt_injury_range"])))
            self.ssd.update_kappa(agent, HabitKind.HUNT.value, True, outcome.food)
            self.ssd.update_heat(agent, pressure, flow)
            self._log(
                agent, tick, Action.HUNT_SUCCESS, target=zone.key, amount=outcome.food,
                probability=outcome.probability, coop_bonus=decision.coop_bonus,
            )
            return

        agent.fatigue = min(self.vital_cap, agent.fatigue + d["hunt_fail_fatigue"])
        if rng.random() < outcome.risk * d["hunt_fail_risk_multiplier"]:
            agent.injury = min(self.vital_cap, agent.injury + float(rng.uniform(*d["hunt_fail_injury_range"])))
            env.mark_unsafe(zone, tick)
        self.ssd.update_kappa(agent, HabitKind.HUNT.value, False)
        self.ssd.update_heat(agent, pressure, 0.0)
        self._log(
            agent, tick, Action.HUNT_FAIL, target=zone.key,
            probability=outcome.probability, coop_bonus=decision.coop_bonus,
        )

    def _forage(
        self,
        agent: Agent,
        patch: BerryPatch,
        pressure: float,
        env: Environment,
        tick: int,
        rng: np.random.Generator,
    ) -> None:
        d = self.config.decision_config
        agent.move_towards(patch.position)
        flow = self.ssd.alignment_flow(agent, HabitKind.FORAGE.value, pressure)
        outcome = env.forage(agent.position, patch, rng)
        agent.state = NPCState.FOOD.value

        if outcome.success:
            agent.hunger = max(0.0, agent.hunger - outcome.food)
            agent.fatigue = max(0.0, agent.fatigue - outcome.food * d["forage_fatigue_relief_per_food"])
            if rng.random() < outcome.risk:
                agent.injury = min(self.vital_cap, agent.injury + float(rng.uniform(*d["forage_scratch_range"])))
            self.ssd.update_kappa(agent, HabitKind.FORAGE.value, True, outcome.food)
            self.ssd.update_heat(agent, pressure, flow)
            agent.forage_failures[patch.key] = 0
            self._log(
                agent, tick, Action.EAT_SUCCESS, target=patch.key, amount=outcome.food,
                probability=outcome.probability,
            )
            return

        self.ssd.update_kappa(agent, HabitKind.FORAGE.value, False)
        self.ssd.update_heat(agent, pressure, 0.0)
        if manhattan(agent.position, patch.position) <= 1:
            agent.forage_failures[patch.key] = get_or_default(agent.forage_failures, patch.key, 0) + 1
        self._log(
            agent, tick, Action.EAT_FAIL, target=patch.key, probability=outcome.probability,
        )

    def _search(
        self,
        agent: Agent,
        pressure: float,
        env: Environment,
        tick: int,
        rng: np.random.Generator,
    ) -> None:
        d = self.config.decision_config
        self.ssd.update_heat(agent, pressure, 0.0)
        agent.state = NPCState.SEARCHING.value
        self._log(agent, tick, Action.SEARCH_FOOD_FALLBACK)
        if rng.random() < d["circuit_breaker_reset_chance"]:
            agent.forage_failures.clear()
        self._random_move(agent, env, d["search_range_scale"], rng)

    # ------------------------------------------------------------------
    # Patrol
    # ------------------------------------------------------------------

    def _patrol(self, agent: Agent, env: Environment, tick: int, rng: np.random.Generator) -> None:
        d = self.config.decision_config
        self._random_move(agent, env, d["patrol_range_scale"], rng)
        agent.boredom += d["boredom_rate"]
        self.ssd.update_heat(agent, agent.boredom * d["boredom_pressure"], 0.0)
        agent.state = NPCState.PATROL.value
        self._log(agent, tick, Action.PATROL, boredom=agent.boredom)

    @staticmethod
    def _random_move(
        agent: Agent, env: Environment, scale: float, rng: np.random.Generator,
    ) -> None:
        """Jump up to ``floor(T * scale)`` cells on each axis, staying on the grid."""
        reach = int(math.floor(agent.T * scale))
        dx = int(rng.integers(-reach, reach + 1))
        dy = int(rng.integers(-reach, reach + 1))
        agent.x = int(np.clip(agent.x + dx, 0, env.size - 1))
        agent.y = int(np.clip(agent.y + dy, 0, env.size - 1))

    def explain(self, agent: Agent, roster: dict[str, Agent], env: Environment, tick: int) -> dict[str, Any]:
        """Read-only view of what drives the agent's next food decision."""
        allies = self.nearby_peers(agent, roster, int(self.config.decision_config["coop_radius"]))
        hazard, theta, prob = self.ssd.leap_hazard(agent)
        return {
            "decision": self.decision.decide(agent, env, len(allies), tick).to_dict(),
            "meaning_pressure": self.meaning_pressure(agent),
            "unmet_need": self.unmet_need(agent),
            "leap": {"hazard": hazard, "theta": theta, "probability": prob},
        }
