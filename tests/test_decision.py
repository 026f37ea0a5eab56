"""Tests for the food decision model."""

import numpy as np
import pytest

from ssdsim.core.agent import Agent, NPCPreset
from ssdsim.core.config import SimulationConfig
from ssdsim.core.decision import FoodChoice, FoodDecisionModel
from ssdsim.core.environment import BerryPatch, Environment, HuntZone


def _make_agent(risk_tolerance=0.5, avoidance=0.5, **overrides):
    defaults = dict(
        name="A",
        preset=NPCPreset(risk_tolerance=risk_tolerance, avoidance=avoidance),
        x=0, y=0, hunger=80.0,
    )
    defaults.update(overrides)
    return Agent(**defaults)


def _make_world(cooperation=True):
    config = SimulationConfig(
        berry_count=0, hunt_zone_count=0,
        cooperation_enabled=cooperation,
        day_night_enabled=False,
        hunt_population_enabled=False,
    )
    env = Environment(config, np.random.default_rng(0))
    return FoodDecisionModel(config), env


def _add_patch(env, x, y, abundance):
    patch = BerryPatch(x=x, y=y, abundance=abundance, regen=0.0)
    env.berries[patch.key] = patch
    return patch


def _add_zone(env, x, y, base_success, danger):
    zone = HuntZone(x=x, y=y, base_success=base_success, danger=danger)
    env.hunt_zones[zone.key] = zone
    return zone


class TestUtilities:
    def test_hunt_utility(self):
        model, env = _make_world()
        agent = _make_agent(risk_tolerance=0.9)
        zone = _add_zone(env, 1, 0, base_success=0.8, danger=0.1)
        u = model.hunt_utility(agent, zone, coop_bonus=0.0)
        assert u == pytest.approx((0.8 - 0.1 * 0.1) * 30 - 0.5)

    def test_forage_utility(self):
        model, env = _make_world()
        agent = _make_agent()
        patch = _add_patch(env, 0, 2, abundance=0.4)
        assert model.forage_utility(agent, patch) == pytest.approx(0.4 * 0.7 * 15 - 0.5)

    def test_coop_bonus(self):
        model, _ = _make_world(cooperation=True)
        assert model.coop_bonus(2) == pytest.approx(0.3)

    def test_coop_bonus_disabled(self):
        model, _ = _make_world(cooperation=False)
        assert model.coop_bonus(4) == 0.0


class TestDecide:
    def test_no_targets_searches(self):
        model, env = _make_world()
        result = model.decide(_make_agent(), env, ally_count=0, tick=0)
        assert result.choice is FoodChoice.SEARCH
        assert result.target_key is None

    def test_only_patch_forages(self):
        model, env = _make_world()
        patch = _add_patch(env, 2, 2, abundance=0.3)
        result = model.decide(_make_agent(), env, ally_count=0, tick=0)
        assert result.choice is FoodChoice.FORAGE
        assert result.target_key == patch.key

    def test_bold_agent_hunts_better_zone(self):
        model, env = _make_world()
        zone = _add_zone(env, 1, 0, base_success=0.8, danger=0.1)
        _add_patch(env, 0, 1, abundance=0.1)
        result = model.decide(_make_agent(risk_tolerance=0.9), env, ally_count=0, tick=0)
        assert result.choice is FoodChoice.HUNT
        assert result.target_key == zone.key
        assert result.utilities["hunt"] > result.utilities["forage"]

    def test_cautious_agent_forages_alone(self):
        model, env = _make_world()
        _add_zone(env, 1, 0, base_success=0.8, danger=0.1)
        patch = _add_patch(env, 0, 1, abundance=0.1)
        result = model.decide(_make_agent(risk_tolerance=0.2), env, ally_count=0, tick=0)
        assert result.choice is FoodChoice.FORAGE
        assert result.target_key == patch.key

    def test_allies_embolden_cautious_agent(self):
        model, env = _make_world(cooperation=True)
        zone = _add_zone(env, 1, 0, base_success=0.8, danger=0.1)
        _add_patch(env, 0, 1, abundance=0.1)
        result = model.decide(_make_agent(risk_tolerance=0.2), env, ally_count=1, tick=0)
        assert result.choice is FoodChoice.HUNT
        assert result.target_key == zone.key
        assert result.coop_bonus == pytest.approx(0.15)

    def test_cautious_agent_with_only_zone_searches(self):
        model, env = _make_world(cooperation=False)
        _add_zone(env, 1, 0, base_success=0.8, danger=0.1)
        result = model.decide(_make_agent(risk_tolerance=0.2), env, ally_count=3, tick=0)
        assert result.choice is FoodChoice.SEARCH

    def test_circuit_breaker_skips_failed_patch(self):
        model, env = _make_world()
        patch = _add_patch(env, 0, 1, abundance=0.5)
        agent = _make_agent(forage_failures={patch.key: 3})
        assert model.decide(agent, env, ally_count=0, tick=0).choice is FoodChoice.SEARCH

        agent.forage_failures[patch.key] = 2
        assert model.decide(agent, env, ally_count=0, tick=0).choice is FoodChoice.FORAGE

    def test_injury_aware_agent_avoids_unsafe_zone(self):
        model, env = _make_world()
        zone = _add_zone(env, 1, 0, base_success=0.8, danger=0.1)
        zone.unsafe_until = 5

        wary = _make_agent(risk_tolerance=0.9, avoidance=0.8)
        assert model.decide(wary, env, ally_count=0, tick=0).choice is FoodChoice.SEARCH
        assert model.decide(wary, env, ally_count=0, tick=5).choice is FoodChoice.HUNT

        bold = _make_agent(risk_tolerance=0.9, avoidance=0.2)
        assert model.decide(bold, env, ally_count=0, tick=0).choice is FoodChoice.HUNT

        hurt = _make_agent(risk_tolerance=0.9, avoidance=0.2, injury=40.0)
        assert model.decide(hurt, env, ally_count=0, tick=0).choice is FoodChoice.SEARCH

    def test_only_nearest_candidates_considered(self):
        model, env = _make_world()
        for i in range(4):
            _add_patch(env, i + 1, 0, abundance=0.1)
        rich_far = _add_patch(env, 20, 20, abundance=1.0)
        result = model.decide(_make_agent(), env, ally_count=0, tick=0)
        assert result.target_key != rich_far.key

    def test_to_dict(self):
        model, env = _make_world()
        _add_patch(env, 2, 2, abundance=0.3)
        d = model.decide(_make_agent(), env, ally_count=0, tick=0).to_dict()
        assert d["choice"] == "forage"
        assert d["target"] == "2,2"
        assert "forage" in d["utilities"]
