"""
Tests for MetabolismSystem.

Covers per-tick vital growth, day/night modifiers, sleeping hunger
reduction, sleep-debt accrual and overload, crisis helpers and clipping.
"""

import pytest

from ssdsim.core.agent import Agent, NPCPreset
from ssdsim.core.config import SimulationConfig
from ssdsim.core.needs import DEFAULT_MODIFIERS, MetabolismSystem, phase_modifiers


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_agent(**overrides):
    defaults = dict(name="A", preset=NPCPreset(), x=0, y=0)
    defaults.update(overrides)
    return Agent(**defaults)


def _make_system():
    config = SimulationConfig()
    return MetabolismSystem(config.metabolism_config, config.sleep_config)


# ---------------------------------------------------------------------------
# Modifiers
# ---------------------------------------------------------------------------

class TestModifiers:
    def test_day_is_neutral(self):
        mods = phase_modifiers(1.25)
        assert mods["day"] == DEFAULT_MODIFIERS

    def test_night_tires_faster(self):
        mods = phase_modifiers(1.25)
        assert mods["night"]["fatigue"] == 1.25
        assert mods["night"]["hunger"] == 1.0

    def test_config_defaults_used_when_missing(self):
        system = MetabolismSystem({})
        assert system.hunger_rate == 1.8
        assert system.vital_cap == 120.0


# ---------------------------------------------------------------------------
# Growth
# ---------------------------------------------------------------------------

class TestApply:
    def test_daytime_growth(self):
        system = _make_system()
        agent = _make_agent(hunger=50.0, fatigue=30.0, injury=0.0)
        system.apply(agent)
        assert agent.hunger == pytest.approx(51.8)
        assert agent.fatigue == pytest.approx(30.8)
        assert agent.injury == pytest.approx(0.02 * 30.8 / 100.0)

    def test_night_fatigue(self):
        system = _make_system()
        agent = _make_agent(fatigue=30.0)
        system.apply(agent, is_night=True)
        assert agent.fatigue == pytest.approx(31.0)

    def test_sleeping_halves_hunger(self):
        system = _make_system()
        agent = _make_agent(hunger=50.0, is_sleeping=True)
        system.apply(agent)
        assert agent.hunger == pytest.approx(50.9)

    def test_capped(self):
        system = _make_system()
        agent = _make_agent(hunger=119.5, fatigue=119.9, injury=120.0)
        system.apply(agent)
        assert agent.hunger == 120.0
        assert agent.fatigue == 120.0
        assert agent.injury == 120.0


# ---------------------------------------------------------------------------
# Sleep debt
# ---------------------------------------------------------------------------

class TestSleepDebt:
    def test_accrues_when_awake(self):
        system = _make_system()
        agent = _make_agent(sleep_debt=10.0)
        system.accrue_sleep_debt(agent)
        assert agent.sleep_debt == pytest.approx(11.0)

    def test_no_accrual_while_sleeping(self):
        system = _make_system()
        agent = _make_agent(sleep_debt=10.0, is_sleeping=True)
        system.accrue_sleep_debt(agent)
        assert agent.sleep_debt == pytest.approx(10.0)

    def test_overload_adds_fatigue(self):
        system = _make_system()
        agent = _make_agent(sleep_debt=150.0, fatigue=30.0)
        system.accrue_sleep_debt(agent)
        assert agent.sleep_debt == pytest.approx(151.0)
        assert agent.fatigue == pytest.approx(30.0 + 51.0 * 0.01)

    def test_debt_capped(self):
        system = _make_system()
        agent = _make_agent(sleep_debt=200.0)
        system.accrue_sleep_debt(agent)
        assert agent.sleep_debt == 200.0


# ---------------------------------------------------------------------------
# Crisis helpers
# ---------------------------------------------------------------------------

class TestCrisis:
    def test_in_crisis(self):
        system = _make_system()
        assert not system.in_crisis(_make_agent(hunger=99.9))
        assert system.in_crisis(_make_agent(hunger=100.0))
        assert system.in_crisis(_make_agent(injury=105.0))

    def test_past_hard_limit(self):
        system = _make_system()
        assert not system.past_hard_limit(_make_agent(hunger=109.0))
        assert system.past_hard_limit(_make_agent(hunger=110.0))
        assert system.past_hard_limit(_make_agent(injury=115.0))

    def test_clip_vitals(self):
        system = _make_system()
        agent = _make_agent(hunger=-3.0, fatigue=130.0, injury=50.0, sleep_debt=250.0)
        system.clip_vitals(agent)
        assert agent.hunger == 0.0
        assert agent.fatigue == 120.0
        assert agent.injury == 50.0
        assert agent.sleep_debt == 200.0
