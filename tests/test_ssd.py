"""Tests for the Subjective State Dynamics recurrences."""

import math

import numpy as np
import pytest

from ssdsim.core.agent import Agent, NPCPreset
from ssdsim.core.config import SimulationConfig
from ssdsim.core.ssd import SSDModel


def _make_agent(**overrides):
    defaults = dict(name="A", preset=NPCPreset(), x=0, y=0)
    defaults.update(overrides)
    return Agent(**defaults)


@pytest.fixture
def model():
    return SSDModel(SimulationConfig())


class TestKappa:
    def test_lazy_default_inserted_on_read(self, model):
        agent = _make_agent()
        assert model.kappa(agent, "forage") == pytest.approx(0.1)
        assert agent.kappa == {"forage": 0.1}

    def test_success(self, model):
        agent = _make_agent()
        value = model.update_kappa(agent, "hunt", True, reward=10.0)
        assert value == pytest.approx(0.1 + 0.3 * 10.0 - 0.02 * (0.1 - 0.05))

    def test_failure(self, model):
        agent = _make_agent()
        value = model.update_kappa(agent, "hunt", False)
        assert value == pytest.approx(0.1 - 0.1 * 0.01 - 0.02 * 0.05)

    def test_floor(self, model):
        agent = _make_agent(kappa={"hunt": 0.05})
        for _ in range(10):
            model.update_kappa(agent, "hunt", False)
        assert agent.kappa["hunt"] == pytest.approx(0.05)

    def test_repeated_success_is_monotone(self, model):
        agent = _make_agent()
        previous = model.kappa(agent, "forage")
        for _ in range(30):
            current = model.update_kappa(agent, "forage", True, reward=1.0)
            assert current > previous
            previous = current

    def test_repeated_failure_is_monotone_down(self, model):
        agent = _make_agent(kappa={"forage": 2.0})
        previous = 2.0
        for _ in range(30):
            current = model.update_kappa(agent, "forage", False)
            assert current <= previous
            assert current >= 0.05
            previous = current


class TestAlignmentFlow:
    def test_default_habit(self, model):
        agent = _make_agent()
        assert model.alignment_flow(agent, "hunt", 1.0) == pytest.approx(0.5 + 0.7 * 0.1)

    def test_scales_with_habit(self, model):
        agent = _make_agent(kappa={"hunt": 2.0})
        assert model.alignment_flow(agent, "hunt", 0.5) == pytest.approx((0.5 + 1.4) * 0.5)


class TestHeat:
    def test_accumulates_unprocessed(self, model):
        agent = _make_agent()
        assert model.update_heat(agent, 1.0, 0.2) == pytest.approx(0.6 * 0.8)

    def test_decays_when_processed(self, model):
        agent = _make_agent(E=1.0)
        assert model.update_heat(agent, 0.5, 2.0) == pytest.approx(0.85)

    def test_never_negative(self, model):
        agent = _make_agent(E=0.0)
        assert model.update_heat(agent, -5.0, 0.0) == 0.0


class TestTemperature:
    def test_default_dispersion_with_fewer_than_two_habits(self, model):
        agent = _make_agent(E=1.0, kappa={"hunt": 3.0})
        assert model.update_temperature(agent) == pytest.approx(0.3 + 0.5 - 0.6 * 0.5)

    def test_dispersion_from_habits(self, model):
        agent = _make_agent(E=0.4, kappa={"a": 0.1, "b": 0.3})
        assert model.update_temperature(agent) == pytest.approx(0.3 + 0.2 - 0.6 * 0.1)

    def test_clipped(self, model):
        cold = _make_agent(E=0.0)
        hot = _make_agent(E=10.0)
        assert model.update_temperature(cold) == pytest.approx(0.1)
        assert model.update_temperature(hot) == pytest.approx(1.0)


class TestLeap:
    def test_threshold(self, model):
        agent = _make_agent(fatigue=50.0, kappa={"a": 1.0, "b": 3.0})
        assert model.leap_threshold(agent) == pytest.approx(1.0 + 0.5 * 2.0 - 0.4 * 0.5)

    def test_hazard(self, model):
        agent = _make_agent(E=0.0, fatigue=0.0)
        hazard, theta, prob = model.leap_hazard(agent)
        assert theta == pytest.approx(1.05)
        assert hazard == pytest.approx(0.2 * math.exp(-1.05 / 0.8))
        assert prob == pytest.approx(1.0 - math.exp(-hazard))

    def test_hazard_grows_with_pressure(self, model):
        low = model.leap_hazard(_make_agent(E=0.5))[0]
        high = model.leap_hazard(_make_agent(E=3.0))[0]
        assert high > low

    def test_extreme_pressure_always_leaps(self, model):
        rng = np.random.default_rng(0)
        agent = _make_agent(E=1000.0)
        result = model.check_leap(agent, rng)
        assert result.occurred
        assert result.probability == pytest.approx(1.0)
