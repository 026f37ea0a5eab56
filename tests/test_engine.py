"""Integration tests for the simulation driver."""

import pytest

from ssdsim.core.config import SimulationConfig
from ssdsim.core.engine import (
    SimulationEngine,
    TickResult,
    TickSnapshot,
    advance_tick,
    reset_state,
)
from ssdsim.experiment.presets import get_preset


def _solo_config(**overrides):
    params = dict(
        random_seed=1,
        berry_count=0,
        hunt_zone_count=0,
        sleep_debt_enabled=False,
        day_night_enabled=False,
        roster={"Solo": {"risk_tolerance": 0.5, "start_offset": [0, 0]}},
    )
    params.update(overrides)
    return SimulationConfig(**params)


class TestReset:
    def test_reset_returns_initial_snapshots(self):
        engine = SimulationEngine(SimulationConfig(random_seed=42))
        agents, env = engine.reset()
        assert [a.name for a in agents] == list(SimulationConfig().roster)
        assert all(a.alive for a in agents)
        assert all(a.hunger == 50.0 and a.fatigue == 30.0 for a in agents)
        assert env.tick == 0
        assert engine.tick == 0

    def test_start_positions_around_centre(self):
        engine = SimulationEngine(SimulationConfig(random_seed=42))
        forager = engine.find_agent("Forager_A")
        assert forager.position == (11, 13)

    def test_reset_restores_same_world(self):
        engine = SimulationEngine(SimulationConfig(random_seed=5))
        _, env_before = engine.reset()
        for _ in range(10):
            engine.advance_tick()
        agents, env_after = engine.reset()
        assert env_after == env_before
        assert engine.tick == 0
        assert engine.state.log == []

    def test_invalid_config_rejected(self):
        with pytest.raises(ValueError):
            SimulationEngine(SimulationConfig(env_size=0))

    def test_unknown_agent(self):
        engine = SimulationEngine(SimulationConfig(random_seed=1))
        with pytest.raises(KeyError):
            engine.find_agent("Nobody")


class TestAdvanceTick:
    def test_result_shape(self):
        engine = SimulationEngine(SimulationConfig(random_seed=42))
        result = engine.advance_tick()
        assert isinstance(result, TickResult)
        assert result.tick == 0
        assert len(result.agents) == 5
        assert result.environment.tick == 1
        assert engine.tick == 1
        assert len(result.new_logs) >= 5

    def test_environment_advances_once_per_tick(self):
        engine = SimulationEngine(SimulationConfig(random_seed=42))
        for i in range(30):
            result = engine.advance_tick()
            assert result.environment.tick == i + 1
            assert engine.environment.tick == engine.tick

    def test_log_entries_belong_to_tick(self):
        engine = SimulationEngine(SimulationConfig(random_seed=3))
        for _ in range(20):
            result = engine.advance_tick()
            assert all(e.tick == result.tick for e in result.new_logs)

    def test_to_dict(self):
        engine = SimulationEngine(SimulationConfig(random_seed=3))
        d = engine.advance_tick().to_dict()
        assert set(d) == {"tick", "agents", "new_logs", "environment"}

    def test_explicit_tick_number(self):
        engine = SimulationEngine(SimulationConfig(random_seed=42))
        for i in range(3):
            result = engine.advance_tick(i)
            assert result.tick == i
        assert engine.tick == 3

    def test_mismatched_tick_number_rejected(self):
        engine = SimulationEngine(SimulationConfig(random_seed=42))
        engine.advance_tick()
        with pytest.raises(ValueError, match="Expected tick 1"):
            engine.advance_tick(5)
        assert engine.tick == 1

    def test_functional_form_accepts_tick(self):
        state = reset_state(SimulationConfig(random_seed=42))
        assert advance_tick(state, 0).tick == 0
        with pytest.raises(ValueError):
            advance_tick(state, 0)

    def test_functional_form_matches_engine(self):
        config = SimulationConfig(random_seed=11)
        state = reset_state(config)
        engine = SimulationEngine(SimulationConfig(random_seed=11))
        for _ in range(25):
            a = advance_tick(state)
            b = engine.advance_tick()
            assert a.to_dict() == b.to_dict()


class TestDeterminism:
    def test_same_seed_same_run(self):
        a = SimulationEngine(get_preset("full"))
        b = SimulationEngine(get_preset("full"))
        a.config.random_seed = b.config.random_seed = 123
        a.reset()
        b.reset()
        for _ in range(150):
            ra = a.advance_tick()
            rb = b.advance_tick()
            assert ra.to_dict() == rb.to_dict()

    def test_different_seeds_diverge(self):
        a = SimulationEngine(SimulationConfig(random_seed=1))
        b = SimulationEngine(SimulationConfig(random_seed=2))
        assert a.environment.snapshot() != b.environment.snapshot()


class TestInvariants:
    @pytest.mark.parametrize("preset", ["basic", "full", "scarce", "abundant"])
    def test_bounds_hold_over_long_runs(self, preset):
        config = get_preset(preset)
        config.random_seed = 7
        engine = SimulationEngine(config)
        seen_dead: set[str] = set()

        for _ in range(300):
            result = engine.advance_tick()

            for entry in result.new_logs:
                assert entry.agent_name not in seen_dead
            seen_dead.update(result.deaths)

            for a in result.agents:
                for vital in (a.hunger, a.fatigue, a.injury):
                    assert 0.0 <= vital <= 120.0
                assert a.E >= 0.0
                assert 0.1 <= a.T <= 1.0
                assert all(k >= 0.05 for k in a.kappa.values())
                assert 0 <= a.x < config.env_size
                assert 0 <= a.y < config.env_size
                assert 0.0 <= a.sleep_debt <= 200.0
                assert a.alive == (a.name not in seen_dead)

            for p in result.environment.patches.values():
                assert 0.0 <= p["abundance"] <= 1.0
            for z in result.environment.hunt_zones.values():
                assert 0.03 <= z["base_success"] <= 0.8
                if z["population"] is not None:
                    assert 0.0 <= z["population"] <= 1.0

    def test_each_agent_dies_at_most_once(self):
        engine = SimulationEngine(get_preset("scarce"))
        engine.config.random_seed = 2
        engine.reset()
        for _ in range(300):
            engine.advance_tick()
        deaths = [e.agent_name for e in engine.state.log if e.action == "death"]
        assert len(deaths) == len(set(deaths))
        assert set(deaths) == {a.name for a in engine.state.agents if not a.alive}


class TestRun:
    def test_run_returns_snapshots(self):
        config = SimulationConfig(random_seed=42, ticks_to_run=30)
        engine = SimulationEngine(config)
        history = engine.run()
        assert len(history) == 30
        assert all(isinstance(s, TickSnapshot) for s in history)
        assert [s.tick for s in history] == list(range(30))

    def test_run_calls_on_tick(self):
        seen = []
        engine = SimulationEngine(SimulationConfig(random_seed=42))
        engine.run(ticks=5, on_tick=lambda r: seen.append(r.tick))
        assert seen == [0, 1, 2, 3, 4]

    def test_run_stops_when_everyone_is_dead(self):
        engine = SimulationEngine(_solo_config())
        history = engine.run(ticks=200)
        assert len(history) < 200
        assert history[-1].alive == 0
        assert sum(s.deaths for s in history) == 1

    def test_run_zero_ticks(self):
        engine = SimulationEngine(SimulationConfig(random_seed=42))
        assert engine.run(ticks=0) == []
