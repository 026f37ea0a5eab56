"""Tests for ExperimentRunner."""

from ssdsim.core.config import SimulationConfig
from ssdsim.experiment.presets import get_preset
from ssdsim.experiment.runner import ComparisonResult, ExperimentResult, ExperimentRunner


def _small(name="full", seed=42, ticks=25):
    config = get_preset(name)
    config.random_seed = seed
    config.ticks_to_run = ticks
    return config


class TestRunExperiment:
    def test_single_run(self):
        result = ExperimentRunner().run_experiment(_small())
        assert isinstance(result, ExperimentResult)
        assert result.ticks_run == 25
        assert len(result.history) == 25
        assert len(result.metrics) == 25
        assert len(result.survivors) + len(result.death_ticks) == 5
        assert result.mean_hunger > 0.0

    def test_without_metrics(self):
        result = ExperimentRunner().run_experiment(_small(), collect_metrics=False)
        assert result.metrics == []
        assert result.ticks_run == 25

    def test_deterministic(self):
        runner = ExperimentRunner()
        a = runner.run_experiment(_small(seed=9))
        b = runner.run_experiment(_small(seed=9))
        assert a.history == b.history
        assert a.death_ticks == b.death_ticks


class TestComparisons:
    def test_compare_experiments(self):
        result = ExperimentRunner().compare_experiments({
            "basic": _small("basic"),
            "full": _small("full"),
        })
        assert isinstance(result, ComparisonResult)
        assert set(result.results) == {"basic", "full"}
        diff = result.config_diffs["basic_vs_full"]
        assert diff["cooperation_enabled"] == (False, True)


class TestSweeps:
    def test_top_level_parameter(self):
        results = ExperimentRunner().run_parameter_sweep(
            _small(), "berry_count", [1, 6], collect_metrics=False,
        )
        assert list(results) == ["berry_count=1", "berry_count=6"]
        assert results["berry_count=6"].config.berry_count == 6

    def test_nested_parameter(self):
        base = _small()
        results = ExperimentRunner().run_parameter_sweep(
            base, "ssd_params.h0", [0.1, 0.4], collect_metrics=False,
        )
        cfg = results["ssd_params.h0=0.4"].config
        assert cfg.ssd_params["h0"] == 0.4
        assert cfg.ssd_params["G0"] == 0.5
        assert base.ssd_params["h0"] == 0.2

    def test_multi_seed(self):
        results = ExperimentRunner().run_multi_seed(_small(), seeds=[1, 2, 3])
        assert len(results) == 3
        assert [r.config.random_seed for r in results] == [1, 2, 3]
        assert results[0].config.experiment_name == "full_seed1"
        assert isinstance(results[0].config, SimulationConfig)
