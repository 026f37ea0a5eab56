"""
Experiment Runner — comparisons, parameter sweeps, and batch execution.

Provides tools for running comparative experiments, sweeping parameters,
and collecting results across multiple simulation runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from ssdsim.core.config import SimulationConfig
from ssdsim.core.engine import SimulationEngine, TickSnapshot
from ssdsim.metrics.collector import MetricsCollector, TickMetrics


@dataclass
class ExperimentResult:
    """Result of a single experiment run."""
    config: SimulationConfig
    history: list[TickSnapshot]
    metrics: list[TickMetrics]
    survivors: list[str]
    death_ticks: dict[str, int]
    ticks_run: int
    mean_E: float
    mean_hunger: float


@dataclass
class ComparisonResult:
    """Result of comparing two or more experiments."""
    results: dict[str, ExperimentResult]
    config_diffs: dict[str, Any]


class ExperimentRunner:
    """
    Run, compare, and sweep simulation experiments.
    """

    def run_experiment(
        self,
        config: SimulationConfig,
        collect_metrics: bool = True,
    ) -> ExperimentResult:
        """Run a single experiment and return results."""
        engine = SimulationEngine(config)
        collector = MetricsCollector(config) if collect_metrics else None
        history = engine.run(on_tick=collector.collect if collector else None)

        death_ticks: dict[str, int] = {
            entry.agent_name: entry.tick
            for entry in engine.state.log
            if entry.action == "death"
        }
        survivors = [a.name for a in engine.state.living]
        all_E = [s.mean_E for s in history if s.alive > 0]
        all_hunger = [s.mean_hunger for s in history if s.alive > 0]

        return ExperimentResult(
            config=config,
            history=history,
            metrics=collector.metrics_history if collector else [],
            survivors=survivors,
            death_ticks=death_ticks,
            ticks_run=len(history),
            mean_E=float(np.mean(all_E)) if all_E else 0.0,
            mean_hunger=float(np.mean(all_hunger)) if all_hunger else 0.0,
        )

    def compare_experiments(
        self,
        configs: dict[str, SimulationConfig],
        collect_metrics: bool = True,
    ) -> ComparisonResult:
        """Run multiple experiments and compare results."""
        results: dict[str, ExperimentResult] = {}
        for name, config in configs.items():
            results[name] = self.run_experiment(config, collect_metrics)

        config_names = list(configs.keys())
        diffs: dict[str, Any] = {}
        if len(config_names) >= 2:
            base = configs[config_names[0]]
            for name in config_names[1:]:
                diffs[f"{config_names[0]}_vs_{name}"] = base.diff(configs[name])

        return ComparisonResult(results=results, config_diffs=diffs)

    def run_parameter_sweep(
        self,
        base_config: SimulationConfig,
        param_name: str,
        values: list[Any],
        collect_metrics: bool = True,
    ) -> dict[str, ExperimentResult]:
        """
        Sweep a single parameter across multiple values.

        Args:
            base_config: Base configuration to modify
            param_name: Top-level SimulationConfig field, or ``"section.key"``
                for a key inside one of the nested dicts (e.g. ``"ssd_params.h0"``)
            values: List of values to test
            collect_metrics: Whether to collect detailed metrics

        Returns:
            Dict mapping value label -> ExperimentResult
        """
        results: dict[str, ExperimentResult] = {}

        for val in values:
            config_dict = base_config.to_dict()
            if "." in param_name:
                section, key = param_name.split(".", 1)
                config_dict[section] = {**config_dict[section], key: val}
            else:
                config_dict[param_name] = val
            config_dict["experiment_name"] = f"sweep_{param_name}={val}"
            config = SimulationConfig.from_dict(config_dict)

            label = f"{param_name}={val}"
            results[label] = self.run_experiment(config, collect_metrics)

        return results

    def run_multi_seed(
        self,
        config: SimulationConfig,
        seeds: list[int],
        collect_metrics: bool = False,
    ) -> list[ExperimentResult]:
        """
        Run the same configuration with multiple random seeds.

        Useful for measuring variance in survival.
        """
        results: list[ExperimentResult] = []
        for seed in seeds:
            config_dict = config.to_dict()
            config_dict["random_seed"] = seed
            config_dict["experiment_name"] = f"{config.experiment_name}_seed{seed}"
            seed_config = SimulationConfig.from_dict(config_dict)
            results.append(self.run_experiment(seed_config, collect_metrics))
        return results
