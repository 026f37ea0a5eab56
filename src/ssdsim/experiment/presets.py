"""
Experiment presets — pre-configured simulation profiles.

Each preset returns a SimulationConfig. The feature profiles switch the
optional mechanics on one at a time; ``full`` is the reference profile with
everything enabled.
"""

from __future__ import annotations

from typing import Callable

from ssdsim.core.config import SimulationConfig


def _features(
    cooperation: bool = False,
    day_night: bool = False,
    sleep_debt: bool = False,
    hunt_population: bool = False,
) -> dict[str, bool]:
    return {
        "cooperation_enabled": cooperation,
        "day_night_enabled": day_night,
        "sleep_debt_enabled": sleep_debt,
        "hunt_population_enabled": hunt_population,
    }


def basic() -> SimulationConfig:
    """Foraging, hunting, resting and helping only. No optional mechanics."""
    return SimulationConfig(experiment_name="basic", **_features())


def cooperative() -> SimulationConfig:
    """Allies nearby raise hunt success and make cautious NPCs hunt."""
    return SimulationConfig(experiment_name="cooperative", **_features(cooperation=True))


def circadian() -> SimulationConfig:
    """Day/night cycle with sleep debt; NPCs sleep at night."""
    return SimulationConfig(
        experiment_name="circadian",
        **_features(cooperation=True, day_night=True, sleep_debt=True),
    )


def full() -> SimulationConfig:
    """Every mechanic on: cooperation, day/night, sleep debt, prey populations."""
    return SimulationConfig(
        experiment_name="full",
        **_features(cooperation=True, day_night=True, sleep_debt=True, hunt_population=True),
    )


def scarce() -> SimulationConfig:
    """Full mechanics in a sparse world: fewer, poorer patches and harder hunts."""
    config = full()
    config.experiment_name = "scarce"
    config.berry_count = 2
    config.hunt_zone_count = 3
    config.environment_config.update({
        "abundance_range": [0.05, 0.15],
        "success_range": [0.10, 0.20],
    })
    return config


def abundant() -> SimulationConfig:
    """Full mechanics with rich patches."""
    config = full()
    config.experiment_name = "abundant"
    config.berry_count = 8
    config.environment_config.update({
        "abundance_range": [0.1, 0.9],
        "success_range": [0.2, 0.5],
        "danger_range": [0.2, 0.5],
    })
    return config


# Registry of all presets
PRESETS: dict[str, Callable[[], SimulationConfig]] = {
    "basic": basic,
    "cooperative": cooperative,
    "circadian": circadian,
    "full": full,
    "scarce": scarce,
    "abundant": abundant,
}


def get_preset(name: str) -> SimulationConfig:
    """Get a preset config by name."""
    if name not in PRESETS:
        raise KeyError(f"Unknown preset: '{name}'. Available: {list(PRESETS.keys())}")
    return PRESETS[name]()


def list_presets() -> list[str]:
    """Return list of available preset names."""
    return list(PRESETS.keys())
