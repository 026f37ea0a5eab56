"""
Master configuration for the SSD Forager Sandbox.

ALL tunable parameters live here. Nothing in the simulation is hardcoded.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any


# The five default NPC personalities. ``start_offset`` is relative to the
# grid centre.
DEFAULT_ROSTER: dict[str, dict[str, Any]] = {
    "Forager_A": {
        "risk_tolerance": 0.2, "curiosity": 0.3, "avoidance": 0.8,
        "stamina": 0.6, "empathy": 0.8, "start_offset": [-2, 0],
    },
    "Tracker_B": {
        "risk_tolerance": 0.6, "curiosity": 0.5, "avoidance": 0.2,
        "stamina": 0.8, "empathy": 0.6, "start_offset": [2, -1],
    },
    "Pioneer_C": {
        "risk_tolerance": 0.5, "curiosity": 0.9, "avoidance": 0.3,
        "stamina": 0.7, "empathy": 0.5, "start_offset": [0, 2],
    },
    "Guardian_D": {
        "risk_tolerance": 0.4, "curiosity": 0.4, "avoidance": 0.6,
        "stamina": 0.9, "empathy": 0.9, "start_offset": [-1, -2],
    },
    "Scavenger_E": {
        "risk_tolerance": 0.3, "curiosity": 0.6, "avoidance": 0.7,
        "stamina": 0.5, "empathy": 0.5, "start_offset": [1, 1],
    },
}


@dataclass
class SimulationConfig:
    """
    Master configuration — ALL parameters as tunable sliders.

    Every threshold, weight, rate, and rule is configurable.
    Use ``to_dict()`` / ``from_dict()`` for serialization and comparison.
    """

    # === Experiment identity ===
    experiment_name: str = "default"
    random_seed: int | None = None

    # === World ===
    env_size: int = 26
    berry_count: int = 4
    hunt_zone_count: int = 5
    ticks_to_run: int = 200

    # === Feature toggles (reference profile is the superset) ===
    cooperation_enabled: bool = True
    day_night_enabled: bool = True
    sleep_debt_enabled: bool = True
    hunt_population_enabled: bool = True

    # === Environment ===
    environment_config: dict[str, Any] = field(default_factory=lambda: {
        "abundance_range": [0.1, 0.3],
        "regen_range": [0.001, 0.008],
        "success_range": [0.10, 0.30],
        "danger_range": [0.35, 0.75],
        "success_walk_sigma": 0.01,
        "success_clip": [0.03, 0.8],
        "population_range": [0.6, 1.0],
        "population_regen": 0.02,
        "population_depletion": 0.15,
        "unsafe_duration": 10,
        "day_length": 24,
        "night_fraction": 1.0 / 3.0,
        "night_visibility": 0.7,
        "forage_risk": 0.05,
    })

    # === Metabolism ===
    metabolism_config: dict[str, float] = field(default_factory=lambda: {
        "hunger_rate": 1.8,
        "fatigue_rate": 0.8,
        "injury_fatigue_coeff": 0.02,
        "night_fatigue_multiplier": 1.25,
        "vital_cap": 120.0,
        "crisis_threshold": 100.0,
        "hard_death_threshold": 110.0,
    })

    # === SSD parameters ===
    ssd_params: dict[str, float] = field(default_factory=lambda: {
        # alignment flow
        "G0": 0.5, "g": 0.7,
        # habit strength
        "eta": 0.3, "rho": 0.1, "lambda_forget": 0.02,
        "kappa_default": 0.1, "kappa_min": 0.05,
        # heat / pressure
        "alpha": 0.6, "beta_E": 0.15,
        # leap
        "Theta0": 1.0, "a1": 0.5, "a2": 0.4, "h0": 0.2, "gamma": 0.8,
        # temperature
        "T0": 0.3, "c1": 0.5, "c2": 0.6,
        "T_min": 0.1, "T_max": 1.0, "T_initial": 0.3,
        "default_dispersion": 0.5,
    })

    # === Behaviour thresholds ===
    thresholds: dict[str, float] = field(default_factory=lambda: {
        "hunger": 55.0,
        "fatigue": 70.0,
        "rest_hunger_fraction": 0.9,
    })

    # === Resting while awake ===
    rest_config: dict[str, float] = field(default_factory=lambda: {
        "amount": 30.0,
        "stamina_bonus": 0.25,
        "hunger_cost": 6.0,
        "injury_relief": 4.0,
        "injury_stamina_bonus": 0.1,
    })

    # === Cooperative help ===
    help_config: dict[str, float] = field(default_factory=lambda: {
        "radius": 3,
        "activation_threshold": 0.05,
        "empathy_weight": 0.35,
        "relationship_weight": 0.4,
        "debt_weight": 0.35,
        "self_need_weight": 0.4,
        "share_amount": 25.0,
        "share_helper_cost": 6.0,
        "share_max_helper_hunger": 85.0,
        "share_min_target_hunger": 75.0,
        "tend_min_injury": 30.0,
        "tend_min_fatigue": 85.0,
        "tend_fatigue_relief": 28.0,
        "tend_injury_relief": 7.0,
        "tend_helper_cost": 6.0,
        "tend_stamina_bonus": 0.2,
        "share_relationship_gain": 0.08,
        "share_reciprocal_gain": 0.04,
        "share_debt_gain": 0.2,
        "share_kappa_reward": 12.5,
        "tend_relationship_gain": 0.1,
        "tend_reciprocal_gain": 0.05,
        "tend_debt_gain": 0.25,
        "tend_kappa_reward": 20.0,
        # unmet-need scoring
        "need_injury_threshold": 15.0,
        "need_hunger_scale": 40.0,
        "need_injury_scale": 50.0,
        "need_fatigue_scale": 50.0,
    })

    # === Food decision ===
    decision_config: dict[str, Any] = field(default_factory=lambda: {
        "coop_radius": 4,
        "coop_bonus_per_ally": 0.15,
        "hunt_candidates": 3,
        "forage_candidates": 4,
        "hunt_scale": 30.0,
        "forage_scale": 15.0,
        "forage_abundance_weight": 0.7,
        "hunt_distance_penalty": 0.5,
        "forage_distance_penalty": 0.25,
        "min_risk_tolerance_to_hunt": 0.4,
        "circuit_breaker_failures": 3,
        "circuit_breaker_reset_chance": 0.1,
        "unsafe_avoidance_trait": 0.5,
        "unsafe_avoidance_injury": 30.0,
        "patrol_range_scale": 2.0,
        "search_range_scale": 3.0,
        "boredom_rate": 0.05,
        "boredom_pressure": 0.1,
        # outcome effects
        "hunt_injury_scale": 150.0,
        "hunt_fatigue_per_food": 0.2,
        "hunt_injury_range": [5.0, 20.0],
        "hunt_fail_fatigue": 10.0,
        "hunt_fail_risk_multiplier": 1.2,
        "hunt_fail_injury_range": [10.0, 30.0],
        "forage_fatigue_relief_per_food": 0.1,
        "forage_scratch_range": [1.0, 4.0],
    })

    # === Circadian sleep ===
    sleep_config: dict[str, float] = field(default_factory=lambda: {
        "debt_rate": 1.0,
        "debt_cap": 200.0,
        "sleep_threshold": 40.0,
        "collapse_threshold": 160.0,
        "wake_threshold": 10.0,
        "debt_recovery": 6.0,
        "fatigue_recovery": 4.0,
        "wake_hunger_margin": 20.0,
        "sleep_hunger_margin": 15.0,
        "overload_threshold": 100.0,
        "overload_fatigue_coeff": 0.01,
        "sleeping_hunger_multiplier": 0.5,
    })

    # === Roster ===
    roster: dict[str, dict[str, Any]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_ROSTER),
    )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def validate(self) -> None:
        """Raise ValueError for settings the kernel cannot run with."""
        if self.env_size < 1:
            raise ValueError(f"env_size must be >= 1, got {self.env_size}")
        if self.berry_count < 0 or self.hunt_zone_count < 0:
            raise ValueError("berry_count and hunt_zone_count must be non-negative")
        if self.ticks_to_run < 0:
            raise ValueError(f"ticks_to_run must be >= 0, got {self.ticks_to_run}")
        for name, preset in self.roster.items():
            for trait in ("risk_tolerance", "curiosity", "avoidance", "stamina", "empathy"):
                value = preset.get(trait, 0.5)
                if not 0.0 <= value <= 1.0:
                    raise ValueError(f"{name}.{trait} must lie in [0, 1], got {value}")

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict (excludes cached objects)."""
        d: dict[str, Any] = {}
        for k, v in self.__dict__.items():
            if k.startswith("_"):
                continue
            d[k] = copy.deepcopy(v)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SimulationConfig:
        """Deserialize from a dict.

        Partial nested dicts are merged over the defaults, so a caller can
        override a single SSD parameter without restating the rest.
        """
        defaults = cls()
        kwargs: dict[str, Any] = {}
        for k, v in d.items():
            if k.startswith("_"):
                continue
            current = getattr(defaults, k, None)
            if isinstance(current, dict) and isinstance(v, dict) and k != "roster":
                merged = dict(current)
                merged.update(v)
                kwargs[k] = merged
            else:
                kwargs[k] = v
        return cls(**kwargs)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    @classmethod
    def from_json(cls, s: str) -> SimulationConfig:
        return cls.from_dict(json.loads(s))

    def diff(self, other: SimulationConfig) -> dict[str, tuple[Any, Any]]:
        """Return parameters that differ between two configs."""
        diffs: dict[str, tuple[Any, Any]] = {}
        for k in self.to_dict():
            v1 = getattr(self, k)
            v2 = getattr(other, k)
            if v1 != v2:
                diffs[k] = (v1, v2)
        return diffs
