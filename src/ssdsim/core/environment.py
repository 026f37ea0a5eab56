"""
Shared resource environment.

Berry patches (food abundance with regeneration) and hunt zones (success
rate, danger, prey population, temporary unsafe windows) placed on a square
grid. The environment resolves forage and hunt attempts stochastically; the
caller decides what to do with the outcome.

Entities are keyed by ``"x,y"``. Placement does not avoid collisions, so a
later entity drawn onto an occupied cell replaces the earlier one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, TypeVar

import numpy as np

if TYPE_CHECKING:
    from ssdsim.core.config import SimulationConfig


Position = tuple[int, int]


def pos_key(x: int, y: int) -> str:
    return f"{x},{y}"


def manhattan(a: Position, b: Position) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

@dataclass
class BerryPatch:
    """A food patch. ``abundance`` stays within [0, 1]."""
    x: int
    y: int
    abundance: float
    regen: float

    @property
    def key(self) -> str:
        return pos_key(self.x, self.y)

    @property
    def position(self) -> Position:
        return (self.x, self.y)


@dataclass
class HuntZone:
    """A hunting ground with its own success rate and danger."""
    x: int
    y: int
    base_success: float
    danger: float
    population: float | None = None
    unsafe_until: int | None = None

    @property
    def key(self) -> str:
        return pos_key(self.x, self.y)

    @property
    def position(self) -> Position:
        return (self.x, self.y)


@dataclass(frozen=True)
class ForageOutcome:
    success: bool
    food: float
    risk: float
    probability: float


@dataclass(frozen=True)
class HuntOutcome:
    success: bool
    food: float
    risk: float
    probability: float


@dataclass(frozen=True)
class EnvironmentSnapshot:
    """Plain-data view of the environment after a tick."""
    tick: int
    is_night: bool
    patches: dict[str, dict[str, float]]
    hunt_zones: dict[str, dict[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        return {
            "tick": self.tick,
            "is_night": self.is_night,
            "patches": {k: dict(v) for k, v in self.patches.items()},
            "hunt_zones": {k: dict(v) for k, v in self.hunt_zones.items()},
        }


_Entity = TypeVar("_Entity", BerryPatch, HuntZone)


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

class Environment:
    """
    Spatial resource state for the simulation.

    All ranges and rates come from ``config.environment_config``.
    """

    def __init__(self, config: SimulationConfig, rng: np.random.Generator):
        self.config = config
        self._env = config.environment_config
        self.size = config.env_size
        self.tick = 0
        self.berries: dict[str, BerryPatch] = {}
        self.hunt_zones: dict[str, HuntZone] = {}
        self.initialize(config.env_size, config.berry_count, config.hunt_zone_count, rng)

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    def initialize(
        self,
        size: int,
        berry_count: int,
        hunt_zone_count: int,
        rng: np.random.Generator,
    ) -> None:
        """Place patches and zones on uniformly random grid cells."""
        self.size = size
        self.berries = {}
        self.hunt_zones = {}
        env = self._env

        for _ in range(berry_count):
            x, y = int(rng.integers(size)), int(rng.integers(size))
            patch = BerryPatch(
                x=x, y=y,
                abundance=float(rng.uniform(*env["abundance_range"])),
                regen=float(rng.uniform(*env["regen_range"])),
            )
            self.berries[patch.key] = patch

        for _ in range(hunt_zone_count):
            x, y = int(rng.integers(size)), int(rng.integers(size))
            zone = HuntZone(
                x=x, y=y,
                base_success=float(rng.uniform(*env["success_range"])),
                danger=float(rng.uniform(*env["danger_range"])),
            )
            if self.config.hunt_population_enabled:
                zone.population = float(rng.uniform(*env["population_range"]))
            self.hunt_zones[zone.key] = zone

    # ------------------------------------------------------------------
    # Per-tick update
    # ------------------------------------------------------------------

    def advance_tick(self, rng: np.random.Generator) -> None:
        """Regenerate patches, random-walk hunt success, expire unsafe windows."""
        env = self._env
        lo, hi = env["success_clip"]

        for patch in self.berries.values():
            patch.abundance = min(1.0, patch.abundance + patch.regen * (1.0 - patch.abundance))

        for zone in self.hunt_zones.values():
            zone.base_success = float(np.clip(
                zone.base_success + rng.normal(0.0, env["success_walk_sigma"]), lo, hi,
            ))
            if zone.population is not None:
                zone.population = min(
                    1.0, zone.population + env["population_regen"] * (1.0 - zone.population),
                )

        self.tick += 1
        for zone in self.hunt_zones.values():
            if zone.unsafe_until is not None and self.tick >= zone.unsafe_until:
                zone.unsafe_until = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def find_nearest(
        position: Position,
        collection: dict[str, _Entity] | Iterable[_Entity],
        k: int = 1,
    ) -> list[_Entity]:
        """Return the ``k`` entities closest to ``position`` (Manhattan).

        Ties keep insertion order.
        """
        entities = list(collection.values()) if isinstance(collection, dict) else list(collection)
        entities.sort(key=lambda e: manhattan(position, e.position))
        return entities[:k]

    def is_night(self, tick: int | None = None) -> bool:
        """True during the dark part of the day when the day/night cycle is on."""
        if not self.config.day_night_enabled:
            return False
        tick = self.tick if tick is None else tick
        day_length = int(self._env["day_length"])
        night_ticks = int(round(day_length * self._env["night_fraction"]))
        return (tick % day_length) >= day_length - night_ticks

    def visibility(self, tick: int | None = None) -> float:
        return float(self._env["night_visibility"]) if self.is_night(tick) else 1.0

    def is_unsafe(self, zone: HuntZone, tick: int) -> bool:
        return zone.unsafe_until is not None and tick < zone.unsafe_until

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def forage(
        self, position: Position, patch: BerryPatch, rng: np.random.Generator,
    ) -> ForageOutcome:
        """Attempt to gather berries from ``patch`` standing at ``position``."""
        abundance = patch.abundance
        dist = manhattan(position, patch.position)
        p = 0.6 * abundance + 0.2 * max(0.0, 1.0 - dist / 12.0)
        success = bool(rng.random() < p)

        food = 0.0
        if success:
            patch.abundance = max(0.0, patch.abundance - float(rng.uniform(0.2, 0.4)))
            food = float(rng.uniform(10.0, 20.0)) * (0.5 + abundance / 2.0)

        return ForageOutcome(success, food, float(self._env["forage_risk"]), p)

    def hunt(
        self,
        position: Position,
        zone: HuntZone,
        rng: np.random.Generator,
        injury_factor: float = 1.0,
        coop_bonus: float = 0.0,
        visibility: float = 1.0,
    ) -> HuntOutcome:
        """Attempt a hunt in ``zone`` standing at ``position``.

        The injury risk is returned regardless of success; rolling it is up
        to the hunter.
        """
        base = zone.base_success
        dist = manhattan(position, zone.position)
        p = base * max(0.15, 1.0 - dist / 14.0)
        p *= injury_factor
        p *= 1.0 + coop_bonus
        p *= visibility
        if zone.population is not None:
            p *= 0.5 + 0.5 * zone.population
        p = float(np.clip(p, 0.01, 0.95))

        success = bool(rng.random() < p)
        food = 0.0
        if success:
            food = float(rng.uniform(20.0, 45.0)) * (0.5 + base / 2.0) * (1.0 + 0.25 * coop_bonus)
            if zone.population is not None:
                zone.population = max(0.0, zone.population - self._env["population_depletion"])

        risk = zone.danger * (0.9 + dist / 18.0)
        return HuntOutcome(success, food, risk, p)

    def mark_unsafe(self, zone: HuntZone, tick: int, duration: int | None = None) -> None:
        """Flag ``zone`` as unsafe until ``tick + duration``."""
        if duration is None:
            duration = int(self._env["unsafe_duration"])
        zone.unsafe_until = tick + duration

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> EnvironmentSnapshot:
        patches = {
            key: {"abundance": p.abundance, "regen": p.regen}
            for key, p in self.berries.items()
        }
        zones = {
            key: {
                "base_success": z.base_success,
                "danger": z.danger,
                "population": z.population,
                "unsafe_until": z.unsafe_until,
            }
            for key, z in self.hunt_zones.items()
        }
        return EnvironmentSnapshot(
            tick=self.tick, is_night=self.is_night(), patches=patches, hunt_zones=zones,
        )
