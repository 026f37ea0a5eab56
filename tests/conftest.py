"""
Shared test configuration.

Provides a seeded generator and an empty-world config so behaviour tests
can place patches and zones by hand.
"""

import numpy as np
import pytest

from ssdsim.core.config import SimulationConfig


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def empty_config():
    """No patches, no zones, no optional mechanics."""
    return SimulationConfig(
        random_seed=42,
        berry_count=0,
        hunt_zone_count=0,
        cooperation_enabled=False,
        day_night_enabled=False,
        sleep_debt_enabled=False,
        hunt_population_enabled=False,
    )
