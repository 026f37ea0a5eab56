"""
Subjective State Dynamics (SSD) model.

Each agent carries three coupled quantities:

  kappa[a]  habit strength per action kind, strengthened by success,
            weakened by failure, forgetting toward a floor
  E         unprocessed pressure ("heat"), fed by unmet meaning pressure
            and decaying exponentially
  T         exploration temperature derived from E and habit dispersion

Sustained pressure above the agent's adaptive threshold Theta turns into a
per-tick hazard of a "leap" (death):

  Theta = Theta0 + a1 * mean(kappa) - a2 * fatigue / 100
  h     = h0 * exp((E - Theta) / gamma)
  P     = 1 - exp(-h)

All coefficients come from ``SimulationConfig.ssd_params``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from ssdsim.core.agent import get_or_insert

if TYPE_CHECKING:
    from ssdsim.core.agent import Agent
    from ssdsim.core.config import SimulationConfig


@dataclass(frozen=True)
class LeapResult:
    """Outcome of one leap check."""
    occurred: bool
    hazard: float
    theta: float
    probability: float


class SSDModel:
    """Applies the SSD recurrences to agents."""

    def __init__(self, config: SimulationConfig):
        self.config = config
        p = config.ssd_params
        self.G0 = p["G0"]
        self.g = p["g"]
        self.eta = p["eta"]
        self.rho = p["rho"]
        self.lambda_forget = p["lambda_forget"]
        self.kappa_default = p["kappa_default"]
        self.kappa_min = p["kappa_min"]
        self.alpha = p["alpha"]
        self.beta_E = p["beta_E"]
        self.Theta0 = p["Theta0"]
        self.a1 = p["a1"]
        self.a2 = p["a2"]
        self.h0 = p["h0"]
        self.gamma = p["gamma"]
        self.T0 = p["T0"]
        self.c1 = p["c1"]
        self.c2 = p["c2"]
        self.T_min = p["T_min"]
        self.T_max = p["T_max"]
        self.default_dispersion = p["default_dispersion"]

    def kappa(self, agent: Agent, action: str) -> float:
        """Habit strength for ``action``; registers the habit on first read."""
        return get_or_insert(agent.kappa, action, self.kappa_default)

    # ------------------------------------------------------------------
    # Alignment flow
    # ------------------------------------------------------------------

    def alignment_flow(self, agent: Agent, action: str, pressure: float) -> float:
        """Amount of ``pressure`` an action can process, scaled by habit."""
        return (self.G0 + self.g * self.kappa(agent, action)) * pressure

    # ------------------------------------------------------------------
    # Habit strength
    # ------------------------------------------------------------------

    def update_kappa(
        self, agent: Agent, action: str, success: bool, reward: float = 0.0,
    ) -> float:
        """Reinforce or weaken a habit, then forget toward ``kappa_min``."""
        kappa = self.kappa(agent, action)
        if success:
            work = self.eta * reward
        else:
            work = -self.rho * kappa ** 2
        decay = self.lambda_forget * (kappa - self.kappa_min)
        agent.kappa[action] = max(self.kappa_min, kappa + work - decay)
        return agent.kappa[action]

    # ------------------------------------------------------------------
    # Pressure
    # ------------------------------------------------------------------

    def update_heat(self, agent: Agent, pressure: float, processed: float) -> float:
        """Accumulate the unprocessed part of ``pressure`` into E."""
        unprocessed = max(0.0, pressure - processed)
        agent.E = max(0.0, agent.E + self.alpha * unprocessed - self.beta_E * agent.E)
        return agent.E

    # ------------------------------------------------------------------
    # Temperature
    # ------------------------------------------------------------------

    def kappa_dispersion(self, agent: Agent) -> float:
        """Population standard deviation of habit strengths."""
        values = list(agent.kappa.values())
        if len(values) < 2:
            return self.default_dispersion
        return float(np.std(values))

    def update_temperature(self, agent: Agent) -> float:
        t = self.T0 + self.c1 * agent.E - self.c2 * self.kappa_dispersion(agent)
        agent.T = float(np.clip(t, self.T_min, self.T_max))
        return agent.T

    # ------------------------------------------------------------------
    # Leap
    # ------------------------------------------------------------------

    def leap_threshold(self, agent: Agent) -> float:
        return (
            self.Theta0
            + self.a1 * agent.mean_kappa(self.kappa_default)
            - self.a2 * (agent.fatigue / 100.0)
        )

    def leap_hazard(self, agent: Agent) -> tuple[float, float, float]:
        """Return ``(hazard, theta, jump_probability)`` for this tick."""
        theta = self.leap_threshold(agent)
        exponent = min((agent.E - theta) / self.gamma, 50.0)
        hazard = self.h0 * math.exp(exponent)
        return hazard, theta, 1.0 - math.exp(-hazard)

    def check_leap(self, agent: Agent, rng: np.random.Generator) -> LeapResult:
        hazard, theta, prob = self.leap_hazard(agent)
        occurred = bool(rng.random() < prob)
        return LeapResult(occurred=occurred, hazard=hazard, theta=theta, probability=prob)
