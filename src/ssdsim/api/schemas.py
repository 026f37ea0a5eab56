"""
Pydantic models for API request/response validation.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Any


# === Simulation ===

class CreateSessionRequest(BaseModel):
    config: dict[str, Any] | None = None
    preset: str | None = None
    name: str | None = None


class RunRequest(BaseModel):
    ticks: int | None = Field(None, ge=0)


class StepRequest(BaseModel):
    n: int = Field(1, ge=1, le=10_000)


class SessionSummary(BaseModel):
    id: str
    name: str
    status: str
    current_tick: int
    max_ticks: int
    alive_count: int


class SessionResponse(SessionSummary):
    config: dict[str, Any]


# === Agents ===

class AgentSummaryResponse(BaseModel):
    name: str
    x: int
    y: int
    hunger: float
    fatigue: float
    injury: float
    alive: bool
    state: str
    E: float
    T: float
    is_sleeping: bool


class AgentDetailResponse(AgentSummaryResponse):
    preset: dict[str, float]
    kappa: dict[str, float]
    relationship: dict[str, float]
    help_debt: dict[str, float]
    forage_failures: dict[str, int]
    boredom: float
    sleep_debt: float
    leap: dict[str, float]
    decision: dict[str, Any] | None
    recent_log: list[dict[str, Any]]


# === Metrics ===

class SummaryResponse(BaseModel):
    total_ticks: int
    alive_count: int
    total_deaths: int
    death_ticks: dict[str, int]
    action_totals: dict[str, int]
    mean_E: float
    peak_E: float


class TimeSeriesResponse(BaseModel):
    field: str
    ticks: list[int]
    values: list[Any]


class NetworkResponse(BaseModel):
    nodes: list[dict[str, Any]]
    links: list[dict[str, Any]]


# === Presets ===

class PresetInfo(BaseModel):
    name: str
    config: dict[str, Any]
