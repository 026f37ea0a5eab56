"""
In-memory session manager for simulation runs.

Each session wraps a SimulationEngine + MetricsCollector and supports
tick-by-tick stepping or a background run to completion. History is not
persisted; sessions live as long as the process.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Any

from ssdsim.core.config import SimulationConfig
from ssdsim.core.engine import SimulationEngine, TickResult
from ssdsim.metrics.collector import MetricsCollector

logger = logging.getLogger(__name__)


@dataclass
class SimulationSession:
    """A running or completed simulation session."""

    id: str
    name: str
    config: SimulationConfig
    engine: SimulationEngine
    collector: MetricsCollector
    status: str = "created"  # created | running | completed | error
    max_ticks: int = 0
    last_result: TickResult | None = None

    @property
    def current_tick(self) -> int:
        return self.engine.tick

    @property
    def alive_count(self) -> int:
        return len(self.engine.state.living)


class SessionManager:
    """Manages multiple simulation sessions in memory."""

    def __init__(self) -> None:
        self.sessions: dict[str, SimulationSession] = {}
        # Session IDs currently running in background threads
        self._running: set[str] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_session(
        self,
        config: SimulationConfig | None = None,
        name: str | None = None,
    ) -> SimulationSession:
        """Create a new simulation session. Raises ValueError for invalid configs."""
        if config is None:
            config = SimulationConfig()

        session_id = uuid.uuid4().hex[:8]
        session = SimulationSession(
            id=session_id,
            name=name or config.experiment_name,
            config=config,
            engine=SimulationEngine(config),
            collector=MetricsCollector(config),
            max_ticks=config.ticks_to_run,
        )
        self.sessions[session_id] = session
        logger.info("Created session %s (%s)", session_id, session.name)
        return session

    def get_session(self, session_id: str) -> SimulationSession:
        """Get a session by ID. Raises KeyError if not found."""
        if session_id not in self.sessions:
            raise KeyError(f"Session '{session_id}' not found")
        return self.sessions[session_id]

    def step(self, session_id: str, n: int = 1) -> SimulationSession:
        """Advance a session by N ticks."""
        session = self.get_session(session_id)

        if session_id in self._running:
            return session  # Background run in progress, don't interfere

        if session.status == "completed":
            return session

        session.status = "running"
        self._advance(session, n)
        return session

    def _advance(self, session: SimulationSession, n: int) -> None:
        for _ in range(n):
            if session.current_tick >= session.max_ticks or session.alive_count == 0:
                session.status = "completed"
                break

            result = session.engine.step()
            session.collector.collect(result)
            session.last_result = result

            if session.current_tick >= session.max_ticks or session.alive_count == 0:
                session.status = "completed"
                logger.info(
                    "Session %s completed at tick %d (%d alive)",
                    session.id, session.current_tick, session.alive_count,
                )
                break

    def run_full(self, session_id: str, ticks: int | None = None) -> SimulationSession:
        """Run a session to completion, or for at most ``ticks`` more ticks."""
        session = self.get_session(session_id)
        n = self._run_length(session, ticks)
        if n > 0:
            self.step(session_id, n)
        return session

    @staticmethod
    def _run_length(session: SimulationSession, ticks: int | None) -> int:
        remaining = session.max_ticks - session.current_tick
        return remaining if ticks is None else min(ticks, remaining)

    def run_full_async(self, session_id: str, ticks: int | None = None) -> SimulationSession:
        """Start running a session in a background thread.

        ``ticks`` limits this run only; ``max_ticks`` is left untouched so
        the session can be stepped or run again afterwards.
        """
        session = self.get_session(session_id)
        if session_id in self._running:
            return session  # Already running, no-op
        if session.status == "completed":
            return session

        n = self._run_length(session, ticks)
        session.status = "running"
        self._running.add(session_id)

        def _worker():
            try:
                self._advance(session, n)
            except Exception:
                logger.exception("Background run failed for %s", session_id)
                session.status = "error"
            finally:
                self._running.discard(session_id)

        t = threading.Thread(target=_worker, daemon=True)
        t.start()
        return session

    def is_running(self, session_id: str) -> bool:
        """Check if a session is running in a background thread."""
        return session_id in self._running

    def reset_session(self, session_id: str) -> SimulationSession:
        """Reset a session to tick 0 (same seed, same world)."""
        if session_id in self._running:
            raise ValueError(f"Session '{session_id}' is currently running")
        session = self.get_session(session_id)

        session.engine.reset()
        session.collector = MetricsCollector(session.config)
        session.status = "created"
        session.last_result = None
        logger.info("Reset session %s", session_id)
        return session

    def delete_session(self, session_id: str) -> None:
        """Delete a session from memory."""
        if session_id not in self.sessions:
            raise KeyError(f"Session '{session_id}' not found")
        del self.sessions[session_id]
        logger.info("Deleted session %s", session_id)

    def list_sessions(self) -> list[dict[str, Any]]:
        """List all sessions as summary dicts."""
        return [
            {
                "id": s.id,
                "name": s.name,
                "status": s.status,
                "current_tick": s.current_tick,
                "max_ticks": s.max_ticks,
                "alive_count": s.alive_count,
            }
            for s in self.sessions.values()
        ]
