"""
FastAPI application factory for the SSD Forager Sandbox API.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ssdsim.api.sessions import SessionManager
from ssdsim.api.routers import simulation, metrics, agents, environment


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="SSD Forager Sandbox API",
        description="REST API for the SSD forager simulation kernel",
        version="0.1.0",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.state.session_manager = SessionManager()

    application.include_router(simulation.router, prefix="/api/simulation", tags=["simulation"])
    application.include_router(metrics.router, prefix="/api/metrics", tags=["metrics"])
    application.include_router(agents.router, prefix="/api/agents", tags=["agents"])
    application.include_router(environment.router, prefix="/api/environment", tags=["environment"])

    @application.get("/api/health")
    def health_check():
        return {"status": "ok"}

    return application


app = create_app()
