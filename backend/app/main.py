"""FastAPI application for the orchestration engine."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes.agent_routes import router as agent_router
from app.core.config import configure_logging, settings
from app.engine import Engine, build_engine

logger = logging.getLogger(__name__)


def create_app(engine: Optional[Engine] = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        engine: Pre-built engine (tests); built from settings when omitted
    """
    engine = engine or build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await engine.start()
        logger.info("✅ Agent API started")
        yield
        await engine.stop()
        logger.info("🛑 Agent API stopped")

    app = FastAPI(
        title="Capability Orchestration API",
        description="Agent registry, orchestration and workflow execution",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=engine.settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(agent_router)
    return app


def main():
    """Run the API with uvicorn."""
    import uvicorn

    configure_logging(settings.log_level)
    uvicorn.run(create_app(), host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
