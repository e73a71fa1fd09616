from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fortune_uploader.config import logger
from fortune_uploader.core.picker import HostPhotoPicker
from fortune_uploader.services.upload_service import UploadOrchestrator

from .routers import router


def create_app(orchestrator: Optional[UploadOrchestrator] = None) -> FastAPI:
    """Build the bridge app around an orchestrator with a host-driven picker."""
    orchestrator = orchestrator or UploadOrchestrator(picker=HostPhotoPicker())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # in-flight uploads resolve with an error instead of vanishing
        logger.info("Shutting down, interrupting in-flight uploads")
        await orchestrator.aclose()

    app = FastAPI(
        title="Fortune Uploader Bridge",
        description="Native photo pick-and-upload bridge for the embedded web app",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.orchestrator = orchestrator
    app.include_router(router)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()

logger.info("Fortune uploader bridge initialized successfully")
