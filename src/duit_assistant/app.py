from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from duit_assistant.api.routes import entries, mappings
from duit_assistant.core import settings
from duit_assistant.logger import get_logger, setup_logging
from duit_assistant.manager import CategorizerService
from duit_assistant.services.categorization import EntryPipeline

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        service = CategorizerService(data_dir=settings.DATA_DIR)
        pipeline = EntryPipeline(service=service)

        app.state.service = service
        app.state.pipeline = pipeline

        logger.info("Services initialized.")
        yield
        logger.info("Service shutting down.")

    app = FastAPI(title="Duit Entry Assistant", lifespan=lifespan)

    app.include_router(entries.router)
    app.include_router(mappings.router)

    return app


app = create_app()
