from fastapi import HTTPException, Request

from duit_assistant.manager import CategorizerService
from duit_assistant.services.categorization import EntryPipeline


def get_service(request: Request) -> CategorizerService:
    service = getattr(request.app.state, "service", None)
    if not service:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return service


def get_pipeline(request: Request) -> EntryPipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if not pipeline:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return pipeline
