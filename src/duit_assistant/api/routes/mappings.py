import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from duit_assistant.api.dependencies import get_pipeline, get_service
from duit_assistant.api.schemas import MappingRequest
from duit_assistant.logger import get_logger
from duit_assistant.manager import CategorizerService
from duit_assistant.models import LearnedMapping
from duit_assistant.services.categorization import EntryPipeline

logger = get_logger(__name__)

router = APIRouter(prefix="/api")


@router.get("/mappings", response_model=list[LearnedMapping])
async def list_mappings(
    service: Annotated[CategorizerService, Depends(get_service)],
) -> list[LearnedMapping]:
    return await asyncio.to_thread(service.mappings)


@router.put("/mappings/{keyword}", response_model=LearnedMapping)
async def save_mapping(
    keyword: str,
    req: MappingRequest,
    pipeline: Annotated[EntryPipeline, Depends(get_pipeline)],
) -> LearnedMapping:
    mapping = await pipeline.correct(keyword, req.category)
    if mapping is None:
        raise HTTPException(status_code=422, detail="Keyword cannot be learned")
    return mapping


@router.patch("/mappings/{keyword}", response_model=LearnedMapping)
async def change_mapping_category(
    keyword: str,
    req: MappingRequest,
    service: Annotated[CategorizerService, Depends(get_service)],
) -> LearnedMapping:
    mapping = await asyncio.to_thread(service.update_mapping, keyword, req.category)
    if mapping is None:
        raise HTTPException(status_code=404, detail="Mapping not found")
    return mapping


@router.delete("/mappings/{keyword}")
async def delete_mapping(
    keyword: str,
    service: Annotated[CategorizerService, Depends(get_service)],
) -> dict[str, str]:
    if not await asyncio.to_thread(service.delete_mapping, keyword):
        raise HTTPException(status_code=404, detail="Mapping not found")
    logger.info("[MAPPINGS] Deleted mapping '%s'.", keyword.lower())
    return {"status": "deleted"}
