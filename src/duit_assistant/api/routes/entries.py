from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from duit_assistant.api.dependencies import get_pipeline
from duit_assistant.api.schemas import (
    CategorizeRequest,
    CategorizeResponse,
    EntryRequest,
    ParseRequest,
)
from duit_assistant.models import Category, EntryResult, ParsedInput
from duit_assistant.services.categorization import EntryPipeline

router = APIRouter(prefix="/api")


@router.post("/parse", response_model=ParsedInput | None)
async def parse_entry(
    req: ParseRequest,
    pipeline: Annotated[EntryPipeline, Depends(get_pipeline)],
) -> ParsedInput | None:
    return pipeline.parse(req.text)


@router.post("/categorize", response_model=CategorizeResponse)
async def categorize_description(
    req: CategorizeRequest,
    pipeline: Annotated[EntryPipeline, Depends(get_pipeline)],
) -> CategorizeResponse:
    category = await pipeline.categorize(req.description, use_remote=req.use_remote)
    return CategorizeResponse(category=category)


@router.post("/entries", response_model=EntryResult)
async def interpret_entry(
    req: EntryRequest,
    pipeline: Annotated[EntryPipeline, Depends(get_pipeline)],
) -> EntryResult:
    result = await pipeline.interpret(req.text, use_remote=req.use_remote)
    if result is None:
        raise HTTPException(
            status_code=422,
            detail="Could not find both an amount and a description in the entry",
        )
    return result


@router.get("/categories")
async def get_categories() -> list[str]:
    return [category.value for category in Category]
