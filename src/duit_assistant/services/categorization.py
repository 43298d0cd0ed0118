import asyncio

from duit_assistant.domain.entry import split_input
from duit_assistant.logger import get_logger
from duit_assistant.manager import CategorizerService
from duit_assistant.models import Category, EntryResult, LearnedMapping, ParsedInput

logger = get_logger(__name__)


class EntryPipeline:
    def __init__(self, service: CategorizerService) -> None:
        self.service = service

    def parse(self, text: str) -> ParsedInput | None:
        return split_input(text)

    async def categorize(self, description: str, *, use_remote: bool = True) -> Category:
        return await self.service.categorize_with_fallback(description, use_remote=use_remote)

    async def interpret(self, text: str, *, use_remote: bool = True) -> EntryResult | None:
        parsed = self.parse(text)
        if parsed is None:
            logger.debug("[ENTRY] Could not split '%s'.", text)
            return None

        category = await self.categorize(parsed.description, use_remote=use_remote)
        logger.info(
            "[ENTRY] '%s' -> %s (Rp %s)",
            parsed.description,
            category.value,
            f"{parsed.amount:,}".replace(",", "."),
        )
        return EntryResult(
            description=parsed.description,
            amount=parsed.amount,
            category=category,
        )

    async def correct(self, description: str, category: Category) -> LearnedMapping | None:
        return await asyncio.to_thread(self.service.learn, description, category)
