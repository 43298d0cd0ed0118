import asyncio
import os

from duit_assistant.classifiers import keywords
from duit_assistant.classifiers.llm import LLMClassifier, extract_keyword
from duit_assistant.classifiers.memory import JsonMappingStore, MappingStore
from duit_assistant.core import settings
from duit_assistant.logger import get_logger
from duit_assistant.models import Category, LearnedMapping

logger = get_logger(__name__)


class CategorizerService:
    def __init__(self,
                 store: MappingStore | None = None,
                 llm: LLMClassifier | None = None,
                 fuzzy_threshold: float | None = None,
                 data_dir: str = "."):

        # Learned mappings take priority over every keyword rule.
        self.store = store or JsonMappingStore(
            data_path=os.path.join(data_dir, "mappings.json")
        )
        self.fuzzy_threshold = (
            fuzzy_threshold if fuzzy_threshold is not None else settings.get_fuzzy_threshold()
        )

        # Remote fallback, used only when the local passes find nothing.
        self.llm = llm or LLMClassifier(store=self.store)
        if self.llm.available:
            logger.info(
                f"Remote classifier enabled: model={self.llm.model}, "
                f"base_url={self.llm.base_url or 'default'}"
            )
        else:
            logger.warning("OPENAI_API_KEY not found. Remote classifier disabled.")

    def categorize(self, description: str) -> Category | None:
        """Resolve a description locally, tier by tier over all of its words."""
        words = keywords.split_words(description)
        if not words:
            return None

        passes = (
            ("learned", lambda: keywords.learned_pass(words, self.store)),
            ("exact", lambda: keywords.exact_pass(words)),
            ("substring", lambda: keywords.substring_pass(words)),
            ("fuzzy", lambda: keywords.fuzzy_pass(words, self.fuzzy_threshold)),
        )
        for name, run_pass in passes:
            category = run_pass()
            if category:
                logger.debug(f"{name} pass matched '{description[:50]}' -> {category.value}")
                return category

        logger.debug(f"No local match for: '{description[:50]}'")
        return None

    async def categorize_with_fallback(self, description: str, use_remote: bool = True) -> Category:
        category = await asyncio.to_thread(self.categorize, description)
        if category:
            return category

        if use_remote and self.llm.available:
            return await self.llm.classify(description, persist_learning=True)

        return Category.OTHER

    def learn(self, description: str, category: Category) -> LearnedMapping | None:
        """
        Record a manual correction for the description's main keyword.
        """
        if category is Category.OTHER:
            return None
        keyword = extract_keyword(description)
        if keyword is None:
            return None
        mapping = self.store.upsert(keyword, category)
        logger.info(f"Saved mapping '{mapping.keyword}' -> {category.value} (count={mapping.count})")
        return mapping

    def mappings(self) -> list[LearnedMapping]:
        return self.store.all()

    def update_mapping(self, keyword: str, category: Category) -> LearnedMapping | None:
        return self.store.update_category(keyword, category)

    def delete_mapping(self, keyword: str) -> bool:
        return self.store.delete(keyword)

    def clear_mappings(self) -> None:
        """
        Forget every learned mapping.
        """
        self.store.clear()
        logger.info("All learned mappings cleared.")
