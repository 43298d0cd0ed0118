import asyncio
import os
import re
from enum import Enum

import httpx
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from duit_assistant.classifiers.memory import MappingStore
from duit_assistant.core import settings
from duit_assistant.logger import get_logger
from duit_assistant.models import Category

logger = get_logger(__name__)

VALID_CATEGORIES: tuple[Category, ...] = tuple(Category)

PROMPT_TEMPLATE = """You are a financial transaction categorizer. Given the following expense or income description in Indonesian or English, categorize it into exactly ONE of these categories: {categories}.

Description: "{description}"

Reply with ONLY the category name, nothing else. For example: "food" or "transport"."""

TEMPERATURE = 0.1

_STARTS_WITH_DIGIT = re.compile(r"\d")


class ClassificationFault(str, Enum):
    MISSING_CREDENTIALS = "missing_credentials"
    HTTP_ERROR = "http_error"
    TRANSPORT_ERROR = "transport_error"
    EMPTY_RESPONSE = "empty_response"
    UNEXPECTED_ERROR = "unexpected_error"


def build_prompt(description: str) -> str:
    categories = ", ".join(category.value for category in VALID_CATEGORIES)
    return PROMPT_TEMPLATE.format(categories=categories, description=description)


def parse_category(response: str) -> Category:
    """Pick the first canonical category the reply equals or mentions."""
    trimmed = response.lower().strip()
    for category in VALID_CATEGORIES:
        if trimmed == category.value or category.value in trimmed:
            return category
    return Category.OTHER


def extract_keyword(description: str) -> str | None:
    """First word that does not start with a digit and has at least two characters."""
    for word in description.lower().split():
        if not _STARTS_WITH_DIGIT.match(word) and len(word) >= 2:
            return word
    return None


class LLMClassifier:
    def __init__(
        self,
        store: MappingStore,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_tokens: int | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self.store = store
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model or os.getenv("OPENAI_MODEL") or settings.DEFAULT_OPENAI_MODEL
        self.base_url = base_url or os.getenv("OPENAI_BASE_URL") or None
        self.timeout = timeout if timeout is not None else settings.get_remote_timeout()
        self.max_tokens = max_tokens if max_tokens is not None else settings.get_remote_max_tokens()
        self._client = client

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                max_retries=0,
            )
        return self._client

    async def classify(self, description: str, persist_learning: bool = True) -> Category:
        """Ask the remote model for a category. Every failure resolves to ``other``."""
        outcome = await self._request_category(description)
        if isinstance(outcome, ClassificationFault):
            logger.debug("Remote classification fell back to 'other' (%s).", outcome.value)
            return Category.OTHER

        if persist_learning and outcome is not Category.OTHER:
            await self._learn(description, outcome)
        return outcome

    async def _request_category(self, description: str) -> Category | ClassificationFault:
        if not self.available:
            logger.warning("OPENAI_API_KEY not configured. Falling back to 'other' category.")
            return ClassificationFault.MISSING_CREDENTIALS

        try:
            response = await asyncio.wait_for(
                self._get_client().chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": build_prompt(description)}],
                    temperature=TEMPERATURE,
                    max_tokens=self.max_tokens,
                ),
                timeout=self.timeout,
            )
        except APIStatusError as e:
            logger.warning("Remote classifier error: HTTP %s", e.status_code)
            return ClassificationFault.HTTP_ERROR
        except (APIConnectionError, httpx.TransportError, asyncio.TimeoutError) as e:
            logger.warning("Network error calling remote classifier (possibly offline): %s", e)
            return ClassificationFault.TRANSPORT_ERROR
        except Exception as e:
            logger.warning("Error calling remote classifier: %s", e)
            return ClassificationFault.UNEXPECTED_ERROR

        text = self._extract_output_text(response)
        if not text:
            logger.warning("Remote classifier returned an empty response.")
            return ClassificationFault.EMPTY_RESPONSE

        category = parse_category(text)
        logger.debug("Remote classifier replied '%s' -> %s", text.strip(), category.value)
        return category

    async def _learn(self, description: str, category: Category) -> None:
        keyword = extract_keyword(description)
        if keyword is None:
            return
        try:
            await asyncio.to_thread(self.store.upsert, keyword, category)
            logger.info("Learned mapping '%s' -> %s", keyword, category.value)
        except Exception as e:
            logger.warning("Failed to save category mapping for '%s': %s", keyword, e)

    @staticmethod
    def _extract_output_text(response: object) -> str | None:
        choices = getattr(response, "choices", None)
        if not choices:
            return None
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if isinstance(content, str):
            return content
        return None
