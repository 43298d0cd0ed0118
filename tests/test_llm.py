import asyncio
import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from openai import APITimeoutError, InternalServerError

from duit_assistant.classifiers.llm import (
    LLMClassifier,
    build_prompt,
    extract_keyword,
    parse_category,
)
from duit_assistant.classifiers.memory import InMemoryMappingStore, MappingStore
from duit_assistant.models import Category

_REQUEST = httpx.Request("POST", "https://api.test/v1/chat/completions")


def _completion(text: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


def _client(**create_kwargs: object) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(**create_kwargs)
    return client


def _classifier(store: MappingStore, client: MagicMock, api_key: str | None = "sk-fake") -> LLMClassifier:
    return LLMClassifier(store=store, api_key=api_key, model="test-model", timeout=1.0, client=client)


def test_parse_category_exact_and_noisy() -> None:
    assert parse_category("food") == Category.FOOD
    assert parse_category("  TRANSPORT\n") == Category.TRANSPORT
    assert parse_category('The category is "bills".') == Category.BILLS


def test_parse_category_first_canonical_category_wins() -> None:
    assert parse_category("shopping or food") == Category.FOOD


def test_parse_category_unknown_is_other() -> None:
    assert parse_category("groceries") == Category.OTHER
    assert parse_category("") == Category.OTHER


def test_extract_keyword() -> None:
    assert extract_keyword("Seblak pedas") == "seblak"
    assert extract_keyword("2x seblak") == "seblak"
    assert extract_keyword("a seblak") == "seblak"
    assert extract_keyword("12 3") is None


def test_build_prompt_lists_all_categories() -> None:
    prompt = build_prompt("seblak pedas")
    assert '"seblak pedas"' in prompt
    assert "food, transport, bills, shopping, entertainment, income, other" in prompt


@pytest.mark.anyio
async def test_classify_success_learns_keyword(store: InMemoryMappingStore) -> None:
    client = _client(return_value=_completion("food"))
    classifier = _classifier(store, client)

    assert await classifier.classify("Seblak pedas") == Category.FOOD

    mapping = store.get("seblak")
    assert mapping is not None
    assert mapping.category == Category.FOOD
    assert mapping.count == 1

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["temperature"] <= 0.2
    assert kwargs["max_tokens"] == 20
    assert "Seblak pedas" in kwargs["messages"][0]["content"]


@pytest.mark.anyio
async def test_classify_reinforces_existing_mapping(store: InMemoryMappingStore) -> None:
    store.upsert("seblak", Category.OTHER)
    classifier = _classifier(store, _client(return_value=_completion("Food")))

    await classifier.classify("seblak")

    mapping = store.get("seblak")
    assert mapping.category == Category.FOOD
    assert mapping.count == 2


@pytest.mark.anyio
async def test_classify_without_learning(store: InMemoryMappingStore) -> None:
    classifier = _classifier(store, _client(return_value=_completion("food")))
    assert await classifier.classify("seblak", persist_learning=False) == Category.FOOD
    assert store.get("seblak") is None


@pytest.mark.anyio
async def test_classify_other_is_not_learned(store: InMemoryMappingStore) -> None:
    classifier = _classifier(store, _client(return_value=_completion("I am not sure")))
    assert await classifier.classify("seblak") == Category.OTHER
    assert store.all() == []


@pytest.mark.anyio
async def test_missing_credentials_skips_network(
    store: InMemoryMappingStore, caplog: pytest.LogCaptureFixture
) -> None:
    client = _client(return_value=_completion("food"))
    classifier = _classifier(store, client, api_key=None)

    assert classifier.available is False
    with caplog.at_level(logging.WARNING):
        assert await classifier.classify("seblak") == Category.OTHER
    client.chat.completions.create.assert_not_called()
    assert "OPENAI_API_KEY" in caplog.text


@pytest.mark.anyio
async def test_http_error_is_other(store: InMemoryMappingStore, caplog: pytest.LogCaptureFixture) -> None:
    error = InternalServerError(
        "server error", response=httpx.Response(500, request=_REQUEST), body=None
    )
    classifier = _classifier(store, _client(side_effect=error))

    with caplog.at_level(logging.WARNING):
        assert await classifier.classify("seblak") == Category.OTHER
    assert "HTTP 500" in caplog.text
    assert store.all() == []


@pytest.mark.anyio
async def test_transport_error_is_other(store: InMemoryMappingStore, caplog: pytest.LogCaptureFixture) -> None:
    classifier = _classifier(store, _client(side_effect=APITimeoutError(request=_REQUEST)))

    with caplog.at_level(logging.WARNING):
        assert await classifier.classify("seblak") == Category.OTHER
    assert "Network error" in caplog.text


@pytest.mark.anyio
async def test_unexpected_error_is_other(store: InMemoryMappingStore) -> None:
    classifier = _classifier(store, _client(side_effect=RuntimeError("boom")))
    assert await classifier.classify("seblak") == Category.OTHER


@pytest.mark.anyio
async def test_slow_response_times_out(store: InMemoryMappingStore) -> None:
    async def slow_create(**kwargs: object) -> SimpleNamespace:
        await asyncio.sleep(5)
        return _completion("food")

    client = MagicMock()
    client.chat.completions.create = slow_create
    classifier = LLMClassifier(store=store, api_key="sk-fake", timeout=0.05, client=client)

    assert await classifier.classify("seblak") == Category.OTHER


@pytest.mark.anyio
@pytest.mark.parametrize("response", [_completion(None), _completion(""), SimpleNamespace(choices=[])])
async def test_empty_response_is_other(store: InMemoryMappingStore, response: SimpleNamespace) -> None:
    classifier = _classifier(store, _client(return_value=response))
    assert await classifier.classify("seblak") == Category.OTHER


@pytest.mark.anyio
async def test_learning_failure_is_swallowed(caplog: pytest.LogCaptureFixture) -> None:
    store = MagicMock(spec=MappingStore)
    store.upsert.side_effect = OSError("disk full")
    classifier = _classifier(store, _client(return_value=_completion("transport")))

    with caplog.at_level(logging.WARNING):
        assert await classifier.classify("damri bandara") == Category.TRANSPORT
    store.upsert.assert_called_once_with("damri", Category.TRANSPORT)
    assert "Failed to save category mapping" in caplog.text


def test_client_is_built_lazily_without_retries(store: InMemoryMappingStore) -> None:
    with patch("duit_assistant.classifiers.llm.AsyncOpenAI") as mock_openai:
        classifier = LLMClassifier(store=store, api_key="sk-fake", base_url="http://localhost:11434/v1")
        mock_openai.assert_not_called()

        classifier._get_client()
        classifier._get_client()

    mock_openai.assert_called_once()
    kwargs = mock_openai.call_args.kwargs
    assert kwargs["max_retries"] == 0
    assert kwargs["base_url"] == "http://localhost:11434/v1"
