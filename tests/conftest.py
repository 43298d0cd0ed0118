from collections.abc import Generator

import pytest

from duit_assistant.classifiers.memory import InMemoryMappingStore

_ISOLATED_ENV = (
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "OPENAI_MODEL",
    "REMOTE_TIMEOUT",
    "REMOTE_MAX_TOKENS",
    "FUZZY_THRESHOLD",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    # A developer's .env or real key must never leak into a test run.
    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def store() -> InMemoryMappingStore:
    return InMemoryMappingStore()


@pytest.fixture
def anyio_backend() -> str:
    # The code under test is built on asyncio primitives (asyncio.to_thread).
    return "asyncio"
