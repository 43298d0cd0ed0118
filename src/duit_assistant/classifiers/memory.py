import json
import os
import threading
from abc import ABC, abstractmethod

from pydantic import ValidationError

from duit_assistant.logger import get_logger
from duit_assistant.models import Category, LearnedMapping

logger = get_logger(__name__)


def normalize_keyword(keyword: str) -> str:
    return keyword.strip().lower()


class MappingStore(ABC):
    """Learned keyword -> category mappings, keyed by lowercase single word."""

    @abstractmethod
    def get(self, keyword: str) -> LearnedMapping | None:
        pass

    @abstractmethod
    def upsert(self, keyword: str, category: Category) -> LearnedMapping:
        """Create with count 1, or overwrite the category and increment the count."""
        pass

    @abstractmethod
    def all(self) -> list[LearnedMapping]:
        """All mappings, most used first."""
        pass

    @abstractmethod
    def update_category(self, keyword: str, category: Category) -> LearnedMapping | None:
        pass

    @abstractmethod
    def delete(self, keyword: str) -> bool:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class InMemoryMappingStore(MappingStore):
    def __init__(self, mappings: list[LearnedMapping] | None = None):
        self._lock = threading.Lock()
        self.memory: dict[str, LearnedMapping] = {}
        for mapping in mappings or []:
            key = normalize_keyword(mapping.keyword)
            self.memory[key] = mapping.model_copy(update={"keyword": key})

    def get(self, keyword: str) -> LearnedMapping | None:
        mapping = self.memory.get(normalize_keyword(keyword))
        return mapping.model_copy() if mapping else None

    def upsert(self, keyword: str, category: Category) -> LearnedMapping:
        key = normalize_keyword(keyword)
        with self._lock:
            existing = self.memory.get(key)
            count = existing.count + 1 if existing else 1
            mapping = LearnedMapping(keyword=key, category=category, count=count)
            self.memory[key] = mapping
            self._changed()
        return mapping.model_copy()

    def all(self) -> list[LearnedMapping]:
        # sorted() is stable, so equal counts keep insertion order.
        with self._lock:
            mappings = sorted(self.memory.values(), key=lambda m: m.count, reverse=True)
        return [mapping.model_copy() for mapping in mappings]

    def update_category(self, keyword: str, category: Category) -> LearnedMapping | None:
        key = normalize_keyword(keyword)
        with self._lock:
            existing = self.memory.get(key)
            if existing is None:
                return None
            mapping = existing.model_copy(update={"category": category})
            self.memory[key] = mapping
            self._changed()
        return mapping.model_copy()

    def delete(self, keyword: str) -> bool:
        key = normalize_keyword(keyword)
        with self._lock:
            if key not in self.memory:
                return False
            del self.memory[key]
            self._changed()
        return True

    def clear(self) -> None:
        with self._lock:
            self.memory = {}
            self._changed()

    def _changed(self) -> None:
        """Hook called with the lock held after every mutation."""


class JsonMappingStore(InMemoryMappingStore):
    """Mappings persisted to a JSON file, rewritten after every change."""

    def __init__(self, data_path: str = "mappings.json"):
        super().__init__()
        self.data_path = data_path
        self.load()

    def load(self) -> None:
        if not os.path.exists(self.data_path):
            return
        try:
            with open(self.data_path, encoding="utf-8") as f:
                raw = json.load(f)
            mappings = [LearnedMapping.model_validate(item) for item in raw]
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.warning("Ignoring unreadable mappings file %s: %s", self.data_path, e)
            mappings = []
        self.memory = {}
        for mapping in mappings:
            key = normalize_keyword(mapping.keyword)
            self.memory[key] = mapping.model_copy(update={"keyword": key})

    def save(self) -> None:
        payload = [mapping.model_dump(mode="json") for mapping in self.memory.values()]
        tmp_path = f"{self.data_path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp_path, self.data_path)

    def _changed(self) -> None:
        self.save()
