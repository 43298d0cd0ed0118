from enum import Enum

from pydantic import BaseModel, Field


class Category(str, Enum):
    # Declaration order is the canonical order used when parsing AI replies.
    FOOD = "food"
    TRANSPORT = "transport"
    BILLS = "bills"
    SHOPPING = "shopping"
    ENTERTAINMENT = "entertainment"
    INCOME = "income"
    OTHER = "other"


class ParsedInput(BaseModel):
    description: str = Field(min_length=1)
    amount: int = Field(gt=0) # whole Rupiah


class LearnedMapping(BaseModel):
    keyword: str
    category: Category
    count: int = Field(default=1, ge=1)


class FuzzyMatch(BaseModel):
    candidate: str
    similarity: float = Field(ge=0.0, le=1.0)


class EntryResult(BaseModel):
    description: str
    amount: int
    category: Category
