from pydantic import BaseModel

from duit_assistant.models import Category


class ParseRequest(BaseModel):
    text: str


class CategorizeRequest(BaseModel):
    description: str
    use_remote: bool = True


class CategorizeResponse(BaseModel):
    category: Category


class EntryRequest(BaseModel):
    text: str
    use_remote: bool = True


class MappingRequest(BaseModel):
    category: Category
