import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..core.slug import slugify

DEFAULT_VIEWPORT_WIDTH = 1280
# Stored as a signed 32-bit INTEGER column.
MAX_VIEWPORT_WIDTH = 2**31 - 1
HEADER_CLOSE = "*/"

PatternStatus = Literal["draft", "publish"]

SET_FIELDS = ("categories", "keywords", "block_types", "post_types", "template_types")


def clean_text(value: Any) -> str:
    """Collapse a header value onto a single trimmed line."""
    if value is None:
        return ""
    text = " ".join(str(value).split())
    if HEADER_CLOSE in text:
        raise ValueError(f"must not contain '{HEADER_CLOSE}'")
    return text


def clean_string_set(value: Any) -> List[str]:
    """Materialise a list or comma-separated string as an ordered set of tokens."""
    if value is None:
        return []
    items = [value] if isinstance(value, str) else list(value)
    result: List[str] = []
    for item in items:
        for token in str(item).split(","):
            token = clean_text(token)
            if token and token not in result:
                result.append(token)
    return result


def clean_viewport_width(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_VIEWPORT_WIDTH
    if isinstance(value, str):
        return value.strip()
    return value


class PatternBase(BaseModel):
    """Represent the authorable fields of a block pattern."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(..., min_length=1)
    description: str = ""
    categories: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    viewport_width: int = Field(DEFAULT_VIEWPORT_WIDTH, ge=0, le=MAX_VIEWPORT_WIDTH)
    block_types: List[str] = Field(default_factory=list)
    post_types: List[str] = Field(default_factory=list)
    template_types: List[str] = Field(default_factory=list)
    inserter: bool = True
    content: str = ""
    status: PatternStatus = "publish"

    @field_validator("title", "description", mode="before")
    @classmethod
    def _single_line(cls, value: Any) -> str:
        return clean_text(value)

    @field_validator(*SET_FIELDS, mode="before")
    @classmethod
    def _string_set(cls, value: Any) -> List[str]:
        return clean_string_set(value)

    @field_validator("viewport_width", mode="before")
    @classmethod
    def _viewport_width(cls, value: Any) -> Any:
        return clean_viewport_width(value)

    @field_validator("inserter", mode="before")
    @classmethod
    def _inserter(cls, value: Any) -> Any:
        return True if value is None else value

    @field_validator("content", mode="before")
    @classmethod
    def _content(cls, value: Any) -> Any:
        return "" if value is None else value


class PatternCreate(PatternBase):
    """Represent pattern data for creation and import operations."""

    @property
    def slug(self) -> str:
        return slugify(self.title)


class PatternUpdate(BaseModel):
    """Represent a partial pattern update. Unset fields are left untouched."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    categories: Optional[List[str]] = None
    keywords: Optional[List[str]] = None
    viewport_width: Optional[int] = Field(None, ge=0, le=MAX_VIEWPORT_WIDTH)
    block_types: Optional[List[str]] = None
    post_types: Optional[List[str]] = None
    template_types: Optional[List[str]] = None
    inserter: Optional[bool] = None
    content: Optional[str] = None
    status: Optional[PatternStatus] = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def _single_line(cls, value: Any) -> Optional[str]:
        return None if value is None else clean_text(value)

    @field_validator(*SET_FIELDS, mode="before")
    @classmethod
    def _string_set(cls, value: Any) -> Optional[List[str]]:
        return None if value is None else clean_string_set(value)

    @field_validator("viewport_width", mode="before")
    @classmethod
    def _viewport_width(cls, value: Any) -> Any:
        return None if value is None else clean_viewport_width(value)


class PatternRead(PatternBase):
    """Represent pattern data for read operations."""

    id: int
    slug: str
    created: datetime.datetime
    last_updated: Optional[datetime.datetime] = None
    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True
    )
