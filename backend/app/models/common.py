"""Common types and enums shared across all models."""

import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Bounds on client-supplied paging values; they must fit the integer columns and offsets
MAX_PAGE = 10_000
MAX_PAGE_SIZE = 100
MAX_PAGE_NUMBER = 100_000


class CamelModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContentKind(str, Enum):
    """Provenance of an indexed content unit."""

    pdf_text = "pdf_text"
    annotation = "annotation"


class Position(BaseModel):
    """Rectangle in normalized page coordinates."""

    x: float
    y: float
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)


class Pagination(BaseModel):
    """Pagination block returned with every result list."""

    current: int = 1
    pages: int = 0
    total: int = 0

    @classmethod
    def empty(cls) -> "Pagination":
        return cls(current=1, pages=0, total=0)

    @classmethod
    def for_total(cls, total: int, page: int, limit: int) -> "Pagination":
        """Build pagination for ``total`` matches split into pages of ``limit``."""
        return cls(current=page, pages=math.ceil(total / limit) if limit else 0, total=total)
