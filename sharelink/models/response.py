from typing import Optional

from pydantic import BaseModel


class ScrapeResponse(BaseModel):
    title: Optional[str]
    description: Optional[str]
    icon: Optional[str]
    url: str
    """The URL exactly as the caller supplied it."""


class ErrorResponse(BaseModel):
    error: str
