from typing import Optional

from pydantic import BaseModel, ConfigDict


class Metadata(BaseModel):
    """Link-preview fields recovered from one page."""

    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    source_url: str
