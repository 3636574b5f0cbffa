"""Page context schema."""

from pydantic import ConfigDict, Field

from .base import BaseSchema


class PageContext(BaseSchema):
    """Static, route-derived bundle shown to orient the user."""

    page_name: str
    description: str
    suggestions: list[str] = Field(default_factory=list)
    recent_actions: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)
