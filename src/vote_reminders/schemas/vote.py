"""Vote webhook Pydantic schemas."""

from __future__ import annotations

from typing import Any, Literal
from urllib.parse import parse_qsl

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

VOTE_TYPE_UPVOTE = "upvote"
VOTE_TYPE_TEST = "test"


class WebhookPayload(BaseModel):
    """Body of a vote webhook request.

    Exactly one of ``bot`` or ``guild`` identifies the voted-for entity.
    Unknown keys are kept so listeners receive the payload unchanged.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    bot: str | None = None
    guild: str | None = None
    user: str = Field(..., min_length=1, description="Id of the user who voted")
    type: Literal["upvote", "test"]
    is_weekend: bool | None = Field(default=None, alias="isWeekend")
    query: dict[str, Any] | None = None

    @field_validator("query", mode="before")
    @classmethod
    def _parse_query(cls, value: Any) -> Any:
        if isinstance(value, str):
            return dict(parse_qsl(value.lstrip("?"), keep_blank_values=True))
        return value

    @model_validator(mode="after")
    def _require_target(self) -> WebhookPayload:
        if self.bot is None and self.guild is None:
            raise ValueError("payload must name a bot or a guild")
        return self

    @property
    def is_test(self) -> bool:
        """Return True for votes sent with the "send test" button."""
        return self.type == VOTE_TYPE_TEST

    def raw(self) -> dict[str, Any]:
        """Return the payload as listeners receive it."""
        return self.model_dump(by_alias=True, exclude_none=True)
