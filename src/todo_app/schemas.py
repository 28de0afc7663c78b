from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import TITLE_MAX_LENGTH
from .repositories import normalize_title


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"title": "Buy milk"}})

    title: str = Field(
        ...,
        description=f"Short title for the todo item (1..{TITLE_MAX_LENGTH} chars after trimming)",
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        return normalize_title(v)


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Buy milk",
                "isCompleted": False,
                "createdAtUtc": "2025-01-25T10:15:30.123456+00:00",
            }
        },
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    is_completed: bool = Field(..., alias="isCompleted", description="Completion status flag")
    created_at_utc: datetime = Field(..., alias="createdAtUtc", description="Creation timestamp (UTC)")


class MessageOut(BaseModel):
    """Plain acknowledgement body."""

    message: str


class ErrorOut(BaseModel):
    """Error body rendered for every non-2xx response."""

    error: str
