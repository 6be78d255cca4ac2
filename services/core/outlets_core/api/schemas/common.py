"""Shared schema base and helpers."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model whose JSON field names are camelCase.

    Attribute names stay snake_case; either spelling is accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure datetime has UTC timezone for proper JSON serialization."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        # Naive datetime from the store - assume UTC
        return dt.replace(tzinfo=timezone.utc)
    return dt


class HealthResponse(CamelModel):
    status: str = Field(..., description="Service status")
    service: str = Field(..., description="Service name")


class ErrorResponse(CamelModel):
    detail: str = Field(..., description="Error message")
