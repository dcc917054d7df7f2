"""Shared response envelopes and schema helpers.

Every JSON body is one of two tagged shapes: ``ApiResponse`` (``success``
is ``True`` and ``data`` carries the payload) or ``ErrorResponse``
(``success`` is ``False`` with a category, message and status code).
"""

from __future__ import annotations

from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

DataT = TypeVar("DataT")

# Error type for validator failures whose message is shown to clients verbatim
CLIENT_MESSAGE_ERROR = "client_message"


def client_error(message: str) -> PydanticCustomError:
    """Build a validation error whose message is returned as-is in 400 bodies."""
    return PydanticCustomError(CLIENT_MESSAGE_ERROR, message)


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase (``created_at`` -> ``createdAt``)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[DataT]):
    """Successful response envelope."""

    success: Literal[True] = True
    data: DataT
    message: str | None = None


class ErrorResponse(CamelModel):
    """Failure envelope shared by every error status."""

    success: Literal[False] = False
    error: str = Field(..., description="Error category, e.g. 'Bad Request'.")
    message: str
    status_code: int | None = None
    retry_after: int | None = Field(
        default=None,
        description="Seconds until the rate limit window resets (429 only).",
    )
