"""
Vidtube Response Envelope.

Every reply body looks like::

    {"statusCode": 200, "message": "...", "data": {...}, "success": true}

The HTTP status of the response always equals ``statusCode`` so clients that
only parse the body still see the outcome.
"""
from __future__ import annotations

from typing import Any, Generic, Optional, TypeVar

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, computed_field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(..., alias="statusCode", ge=100, le=599)
    message: str
    data: Optional[T] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return self.status_code < 400

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status_code,
            content=self.model_dump(mode="json", by_alias=True),
        )


def respond(status_code: int, message: str, data: Any = None) -> JSONResponse:
    """Build the envelope and the matching HTTP response in one go."""
    payload = jsonable_encoder(data, by_alias=True)
    return ApiResponse[Any](status_code=status_code, message=message, data=payload).to_response()
