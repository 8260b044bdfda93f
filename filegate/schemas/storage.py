from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    error: str


class UploadResponse(BaseModel):
    ok: bool = True
    key: str


class ObjectSummaryRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    key: str
    size: int
    last_modified: datetime | None = Field(default=None, alias="lastModified")


class ListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    items: list[ObjectSummaryRead]
    next_continuation_token: str | None = Field(default=None, alias="nextContinuationToken")
    is_truncated: bool = Field(default=False, alias="isTruncated")


class DeleteRequest(BaseModel):
    keys: list[str] | None = None


class DeleteResponse(BaseModel):
    ok: bool = True
    resp: dict[str, Any]


class SignedUrlResponse(BaseModel):
    ok: bool = True
    url: str
