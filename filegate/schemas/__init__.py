from filegate.schemas.storage import (
    DeleteRequest,
    DeleteResponse,
    ErrorResponse,
    ListResponse,
    ObjectSummaryRead,
    SignedUrlResponse,
    UploadResponse,
)

__all__ = [
    "ErrorResponse",
    "UploadResponse",
    "ObjectSummaryRead",
    "ListResponse",
    "DeleteRequest",
    "DeleteResponse",
    "SignedUrlResponse",
]
