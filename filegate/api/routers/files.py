import logging

from fastapi import APIRouter, File, HTTPException, Query, UploadFile, status
from fastapi.responses import Response

from filegate.schemas import (
    DeleteRequest,
    DeleteResponse,
    ErrorResponse,
    ListResponse,
    ObjectSummaryRead,
    SignedUrlResponse,
    UploadResponse,
)
from filegate.services.download import build_download_response
from filegate.services.storage import clamp_page_size, get_storage_service

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["files"],
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)


def _store_failure(exc: Exception) -> HTTPException:
    logger.exception("Object store call failed")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(exc),
    )


@router.post("/upload", response_model=UploadResponse)
async def upload_file(file: UploadFile | None = File(default=None)) -> UploadResponse:
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    storage = get_storage_service()
    key = file.filename
    try:
        data = await file.read()
        await storage.upload_object(key, data, file.content_type)
    except Exception as exc:
        raise _store_failure(exc) from exc
    return UploadResponse(key=key)


@router.get("/list", response_model=ListResponse)
async def list_files(
    page_size: str | None = Query(default=None, alias="pageSize"),
    continuation_token: str | None = Query(default=None, alias="continuationToken"),
) -> ListResponse:
    storage = get_storage_service()
    try:
        page = await storage.list_objects(clamp_page_size(page_size), continuation_token or None)
    except Exception as exc:
        raise _store_failure(exc) from exc

    return ListResponse(
        items=[
            ObjectSummaryRead(key=item.key, size=item.size, last_modified=item.last_modified)
            for item in page.items
        ],
        next_continuation_token=page.next_continuation_token,
        is_truncated=page.is_truncated,
    )


@router.post("/delete", response_model=DeleteResponse)
async def delete_files(payload: DeleteRequest) -> DeleteResponse:
    if not payload.keys:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="keys must be a non-empty array",
        )

    storage = get_storage_service()
    try:
        resp = await storage.delete_objects(payload.keys)
    except Exception as exc:
        raise _store_failure(exc) from exc
    return DeleteResponse(resp=resp)


@router.get("/signed/{key}", response_model=SignedUrlResponse)
async def signed_url(key: str) -> SignedUrlResponse:
    storage = get_storage_service()
    try:
        url = storage.create_presigned_get(key)
    except Exception as exc:
        raise _store_failure(exc) from exc
    return SignedUrlResponse(url=url)


@router.get("/download/{key:path}", response_class=Response)
async def download_file(key: str) -> Response:
    storage = get_storage_service()
    try:
        download = await storage.open_object(key)
        return await build_download_response(download)
    except Exception as exc:
        raise _store_failure(exc) from exc
