import asyncio
import logging
from collections.abc import AsyncIterator, Iterator

from fastapi.responses import Response, StreamingResponse

from filegate.services.storage import ObjectDownload, attachment_disposition

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def _close_quietly(body) -> None:
    close = getattr(body, "close", None)
    if close is None:
        return
    try:
        close()
    except Exception:  # pragma: no cover - logged for observability
        logger.warning("Failed to release store stream", exc_info=True)


async def relay_chunks(key: str, body) -> AsyncIterator[bytes]:
    """Yield the store body chunk by chunk, releasing it however the relay ends.

    Reads happen in a worker thread since botocore bodies are blocking. A read
    error after the first chunk cannot become a JSON error any more, so it is
    logged and re-raised and the server drops the connection.
    """
    chunks: Iterator[bytes] = body.iter_chunks(CHUNK_SIZE)
    try:
        while True:
            chunk = await asyncio.to_thread(next, chunks, None)
            if chunk is None:
                break
            yield chunk
    except Exception:
        logger.exception("Stream error while relaying %s", key)
        raise
    finally:
        _close_quietly(body)


async def build_download_response(download: ObjectDownload) -> Response:
    # Content-Type is relayed exactly as the store declared it.
    headers = {
        "Content-Type": download.content_type,
        "Content-Disposition": attachment_disposition(download.filename),
    }
    if download.content_length:
        headers["Content-Length"] = str(download.content_length)

    body = download.body
    if hasattr(body, "iter_chunks"):
        return StreamingResponse(
            relay_chunks(download.key, body),
            headers=headers,
        )

    # No incremental reader: materialize the whole object before answering.
    if body is None or isinstance(body, (bytes, bytearray)):
        data = bytes(body or b"")
    else:
        try:
            data = await asyncio.to_thread(body.read)
        finally:
            _close_quietly(body)
    headers["Content-Length"] = str(len(data))
    return Response(content=data, headers=headers)
