"""File download route."""

from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from api.routes.auth import get_current_student
from config import INLINE_MIME_TYPES
from core.dependencies import BlobStoreDep
from schemas.student import Student

router = APIRouter(prefix="/api/files", tags=["File"])


@router.get("/{file_id}", summary="Download a file")
def download_file(
    file_id: str,
    blob_store: BlobStoreDep,
    current_student: Student = Depends(get_current_student),
) -> StreamingResponse:
    """Stream a stored file.

    Images and PDFs are served inline so the browser can preview them,
    everything else as an attachment. The token may be passed as a ``token``
    query parameter for links opened directly in the browser.
    """
    info = blob_store.find(file_id)
    disposition = "inline" if info.content_type in INLINE_MIME_TYPES else "attachment"
    headers = {
        "Content-Disposition": f"{disposition}; filename*=UTF-8''{quote(info.filename)}",
        "Content-Length": str(info.length),
    }
    return StreamingResponse(
        blob_store.iter_chunks(info.id),
        media_type=info.content_type,
        headers=headers,
    )
