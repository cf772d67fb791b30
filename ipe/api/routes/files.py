"""Stored file API routes: list by owner and download."""

from urllib.parse import quote

from fastapi import APIRouter, Depends, Response

from ipe.api.deps import get_caller, get_file_store
from ipe.schemas.files import StoredFileResponse
from ipe.services.auth_service import CallerContext
from ipe.services.file_store import FileStore

router = APIRouter(prefix="/api/files", tags=["files"])


@router.get("", response_model=list[StoredFileResponse])
async def list_files(
    entity: str,
    entity_id: int,
    caller: CallerContext = Depends(get_caller),
    files: FileStore = Depends(get_file_store),
) -> list[StoredFileResponse]:
    return [StoredFileResponse.model_validate(f) for f in files.list_for(entity, entity_id)]


@router.get("/{file_id}")
async def download_file(
    file_id: int,
    caller: CallerContext = Depends(get_caller),
    files: FileStore = Depends(get_file_store),
) -> Response:
    """
    Download a stored blob under its original name.

    Returns:
        200: File content with its MIME type
        404: Unknown file id
        500: Blob missing on disk
    """
    content, stored = files.read(file_id)
    return Response(
        content=content,
        media_type=stored.mime,
        headers={"Content-Disposition": f"inline; filename*=UTF-8''{quote(stored.original_name)}"},
    )
