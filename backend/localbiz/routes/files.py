"""
LocalBiz Backend — Stored File Route
======================================

What:  GET /api/files/{path} serves uploaded images from the storage root.
How:   The path is resolved by FileService, which refuses anything outside
       the storage root (../ traversal). Content type is inferred from the
       file extension.
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from localbiz.exceptions import NotFoundError
from localbiz.schemas.common import ErrorResponse
from localbiz.services.file_service import file_service

router = APIRouter(prefix="/api", tags=["Files"])


@router.get(
    "/files/{file_path:path}",
    summary="Serve an uploaded image",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Invalid path", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_file(file_path: str) -> FileResponse:
    full_path = file_service.resolve_path(file_path)
    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=file_path)

    # Stored names are unique per upload, so the bytes never change
    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
