"""Import API routes."""

from fastapi import APIRouter, Depends, HTTPException, UploadFile

from changeledger.events.store import StoreUnavailableError
from changeledger.importer.schemas import ImportPreviewResponse, ImportResponse
from changeledger.importer.service import ImportFormatError, ImportService

router = APIRouter(prefix="/api/import", tags=["import"])


def get_import_service() -> ImportService:
    """Dependency placeholder, overridden at startup."""
    raise RuntimeError("ImportService not configured")


@router.post("/updates/preview")
async def preview_import(
    file: UploadFile,
    service: ImportService = Depends(get_import_service),
) -> ImportPreviewResponse:
    """Parse uploaded file and return preview without writing anything."""
    content = await file.read()
    try:
        return service.preview(content)
    except ImportFormatError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.post("/updates")
async def import_updates(
    file: UploadFile,
    service: ImportService = Depends(get_import_service),
) -> ImportResponse:
    """Append update records from an uploaded JSON or JSON-lines file."""
    content = await file.read()
    try:
        return await service.import_updates(content)
    except ImportFormatError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail="Update store unavailable") from e
