from fastapi import APIRouter, Depends, File, UploadFile
from sqlmodel import Session

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.user import User
from storefront.schemas.media_schemas import CleanupResponse, UploadResponse
from storefront.services.media_service import (
    cleanup_unused_images,
    get_blob_store,
    upload_image,
)

router = APIRouter()


@router.post("/upload", response_model=UploadResponse)
async def upload(
    file: UploadFile = File(...),
    store=Depends(get_blob_store),
    admin: User = Depends(require_admin),
):
    contents = await file.read()
    image = upload_image(store, file.content_type, contents)
    return UploadResponse(success=True, image=image)


@router.post("/cleanup", response_model=CleanupResponse)
def cleanup(
    dry_run: bool = False,
    session: Session = Depends(get_session),
    store=Depends(get_blob_store),
    admin: User = Depends(require_admin),
):
    result = cleanup_unused_images(session, store, dry_run=dry_run)

    if dry_run:
        message = f"Dry run: {len(result.orphans)} files would be removed"
    else:
        message = f"Cleanup completed: {result.removed} files removed, {result.errors} errors"

    return CleanupResponse(success=True, message=message, result=result)
