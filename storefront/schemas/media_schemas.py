from typing import List

from storefront.schemas.base import CamelModel


class UploadedImage(CamelModel):
    filename: str
    url: str


class UploadResponse(CamelModel):
    success: bool = True
    image: UploadedImage


class CleanupResult(CamelModel):
    removed: int = 0
    errors: int = 0
    orphans: List[str] = []


class CleanupResponse(CamelModel):
    success: bool = True
    message: str
    result: CleanupResult
