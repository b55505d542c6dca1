"""Media storage: image uploads and the orphan sweep.

Files live in a blob store, either a local directory or a Cloudflare R2
bucket (S3 API via boto3). Product images and user avatars reference them by
URL; anything in the store that no row references is an orphan.
"""
import logging
import os
import time
from typing import List, Optional
from uuid import uuid4

import boto3
from botocore.exceptions import ClientError
from sqlmodel import Session, select

from storefront.config import settings
from storefront.errors import ValidationFailedError
from storefront.models.product import ProductImage
from storefront.models.user import User
from storefront.schemas.media_schemas import CleanupResult, UploadedImage

logger = logging.getLogger(__name__)

VALID_EXTENSIONS = ("jpeg", "jpg", "png", "gif", "webp")


class LocalBlobStore:
    def __init__(self, root: str, url_prefix: str = "/uploads"):
        self.root = root
        self.url_prefix = url_prefix.rstrip("/")
        os.makedirs(self.root, exist_ok=True)

    def put(self, filename: str, data: bytes, content_type: str) -> str:
        with open(os.path.join(self.root, filename), "wb") as f:
            f.write(data)
        return f"{self.url_prefix}/{filename}"

    def delete(self, filename: str) -> bool:
        path = os.path.join(self.root, filename)
        if not os.path.isfile(path):
            return False
        os.remove(path)
        return True

    def list(self) -> List[str]:
        return sorted(
            name for name in os.listdir(self.root)
            if os.path.isfile(os.path.join(self.root, name))
        )


class R2BlobStore:
    def __init__(self, client, bucket: str, prefix: str = "uploads", public_base: Optional[str] = None):
        self.client = client
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self.public_base = public_base.rstrip("/") if public_base else None

    @classmethod
    def from_settings(cls):
        client = boto3.client(
            "s3",
            endpoint_url=f"https://{settings.r2_account_id}.r2.cloudflarestorage.com",
            aws_access_key_id=settings.r2_access_key_id,
            aws_secret_access_key=settings.r2_secret_access_key,
            region_name="auto",
        )
        return cls(client, settings.r2_bucket_name, public_base=settings.r2_public_base)

    def _key(self, filename: str) -> str:
        return f"{self.prefix}/{filename}"

    def put(self, filename: str, data: bytes, content_type: str) -> str:
        self.client.put_object(
            Bucket=self.bucket,
            Key=self._key(filename),
            Body=data,
            ContentType=content_type,
        )
        if self.public_base:
            return f"{self.public_base}/{self._key(filename)}"
        return f"{settings.uploads_url_prefix.rstrip('/')}/{filename}"

    def delete(self, filename: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=self._key(filename))
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchKey"):
                return False
            raise
        self.client.delete_object(Bucket=self.bucket, Key=self._key(filename))
        return True

    def list(self) -> List[str]:
        names = []
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=f"{self.prefix}/"):
            for obj in page.get("Contents", []):
                names.append(obj["Key"].rsplit("/", 1)[-1])
        return sorted(names)


_store = None


def get_blob_store():
    """FastAPI dependency returning the configured store."""
    global _store
    if _store is None:
        if settings.media_backend == "r2":
            _store = R2BlobStore.from_settings()
        else:
            _store = LocalBlobStore(settings.uploads_dir, settings.uploads_url_prefix)
    return _store


def filename_from_url(url: str) -> Optional[str]:
    name = url.rstrip().split("?", 1)[0].split("/")[-1]
    return name or None


def upload_image(store, content_type: Optional[str], data: bytes) -> UploadedImage:
    content_type = content_type or ""
    if not content_type.startswith("image/"):
        raise ValidationFailedError("Only image files are allowed")

    extension = content_type.split("/", 1)[1]
    if extension not in VALID_EXTENSIONS:
        raise ValidationFailedError("Invalid image format")

    if not data:
        raise ValidationFailedError("File is required")

    filename = f"{int(time.time() * 1000)}-{uuid4().hex[:13]}.{extension}"
    url = store.put(filename, data, content_type)
    logger.info(f"Stored image {filename} ({len(data)} bytes)")
    return UploadedImage(filename=filename, url=url)


def delete_image(store, url: str) -> bool:
    filename = filename_from_url(url)
    if not filename:
        raise ValidationFailedError("Invalid file URL")
    return store.delete(filename)


def referenced_filenames(session: Session) -> set:
    urls = list(session.exec(select(ProductImage.url)).all())
    urls += [
        image for image in session.exec(
            select(User.image).where(User.image.is_not(None))
        ).all()
        if image
    ]
    return {filename_from_url(url) for url in urls}


def find_orphans(session: Session, store) -> List[str]:
    used = referenced_filenames(session)
    return [name for name in store.list() if name not in used]


def cleanup_unused_images(session: Session, store, dry_run: bool = False) -> CleanupResult:
    """Delete every stored file no product image or user references.

    Per-file failures are counted in ``errors`` and the sweep carries on.
    """
    orphans = find_orphans(session, store)
    result = CleanupResult(orphans=orphans)

    if dry_run:
        logger.info(f"Dry run: {len(orphans)} unused files would be deleted")
        return result

    for name in orphans:
        try:
            if store.delete(name):
                result.removed += 1
        except (OSError, ClientError) as e:
            logger.error(f"Error deleting file {name}: {e}")
            result.errors += 1

    logger.info(f"Cleanup complete: {result.removed} files deleted, {result.errors} errors")
    return result
