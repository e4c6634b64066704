"""
File Storage Service

Stores recipe images, recipe PDFs and collection artwork either on the
local filesystem (served under /static) or in an S3 bucket.

The backend is chosen by settings.STORAGE_BACKEND:
- "local": files are written to settings.STATIC_DIR
- "s3": files are uploaded with boto3 to settings.S3_BUCKET_NAME

Usage:
    from foodie.services.storage import upload_file, get_file_url

    result = upload_file(data, "3f2a...9c.jpg", "image/jpeg")
    if result.success:
        recipe.image_filename = result.filename
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from foodie.core.config import settings
from foodie.core.constants import FILE_TYPE_EXTENSIONS
from foodie.services.file_naming import MIN_HASH_LENGTH, extract_base_hash


logger = logging.getLogger("storage")


@dataclass
class FileUploadResult:
    success: bool
    url: Optional[str] = None
    filename: Optional[str] = None
    error: Optional[str] = None


class LocalStorage:
    """Filesystem storage below a single directory."""

    mode = "local"

    def __init__(self, directory: str):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, filename: str) -> Path:
        # Stored names never contain directories
        return self.directory / Path(filename).name

    def upload(self, data: bytes, filename: str, content_type: str) -> FileUploadResult:
        try:
            self._path(filename).write_bytes(data)
        except OSError as e:
            logger.error(f"Local upload of {filename} failed: {e}")
            return FileUploadResult(success=False, error=str(e))
        return FileUploadResult(success=True, url=self.url(filename), filename=filename)

    def delete(self, filename: str) -> bool:
        path = self._path(filename)
        if not path.exists():
            return False
        path.unlink()
        return True

    def exists(self, filename: str) -> bool:
        return self._path(filename).exists()

    def list_files(self, prefix: str) -> List[str]:
        return sorted(p.name for p in self.directory.glob(f"{prefix}*") if p.is_file())

    def url(self, filename: str) -> str:
        return f"/static/{filename}"


class S3Storage:
    """Object storage in an S3 (or S3-compatible) bucket."""

    mode = "s3"

    def __init__(self, bucket_name: str, region: str, endpoint_url: Optional[str] = None,
                 public_url: Optional[str] = None):
        if not bucket_name:
            raise ValueError("S3_BUCKET_NAME is required when STORAGE_BACKEND is 's3'")
        self.bucket_name = bucket_name
        self.region = region
        self.public_url = public_url.rstrip("/") if public_url else None
        self.s3_client = boto3.client("s3", region_name=region, endpoint_url=endpoint_url)

    def upload(self, data: bytes, filename: str, content_type: str) -> FileUploadResult:
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=filename,
                Body=data,
                ContentType=content_type,
                CacheControl="public, max-age=31536000, immutable",
            )
        except (NoCredentialsError, ClientError) as e:
            logger.error(f"S3 upload of {filename} failed: {e}")
            return FileUploadResult(success=False, error=str(e))
        return FileUploadResult(success=True, url=self.url(filename), filename=filename)

    def delete(self, filename: str) -> bool:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=filename)
            return True
        except ClientError as e:
            logger.warning(f"S3 delete of {filename} failed: {e}")
            return False

    def exists(self, filename: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=filename)
            return True
        except ClientError:
            return False

    def list_files(self, prefix: str) -> List[str]:
        names = []
        paginator = self.s3_client.get_paginator("list_objects_v2")
        try:
            for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
                names.extend(obj["Key"] for obj in page.get("Contents", []))
        except ClientError as e:
            logger.warning(f"S3 listing for prefix {prefix} failed: {e}")
        return names

    def url(self, filename: str) -> str:
        if self.public_url:
            return f"{self.public_url}/{filename}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{filename}"


@lru_cache
def get_storage():
    """Configured storage backend (created once per process)."""
    if settings.STORAGE_BACKEND.lower() == "s3":
        return S3Storage(
            bucket_name=settings.S3_BUCKET_NAME,
            region=settings.S3_REGION,
            endpoint_url=settings.S3_ENDPOINT_URL,
            public_url=settings.STORAGE_PUBLIC_URL,
        )
    return LocalStorage(settings.STATIC_DIR)


def storage_mode() -> str:
    return get_storage().mode


def upload_file(data: bytes, filename: str, content_type: str) -> FileUploadResult:
    result = get_storage().upload(data, filename, content_type)
    if result.success:
        logger.info(f"Stored {filename} ({len(data)} bytes, {content_type})")
    return result


def delete_file(filename: Optional[str]) -> bool:
    if not filename:
        return False
    return get_storage().delete(filename)


def file_exists(filename: Optional[str]) -> bool:
    if not filename:
        return False
    return get_storage().exists(filename)


def get_file_url(filename: Optional[str]) -> Optional[str]:
    if not filename:
        return None
    return get_storage().url(filename)


def delete_versions(base_hash: Optional[str], file_type: str, keep: Optional[str] = None) -> List[str]:
    """
    Delete every stored version of a hashed file.

    Removes "<hash>.<ext>" and "<hash>_vN.<ext>" for the extensions of
    file_type ("image" or "pdf"), except the file named by keep. Hashes
    shorter than 8 characters are refused so a bad value can never match
    unrelated files.

    Returns:
        Names of the deleted files
    """
    if not base_hash or len(base_hash) < MIN_HASH_LENGTH:
        logger.warning(f"Refusing to clean up files for short hash {base_hash!r}")
        return []

    extensions = FILE_TYPE_EXTENSIONS.get(file_type)
    if not extensions:
        raise ValueError(f"Unknown file type: {file_type}")

    pattern = re.compile(rf"^{re.escape(base_hash)}(?:_v\d+)?\.(?:{'|'.join(extensions)})$")
    storage = get_storage()
    deleted = []
    for name in storage.list_files(base_hash):
        if name == keep:
            continue
        if pattern.match(name) and storage.delete(name):
            deleted.append(name)

    if deleted:
        logger.info(f"Deleted {len(deleted)} old {file_type} file(s) for {base_hash}")
    return deleted


def cleanup_recipe_files(image_filename: Optional[str], pdf_filename: Optional[str]) -> List[str]:
    """Remove a recipe's image and PDF, including all older versions."""
    deleted = []
    for filename, file_type in ((image_filename, "image"), (pdf_filename, "pdf")):
        if not filename:
            continue
        base_hash = extract_base_hash(filename)
        if base_hash:
            deleted.extend(delete_versions(base_hash, file_type))
        elif delete_file(filename):
            deleted.append(filename)
    return deleted
