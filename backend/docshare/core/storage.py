"""Storage provider used for uploaded documents.

Objects are addressed by a path of the form ``<owner id>/<file name>``;
uploading the same name again overwrites the stored object.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import BinaryIO

from minio import Minio
from minio.error import S3Error

from docshare.core.config import settings
from docshare.core.minio_client import initialize_minio_bucket, minio_client

logger = logging.getLogger("docshare")


@dataclass
class FileMetadata:
    user_id: str
    file_name: str
    file_type: str


@dataclass
class UploadResult:
    file_path: str


class StorageError(RuntimeError):
    pass


class StorageProvider:
    def initialize(self) -> None:
        raise NotImplementedError

    def upload(self, data: BinaryIO, length: int, metadata: FileMetadata) -> UploadResult:
        raise NotImplementedError

    def delete(self, file_path: str) -> None:
        raise NotImplementedError

    def open(self, file_path: str):
        """Return a readable object with ``read(n)`` and ``close()``."""
        raise NotImplementedError

    def size(self, file_path: str) -> int:
        raise NotImplementedError


class MinioStorageProvider(StorageProvider):
    def __init__(self, client: Minio, bucket: str):
        self.client = client
        self.bucket = bucket

    @staticmethod
    def build_path(metadata: FileMetadata) -> str:
        return f"{metadata.user_id}/{metadata.file_name}"

    def initialize(self) -> None:
        initialize_minio_bucket(self.client, self.bucket)

    def upload(self, data: BinaryIO, length: int, metadata: FileMetadata) -> UploadResult:
        file_path = self.build_path(metadata)
        try:
            self.client.put_object(
                self.bucket, file_path, data, length, content_type=metadata.file_type
            )
        except S3Error as e:
            logger.error("MinIO upload error for %s: %s", file_path, e)
            raise StorageError("File upload failed.") from e
        return UploadResult(file_path=file_path)

    def delete(self, file_path: str) -> None:
        try:
            self.client.remove_object(self.bucket, file_path)
        except S3Error as e:
            logger.error("MinIO delete error for %s: %s", file_path, e)
            raise StorageError("File deletion failed.") from e

    def open(self, file_path: str):
        try:
            return self.client.get_object(self.bucket, file_path)
        except S3Error as e:
            raise StorageError(f"Object {file_path} is not available") from e

    def size(self, file_path: str) -> int:
        try:
            return self.client.stat_object(self.bucket, file_path).size
        except S3Error as e:
            raise StorageError(f"Object {file_path} is not available") from e


storage = MinioStorageProvider(minio_client, settings.MINIO_BUCKET)

def get_storage() -> StorageProvider:
    return storage
