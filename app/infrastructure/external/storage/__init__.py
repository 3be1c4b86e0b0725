"""Storage: local filesystem, in-memory and S3-compatible backends.

StorageFactory picks a backend from app.core.config.get_storage_config();
StorageContainer holds the one instance the application uses. Backend
modules are imported lazily by the factory so that boto3 is only loaded
when STORAGE_TYPE=s3.

Implementations follow StorageProtocol (validate_file, generate_file_key,
save_file, download_file, delete_file, file_exists, get_file_url,
presign_put, presign_post, presign_get).
"""

from app.infrastructure.external.storage.factory import StorageContainer, StorageFactory
from app.infrastructure.external.storage.protocol import PresignedPost, StorageProtocol

__all__ = [
    "PresignedPost",
    "StorageContainer",
    "StorageFactory",
    "StorageProtocol",
]
