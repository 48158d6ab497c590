"""
Core layer: 영속화와 ID 발급.

역할:
- keyed blob 저장소 (메모리 / JSON 파일), 원자적 쓰기, 락
- 엔티티 ID 생성
"""

from .ids import generate_id, generate_submission_id
from .storage import (
    BlobStore,
    JsonFileBlobStore,
    MemoryBlobStore,
    atomic_write_json,
    create_blob_store,
)

__all__ = [
    # ids
    "generate_id",
    "generate_submission_id",
    # storage
    "BlobStore",
    "MemoryBlobStore",
    "JsonFileBlobStore",
    "atomic_write_json",
    "create_blob_store",
]
