"""
Keyed blob storage: 템플릿/제출 목록 영속화.

규칙:
- 키 하나 = JSON 직렬화 가능한 값 하나 (레코드 리스트)
- 읽기/쓰기 실패는 StorageError로 호출자에게 전달
- 쓰기 실패 시 기존 blob 보존 (temp → rename)

파일 저장소 (JsonFileBlobStore):
- <data_dir>/<key>.json
- 키별 FileLock으로 쓰기 직렬화
- 디렉터리 sync 실패는 경고만 (쓰기 자체는 성공)
"""

import contextlib
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Protocol

from filelock import FileLock, Timeout

from src.domain.errors import ErrorCodes, StorageError

logger = logging.getLogger(__name__)

# 키 → 파일명 허용 패턴
STORAGE_KEY_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


class BlobStore(Protocol):
    """키-값 blob 저장소 인터페이스."""

    def load(self, key: str) -> Any | None:
        """저장된 값 반환 (없으면 None)."""
        ...

    def save(self, key: str, value: Any) -> None:
        """값 저장 (전체 교체)."""
        ...


def validate_storage_key(key: str) -> None:
    """
    저장소 키 검증.

    Raises:
        StorageError: STORAGE_WRITE_FAILED (파일명으로 쓸 수 없는 키)
    """
    if not STORAGE_KEY_PATTERN.match(key):
        raise StorageError(
            ErrorCodes.STORAGE_WRITE_FAILED,
            f"Invalid storage key: {key!r}",
            key=key,
            pattern=STORAGE_KEY_PATTERN.pattern,
        )


# =============================================================================
# Memory Store
# =============================================================================

class MemoryBlobStore:
    """
    메모리 저장소 (테스트/임시 세션용).

    값은 JSON 문자열로 보관 → 파일 저장소와 동일한 직렬화 경로를 거침.
    """

    def __init__(self) -> None:
        self._blobs: dict[str, str] = {}

    def load(self, key: str) -> Any | None:
        raw = self._blobs.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def save(self, key: str, value: Any) -> None:
        validate_storage_key(key)
        try:
            self._blobs[key] = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(
                ErrorCodes.STORAGE_WRITE_FAILED,
                f"Value for '{key}' is not JSON serializable",
                key=key,
                error=str(e),
            ) from e

    def keys(self) -> list[str]:
        return sorted(self._blobs)


# =============================================================================
# File Store
# =============================================================================

def _sync_parent(dir_path: Path) -> None:
    """blob 교체 후 디렉터리 엔트리 flush (POSIX 한정)."""
    if not hasattr(os, "O_DIRECTORY"):
        return
    try:
        dir_fd = os.open(dir_path, os.O_RDONLY | os.O_DIRECTORY)
    except OSError as e:
        logger.warning(f"Cannot open blob dir {dir_path} for sync: {e}")
        return
    try:
        os.fsync(dir_fd)
    except OSError as e:
        logger.warning(f"Blob dir sync skipped for {dir_path}: {e}")
    finally:
        os.close(dir_fd)


def atomic_write_json(path: Path, data: Any) -> None:
    """
    blob 파일 전체 교체.

    같은 디렉터리의 임시 파일에 쓴 뒤 os.replace로 바꿔치기.
    어느 단계에서 실패해도 기존 파일은 그대로 남고 임시 파일은 지워짐.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(data, indent=2, ensure_ascii=False)

    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f"{path.stem}-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(temp_name)
        raise

    _sync_parent(path.parent)


class JsonFileBlobStore:
    """
    JSON 파일 저장소.

    구조:
    <data_dir>/
    ├── form-templates.json
    ├── form-submissions.json
    └── .locks/
    """

    # 락 timeout (초)
    LOCK_TIMEOUT = 10.0

    def __init__(self, data_dir: Path, lock_timeout: float | None = None):
        """
        Args:
            data_dir: blob 파일을 저장할 디렉터리
            lock_timeout: 키별 락 대기 시간 (None이면 LOCK_TIMEOUT)
        """
        self.data_dir = data_dir
        self.lock_timeout = self.LOCK_TIMEOUT if lock_timeout is None else lock_timeout
        self._locks_dir = data_dir / ".locks"

    def path_for(self, key: str) -> Path:
        validate_storage_key(key)
        return self.data_dir / f"{key}.json"

    def load(self, key: str) -> Any | None:
        """
        blob 로드.

        Raises:
            StorageError: STORAGE_READ_FAILED, STORAGE_CORRUPT
        """
        path = self.path_for(key)
        if not path.exists():
            return None

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(
                ErrorCodes.STORAGE_READ_FAILED,
                f"Failed to read '{key}'",
                key=key,
                path=str(path),
                error=str(e),
            ) from e

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(
                ErrorCodes.STORAGE_CORRUPT,
                f"Stored blob '{key}' is not valid JSON",
                key=key,
                path=str(path),
                error=str(e),
            ) from e

    def save(self, key: str, value: Any) -> None:
        """
        blob 저장 (키별 락 + 원자적 쓰기).

        Raises:
            StorageError: STORAGE_LOCK_TIMEOUT, STORAGE_WRITE_FAILED
        """
        path = self.path_for(key)
        self._locks_dir.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self._locks_dir / f"{key}.lock", timeout=self.lock_timeout)

        try:
            with lock:
                atomic_write_json(path, value)
        except Timeout as e:
            raise StorageError(
                ErrorCodes.STORAGE_LOCK_TIMEOUT,
                f"Failed to acquire lock for '{key}'",
                key=key,
                timeout=self.lock_timeout,
            ) from e
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(
                ErrorCodes.STORAGE_WRITE_FAILED,
                f"Failed to write '{key}'",
                key=key,
                path=str(path),
                error=str(e),
            ) from e

        logger.debug(f"Saved blob '{key}' to {path}")


def create_blob_store(config: dict, base_dir: Path) -> BlobStore:
    """
    설정 기반 저장소 생성.

    config 키:
    - storage.backend: "file" (기본) 또는 "memory"
    - storage.data_dir: 상대 경로면 base_dir 기준
    - storage.lock_timeout

    Args:
        config: 설정 dict
        base_dir: 상대 경로 기준 디렉터리

    Returns:
        BlobStore 구현체
    """
    storage_config = config.get("storage", {}) or {}
    backend = storage_config.get("backend", "file")

    if backend == "memory":
        logger.info("Using in-memory blob store")
        return MemoryBlobStore()

    if backend != "file":
        raise StorageError(
            ErrorCodes.STORAGE_READ_FAILED,
            f"Unknown storage backend: {backend!r}",
            backend=backend,
        )

    data_dir = Path(storage_config.get("data_dir", "data"))
    if not data_dir.is_absolute():
        data_dir = base_dir / data_dir

    logger.info(f"Using JSON file blob store at {data_dir}")
    return JsonFileBlobStore(data_dir, lock_timeout=storage_config.get("lock_timeout"))
