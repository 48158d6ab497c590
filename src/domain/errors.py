"""
Error definitions for the form builder.

규칙:
- 구조 변경 실패(용량 초과 등)는 예외로 즉시 알림
- 검증 실패는 예외가 아니라 데이터 (ValidationError 목록)
- 존재하지 않는 id에 대한 변경은 에러가 아님 (MutationResult.UNCHANGED)
"""

from typing import Any


class FormBuilderError(Exception):
    """
    폼 빌더 공통 에러.

    호출자가 반드시 처리해야 하는 경우에만 사용:
    - 템플릿 개수 제한 초과
    - 필드 타입/속성 불일치
    - 저장소 읽기/쓰기 실패

    Usage:
        raise FormBuilderError("INVALID_FIELD_TYPE", "Unknown field type", type="date")
    """

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }


class CapacityExceededError(FormBuilderError):
    """템플릿 개수 제한 초과. 자동 재시도 금지, 호출자가 사용자에게 노출."""

    def __init__(self, limit: int, current: int) -> None:
        super().__init__(
            ErrorCodes.TEMPLATE_CAPACITY_EXCEEDED,
            f"Maximum of {limit} templates allowed",
            limit=limit,
            current=current,
        )


class StorageError(FormBuilderError):
    """
    Blob 저장소 읽기/쓰기 실패.

    실패 시 메모리 상태는 변경되지 않아야 함 (store 쪽에서 보장).
    """


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Template Store ===
    TEMPLATE_CAPACITY_EXCEEDED = "TEMPLATE_CAPACITY_EXCEEDED"
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"

    # === Data Model ===
    INVALID_FIELD_TYPE = "INVALID_FIELD_TYPE"
    INVALID_FIELD_ATTRIBUTE = "INVALID_FIELD_ATTRIBUTE"
    INVALID_TEMPLATE_ATTRIBUTE = "INVALID_TEMPLATE_ATTRIBUTE"
    INVALID_SECTION_ATTRIBUTE = "INVALID_SECTION_ATTRIBUTE"
    INVALID_RECORD = "INVALID_RECORD"

    # === Submissions ===
    EMPTY_SUBMISSION = "EMPTY_SUBMISSION"

    # === Storage ===
    STORAGE_READ_FAILED = "STORAGE_READ_FAILED"
    STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"
    STORAGE_CORRUPT = "STORAGE_CORRUPT"
    STORAGE_LOCK_TIMEOUT = "STORAGE_LOCK_TIMEOUT"
