"""
ID 생성: template, section, field, option, submission

규칙:
- 모든 엔티티 id는 생성 시 1회 발급, 이후 변경 금지
- 고유성 보장: UUID v4
"""

import uuid


def generate_id() -> str:
    """
    새 엔티티 ID 생성.

    포맷: 32자리 hex (UUID v4)

    Returns:
        id 문자열
    """
    return uuid.uuid4().hex


def generate_submission_id() -> str:
    """
    Submission ID 생성.

    포맷: SUB-{uuid[:12]}

    Returns:
        submission_id 문자열
    """
    return f"SUB-{uuid.uuid4().hex[:12]}"
