"""
Templates layer: 템플릿/제출 컬렉션 관리 모듈.

역할:
- 템플릿 CRUD + 섹션/필드 변경 + 순서 변경 (manager.py)
- 제출 기록 저장/조회/삭제 (submissions.py)

주의: 폴더 구분
- src/templates/ → 폼 정의 컬렉션 (이 모듈)
- data/ (루트) → blob 저장소 파일 (form-templates.json 등)
"""

from .manager import (
    MutationResult,
    TemplateStore,
    count_fields,
)
from .submissions import SubmissionStore

__all__ = [
    # manager
    "TemplateStore",
    "MutationResult",
    "count_fields",
    # submissions
    "SubmissionStore",
]
