"""
App Services: 검증, 제출 흐름.

- validate: 필드 정의 기반 값 검증 (순수 함수)
- submit: 검증 → 필터링 → 제출 저장
"""

from .submit import SubmitOutcome, filter_submission_values, submit_template_form
from .validate import is_empty_value, validate_field, validate_form

__all__ = [
    "validate_form",
    "validate_field",
    "is_empty_value",
    "SubmitOutcome",
    "filter_submission_values",
    "submit_template_form",
]
