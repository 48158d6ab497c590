"""
Submit Service: 템플릿 기반 폼 제출 흐름.

흐름:
1. 템플릿의 제출 가능 필드(label 제외)를 표시 순서대로 수집
2. validate_form() 실행 → 에러 있으면 저장 안 함
3. 템플릿에 속한 필드 + 비어있지 않은 값만 남김
4. SubmissionStore에 저장
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from src.app.services.validate import is_empty_value, validate_form
from src.domain.schemas import FormSubmission, Template, ValidationError
from src.templates.submissions import SubmissionStore

logger = logging.getLogger(__name__)


@dataclass
class SubmitOutcome:
    """제출 결과."""
    submission: FormSubmission | None = None
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.submission is not None


def filter_submission_values(template: Template, values: Mapping[str, Any]) -> dict[str, Any]:
    """템플릿의 제출 가능 필드에 해당하고 비어있지 않은 값만 반환."""
    field_ids = {f.id for f in template.all_fields() if f.submittable}
    return {
        key: value
        for key, value in values.items()
        if key in field_ids and not is_empty_value(value)
    }


def submit_template_form(
    template: Template,
    values: Mapping[str, Any],
    submissions: SubmissionStore,
) -> SubmitOutcome:
    """
    템플릿 폼 제출.

    Args:
        template: 대상 템플릿
        values: {field_id: 입력 값}
        submissions: 제출 저장소

    Returns:
        SubmitOutcome (검증 실패 시 submission=None, errors 채워짐)

    Raises:
        FormBuilderError: EMPTY_SUBMISSION (검증 통과했지만 남은 값 없음)
        StorageError: 저장 실패
    """
    submittable = [f for f in template.all_fields() if f.submittable]
    errors = validate_form(submittable, values)
    if errors:
        logger.info(
            f"Submission for template '{template.id}' rejected: {len(errors)} validation errors"
        )
        return SubmitOutcome(errors=errors)

    data = filter_submission_values(template, values)
    submission = submissions.submit_form(template.id, data)
    return SubmitOutcome(submission=submission)
