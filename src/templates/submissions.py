"""
제출 저장소: FormSubmission 생성/조회/삭제.

규칙:
- append-only: 수정 연산 없음, 생성과 id 기반 삭제만
- 템플릿 삭제 시에도 제출 기록은 유지 (고아 참조 허용)
- 검증은 호출자 책임 (app/services/submit.py)
"""

import copy
import logging
from datetime import UTC, datetime
from typing import Any

from src.core.ids import generate_submission_id
from src.core.storage import BlobStore
from src.domain.constants import SUBMISSIONS_STORAGE_KEY
from src.domain.errors import ErrorCodes, FormBuilderError, StorageError
from src.domain.schemas import FormSubmission
from src.templates.manager import MutationResult

logger = logging.getLogger(__name__)


class SubmissionStore:
    """제출 기록 컬렉션 소유자 (load 1회, 변경마다 flush)."""

    def __init__(self, blob_store: BlobStore):
        self.blob_store = blob_store
        self._submissions: list[FormSubmission] = []

    def load(self) -> list[FormSubmission]:
        """
        저장소에서 제출 목록 로드.

        Raises:
            StorageError: STORAGE_READ_FAILED, STORAGE_CORRUPT
        """
        raw = self.blob_store.load(SUBMISSIONS_STORAGE_KEY)
        if raw is None:
            submissions = []
        elif not isinstance(raw, list):
            raise StorageError(
                ErrorCodes.STORAGE_CORRUPT,
                f"'{SUBMISSIONS_STORAGE_KEY}' must hold a list",
                key=SUBMISSIONS_STORAGE_KEY,
                found=type(raw).__name__,
            )
        else:
            try:
                submissions = [FormSubmission.from_dict(item) for item in raw]
            except FormBuilderError as e:
                raise StorageError(
                    ErrorCodes.STORAGE_CORRUPT,
                    f"'{SUBMISSIONS_STORAGE_KEY}' holds an invalid record: {e.message}",
                    key=SUBMISSIONS_STORAGE_KEY,
                    cause=e.to_dict(),
                ) from e

        self._submissions = submissions
        logger.info(f"Loaded {len(submissions)} submissions")
        return self.submissions

    @property
    def submissions(self) -> list[FormSubmission]:
        return copy.deepcopy(self._submissions)

    def submit_form(self, template_id: str, data: dict[str, Any]) -> FormSubmission:
        """
        제출 기록 추가.

        Args:
            template_id: 대상 템플릿 ID
            data: {field_id: value} (검증/필터링 완료된 값)

        Returns:
            생성된 FormSubmission

        Raises:
            FormBuilderError: EMPTY_SUBMISSION
            StorageError: 저장 실패 (컬렉션 변경 없음)
        """
        if not data:
            raise FormBuilderError(
                ErrorCodes.EMPTY_SUBMISSION,
                "No data to submit",
                template_id=template_id,
            )

        submission = FormSubmission(
            id=generate_submission_id(),
            template_id=template_id,
            data=dict(data),
            submitted_at=datetime.now(UTC),
        )
        self._commit([*self._submissions, submission])

        logger.info(
            f"Stored submission '{submission.id}' for template '{template_id}' "
            f"({len(data)} values)"
        )
        return copy.deepcopy(submission)

    def get_submissions_by_template(self, template_id: str) -> list[FormSubmission]:
        return [copy.deepcopy(s) for s in self._submissions if s.template_id == template_id]

    def get_all_submissions(self) -> list[FormSubmission]:
        return self.submissions

    def delete_submission(self, submission_id: str) -> MutationResult:
        """id 기반 삭제. 없는 id → UNCHANGED."""
        remaining = [s for s in self._submissions if s.id != submission_id]
        if len(remaining) == len(self._submissions):
            logger.debug(f"delete_submission: '{submission_id}' not found")
            return MutationResult.UNCHANGED

        self._commit(remaining)
        logger.info(f"Deleted submission '{submission_id}'")
        return MutationResult.MUTATED

    def _commit(self, submissions: list[FormSubmission]) -> None:
        self.blob_store.save(SUBMISSIONS_STORAGE_KEY, [s.to_dict() for s in submissions])
        self._submissions = submissions
