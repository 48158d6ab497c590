"""
템플릿 저장소: Template / Section / Field CRUD + 순서 변경.

핵심 규칙:
- 템플릿은 최대 5개 (초과 생성 시 CapacityExceededError)
- 변경은 템플릿 단위 전체 교체: 사본 수정 → flush → 메모리 반영
  (flush 실패 시 메모리 상태 그대로, StorageError 전파)
- 없는 id에 대한 변경은 에러가 아님 → MutationResult.UNCHANGED
- updated_at: 구조 변경마다 갱신, 단조 증가
- 필드/섹션 삭제 시 형제 order 재계산 안 함 (reorder만 0..n-1로 재배정)
"""

import copy
import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from src.core.ids import generate_id
from src.core.storage import BlobStore
from src.domain.constants import MAX_TEMPLATES, TEMPLATES_STORAGE_KEY
from src.domain.errors import (
    CapacityExceededError,
    ErrorCodes,
    FormBuilderError,
    StorageError,
)
from src.domain.schemas import (
    Field,
    FieldType,
    Section,
    Template,
    field_from_dict,
)

logger = logging.getLogger(__name__)

# update 시 병합 가능한 속성 → 허용 타입
TEMPLATE_UPDATABLE_ATTRS: dict[str, tuple[type, ...]] = {
    "name": (str,),
    "description": (str, type(None)),
}
SECTION_UPDATABLE_ATTRS: dict[str, tuple[type, ...]] = {
    "title": (str,),
    "order": (int,),
}


class MutationResult(str, Enum):
    """변경 연산 결과."""
    MUTATED = "mutated"      # 대상 템플릿이 교체되고 저장됨
    UNCHANGED = "unchanged"  # 대상 없음 (stale id) 또는 범위 밖 인덱스


def _check_updates(
    updates: Mapping[str, Any],
    allowed: Mapping[str, tuple[type, ...]],
    code: str,
    target: str,
) -> None:
    """속성 이름 + 값 타입 검사 (bool은 int로 인정 안 함)."""
    unknown = set(updates) - set(allowed)
    if unknown:
        raise FormBuilderError(
            code,
            f"Cannot update {sorted(unknown)} on {target}",
            attributes=sorted(unknown),
            allowed=sorted(allowed),
        )

    for key, value in updates.items():
        expected = allowed[key]
        if isinstance(value, bool) or not isinstance(value, expected):
            raise FormBuilderError(
                code,
                f"Invalid {key} for {target}: {value!r}",
                attribute=key,
                value=value,
            )


def _with_option_ids(data: Mapping[str, Any]) -> dict[str, Any]:
    """enum 선택지 중 id 없는 항목에 새 id 부여."""
    result = dict(data)
    options = result.get("options")
    if isinstance(options, list):
        result["options"] = [
            opt if not isinstance(opt, Mapping) or opt.get("id") else {**opt, "id": generate_id()}
            for opt in options
        ]
    return result


def _move(items: list, source_index: int, destination_index: int) -> bool:
    """source 위치 항목을 destination으로 이동 (범위 밖이면 False)."""
    size = len(items)
    if not (0 <= source_index < size and 0 <= destination_index < size):
        return False
    moved = items.pop(source_index)
    items.insert(destination_index, moved)
    return True


class TemplateStore:
    """
    템플릿 컬렉션 소유자.

    수명 주기:
    - 시작 시 load() 1회
    - 변경 연산마다 blob 저장소에 전체 목록 flush

    소비자에게는 명시적으로 전달 (모듈 전역 인스턴스 없음).
    """

    def __init__(self, blob_store: BlobStore, max_templates: int = MAX_TEMPLATES):
        """
        Args:
            blob_store: 영속화 대상 저장소
            max_templates: 동시에 존재할 수 있는 템플릿 수
        """
        self.blob_store = blob_store
        self.max_templates = max_templates
        self._templates: list[Template] = []

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def load(self) -> list[Template]:
        """
        저장소에서 템플릿 목록 로드.

        Returns:
            로드된 템플릿 목록 (사본)

        Raises:
            StorageError: STORAGE_READ_FAILED, STORAGE_CORRUPT
        """
        raw = self.blob_store.load(TEMPLATES_STORAGE_KEY)
        if raw is None:
            templates = []
        elif not isinstance(raw, list):
            raise StorageError(
                ErrorCodes.STORAGE_CORRUPT,
                f"'{TEMPLATES_STORAGE_KEY}' must hold a list",
                key=TEMPLATES_STORAGE_KEY,
                found=type(raw).__name__,
            )
        else:
            try:
                templates = [Template.from_dict(item) for item in raw]
            except FormBuilderError as e:
                raise StorageError(
                    ErrorCodes.STORAGE_CORRUPT,
                    f"'{TEMPLATES_STORAGE_KEY}' holds an invalid record: {e.message}",
                    key=TEMPLATES_STORAGE_KEY,
                    cause=e.to_dict(),
                ) from e

        self._templates = templates
        logger.info(f"Loaded {len(templates)} templates")
        return self.templates

    def _commit(self, templates: list[Template]) -> None:
        """저장 성공 후에만 메모리 상태 교체."""
        self.blob_store.save(TEMPLATES_STORAGE_KEY, [t.to_dict() for t in templates])
        self._templates = templates

    # =========================================================================
    # Read
    # =========================================================================

    @property
    def templates(self) -> list[Template]:
        """전체 템플릿 (생성 순서, 사본)."""
        return copy.deepcopy(self._templates)

    def get_template(self, template_id: str) -> Template | None:
        index = self._index_of(template_id)
        if index is None:
            return None
        return copy.deepcopy(self._templates[index])

    def __len__(self) -> int:
        return len(self._templates)

    # =========================================================================
    # Template
    # =========================================================================

    def create_template(self, name: str, description: str | None = None) -> Template:
        """
        새 템플릿 생성.

        Args:
            name: 템플릿 이름
            description: 설명 (선택)

        Returns:
            생성된 Template (섹션 없음, created_at == updated_at)

        Raises:
            CapacityExceededError: 이미 max_templates개 존재
            FormBuilderError: INVALID_TEMPLATE_ATTRIBUTE (name이 문자열이 아님)
            StorageError: 저장 실패 (컬렉션 변경 없음)
        """
        current = len(self._templates)
        if current >= self.max_templates:
            logger.warning(
                f"Template creation refused: {current}/{self.max_templates} templates exist"
            )
            raise CapacityExceededError(limit=self.max_templates, current=current)
        _check_updates(
            {"name": name, "description": description},
            TEMPLATE_UPDATABLE_ATTRS,
            ErrorCodes.INVALID_TEMPLATE_ATTRIBUTE,
            "template",
        )

        now = datetime.now(UTC)
        template = Template(
            id=generate_id(),
            name=name,
            description=description,
            created_at=now,
            updated_at=now,
        )
        self._commit([*self._templates, template])

        logger.info(f"Created template '{template.id}' ({name!r})")
        return copy.deepcopy(template)

    def update_template(self, template_id: str, updates: Mapping[str, Any]) -> MutationResult:
        """
        템플릿 메타데이터 병합 (name, description).

        없는 template_id → UNCHANGED (stale 참조 허용, 에러 아님)

        Raises:
            FormBuilderError: INVALID_TEMPLATE_ATTRIBUTE
        """
        _check_updates(
            updates, TEMPLATE_UPDATABLE_ATTRS, ErrorCodes.INVALID_TEMPLATE_ATTRIBUTE, "template"
        )

        def apply(template: Template) -> bool:
            for key, value in updates.items():
                setattr(template, key, value)
            return True

        return self._mutate_template(template_id, apply)

    def delete_template(self, template_id: str) -> MutationResult:
        """
        템플릿 삭제 (섹션/필드 포함).

        기존 제출 기록은 건드리지 않음. 없는 id → UNCHANGED.
        """
        remaining = [t for t in self._templates if t.id != template_id]
        if len(remaining) == len(self._templates):
            logger.debug(f"delete_template: '{template_id}' not found, nothing to do")
            return MutationResult.UNCHANGED

        self._commit(remaining)
        logger.info(f"Deleted template '{template_id}'")
        return MutationResult.MUTATED

    # =========================================================================
    # Section
    # =========================================================================

    def add_section(self, template_id: str, title: str) -> MutationResult:
        """섹션 추가. order = 현재 섹션 수."""
        _check_updates(
            {"title": title}, SECTION_UPDATABLE_ATTRS, ErrorCodes.INVALID_SECTION_ATTRIBUTE, "section"
        )

        def apply(template: Template) -> bool:
            template.sections.append(
                Section(id=generate_id(), title=title, order=len(template.sections))
            )
            return True

        return self._mutate_template(template_id, apply)

    def update_section(
        self,
        template_id: str,
        section_id: str,
        updates: Mapping[str, Any],
    ) -> MutationResult:
        """
        섹션 속성 병합 (title, order).

        order는 updates에 포함된 경우에만 변경.

        Raises:
            FormBuilderError: INVALID_SECTION_ATTRIBUTE
        """
        _check_updates(
            updates, SECTION_UPDATABLE_ATTRS, ErrorCodes.INVALID_SECTION_ATTRIBUTE, "section"
        )

        def apply(section: Section) -> bool:
            for key, value in updates.items():
                setattr(section, key, value)
            return True

        return self._mutate_section(template_id, section_id, apply)

    def delete_section(self, template_id: str, section_id: str) -> MutationResult:
        """섹션 삭제 (필드 포함). 형제 섹션 order는 그대로 (빈 번호 허용)."""

        def apply(template: Template) -> bool:
            if template.find_section(section_id) is None:
                logger.debug(f"delete_section: '{section_id}' not in template '{template_id}'")
                return False
            template.sections = [s for s in template.sections if s.id != section_id]
            return True

        return self._mutate_template(template_id, apply)

    def reorder_sections(
        self,
        template_id: str,
        source_index: int,
        destination_index: int,
    ) -> MutationResult:
        """
        섹션 순서 변경.

        order 기준 정렬 목록에서 source → destination 이동 후
        전체 order를 0..n-1로 재배정.
        """

        def apply(template: Template) -> bool:
            ordered = template.sorted_sections()
            if not _move(ordered, source_index, destination_index):
                logger.debug(
                    f"reorder_sections: index out of range "
                    f"({source_index} -> {destination_index}, size={len(ordered)})"
                )
                return False
            for position, section in enumerate(ordered):
                section.order = position
            template.sections = ordered
            return True

        return self._mutate_template(template_id, apply)

    # =========================================================================
    # Field
    # =========================================================================

    def add_field(
        self,
        template_id: str,
        section_id: str,
        field_data: Mapping[str, Any],
    ) -> MutationResult:
        """
        필드 추가.

        Args:
            template_id: 템플릿 ID
            section_id: 섹션 ID
            field_data: type + 종류별 속성 (id, order는 무시되고 새로 부여)

        Returns:
            MutationResult

        Raises:
            FormBuilderError: INVALID_FIELD_TYPE, INVALID_FIELD_ATTRIBUTE
        """
        data = _with_option_ids(field_data)
        data["id"] = generate_id()
        data["order"] = 0
        new_field = field_from_dict(data)

        def apply(section: Section) -> bool:
            new_field.order = len(section.fields)
            section.fields.append(new_field)
            return True

        return self._mutate_section(template_id, section_id, apply)

    def update_field(
        self,
        template_id: str,
        section_id: str,
        field_id: str,
        updates: Mapping[str, Any],
    ) -> MutationResult:
        """
        필드 속성 병합. order는 재계산하지 않음.

        Raises:
            FormBuilderError: INVALID_FIELD_ATTRIBUTE (다른 종류의 속성, id/type 변경)
        """
        updates = _with_option_ids(updates)

        def apply(section: Section) -> bool:
            for index, existing in enumerate(section.fields):
                if existing.id == field_id:
                    section.fields[index] = existing.with_updates(updates)
                    return True
            logger.debug(f"update_field: '{field_id}' not in section '{section_id}'")
            return False

        return self._mutate_section(template_id, section_id, apply)

    def delete_field(self, template_id: str, section_id: str, field_id: str) -> MutationResult:
        """필드 삭제. 나머지 필드 order는 그대로 (빈 번호 허용)."""

        def apply(section: Section) -> bool:
            if section.find_field(field_id) is None:
                logger.debug(f"delete_field: '{field_id}' not in section '{section_id}'")
                return False
            section.fields = [f for f in section.fields if f.id != field_id]
            return True

        return self._mutate_section(template_id, section_id, apply)

    def reorder_fields(
        self,
        template_id: str,
        section_id: str,
        source_index: int,
        destination_index: int,
    ) -> MutationResult:
        """
        필드 순서 변경.

        order 기준 정렬 목록에서 source → destination 이동 후
        섹션 내 모든 필드 order를 0..n-1로 재배정 (빈 번호 제거).
        """

        def apply(section: Section) -> bool:
            ordered: list[Field] = section.sorted_fields()
            if not _move(ordered, source_index, destination_index):
                logger.debug(
                    f"reorder_fields: index out of range "
                    f"({source_index} -> {destination_index}, size={len(ordered)})"
                )
                return False
            for position, f in enumerate(ordered):
                f.order = position
            section.fields = ordered
            return True

        return self._mutate_section(template_id, section_id, apply)

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _index_of(self, template_id: str) -> int | None:
        for index, template in enumerate(self._templates):
            if template.id == template_id:
                return index
        return None

    def _mutate_template(
        self,
        template_id: str,
        mutate: Callable[[Template], bool],
    ) -> MutationResult:
        """
        템플릿 사본에 변경 적용 후 교체.

        mutate가 False 반환 → 변경 없음 (updated_at 유지, flush 안 함)
        mutate가 예외 발생 → 사본 폐기, 예외 전파
        """
        index = self._index_of(template_id)
        if index is None:
            logger.debug(f"Template '{template_id}' not found, mutation skipped")
            return MutationResult.UNCHANGED

        draft = copy.deepcopy(self._templates[index])
        if not mutate(draft):
            return MutationResult.UNCHANGED

        draft.updated_at = max(datetime.now(UTC), draft.updated_at)

        templates = list(self._templates)
        templates[index] = draft
        self._commit(templates)
        return MutationResult.MUTATED

    def _mutate_section(
        self,
        template_id: str,
        section_id: str,
        mutate: Callable[[Section], bool],
    ) -> MutationResult:
        def apply(template: Template) -> bool:
            section = template.find_section(section_id)
            if section is None:
                logger.debug(f"Section '{section_id}' not in template '{template_id}'")
                return False
            return mutate(section)

        return self._mutate_template(template_id, apply)


def count_fields(template: Template, field_type: FieldType | None = None) -> int:
    """템플릿 내 필드 수 (field_type 지정 시 해당 종류만)."""
    return sum(
        1
        for f in template.all_fields()
        if field_type is None or f.type is field_type
    )
