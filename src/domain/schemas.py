"""
Data schemas for the form builder.

규칙:
- Field는 type 태그 기반 discriminated union (종류별 dataclass)
- type 태그는 클래스 상수 → 다른 종류의 속성을 가질 수 없음
- 직렬화 키는 저장 포맷과 동일 (camelCase: createdAt, templateId ...)
- timestamp: ISO 8601 문자열로 저장, 왕복 시 동일 값 보장
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar

from src.domain.errors import ErrorCodes, FormBuilderError

# =============================================================================
# Enums
# =============================================================================

class FieldType(str, Enum):
    """필드 종류 (union 태그)."""
    LABEL = "label"
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"


class LabelSize(str, Enum):
    """라벨 헤딩 크기."""
    H1 = "h1"  # largest
    H2 = "h2"
    H3 = "h3"  # smallest


class BooleanVariant(str, Enum):
    """Boolean 필드 표시 방식 (의미는 동일)."""
    CHECKBOX = "checkbox"
    TOGGLE = "toggle"


# =============================================================================
# Timestamp helpers
# =============================================================================

def format_timestamp(value: datetime) -> str:
    """datetime → ISO 8601 문자열."""
    return value.isoformat()


def parse_timestamp(value: Any) -> datetime:
    """
    저장된 timestamp 파싱.

    허용 형식:
    - ISO 8601 문자열 ("2024-01-15T09:30:00+00:00", "...Z")
    - epoch 초 (int/float)

    Raises:
        FormBuilderError: INVALID_RECORD
    """
    if isinstance(value, datetime):
        return value

    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value, UTC)
        parsed = datetime.fromisoformat(str(value))
    except (ValueError, TypeError, OverflowError, OSError) as e:
        raise FormBuilderError(
            ErrorCodes.INVALID_RECORD,
            f"Invalid timestamp: {value!r}",
            value=value,
        ) from e

    # naive 값은 UTC로 간주
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _require(data: Mapping[str, Any], key: str, record: str) -> Any:
    """필수 키 조회 (없으면 INVALID_RECORD)."""
    try:
        return data[key]
    except (KeyError, TypeError):
        raise FormBuilderError(
            ErrorCodes.INVALID_RECORD,
            f"{record} record is missing '{key}'",
            record=record,
            key=key,
        ) from None


def _require_mapping(data: Any, record: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise FormBuilderError(
            ErrorCodes.INVALID_RECORD,
            f"{record} record must be an object, got {type(data).__name__}",
            record=record,
        )
    return data


def _require_list(data: Mapping[str, Any], key: str, record: str) -> list[Any]:
    """리스트 값 조회 (없으면 빈 리스트, 리스트가 아니면 INVALID_RECORD)."""
    value = data.get(key, [])
    if not isinstance(value, list):
        raise FormBuilderError(
            ErrorCodes.INVALID_RECORD,
            f"{record} '{key}' must be a list, got {type(value).__name__}",
            record=record,
            key=key,
        )
    return value


def _require_str(data: Mapping[str, Any], key: str, record: str) -> str:
    value = _require(data, key, record)
    if not isinstance(value, str):
        raise FormBuilderError(
            ErrorCodes.INVALID_RECORD,
            f"{record} '{key}' must be a string",
            record=record,
            key=key,
            value=value,
        )
    return value


def _matches_type(value: Any, expected: tuple[type, ...]) -> bool:
    """isinstance + bool은 int/float로 인정하지 않음."""
    if isinstance(value, bool) and bool not in expected:
        return False
    return isinstance(value, expected)


def _invalid_attribute(field_type: "FieldType", attr: str, value: Any) -> FormBuilderError:
    return FormBuilderError(
        ErrorCodes.INVALID_FIELD_ATTRIBUTE,
        f"Invalid {attr} for {field_type.value} field: {value!r}",
        type=field_type.value,
        attribute=attr,
        value=value,
    )


def _coerce_enum(enum_cls: type[Enum], value: Any, field_type: "FieldType", attr: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        raise _invalid_attribute(field_type, attr, value) from None


# =============================================================================
# Field Option
# =============================================================================

@dataclass
class FieldOption:
    """Enum 필드 선택지. value가 실제 제출 값."""
    id: str
    label: str
    value: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "label": self.label, "value": self.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldOption":
        data = _require_mapping(data, "option")
        return cls(
            id=_require_str(data, "id", "option"),
            label=_require_str(data, "label", "option"),
            value=_require_str(data, "value", "option"),
        )


# =============================================================================
# Fields (discriminated union)
# =============================================================================

@dataclass(kw_only=True)
class BaseField:
    """
    모든 필드 공통 속성.

    order: section 내 0부터 시작하는 표시 순서 (리스트 위치가 아니라 이 값이 기준)
    required: label 필드에서는 의미 없음 (검증에서 무시)
    """
    id: str
    label: str
    order: int = 0
    required: bool = False

    type: ClassVar[FieldType]

    # 직렬화 시 None이면 생략하는 선택 속성
    _OPTIONAL_ATTRS: ClassVar[tuple[str, ...]] = ()

    # 속성별 허용 타입 (Enum 속성은 _coerce에서 변환)
    _ATTR_TYPES: ClassVar[dict[str, tuple[type, ...]]] = {
        "id": (str,),
        "label": (str,),
        "order": (int,),
        "required": (bool,),
    }

    @property
    def submittable(self) -> bool:
        """값을 제출받는 필드인지 (label 제외)."""
        return self.type is not FieldType.LABEL

    @classmethod
    def attribute_names(cls) -> frozenset[str]:
        """이 종류가 가질 수 있는 속성 이름 (type 제외)."""
        return frozenset(f.name for f in fields(cls))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "type": self.type.value}
        for f in fields(self):
            if f.name == "id":
                continue
            value = getattr(self, f.name)
            if value is None and f.name in self._OPTIONAL_ATTRS:
                continue
            data[f.name] = self._dump_attr(f.name, value)
        return data

    def _dump_attr(self, name: str, value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        return value

    @classmethod
    def _check_types(cls, attrs: Mapping[str, Any]) -> None:
        for name, value in attrs.items():
            expected = cls._ATTR_TYPES.get(name)
            if expected is None:
                continue
            if value is None and name in cls._OPTIONAL_ATTRS:
                continue
            if not _matches_type(value, expected):
                raise _invalid_attribute(cls.type, name, value)

    @classmethod
    def _coerce(cls, attrs: dict[str, Any]) -> dict[str, Any]:
        """종류별 속성 변환 (문자열 → Enum 등). 서브클래스에서 확장."""
        return attrs

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Field":
        """
        dict → 필드 인스턴스.

        Raises:
            FormBuilderError: INVALID_FIELD_ATTRIBUTE (다른 종류의 속성 포함, 값 타입 불일치),
                              INVALID_RECORD (id/label 누락)
        """
        stray = set(data) - cls.attribute_names() - {"type"}
        if stray:
            raise FormBuilderError(
                ErrorCodes.INVALID_FIELD_ATTRIBUTE,
                f"Attributes not allowed on {cls.type.value} field: {sorted(stray)}",
                type=cls.type.value,
                attributes=sorted(stray),
            )

        attrs = {k: v for k, v in data.items() if k != "type"}
        for key in ("id", "label"):
            _require(attrs, key, f"{cls.type.value} field")
        cls._check_types(attrs)

        return cls(**cls._coerce(attrs))  # type: ignore[return-value]

    def with_updates(self, updates: Mapping[str, Any]) -> "Field":
        """
        속성 병합 후 새 인스턴스 반환.

        id/type은 변경 불가. order는 명시적으로 넘긴 경우에만 바뀜.

        Raises:
            FormBuilderError: INVALID_FIELD_ATTRIBUTE
        """
        frozen = {"id", "type"} & set(updates)
        if frozen:
            raise FormBuilderError(
                ErrorCodes.INVALID_FIELD_ATTRIBUTE,
                f"Cannot change {sorted(frozen)} of a field",
                field_id=self.id,
                attributes=sorted(frozen),
            )

        merged = self.to_dict()
        merged.update(updates)
        return type(self).from_dict(merged)


@dataclass(kw_only=True)
class LabelField(BaseField):
    """헤딩 텍스트. 제출/검증 대상 아님."""
    type: ClassVar[FieldType] = FieldType.LABEL
    size: LabelSize = LabelSize.H2

    @classmethod
    def _coerce(cls, attrs: dict[str, Any]) -> dict[str, Any]:
        if "size" in attrs:
            attrs["size"] = _coerce_enum(LabelSize, attrs["size"], cls.type, "size")
        return attrs


@dataclass(kw_only=True)
class TextField(BaseField):
    type: ClassVar[FieldType] = FieldType.TEXT
    _OPTIONAL_ATTRS: ClassVar[tuple[str, ...]] = ("placeholder",)
    _ATTR_TYPES: ClassVar[dict[str, tuple[type, ...]]] = {
        **BaseField._ATTR_TYPES,
        "placeholder": (str,),
    }
    placeholder: str | None = None


@dataclass(kw_only=True)
class NumberField(BaseField):
    """min/max: 포함 경계, None이면 해당 방향 무제한."""
    type: ClassVar[FieldType] = FieldType.NUMBER
    _OPTIONAL_ATTRS: ClassVar[tuple[str, ...]] = ("placeholder", "min", "max")
    _ATTR_TYPES: ClassVar[dict[str, tuple[type, ...]]] = {
        **BaseField._ATTR_TYPES,
        "placeholder": (str,),
        "min": (int, float),
        "max": (int, float),
    }
    placeholder: str | None = None
    min: int | float | None = None
    max: int | float | None = None

    @classmethod
    def _coerce(cls, attrs: dict[str, Any]) -> dict[str, Any]:
        for bound in ("min", "max"):
            value = attrs.get(bound)
            if value is not None and not math.isfinite(value):
                raise _invalid_attribute(cls.type, bound, value)
        return attrs


@dataclass(kw_only=True)
class BooleanField(BaseField):
    type: ClassVar[FieldType] = FieldType.BOOLEAN
    variant: BooleanVariant = BooleanVariant.CHECKBOX

    @classmethod
    def _coerce(cls, attrs: dict[str, Any]) -> dict[str, Any]:
        if "variant" in attrs:
            attrs["variant"] = _coerce_enum(BooleanVariant, attrs["variant"], cls.type, "variant")
        return attrs


@dataclass(kw_only=True)
class EnumField(BaseField):
    """
    선택지 필드.

    Note: option value 중복은 검사하지 않음 (알려진 제약, 동작 유지).
    """
    type: ClassVar[FieldType] = FieldType.ENUM
    options: list[FieldOption] = field(default_factory=list)

    def option_values(self) -> list[str]:
        return [opt.value for opt in self.options]

    def _dump_attr(self, name: str, value: Any) -> Any:
        if name == "options":
            return [opt.to_dict() for opt in value]
        return super()._dump_attr(name, value)

    @classmethod
    def _coerce(cls, attrs: dict[str, Any]) -> dict[str, Any]:
        if "options" in attrs:
            options = attrs["options"] or []
            if not isinstance(options, list):
                raise _invalid_attribute(cls.type, "options", options)
            attrs["options"] = [
                opt if isinstance(opt, FieldOption) else FieldOption.from_dict(opt)
                for opt in options
            ]
        return attrs


Field = LabelField | TextField | NumberField | BooleanField | EnumField

FIELD_CLASSES: dict[FieldType, type[BaseField]] = {
    FieldType.LABEL: LabelField,
    FieldType.TEXT: TextField,
    FieldType.NUMBER: NumberField,
    FieldType.BOOLEAN: BooleanField,
    FieldType.ENUM: EnumField,
}


def field_from_dict(data: Mapping[str, Any]) -> Field:
    """
    type 태그로 필드 클래스 선택 후 생성.

    Raises:
        FormBuilderError: INVALID_FIELD_TYPE, INVALID_FIELD_ATTRIBUTE, INVALID_RECORD
    """
    data = _require_mapping(data, "field")
    raw_type = data.get("type")
    try:
        field_type = FieldType(raw_type)
    except ValueError:
        raise FormBuilderError(
            ErrorCodes.INVALID_FIELD_TYPE,
            f"Unknown field type: {raw_type!r}",
            type=raw_type,
        ) from None

    return FIELD_CLASSES[field_type].from_dict(data)


# =============================================================================
# Section / Template
# =============================================================================

@dataclass
class Section:
    """
    템플릿 내 필드 그룹.

    fields 리스트 위치가 아니라 각 필드의 order 값이 표시 순서 기준.
    """
    id: str
    title: str
    order: int
    fields: list[Field] = field(default_factory=list)

    def sorted_fields(self) -> list[Field]:
        return sorted(self.fields, key=lambda f: f.order)

    def find_field(self, field_id: str) -> Field | None:
        for f in self.fields:
            if f.id == field_id:
                return f
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "order": self.order,
            "fields": [f.to_dict() for f in self.fields],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Section":
        data = _require_mapping(data, "section")
        order = _require(data, "order", "section")
        if not _matches_type(order, (int,)):
            raise FormBuilderError(
                ErrorCodes.INVALID_RECORD,
                "section 'order' must be an integer",
                record="section",
                key="order",
                value=order,
            )
        return cls(
            id=_require_str(data, "id", "section"),
            title=_require_str(data, "title", "section"),
            order=order,
            fields=[field_from_dict(f) for f in _require_list(data, "fields", "section")],
        )


@dataclass
class Template:
    """
    재사용 가능한 폼 정의.

    updated_at: 구조 변경(템플릿/섹션/필드) 시마다 갱신, 단조 증가
    """
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    description: str | None = None
    sections: list[Section] = field(default_factory=list)

    def sorted_sections(self) -> list[Section]:
        return sorted(self.sections, key=lambda s: s.order)

    def find_section(self, section_id: str) -> Section | None:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def all_fields(self) -> list[Field]:
        """표시 순서대로 전체 필드 (섹션 order → 필드 order)."""
        return [f for section in self.sorted_sections() for f in section.sorted_fields()]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "sections": [s.to_dict() for s in self.sections],
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }
        if self.description is not None:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Template":
        data = _require_mapping(data, "template")
        description = data.get("description")
        if description is not None and not isinstance(description, str):
            raise FormBuilderError(
                ErrorCodes.INVALID_RECORD,
                "template 'description' must be a string",
                record="template",
                key="description",
                value=description,
            )
        return cls(
            id=_require_str(data, "id", "template"),
            name=_require_str(data, "name", "template"),
            description=description,
            sections=[Section.from_dict(s) for s in _require_list(data, "sections", "template")],
            created_at=parse_timestamp(_require(data, "createdAt", "template")),
            updated_at=parse_timestamp(_require(data, "updatedAt", "template")),
        )


# =============================================================================
# Submission / Validation
# =============================================================================

@dataclass
class FormSubmission:
    """
    제출 완료된 폼 인스턴스 (append-only).

    data: {field_id: value}, 검증 통과 + 비어있지 않은 값만
    """
    id: str
    template_id: str
    data: dict[str, Any]
    submitted_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "templateId": self.template_id,
            "data": dict(self.data),
            "submittedAt": format_timestamp(self.submitted_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FormSubmission":
        data = _require_mapping(data, "submission")
        return cls(
            id=_require_str(data, "id", "submission"),
            template_id=_require_str(data, "templateId", "submission"),
            data=dict(_require_mapping(data.get("data") or {}, "submission data")),
            submitted_at=parse_timestamp(_require(data, "submittedAt", "submission")),
        )


@dataclass
class ValidationError:
    """
    필드 검증 실패 항목.

    예외가 아니라 데이터: validate_form()이 목록으로 반환.
    """
    field_id: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"fieldId": self.field_id, "message": self.message}
