"""
Validation Service: 필드 정의 기반 제출 값 검증.

규칙:
- label 필드는 항상 건너뜀
- 빈 값: 키 없음, None, 공백뿐인 문자열
- required + 빈 값 → "<label> is required" 1건, 이후 검사 생략
- 선택 필드 + 빈 값 → 에러 없음
- 종류별 검사 (number/text/enum/boolean)
- 예외를 던지지 않음: 잘못된 값은 ValidationError 항목으로만 표현
"""

from collections.abc import Callable, Iterable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from src.domain.constants import (
    MSG_INVALID_NUMBER,
    MSG_MAX,
    MSG_MIN,
    MSG_NOT_BOOLEAN,
    MSG_NOT_OPTION,
    MSG_NOT_TEXT,
    MSG_REQUIRED,
)
from src.domain.schemas import (
    BooleanField,
    EnumField,
    Field,
    FieldType,
    NumberField,
    TextField,
    ValidationError,
)


def is_empty_value(value: Any) -> bool:
    """없음/None/공백 문자열이면 True. False, 0은 값으로 취급."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def to_finite_decimal(value: Any) -> Decimal | None:
    """
    숫자 변환.

    - int/float/Decimal/숫자 문자열 허용
    - bool 거절 (True/False는 숫자가 아님)
    - NaN/Inf 거절
    - 밑줄 자릿수 구분 ("1_000") 거절

    Returns:
        Decimal 또는 None (변환 불가)
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and "_" in value:
        return None

    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return None

    if not number.is_finite():
        return None
    return number


# =============================================================================
# Type-specific checks
# =============================================================================

def _check_number(field: NumberField, value: Any) -> list[str]:
    number = to_finite_decimal(value)
    if number is None:
        return [MSG_INVALID_NUMBER.format(label=field.label)]

    messages = []
    lower = None if field.min is None else to_finite_decimal(field.min)
    upper = None if field.max is None else to_finite_decimal(field.max)

    if lower is not None and number < lower:
        messages.append(MSG_MIN.format(label=field.label, min=field.min))
    if upper is not None and number > upper:
        messages.append(MSG_MAX.format(label=field.label, max=field.max))
    return messages


def _check_text(field: TextField, value: Any) -> list[str]:
    if not isinstance(value, str):
        return [MSG_NOT_TEXT.format(label=field.label)]
    return []


def _check_enum(field: EnumField, value: Any) -> list[str]:
    if value not in field.option_values():
        return [MSG_NOT_OPTION.format(label=field.label)]
    return []


def _check_boolean(field: BooleanField, value: Any) -> list[str]:
    if not isinstance(value, bool):
        return [MSG_NOT_BOOLEAN.format(label=field.label)]
    return []


_TYPE_CHECKS: dict[FieldType, Callable[[Any, Any], list[str]]] = {
    FieldType.NUMBER: _check_number,
    FieldType.TEXT: _check_text,
    FieldType.ENUM: _check_enum,
    FieldType.BOOLEAN: _check_boolean,
}


# =============================================================================
# Public API
# =============================================================================

def validate_form(fields: Iterable[Field], values: Mapping[str, Any]) -> list[ValidationError]:
    """
    폼 전체 검증.

    Args:
        fields: 검증할 필드 목록 (입력 순서대로 검사)
        values: {field_id: 제출 값}

    Returns:
        ValidationError 목록 (빈 목록이면 제출 가능)
    """
    errors: list[ValidationError] = []

    for field in fields:
        if field.type is FieldType.LABEL:
            continue

        value = values.get(field.id)

        if is_empty_value(value):
            if field.required:
                errors.append(
                    ValidationError(
                        field_id=field.id,
                        message=MSG_REQUIRED.format(label=field.label),
                    )
                )
            continue

        for message in _TYPE_CHECKS[field.type](field, value):
            errors.append(ValidationError(field_id=field.id, message=message))

    return errors


def validate_field(field: Field, value: Any) -> str | None:
    """
    단일 필드 검증 (입력 중 실시간 검증용).

    Returns:
        첫 번째 에러 메시지 또는 None
    """
    for error in validate_form([field], {field.id: value}):
        if error.field_id == field.id:
            return error.message
    return None
