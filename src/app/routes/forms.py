"""
Forms Routes: 폼 작성 검증 + 제출 API.

- POST   /api/forms/{template_id}/validate      → 실시간 검증 (저장 안 함)
- POST   /api/forms/{template_id}/submit        → 검증 후 제출 저장
- GET    /api/forms/{template_id}/submissions   → 템플릿별 제출 목록
- GET    /api/forms/submissions                 → 전체 제출 목록
- DELETE /api/forms/submissions/{submission_id} → 제출 삭제
"""

from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request

from src.app.routes.templates import error_response, get_template_store
from src.app.services.submit import submit_template_form
from src.app.services.validate import validate_field, validate_form
from src.domain.errors import FormBuilderError
from src.domain.schemas import Template
from src.templates.submissions import SubmissionStore

api_router = APIRouter()


def get_submission_store(request: Request) -> SubmissionStore:
    store: SubmissionStore = request.app.state.submission_store
    return store


def _require_template(request: Request, template_id: str) -> Template:
    template = get_template_store(request).get_template(template_id)
    if template is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "TEMPLATE_NOT_FOUND", "message": f"Template '{template_id}' not found"},
        )
    return template


def _values(payload: dict[str, Any]) -> dict[str, Any]:
    values = payload.get("values") or {}
    if not isinstance(values, dict):
        raise HTTPException(
            status_code=400,
            detail={"code": "INVALID_VALUES", "message": "'values' must be an object"},
        )
    return values


# =============================================================================
# Submissions (고정 경로 먼저 등록)
# =============================================================================

@api_router.get("/submissions")
async def list_all_submissions(request: Request) -> dict[str, Any]:
    submissions = get_submission_store(request).get_all_submissions()
    return {"submissions": [s.to_dict() for s in submissions]}


@api_router.delete("/submissions/{submission_id}")
async def delete_submission(request: Request, submission_id: str) -> dict[str, Any]:
    try:
        result = get_submission_store(request).delete_submission(submission_id)
    except FormBuilderError as e:
        raise error_response(e) from e
    return {"result": result.value, "submission_id": submission_id}


# =============================================================================
# Form
# =============================================================================

@api_router.post("/{template_id}/validate")
async def validate_values(
    request: Request,
    template_id: str,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """
    제출 전 검증.

    payload:
    - {"values": {...}} → 전체 필드 검증
    - {"values": {...}, "field_id": "..."} → 해당 필드만 검증
    """
    template = _require_template(request, template_id)
    values = _values(payload)
    field_id = payload.get("field_id")

    if field_id is not None:
        target = next((f for f in template.all_fields() if f.id == field_id), None)
        if target is None:
            raise HTTPException(
                status_code=404,
                detail={"code": "FIELD_NOT_FOUND", "message": f"Field '{field_id}' not found"},
            )
        message = validate_field(target, values.get(field_id))
        return {"valid": message is None, "field_id": field_id, "message": message}

    errors = validate_form(template.all_fields(), values)
    return {"valid": not errors, "errors": [e.to_dict() for e in errors]}


@api_router.post("/{template_id}/submit", status_code=201)
async def submit_form(
    request: Request,
    template_id: str,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """검증 실패 시 422 + 에러 목록, 성공 시 저장된 제출 기록."""
    template = _require_template(request, template_id)
    values = _values(payload)

    try:
        outcome = submit_template_form(template, values, get_submission_store(request))
    except FormBuilderError as e:
        raise error_response(e) from e

    if outcome.submission is None:
        raise HTTPException(
            status_code=422,
            detail={
                "code": "VALIDATION_FAILED",
                "errors": [e.to_dict() for e in outcome.errors],
            },
        )
    return outcome.submission.to_dict()


@api_router.get("/{template_id}/submissions")
async def list_template_submissions(request: Request, template_id: str) -> dict[str, Any]:
    """템플릿별 제출 목록 (템플릿 삭제 후에도 조회 가능)."""
    submissions = get_submission_store(request).get_submissions_by_template(template_id)
    return {
        "template_id": template_id,
        "submissions": [s.to_dict() for s in submissions],
    }
