"""
Templates Routes: 템플릿/섹션/필드 편집 API.

- GET    /api/templates
- POST   /api/templates
- GET    /api/templates/{template_id}
- PATCH  /api/templates/{template_id}
- DELETE /api/templates/{template_id}
- POST   /api/templates/{template_id}/sections
- POST   /api/templates/{template_id}/sections/reorder
- PATCH  /api/templates/{template_id}/sections/{section_id}
- DELETE /api/templates/{template_id}/sections/{section_id}
- POST   /api/templates/{template_id}/sections/{section_id}/fields
- POST   /api/templates/{template_id}/sections/{section_id}/fields/reorder
- PATCH  /api/templates/{template_id}/sections/{section_id}/fields/{field_id}
- DELETE /api/templates/{template_id}/sections/{section_id}/fields/{field_id}

없는 id에 대한 변경은 200 + {"result": "unchanged"} (stale UI 허용).
"""

from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request

from src.domain.errors import CapacityExceededError, FormBuilderError, StorageError
from src.templates.manager import MutationResult, TemplateStore, count_fields

api_router = APIRouter()


# =============================================================================
# Helpers
# =============================================================================

def get_template_store(request: Request) -> TemplateStore:
    store: TemplateStore = request.app.state.template_store
    return store


def error_response(e: FormBuilderError) -> HTTPException:
    """FormBuilderError → HTTPException."""
    if isinstance(e, CapacityExceededError):
        status_code = 409
    elif isinstance(e, StorageError):
        status_code = 500
    else:
        status_code = 400
    return HTTPException(status_code=status_code, detail=e.to_dict())


def mutation_response(
    store: TemplateStore,
    template_id: str,
    result: MutationResult,
) -> dict[str, Any]:
    template = store.get_template(template_id)
    return {
        "result": result.value,
        "template": template.to_dict() if template else None,
    }


def _index(payload: dict[str, Any], key: str) -> int:
    value = payload.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise HTTPException(
            status_code=400,
            detail={"code": "INVALID_INDEX", "message": f"'{key}' must be an integer"},
        )
    return value


# =============================================================================
# Template
# =============================================================================

@api_router.get("")
async def list_templates(request: Request) -> dict[str, Any]:
    """템플릿 목록 (요약)."""
    store = get_template_store(request)
    return {
        "max_templates": store.max_templates,
        "templates": [
            {
                "id": t.id,
                "name": t.name,
                "description": t.description,
                "section_count": len(t.sections),
                "field_count": count_fields(t),
                "updatedAt": t.to_dict()["updatedAt"],
            }
            for t in store.templates
        ],
    }


@api_router.post("", status_code=201)
async def create_template(
    request: Request,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """템플릿 생성 (최대 개수 초과 시 409)."""
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        raise HTTPException(
            status_code=400,
            detail={"code": "INVALID_NAME", "message": "Template name is required"},
        )

    store = get_template_store(request)
    try:
        template = store.create_template(name, payload.get("description"))
    except FormBuilderError as e:
        raise error_response(e) from e
    return template.to_dict()


@api_router.get("/{template_id}")
async def get_template(request: Request, template_id: str) -> dict[str, Any]:
    """템플릿 상세 조회."""
    template = get_template_store(request).get_template(template_id)
    if template is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "TEMPLATE_NOT_FOUND", "message": f"Template '{template_id}' not found"},
        )
    return template.to_dict()


@api_router.patch("/{template_id}")
async def update_template(
    request: Request,
    template_id: str,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """템플릿 이름/설명 변경."""
    store = get_template_store(request)
    try:
        result = store.update_template(template_id, payload)
    except FormBuilderError as e:
        raise error_response(e) from e
    return mutation_response(store, template_id, result)


@api_router.delete("/{template_id}")
async def delete_template(request: Request, template_id: str) -> dict[str, Any]:
    """템플릿 삭제 (제출 기록은 유지)."""
    store = get_template_store(request)
    try:
        result = store.delete_template(template_id)
    except FormBuilderError as e:
        raise error_response(e) from e
    return {"result": result.value, "template_id": template_id}


# =============================================================================
# Section
# =============================================================================

@api_router.post("/{template_id}/sections")
async def add_section(
    request: Request,
    template_id: str,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    store = get_template_store(request)
    try:
        result = store.add_section(template_id, payload.get("title", ""))
    except FormBuilderError as e:
        raise error_response(e) from e
    return mutation_response(store, template_id, result)


@api_router.post("/{template_id}/sections/reorder")
async def reorder_sections(
    request: Request,
    template_id: str,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    store = get_template_store(request)
    source_index = _index(payload, "source_index")
    destination_index = _index(payload, "destination_index")
    try:
        result = store.reorder_sections(template_id, source_index, destination_index)
    except FormBuilderError as e:
        raise error_response(e) from e
    return mutation_response(store, template_id, result)


@api_router.patch("/{template_id}/sections/{section_id}")
async def update_section(
    request: Request,
    template_id: str,
    section_id: str,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    store = get_template_store(request)
    try:
        result = store.update_section(template_id, section_id, payload)
    except FormBuilderError as e:
        raise error_response(e) from e
    return mutation_response(store, template_id, result)


@api_router.delete("/{template_id}/sections/{section_id}")
async def delete_section(request: Request, template_id: str, section_id: str) -> dict[str, Any]:
    store = get_template_store(request)
    try:
        result = store.delete_section(template_id, section_id)
    except FormBuilderError as e:
        raise error_response(e) from e
    return mutation_response(store, template_id, result)


# =============================================================================
# Field
# =============================================================================

@api_router.post("/{template_id}/sections/{section_id}/fields")
async def add_field(
    request: Request,
    template_id: str,
    section_id: str,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """필드 추가. payload: {"type": ..., "label": ..., 종류별 속성}."""
    store = get_template_store(request)
    try:
        result = store.add_field(template_id, section_id, payload)
    except FormBuilderError as e:
        raise error_response(e) from e
    return mutation_response(store, template_id, result)


@api_router.post("/{template_id}/sections/{section_id}/fields/reorder")
async def reorder_fields(
    request: Request,
    template_id: str,
    section_id: str,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    store = get_template_store(request)
    source_index = _index(payload, "source_index")
    destination_index = _index(payload, "destination_index")
    try:
        result = store.reorder_fields(template_id, section_id, source_index, destination_index)
    except FormBuilderError as e:
        raise error_response(e) from e
    return mutation_response(store, template_id, result)


@api_router.patch("/{template_id}/sections/{section_id}/fields/{field_id}")
async def update_field(
    request: Request,
    template_id: str,
    section_id: str,
    field_id: str,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    store = get_template_store(request)
    try:
        result = store.update_field(template_id, section_id, field_id, payload)
    except FormBuilderError as e:
        raise error_response(e) from e
    return mutation_response(store, template_id, result)


@api_router.delete("/{template_id}/sections/{section_id}/fields/{field_id}")
async def delete_field(
    request: Request,
    template_id: str,
    section_id: str,
    field_id: str,
) -> dict[str, Any]:
    store = get_template_store(request)
    try:
        result = store.delete_field(template_id, section_id, field_id)
    except FormBuilderError as e:
        raise error_response(e) from e
    return mutation_response(store, template_id, result)
