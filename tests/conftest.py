"""
Pytest fixtures for the form builder tests.

구성:
- 저장소 fixture (메모리 / 파일)
- 필드 정의 샘플 (종류별)
- 섹션/필드가 채워진 샘플 템플릿
"""

from pathlib import Path

import pytest

from src.core.storage import JsonFileBlobStore, MemoryBlobStore
from src.domain.schemas import Template
from src.templates.manager import TemplateStore
from src.templates.submissions import SubmissionStore

# =============================================================================
# Storage Fixtures
# =============================================================================

@pytest.fixture
def blob_store() -> MemoryBlobStore:
    """메모리 blob 저장소."""
    return MemoryBlobStore()


@pytest.fixture
def file_blob_store(tmp_path: Path) -> JsonFileBlobStore:
    """tmp_path 기반 JSON 파일 저장소."""
    return JsonFileBlobStore(tmp_path / "data", lock_timeout=1.0)


@pytest.fixture
def template_store(blob_store: MemoryBlobStore) -> TemplateStore:
    """빈 TemplateStore (로드 완료)."""
    store = TemplateStore(blob_store)
    store.load()
    return store


@pytest.fixture
def submission_store(blob_store: MemoryBlobStore) -> SubmissionStore:
    """빈 SubmissionStore (로드 완료)."""
    store = SubmissionStore(blob_store)
    store.load()
    return store


# =============================================================================
# Field Data Fixtures
# =============================================================================

@pytest.fixture
def label_field_data() -> dict:
    return {"type": "label", "label": "기본 정보", "size": "h2"}


@pytest.fixture
def text_field_data() -> dict:
    return {"type": "text", "label": "Name", "required": True, "placeholder": "홍길동"}


@pytest.fixture
def number_field_data() -> dict:
    return {"type": "number", "label": "Age", "required": True, "min": 18, "max": 65}


@pytest.fixture
def boolean_field_data() -> dict:
    return {"type": "boolean", "label": "Agree to terms", "required": True, "variant": "toggle"}


@pytest.fixture
def enum_field_data() -> dict:
    return {
        "type": "enum",
        "label": "Color",
        "required": False,
        "options": [
            {"id": "opt1", "label": "Red", "value": "red"},
            {"id": "opt2", "label": "Blue", "value": "blue"},
        ],
    }


# =============================================================================
# Template Fixtures
# =============================================================================

@pytest.fixture
def sample_template(
    template_store: TemplateStore,
    label_field_data: dict,
    text_field_data: dict,
    number_field_data: dict,
    boolean_field_data: dict,
    enum_field_data: dict,
) -> Template:
    """
    섹션 2개 + 필드 5개 템플릿.

    - 섹션 0 "Profile": label, text, number
    - 섹션 1 "Preferences": boolean, enum
    """
    template = template_store.create_template("Onboarding", "신규 입사자 정보")
    template_store.add_section(template.id, "Profile")
    template_store.add_section(template.id, "Preferences")

    profile, preferences = template_store.get_template(template.id).sections
    for data in (label_field_data, text_field_data, number_field_data):
        template_store.add_field(template.id, profile.id, data)
    for data in (boolean_field_data, enum_field_data):
        template_store.add_field(template.id, preferences.id, data)

    return template_store.get_template(template.id)
