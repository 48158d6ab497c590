"""
E2E 테스트용 API 클라이언트 설정.

- FORMBUILDER_CONFIG → tmp 설정 파일 (memory backend)
- 테스트마다 새 lifespan → 빈 저장소
"""

from collections.abc import Generator
from pathlib import Path

import pytest
import yaml
from fastapi.testclient import TestClient

from src.app.main import app


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """memory backend 설정 파일."""
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "storage": {"backend": "memory"},
                "templates": {"max_templates": 5},
                "logging": {"level": "DEBUG"},
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def client(config_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    """FastAPI TestClient (lifespan 포함)."""
    monkeypatch.setenv("FORMBUILDER_CONFIG", str(config_path))
    monkeypatch.delenv("FORMBUILDER_DATA_DIR", raising=False)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def template_with_fields(client: TestClient) -> dict:
    """
    섹션 1개 + 필드 3개 (Name 필수 text, Age 필수 number 18~65, Color enum).

    Returns:
        GET /api/templates/{id} 응답 JSON
    """
    template = client.post("/api/templates", json={"name": "Signup"}).json()
    template_id = template["id"]
    client.post(f"/api/templates/{template_id}/sections", json={"title": "Main"})
    section_id = client.get(f"/api/templates/{template_id}").json()["sections"][0]["id"]

    for payload in (
        {"type": "text", "label": "Name", "required": True},
        {"type": "number", "label": "Age", "required": True, "min": 18, "max": 65},
        {
            "type": "enum",
            "label": "Color",
            "options": [{"label": "Red", "value": "red"}, {"label": "Blue", "value": "blue"}],
        },
    ):
        client.post(f"/api/templates/{template_id}/sections/{section_id}/fields", json=payload)

    return client.get(f"/api/templates/{template_id}").json()
