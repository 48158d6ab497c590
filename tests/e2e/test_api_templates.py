"""
test_api_templates.py - Templates API E2E 테스트

엔드포인트:
- GET/POST /api/templates
- GET/PATCH/DELETE /api/templates/{template_id}
- 섹션/필드 추가, 수정, 삭제, 순서 변경
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.app.main import app

# =============================================================================
# Root
# =============================================================================


class TestRoot:
    """루트/헬스 체크."""

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_root_lists_endpoints(self, client: TestClient):
        assert client.get("/").json()["endpoints"]["templates"] == "/api/templates"

    def test_starts_with_empty_config_sections(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        """logging:/templates: 가 비어 있어도 기동."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            "storage:\n  backend: memory\nlogging:\ntemplates:\n", encoding="utf-8"
        )
        monkeypatch.setenv("FORMBUILDER_CONFIG", str(config_path))
        monkeypatch.delenv("FORMBUILDER_DATA_DIR", raising=False)

        with TestClient(app) as client:
            assert client.get("/health").status_code == 200
            assert client.get("/api/templates").json()["max_templates"] == 5


# =============================================================================
# Template
# =============================================================================


class TestTemplatesApi:
    """템플릿 CRUD."""

    def test_list_empty(self, client: TestClient):
        response = client.get("/api/templates")

        assert response.status_code == 200
        assert response.json() == {"max_templates": 5, "templates": []}

    def test_create_and_get(self, client: TestClient):
        response = client.post(
            "/api/templates", json={"name": "Survey", "description": "고객 설문"}
        )

        assert response.status_code == 201
        created = response.json()
        assert created["name"] == "Survey"
        assert created["description"] == "고객 설문"
        assert created["sections"] == []
        assert created["createdAt"] == created["updatedAt"]

        fetched = client.get(f"/api/templates/{created['id']}").json()
        assert fetched == created

    def test_create_requires_name(self, client: TestClient):
        response = client.post("/api/templates", json={"name": "  "})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_NAME"

    def test_capacity(self, client: TestClient):
        """6번째 → 409, 목록은 5개 그대로."""
        for i in range(5):
            assert client.post("/api/templates", json={"name": f"T{i}"}).status_code == 201

        response = client.post("/api/templates", json={"name": "T5"})

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "TEMPLATE_CAPACITY_EXCEEDED"
        assert detail["message"] == "Maximum of 5 templates allowed"
        names = [t["name"] for t in client.get("/api/templates").json()["templates"]]
        assert names == ["T0", "T1", "T2", "T3", "T4"]

    def test_get_missing(self, client: TestClient):
        response = client.get("/api/templates/nope")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "TEMPLATE_NOT_FOUND"

    def test_patch(self, client: TestClient):
        template_id = client.post("/api/templates", json={"name": "Old"}).json()["id"]

        response = client.patch(f"/api/templates/{template_id}", json={"name": "New"})

        assert response.status_code == 200
        body = response.json()
        assert body["result"] == "mutated"
        assert body["template"]["name"] == "New"

    def test_patch_missing_is_unchanged(self, client: TestClient):
        response = client.patch("/api/templates/nope", json={"name": "New"})

        assert response.status_code == 200
        assert response.json() == {"result": "unchanged", "template": None}

    def test_patch_unknown_attribute(self, client: TestClient):
        template_id = client.post("/api/templates", json={"name": "T"}).json()["id"]

        response = client.patch(f"/api/templates/{template_id}", json={"id": "other"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_TEMPLATE_ATTRIBUTE"

    def test_patch_null_name(self, client: TestClient):
        template_id = client.post("/api/templates", json={"name": "T"}).json()["id"]

        response = client.patch(f"/api/templates/{template_id}", json={"name": None})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_TEMPLATE_ATTRIBUTE"
        assert client.get("/api/templates").json()["templates"][0]["name"] == "T"

    def test_delete(self, client: TestClient):
        template_id = client.post("/api/templates", json={"name": "T"}).json()["id"]

        first = client.delete(f"/api/templates/{template_id}")
        second = client.delete(f"/api/templates/{template_id}")

        assert first.json()["result"] == "mutated"
        assert second.json()["result"] == "unchanged"
        assert client.get(f"/api/templates/{template_id}").status_code == 404

    def test_list_summary(self, client: TestClient, template_with_fields: dict):
        summary = client.get("/api/templates").json()["templates"][0]

        assert summary["id"] == template_with_fields["id"]
        assert summary["section_count"] == 1
        assert summary["field_count"] == 3


# =============================================================================
# Section / Field
# =============================================================================


class TestSectionsApi:
    """섹션 편집."""

    def test_add_update_delete(self, client: TestClient):
        template_id = client.post("/api/templates", json={"name": "T"}).json()["id"]

        added = client.post(f"/api/templates/{template_id}/sections", json={"title": "A"}).json()
        section_id = added["template"]["sections"][0]["id"]
        updated = client.patch(
            f"/api/templates/{template_id}/sections/{section_id}", json={"title": "B"}
        ).json()
        deleted = client.delete(f"/api/templates/{template_id}/sections/{section_id}").json()

        assert added["result"] == "mutated"
        assert updated["template"]["sections"][0]["title"] == "B"
        assert deleted["template"]["sections"] == []

    def test_reorder(self, client: TestClient):
        template_id = client.post("/api/templates", json={"name": "T"}).json()["id"]
        for title in ("A", "B", "C"):
            client.post(f"/api/templates/{template_id}/sections", json={"title": title})

        response = client.post(
            f"/api/templates/{template_id}/sections/reorder",
            json={"source_index": 2, "destination_index": 0},
        )

        sections = sorted(response.json()["template"]["sections"], key=lambda s: s["order"])
        assert [s["title"] for s in sections] == ["C", "A", "B"]

    def test_reorder_requires_integers(self, client: TestClient):
        template_id = client.post("/api/templates", json={"name": "T"}).json()["id"]

        response = client.post(
            f"/api/templates/{template_id}/sections/reorder",
            json={"source_index": "0", "destination_index": 1},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_INDEX"


class TestFieldsApi:
    """필드 편집."""

    def _fields_url(self, template: dict) -> str:
        return f"/api/templates/{template['id']}/sections/{template['sections'][0]['id']}/fields"

    def test_added_fields(self, template_with_fields: dict):
        fields = template_with_fields["sections"][0]["fields"]

        assert [(f["label"], f["type"], f["order"]) for f in fields] == [
            ("Name", "text", 0),
            ("Age", "number", 1),
            ("Color", "enum", 2),
        ]
        assert all(opt["id"] for opt in fields[2]["options"])

    def test_invalid_type(self, client: TestClient, template_with_fields: dict):
        response = client.post(
            self._fields_url(template_with_fields), json={"type": "date", "label": "When"}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_FIELD_TYPE"

    def test_stray_attribute(self, client: TestClient, template_with_fields: dict):
        response = client.post(
            self._fields_url(template_with_fields),
            json={"type": "boolean", "label": "OK", "min": 1},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_FIELD_ATTRIBUTE"

    def test_non_numeric_bound(self, client: TestClient, template_with_fields: dict):
        """min이 숫자가 아님 → 400, 이후 조회/검증 정상."""
        template_id = template_with_fields["id"]

        response = client.post(
            self._fields_url(template_with_fields),
            json={"type": "number", "label": "Score", "min": "abc"},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["attribute"] == "min"
        assert client.get(f"/api/templates/{template_id}").json() == template_with_fields
        validated = client.post(f"/api/forms/{template_id}/validate", json={"values": {}})
        assert validated.status_code == 200

    def test_update_field(self, client: TestClient, template_with_fields: dict):
        age = template_with_fields["sections"][0]["fields"][1]

        response = client.patch(
            f"{self._fields_url(template_with_fields)}/{age['id']}", json={"max": 99}
        )

        updated = response.json()["template"]["sections"][0]["fields"][1]
        assert updated["max"] == 99
        assert updated["min"] == 18

    def test_reorder_then_delete(self, client: TestClient, template_with_fields: dict):
        url = self._fields_url(template_with_fields)

        reordered = client.post(
            f"{url}/reorder", json={"source_index": 0, "destination_index": 2}
        ).json()
        fields = sorted(reordered["template"]["sections"][0]["fields"], key=lambda f: f["order"])
        assert [(f["label"], f["order"]) for f in fields] == [
            ("Age", 0),
            ("Color", 1),
            ("Name", 2),
        ]

        deleted = client.delete(f"{url}/{fields[1]['id']}").json()
        remaining = deleted["template"]["sections"][0]["fields"]
        assert sorted(f["order"] for f in remaining) == [0, 2]

    def test_reorder_out_of_range(self, client: TestClient, template_with_fields: dict):
        response = client.post(
            f"{self._fields_url(template_with_fields)}/reorder",
            json={"source_index": 0, "destination_index": 9},
        )

        assert response.status_code == 200
        assert response.json()["result"] == "unchanged"
