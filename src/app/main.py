"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uvicorn src.app.main:app --reload
- 프로덕션: uvicorn src.app.main:app

설정:
- default.yaml (프로젝트 루트)
- FORMBUILDER_CONFIG: 다른 설정 파일 경로
- FORMBUILDER_DATA_DIR: storage.data_dir 덮어쓰기
- .env 파일이 있으면 먼저 로드 (python-dotenv)
"""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from fastapi import FastAPI

from src.app.routes import forms, templates
from src.core.storage import create_blob_store
from src.domain.constants import MAX_TEMPLATES
from src.templates.manager import TemplateStore
from src.templates.submissions import SubmissionStore

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """
    설정 파일 로드.

    우선순위: 인자 → FORMBUILDER_CONFIG → 프로젝트 루트 default.yaml
    """
    load_dotenv()

    if config_path is None:
        env_path = os.environ.get("FORMBUILDER_CONFIG")
        config_path = Path(env_path) if env_path else PROJECT_ROOT / "default.yaml"

    data: dict[Any, Any] = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    else:
        logger.warning(f"Config file not found: {config_path}, using defaults")

    data_dir = os.environ.get("FORMBUILDER_DATA_DIR")
    if data_dir:
        data["storage"] = {**(data.get("storage") or {}), "data_dir": data_dir}

    return data


def build_stores(config: dict) -> tuple[TemplateStore, SubmissionStore]:
    """설정 기반 저장소 생성 + 초기 로드."""
    blob_store = create_blob_store(config, PROJECT_ROOT)
    max_templates = (config.get("templates") or {}).get("max_templates", MAX_TEMPLATES)

    template_store = TemplateStore(blob_store, max_templates=max_templates)
    template_store.load()

    submission_store = SubmissionStore(blob_store)
    submission_store.load()

    return template_store, submission_store


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: 설정 로드, 로깅 설정, 저장소 로드
    종료 시: 별도 정리 없음 (변경마다 이미 flush됨)
    """
    # Startup
    config = load_config()
    level = (config.get("logging") or {}).get("level", "INFO")
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app.state.config = config
    app.state.template_store, app.state.submission_store = build_stores(config)

    yield

    # Shutdown


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="Form Template Builder",
    description="섹션/필드 기반 폼 템플릿 작성 + 제출 값 검증",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# Routes
# =============================================================================

app.include_router(
    templates.api_router, prefix="/api/templates", tags=["Templates API"]
)
app.include_router(forms.api_router, prefix="/api/forms", tags=["Forms API"])


# =============================================================================
# Root Endpoints
# =============================================================================


@app.get("/")
async def root() -> dict[str, Any]:
    return {
        "message": "Form Template Builder",
        "endpoints": {
            "templates": "/api/templates",
            "forms": "/api/forms",
        },
    }


@app.get("/health")
async def health() -> dict[str, str]:
    """헬스 체크."""
    return {"status": "ok"}


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
