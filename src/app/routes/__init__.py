"""
FastAPI Routes.

API 라우트 (JSON): 템플릿 편집, 폼 검증/제출
"""

from . import forms, templates

__all__ = ["forms", "templates"]
