"""
App layer: API 서버 (FastAPI).

역할:
- 템플릿 편집 / 폼 제출 JSON API
- 검증 서비스, 제출 흐름
- ⚠️ 컬렉션 불변식 로직 없음 (src/templates에 위임)
"""
