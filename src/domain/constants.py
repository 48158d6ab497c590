"""
Domain Constants: 폼 빌더 전역 상수.

저장소 키, 개수 제한, 검증 메시지 등 시스템 전반에서 사용되는 값들.
"""

# =============================================================================
# Limits
# =============================================================================

MAX_TEMPLATES = 5

# =============================================================================
# Storage Keys (blob 저장소 키)
# =============================================================================
# 두 개의 최상위 키, 각각 레코드 리스트(JSON):
# - form-templates: Template 목록 (생성 순서)
# - form-submissions: FormSubmission 목록 (제출 순서)

TEMPLATES_STORAGE_KEY = "form-templates"
SUBMISSIONS_STORAGE_KEY = "form-submissions"

# =============================================================================
# Validation Messages
# =============================================================================

MSG_REQUIRED = "{label} is required"
MSG_INVALID_NUMBER = "{label} must be a valid number"
MSG_MIN = "{label} must be at least {min}"
MSG_MAX = "{label} must be at most {max}"
MSG_NOT_TEXT = "{label} must be text"
MSG_NOT_OPTION = "{label} must be one of the available options"
MSG_NOT_BOOLEAN = "{label} must be true or false"
