"""
Error definitions for the chart service.

규칙:
- 조용한 실패 금지 → ChartError 하위 클래스로 명시적 실패
- 경로 탈출은 항상 요청 전체 실패 (clamp 금지)
- ParseSkipError만 예외: 문서 단위로 삼켜짐 (manifests.py)
"""

from typing import Any


class ChartError(Exception):
    """
    차트 저장/렌더 파이프라인 에러의 공통 부모.

    Usage:
        raise ChartNotFoundError("Chart 'demo-1.0.0.tgz' not found", name="demo")
    """

    code = "CHART_ERROR"
    status_code = 500

    def __init__(self, message: str, *, code: str | None = None, **context: Any) -> None:
        if code is not None:
            self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{self.code}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Upload ===
    INVALID_UPLOAD = "INVALID_UPLOAD"
    MISSING_REQUIRED_FILE = "MISSING_REQUIRED_FILE"
    UPLOAD_TOO_LARGE = "UPLOAD_TOO_LARGE"
    PATH_TRAVERSAL = "PATH_TRAVERSAL"

    # === Archive / Store ===
    MALFORMED_ARCHIVE = "MALFORMED_ARCHIVE"
    CHART_NOT_FOUND = "CHART_NOT_FOUND"
    STORE_LOCK_TIMEOUT = "STORE_LOCK_TIMEOUT"

    # === Render ===
    INVALID_REQUEST = "INVALID_REQUEST"
    RENDER_FAILED = "RENDER_FAILED"
    RENDER_TIMEOUT = "RENDER_TIMEOUT"
    ENGINE_UNAVAILABLE = "ENGINE_UNAVAILABLE"
    PARSE_SKIPPED = "PARSE_SKIPPED"


# =============================================================================
# Upload
# =============================================================================

class InvalidUploadError(ChartError):
    """필수 파일 누락, 잘못된 multipart 메타데이터."""

    code = ErrorCodes.INVALID_UPLOAD
    status_code = 400


class UploadTooLargeError(InvalidUploadError):
    """업로드 파일 수/크기 제한 초과."""

    code = ErrorCodes.UPLOAD_TOO_LARGE
    status_code = 413


class PathTraversalError(ChartError):
    """선언된 경로가 임시 루트 밖으로 벗어남. 항상 요청 실패."""

    code = ErrorCodes.PATH_TRAVERSAL
    status_code = 400


# =============================================================================
# Archive / Store
# =============================================================================

class MalformedArchiveError(ChartError):
    """Chart.yaml 누락/파싱 실패, name/version 비어 있음, 손상된 tgz."""

    code = ErrorCodes.MALFORMED_ARCHIVE
    status_code = 422


class ChartNotFoundError(ChartError):
    """저장소에 {name}-{version}.tgz 없음 (또는 읽기 실패)."""

    code = ErrorCodes.CHART_NOT_FOUND
    status_code = 404


class StoreLockTimeoutError(ChartError):
    """저장소 쓰기 락 획득 실패."""

    code = ErrorCodes.STORE_LOCK_TIMEOUT
    status_code = 503


# =============================================================================
# Render
# =============================================================================

class InvalidRequestError(ChartError):
    """렌더 요청 자체가 잘못됨 (instance name 누락 등). 엔진 호출 전 검증."""

    code = ErrorCodes.INVALID_REQUEST
    status_code = 400


class RenderError(ChartError):
    """
    템플릿 엔진이 보고한 렌더 실패.

    사용자에게 보여지는 정상적인 결과 → message는 엔진 진단 메시지 그대로.
    """

    code = ErrorCodes.RENDER_FAILED
    status_code = 422

    def __init__(self, message: str, *, code: str | None = None, **context: Any) -> None:
        super().__init__(message, code=code, **context)
        if self.code == ErrorCodes.RENDER_TIMEOUT:
            self.status_code = 504


class EngineUnavailableError(ChartError):
    """템플릿 엔진 실행 파일을 찾을 수 없음."""

    code = ErrorCodes.ENGINE_UNAVAILABLE
    status_code = 503


class ParseSkipError(ChartError):
    """렌더 결과 중 문서 하나가 파싱 불가. 문서 단위로 삼켜지고 응답에 포함되지 않음."""

    code = ErrorCodes.PARSE_SKIPPED
    status_code = 500
