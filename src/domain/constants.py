"""
Domain Constants: 차트 저장/렌더 전역 상수.

파일명 정책, 필수 파일, manifest 구분자 등 시스템 전반에서 사용되는 값들.
"""

# =============================================================================
# Chart Layout (차트 디렉터리 구조)
# =============================================================================
# <chart>/
# ├── Chart.yaml       # 메타데이터 (필수: name, version)
# ├── values.yaml      # 기본 설정값
# ├── templates/
# └── charts/          # 하위 차트 (선택)

CHART_METADATA_FILENAME = "Chart.yaml"
CHART_VALUES_FILENAME = "values.yaml"
REQUIRED_UPLOAD_FILES = (CHART_METADATA_FILENAME, CHART_VALUES_FILENAME)

# =============================================================================
# Archive Filenames (저장소 파일명 정책)
# =============================================================================
# 저장소 = 평면 디렉터리, 파일명 = "{name}-{version}.tgz"

ARCHIVE_EXTENSION = ".tgz"
STORE_LOCKS_DIR = ".locks"
PATH_SEPARATORS = ("/", "\\")

# =============================================================================
# Render
# =============================================================================

DEFAULT_NAMESPACE = "default"
# 릴리스 이름 / 네임스페이스: 소문자 DNS-1123 label (릴리스 최대 53자, 네임스페이스 최대 63자)
DNS_LABEL_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"
MAX_RELEASE_NAME_LENGTH = 53
MAX_NAMESPACE_LENGTH = 63
MANIFEST_SEPARATOR = "\n---\n"
SOURCE_MARKER_PREFIX = "# Source: "


def get_archive_filename(name: str, version: str) -> str:
    """
    저장소 파일명 생성.

    Args:
        name: 차트 이름
        version: 차트 버전

    Returns:
        "{name}-{version}.tgz"
    """
    return f"{name}-{version}{ARCHIVE_EXTENSION}"


def get_source_marker(chart_name: str, relative_path: str) -> str:
    """렌더 결과에 엔진이 삽입하는 provenance 주석."""
    return f"{SOURCE_MARKER_PREFIX}{chart_name}/{relative_path}"


def has_path_separator(value: str) -> bool:
    """경로 구분자 포함 여부."""
    return any(sep in value for sep in PATH_SEPARATORS)
