"""
Render layer: 차트 렌더 조정 + 결과 분리.

역할:
- 엔진 경계 (helm template)
- 요청 검증 후 엔진 호출
- 엔진 출력 → 문서 분리/필터
"""

from .engine import HelmTemplateEngine, TemplateEngine
from .manifests import (
    extract_source_path,
    filter_by_sources,
    group_by_kind,
    split_documents,
    split_manifests,
)
from .orchestrator import RenderOrchestrator, validate_render_request

__all__ = [
    "HelmTemplateEngine",
    "TemplateEngine",
    "RenderOrchestrator",
    "validate_render_request",
    "extract_source_path",
    "filter_by_sources",
    "group_by_kind",
    "split_documents",
    "split_manifests",
]
