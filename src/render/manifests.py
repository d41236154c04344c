"""
Manifest Splitter/Filter: 엔진 출력 → 문서 단위 분리, provenance 기반 필터

엔진은 각 문서 맨 위에 "# Source: {chart}/{path}" 주석을 넣는다.

두 가지 출력:
- filter_by_sources: 선택된 템플릿의 원본 segment를 "\\n---\\n"로 이어 붙인 텍스트
- split_documents: 파싱 가능한 문서를 kind와 함께 정규화 (키 정렬)

⚠️ 파싱 불가 문서, kind 없는 문서는 조용히 버린다 (ParseSkipError는 밖으로 나가지 않음).
"""

import logging
import re
from collections.abc import Iterable

import yaml

from src.domain.constants import MANIFEST_SEPARATOR, get_source_marker
from src.domain.errors import ParseSkipError
from src.domain.schemas import RenderedDocument

logger = logging.getLogger(__name__)

# "---" 구분 줄 (텍스트 맨 앞의 "---" 포함, 뒤 공백 허용)
SEPARATOR_PATTERN = re.compile(r"(?:^|\n)---[ \t]*(?=\n|$)")
SOURCE_PATTERN = re.compile(r"^# Source: (.+?)[ \t]*$", re.MULTILINE)


# =============================================================================
# Split
# =============================================================================


def split_manifests(text: str) -> list[str]:
    """
    구분 줄 기준 분리.

    Args:
        text: 엔진 출력

    Returns:
        앞뒤 공백을 제거한 segment 목록 (빈 segment 제외, 원래 순서)
    """
    segments = []
    for segment in SEPARATOR_PATTERN.split(text):
        segment = segment.strip()
        if segment:
            segments.append(segment)
    return segments


def extract_source_path(segment: str, chart_name: str) -> str:
    """
    provenance 주석에서 템플릿 경로 추출.

    "# Source: demo/templates/deployment.yaml" → "templates/deployment.yaml"

    Returns:
        차트 루트 기준 경로, 주석이 없으면 ""
    """
    match = SOURCE_PATTERN.search(segment)
    if match is None:
        return ""

    source = match.group(1)
    prefix = f"{chart_name}/"
    if source.startswith(prefix):
        return source[len(prefix):]
    return source


def parse_document(segment: str, chart_name: str) -> RenderedDocument:
    """
    segment 하나를 RenderedDocument로.

    Raises:
        ParseSkipError: YAML 파싱 실패, mapping 아님, kind 없음
    """
    try:
        document = yaml.safe_load(segment)
    except yaml.YAMLError as e:
        raise ParseSkipError(f"Document is not valid YAML: {e}") from e

    if not isinstance(document, dict):
        raise ParseSkipError("Document is not a mapping")

    kind = document.get("kind")
    if not isinstance(kind, str) or not kind:
        raise ParseSkipError("Document has no kind")

    content = yaml.safe_dump(
        document,
        sort_keys=True,
        default_flow_style=False,
        allow_unicode=True,
    )
    return RenderedDocument(
        source_path=extract_source_path(segment, chart_name),
        kind=kind,
        content=content,
    )


def split_documents(text: str, chart_name: str) -> list[RenderedDocument]:
    """
    엔진 출력 → 파싱 가능한 문서 목록.

    문서 하나의 실패가 나머지를 막지 않도록 ParseSkipError는 문서 단위로 버린다.
    """
    documents = []
    for index, segment in enumerate(split_manifests(text)):
        try:
            documents.append(parse_document(segment, chart_name))
        except ParseSkipError as e:
            logger.debug(f"Skipping rendered document #{index} of {chart_name}: {e.message}")
    return documents


# =============================================================================
# Filter / Group
# =============================================================================


def filter_by_sources(text: str, chart_name: str, selected_paths: Iterable[str]) -> str:
    """
    선택된 템플릿에서 나온 원본 segment만 남김.

    선택 경로 순서 → segment 순서로 수집, segment는 한 번만 포함.
    재파싱/정규화 없음.

    Args:
        text: 엔진 출력
        chart_name: 차트 이름 (marker 접두어)
        selected_paths: 차트 루트 기준 템플릿 경로들

    Returns:
        "\\n---\\n"로 이어 붙인 원본 segment
    """
    segments = split_manifests(text)
    kept: list[int] = []

    for selected in dict.fromkeys(selected_paths):
        marker = get_source_marker(chart_name, selected)
        for index, segment in enumerate(segments):
            if index not in kept and marker in segment:
                kept.append(index)

    return MANIFEST_SEPARATOR.join(segments[index] for index in kept)


def group_by_kind(documents: Iterable[RenderedDocument]) -> dict[str, str]:
    """
    kind → content.

    같은 kind가 여러 개면 "---\\n"로 이어 붙임 (덮어쓰지 않음).
    """
    grouped: dict[str, str] = {}
    for document in documents:
        if document.kind in grouped:
            grouped[document.kind] = f"{grouped[document.kind]}---\n{document.content}"
        else:
            grouped[document.kind] = document.content
    return grouped
