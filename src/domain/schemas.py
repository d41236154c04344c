"""
Data schemas for the chart service.

규칙:
- StoredArchive는 생성 후 불변
- ArchiveContent / UploadSession / RenderedDocument는 요청 단위로만 존재 (캐시 금지)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.domain.constants import (
    CHART_METADATA_FILENAME,
    CHART_VALUES_FILENAME,
    DEFAULT_NAMESPACE,
    get_archive_filename,
)

# =============================================================================
# Store
# =============================================================================


@dataclass(frozen=True)
class StoredArchive:
    """저장소에 기록된 차트 아카이브."""

    name: str
    version: str
    path: Path

    @property
    def filename(self) -> str:
        return self.path.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "filename": self.filename,
        }


# =============================================================================
# Archive Content
# =============================================================================


@dataclass
class ArchiveFile:
    """아카이브 내부 파일 (차트 루트 기준 상대 경로)."""

    relative_path: str
    data: bytes


@dataclass
class ArchiveContent:
    """
    로드된 차트.

    Chart.yaml / values.yaml은 파싱 결과(metadata, default_values)와
    원본 바이트(raw_metadata, raw_values)를 모두 보관한다.
    files에는 그 외 모든 파일이 로드 순서대로 들어간다.
    """

    metadata: dict[str, Any]
    default_values: dict[str, Any]
    files: list[ArchiveFile] = field(default_factory=list)
    raw_metadata: bytes = b""
    raw_values: bytes | None = None
    source: Path | None = None  # 저장소의 .tgz 경로 (디렉터리에서 로드 시 None)

    @property
    def name(self) -> str:
        return str(self.metadata["name"])

    @property
    def version(self) -> str:
        return str(self.metadata["version"])

    @property
    def archive_filename(self) -> str:
        return get_archive_filename(self.name, self.version)

    def file_paths(self) -> list[str]:
        """Chart.yaml, values.yaml 포함 전체 파일 경로."""
        paths = [CHART_METADATA_FILENAME]
        if self.raw_values is not None:
            paths.append(CHART_VALUES_FILENAME)
        paths.extend(f.relative_path for f in self.files)
        return paths


# =============================================================================
# Upload
# =============================================================================


@dataclass
class UploadedFile:
    """multipart로 받은 파일 하나 (선언된 상대 경로 + 내용)."""

    relative_path: str
    content: bytes


@dataclass
class UploadSession:
    """디렉터리 업로드 요청 하나가 소유하는 임시 트리."""

    root_dir: Path
    files: list[UploadedFile] = field(default_factory=list)


# =============================================================================
# Render
# =============================================================================


@dataclass
class RenderRequest:
    """렌더 요청."""

    chart_name: str
    chart_version: str
    instance_name: str
    override_values: dict[str, Any] = field(default_factory=dict)
    namespace: str = DEFAULT_NAMESPACE
    selected_paths: list[str] = field(default_factory=list)


@dataclass
class RenderedDocument:
    """렌더 결과 문서 하나."""

    source_path: str  # 차트 루트 기준 템플릿 경로 (marker 없으면 "")
    kind: str
    content: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_path": self.source_path,
            "kind": self.kind,
            "content": self.content,
        }


@dataclass
class RenderOutcome:
    """
    렌더 응답.

    - filtered=True: 선택된 템플릿의 원본 segment를 이어 붙인 텍스트 (manifests)
    - filtered=False: kind 기준으로 정규화된 문서들 (documents)
    """

    chart_name: str
    filtered: bool
    manifests: str = ""
    documents: list[RenderedDocument] = field(default_factory=list)
    files: dict[str, str] = field(default_factory=dict)  # kind → content

    def to_response(self) -> dict[str, Any]:
        if self.filtered:
            return {"manifests": self.manifests}
        return {
            "files": self.files,
            "documents": [doc.to_dict() for doc in self.documents],
        }
