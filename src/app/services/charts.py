"""
Chart Service: 저장소 + 패키징 + 렌더 파이프라인 조합.

흐름:
- 업로드 (아카이브) → 검증 → ChartStore.put
- 업로드 (디렉터리) → PathReconstructor → package_chart_dir (scratch) → ChartStore.put
- 렌더 → ChartStore.load → RenderOrchestrator → split/filter
"""

import logging
import tempfile
from pathlib import Path
from typing import Any

from src.charts.packager import load_chart_archive, package_chart_dir
from src.charts.reconstruct import PathReconstructor
from src.charts.store import ChartStore, validate_archive_filename
from src.core.config import Settings
from src.core.fs import remove_tree
from src.domain.schemas import (
    RenderOutcome,
    RenderRequest,
    StoredArchive,
    UploadedFile,
)
from src.render.engine import HelmTemplateEngine, TemplateEngine
from src.render.manifests import filter_by_sources, group_by_kind, split_documents
from src.render.orchestrator import RenderOrchestrator, validate_render_request

logger = logging.getLogger(__name__)


class ChartService:
    """
    차트 서비스.

    모든 경로/제한은 Settings로 주입 (전역 상태 없음).
    """

    def __init__(
        self,
        settings: Settings,
        engine: TemplateEngine | None = None,
    ):
        """
        Args:
            settings: 서비스 설정
            engine: 템플릿 엔진 (None이면 HelmTemplateEngine)
        """
        self.settings = settings
        self.store = ChartStore(
            settings.store_dir,
            lock_timeout=settings.lock_timeout,
            max_extracted_bytes=settings.max_extracted_bytes,
        )
        self.reconstructor = PathReconstructor(
            temp_parent=settings.upload_tmp_dir,
            max_total_bytes=settings.max_upload_bytes,
            max_files=settings.max_upload_files,
        )
        if engine is None:
            engine = HelmTemplateEngine(
                helm_bin=settings.helm_bin,
                timeout=settings.render_timeout,
                work_dir=settings.scratch_dir,
            )
        self.orchestrator = RenderOrchestrator(engine)

    # =========================================================================
    # Upload
    # =========================================================================

    def upload_archive(self, data: bytes, filename: str) -> StoredArchive:
        """
        패키징된 아카이브 업로드.

        아카이브가 차트로 읽히는지 확인한 뒤 선언된 파일명 그대로 저장.

        Raises:
            InvalidUploadError, MalformedArchiveError (압축 해제 크기 초과 포함)
        """
        validate_archive_filename(filename)
        content = load_chart_archive(data, max_extracted_bytes=self.settings.max_extracted_bytes)
        if content.archive_filename != filename:
            logger.warning(
                f"Uploaded archive name {filename!r} does not match chart metadata "
                f"({content.archive_filename!r}); storing as uploaded"
            )
        return self.store.put(data, filename)

    def upload_directory(self, files: list[UploadedFile]) -> StoredArchive:
        """
        차트 디렉터리 업로드 (파일 목록, 선언 경로 포함).

        Raises:
            InvalidUploadError, UploadTooLargeError, PathTraversalError,
            MalformedArchiveError
        """
        with self.reconstructor.open_session(files) as session:
            return self.package_directory(session.root_dir)

    def package_directory(self, chart_dir: Path) -> StoredArchive:
        """
        디렉터리 → scratch에 패키징 → 저장소.

        scratch 출력은 호출마다 정리.
        """
        self.settings.scratch_dir.mkdir(parents=True, exist_ok=True)
        scratch = Path(tempfile.mkdtemp(prefix="package-", dir=self.settings.scratch_dir))
        try:
            archive_path = package_chart_dir(chart_dir, scratch)
            return self.store.put(archive_path.read_bytes(), archive_path.name)
        finally:
            remove_tree(scratch)

    # =========================================================================
    # Read
    # =========================================================================

    def list_charts(self) -> list[str]:
        return self.store.list_all()

    def list_versions(self, name: str) -> list[str]:
        return self.store.list_versions(name)

    def get_values(self, name: str, version: str) -> dict[str, Any]:
        """차트 기본 values."""
        return self.store.load(name, version).default_values

    def list_files(self, name: str, version: str) -> list[str]:
        """차트에 포함된 파일 경로 (Chart.yaml, values.yaml 포함)."""
        return self.store.load(name, version).file_paths()

    # =========================================================================
    # Render
    # =========================================================================

    def render(self, request: RenderRequest) -> RenderOutcome:
        """
        차트 렌더.

        - selected_paths 있음 → 원본 segment 필터 결과 (manifests)
        - 없음 → kind 기준 정규화 문서 (files, documents)

        Raises:
            InvalidRequestError, ChartNotFoundError, MalformedArchiveError,
            RenderError, EngineUnavailableError
        """
        validate_render_request(request)
        archive = self.store.load(request.chart_name, request.chart_version)
        text = self.orchestrator.render(request, archive)

        if request.selected_paths:
            manifests = filter_by_sources(text, archive.name, request.selected_paths)
            return RenderOutcome(chart_name=archive.name, filtered=True, manifests=manifests)

        documents = split_documents(text, archive.name)
        return RenderOutcome(
            chart_name=archive.name,
            filtered=False,
            documents=documents,
            files=group_by_kind(documents),
        )
