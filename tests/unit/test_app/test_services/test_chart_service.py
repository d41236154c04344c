"""
test_chart_service.py - ChartService 테스트 (FakeEngine)

흐름 검증:
- 디렉터리 업로드 → 패키징 → 저장소 (임시 디렉터리 정리)
- 아카이브 업로드 → 검증 → 그대로 저장
- 렌더: 필터 있음 → manifests, 없음 → kind별 files
- 요청 오류는 저장소/엔진 접근 전에 실패
"""

from pathlib import Path

import pytest

from src.app.services.charts import ChartService
from src.charts.packager import package_chart_dir
from src.core.config import Settings
from src.domain.errors import (
    ChartNotFoundError,
    InvalidRequestError,
    InvalidUploadError,
    MalformedArchiveError,
    PathTraversalError,
    RenderError,
)
from src.domain.schemas import RenderRequest, UploadedFile

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def service(settings: Settings, fake_engine) -> ChartService:
    return ChartService(settings, engine=fake_engine)


@pytest.fixture
def uploaded_service(service: ChartService, demo_uploads) -> ChartService:
    """demo-1.2.3이 저장된 서비스."""
    service.upload_directory(demo_uploads)
    return service


def _render_request(**overrides) -> RenderRequest:
    params = {
        "chart_name": "demo",
        "chart_version": "1.2.3",
        "instance_name": "rel",
    }
    params.update(overrides)
    return RenderRequest(**params)


# =============================================================================
# Upload
# =============================================================================


class TestUploadDirectory:
    """디렉터리 업로드 테스트."""

    def test_stores_packaged_archive(self, service: ChartService, demo_uploads, settings: Settings):
        stored = service.upload_directory(demo_uploads)

        assert stored.to_dict() == {
            "name": "demo",
            "version": "1.2.3",
            "filename": "demo-1.2.3.tgz",
        }
        assert (settings.store_dir / "demo-1.2.3.tgz").is_file()

    def test_temp_dirs_cleaned(self, service: ChartService, demo_uploads, settings: Settings):
        service.upload_directory(demo_uploads)

        assert list(settings.upload_tmp_dir.iterdir()) == []
        assert list(settings.scratch_dir.iterdir()) == []

    def test_traversal_stores_nothing(self, service: ChartService, demo_uploads, settings: Settings):
        files = demo_uploads + [UploadedFile(relative_path="demo/../../evil.yaml", content=b"x")]

        with pytest.raises(PathTraversalError):
            service.upload_directory(files)

        assert service.list_charts() == []

    def test_missing_values_yaml(self, service: ChartService, demo_uploads):
        files = [f for f in demo_uploads if not f.relative_path.endswith("values.yaml")]

        with pytest.raises(InvalidUploadError):
            service.upload_directory(files)

    def test_invalid_chart_yaml(self, service: ChartService, demo_uploads, settings: Settings):
        """Chart.yaml에 version 없음 → MalformedArchiveError, 임시 디렉터리 정리."""
        files = [
            UploadedFile(relative_path=f.relative_path, content=b"name: demo\n")
            if f.relative_path == "demo/Chart.yaml"
            else f
            for f in demo_uploads
        ]

        with pytest.raises(MalformedArchiveError):
            service.upload_directory(files)

        assert list(settings.upload_tmp_dir.iterdir()) == []


class TestUploadArchive:
    """아카이브 업로드 테스트."""

    def test_stores_bytes_unchanged(self, service: ChartService, chart_dir: Path, tmp_path: Path):
        data = package_chart_dir(chart_dir, tmp_path / "out").read_bytes()

        stored = service.upload_archive(data, "demo-1.2.3.tgz")

        assert stored.path.read_bytes() == data
        assert service.list_charts() == ["demo-1.2.3.tgz"]

    def test_keeps_declared_filename(self, service: ChartService, chart_dir: Path, tmp_path: Path):
        data = package_chart_dir(chart_dir, tmp_path / "out").read_bytes()

        stored = service.upload_archive(data, "demo-1.2.3-patched.tgz")

        assert stored.filename == "demo-1.2.3-patched.tgz"

    def test_rejects_garbage(self, service: ChartService):
        with pytest.raises(MalformedArchiveError):
            service.upload_archive(b"not a tgz", "demo-1.2.3.tgz")

        assert service.list_charts() == []

    def test_rejects_bad_filename(self, service: ChartService, chart_dir: Path, tmp_path: Path):
        data = package_chart_dir(chart_dir, tmp_path / "out").read_bytes()

        with pytest.raises(InvalidUploadError):
            service.upload_archive(data, "../demo-1.2.3.tgz")

    def test_rejects_archive_over_extracted_limit(
        self, service: ChartService, settings: Settings, chart_dir: Path, tmp_path: Path
    ):
        """압축 해제 크기가 설정 상한을 넘으면 저장하지 않음."""
        data = package_chart_dir(chart_dir, tmp_path / "out").read_bytes()
        settings.max_extracted_bytes = 16

        with pytest.raises(MalformedArchiveError) as exc_info:
            service.upload_archive(data, "demo-1.2.3.tgz")

        assert exc_info.value.context["limit"] == 16
        assert service.list_charts() == []


# =============================================================================
# Read
# =============================================================================


class TestRead:
    """조회 테스트."""

    def test_list_versions(self, uploaded_service: ChartService):
        assert uploaded_service.list_versions("demo") == ["demo-1.2.3.tgz"]
        assert uploaded_service.list_versions("dem") == []

    def test_get_values(self, uploaded_service: ChartService):
        values = uploaded_service.get_values("demo", "1.2.3")

        assert values == {
            "replicaCount": 1,
            "image": {"repository": "nginx", "tag": "1.25"},
            "service": {"port": 80},
        }

    def test_get_values_missing(self, service: ChartService):
        with pytest.raises(ChartNotFoundError):
            service.get_values("demo", "1.2.3")

    def test_list_files(self, uploaded_service: ChartService):
        files = uploaded_service.list_files("demo", "1.2.3")

        assert files[:2] == ["Chart.yaml", "values.yaml"]
        assert "templates/service.yaml" in files


# =============================================================================
# Render
# =============================================================================


class TestRender:
    """렌더 테스트."""

    def test_unfiltered_groups_by_kind(self, uploaded_service: ChartService, fake_engine):
        outcome = uploaded_service.render(_render_request(override_values={"replicaCount": 2}))

        response = outcome.to_response()
        assert set(response["files"]) == {"Service", "Deployment"}
        assert [d["kind"] for d in response["documents"]] == ["Service", "Deployment"]
        assert fake_engine.calls[0]["values"] == {"replicaCount": 2}
        assert fake_engine.calls[0]["namespace"] == "default"

    def test_filtered_returns_raw_manifests(self, uploaded_service: ChartService):
        outcome = uploaded_service.render(_render_request(selected_paths=["templates/service.yaml"]))

        response = outcome.to_response()
        assert list(response) == ["manifests"]
        assert response["manifests"].startswith("# Source: demo/templates/service.yaml")
        assert "kind: Deployment" not in response["manifests"]

    def test_empty_name_checked_before_store(self, service: ChartService, fake_engine):
        """차트가 없어도 이름 누락이 먼저 보고됨, 엔진 호출 없음."""
        with pytest.raises(InvalidRequestError):
            service.render(_render_request(instance_name=""))

        assert fake_engine.calls == []

    def test_flag_like_name_rejected_before_store(self, service: ChartService, fake_engine):
        with pytest.raises(InvalidRequestError) as exc_info:
            service.render(_render_request(instance_name="--post-renderer=/bin/sh"))

        assert exc_info.value.context["field"] == "name"
        assert fake_engine.calls == []

    def test_missing_chart(self, service: ChartService, fake_engine):
        with pytest.raises(ChartNotFoundError):
            service.render(_render_request(chart_version="0.0.1"))

        assert fake_engine.calls == []

    def test_engine_error_propagates(self, uploaded_service: ChartService, fake_engine):
        fake_engine.error = RenderError("template: demo/templates/service.yaml:5: bad")

        with pytest.raises(RenderError) as exc_info:
            uploaded_service.render(_render_request())

        assert exc_info.value.message == "template: demo/templates/service.yaml:5: bad"
