"""
Pytest fixtures for the chart service tests.

구성:
- demo 차트 (Chart.yaml, values.yaml, templates/*)
- tmp_path 기반 Settings (저장소/scratch/업로드 임시 디렉터리 분리)
- FakeEngine: helm 없이 "# Source:" marker가 포함된 출력 반환
"""

from pathlib import Path
from typing import Any

import pytest
import yaml

from src.core.config import Settings
from src.domain.schemas import ArchiveContent, UploadedFile

# =============================================================================
# Chart Fixtures
# =============================================================================

DEMO_CHART_YAML = b"""apiVersion: v2
name: demo
description: Demo chart for tests
version: 1.2.3
appVersion: "1.0"
"""

DEMO_VALUES_YAML = b"""replicaCount: 1
image:
  repository: nginx
  tag: "1.25"
service:
  port: 80
"""

DEMO_SERVICE_TEMPLATE = b"""apiVersion: v1
kind: Service
metadata:
  name: {{ .Release.Name }}-demo
spec:
  ports:
    - port: {{ .Values.service.port }}
"""

DEMO_DEPLOYMENT_TEMPLATE = b"""apiVersion: apps/v1
kind: Deployment
metadata:
  name: {{ .Release.Name }}-demo
spec:
  replicas: {{ .Values.replicaCount }}
"""

DEMO_HELPERS = b"""{{- define "demo.name" -}}demo{{- end -}}
"""

# helm template 출력 형태 (문서마다 provenance 주석)
SAMPLE_RENDER_OUTPUT = """---
# Source: demo/templates/service.yaml
apiVersion: v1
kind: Service
metadata:
  name: rel-demo
spec:
  ports:
    - port: 80
---
# Source: demo/templates/deployment.yaml
apiVersion: apps/v1
kind: Deployment
metadata:
  name: rel-demo
spec:
  replicas: 1
"""


@pytest.fixture
def demo_chart_files() -> dict[str, bytes]:
    """demo 차트 파일 (차트 루트 기준 경로 → 내용)."""
    return {
        "Chart.yaml": DEMO_CHART_YAML,
        "values.yaml": DEMO_VALUES_YAML,
        "templates/service.yaml": DEMO_SERVICE_TEMPLATE,
        "templates/deployment.yaml": DEMO_DEPLOYMENT_TEMPLATE,
        "templates/_helpers.tpl": DEMO_HELPERS,
    }


@pytest.fixture
def chart_dir(tmp_path: Path, demo_chart_files: dict[str, bytes]) -> Path:
    """디스크 위의 demo 차트 디렉터리."""
    root = tmp_path / "src-charts" / "demo"
    for relative_path, content in demo_chart_files.items():
        target = root / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    return root


@pytest.fixture
def demo_uploads(demo_chart_files: dict[str, bytes]) -> list[UploadedFile]:
    """디렉터리 업로드 형태 (선언 경로 = "demo/...")."""
    return [
        UploadedFile(relative_path=f"demo/{relative_path}", content=content)
        for relative_path, content in demo_chart_files.items()
    ]


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """테스트용 Settings (모든 디렉터리는 tmp_path 아래)."""
    return Settings(
        store_dir=tmp_path / "store",
        scratch_dir=tmp_path / "scratch",
        upload_tmp_dir=tmp_path / "uploads",
        max_upload_bytes=1024 * 1024,
        max_upload_files=50,
        helm_bin="helm",
        render_timeout=5.0,
        lock_timeout=2.0,
    )


@pytest.fixture
def default_config_path() -> Path:
    """default.yaml 경로."""
    return Path(__file__).parent.parent / "default.yaml"


@pytest.fixture
def default_config(default_config_path: Path) -> dict:
    """기본 설정 로드."""
    with open(default_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


# =============================================================================
# Engine Fixtures
# =============================================================================


class FakeEngine:
    """
    TemplateEngine 대역.

    호출 인자를 기록하고 고정된 출력을 반환 (error가 있으면 raise).
    """

    def __init__(self, output: str = SAMPLE_RENDER_OUTPUT, error: Exception | None = None):
        self.output = output
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def render(
        self,
        archive: ArchiveContent,
        values: dict[str, Any],
        instance_name: str,
        namespace: str,
    ) -> str:
        self.calls.append(
            {
                "chart": archive.name,
                "version": archive.version,
                "values": values,
                "instance_name": instance_name,
                "namespace": namespace,
            }
        )
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()
