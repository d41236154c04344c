"""
템플릿 엔진 경계: render(archive, values, instance_name, namespace) → manifest 텍스트

엔진 자체(변수 치환, 조건문, 의존성, helper 함수)는 구현하지 않는다.
기본 구현은 `helm template` 호출 (client-only, 클러스터/릴리스 기록 없음).
테스트에서는 같은 Protocol을 만족하는 가짜 엔진으로 교체.
"""

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Protocol

import yaml

from src.charts.packager import save_chart_archive
from src.domain.errors import EngineUnavailableError, ErrorCodes, RenderError
from src.domain.schemas import ArchiveContent

logger = logging.getLogger(__name__)

OVERRIDES_FILENAME = "overrides.yaml"


class TemplateEngine(Protocol):
    """템플릿 엔진 인터페이스."""

    def render(
        self,
        archive: ArchiveContent,
        values: dict[str, Any],
        instance_name: str,
        namespace: str,
    ) -> str:
        """
        차트 렌더.

        Args:
            archive: 로드된 차트
            values: override 값 (기본값 위에 엔진이 deep-merge)
            instance_name: 릴리스 이름
            namespace: 대상 네임스페이스

        Returns:
            여러 문서가 합쳐진 manifest 텍스트

        Raises:
            RenderError: 템플릿 오류 (엔진 메시지 그대로)
        """
        ...


class HelmTemplateEngine:
    """
    `helm template` 기반 엔진.

    Usage:
        engine = HelmTemplateEngine(helm_bin="helm", timeout=30)
        text = engine.render(archive, {"replicaCount": 2}, "my-release", "default")
    """

    def __init__(
        self,
        helm_bin: str = "helm",
        timeout: float = 30.0,
        work_dir: Path | None = None,
    ):
        """
        Args:
            helm_bin: helm 실행 파일
            timeout: 렌더 대기 시간 (초)
            work_dir: 임시 파일 상위 디렉터리 (None이면 시스템 임시 디렉터리)
        """
        self.helm_bin = helm_bin
        self.timeout = timeout
        self.work_dir = work_dir

    def build_command(
        self,
        chart_path: Path,
        values_path: Path,
        instance_name: str,
        namespace: str,
    ) -> list[str]:
        """
        helm template 명령.

        플래그를 먼저 두고 "--" 뒤에 위치 인자 (릴리스 이름이 플래그로 해석되지 않음).
        """
        return [
            self.helm_bin,
            "template",
            f"--namespace={namespace}",
            f"--values={values_path}",
            "--",
            instance_name,
            str(chart_path),
        ]

    def render(
        self,
        archive: ArchiveContent,
        values: dict[str, Any],
        instance_name: str,
        namespace: str,
    ) -> str:
        if self.work_dir is not None:
            self.work_dir.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(prefix="render-", dir=self.work_dir) as tmp:
            tmp_dir = Path(tmp)

            if archive.source is not None and archive.source.is_file():
                chart_path = archive.source
            else:
                chart_path = save_chart_archive(archive, tmp_dir / "chart")

            values_path = tmp_dir / OVERRIDES_FILENAME
            values_path.write_text(
                yaml.safe_dump(values or {}, default_flow_style=False, allow_unicode=True),
                encoding="utf-8",
            )

            cmd = self.build_command(chart_path, values_path, instance_name, namespace)
            logger.debug(f"Running: {' '.join(cmd)}")

            try:
                result = subprocess.run(
                    cmd,
                    capture_output=True,
                    encoding="utf-8",
                    errors="replace",
                    timeout=self.timeout,
                    check=False,
                )
            except FileNotFoundError as e:
                raise EngineUnavailableError(
                    f"Template engine not found: {self.helm_bin}",
                    helm_bin=self.helm_bin,
                ) from e
            except subprocess.TimeoutExpired as e:
                raise RenderError(
                    f"Render timed out after {self.timeout:g}s",
                    code=ErrorCodes.RENDER_TIMEOUT,
                    timeout=self.timeout,
                ) from e

        if result.returncode != 0:
            message = result.stderr.strip() or f"{self.helm_bin} exited with status {result.returncode}"
            raise RenderError(
                message,
                chart=archive.name,
                returncode=result.returncode,
            )

        return result.stdout
