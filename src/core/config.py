"""
설정 로드: default.yaml + .env + 환경 변수.

우선순위 (높은 것부터):
1. 환경 변수 (CHART_STORE_DIR, HELM_BIN 등)
2. CHART_SERVICE_CONFIG 또는 인자로 지정한 YAML
3. 프로젝트 루트의 default.yaml
4. Settings 기본값

모든 컴포넌트는 Settings를 생성자로 주입받는다 (전역 상태 읽기 금지).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "default.yaml"

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """설정 파일 로드 (없으면 빈 dict)."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[str, Any] | None = yaml.safe_load(f)
        return data or {}


def _resolve(base_dir: Path, value: str | Path | None) -> Path | None:
    if value is None or value == "":
        return None
    path = Path(value)
    return path if path.is_absolute() else base_dir / path


@dataclass
class Settings:
    """서비스 설정."""

    store_dir: Path = PROJECT_ROOT / "charts"
    scratch_dir: Path = PROJECT_ROOT / "temp"
    upload_tmp_dir: Path | None = None  # None이면 시스템 임시 디렉터리

    max_upload_bytes: int = 50 * 1024 * 1024
    max_upload_files: int = 2000
    max_extracted_bytes: int = 200 * 1024 * 1024  # 아카이브 압축 해제 크기 상한

    helm_bin: str = "helm"
    render_timeout: float = 30.0

    lock_timeout: float = 10.0

    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT

    cors_allow_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_dir: Path = PROJECT_ROOT) -> "Settings":
        """
        YAML 구조 → Settings.

        상대 경로는 base_dir (설정 파일 위치) 기준으로 해석.
        """
        defaults = cls()
        paths = data.get("paths", {}) or {}
        upload = data.get("upload", {}) or {}
        render = data.get("render", {}) or {}
        store = data.get("store", {}) or {}
        logging_cfg = data.get("logging", {}) or {}
        cors = data.get("cors", {}) or {}

        return cls(
            store_dir=_resolve(base_dir, paths.get("store_dir")) or defaults.store_dir,
            scratch_dir=_resolve(base_dir, paths.get("scratch_dir")) or defaults.scratch_dir,
            upload_tmp_dir=_resolve(base_dir, paths.get("upload_tmp_dir")),
            max_upload_bytes=int(upload.get("max_total_bytes", defaults.max_upload_bytes)),
            max_upload_files=int(upload.get("max_files", defaults.max_upload_files)),
            max_extracted_bytes=int(upload.get("max_extracted_bytes", defaults.max_extracted_bytes)),
            helm_bin=str(render.get("helm_bin", defaults.helm_bin)),
            render_timeout=float(render.get("timeout_seconds", defaults.render_timeout)),
            lock_timeout=float(store.get("lock_timeout_seconds", defaults.lock_timeout)),
            log_level=str(logging_cfg.get("level", defaults.log_level)),
            log_format=str(logging_cfg.get("format", defaults.log_format)),
            cors_allow_origins=list(cors.get("allow_origins", defaults.cors_allow_origins)),
        )

    def apply_env(self, environ: dict[str, str] | None = None) -> "Settings":
        """환경 변수 오버라이드 적용 (self를 수정하고 반환)."""
        env = os.environ if environ is None else environ

        if env.get("CHART_STORE_DIR"):
            self.store_dir = Path(env["CHART_STORE_DIR"])
        if env.get("CHART_SCRATCH_DIR"):
            self.scratch_dir = Path(env["CHART_SCRATCH_DIR"])
        if env.get("CHART_UPLOAD_TMP_DIR"):
            self.upload_tmp_dir = Path(env["CHART_UPLOAD_TMP_DIR"])
        if env.get("HELM_BIN"):
            self.helm_bin = env["HELM_BIN"]
        if env.get("HELM_RENDER_TIMEOUT"):
            self.render_timeout = float(env["HELM_RENDER_TIMEOUT"])
        if env.get("LOG_LEVEL"):
            self.log_level = env["LOG_LEVEL"]

        return self


def load_settings(config_path: Path | None = None) -> Settings:
    """
    .env → YAML → 환경 변수 순으로 Settings 구성.

    Args:
        config_path: 설정 파일 경로 (None이면 CHART_SERVICE_CONFIG 또는 default.yaml)

    Returns:
        Settings
    """
    load_dotenv()

    if config_path is None and os.environ.get("CHART_SERVICE_CONFIG"):
        config_path = Path(os.environ["CHART_SERVICE_CONFIG"])
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    data = load_config(config_path)
    settings = Settings.from_dict(data, base_dir=config_path.parent)
    return settings.apply_env()
