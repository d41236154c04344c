"""
Core layer: 설정, 로깅, 파일시스템 안전 유틸.

역할:
- Settings 로드 (default.yaml + 환경 변수)
- 원자적 쓰기, 임시 디렉터리 정리
"""

from .config import Settings, load_config, load_settings
from .fs import atomic_write_bytes, remove_tree
from .logging import configure_logging

__all__ = [
    # config
    "Settings",
    "load_config",
    "load_settings",
    # fs
    "atomic_write_bytes",
    "remove_tree",
    # logging
    "configure_logging",
]
