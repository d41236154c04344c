"""
Charts layer: 업로드 복원, 패키징, 저장소.

- reconstruct.py → 디렉터리 업로드를 임시 차트 트리로 복원
- packager.py → 차트 디렉터리/아카이브 로드, {name}-{version}.tgz 생성
- store.py → 평면 파일 저장소
"""

from .packager import (
    load_chart_archive,
    load_chart_dir,
    package_chart_dir,
    save_chart_archive,
)
from .reconstruct import PathReconstructor, resolve_within, strip_common_root
from .store import ChartStore, parse_archive_filename

__all__ = [
    # packager
    "load_chart_archive",
    "load_chart_dir",
    "package_chart_dir",
    "save_chart_archive",
    # reconstruct
    "PathReconstructor",
    "resolve_within",
    "strip_common_root",
    # store
    "ChartStore",
    "parse_archive_filename",
]
