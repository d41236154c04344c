#!/usr/bin/env python3
"""
package_chart.py - 차트 디렉터리 패키징 / 저장소 조회 스크립트

서버와 같은 설정(default.yaml + 환경 변수)을 사용:
- package: 차트 디렉터리 → {name}-{version}.tgz (저장소 또는 --out)
- list: 저장된 아카이브 목록
- versions: 특정 차트의 아카이브 목록

사용법:
    # 저장소에 패키징
    uv run python scripts/package_chart.py package ./charts-src/demo

    # 지정 디렉터리에 패키징 (저장소 미사용)
    uv run python scripts/package_chart.py package ./charts-src/demo --out ./dist

    # 목록
    uv run python scripts/package_chart.py list
    uv run python scripts/package_chart.py versions demo
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.charts.packager import package_chart_dir  # noqa: E402
from src.charts.store import ChartStore  # noqa: E402
from src.core.config import Settings, load_settings  # noqa: E402
from src.core.logging import configure_logging  # noqa: E402
from src.domain.errors import ChartError  # noqa: E402

logger = logging.getLogger(__name__)


def cmd_package(settings: Settings, chart_dir: Path, out_dir: Path | None) -> int:
    if not chart_dir.is_dir():
        logger.error(f"차트 디렉터리 없음: {chart_dir}")
        return 1

    if out_dir is not None:
        archive_path = package_chart_dir(chart_dir, out_dir)
        print(archive_path)
        return 0

    # 저장소 경유 (락 + 원자적 쓰기)
    store = ChartStore(settings.store_dir, lock_timeout=settings.lock_timeout)
    settings.scratch_dir.mkdir(parents=True, exist_ok=True)
    archive_path = package_chart_dir(chart_dir, settings.scratch_dir)
    try:
        stored = store.put(archive_path.read_bytes(), archive_path.name)
    finally:
        archive_path.unlink(missing_ok=True)
    print(stored.path)
    return 0


def cmd_list(settings: Settings) -> int:
    store = ChartStore(settings.store_dir, lock_timeout=settings.lock_timeout)
    for filename in store.list_all():
        print(filename)
    return 0


def cmd_versions(settings: Settings, name: str) -> int:
    store = ChartStore(settings.store_dir, lock_timeout=settings.lock_timeout)
    for filename in store.list_versions(name):
        print(filename)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="차트 패키징 / 저장소 조회 스크립트",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="설정 파일 경로 (기본: default.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    package = subparsers.add_parser("package", help="차트 디렉터리 패키징")
    package.add_argument("chart_dir", type=str, help="Chart.yaml이 있는 디렉터리")
    package.add_argument(
        "--out",
        type=str,
        default=None,
        help="출력 디렉터리 (기본: 저장소)",
    )

    subparsers.add_parser("list", help="저장된 아카이브 목록")

    versions = subparsers.add_parser("versions", help="차트별 아카이브 목록")
    versions.add_argument("name", type=str, help="차트 이름")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = load_settings(Path(args.config) if args.config else None)
    configure_logging(settings)

    try:
        if args.command == "package":
            out_dir = Path(args.out) if args.out else None
            return cmd_package(settings, Path(args.chart_dir), out_dir)
        if args.command == "list":
            return cmd_list(settings)
        return cmd_versions(settings, args.name)
    except ChartError as e:
        logger.error(f"[{e.code}] {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
