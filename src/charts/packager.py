"""
Packager: 차트 디렉터리 ↔ ArchiveContent ↔ {name}-{version}.tgz

아카이브 포맷 (helm package와 동일한 레이아웃):
- gzip tar
- 모든 멤버는 "{name}/" 아래
- Chart.yaml → values.yaml → 나머지 파일 순

규칙:
- 패키징은 저장소에 직접 쓰지 않음 (호출자가 ChartStore.put으로 넘김)
- Chart.yaml 누락/파싱 실패, name/version 비어 있음 → MalformedArchiveError
"""

import io
import logging
import posixpath
import tarfile
import time
from pathlib import Path
from typing import Any

import yaml

from src.domain.constants import (
    CHART_METADATA_FILENAME,
    CHART_VALUES_FILENAME,
    get_archive_filename,
    has_path_separator,
)
from src.domain.errors import MalformedArchiveError
from src.domain.schemas import ArchiveContent, ArchiveFile

logger = logging.getLogger(__name__)

ARCHIVE_FILE_MODE = 0o644

# 압축 해제 후 멤버 크기 합계 상한 (bytes)
MAX_EXTRACTED_BYTES = 200 * 1024 * 1024


# =============================================================================
# Metadata / Values
# =============================================================================


def parse_chart_metadata(raw: bytes, origin: str = CHART_METADATA_FILENAME) -> dict[str, Any]:
    """
    Chart.yaml 파싱 + name/version 검증.

    숫자로 파싱된 name/version (예: version: 1.0)은 문자열로 변환.

    Args:
        raw: Chart.yaml 내용
        origin: 에러 메시지용 위치

    Returns:
        메타데이터 dict

    Raises:
        MalformedArchiveError
    """
    try:
        metadata = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise MalformedArchiveError(
            f"{origin} is not valid YAML: {e}",
            origin=origin,
        ) from e

    if not isinstance(metadata, dict):
        raise MalformedArchiveError(
            f"{origin} must be a mapping",
            origin=origin,
        )

    for key in ("name", "version"):
        value = metadata.get(key)
        if isinstance(value, bool) or value is None:
            value = ""
        value = str(value).strip()
        if not value:
            raise MalformedArchiveError(
                f"{origin} has an empty '{key}'",
                origin=origin,
                field=key,
            )
        if has_path_separator(value) or value in (".", ".."):
            raise MalformedArchiveError(
                f"{origin} '{key}' must not contain path separators: {value!r}",
                origin=origin,
                field=key,
            )
        metadata[key] = value

    return metadata


def parse_chart_values(raw: bytes | None, origin: str = CHART_VALUES_FILENAME) -> dict[str, Any]:
    """values.yaml 파싱. 없거나 비어 있으면 {}."""
    if raw is None:
        return {}
    try:
        values = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise MalformedArchiveError(
            f"{origin} is not valid YAML: {e}",
            origin=origin,
        ) from e

    if values is None:
        return {}
    if not isinstance(values, dict):
        raise MalformedArchiveError(
            f"{origin} must be a mapping",
            origin=origin,
        )
    return values


def _build_content(
    raw_metadata: bytes | None,
    raw_values: bytes | None,
    files: list[ArchiveFile],
    origin: str,
    source: Path | None = None,
) -> ArchiveContent:
    if raw_metadata is None:
        raise MalformedArchiveError(
            f"{CHART_METADATA_FILENAME} not found in {origin}",
            origin=origin,
        )

    return ArchiveContent(
        metadata=parse_chart_metadata(raw_metadata, f"{origin}/{CHART_METADATA_FILENAME}"),
        default_values=parse_chart_values(raw_values, f"{origin}/{CHART_VALUES_FILENAME}"),
        files=files,
        raw_metadata=raw_metadata,
        raw_values=raw_values,
        source=source,
    )


# =============================================================================
# Load
# =============================================================================


def load_chart_dir(chart_dir: Path) -> ArchiveContent:
    """
    차트 디렉터리 로드.

    Chart.yaml (필수), values.yaml (선택) 외 모든 일반 파일을
    정렬된 상대 경로 순으로 수집. 심볼릭 링크는 건너뜀.

    Args:
        chart_dir: 차트 루트 (Chart.yaml이 있는 디렉터리)

    Returns:
        ArchiveContent

    Raises:
        MalformedArchiveError
    """
    if not chart_dir.is_dir():
        raise MalformedArchiveError(
            f"Chart directory not found: {chart_dir}",
            path=str(chart_dir),
        )

    raw_metadata: bytes | None = None
    raw_values: bytes | None = None
    files: list[ArchiveFile] = []

    for path in sorted(chart_dir.rglob("*")):
        if path.is_symlink():
            logger.warning(f"Skipping symlink in chart directory: {path}")
            continue
        if not path.is_file():
            continue

        relative_path = path.relative_to(chart_dir).as_posix()
        data = path.read_bytes()

        if relative_path == CHART_METADATA_FILENAME:
            raw_metadata = data
        elif relative_path == CHART_VALUES_FILENAME:
            raw_values = data
        else:
            files.append(ArchiveFile(relative_path=relative_path, data=data))

    return _build_content(raw_metadata, raw_values, files, origin=chart_dir.name)


def load_chart_archive(source: Path | bytes, max_extracted_bytes: int | None = None) -> ArchiveContent:
    """
    .tgz 아카이브 로드.

    멤버를 순서대로 읽으며 선언된 크기(member.size) 누적 합계가 상한을
    넘으면 내용을 읽기 전에 중단.

    Args:
        source: 아카이브 경로 또는 바이트
        max_extracted_bytes: 압축 해제 크기 상한 (None이면 MAX_EXTRACTED_BYTES)

    Returns:
        ArchiveContent (경로로 로드한 경우 source 설정)

    Raises:
        MalformedArchiveError: gzip/tar 아님, 위험한 멤버 경로, 루트 디렉터리 불일치,
            Chart.yaml 누락/오류, 압축 해제 크기 초과
    """
    limit = MAX_EXTRACTED_BYTES if max_extracted_bytes is None else max_extracted_bytes
    if isinstance(source, Path):
        data = source.read_bytes()
        origin = source.name
        source_path: Path | None = source
    else:
        data = source
        origin = "<upload>"
        source_path = None

    raw_metadata: bytes | None = None
    raw_values: bytes | None = None
    files: list[ArchiveFile] = []
    root: str | None = None
    extracted_total = 0

    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            for member in tar:
                if not member.isfile():
                    continue

                name = member.name
                normalized = posixpath.normpath(name)
                if name.startswith("/") or normalized.startswith("..") or "/" not in normalized:
                    raise MalformedArchiveError(
                        f"Unsafe or unexpected archive member: {name!r}",
                        origin=origin,
                        member=name,
                    )

                member_root, relative_path = normalized.split("/", 1)
                if root is None:
                    root = member_root
                elif member_root != root:
                    raise MalformedArchiveError(
                        f"Archive members span multiple top-level directories: {root!r}, {member_root!r}",
                        origin=origin,
                    )

                extracted_total += member.size
                if extracted_total > limit:
                    raise MalformedArchiveError(
                        f"{origin} expands beyond {limit} bytes",
                        origin=origin,
                        limit=limit,
                    )

                extracted = tar.extractfile(member)
                if extracted is None:
                    continue
                content = extracted.read()

                if relative_path == CHART_METADATA_FILENAME:
                    raw_metadata = content
                elif relative_path == CHART_VALUES_FILENAME:
                    raw_values = content
                else:
                    files.append(ArchiveFile(relative_path=relative_path, data=content))
    except (tarfile.TarError, EOFError, OSError) as e:
        raise MalformedArchiveError(
            f"{origin} is not a valid chart archive: {e}",
            origin=origin,
        ) from e

    return _build_content(raw_metadata, raw_values, files, origin=origin, source=source_path)


# =============================================================================
# Save
# =============================================================================


def _add_member(tar: tarfile.TarFile, arcname: str, data: bytes, mtime: int) -> None:
    info = tarfile.TarInfo(name=arcname)
    info.size = len(data)
    info.mode = ARCHIVE_FILE_MODE
    info.mtime = mtime
    tar.addfile(info, io.BytesIO(data))


def save_chart_archive(content: ArchiveContent, out_dir: Path) -> Path:
    """
    ArchiveContent → {out_dir}/{name}-{version}.tgz

    Args:
        content: 로드된 차트
        out_dir: 출력 디렉터리 (없으면 생성)

    Returns:
        생성된 아카이브 경로
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    archive_path = out_dir / get_archive_filename(content.name, content.version)

    raw_values = content.raw_values
    if raw_values is None and content.default_values:
        raw_values = yaml.safe_dump(
            content.default_values, default_flow_style=False, allow_unicode=True
        ).encode("utf-8")

    prefix = content.name
    mtime = int(time.time())

    with tarfile.open(archive_path, "w:gz") as tar:
        _add_member(tar, f"{prefix}/{CHART_METADATA_FILENAME}", content.raw_metadata, mtime)
        if raw_values is not None:
            _add_member(tar, f"{prefix}/{CHART_VALUES_FILENAME}", raw_values, mtime)
        for archive_file in content.files:
            _add_member(tar, f"{prefix}/{archive_file.relative_path}", archive_file.data, mtime)

    return archive_path


def package_chart_dir(chart_dir: Path, out_dir: Path) -> Path:
    """
    차트 디렉터리 패키징.

    Args:
        chart_dir: 차트 루트
        out_dir: 출력 디렉터리 (저장소 아님)

    Returns:
        {out_dir}/{name}-{version}.tgz
    """
    content = load_chart_dir(chart_dir)
    archive_path = save_chart_archive(content, out_dir)
    logger.info(
        f"Packaged chart {content.name}-{content.version} "
        f"({len(content.files)} files) → {archive_path}"
    )
    return archive_path
