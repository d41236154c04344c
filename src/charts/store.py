"""
Chart Store: {name}-{version}.tgz 평면 파일 저장소.

구조:
<store_dir>/
├── demo-1.2.3.tgz
├── demo-1.3.0.tgz
└── .locks/            # 파일명별 쓰기 락

규칙:
- put: 선언된 파일명 그대로 저장, 이미 있으면 조용히 덮어씀 (last writer wins)
- 쓰기는 temp → os.replace (읽는 쪽은 부분 파일을 보지 않음)
- 같은 파일명에 대한 동시 쓰기는 FileLock으로 직렬화 (중복 방지는 하지 않음)
"""

import logging
import re
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout

from src.charts.packager import load_chart_archive
from src.core.fs import atomic_write_bytes
from src.domain.constants import (
    ARCHIVE_EXTENSION,
    STORE_LOCKS_DIR,
    get_archive_filename,
    has_path_separator,
)
from src.domain.errors import (
    ChartNotFoundError,
    InvalidRequestError,
    InvalidUploadError,
    StoreLockTimeoutError,
)
from src.domain.schemas import ArchiveContent, StoredArchive

logger = logging.getLogger(__name__)

# SemVer 2 (선택적 "v" 접두사)
SEMVER_PATTERN = re.compile(
    r"v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*)?"
    r"(?:\+[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*)?"
)


def parse_archive_filename(filename: str) -> tuple[str, str] | None:
    """
    저장소 파일명 → (name, version).

    규칙: 확장자를 뗀 stem에서 뒤쪽 전체가 SemVer 2 (선택적 "v")인
    가장 왼쪽 "-"가 이름과 버전의 경계.

    예:
        demo-1.2.3.tgz          → ("demo", "1.2.3")
        demo-1.0.0-rc.1.tgz     → ("demo", "1.0.0-rc.1")
        demo-v2.0.0-rc.1.tgz    → ("demo", "v2.0.0-rc.1")
        demo-extra-1.0.0.tgz    → ("demo-extra", "1.0.0")
        app-2fa-1.0.0.tgz       → ("app-2fa", "1.0.0")
        demo.tgz                → None

    Args:
        filename: 저장소 파일명

    Returns:
        (name, version) 또는 None (규칙에 맞지 않으면)
    """
    if not filename.endswith(ARCHIVE_EXTENSION):
        return None
    stem = filename[: -len(ARCHIVE_EXTENSION)]

    index = stem.find("-", 1)
    while index != -1:
        version = stem[index + 1:]
        if SEMVER_PATTERN.fullmatch(version):
            return stem[:index], version
        index = stem.find("-", index + 1)
    return None


def validate_archive_filename(filename: str) -> None:
    """
    put에 넘어온 파일명 검증.

    Raises:
        InvalidUploadError: 구분자 포함, 숨김 파일, .tgz 아님
    """
    if not filename or has_path_separator(filename) or filename.startswith("."):
        raise InvalidUploadError(
            f"Invalid archive filename: {filename!r}",
            filename=filename,
        )
    if not filename.endswith(ARCHIVE_EXTENSION) or filename == ARCHIVE_EXTENSION:
        raise InvalidUploadError(
            f"Archive filename must end with {ARCHIVE_EXTENSION}: {filename!r}",
            filename=filename,
        )


class ChartStore:
    """
    차트 아카이브 저장소.

    Usage:
        store = ChartStore(Path("charts"))
        store.put(data, "demo-1.2.3.tgz")
        content = store.load("demo", "1.2.3")
    """

    # 락 timeout (초)
    LOCK_TIMEOUT = 10.0

    def __init__(
        self,
        store_dir: Path,
        lock_timeout: float | None = None,
        max_extracted_bytes: int | None = None,
    ):
        """
        Args:
            store_dir: 저장소 디렉터리
            lock_timeout: 쓰기 락 대기 시간 (초)
            max_extracted_bytes: load 시 압축 해제 크기 상한 (None이면 packager 기본값)
        """
        self.store_dir = store_dir
        self.lock_timeout = self.LOCK_TIMEOUT if lock_timeout is None else lock_timeout
        self.max_extracted_bytes = max_extracted_bytes
        self._locks_dir = store_dir / STORE_LOCKS_DIR

    @contextmanager
    def _write_lock(self, filename: str) -> Generator[None, None, None]:
        """
        파일명별 쓰기 락.

        Raises:
            StoreLockTimeoutError
        """
        self._locks_dir.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self._locks_dir / f"{filename}.lock", timeout=self.lock_timeout)

        try:
            lock.acquire()
        except Timeout as e:
            raise StoreLockTimeoutError(
                f"Failed to acquire store lock for '{filename}'",
                filename=filename,
                timeout=self.lock_timeout,
            ) from e

        try:
            yield
        finally:
            lock.release()

    # =========================================================================
    # Write
    # =========================================================================

    def put(self, data: bytes, declared_filename: str) -> StoredArchive:
        """
        아카이브 저장 (덮어쓰기 허용).

        Args:
            data: 아카이브 바이트 (그대로 저장)
            declared_filename: 저장할 파일명

        Returns:
            StoredArchive (파일명이 규칙에 맞지 않으면 name=stem, version="")

        Raises:
            InvalidUploadError, StoreLockTimeoutError
        """
        validate_archive_filename(declared_filename)
        self.store_dir.mkdir(parents=True, exist_ok=True)
        target = self.store_dir / declared_filename

        with self._write_lock(declared_filename):
            existed = target.exists()
            atomic_write_bytes(target, data)

        if existed:
            logger.info(f"Overwrote chart archive {declared_filename} ({len(data)} bytes)")
        else:
            logger.info(f"Stored chart archive {declared_filename} ({len(data)} bytes)")

        parsed = parse_archive_filename(declared_filename)
        if parsed is None:
            return StoredArchive(
                name=declared_filename[: -len(ARCHIVE_EXTENSION)],
                version="",
                path=target,
            )
        name, version = parsed
        return StoredArchive(name=name, version=version, path=target)

    # =========================================================================
    # Read
    # =========================================================================

    def list_all(self) -> list[str]:
        """
        저장된 아카이브 파일명 목록 (디렉터리 순서, 정렬 보장 없음).

        저장소 디렉터리가 없으면 빈 목록.
        """
        if not self.store_dir.exists():
            return []

        return [
            entry.name
            for entry in self.store_dir.iterdir()
            if entry.is_file()
            and entry.suffix == ARCHIVE_EXTENSION
            and not entry.name.startswith(".")
        ]

    def list_versions(self, name: str) -> list[str]:
        """
        특정 차트의 저장 파일명 목록.

        parse_archive_filename 규칙으로 얻은 이름이 name과 정확히 같은 것만.
        """
        versions = []
        for filename in self.list_all():
            parsed = parse_archive_filename(filename)
            if parsed is not None and parsed[0] == name:
                versions.append(filename)
        return versions

    def archive_path(self, name: str, version: str) -> Path:
        """
        {store_dir}/{name}-{version}.tgz

        Raises:
            InvalidRequestError: name/version에 경로 구분자 포함
        """
        for label, value in (("name", name), ("version", version)):
            if not value or has_path_separator(value):
                raise InvalidRequestError(
                    f"Invalid chart {label}: {value!r}",
                    field=label,
                )
        return self.store_dir / get_archive_filename(name, version)

    def load(self, name: str, version: str) -> ArchiveContent:
        """
        아카이브 로드.

        Args:
            name: 차트 이름
            version: 차트 버전

        Returns:
            ArchiveContent (source = 저장소 경로)

        Raises:
            ChartNotFoundError: 파일 없음 또는 읽기 실패
            MalformedArchiveError: 차트 아카이브가 아님
        """
        path = self.archive_path(name, version)
        if not path.is_file():
            raise ChartNotFoundError(
                f"Chart '{path.name}' not found",
                name=name,
                version=version,
            )

        try:
            return load_chart_archive(path, max_extracted_bytes=self.max_extracted_bytes)
        except OSError as e:
            raise ChartNotFoundError(
                f"Chart '{path.name}' could not be read: {e}",
                name=name,
                version=version,
            ) from e
