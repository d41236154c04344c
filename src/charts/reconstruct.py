"""
Path Reconstructor: (업로드 파일, 선언 경로) 목록 → 임시 차트 디렉터리.

규칙:
- 공통 루트 = 첫 번째 항목의 첫 경로 컴포넌트, 모든 항목에서 제거
- 경로 탈출 (.., 절대 경로) → PathTraversalError, 어떤 파일도 쓰기 전에 검사
- Chart.yaml, values.yaml 필수 → InvalidUploadError
- 임시 루트는 요청 전용, 성공/실패/중단 모두 재귀 삭제
"""

import logging
import posixpath
import re
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from src.core.fs import remove_tree
from src.domain.constants import REQUIRED_UPLOAD_FILES
from src.domain.errors import (
    ErrorCodes,
    InvalidUploadError,
    PathTraversalError,
    UploadTooLargeError,
)
from src.domain.schemas import UploadedFile, UploadSession

logger = logging.getLogger(__name__)

WINDOWS_DRIVE_PATTERN = re.compile(r"^[A-Za-z]:")
TEMP_DIR_PREFIX = "chart-"


# =============================================================================
# Path Helpers
# =============================================================================


def _split_declared(declared_path: str) -> list[str]:
    """선언 경로 → 컴포넌트 목록 (역슬래시는 / 로 취급)."""
    if "\x00" in declared_path:
        raise InvalidUploadError(
            "Declared path contains a NUL byte",
            path=declared_path,
        )
    normalized = declared_path.replace("\\", "/")
    if normalized.startswith("/") or WINDOWS_DRIVE_PATTERN.match(normalized):
        raise PathTraversalError(
            f"Absolute path is not allowed: {declared_path!r}",
            path=declared_path,
        )
    return normalized.split("/")


def normalize_relative_path(relative_path: str) -> str:
    """
    상대 경로 정규화 (lexical).

    Returns:
        정규화된 posix 경로

    Raises:
        PathTraversalError: 루트 밖으로 벗어나는 경로
        InvalidUploadError: 루트 자체를 가리키는 경로
    """
    normalized = posixpath.normpath(relative_path.replace("\\", "/"))
    if normalized.startswith("/") or normalized == ".." or normalized.startswith("../"):
        raise PathTraversalError(
            f"Path escapes the upload root: {relative_path!r}",
            path=relative_path,
        )
    if normalized in ("", "."):
        raise InvalidUploadError(
            f"Path does not name a file: {relative_path!r}",
            path=relative_path,
        )
    return normalized


def resolve_within(root: Path, relative_path: str) -> Path:
    """
    root 아래 실제 대상 경로 계산.

    lexical 검사 + 실제 루트 기준 resolve 검사 (둘 다 통과해야 함).

    Raises:
        PathTraversalError
    """
    normalized = normalize_relative_path(relative_path)
    resolved_root = root.resolve()
    target = (resolved_root / normalized).resolve()
    if not target.is_relative_to(resolved_root) or target == resolved_root:
        raise PathTraversalError(
            f"Path escapes the upload root: {relative_path!r}",
            path=relative_path,
        )
    return target


def strip_common_root(files: list[UploadedFile]) -> list[UploadedFile]:
    """
    공통 루트 제거 + 경로 정규화.

    공통 루트는 첫 번째 항목의 첫 컴포넌트.

    Args:
        files: 선언 경로를 가진 업로드 파일 목록

    Returns:
        차트 루트 기준 상대 경로로 바뀐 새 목록 (입력 순서 유지)

    Raises:
        InvalidUploadError: 빈 목록, 루트 불일치, 루트만 있는 항목, 중복 경로
        PathTraversalError: 루트 밖으로 벗어나는 경로
    """
    if not files:
        raise InvalidUploadError("No files uploaded")

    first_parts = _split_declared(files[0].relative_path)
    root = first_parts[0]
    if root in ("", ".", ".."):
        raise PathTraversalError(
            f"Invalid common root in {files[0].relative_path!r}",
            path=files[0].relative_path,
        )

    stripped: list[UploadedFile] = []
    seen: set[str] = set()
    for uploaded in files:
        parts = _split_declared(uploaded.relative_path)
        if parts[0] != root:
            raise InvalidUploadError(
                f"File {uploaded.relative_path!r} is outside the common root {root!r}",
                path=uploaded.relative_path,
                root=root,
            )

        remainder = "/".join(part for part in parts[1:] if part)
        if not remainder:
            raise InvalidUploadError(
                f"Path does not name a file: {uploaded.relative_path!r}",
                path=uploaded.relative_path,
            )

        relative_path = normalize_relative_path(remainder)
        if relative_path in seen:
            raise InvalidUploadError(
                f"Duplicate file in upload: {relative_path!r}",
                path=relative_path,
            )
        seen.add(relative_path)
        stripped.append(UploadedFile(relative_path=relative_path, content=uploaded.content))

    return stripped


def check_required_files(files: list[UploadedFile]) -> None:
    """Chart.yaml, values.yaml이 루트에 있는지 확인."""
    present = {f.relative_path for f in files}
    missing = [name for name in REQUIRED_UPLOAD_FILES if name not in present]
    if missing:
        raise InvalidUploadError(
            f"Required chart files missing: {', '.join(missing)}",
            code=ErrorCodes.MISSING_REQUIRED_FILE,
            missing=missing,
        )


# =============================================================================
# Path Reconstructor
# =============================================================================


class PathReconstructor:
    """
    업로드된 파일들을 요청 전용 임시 디렉터리에 차트 트리로 복원.

    Usage:
        reconstructor = PathReconstructor(max_total_bytes=..., max_files=...)
        with reconstructor.open_session(files) as session:
            package_chart_dir(session.root_dir, out_dir)
    """

    def __init__(
        self,
        temp_parent: Path | None = None,
        max_total_bytes: int | None = None,
        max_files: int | None = None,
    ):
        """
        Args:
            temp_parent: 임시 루트를 만들 상위 디렉터리 (None이면 시스템 임시 디렉터리)
            max_total_bytes: 업로드 전체 크기 제한
            max_files: 업로드 파일 수 제한
        """
        self.temp_parent = temp_parent
        self.max_total_bytes = max_total_bytes
        self.max_files = max_files

    def check_limits(self, files: list[UploadedFile]) -> None:
        """
        파일 수/크기 제한 확인.

        Raises:
            UploadTooLargeError
        """
        if self.max_files is not None and len(files) > self.max_files:
            raise UploadTooLargeError(
                f"Too many files in upload: {len(files)} > {self.max_files}",
                count=len(files),
                limit=self.max_files,
            )

        total = sum(len(f.content) for f in files)
        if self.max_total_bytes is not None and total > self.max_total_bytes:
            raise UploadTooLargeError(
                f"Upload too large: {total} bytes > {self.max_total_bytes}",
                size=total,
                limit=self.max_total_bytes,
            )

    def prepare(self, files: list[UploadedFile]) -> list[UploadedFile]:
        """디스크를 건드리기 전 전체 배치 검증."""
        self.check_limits(files)
        stripped = strip_common_root(files)
        check_required_files(stripped)
        return stripped

    @contextmanager
    def open_session(self, files: list[UploadedFile]) -> Generator[UploadSession, None, None]:
        """
        임시 차트 디렉터리 생성 → yield → 삭제.

        Args:
            files: 선언 경로를 가진 업로드 파일 목록

        Yields:
            UploadSession (root_dir = 차트 루트)

        Raises:
            InvalidUploadError, UploadTooLargeError, PathTraversalError
        """
        entries = self.prepare(files)

        if self.temp_parent is not None:
            self.temp_parent.mkdir(parents=True, exist_ok=True)
        root = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX, dir=self.temp_parent))

        try:
            for entry in entries:
                target = resolve_within(root, entry.relative_path)
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(entry.content)

            logger.debug(f"Reconstructed {len(entries)} files under {root}")
            yield UploadSession(root_dir=root, files=entries)
        finally:
            remove_tree(root)
