"""
파일시스템 유틸: 원자적 쓰기, 임시 디렉터리 정리.

파일시스템 안정성 (best-effort):
- 중간 상태 없음: temp → os.replace
- fsync로 가능한 환경에서 내구성 강화 (파일 + 디렉토리)
- fsync 실패 시 경고 남기고 계속 진행
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def _fsync_dir(dir_path: Path) -> None:
    """
    디렉토리 fsync (가능한 환경에서).

    Args:
        dir_path: fsync할 디렉토리 경로
    """
    try:
        dir_fd = os.open(str(dir_path), os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
    except (OSError, AttributeError) as e:
        # O_DIRECTORY 미지원, 권한 문제 등
        logger.warning(
            f"Directory fsync failed for {dir_path}: {e}. "
            f"Rename durability may not be guaranteed."
        )


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """
    원자적 바이너리 쓰기.

    동작:
    - 같은 디렉터리에 .tmp 파일로 쓴 뒤 os.replace (기존 파일은 통째로 교체)
    - 읽는 쪽은 이전 내용 또는 새 내용만 보게 됨
    - 실패 시 temp 파일 삭제, 기존 파일 보존

    Args:
        path: 저장할 파일 경로
        data: 파일 내용
    """
    dir_path = path.parent
    dir_path.mkdir(parents=True, exist_ok=True)

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=dir_path,
            prefix=".",
            suffix=".tmp",
            delete=False,
        ) as f:
            temp_path = Path(f.name)
            f.write(data)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError as e:
                logger.warning(
                    f"File fsync failed for {path}: {e}. "
                    f"Data may not be durable on power loss."
                )

        os.replace(temp_path, path)
        _fsync_dir(dir_path)

    except Exception:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError as cleanup_error:
                logger.warning(f"Failed to remove temp file {temp_path}: {cleanup_error}")
        raise


def remove_tree(path: Path) -> None:
    """
    임시 디렉터리 재귀 삭제.

    삭제 실패는 요청 결과를 바꾸지 않으므로 경고만 남긴다.
    """
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError as e:
        logger.warning(f"Failed to remove temporary directory {path}: {e}")
