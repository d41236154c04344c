"""
로깅 설정.

모듈마다 logging.getLogger(__name__)를 쓰고, 핸들러/포맷은 여기서 한 번만 구성한다.
"""

import logging

from src.core.config import Settings


def configure_logging(settings: Settings) -> None:
    """
    루트 로거 구성.

    Args:
        settings: log_level, log_format 사용
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format=settings.log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("src").setLevel(level)
