"""
Application Services.

역할:
- charts: 업로드/패키징/저장/렌더 파이프라인 조합
"""

from .charts import ChartService

__all__ = [
    "ChartService",
]
