"""
FastAPI Routes.

API 라우트 (JSON)
"""

from . import charts

__all__ = ["charts"]
