"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uv run uvicorn src.app.main:app --reload
- 프로덕션: uv run uvicorn src.app.main:app
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.app.routes import charts
from src.app.services.charts import ChartService
from src.core.config import Settings, load_settings
from src.core.logging import configure_logging
from src.render.engine import TemplateEngine

# =============================================================================
# App Factory
# =============================================================================


def create_app(
    settings: Settings | None = None,
    engine: TemplateEngine | None = None,
) -> FastAPI:
    """
    애플리케이션 생성.

    Args:
        settings: 서비스 설정 (None이면 default.yaml + 환경 변수)
        engine: 템플릿 엔진 (None이면 helm template)

    Returns:
        FastAPI 앱
    """
    if settings is None:
        settings = load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        애플리케이션 생명주기 관리.

        시작 시: 로깅 구성, ChartService 생성
        """
        configure_logging(settings)
        app.state.settings = settings
        app.state.chart_service = ChartService(settings, engine=engine)

        yield

    app = FastAPI(
        title="Chart Render Service",
        description="차트 아카이브 저장 → 기본값 조회 → values/릴리스 이름/네임스페이스로 렌더",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # API 라우트
    app.include_router(charts.api_router, prefix="/api/charts", tags=["Charts API"])

    @app.get("/health")
    async def health() -> dict[str, str]:
        """헬스 체크."""
        return {"status": "ok"}

    @app.get("/")
    async def root() -> dict[str, Any]:
        return {
            "message": "Chart Render Service",
            "endpoints": {
                "charts": "/api/charts",
                "health": "/health",
            },
        }

    return app


app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8080,
        reload=True,
    )
