"""
Charts Routes: 차트 업로드/조회/렌더 API.

- POST /api/charts → 아카이브 업로드
- POST /api/charts/dir → 디렉터리 업로드 (파트 filename = 상대 경로)
- GET /api/charts → 전체 목록
- GET /api/charts/{name}/versions → 버전 목록
- GET /api/charts/{name}/{version}/values → 기본 values
- GET /api/charts/{name}/{version}/files → 포함 파일 목록
- POST /api/charts/{name}/{version}/render → 렌더
"""

from typing import Any

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from src.app.services.charts import ChartService
from src.domain.constants import DEFAULT_NAMESPACE
from src.domain.errors import ChartError, InvalidUploadError, UploadTooLargeError
from src.domain.schemas import RenderRequest, UploadedFile

api_router = APIRouter()


def get_chart_service(request: Request) -> ChartService:
    """Request에서 ChartService 가져오기."""
    return request.app.state.chart_service


def _http_error(e: ChartError) -> HTTPException:
    return HTTPException(
        status_code=e.status_code,
        detail={"code": e.code, "message": e.message},
    )


async def _read_uploads(parts: list[UploadFile], max_total_bytes: int) -> list[UploadedFile]:
    """
    multipart 파트 → UploadedFile 목록.

    누적 크기가 제한을 넘으면 나머지를 읽지 않고 중단.
    """
    files: list[UploadedFile] = []
    total = 0
    for part in parts:
        if not part.filename:
            raise InvalidUploadError("File path is missing in Content-Disposition header")

        content = await part.read()
        total += len(content)
        if total > max_total_bytes:
            raise UploadTooLargeError(
                f"Upload too large: more than {max_total_bytes} bytes",
                limit=max_total_bytes,
            )
        files.append(UploadedFile(relative_path=part.filename, content=content))
    return files


class RenderBody(BaseModel):
    """렌더 요청 본문."""

    values: dict[str, Any] | None = None
    name: str = ""
    namespace: str | None = None
    files: list[str] | None = None


# =============================================================================
# Upload
# =============================================================================


@api_router.post("")
async def upload_chart(
    request: Request,
    chart: UploadFile | None = File(None),
) -> dict[str, Any]:
    """패키징된 차트 아카이브 업로드."""
    service = get_chart_service(request)
    try:
        if chart is None or not chart.filename:
            raise InvalidUploadError("No chart file uploaded")

        data = await chart.read()
        if len(data) > service.settings.max_upload_bytes:
            raise UploadTooLargeError(
                f"Upload too large: {len(data)} bytes",
                limit=service.settings.max_upload_bytes,
            )
        stored = await run_in_threadpool(service.upload_archive, data, chart.filename)
    except ChartError as e:
        raise _http_error(e) from e

    return {
        "message": "Chart uploaded successfully",
        "chart": stored.to_dict(),
    }


@api_router.post("/dir")
async def upload_chart_dir(
    request: Request,
    chart: list[UploadFile] | None = File(None),
) -> dict[str, Any]:
    """차트 디렉터리 업로드 → 패키징 → 저장."""
    service = get_chart_service(request)
    try:
        if not chart:
            raise InvalidUploadError("No files uploaded")

        files = await _read_uploads(chart, service.settings.max_upload_bytes)
        stored = await run_in_threadpool(service.upload_directory, files)
    except ChartError as e:
        raise _http_error(e) from e

    return {
        "message": "Chart directory uploaded and packaged successfully",
        "chart": stored.to_dict(),
    }


# =============================================================================
# Read
# =============================================================================


@api_router.get("")
async def list_charts(request: Request) -> dict[str, Any]:
    """저장된 차트 파일명 목록."""
    return {"charts": get_chart_service(request).list_charts()}


@api_router.get("/{name}/versions")
async def list_chart_versions(request: Request, name: str) -> dict[str, Any]:
    """특정 차트의 저장 파일명 목록."""
    return {"versions": get_chart_service(request).list_versions(name)}


@api_router.get("/{name}/{version}/values")
async def get_chart_values(request: Request, name: str, version: str) -> dict[str, Any]:
    """차트 기본 values."""
    try:
        values = await run_in_threadpool(get_chart_service(request).get_values, name, version)
    except ChartError as e:
        raise _http_error(e) from e
    return {"values": values}


@api_router.get("/{name}/{version}/files")
async def list_chart_files(request: Request, name: str, version: str) -> dict[str, Any]:
    """차트에 포함된 파일 경로."""
    try:
        files = await run_in_threadpool(get_chart_service(request).list_files, name, version)
    except ChartError as e:
        raise _http_error(e) from e
    return {"files": files}


# =============================================================================
# Render
# =============================================================================


@api_router.post("/{name}/{version}/render")
async def render_chart(
    request: Request,
    name: str,
    version: str,
    body: RenderBody,
) -> dict[str, Any]:
    """
    차트 렌더.

    - files 지정 → {"manifests": "..."} (선택된 템플릿의 원본 텍스트)
    - 미지정 → {"files": {kind: content}, "documents": [...]}
    """
    render_request = RenderRequest(
        chart_name=name,
        chart_version=version,
        instance_name=body.name,
        override_values=body.values or {},
        namespace=body.namespace or DEFAULT_NAMESPACE,
        selected_paths=body.files or [],
    )

    try:
        outcome = await run_in_threadpool(get_chart_service(request).render, render_request)
    except ChartError as e:
        raise _http_error(e) from e

    return outcome.to_response()
