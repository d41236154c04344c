"""
Render Orchestrator: RenderRequest + ArchiveContent → 엔진 출력 텍스트

규칙:
- instance_name 비어 있거나 helm 릴리스 이름 규칙 위반 → 엔진 호출 전에 InvalidRequestError
- namespace 비어 있으면 "default", DNS-1123 label 아니면 InvalidRequestError
- override 병합은 엔진의 deep-merge에 위임 (여기서 병합하지 않음)
- 엔진 출력은 그대로 반환
"""

import logging
import re
from typing import Any

from src.domain.constants import (
    DEFAULT_NAMESPACE,
    DNS_LABEL_PATTERN,
    MAX_NAMESPACE_LENGTH,
    MAX_RELEASE_NAME_LENGTH,
)
from src.domain.errors import InvalidRequestError
from src.domain.schemas import ArchiveContent, RenderRequest
from src.render.engine import TemplateEngine

logger = logging.getLogger(__name__)

DNS_LABEL_RE = re.compile(DNS_LABEL_PATTERN)


def validate_render_request(request: RenderRequest) -> RenderRequest:
    """
    렌더 요청 검증 + 기본값 채움.

    Returns:
        같은 요청 (namespace, override_values 정규화됨)

    Raises:
        InvalidRequestError
    """
    if not request.instance_name or not request.instance_name.strip():
        raise InvalidRequestError(
            "Release name is required",
            field="name",
        )

    if (
        len(request.instance_name) > MAX_RELEASE_NAME_LENGTH
        or not DNS_LABEL_RE.fullmatch(request.instance_name)
    ):
        raise InvalidRequestError(
            f"Invalid release name {request.instance_name!r}: must be lowercase "
            f"alphanumerics or '-', start and end with an alphanumeric, "
            f"at most {MAX_RELEASE_NAME_LENGTH} characters",
            field="name",
        )

    if request.override_values is None:
        request.override_values = {}
    if not isinstance(request.override_values, dict):
        raise InvalidRequestError(
            "values must be an object",
            field="values",
        )

    if not request.namespace:
        request.namespace = DEFAULT_NAMESPACE
    if (
        len(request.namespace) > MAX_NAMESPACE_LENGTH
        or not DNS_LABEL_RE.fullmatch(request.namespace)
    ):
        raise InvalidRequestError(
            f"Invalid namespace {request.namespace!r}",
            field="namespace",
        )

    return request


class RenderOrchestrator:
    """
    엔진 호출 조정자.

    Usage:
        orchestrator = RenderOrchestrator(HelmTemplateEngine())
        text = orchestrator.render(request, archive)
    """

    def __init__(self, engine: TemplateEngine):
        self.engine = engine

    def render(self, request: RenderRequest, archive: ArchiveContent) -> str:
        """
        차트 렌더.

        Args:
            request: 렌더 요청
            archive: ChartStore.load로 읽은 차트

        Returns:
            엔진의 manifest 텍스트 (가공 없음)

        Raises:
            InvalidRequestError: 요청 오류 (엔진 호출 없음)
            RenderError: 엔진이 보고한 템플릿 오류
        """
        request = validate_render_request(request)
        values: dict[str, Any] = request.override_values

        logger.info(
            f"Rendering {archive.name}-{archive.version} "
            f"as '{request.instance_name}' in namespace '{request.namespace}'"
        )
        return self.engine.render(archive, values, request.instance_name, request.namespace)
