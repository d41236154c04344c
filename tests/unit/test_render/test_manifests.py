"""
test_manifests.py - 렌더 출력 분리/필터 테스트

테스트 케이스:
- "---" 기준 분리, 빈 segment 제외
- provenance 경로 추출
- 파싱 불가/kind 없음 문서는 버림
- 선택 경로 필터 (원본 텍스트, 순서, 중복 제거)
- 같은 kind 문서 병합
"""

import pytest
import yaml

from src.domain.errors import ParseSkipError
from src.domain.schemas import RenderedDocument
from src.render.manifests import (
    extract_source_path,
    filter_by_sources,
    group_by_kind,
    parse_document,
    split_documents,
    split_manifests,
)

TWO_DOCS = """---
# Source: demo/templates/service.yaml
apiVersion: v1
kind: Service
metadata:
  name: rel-demo
---
# Source: demo/templates/deployment.yaml
apiVersion: apps/v1
kind: Deployment
metadata:
  name: rel-demo
"""


# =============================================================================
# split_manifests
# =============================================================================


class TestSplitManifests:
    """구분 줄 분리 테스트."""

    def test_two_documents(self):
        segments = split_manifests(TWO_DOCS)

        assert len(segments) == 2
        assert segments[0].startswith("# Source: demo/templates/service.yaml")
        assert segments[1].startswith("# Source: demo/templates/deployment.yaml")

    def test_empty_segments_dropped(self):
        assert split_manifests("---\n---\n\n---\nkind: A\n---\n") == ["kind: A"]

    def test_empty_text(self):
        assert split_manifests("") == []

    def test_separator_inside_value_not_split(self):
        """줄 전체가 "---"인 경우만 구분자."""
        text = "kind: ConfigMap\ndata:\n  note: a---b\n"

        assert len(split_manifests(text)) == 1

    def test_separator_with_trailing_spaces(self):
        assert len(split_manifests("kind: A\n---  \nkind: B\n")) == 2


# =============================================================================
# extract_source_path / parse_document
# =============================================================================


class TestParseDocument:
    """문서 파싱 테스트."""

    def test_extract_source_path(self):
        segment = "# Source: demo/templates/svc.yaml\nkind: Service\n"

        assert extract_source_path(segment, "demo") == "templates/svc.yaml"

    def test_extract_source_path_subchart(self):
        """하위 차트 경로는 접두어만 제거."""
        segment = "# Source: demo/charts/redis/templates/svc.yaml\nkind: Service\n"

        assert extract_source_path(segment, "demo") == "charts/redis/templates/svc.yaml"

    def test_extract_source_path_missing(self):
        assert extract_source_path("kind: Service\n", "demo") == ""

    def test_parse_normalizes_keys(self):
        """키 정렬된 YAML로 정규화."""
        segment = "# Source: demo/templates/cm.yaml\nkind: ConfigMap\napiVersion: v1\ndata:\n  b: 2\n  a: 1\n"

        document = parse_document(segment, "demo")

        assert document.kind == "ConfigMap"
        assert document.source_path == "templates/cm.yaml"
        assert document.content.index("apiVersion") < document.content.index("kind")
        assert yaml.safe_load(document.content) == {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "data": {"a": 1, "b": 2},
        }

    @pytest.mark.parametrize(
        "segment",
        [
            "kind: [unclosed",
            "- just\n- a list\n",
            "# Source: demo/templates/notes.txt\njust text",
            "apiVersion: v1\nmetadata:\n  name: x\n",
        ],
    )
    def test_parse_skip(self, segment: str):
        with pytest.raises(ParseSkipError):
            parse_document(segment, "demo")


# =============================================================================
# split_documents
# =============================================================================


class TestSplitDocuments:
    """정규화 문서 목록 테스트."""

    def test_two_documents_in_order(self):
        documents = split_documents(TWO_DOCS, "demo")

        assert [d.kind for d in documents] == ["Service", "Deployment"]
        assert [d.source_path for d in documents] == [
            "templates/service.yaml",
            "templates/deployment.yaml",
        ]

    def test_bad_document_does_not_block_others(self):
        text = TWO_DOCS + "---\n# Source: demo/templates/bad.yaml\nkind: [oops\n"

        documents = split_documents(text, "demo")

        assert len(documents) == 2

    def test_comment_only_segment_skipped(self):
        """주석만 있는 segment (빈 템플릿) → 결과 없음."""
        text = "---\n# Source: demo/templates/empty.yaml\n"

        assert split_documents(text, "demo") == []


# =============================================================================
# filter_by_sources
# =============================================================================


class TestFilterBySources:
    """선택 경로 필터 테스트."""

    def test_single_selection_keeps_raw_text(self):
        manifests = filter_by_sources(TWO_DOCS, "demo", ["templates/deployment.yaml"])

        assert manifests == (
            "# Source: demo/templates/deployment.yaml\n"
            "apiVersion: apps/v1\n"
            "kind: Deployment\n"
            "metadata:\n"
            "  name: rel-demo"
        )

    def test_selection_order(self):
        """선택 경로 순서대로 이어 붙임."""
        manifests = filter_by_sources(
            TWO_DOCS,
            "demo",
            ["templates/deployment.yaml", "templates/service.yaml"],
        )

        parts = manifests.split("\n---\n")
        assert len(parts) == 2
        assert "kind: Deployment" in parts[0]
        assert "kind: Service" in parts[1]

    def test_duplicate_selection_included_once(self):
        manifests = filter_by_sources(
            TWO_DOCS,
            "demo",
            ["templates/service.yaml", "templates/service.yaml"],
        )

        assert manifests.count("kind: Service") == 1

    def test_unmatched_selection(self):
        assert filter_by_sources(TWO_DOCS, "demo", ["templates/missing.yaml"]) == ""

    def test_multiple_documents_from_one_template(self):
        """한 템플릿이 여러 문서를 만들면 모두 포함."""
        text = (
            "---\n# Source: demo/templates/cms.yaml\nkind: ConfigMap\nmetadata:\n  name: a\n"
            "---\n# Source: demo/templates/cms.yaml\nkind: ConfigMap\nmetadata:\n  name: b\n"
        )

        manifests = filter_by_sources(text, "demo", ["templates/cms.yaml"])

        assert "name: a" in manifests
        assert "name: b" in manifests


# =============================================================================
# group_by_kind
# =============================================================================


class TestGroupByKind:
    """kind 병합 테스트."""

    def test_distinct_kinds(self):
        documents = split_documents(TWO_DOCS, "demo")

        grouped = group_by_kind(documents)

        assert set(grouped) == {"Service", "Deployment"}
        assert yaml.safe_load(grouped["Service"])["metadata"]["name"] == "rel-demo"

    def test_same_kind_joined(self):
        documents = [
            RenderedDocument(source_path="a.yaml", kind="ConfigMap", content="name: a\n"),
            RenderedDocument(source_path="b.yaml", kind="ConfigMap", content="name: b\n"),
        ]

        grouped = group_by_kind(documents)

        assert grouped == {"ConfigMap": "name: a\n---\nname: b\n"}
        assert [d["name"] for d in yaml.safe_load_all(grouped["ConfigMap"])] == ["a", "b"]
