"""Pytest 公共配置：加载测试配置，并提供基于 httpx.MockTransport 的远程文档桩。"""
from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from sf_rdf_query.common.config import ConfigManager
from sf_rdf_query.connection.fetcher import DocumentFetcher
from sf_rdf_query.source.resolver import SourceResolver

FIXTURES = Path(__file__).resolve().parent / "fixtures"

# 使用测试专用配置，避免依赖本机环境
ConfigManager.load(override_path=str(FIXTURES / "config" / "testing.yaml"), environ={})

PEOPLE_URL = "https://example.org/people"
PROJECTS_URL = "https://example.org/projects"
MISSING_URL = "https://example.org/missing"


class DocumentServer:
    """按 URL 返回预置 RDF 文档的 MockTransport 处理器，并记录请求。"""

    def __init__(self) -> None:
        self.documents: dict[str, tuple[str, str]] = {
            PEOPLE_URL: ("text/turtle; charset=utf-8", (FIXTURES / "people.ttl").read_text(encoding="utf-8")),
            PROJECTS_URL: ("application/n-triples", (FIXTURES / "projects.nt").read_text(encoding="utf-8")),
        }
        self.requests: list[httpx.Request] = []

    @property
    def requested_urls(self) -> list[str]:
        return [str(request.url) for request in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        entry = self.documents.get(str(request.url))
        if entry is None:
            return httpx.Response(404, text="not found")
        content_type, body = entry
        return httpx.Response(200, text=body, headers={"Content-Type": content_type})


@pytest.fixture()
def server() -> DocumentServer:
    return DocumentServer()


@pytest.fixture()
def fetcher(server: DocumentServer) -> DocumentFetcher:
    return DocumentFetcher(transport=httpx.MockTransport(server))


@pytest.fixture()
def resolver(fetcher: DocumentFetcher) -> SourceResolver:
    return SourceResolver(fetcher)
