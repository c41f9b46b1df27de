"""指标上报测试：查询执行与数据源解析会累计 Prometheus 计数。"""
from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from conftest import PEOPLE_URL
from sf_rdf_query.common.exceptions import UnsupportedQueryError
from sf_rdf_query.engine.adapter import QueryAdapter
from sf_rdf_query.source.resolver import SourceResolver


def _metric_value(name: str, labels: dict[str, str] | None = None) -> float:
    """读取 Prometheus 指标当前值。"""

    value = REGISTRY.get_sample_value(name, labels or {})
    return 0.0 if value is None else value


@pytest.mark.asyncio
async def test_execution_outcomes_are_counted(resolver: SourceResolver) -> None:
    adapter = QueryAdapter(resolver=resolver)
    rejected = _metric_value("sf_rdf_query_executions_total", {"outcome": "rejected"})
    success = _metric_value("sf_rdf_query_executions_total", {"outcome": "success"})
    rows = _metric_value("sf_rdf_query_rows_total")

    with pytest.raises(UnsupportedQueryError):
        await adapter.collect("UPDATE xyz")
    bindings = await adapter.collect("SELECT ?s WHERE { ?s ?p ?o }", PEOPLE_URL)

    assert _metric_value("sf_rdf_query_executions_total", {"outcome": "rejected"}) == rejected + 1
    assert _metric_value("sf_rdf_query_executions_total", {"outcome": "success"}) == success + 1
    assert _metric_value("sf_rdf_query_rows_total") == rows + len(bindings)


@pytest.mark.asyncio
async def test_source_kinds_and_fetches_are_counted(resolver: SourceResolver) -> None:
    lists = _metric_value("sf_rdf_query_source_resolutions_total", {"kind": "list"})
    documents = _metric_value("sf_rdf_query_source_resolutions_total", {"kind": "document"})
    fetches = _metric_value("sf_rdf_query_document_fetch_seconds_count", {"scheme": "https"})

    await resolver.resolve([PEOPLE_URL, [PEOPLE_URL]])

    assert _metric_value("sf_rdf_query_source_resolutions_total", {"kind": "list"}) == lists + 2
    assert _metric_value("sf_rdf_query_source_resolutions_total", {"kind": "document"}) == documents + 2
    assert _metric_value("sf_rdf_query_document_fetch_seconds_count", {"scheme": "https"}) == fetches + 2
