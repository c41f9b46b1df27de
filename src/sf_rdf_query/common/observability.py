"""Prometheus 指标定义与上报辅助函数。"""
from __future__ import annotations

from prometheus_client import Counter, Histogram

_EXECUTIONS = Counter(
    "sf_rdf_query_executions_total",
    "SPARQL 查询执行次数（按结果分类）",
    ["outcome"],
)

_SOURCE_RESOLUTIONS = Counter(
    "sf_rdf_query_source_resolutions_total",
    "数据源解析次数（按数据源类型分类）",
    ["kind"],
)

_FETCH_SECONDS = Histogram(
    "sf_rdf_query_document_fetch_seconds",
    "RDF 文档抓取与解析耗时（秒）",
    ["scheme"],
)

_ROWS = Counter(
    "sf_rdf_query_rows_total",
    "已产出的查询结果行数",
)


def observe_execution(outcome: str) -> None:
    """记录一次查询结束，``outcome`` 取值 ``success``/``failure``/``rejected``/``cancelled``。"""

    _EXECUTIONS.labels(outcome=outcome).inc()


def observe_source(kind: str) -> None:
    """记录一次数据源解析，``kind`` 为数据源变体名称，如 ``"document"``。"""

    _SOURCE_RESOLUTIONS.labels(kind=kind).inc()


def observe_fetch(scheme: str, seconds: float) -> None:
    """记录一次文档抓取耗时。"""

    _FETCH_SECONDS.labels(scheme=scheme).observe(seconds)


def observe_row() -> None:
    """记录产出一行结果。"""

    _ROWS.inc()
