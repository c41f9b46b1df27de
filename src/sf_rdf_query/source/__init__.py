"""数据源分类与解析的便捷导出。"""
from sf_rdf_query.source.kinds import (
    DeferredSource,
    DocumentSource,
    EmptySource,
    GraphSource,
    SourceKind,
    SourceList,
    StreamSource,
    classify,
)
from sf_rdf_query.source.resolver import SourceResolver

__all__ = [
    "DeferredSource",
    "DocumentSource",
    "EmptySource",
    "GraphSource",
    "SourceKind",
    "SourceList",
    "StreamSource",
    "SourceResolver",
    "classify",
]
