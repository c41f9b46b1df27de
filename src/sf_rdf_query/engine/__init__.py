"""查询适配器与查询引擎的便捷导出。"""
from sf_rdf_query.engine.adapter import NOT_GIVEN, QueryAdapter, ResultChannel
from sf_rdf_query.engine.rdflib_engine import QueryEngine, RdflibQueryEngine

__all__ = [
    "NOT_GIVEN",
    "QueryAdapter",
    "ResultChannel",
    "QueryEngine",
    "RdflibQueryEngine",
]
