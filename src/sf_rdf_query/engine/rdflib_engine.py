"""查询引擎协议与 rdflib 实现。

引擎以回调方式汇报结果：每产生一行调用一次 ``on_result``，结束时调用且仅调用一次
``on_done(error)``（成功时 ``error`` 为 ``None``）。适配器负责把这种回调接口桥接为
异步生成器。"""
from __future__ import annotations

import asyncio
from typing import Any, Callable, Mapping, Protocol

from rdflib import Graph
from rdflib.plugins.sparql import prepareQuery
from rdflib.plugins.sparql.sparql import Query
from rdflib.term import Identifier

from sf_rdf_query.common.config import ConfigManager
from sf_rdf_query.common.config.settings import EngineConfig
from sf_rdf_query.common.exceptions import UnsupportedQueryError

ResultCallback = Callable[[Mapping[str, Identifier]], None]
DoneCallback = Callable[[BaseException | None], None]


class QueryEngine(Protocol):
    """查询引擎最小协议。

    任何实现都需要提供 ``parse`` 与 ``execute`` 两个方法，语义与 :class:`RdflibQueryEngine` 一致。"""

    def parse(self, sparql: str) -> Any:
        """解析 SPARQL 文本，返回引擎内部的查询对象；语法错误直接抛出。"""

    async def execute(
        self,
        query: Any,
        graph: Graph,
        on_result: ResultCallback,
        on_done: DoneCallback,
    ) -> None:
        """在 ``graph`` 上执行 ``query``。

        参数：
            query：``parse`` 的返回值。
            graph：统一数据集。
            on_result：每行结果回调，参数为“变量名（不含 ``?``）→ 项”的有序映射。
            on_done：终止回调，成功传 ``None``，失败传异常对象。"""


class RdflibQueryEngine:
    """基于 rdflib SPARQL 实现的查询引擎。"""

    def __init__(self, *, settings: EngineConfig | None = None) -> None:
        """构造引擎。

        参数：
            settings：引擎配置，缺省读取 ``ConfigManager.current().settings.engine``。"""

        self._settings = settings or ConfigManager.current().settings.engine

    def parse(self, sparql: str) -> Query:
        """使用 rdflib 解析查询文本，配置中的 ``prefixes`` 作为默认前缀。

        异常：语法错误时抛出 ``pyparsing.ParseException``。"""

        return prepareQuery(sparql, initNs=dict(self._settings.prefixes))

    async def execute(
        self,
        query: Query,
        graph: Graph,
        on_result: ResultCallback,
        on_done: DoneCallback,
    ) -> None:
        """执行查询并通过回调汇报结果。

        只有 SELECT 查询会产出绑定行；ASK/CONSTRUCT/DESCRIBE 通过 ``on_done`` 报告
        :class:`UnsupportedQueryError`。每产出 ``yield_every`` 行让出一次事件循环，
        以便消费方及时处理。"""

        yield_every = self._settings.yield_every
        try:
            result = graph.query(query)
            if result.type != "SELECT":
                raise UnsupportedQueryError(
                    f"Only SELECT queries produce bindings, received: {result.type}",
                    details={"type": result.type},
                )
            for index, row in enumerate(result, start=1):
                on_result(row.asdict())
                if index % yield_every == 0:
                    await asyncio.sleep(0)
        except Exception as exc:
            on_done(exc)
            return
        on_done(None)
