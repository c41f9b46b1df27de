"""SPARQL 查询适配器。

`QueryAdapter.execute` 返回惰性的单次异步生成器，内部按以下顺序推进：

1. 变更查询拦截：以 INSERT/UPDATE 开头（忽略大小写与前导空白）的查询在首次迭代时即失败；
2. 通过查询引擎解析查询文本；
3. 确定工作数据集：显式传入 ``sources`` 时重新解析，否则等待构造时创建的默认数据集；
4. 以 asyncio 任务运行引擎，回调结果经 :class:`ResultChannel` 转为异步迭代；
5. 每行结果转换为 :data:`~sf_rdf_query.converter.result_mapper.Binding` 后产出。

所有错误（不支持的查询、不支持的数据源、抓取/解析错误、引擎错误）都在调用方迭代时抛出，
因此调用方只需一种“迭代并捕获异常”的消费方式。
"""
from __future__ import annotations

import asyncio
import re
from typing import Any, AsyncIterator, Mapping

import httpx
from rdflib import Dataset
from rdflib.term import Identifier

from sf_rdf_query.common.config import ConfigManager
from sf_rdf_query.common.config.settings import Settings
from sf_rdf_query.common.exceptions import UnsupportedQueryError
from sf_rdf_query.common.logging import LoggerFactory
from sf_rdf_query.common.observability import observe_execution, observe_row
from sf_rdf_query.connection.fetcher import DocumentFetcher
from sf_rdf_query.converter.result_mapper import Binding, ResultMapper
from sf_rdf_query.engine.rdflib_engine import QueryEngine, RdflibQueryEngine
from sf_rdf_query.source.resolver import SourceResolver

_MUTATION_PATTERN = re.compile(r"^\s*(?:INSERT|UPDATE)", re.IGNORECASE)


class _NotGiven:
    """``sources`` 参数缺省标记，区别于显式传入的 ``None`` 或 ``[]``。"""

    def __repr__(self) -> str:
        return "NOT_GIVEN"


NOT_GIVEN: Any = _NotGiven()


class _Terminal:
    __slots__ = ("error",)

    def __init__(self, error: BaseException | None) -> None:
        self.error = error


class ResultChannel:
    """引擎回调与异步迭代之间的单次结算通道。

    - ``push`` 写入一行，结算后写入的行被丢弃；
    - ``close`` 结算通道，只有第一次调用生效；
    - 迭代时按写入顺序取出行，读到终止标记后结束或抛出终止错误。

    缓冲区不设上限：最多缓存引擎领先于消费方产出的行。"""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._settled = False

    @property
    def settled(self) -> bool:
        return self._settled

    def push(self, row: Mapping[str, Identifier]) -> None:
        if self._settled:
            return
        self._queue.put_nowait(row)

    def close(self, error: BaseException | None = None) -> None:
        if self._settled:
            return
        self._settled = True
        self._queue.put_nowait(_Terminal(error))

    def settle_from(self, task: asyncio.Future[Any]) -> None:
        """引擎任务结束但未调用终止回调时，用任务的结果结算通道（正常返回视为成功）。"""

        if task.cancelled():
            return
        self.close(task.exception())

    def __aiter__(self) -> "ResultChannel":
        return self

    async def __anext__(self) -> Mapping[str, Identifier]:
        item = await self._queue.get()
        if isinstance(item, _Terminal):
            # 保留终止标记，重复迭代得到相同结果
            self._queue.put_nowait(item)
            if item.error is not None:
                raise item.error
            raise StopAsyncIteration
        return item


class QueryAdapter:
    """面向多数据源的 SPARQL 查询适配器。"""

    def __init__(
        self,
        default_sources: Any = None,
        *,
        resolver: SourceResolver | None = None,
        engine: QueryEngine | None = None,
        mapper: ResultMapper | None = None,
    ) -> None:
        """构造适配器。

        参数：
            default_sources：默认数据源，任意数据源形态，例如 ``"https://ex.org/people.ttl"``；
                省略 ``sources`` 的查询都使用它构建的数据集。
            resolver：数据源解析器，缺省按全局配置创建。
            engine：查询引擎，缺省为 :class:`RdflibQueryEngine`。
            mapper：结果映射器，缺省为 :class:`ResultMapper`。

        当前存在运行中的事件循环时立即开始构建默认数据集（不阻塞），否则延迟到首次使用；
        构建失败不会在此处抛出，而是在使用默认数据集的每次查询中抛出。"""

        self._default_sources = default_sources
        self._resolver = resolver or SourceResolver()
        self._engine: QueryEngine = engine or RdflibQueryEngine()
        self._mapper = mapper or ResultMapper()
        self._logger = LoggerFactory.create_default_logger(__name__)
        self._default_graph: asyncio.Future[Dataset] | None = None
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            self._default_graph_future()

    @classmethod
    def from_settings(
        cls,
        default_sources: Any = None,
        *,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "QueryAdapter":
        """按配置快照组装抓取器、解析器与引擎。

        参数：
            default_sources：同构造函数。
            settings：配置快照，缺省为 ``ConfigManager.current().settings``。
            transport：可选的 httpx 传输层，主要用于测试。"""

        settings = settings or ConfigManager.current().settings
        fetcher = DocumentFetcher(settings=settings.fetch, transport=transport)
        return cls(
            default_sources,
            resolver=SourceResolver(fetcher),
            engine=RdflibQueryEngine(settings=settings.engine),
        )

    async def execute(self, sparql: str, sources: Any = NOT_GIVEN) -> AsyncIterator[Binding]:
        """执行 SPARQL 查询，逐行异步产出绑定。

        参数：
            sparql：SPARQL 查询文本，例如 ``"SELECT ?s WHERE { ?s ?p ?o }"``。
            sources：本次查询的数据源。省略时使用默认数据集；显式传入 ``[]`` 或 ``None``
                得到空数据集（零结果）。

        产出：按引擎报告顺序的 :data:`Binding`。

        异常（迭代时抛出）：
            UnsupportedQueryError：变更查询，消息包含原始查询文本。
            UnsupportedSourceError / MalformedQuadError：数据源无法解析。
            其他：抓取、解析或引擎错误原样抛出。"""

        if _MUTATION_PATTERN.match(sparql):
            observe_execution("rejected")
            raise UnsupportedQueryError(
                f"SPARQL UPDATE queries are unsupported, received: {sparql}",
                details={"query": sparql},
            )

        outcome = "failure"
        rows = 0
        self._logger.debug("SPARQL 查询开始", extra={"default_sources": sources is NOT_GIVEN})
        try:
            query = self._engine.parse(sparql)
            graph = await self._working_graph(sources)
            channel = ResultChannel()
            task = asyncio.ensure_future(self._engine.execute(query, graph, channel.push, channel.close))
            task.add_done_callback(channel.settle_from)
            try:
                async for row in channel:
                    rows += 1
                    observe_row()
                    yield self._mapper.to_binding(row)
            finally:
                if not task.done():
                    task.cancel()
            outcome = "success"
        except GeneratorExit:
            outcome = "cancelled"
            raise
        finally:
            observe_execution(outcome)
            self._logger.debug("SPARQL 查询结束", extra={"outcome": outcome, "rows": rows})

    async def collect(self, sparql: str, sources: Any = NOT_GIVEN) -> list[Binding]:
        """执行查询并把全部绑定收集为列表。"""

        return [binding async for binding in self.execute(sparql, sources)]

    # ---- 内部工具 -----------------------------------------------------

    async def _working_graph(self, sources: Any) -> Dataset:
        if sources is NOT_GIVEN:
            # shield：单个消费方被取消时不能连带取消共享的默认数据集任务
            return await asyncio.shield(self._default_graph_future())
        return await self._resolver.resolve(sources)

    def _default_graph_future(self) -> asyncio.Future[Dataset]:
        if self._default_graph is None:
            task = asyncio.ensure_future(self._resolver.resolve(self._default_sources))
            task.add_done_callback(self._on_default_graph_done)
            self._default_graph = task
        return self._default_graph

    def _on_default_graph_done(self, task: asyncio.Future[Dataset]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._logger.warning("默认数据源解析失败，将在查询时抛出: %s", error)
        else:
            self._logger.debug("默认数据集已就绪", extra={"triples": len(task.result())})
