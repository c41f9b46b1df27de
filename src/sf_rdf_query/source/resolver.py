"""数据源解析器：把任意数据源描述合并进同一张内存数据集。

解析流程为“先分类、再分派”：:func:`~sf_rdf_query.source.kinds.classify` 得到变体后，
按变体类型选择唯一的解析例程。各例程都向同一个累加数据集写入，因此列表、嵌套列表、
延迟值与流式源可以任意组合。

并发约束：
- ``SourceList`` 的各元素以 asyncio 任务并发解析，任一失败即取消其余任务并抛出该错误；
- 单个数据源自身的解析是顺序的；
- 失败不会回滚已写入的三元组。
"""
from __future__ import annotations

import asyncio
import inspect
from contextlib import aclosing, closing, nullcontext
from typing import Any, Awaitable, Callable

from rdflib import Dataset, Graph
from rdflib.graph import DATASET_DEFAULT_GRAPH_ID
from rdflib.term import Node

from sf_rdf_query.common.exceptions import MalformedQuadError
from sf_rdf_query.common.logging import LoggerFactory
from sf_rdf_query.common.observability import observe_source
from sf_rdf_query.connection.fetcher import DocumentFetcher
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


class SourceResolver:
    """数据源解析器。"""

    def __init__(self, fetcher: DocumentFetcher | None = None) -> None:
        """初始化解析器。

        参数：
            fetcher：文档加载器，缺省按全局配置创建 :class:`DocumentFetcher`。"""

        self._fetcher = fetcher or DocumentFetcher()
        self._logger = LoggerFactory.create_default_logger(__name__)
        self._handlers: dict[type, Callable[[Any, Dataset], Awaitable[None]]] = {
            EmptySource: self._resolve_empty,
            DocumentSource: self._resolve_document,
            SourceList: self._resolve_list,
            DeferredSource: self._resolve_deferred,
            GraphSource: self._resolve_graph,
            StreamSource: self._resolve_stream,
        }

    @staticmethod
    def new_graph() -> Dataset:
        """创建空的统一数据集，默认图为全部命名图的并集。"""

        return Dataset(default_union=True)

    async def resolve(self, source: Any, target: Dataset | None = None) -> Dataset:
        """解析 ``source`` 并把全部三元组写入 ``target``。

        参数：
            source：任意数据源描述，例如 ``["https://ex.org/a.ttl", fetch_later()]``。
            target：累加数据集；为 ``None`` 时新建一个。注意空数据集的布尔值为假，
                这里按 ``is None`` 判断。

        返回：写入后的 ``target``（同一对象）。

        异常：不支持的数据源、畸形四元组，以及抓取/解析/流式源自身的错误都会原样抛出。"""

        graph = target if target is not None else self.new_graph()
        await self._resolve(source, graph)
        return graph

    async def _resolve(self, value: Any, graph: Dataset) -> None:
        kind: SourceKind = classify(value)
        observe_source(kind.kind)
        await self._handlers[type(kind)](kind, graph)

    # ---- 各变体解析例程 -------------------------------------------------

    async def _resolve_empty(self, kind: EmptySource, graph: Dataset) -> None:
        return None

    async def _resolve_document(self, kind: DocumentSource, graph: Dataset) -> None:
        await self._fetcher.load(kind.location, graph)

    async def _resolve_list(self, kind: SourceList, graph: Dataset) -> None:
        tasks = [asyncio.ensure_future(self._resolve(item, graph)) for item in kind.items]
        if not tasks:
            return
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

    async def _resolve_deferred(self, kind: DeferredSource, graph: Dataset) -> None:
        value = await kind.awaitable
        await self._resolve(value, graph)

    async def _resolve_graph(self, kind: GraphSource, graph: Dataset) -> None:
        source = kind.graph
        if isinstance(source, Dataset):
            for s, p, o, context in source.quads((None, None, None, None)):
                self._add(graph, s, p, o, getattr(context, "identifier", context))
            return
        for s, p, o in source.triples((None, None, None)):
            graph.add((s, p, o))

    async def _resolve_stream(self, kind: StreamSource, graph: Dataset) -> None:
        stream = kind.source.match(None, None, None, None)
        if inspect.isawaitable(stream):
            stream = await stream
        added = 0
        if hasattr(stream, "__aiter__"):
            # 畸形四元组中止读取时立即关闭流
            async with aclosing(stream) if hasattr(stream, "aclose") else nullcontext(stream) as quads:
                async for quad in quads:
                    self._add_quad(graph, quad)
                    added += 1
        else:
            with closing(stream) if hasattr(stream, "close") else nullcontext(stream) as quads:
                for quad in quads:
                    self._add_quad(graph, quad)
                    added += 1
        self._logger.debug("流式数据源已读取完毕", extra={"quads": added})

    # ---- 内部工具 -----------------------------------------------------

    def _add_quad(self, graph: Dataset, quad: Any) -> None:
        """校验并写入单个四元组，支持 3/4 元组或带 subject/predicate/object/graph 属性的对象。"""

        if isinstance(quad, tuple):
            if len(quad) == 3:
                subject, predicate, obj = quad
                context = None
            elif len(quad) == 4:
                subject, predicate, obj, context = quad
            else:
                raise MalformedQuadError(quad, reason=f"expected 3 or 4 terms, got {len(quad)}")
        else:
            subject = getattr(quad, "subject", None)
            predicate = getattr(quad, "predicate", None)
            obj = getattr(quad, "object", None)
            context = getattr(quad, "graph", None)
        for name, term in (("subject", subject), ("predicate", predicate), ("object", obj)):
            if term is None:
                raise MalformedQuadError(quad, reason=f"missing {name}")
            if not isinstance(term, Node):
                raise MalformedQuadError(quad, reason=f"{name} is not an RDF term")
        self._add(graph, subject, predicate, obj, context)

    @staticmethod
    def _add(graph: Dataset, subject: Node, predicate: Node, obj: Node, context: Any) -> None:
        if isinstance(context, Graph):
            context = context.identifier
        if context is None or context == DATASET_DEFAULT_GRAPH_ID:
            graph.add((subject, predicate, obj))
        else:
            graph.add((subject, predicate, obj, context))
