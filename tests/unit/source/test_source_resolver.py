"""SourceResolver 单元测试：嵌套/延迟/流式数据源合并到同一数据集。"""
from __future__ import annotations

import asyncio

import httpx
import pytest
from rdflib import RDF, Dataset, Graph, Literal, Namespace, URIRef
from rdflib.graph import DATASET_DEFAULT_GRAPH_ID

from conftest import PEOPLE_URL, PROJECTS_URL, DocumentServer
from sf_rdf_query.common.exceptions import MalformedQuadError, UnsupportedSourceError
from sf_rdf_query.source.resolver import SourceResolver

EX = Namespace("https://example.org/things#")
FOAF = Namespace("http://xmlns.com/foaf/0.1/")


class _QuadStream:
    """流式数据源桩：``match`` 返回异步生成器，并记录调用参数。"""

    def __init__(self, quads, error: Exception | None = None) -> None:
        self._quads = list(quads)
        self._error = error
        self.calls: list[tuple] = []
        self.closed = False

    def match(self, subject, predicate, obj, graph):
        self.calls.append((subject, predicate, obj, graph))
        return self._emit()

    async def _emit(self):
        try:
            for quad in self._quads:
                await asyncio.sleep(0)
                yield quad
            if self._error is not None:
                raise self._error
        finally:
            self.closed = True


class _Opaque:
    def __str__(self) -> str:
        return "my source"


async def _later(value, delay: float = 0.0):
    await asyncio.sleep(delay)
    return value


@pytest.mark.asyncio
async def test_empty_source_yields_empty_dataset(resolver: SourceResolver) -> None:
    graph = await resolver.resolve(None)
    assert isinstance(graph, Dataset)
    assert len(graph) == 0

    graph = await resolver.resolve([])
    assert len(graph) == 0


@pytest.mark.asyncio
async def test_document_fragment_is_stripped_before_fetch(resolver: SourceResolver, server: DocumentServer) -> None:
    graph = await resolver.resolve(f"{PEOPLE_URL}#me")

    assert server.requested_urls == [PEOPLE_URL]
    assert (URIRef("https://example.org/people#alice"), FOAF.name, Literal("Alice")) in graph


@pytest.mark.asyncio
async def test_nested_and_deferred_sources_are_merged(resolver: SourceResolver, server: DocumentServer) -> None:
    sources = [[URIRef(PEOPLE_URL)], _later(PROJECTS_URL)]

    graph = await resolver.resolve(sources)

    assert sorted(server.requested_urls) == [PEOPLE_URL, PROJECTS_URL]
    assert (URIRef("https://example.org/people#bob"), RDF.type, FOAF.Person) in graph
    assert (URIRef("https://example.org/projects#engine"), FOAF.maker, URIRef("https://example.org/people#alice")) in graph


@pytest.mark.asyncio
async def test_resolve_accumulates_into_given_target(resolver: SourceResolver) -> None:
    target = SourceResolver.new_graph()
    returned = await resolver.resolve(PEOPLE_URL, target)
    await resolver.resolve(PROJECTS_URL, target)

    assert returned is target
    assert (URIRef("https://example.org/projects#adapter"), URIRef("http://purl.org/dc/terms/title"), Literal("Adapter")) in target
    assert (URIRef("https://example.org/people#carol"), FOAF.name, Literal("Carol")) in target


@pytest.mark.asyncio
async def test_sibling_sources_resolve_concurrently(resolver: SourceResolver) -> None:
    """两个延迟源互相等待对方的信号，只有并发解析才能完成。"""

    first_ready = asyncio.Event()
    second_ready = asyncio.Event()

    async def first():
        first_ready.set()
        await second_ready.wait()
        return None

    async def second():
        second_ready.set()
        await first_ready.wait()
        return None

    await asyncio.wait_for(resolver.resolve([first(), second()]), timeout=1.0)


@pytest.mark.asyncio
async def test_stream_source_is_drained_with_wildcards(resolver: SourceResolver) -> None:
    stream = _QuadStream(
        [
            (EX.a, RDF.type, EX.Thing),
            (EX.b, RDF.type, EX.Thing),
            (EX.c, RDF.type, EX.Other),
        ]
    )

    graph = await resolver.resolve(stream)

    assert stream.calls == [(None, None, None, None)]
    assert len(graph) == 3


@pytest.mark.asyncio
async def test_stream_quads_keep_their_graph(resolver: SourceResolver) -> None:
    named = URIRef("urn:graph:one")
    stream = _QuadStream(
        [
            (EX.a, RDF.type, EX.Thing, named),
            (EX.b, RDF.type, EX.Thing, DATASET_DEFAULT_GRAPH_ID),
        ]
    )

    graph = await resolver.resolve(stream)

    assert (EX.a, RDF.type, EX.Thing) in graph.graph(named)
    assert (EX.b, RDF.type, EX.Thing) in graph.default_context


@pytest.mark.asyncio
async def test_stream_accepts_objects_sync_iterables_and_awaitables(resolver: SourceResolver) -> None:
    class _Quad:
        def __init__(self, subject, predicate, obj) -> None:
            self.subject = subject
            self.predicate = predicate
            self.object = obj

    class _SyncStream:
        def match(self, subject, predicate, obj, graph):
            return [_Quad(EX.a, RDF.type, EX.Thing)]

    class _AwaitableStream:
        def match(self, subject, predicate, obj, graph):
            return _later([(EX.b, RDF.type, EX.Thing)])

    graph = await resolver.resolve([_SyncStream(), _AwaitableStream()])

    assert (EX.a, RDF.type, EX.Thing) in graph
    assert (EX.b, RDF.type, EX.Thing) in graph


@pytest.mark.asyncio
async def test_malformed_quad_aborts_without_rollback(resolver: SourceResolver) -> None:
    target = SourceResolver.new_graph()
    stream = _QuadStream([(EX.a, RDF.type, EX.Thing), (EX.b, RDF.type, None), (EX.c, RDF.type, EX.Thing)])

    with pytest.raises(MalformedQuadError) as exc_info:
        await resolver.resolve(stream, target)

    assert "missing object" in str(exc_info.value)
    assert (EX.a, RDF.type, EX.Thing) in target
    assert (EX.c, RDF.type, EX.Thing) not in target
    # 中途失败时流被立即关闭，不等待垃圾回收
    assert stream.closed is True


@pytest.mark.asyncio
async def test_plain_strings_in_quads_are_malformed(resolver: SourceResolver) -> None:
    with pytest.raises(MalformedQuadError):
        await resolver.resolve(_QuadStream([("a", "b", "c")]))


@pytest.mark.asyncio
async def test_stream_error_propagates_verbatim(resolver: SourceResolver) -> None:
    error = RuntimeError("stream broke")
    stream = _QuadStream([(EX.a, RDF.type, EX.Thing)], error=error)

    with pytest.raises(RuntimeError) as exc_info:
        await resolver.resolve(stream)
    assert exc_info.value is error


@pytest.mark.asyncio
async def test_in_memory_graphs_are_copied(resolver: SourceResolver) -> None:
    plain = Graph()
    plain.add((EX.a, RDF.type, EX.Thing))
    dataset = Dataset()
    dataset.graph(URIRef("urn:graph:two")).add((EX.b, RDF.type, EX.Thing))

    graph = await resolver.resolve([plain, dataset])

    assert (EX.a, RDF.type, EX.Thing) in graph
    assert (EX.b, RDF.type, EX.Thing) in graph.graph(URIRef("urn:graph:two"))


@pytest.mark.asyncio
async def test_unsupported_source_inside_list_fails(resolver: SourceResolver) -> None:
    with pytest.raises(UnsupportedSourceError, match="Unsupported source: my source"):
        await resolver.resolve([PEOPLE_URL, [_Opaque()]])


@pytest.mark.asyncio
async def test_rejected_deferred_source_propagates(resolver: SourceResolver) -> None:
    async def broken():
        raise LookupError("no such source")

    with pytest.raises(LookupError, match="no such source"):
        await resolver.resolve(broken())


@pytest.mark.asyncio
async def test_http_error_propagates(resolver: SourceResolver) -> None:
    with pytest.raises(httpx.HTTPStatusError):
        await resolver.resolve("https://example.org/missing#x")
