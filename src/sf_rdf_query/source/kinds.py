"""数据源形态定义与分类。

调用方可以传入多种形态的数据源描述，本模块把它们归一为一组封闭的变体类型：

* :class:`EmptySource`：``None``、``False``、空字符串等空值；
* :class:`DocumentSource`：RDF 文档地址，来自 ``str``、``rdflib.URIRef``、``httpx.URL``、
  ``urllib.parse`` 解析结果或 ``pathlib`` 路径；
* :class:`SourceList`：``list``/``tuple``，元素递归解析；
* :class:`DeferredSource`：可等待对象（协程、Future、Task），结果为任意其他形态；
* :class:`GraphSource`：内存中的 ``rdflib.Graph``/``rdflib.Dataset``；
* :class:`StreamSource`：提供 ``match(s, p, o, g)`` 方法的流式四元组源。

:func:`classify` 是唯一的分类入口；无法识别的值直接抛出
:class:`~sf_rdf_query.common.exceptions.UnsupportedSourceError`。
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Any, Awaitable, ClassVar, Union
from urllib.parse import ParseResult, SplitResult, urldefrag

import httpx
from rdflib import Graph, URIRef
from rdflib.term import Identifier

from sf_rdf_query.common.exceptions import UnsupportedSourceError


@dataclass(frozen=True, slots=True)
class EmptySource:
    """空数据源，解析时不做任何操作。"""

    kind: ClassVar[str] = "empty"


@dataclass(frozen=True, slots=True)
class DocumentSource:
    """RDF 文档数据源。

    属性：
        url：调用方给出的文档地址，可能带有片段标识，例如 ``"https://ex.org/people#me"``。
    """

    kind: ClassVar[str] = "document"

    url: str

    @property
    def location(self) -> str:
        """去掉片段标识后的文档地址；片段只标识文档内资源，不构成独立文档。"""

        return urldefrag(self.url).url


@dataclass(frozen=True, slots=True)
class SourceList:
    """有序数据源序列，元素并发解析到同一张图。"""

    kind: ClassVar[str] = "list"

    items: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class DeferredSource:
    """延迟数据源，等待完成后再按结果重新分类。"""

    kind: ClassVar[str] = "deferred"

    awaitable: Awaitable[Any]


@dataclass(frozen=True, slots=True)
class GraphSource:
    """内存图数据源。"""

    kind: ClassVar[str] = "graph"

    graph: Graph


@dataclass(frozen=True, slots=True)
class StreamSource:
    """流式四元组数据源，``source.match(None, None, None, None)`` 返回全部四元组。"""

    kind: ClassVar[str] = "stream"

    source: Any


SourceKind = Union[EmptySource, DocumentSource, SourceList, DeferredSource, GraphSource, StreamSource]


def classify(value: Any) -> SourceKind:
    """将任意数据源描述归类为 :data:`SourceKind` 之一。

    参数：
        value：数据源描述，例如 ``"https://ex.org/people.ttl"``、
            ``[URIRef("https://ex.org/a"), ["https://ex.org/b"]]`` 或某个流式数据源对象。

    返回：对应的变体实例；URL 对象与命名节点在此处已被归约为字符串。

    异常：无法识别时抛出 :class:`UnsupportedSourceError`，消息包含 ``str(value)``。"""

    if value is None or (isinstance(value, (str, int, float)) and not value):
        return EmptySource()
    if isinstance(value, URIRef):
        return DocumentSource(str(value))
    if isinstance(value, Identifier):
        # 空白节点与字面量同样是 str 子类，但不指向任何文档
        raise UnsupportedSourceError(value)
    if isinstance(value, str):
        return DocumentSource(value)
    if isinstance(value, httpx.URL):
        return DocumentSource(str(value))
    if isinstance(value, (ParseResult, SplitResult)):
        return DocumentSource(value.geturl())
    if isinstance(value, PurePath):
        return DocumentSource(Path(value).absolute().as_uri())
    if isinstance(value, (list, tuple)):
        return SourceList(tuple(value))
    if isinstance(value, Graph):
        return GraphSource(value)
    if callable(getattr(value, "match", None)):
        return StreamSource(value)
    if inspect.isawaitable(value):
        return DeferredSource(value)
    raise UnsupportedSourceError(value)
