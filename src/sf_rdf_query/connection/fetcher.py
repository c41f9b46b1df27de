"""RDF 文档抓取与解析。

``DocumentFetcher`` 负责把一个文档地址的三元组加载进目标数据集：

* ``http``/``https`` 地址通过 ``httpx.AsyncClient`` 进行内容协商抓取，
  按响应 ``Content-Type`` 选择 rdflib 解析格式；
* ``file:`` 地址或本地路径直接交给 rdflib 解析器读取。

每个文档写入以其（去掉片段后的）地址命名的命名图，查询时通过默认图并集可见。
网络错误、HTTP 错误状态与解析错误均原样抛出，不做重试。"""
from __future__ import annotations

import time
from pathlib import Path
from urllib.parse import urldefrag, urlsplit
from urllib.request import url2pathname

import httpx
from rdflib import Dataset, Graph, URIRef
from rdflib.util import guess_format

from sf_rdf_query.common.config import ConfigManager
from sf_rdf_query.common.config.settings import FetchConfig
from sf_rdf_query.common.logging import LoggerFactory
from sf_rdf_query.common.observability import observe_fetch


class DocumentFetcher:
    """RDF 文档加载器。"""

    #: 响应媒体类型到 rdflib 解析格式的映射。
    _MEDIA_FORMATS = {
        "text/turtle": "turtle",
        "application/x-turtle": "turtle",
        "application/n-triples": "nt",
        "application/n-quads": "nquads",
        "application/trig": "trig",
        "text/n3": "n3",
        "application/ld+json": "json-ld",
        "application/json": "json-ld",
        "application/rdf+xml": "xml",
        "application/xml": "xml",
        "text/xml": "xml",
        "application/trix": "trix",
    }

    def __init__(
        self,
        *,
        settings: FetchConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """构造文档加载器。

        参数：
            settings：抓取配置，缺省读取 ``ConfigManager.current().settings.fetch``。
            transport：可选的 httpx 传输层，例如测试中的 ``httpx.MockTransport(handler)``。"""

        self._settings = settings or ConfigManager.current().settings.fetch
        self._transport = transport
        self._logger = LoggerFactory.create_default_logger(__name__)

    async def load(self, url: str, graph: Dataset) -> Graph:
        """抓取并解析 ``url`` 指向的文档，写入 ``graph`` 中对应的命名图。

        参数：
            url：文档地址，例如 ``"https://ex.org/people.ttl#me"``；片段部分会被去除。
            graph：目标数据集，通常为 ``Dataset(default_union=True)``。

        返回：承载该文档三元组的命名图。"""

        location = urldefrag(url).url
        scheme = urlsplit(location).scheme.lower()
        start = time.perf_counter()
        if scheme in {"http", "https"}:
            target = graph.graph(URIRef(location))
            await self._load_remote(location, target)
        else:
            path = self._local_path(location, scheme)
            target = graph.graph(URIRef(path.as_uri()))
            self._load_local(path, target)
            scheme = "file"
        elapsed = time.perf_counter() - start
        observe_fetch(scheme, elapsed)
        self._logger.debug(
            "已加载 RDF 文档: %s",
            location,
            extra={"triples": len(target), "duration_ms": elapsed * 1000},
        )
        return target

    # ---- 内部工具 -----------------------------------------------------

    async def _load_remote(self, location: str, target: Graph) -> None:
        headers = {
            "Accept": self._settings.accept,
            "User-Agent": self._settings.user_agent,
        }
        async with httpx.AsyncClient(
            timeout=self._settings.timeout,
            follow_redirects=self._settings.follow_redirects,
            transport=self._transport,
        ) as client:
            response = await client.get(location, headers=headers)
        response.raise_for_status()
        fmt = self._format_for(response.headers.get("content-type"), location)
        target.parse(data=response.text, format=fmt, publicID=str(response.url))

    def _load_local(self, path: Path, target: Graph) -> None:
        fmt = guess_format(str(path)) or self._settings.default_format
        with path.open("rb") as handle:
            target.parse(source=handle, format=fmt, publicID=path.as_uri())

    @staticmethod
    def _local_path(location: str, scheme: str) -> Path:
        if scheme == "file":
            return Path(url2pathname(urlsplit(location).path))
        return Path(location).absolute()

    def _format_for(self, content_type: str | None, location: str) -> str:
        """根据响应媒体类型推断解析格式，失败时退回扩展名推断与默认格式。"""

        if content_type:
            media_type = content_type.split(";", 1)[0].strip().lower()
            fmt = self._MEDIA_FORMATS.get(media_type)
            if fmt:
                return fmt
        return guess_format(urlsplit(location).path) or self._settings.default_format
