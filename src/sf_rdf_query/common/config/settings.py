"""配置模型定义（Pydantic v2）。

配置按功能划分为 ``app``、``fetch``、``engine``、``logging`` 四个分区，所有字段均有
默认值，因此在没有任何配置文件的情况下也能直接运行。
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


_DEFAULT_ACCEPT = (
    "text/turtle;q=1.0, application/n-triples;q=0.9, application/n-quads;q=0.9, "
    "application/trig;q=0.9, text/n3;q=0.8, application/ld+json;q=0.8, application/rdf+xml;q=0.7"
)


class AppConfig(BaseModel):
    """应用基础信息。"""

    name: str = "sf-rdf-query"
    env: Literal["dev", "test", "prod"] = "dev"


class FetchConfig(BaseModel):
    """远程文档抓取配置。

    参数：
        timeout：HTTP 请求超时（秒），``None`` 表示不限制；示例 ``30.0``。
        follow_redirects：是否自动跟随重定向。
        accept：内容协商使用的 ``Accept`` 请求头。
        user_agent：请求头 ``User-Agent``。
        default_format：无法从响应类型或扩展名推断格式时使用的 rdflib 解析格式。
    """

    model_config = ConfigDict(populate_by_name=True)

    timeout: float | None = Field(default=30.0, gt=0)
    follow_redirects: bool = True
    accept: str = _DEFAULT_ACCEPT
    user_agent: str = Field(default="sf-rdf-query", alias="userAgent")
    default_format: str = Field(default="turtle", alias="defaultFormat")


class EngineConfig(BaseModel):
    """查询引擎配置。

    参数：
        yield_every：每产出多少行主动让出一次事件循环，范围 ``>=1``。
        prefixes：解析查询时默认可用的前缀映射，例如 ``{"foaf": "http://xmlns.com/foaf/0.1/"}``。
    """

    model_config = ConfigDict(populate_by_name=True)

    yield_every: int = Field(default=100, ge=1, alias="yieldEvery")
    prefixes: dict[str, str] = Field(default_factory=dict)


class LoggingConfig(BaseModel):
    """日志输出配置。"""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseModel):
    """全局配置快照。"""

    app: AppConfig = Field(default_factory=AppConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
