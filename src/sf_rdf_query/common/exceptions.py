"""平台统一异常定义。

所有由本包主动抛出的错误都继承自 :class:`APIError`，携带 ``code``（:class:`ErrorCode`）、
``message`` 与可选的 ``details``。``str(exc)`` 始终返回原始 ``message``，便于调用方直接
比对错误文本。

来自外部协作方（httpx、rdflib 解析器、流式数据源、查询引擎）的错误不会被包装，
而是原样向上传播。
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """错误码枚举。"""

    BAD_REQUEST = "BAD_REQUEST"
    UNSUPPORTED_QUERY = "UNSUPPORTED_QUERY"
    UNSUPPORTED_SOURCE = "UNSUPPORTED_SOURCE"
    MALFORMED_QUAD = "MALFORMED_QUAD"
    CONFIG_ERROR = "CONFIG_ERROR"


class APIError(Exception):
    """平台异常基类。

    参数：
        code：错误码，例如 ``ErrorCode.UNSUPPORTED_SOURCE``。
        message：面向调用方的错误描述，``str(exc)`` 返回该值。
        details：附加诊断信息，例如 ``{"source": "my source"}``。
    """

    def __init__(self, code: ErrorCode, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """转换为可序列化的字典结构。"""

        return {"code": self.code.value, "message": self.message, "details": dict(self.details)}


class UnsupportedQueryError(APIError):
    """查询类型不受支持（SPARQL UPDATE/INSERT，或引擎无法产生绑定行的查询形式）。"""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.UNSUPPORTED_QUERY, message, details=details)


class UnsupportedSourceError(APIError):
    """数据源形态无法识别。"""

    def __init__(self, source: Any) -> None:
        super().__init__(
            ErrorCode.UNSUPPORTED_SOURCE,
            f"Unsupported source: {source}",
            details={"source": str(source), "type": type(source).__name__},
        )
        self.source = source


class MalformedQuadError(APIError):
    """流式数据源产出的四元组缺少必需分量。"""

    def __init__(self, quad: Any, *, reason: str) -> None:
        super().__init__(
            ErrorCode.MALFORMED_QUAD,
            f"Malformed quad ({reason}): {quad!r}",
            details={"reason": reason},
        )
        self.quad = quad


class ConfigError(APIError):
    """配置文件或环境变量无法解析。"""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.CONFIG_ERROR, message, details=details)
