"""查询结果映射工具。

`ResultMapper` 负责两类转换：

- 引擎原生结果行（变量名不带 ``?``）→ :data:`Binding`（变量名带 ``?``，顺序与查询投影一致）；
- :data:`Binding` → 便于序列化的 JSON 结构：每个变量都带有 `value`、`raw`、`type` 等元信息。
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping

from rdflib import BNode, Literal, URIRef
from rdflib.term import Identifier

#: 一行查询结果：变量名（含 ``?``）到 RDF 项的有序映射。
Binding = dict[str, Identifier]


class ResultMapper:
    """结果行与绑定之间的转换器。

    - 支持常见的 XSD 数值、布尔、日期时间类型自动转换。
    - 保留原始文本（`raw`）以及语言标签和数据类型信息，便于前端或日志使用。
    - 遇到未知类型时保持原样，避免误报错或数据丢失。
    """

    #: 可被视为整数的 XSD 类型集合。
    _INT_TYPES = {
        "http://www.w3.org/2001/XMLSchema#integer",
        "http://www.w3.org/2001/XMLSchema#int",
        "http://www.w3.org/2001/XMLSchema#long",
        "http://www.w3.org/2001/XMLSchema#short",
        "http://www.w3.org/2001/XMLSchema#byte",
        "http://www.w3.org/2001/XMLSchema#nonNegativeInteger",
        "http://www.w3.org/2001/XMLSchema#positiveInteger",
        "http://www.w3.org/2001/XMLSchema#nonPositiveInteger",
        "http://www.w3.org/2001/XMLSchema#negativeInteger",
        "http://www.w3.org/2001/XMLSchema#unsignedInt",
        "http://www.w3.org/2001/XMLSchema#unsignedShort",
        "http://www.w3.org/2001/XMLSchema#unsignedByte",
    }

    #: 可被视为浮点或高精度小数的 XSD 类型集合。
    _DECIMAL_TYPES = {
        "http://www.w3.org/2001/XMLSchema#decimal",
        "http://www.w3.org/2001/XMLSchema#double",
        "http://www.w3.org/2001/XMLSchema#float",
    }

    _BOOL_TYPE = "http://www.w3.org/2001/XMLSchema#boolean"
    _DATETIME_TYPE = "http://www.w3.org/2001/XMLSchema#dateTime"

    def to_binding(self, row: Mapping[str, Identifier]) -> Binding:
        """把引擎结果行转换为绑定。

        参数:
            row (Mapping[str, Identifier]): 引擎回调给出的行，例如
                ``{"s": URIRef("https://ex.org/alice"), "name": Literal("Alice")}``。

        返回:
            Binding: 键加上 ``?`` 前缀、顺序不变的新字典，例如 ``{"?s": ..., "?name": ...}``。
        """

        return {self._variable(name): term for name, term in row.items()}

    def to_json(self, binding: Mapping[str, Identifier]) -> dict[str, dict[str, Any]]:
        """把绑定转换为统一的 JSON 结构。

        参数:
            binding (Mapping[str, Identifier]): :meth:`to_binding` 的结果。

        返回:
            dict[str, dict[str, Any]]: ``{变量名: {value, raw, type, ...}}``，变量名保持 ``?`` 前缀。
        """

        return {name: self._convert_term(term) for name, term in binding.items()}

    @staticmethod
    def _variable(name: str) -> str:
        name = str(name)
        return name if name.startswith("?") else f"?{name}"

    def _convert_term(self, term: Identifier) -> dict[str, Any]:
        """将单个 RDF 项转换为标准结构。

        参数:
            term (Identifier): ``URIRef``、``BNode`` 或 ``Literal``。

        返回:
            dict[str, Any]: 包含 ``value``、``raw``、``type`` 等字段的结果。
        """

        raw = str(term)
        if isinstance(term, URIRef):
            return {"value": raw, "raw": raw, "type": "uri"}
        if isinstance(term, BNode):
            return {"value": raw, "raw": raw, "type": "bnode"}
        dtype = str(term.datatype) if isinstance(term, Literal) and term.datatype else None
        lang = term.language if isinstance(term, Literal) else None
        payload: dict[str, Any] = {
            "value": self._cast_value(raw, dtype),
            "raw": raw,
            "type": "literal",
        }
        if dtype:
            payload["datatype"] = dtype
        if lang:
            payload["lang"] = lang
        return payload

    def _cast_value(self, value: str, dtype: str | None) -> Any:
        """根据数据类型尝试做类型转换。

        参数:
            value (str): 字面量的词法形式。
            dtype (str | None): XSD 数据类型 URI，可为 ``None``。

        返回:
            Any: 转换后的 Python 对象；若无法转换则返回原值。
        """

        if dtype is None:
            return value
        if dtype in self._INT_TYPES:
            try:
                return int(value)
            except (TypeError, ValueError):
                return value
        if dtype in self._DECIMAL_TYPES:
            try:
                return float(Decimal(value))
            except (TypeError, ValueError, ArithmeticError):
                return value
        if dtype == self._BOOL_TYPE:
            return value.lower() in {"true", "1"}
        if dtype == self._DATETIME_TYPE:
            return self._normalize_datetime(value)
        return value

    @staticmethod
    def _normalize_datetime(text: str) -> str:
        """将 XSD `dateTime` 文本统一为 ISO 8601 字符串。

        - 自动将结尾的 ``Z`` 替换为 ``+00:00`` 再解析。
        - 若原始字符串无时区，将结果补齐 ``Z``，便于前端一致展示。

        参数:
            text (str): 原始日期时间字符串，例如 ``"2025-10-17T12:30:00Z"``。

        返回:
            str: 标准化后的 ISO 字符串；当解析失败时返回原值。
        """

        normalized = text.replace("Z", "+00:00")
        try:
            dt = datetime.fromisoformat(normalized)
            if dt.tzinfo:
                return dt.isoformat()
            return f"{dt.isoformat()}Z"
        except ValueError:
            return text
