"""配置加载入口。

``ConfigManager`` 采用类级单例：进程内任何位置调用 ``ConfigManager.current()`` 都会拿到
同一份 :class:`Settings` 快照。加载顺序为：

1. 模型内置默认值；
2. ``override_path`` 指向的 YAML 文件；
3. 以 ``SF_RDF_QUERY__`` 为前缀、``__`` 分隔层级的环境变量，
   例如 ``SF_RDF_QUERY__FETCH__TIMEOUT=5``。
"""
from __future__ import annotations

import os
from pathlib import Path
from threading import Lock
from typing import Any, Mapping, Optional

import yaml
from pydantic import ValidationError

from sf_rdf_query.common.config.settings import Settings
from sf_rdf_query.common.exceptions import ConfigError

ENV_PREFIX = "SF_RDF_QUERY__"


class ConfigManager:
    """全局配置管理器。"""

    _current: Optional["ConfigManager"] = None
    _lock = Lock()

    def __init__(self, settings: Settings, *, source: str | None = None) -> None:
        self.settings = settings
        self.source = source

    @classmethod
    def load(
        cls,
        override_path: str | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> "ConfigManager":
        """加载配置并设置为当前全局配置。

        参数：
            override_path：可选 YAML 配置文件路径，例如 ``"tests/fixtures/config/testing.yaml"``。
            environ：环境变量映射，缺省读取 ``os.environ``；测试中可传入字典隔离环境。

        返回：新的 ``ConfigManager`` 实例。

        异常：文件不存在、YAML 非法或字段校验失败时抛出 :class:`ConfigError`。"""

        data: dict[str, Any] = {}
        if override_path:
            data = cls._read_yaml(Path(override_path))
        try:
            # 文件可使用别名（如 yieldEvery），先归一为字段名再叠加环境变量
            data = Settings.model_validate(data).model_dump()
            cls._merge(data, cls._read_env(os.environ if environ is None else environ))
            settings = Settings.model_validate(data)
        except ValidationError as exc:
            raise ConfigError("Invalid configuration", details={"errors": exc.errors(), "path": override_path}) from exc
        manager = cls(settings, source=override_path)
        with cls._lock:
            cls._current = manager
        return manager

    @classmethod
    def current(cls) -> "ConfigManager":
        """返回当前全局配置，尚未加载时按默认值加载。"""

        if cls._current is None:
            return cls.load()
        return cls._current

    @classmethod
    def reset(cls) -> None:
        """清空全局配置，主要用于测试。"""

        with cls._lock:
            cls._current = None

    # ---- 内部工具 -----------------------------------------------------

    @staticmethod
    def _read_yaml(path: Path) -> dict[str, Any]:
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}", details={"path": str(path)})
        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}", details={"error": str(exc)}) from exc
        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config root must be a mapping: {path}", details={"path": str(path)})
        return loaded

    @staticmethod
    def _read_env(environ: Mapping[str, str]) -> dict[str, Any]:
        """将带前缀的环境变量转换为嵌套字典，值按 YAML 标量解析（``5``、``null``、``true``）。"""

        result: dict[str, Any] = {}
        for key, raw in environ.items():
            if not key.startswith(ENV_PREFIX):
                continue
            path = [part.lower() for part in key[len(ENV_PREFIX):].split("__") if part]
            if not path:
                continue
            try:
                value = yaml.safe_load(raw)
            except yaml.YAMLError:
                value = raw
            node = result
            for part in path[:-1]:
                node = node.setdefault(part, {})
            node[path[-1]] = value
        return result

    @classmethod
    def _merge(cls, base: dict[str, Any], override: Mapping[str, Any]) -> None:
        for key, value in override.items():
            if isinstance(value, Mapping) and isinstance(base.get(key), dict):
                cls._merge(base[key], value)
            else:
                base[key] = value


__all__ = ["ConfigManager", "Settings", "ENV_PREFIX"]
