"""日志工厂。

统一创建带默认处理器的标准库 ``logging.Logger``，级别与格式取自
``Settings.logging``。同一进程只会向根 ``sf_rdf_query`` 日志器挂载一个处理器。
"""
from __future__ import annotations

import logging
from threading import Lock

from sf_rdf_query.common.config import ConfigManager

_ROOT_LOGGER = "sf_rdf_query"


class LoggerFactory:
    """日志器工厂。"""

    _configured = False
    _lock = Lock()

    @classmethod
    def create_default_logger(cls, name: str) -> logging.Logger:
        """返回模块级日志器，首次调用时配置根处理器。

        参数：
            name：日志器名称，通常传入 ``__name__``，例如 ``"sf_rdf_query.source.resolver"``。
        """

        cls._ensure_configured()
        return logging.getLogger(name)

    @classmethod
    def _ensure_configured(cls) -> None:
        with cls._lock:
            if cls._configured:
                return
            cfg = ConfigManager.current().settings.logging
            root = logging.getLogger(_ROOT_LOGGER)
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(cfg.format))
            root.addHandler(handler)
            root.setLevel(cfg.level)
            cls._configured = True
