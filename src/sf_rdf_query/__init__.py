from .engine import NOT_GIVEN, QueryAdapter, QueryEngine, RdflibQueryEngine, ResultChannel
from .source import SourceResolver, classify
from .connection import DocumentFetcher
from .converter import Binding, ResultMapper
from .common.config import ConfigManager, Settings
from .common.exceptions import (
    APIError,
    ErrorCode,
    MalformedQuadError,
    UnsupportedQueryError,
    UnsupportedSourceError,
)

__all__ = [
    "NOT_GIVEN",
    "QueryAdapter",
    "QueryEngine",
    "RdflibQueryEngine",
    "ResultChannel",
    "SourceResolver",
    "classify",
    "DocumentFetcher",
    "Binding",
    "ResultMapper",
    "ConfigManager",
    "Settings",
    "APIError",
    "ErrorCode",
    "MalformedQuadError",
    "UnsupportedQueryError",
    "UnsupportedSourceError",
]
