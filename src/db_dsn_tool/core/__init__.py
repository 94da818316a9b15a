"""
核心模块

- Dsn / DsnParser: 连接描述符及其多来源解析
- QueryBuilder / Query: 查询构建、参数绑定与延迟执行
- FetchMode / FetchStyle: 取数模式
- DsnStore / CryptoManager: 加密的具名 DSN 存储
- 异常体系: DsnToolError 及其子类
"""

from .config import DsnStore
from .crypto import CryptoManager
from .dsn import Dsn
from .dsn_parser import DsnParser
from .exceptions import (
    ConfigError,
    CryptoError,
    DatabaseError,
    DriverError,
    DsnError,
    DsnToolError,
    EmptyQueryError,
    InvalidArgumentError,
    MissingDriverError,
    MissingEnvKeyError,
    MissingFieldError,
    MissingFileError,
    UnsupportedValueTypeError,
)
from .query import Query
from .query_builder import QueryBuilder
from .types import (
    FETCH_GROUP,
    ErrorInfo,
    ExecutionState,
    FetchMode,
    FetchStyle,
    ParamType,
)

__all__ = [
    # 连接描述符
    "Dsn",
    "DsnParser",
    # 查询
    "QueryBuilder",
    "Query",
    "FetchMode",
    "FetchStyle",
    "FETCH_GROUP",
    "ParamType",
    "ExecutionState",
    "ErrorInfo",
    # 存储
    "DsnStore",
    "CryptoManager",
    # 异常
    "DsnToolError",
    "DsnError",
    "MissingDriverError",
    "MissingFileError",
    "MissingEnvKeyError",
    "MissingFieldError",
    "UnsupportedValueTypeError",
    "InvalidArgumentError",
    "EmptyQueryError",
    "DatabaseError",
    "DriverError",
    "ConfigError",
    "CryptoError",
]
