# SPDX-FileCopyrightText: 2025-present wangquanqing <wangquanqing1636@sina.com>
#
# SPDX-License-Identifier: MIT
"""
DB DSN Tool - 数据库连接描述符与查询工具
========================================

将映射、URL、文件和环境变量形式的连接描述统一为 Dsn，
并以延迟执行的方式包装预处理语句。

主要特性:
- 支持 MySQL, PostgreSQL, SQLite, SQL Server, Oracle
- 驱动别名翻译（postgres / postgresql -> pgsql）
- 凭据不进入连接字符串
- 查询参数 0 起始编号，首次取数前自动执行
- 加密存储的具名 DSN 和命令行界面

使用示例:
    >>> from db_dsn_tool import DsnParser, QueryBuilder
    >>> dsn = DsnParser().parse_env("DATABASE_URL")
    >>> with dsn.connect() as connection:
    ...     rows = QueryBuilder(connection).set_query("select 1 as one").fetch_array().build().fetch_all()
"""

from .cli import DsnToolCLI
from .cli import main as cli_main
from .core.config import DsnStore
from .core.dsn import Dsn
from .core.dsn_parser import DsnParser
from .core.exceptions import (
    ConfigError,
    CryptoError,
    DatabaseError,
    DriverError,
    DsnError,
    DsnToolError,
    EmptyQueryError,
    InvalidArgumentError,
)
from .core.query import Query
from .core.query_builder import QueryBuilder
from .core.types import FETCH_GROUP, FetchMode, FetchStyle
from .drivers.sqlalchemy_driver import SQLAlchemyConnector

__version__ = "1.0.0"

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
    # 驱动与存储
    "SQLAlchemyConnector",
    "DsnStore",
    # 异常类
    "DsnToolError",
    "DsnError",
    "InvalidArgumentError",
    "EmptyQueryError",
    "DatabaseError",
    "DriverError",
    "ConfigError",
    "CryptoError",
    # CLI
    "DsnToolCLI",
    "cli_main",
]
