"""
数据库驱动模块

基于 SQLAlchemy 实现查询层使用的连接、预处理语句和取数接口。

驱动名称与 SQLAlchemy 方言:
- mysql / mysql_socket: mysql+pymysql
- pgsql: postgresql+psycopg
- sqlite: sqlite
- sql_server / dblib: mssql+pymssql
- oci: oracle+oracledb
"""

from .sqlalchemy_driver import (
    DIALECT_MAP,
    SQLAlchemyConnection,
    SQLAlchemyConnector,
    SQLAlchemyStatement,
)

__all__ = [
    "DIALECT_MAP",
    "SQLAlchemyConnector",
    "SQLAlchemyConnection",
    "SQLAlchemyStatement",
]
