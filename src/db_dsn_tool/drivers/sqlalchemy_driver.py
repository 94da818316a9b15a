"""
SQLAlchemy 数据库驱动模块

以 SQLAlchemy 实现查询层所需的底层驱动接口：
- SQLAlchemyConnector.connect(连接字符串, 用户名, 密码, 选项) -> 连接
- SQLAlchemyConnection.prepare(sql) -> 预处理语句
- SQLAlchemyStatement: 参数绑定、执行、列元数据和多种取数形状
- error_info(): 结构化错误信息 ErrorInfo(sqlstate, code, message)

连接字符串为 Dsn.serialize() 的输出，在这里解析回各字段并映射为
SQLAlchemy URL。连接以自动提交模式运行。

支持的驱动：
- mysql / mysql_socket (PyMySQL)
- pgsql (psycopg)
- sqlite (内置)
- sql_server / dblib (pymssql)
- oci (oracledb)
"""

from types import SimpleNamespace
from typing import Any, Dict, Iterator, List, Mapping, Tuple
from urllib.parse import unquote_plus

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Connection, CursorResult, Engine
from sqlalchemy.exc import SQLAlchemyError

from ..core.exceptions import DriverError, InvalidArgumentError
from ..core.types import (
    DEFAULT_FETCH_STYLE,
    ErrorInfo,
    FetchMode,
    FetchStyle,
    ParamType,
)
from ..utils.logging_utils import get_logger

# 获取模块级别的日志记录器
logger = get_logger(__name__)

# 驱动名称到 SQLAlchemy 方言的映射
DIALECT_MAP: Dict[str, str] = {
    "mysql": "mysql+pymysql",
    "mysql_socket": "mysql+pymysql",
    "pgsql": "postgresql+psycopg",
    "sqlite": "sqlite",
    "sql_server": "mssql+pymssql",
    "dblib": "mssql+pymssql",
    "oci": "oracle+oracledb",
}

# 映射到 URL 字段的连接字符串键，其余键进入 URL 查询参数
URL_FIELD_KEYS = {"host": "host", "port": "port", "dbname": "database"}

# 未知错误时使用的通用 SQLSTATE
GENERAL_SQLSTATE = "HY000"

# 位置参数重写后的命名前缀
POSITIONAL_PREFIX = "_pos"


def parse_dsn_string(dsn_string: str) -> Tuple[str, str | None, Dict[str, str]]:
    """
    将连接字符串解析为 (驱动, SQLite路径, 键值对)

    Args:
        dsn_string: 形如 ``pgsql:host=h;dbname=d`` 或 ``sqlite:/path/db.sqlite:``

    Returns:
        Tuple[str, str | None, Dict[str, str]]: 驱动名、SQLite路径和解码后的键值对

    Raises:
        DriverError: 当连接字符串缺少驱动前缀时

    Example:
        >>> parse_dsn_string("sqlite::memory::")
        ('sqlite', ':memory:', {})
    """
    driver, sep, rest = dsn_string.partition(":")
    if not sep or not driver:
        raise DriverError(
            f"连接字符串缺少驱动前缀: {dsn_string!r}",
            "DSN_STRING_INVALID",
            operation="connect",
        )

    path = None
    if driver == "sqlite":
        # 路径本身可能包含冒号（如 :memory:），键值对中的冒号已被编码
        path, _, rest = rest.rpartition(":")

    pairs: Dict[str, str] = {}
    for chunk in rest.split(";"):
        if not chunk:
            continue
        key, _, value = chunk.partition("=")
        pairs[unquote_plus(key)] = unquote_plus(value)

    return driver, path, pairs


def build_sqlalchemy_url(
    dsn_string: str, user: str | None = None, password: str | None = None
) -> URL:
    """
    由连接字符串和凭据构建 SQLAlchemy URL

    Raises:
        DriverError: 当驱动不受支持或端口无效时
    """
    driver, path, pairs = parse_dsn_string(dsn_string)

    dialect = DIALECT_MAP.get(driver)
    if dialect is None:
        supported = ", ".join(DIALECT_MAP.keys())
        raise DriverError(
            f"不支持的数据库驱动: {driver}，支持的驱动: {supported}",
            "DRIVER_UNSUPPORTED",
            driver_name=driver,
            operation="connect",
        )

    fields: Dict[str, Any] = {}
    query: Dict[str, str] = {}
    for key, value in pairs.items():
        if key in URL_FIELD_KEYS:
            fields[URL_FIELD_KEYS[key]] = value
        else:
            query[key] = value

    if driver == "sqlite":
        fields = {"database": path or ":memory:"}
    elif "port" in fields:
        try:
            fields["port"] = int(fields["port"])
        except ValueError as e:
            raise DriverError(
                f"端口无效: {fields['port']}",
                "DSN_INVALID_PORT",
                driver_name=driver,
                operation="connect",
            ) from e

    return URL.create(
        dialect,
        username=user or None,
        password=password or None,
        query=query,
        **fields,
    )


def error_info_from_exception(exc: BaseException) -> ErrorInfo:
    """
    从 SQLAlchemy / DBAPI 异常中提取结构化错误信息

    SQLSTATE 取自 DBAPI 异常的 sqlstate 或 pgcode，驱动错误代码取自
    sqlite_errorcode 或异常参数中的整数代码。
    """
    orig = getattr(exc, "orig", None) or exc

    sqlstate = (
        getattr(orig, "sqlstate", None)
        or getattr(orig, "pgcode", None)
        or GENERAL_SQLSTATE
    )

    code = getattr(orig, "sqlite_errorcode", None)
    args = getattr(orig, "args", ())
    if code is None and args and isinstance(args[0], int):
        code = args[0]

    return ErrorInfo(str(sqlstate), code, str(orig))


def rewrite_positional(sql: str) -> Tuple[str, int]:
    """
    将 ``?`` 位置占位符重写为命名绑定参数

    单引号、双引号字符串以及 ``--`` / ``/* */`` 注释中的问号保持不变，
    其中的冒号转义为 ``\\:``，避免被 text() 当作命名参数。

    Returns:
        Tuple[str, int]: 重写后的SQL和位置参数个数

    Example:
        >>> rewrite_positional("select ? where a = '?' -- ?")
        ("select :_pos1 where a = '?' -- ?", 1)
    """
    parts: List[str] = []
    count = 0
    i = 0
    length = len(sql)

    while i < length:
        char = sql[i]

        if char in ("'", '"'):
            end = sql.find(char, i + 1)
        elif sql.startswith("--", i):
            end = sql.find("\n", i)
        elif sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            if end != -1:
                end += 1
        else:
            if char == "?":
                count += 1
                parts.append(f":{POSITIONAL_PREFIX}{count}")
            else:
                parts.append(char)
            i += 1
            continue

        # 字面量或注释原样保留，直到结束符（未闭合时直到末尾）
        end = length - 1 if end == -1 else end
        parts.append(sql[i : end + 1].replace(":", "\\:"))
        i = end + 1

    return "".join(parts), count


class _LobParameter:
    """以大对象方式绑定的流，执行时读取全部内容"""

    def __init__(self, stream: Any) -> None:
        self.stream = stream

    def read(self) -> Any:
        return self.stream.read()


class SQLAlchemyStatement:
    """
    预处理语句

    绑定参数在执行时统一提交，结果集按需逐行读取。

    Attributes:
        query_string (str): 原始SQL语句
    """

    def __init__(self, connection: Connection, sql: str) -> None:
        self.query_string = sql
        self._connection = connection
        self._sql, self._positional_count = rewrite_positional(sql)
        self._bound: Dict[str, Any] = {}
        self._result: CursorResult | None = None
        self._columns: List[str] = []
        self._row_count = 0
        self._fetch_mode = FetchMode(DEFAULT_FETCH_STYLE)
        self._error = ErrorInfo.ok()

    def bind_value(
        self, param: int | str, value: Any, param_type: ParamType | None = None
    ) -> bool:
        """
        绑定参数值

        Args:
            param: 1 起始的位置编号，或 ``:name`` / ``name`` 形式的命名参数
            value: 参数值
            param_type: 绑定类型，None 表示按原值绑定

        Returns:
            bool: 绑定成功返回True

        Raises:
            InvalidArgumentError: 当位置编号小于1或参数名无效时
        """
        key = self._bind_key(param)

        if param_type == ParamType.LOB and hasattr(value, "read"):
            value = _LobParameter(value)
        elif value is not None and param_type == ParamType.INT:
            value = int(value)
        elif value is not None and param_type == ParamType.BOOL:
            value = bool(value)
        elif param_type == ParamType.NULL:
            value = None

        self._bound[key] = value
        return True

    def _bind_key(self, param: int | str) -> str:
        if isinstance(param, int) and not isinstance(param, bool):
            if param < 1:
                raise InvalidArgumentError(
                    f"位置参数从1开始编号: {param}", field_name="param"
                )
            return f"{POSITIONAL_PREFIX}{param}"

        if isinstance(param, str) and param.lstrip(":"):
            return param.lstrip(":")

        raise InvalidArgumentError(f"无效的参数标识: {param!r}", field_name="param")

    def execute(self) -> bool:
        """
        执行语句

        Returns:
            bool: 成功返回True，失败返回False并记录 error_info()
        """
        params = {
            key: value.read() if isinstance(value, _LobParameter) else value
            for key, value in self._bound.items()
        }

        try:
            self.close_cursor()
            result = self._connection.execute(text(self._sql), params)
        except SQLAlchemyError as e:
            self._error = error_info_from_exception(e)
            logger.error(
                f"语句执行失败: {e.__class__.__name__}: {self._error.message}"
            )
            return False

        self._error = ErrorInfo.ok()
        self._row_count = result.rowcount
        if result.returns_rows:
            self._result = result
            self._columns = list(result.keys())
        else:
            result.close()

        logger.debug(f"语句执行成功，结果列数: {len(self._columns)}")
        return True

    def column_count(self) -> int:
        """结果集的列数，未执行或无结果集时为0"""
        return len(self._columns)

    def row_count(self) -> int:
        """最近一次执行影响的行数"""
        return self._row_count

    def error_info(self) -> ErrorInfo:
        return self._error

    def close_cursor(self) -> None:
        """释放当前结果集"""
        if self._result is not None:
            self._result.close()
        self._result = None
        self._columns = []

    def set_fetch_mode(self, style: int, *args: Any) -> bool:
        """设置默认取数模式"""
        self._fetch_mode = self._make_mode(style, args)
        return True

    def fetch(self, style: int | None = None, *args: Any) -> Any:
        """
        读取下一行

        Args:
            style: 取数样式，None 使用 set_fetch_mode 设置的模式
            *args: 样式参数

        Returns:
            Any: 按样式构造的行，没有更多行时返回None
        """
        row = self._next_row()
        if row is None:
            return None
        mode = self._fetch_mode if style is None else self._make_mode(style, args)
        return self._shape(self._columns, list(row), mode)

    def fetch_all(self, style: int | None = None, *args: Any) -> Any:
        """
        读取剩余全部行

        样式带 FETCH_GROUP 修饰位时，返回以首列为键的分组字典。
        """
        if self._result is None:
            return []

        mode = self._fetch_mode if style is None else self._make_mode(style, args)
        rows = [list(row) for row in self._result.fetchall()]

        if not mode.grouped:
            return [self._shape(self._columns, row, mode) for row in rows]

        groups: Dict[Any, List[Any]] = {}
        for row in rows:
            groups.setdefault(row[0], []).append(
                self._shape(self._columns[1:], row[1:], mode)
            )
        return groups

    def fetch_column(self, column: int | str = 0) -> Any:
        """读取下一行的单列值，没有更多行时返回None"""
        row = self._next_row()
        if row is None:
            return None
        return self._column_value(self._columns, list(row), column)

    def fetch_object(self, cls: type | None = None, ctor_args: Any = None) -> Any:
        """读取下一行并构造为对象"""
        row = self._next_row()
        if row is None:
            return None
        mode = FetchMode.as_object(cls, ctor_args)
        return self._shape(self._columns, list(row), mode)

    def __iter__(self) -> Iterator[Any]:
        while True:
            row = self.fetch()
            if row is None:
                return
            yield row

    def _next_row(self) -> Any:
        if self._result is None:
            return None
        return self._result.fetchone()

    def _make_mode(self, style: int, args: Tuple[Any, ...]) -> FetchMode:
        mode = FetchMode(style, tuple(args))
        valid_shapes = {int(s) for s in FetchStyle}
        if mode.shape not in valid_shapes:
            raise InvalidArgumentError(f"不支持的取数样式: {style}", field_name="style")
        if mode.shape == FetchStyle.CLASS and not isinstance(mode.argument(0), type):
            raise InvalidArgumentError("CLASS 样式需要一个类", field_name="style")
        if mode.shape == FetchStyle.INTO and mode.argument(0) is None:
            raise InvalidArgumentError("INTO 样式需要目标对象", field_name="style")
        return mode

    def _column_value(self, names: List[str], values: List[Any], column: Any) -> Any:
        if isinstance(column, str):
            if column not in names:
                raise InvalidArgumentError(f"列不存在: {column}", field_name="column")
            return values[names.index(column)]
        index = int(column or 0)
        if not 0 <= index < len(values):
            raise InvalidArgumentError(f"列索引越界: {column}", field_name="column")
        return values[index]

    def _shape(self, names: List[str], values: List[Any], mode: FetchMode) -> Any:
        shape = mode.shape

        if shape == FetchStyle.ASSOC:
            return dict(zip(names, values))

        if shape == FetchStyle.NUM:
            return values

        if shape in (FetchStyle.BOTH, FetchStyle.LAZY):
            both: Dict[Any, Any] = {}
            for index, (name, value) in enumerate(zip(names, values)):
                both[name] = value
                both[index] = value
            return both

        if shape == FetchStyle.OBJ:
            return SimpleNamespace(**dict(zip(names, values)))

        if shape == FetchStyle.CLASS:
            ctor_args = mode.argument(1, ())
            instance = mode.argument(0)(*ctor_args)
            for name, value in zip(names, values):
                setattr(instance, name, value)
            return instance

        if shape == FetchStyle.INTO:
            target = mode.argument(0)
            for name, value in zip(names, values):
                setattr(target, name, value)
            return target

        if shape == FetchStyle.COLUMN:
            return self._column_value(names, values, mode.argument(0, 0))

        raise InvalidArgumentError(f"不支持的取数样式: {mode.style}", field_name="style")


class SQLAlchemyConnection:
    """
    数据库连接

    持有一个 SQLAlchemy 引擎和一个自动提交模式的连接，支持上下文管理器。

    Example:
        >>> with SQLAlchemyConnector().connect("sqlite::memory::") as conn:
        ...     stmt = conn.prepare("select 1 as one")
        ...     stmt.execute()
        ...     stmt.fetch(FetchStyle.ASSOC)
        {'one': 1}
    """

    def __init__(self, engine: Engine, connection: Connection, driver_name: str) -> None:
        self.engine = engine
        self.driver_name = driver_name
        self._connection: Connection | None = connection
        self._error = ErrorInfo.ok()

    @property
    def closed(self) -> bool:
        return self._connection is None

    def prepare(self, sql: str) -> SQLAlchemyStatement | None:
        """
        预处理SQL语句

        Returns:
            SQLAlchemyStatement | None: 预处理语句，失败时返回None并记录 error_info()
        """
        if self._connection is None:
            self._error = ErrorInfo(GENERAL_SQLSTATE, None, "连接已关闭，无法预处理语句")
            logger.error(self._error.message)
            return None

        if not isinstance(sql, str) or not sql.strip():
            self._error = ErrorInfo(GENERAL_SQLSTATE, None, "SQL语句不能为空")
            logger.error(self._error.message)
            return None

        self._error = ErrorInfo.ok()
        return SQLAlchemyStatement(self._connection, sql)

    def error_info(self) -> ErrorInfo:
        return self._error

    def close(self) -> None:
        """关闭连接并释放引擎资源"""
        if self._connection is None:
            logger.debug("数据库连接已关闭，无需重复操作")
            return

        self._connection.close()
        self._connection = None
        self.engine.dispose()
        logger.info(f"数据库连接已关闭: {self.driver_name}")

    def __enter__(self) -> "SQLAlchemyConnection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"SQLAlchemyConnection(driver={self.driver_name!r}, "
            f"url={self.engine.url.render_as_string(hide_password=True)!r}, "
            f"closed={self.closed!r})"
        )


class SQLAlchemyConnector:
    """
    基于 SQLAlchemy 的驱动连接器

    Example:
        >>> connector = SQLAlchemyConnector()
        >>> conn = connector.connect("pgsql:host=localhost;dbname=app", "user", "secret")
    """

    def connect(
        self,
        dsn_string: str,
        user: str | None = None,
        password: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> SQLAlchemyConnection:
        """
        建立数据库连接

        Args:
            dsn_string: Dsn.serialize() 生成的连接字符串
            user: 用户名
            password: 密码
            options: create_engine 的关键字参数（如 echo、connect_args）

        Returns:
            SQLAlchemyConnection: 已建立的连接

        Raises:
            DriverError: 当驱动不受支持、依赖缺失或连接失败时
        """
        url = build_sqlalchemy_url(dsn_string, user, password)
        driver_name = dsn_string.partition(":")[0]

        try:
            engine = create_engine(url, **dict(options or {}))
        except ImportError as e:
            error_msg = f"数据库驱动依赖缺失: {str(e)}"
            logger.error(error_msg)
            raise DriverError(
                error_msg, "DRIVER_MISSING", driver_name=driver_name, operation="connect"
            ) from e
        except SQLAlchemyError as e:
            info = error_info_from_exception(e)
            logger.error(f"数据库引擎创建失败: {info.message}")
            raise DriverError.from_error_info(
                info, operation="connect", driver_name=driver_name
            ) from e

        try:
            connection = engine.connect().execution_options(
                isolation_level="AUTOCOMMIT"
            )
        except SQLAlchemyError as e:
            engine.dispose()
            info = error_info_from_exception(e)
            logger.error(f"数据库连接建立失败: {info.message}", exc_info=True)
            raise DriverError.from_error_info(
                info, operation="connect", driver_name=driver_name
            ) from e

        logger.info(
            f"数据库连接建立成功: {url.render_as_string(hide_password=True)}"
        )
        return SQLAlchemyConnection(engine, connection, driver_name)
