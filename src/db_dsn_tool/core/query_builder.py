"""
查询构建器模块

QueryBuilder 收集查询语句、参数和取数模式，build() 时向连接请求预处理语句，
并返回包装好的 Query。构建器可以在 build() 之后继续复用。
"""

import importlib
from typing import Any, Dict, List, Mapping

from ..utils.logging_utils import get_logger
from .exceptions import DriverError, EmptyQueryError, InvalidArgumentError
from .query import Query
from .types import FetchMode

logger = get_logger(__name__)

_SCALAR_TYPES = (str, bytes, int, float, bool, complex)


def _is_valid_param_key(param: Any) -> bool:
    return isinstance(param, (str, int)) and not isinstance(param, bool)


def _resolve_class(target: Any) -> type:
    """解析类对象或 ``package.module.Class`` 形式的类路径"""
    if isinstance(target, type):
        return target

    if isinstance(target, str):
        module_name, _, class_name = target.rpartition(".")
        if module_name and class_name:
            try:
                resolved = getattr(importlib.import_module(module_name), class_name)
            except (ImportError, AttributeError) as e:
                raise InvalidArgumentError(
                    f"类 `{target}` 不存在", field_name="cls", expected_type="type"
                ) from e
            if isinstance(resolved, type):
                return resolved

    raise InvalidArgumentError(
        f"类 `{target}` 不存在", field_name="cls", expected_type="type"
    )


class QueryBuilder:
    """
    查询构建器

    所有设置方法都返回构建器本身，支持链式调用。

    Attributes:
        connection: 提供 prepare(sql) 和 error_info() 的驱动连接

    Example:
        >>> rows = (
        ...     QueryBuilder(connection)
        ...     .set_query("select * from users where id = :id")
        ...     .set_param("id", 42)
        ...     .fetch_array()
        ...     .build()
        ...     .fetch_all()
        ... )
    """

    def __init__(self, connection: Any) -> None:
        self.connection = connection
        self._query: str | None = None
        self._params: Dict[str | int, Any] = {}
        self._fetch_mode: FetchMode | None = None

    def get_query(self) -> str | None:
        return self._query

    def set_query(self, query: str | None) -> "QueryBuilder":
        """
        设置查询语句

        Raises:
            InvalidArgumentError: 当查询既不是字符串也不是None时
        """
        if query is not None and not isinstance(query, str):
            raise InvalidArgumentError(
                f"查询语句必须是字符串: {type(query).__name__}",
                field_name="query",
                expected_type="str",
            )
        self._query = query
        return self

    def get_params(self) -> Dict[str | int, Any]:
        return dict(self._params)

    def set_params(self, params: Mapping[Any, Any] | None) -> "QueryBuilder":
        """
        合并一组参数，传入None清空全部参数

        Raises:
            InvalidArgumentError: 当参数不是映射或包含无效的参数标识时
        """
        if params is None:
            self._params = {}
            return self

        if not isinstance(params, Mapping):
            raise InvalidArgumentError(
                f"参数必须是映射: {type(params).__name__}",
                field_name="params",
                expected_type="Mapping",
            )

        for param, value in params.items():
            self.set_param(param, value)
        return self

    def set_param(self, param: str | int, value: Any) -> "QueryBuilder":
        """
        设置单个参数

        Args:
            param: 参数名或 0 起始的位置编号
            value: 参数值

        Raises:
            InvalidArgumentError: 当参数标识不是字符串或整数时
        """
        if not _is_valid_param_key(param):
            raise InvalidArgumentError(
                f"无效的参数标识: {param!r}",
                field_name="param",
                expected_type="str | int",
            )
        self._params[param] = value
        return self

    def get_param(self, param: str | int) -> Any:
        return self._params.get(param)

    def set_fetch_mode(self, style: int | None, *args: Any) -> "QueryBuilder":
        """
        设置取数模式

        Args:
            style: 取数样式，None 或 0 时清除取数模式
            *args: 样式参数

        Example:
            >>> builder.set_fetch_mode(FetchStyle.COLUMN, 1).get_fetch_mode()
            [7, 1]
        """
        self._fetch_mode = FetchMode(style, tuple(args)) if style else None
        return self

    def get_fetch_mode(self) -> List[Any] | None:
        return self._fetch_mode.as_list() if self._fetch_mode else None

    def get_fetch_style(self) -> int | None:
        return self._fetch_mode.style if self._fetch_mode else None

    def get_fetch_arguments(self) -> List[Any] | None:
        if self._fetch_mode and self._fetch_mode.arguments:
            return list(self._fetch_mode.arguments)
        return None

    def _use_mode(self, mode: FetchMode) -> "QueryBuilder":
        return self.set_fetch_mode(*mode.as_list())

    def fetch_object(self, cls: Any = None, ctor_args: Any = None) -> "QueryBuilder":
        """
        以对象形式取数

        Args:
            cls: 目标类或类路径字符串，None 时返回属性对象
            ctor_args: 构造参数列表

        Raises:
            InvalidArgumentError: 当类无法解析或构造参数不是列表时
        """
        if not cls:
            return self._use_mode(FetchMode.as_object())

        if ctor_args is not None and not isinstance(ctor_args, (list, tuple)):
            raise InvalidArgumentError(
                "构造参数必须是列表", field_name="ctor_args", expected_type="list"
            )

        return self._use_mode(FetchMode.as_object(_resolve_class(cls), ctor_args))

    def fetch_into(self, target: Any) -> "QueryBuilder":
        """
        将结果写入已有对象

        Raises:
            InvalidArgumentError: 当目标不是对象时
        """
        if target is None or isinstance(target, _SCALAR_TYPES):
            raise InvalidArgumentError(
                "需要一个对象", field_name="target", expected_type="object"
            )
        return self._use_mode(FetchMode.into(target))

    def fetch_array(self) -> "QueryBuilder":
        return self._use_mode(FetchMode.array())

    def fetch_list(self) -> "QueryBuilder":
        return self._use_mode(FetchMode.list())

    def fetch_scalar(self, column: int | str | None = 0) -> "QueryBuilder":
        """
        取单列值

        Raises:
            InvalidArgumentError: 当列标识不是标量时
        """
        if column is not None and not isinstance(column, (str, int, float, bool)):
            raise InvalidArgumentError(
                "列标识必须是标量", field_name="column", expected_type="str | int"
            )
        return self._use_mode(FetchMode.scalar(column))

    def build(self) -> Query:
        """
        预处理查询语句并返回 Query

        Returns:
            Query: 携带当前参数的查询，已应用取数模式

        Raises:
            EmptyQueryError: 当未设置查询语句时
            DriverError: 当连接预处理失败时
        """
        if not self._query:
            raise EmptyQueryError()

        statement = self.connection.prepare(self._query)
        if statement is None:
            info = self.connection.error_info()
            logger.error(f"语句预处理失败: {info.message}")
            raise DriverError.from_error_info(info, operation="prepare")

        if self._fetch_mode:
            statement.set_fetch_mode(*self._fetch_mode.as_list())

        logger.debug(f"查询已构建: {self._query}")
        return Query(statement, self._params)

    def execute(self, params: Any = None) -> Any:
        """构建并执行，返回已执行的预处理语句"""
        return self.build().execute(params)
