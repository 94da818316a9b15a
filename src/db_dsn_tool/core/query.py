"""
查询模块

Query 包装一个预处理语句，负责：
- 参数绑定：0 起始的位置编号转换为驱动的 1 起始编号，False 绑定为 0，
  流对象按大对象方式绑定
- 延迟执行：任意取数方法在语句尚未执行时先执行一次
- 多种结果形状的取数
"""

from typing import Any, Mapping

from ..utils.logging_utils import get_logger
from .exceptions import DriverError
from .types import ExecutionState, FetchStyle, ParamType, merge_style

logger = get_logger(__name__)


def _driver_param(param: int | str) -> int | str:
    """将 0 起始的位置编号转换为驱动使用的 1 起始编号，命名参数原样返回"""
    if isinstance(param, bool):
        return param
    if isinstance(param, int):
        return param + 1
    if isinstance(param, str) and param.isdigit():
        return int(param) + 1
    return param


def _is_stream(value: Any) -> bool:
    return not isinstance(value, (str, bytes, bytearray)) and callable(
        getattr(value, "read", None)
    )


class Query:
    """
    预处理语句的包装

    语句在包装时已有结果列（已被外部执行过）则视为已执行，
    否则在第一次取数前自动执行一次。

    Attributes:
        statement: 被包装的预处理语句
        state (ExecutionState): 当前执行状态

    Example:
        >>> query = Query(connection.prepare("select name from users where id = ?"), [42])
        >>> query.fetch_scalar()
        'alice'
    """

    def __init__(self, statement: Any, params: Any = None) -> None:
        self._statement = statement
        self._state = (
            ExecutionState.EXECUTED
            if statement.column_count() > 0
            else ExecutionState.NOT_EXECUTED
        )

        if params:
            self.bind_params(params)

    @property
    def statement(self) -> Any:
        return self._statement

    @property
    def state(self) -> ExecutionState:
        return self._state

    @property
    def executed(self) -> bool:
        return self._state is ExecutionState.EXECUTED

    def bind_params(self, params: Mapping[Any, Any] | list | tuple) -> None:
        """
        按插入顺序绑定全部参数

        Args:
            params: 参数映射；列表或元组按下标作为位置编号
        """
        items = params.items() if isinstance(params, Mapping) else enumerate(params)
        for param, value in items:
            self.bind_param(param, value)

    def bind_param(self, param: int | str, value: Any) -> None:
        """
        绑定单个参数

        Args:
            param: 命名参数 ``:name`` / ``name``，或 0 起始的位置编号
            value: 参数值
        """
        if value is False:
            value = 0

        driver_param = _driver_param(param)

        if _is_stream(value):
            logger.debug(f"以大对象方式绑定参数: {driver_param}")
            self._statement.bind_value(driver_param, value, ParamType.LOB)
        else:
            self._statement.bind_value(driver_param, value)

    def execute(self, params: Any = None) -> Any:
        """
        执行语句

        Args:
            params: 执行前额外绑定的参数，覆盖同名的已绑定值

        Returns:
            预处理语句本身，可直接迭代或取数

        Raises:
            DriverError: 当驱动执行失败时
        """
        if params:
            self.bind_params(params)

        if not self._statement.execute():
            info = self._statement.error_info()
            logger.error(f"查询执行失败: {info.message}")
            raise DriverError.from_error_info(info, operation="execute")

        self._state = ExecutionState.EXECUTED
        return self._statement

    def _ensure_executed(self) -> None:
        if self._state is ExecutionState.NOT_EXECUTED:
            logger.debug("首次取数前执行语句")
            self.execute()

    def fetch(self, *args: Any) -> Any:
        """读取下一行，参数原样传给语句的 fetch"""
        self._ensure_executed()
        return self._statement.fetch(*args)

    def fetch_all(self, *args: Any) -> Any:
        """读取全部剩余行，参数原样传给语句的 fetch_all"""
        self._ensure_executed()
        return self._statement.fetch_all(*args)

    def fetch_scalar(self, column: int | str = 0) -> Any:
        """读取下一行的单列值"""
        self._ensure_executed()
        return self._statement.fetch_column(column)

    def fetch_object(self, cls: type | None = None, ctor_args: Any = None) -> Any:
        """读取下一行为对象，未指定类时为属性对象"""
        self._ensure_executed()
        return self._statement.fetch_object(cls, ctor_args)

    def fetch_into(self, target: Any) -> Any:
        """将下一行写入已有对象的属性并返回该对象"""
        self._ensure_executed()
        return self._statement.fetch(FetchStyle.INTO, target)

    def fetch_array(self, *args: Any) -> Any:
        """
        以列名为键读取下一行

        Example:
            >>> query.fetch_array()
            {'id': 1, 'name': 'alice'}
        """
        self._ensure_executed()
        return self._statement.fetch(*self._force_shape(args, FetchStyle.ASSOC))

    def fetch_list(self, *args: Any) -> Any:
        """
        以列下标读取下一行

        Example:
            >>> query.fetch_list()
            [1, 'alice']
        """
        self._ensure_executed()
        return self._statement.fetch(*self._force_shape(args, FetchStyle.NUM))

    @staticmethod
    def _force_shape(args: tuple, shape: FetchStyle) -> list:
        if not args:
            return [shape]
        return [merge_style(args[0], shape), *args[1:]]
