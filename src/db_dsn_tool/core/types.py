"""
取数模式与驱动协作类型

定义查询层与底层驱动之间共享的数据类型：
- FetchStyle: 结果集的行形状（沿用常见驱动的编号）
- FetchMode: 取数模式，显式的样式 + 样式参数
- ParamType: 参数绑定类型
- ErrorInfo: 驱动返回的结构化错误信息
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, List, NamedTuple, Tuple


class FetchStyle(IntEnum):
    """结果行的形状"""

    LAZY = 1
    ASSOC = 2
    NUM = 3
    BOTH = 4
    OBJ = 5
    COLUMN = 7
    CLASS = 8
    INTO = 9


# 修饰位：按首列分组（仅 fetch_all 生效）
FETCH_GROUP = 0x10000

# 低16位表示行形状，高位为修饰位
SHAPE_MASK = 0xFFFF

DEFAULT_FETCH_STYLE = FetchStyle.BOTH


def merge_style(style: int, shape: FetchStyle) -> int:
    """
    将固定的行形状合并进调用方给出的取数样式

    保留调用方样式中的修饰位，行形状强制替换为 `shape`。

    Example:
        >>> merge_style(FetchStyle.LAZY | FETCH_GROUP, FetchStyle.ASSOC) == FETCH_GROUP | 2
        True
    """
    return (int(style) & ~SHAPE_MASK) | int(shape)


class ParamType(IntEnum):
    """参数绑定类型"""

    NULL = 0
    INT = 1
    STR = 2
    LOB = 3
    BOOL = 5


@dataclass(frozen=True)
class FetchMode:
    """
    取数模式

    `style` 为样式代码，`arguments` 为该样式需要的参数：
    - CLASS: (类, 构造参数)
    - INTO: (目标对象,)
    - COLUMN: (列索引或列名,)
    - ASSOC / NUM / OBJ / BOTH: 无参数

    Example:
        >>> mode = FetchMode.scalar(1)
        >>> mode.as_list()
        [7, 1]
    """

    style: int
    arguments: Tuple[Any, ...] = ()

    @classmethod
    def as_object(cls, target_class: type | None = None, ctor_args: Any = None) -> "FetchMode":
        if target_class is None:
            return cls(FetchStyle.OBJ)
        return cls(FetchStyle.CLASS, (target_class, ctor_args))

    @classmethod
    def into(cls, target: Any) -> "FetchMode":
        return cls(FetchStyle.INTO, (target,))

    @classmethod
    def scalar(cls, column: Any = 0) -> "FetchMode":
        return cls(FetchStyle.COLUMN, (column,))

    @classmethod
    def array(cls) -> "FetchMode":
        return cls(FetchStyle.ASSOC)

    @classmethod
    def list(cls) -> "FetchMode":
        return cls(FetchStyle.NUM)

    @property
    def shape(self) -> int:
        """去除修饰位后的行形状"""
        return int(self.style) & SHAPE_MASK

    @property
    def grouped(self) -> bool:
        return bool(int(self.style) & FETCH_GROUP)

    def argument(self, index: int, default: Any = None) -> Any:
        """按位置读取样式参数，缺省或为None时返回 `default`"""
        if index < len(self.arguments) and self.arguments[index] is not None:
            return self.arguments[index]
        return default

    def as_list(self) -> List[Any]:
        return [self.style, *self.arguments]


class ExecutionState(Enum):
    """预处理语句的执行状态"""

    NOT_EXECUTED = "not_executed"
    EXECUTED = "executed"


class ErrorInfo(NamedTuple):
    """
    驱动错误信息

    Attributes:
        sqlstate: SQLSTATE 风格的状态码，成功时为 "00000"
        code: 驱动特定的错误代码
        message: 错误消息
    """

    sqlstate: str
    code: Any = None
    message: str | None = None

    @classmethod
    def ok(cls) -> "ErrorInfo":
        return cls("00000")

    @property
    def failed(self) -> bool:
        return self.sqlstate != "00000"
