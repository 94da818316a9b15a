"""
DSN工具自定义异常模块

提供项目专用的异常类层次结构，用于更精确地处理不同类型的错误。
异常类按照功能模块进行组织，便于错误分类和处理。

异常类层次结构：
DsnToolError
├── DsnError (连接描述符相关异常)
│   ├── MissingDriverError (缺少driver)
│   ├── MissingFileError (描述文件不存在)
│   ├── MissingEnvKeyError (环境变量缺失或为空)
│   ├── MissingFieldError (URL缺少必需字段)
│   └── UnsupportedValueTypeError (无法解析的值类型)
├── InvalidArgumentError (参数校验异常)
│   └── EmptyQueryError (查询语句为空)
├── DatabaseError (数据库操作基础异常)
│   └── DriverError (数据库驱动异常，携带错误代码和消息)
├── ConfigError (配置相关异常)
└── CryptoError (加密解密相关异常)
"""

from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from .types import ErrorInfo


class DsnToolError(Exception):
    """
    DSN工具基础异常类

    所有自定义异常的基类，提供统一的异常处理接口。
    支持错误代码、详细信息和字典格式转换。

    Attributes:
        message (str): 异常描述信息
        error_code (Any): 错误代码，用于错误分类和识别
        details (Dict[str, Any]): 详细的错误信息字典

    Example:
        >>> try:
        ...     raise DsnToolError("测试异常", "TEST_001", {"key": "value"})
        ... except DsnToolError as e:
        ...     print(e.to_dict())
        {'error_type': 'DsnToolError', 'message': '测试异常',
         'error_code': 'TEST_001', 'details': {'key': 'value'}}
    """

    def __init__(
        self,
        message: str,
        error_code: Any = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        """
        返回异常的字符串表示

        Example:
            >>> str(DsnToolError("解析失败", "DSN_001"))
            'DsnToolError: 解析失败 (错误代码: DSN_001)'
        """
        base_str = f"{self.__class__.__name__}: {self.message}"
        if self.error_code is not None:
            base_str += f" (错误代码: {self.error_code})"
        return base_str

    def to_dict(self) -> Dict[str, Any]:
        """
        将异常信息转换为字典格式，便于序列化和日志记录

        Returns:
            Dict[str, Any]: 包含异常信息的字典
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class DsnError(DsnToolError):
    """
    连接描述符相关异常

    处理DSN构造、解析、加载等过程中出现的错误。
    """


class MissingDriverError(DsnError):
    """映射中缺少 `driver` 键或其值为空"""

    def __init__(self, message: str = "缺少 `driver` 键") -> None:
        super().__init__(message, "DSN_MISSING_DRIVER")


class MissingFileError(DsnError):
    """
    描述文件不存在

    Attributes:
        file_path (str): 请求加载的文件路径
    """

    def __init__(self, file_path: str) -> None:
        super().__init__(
            f"描述文件不存在: `{file_path}`",
            "DSN_MISSING_FILE",
            details={"file_path": file_path},
        )
        self.file_path = file_path


class MissingEnvKeyError(DsnError):
    """
    环境变量不存在或为空

    Attributes:
        env_key (str): 环境变量名称
    """

    def __init__(self, env_key: str) -> None:
        super().__init__(
            f"缺少环境变量: `{env_key}`",
            "DSN_MISSING_ENV_KEY",
            details={"env_key": env_key},
        )
        self.env_key = env_key


class MissingFieldError(DsnError):
    """
    URL缺少必需的组成部分（scheme 或 host）

    Attributes:
        field_name (str): 缺失的字段名
    """

    def __init__(self, field_name: str) -> None:
        super().__init__(
            f"URL缺少必需字段: `{field_name}`",
            "DSN_MISSING_FIELD",
            details={"field_name": field_name},
        )
        self.field_name = field_name


class UnsupportedValueTypeError(DsnError):
    """
    待解析的值既不是字符串也不是映射

    Attributes:
        value_type (str): 实际观察到的类型名称
    """

    def __init__(self, value_type: str) -> None:
        super().__init__(
            f"无法解析: 未知类型 {value_type}",
            "DSN_UNSUPPORTED_TYPE",
            details={"value_type": value_type},
        )
        self.value_type = value_type


class InvalidArgumentError(DsnToolError, ValueError):
    """
    参数校验异常

    查询构建器的不变量被破坏时抛出：查询语句类型错误、参数标识符无效、
    取数模式参数不合法等。

    Attributes:
        field_name (str | None): 校验失败的参数名
        expected_type (str | None): 期望的类型描述
    """

    def __init__(
        self,
        message: str,
        error_code: Any = "INVALID_ARGUMENT",
        field_name: str | None = None,
        expected_type: str | None = None,
    ) -> None:
        super().__init__(message, error_code)
        self.field_name = field_name
        self.expected_type = expected_type

        if field_name:
            self.details["field_name"] = field_name
        if expected_type:
            self.details["expected_type"] = expected_type


class EmptyQueryError(InvalidArgumentError):
    """未设置查询语句就尝试构建查询"""

    def __init__(self, message: str = "缺少查询语句") -> None:
        super().__init__(message, "EMPTY_QUERY", field_name="query")


class DatabaseError(DsnToolError):
    """
    数据库操作基础异常

    Attributes:
        operation (str | None): 数据库操作类型（connect, prepare, execute等）
    """

    def __init__(
        self,
        message: str,
        error_code: Any = None,
        operation: str | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, details)
        self.operation = operation

        if operation:
            self.details["operation"] = operation


class DriverError(DatabaseError):
    """
    数据库驱动异常

    封装驱动返回的错误信息（SQLSTATE、驱动错误代码、错误消息），
    连接、预处理和执行失败时统一使用。

    Attributes:
        sqlstate (str | None): SQLSTATE 风格的状态码
        driver_name (str | None): 驱动名称

    Example:
        >>> info = ErrorInfo("HY000", 1, "near \\"bad\\": syntax error")
        >>> raise DriverError.from_error_info(info, operation="execute")
    """

    def __init__(
        self,
        message: str,
        error_code: Any = None,
        sqlstate: str | None = None,
        driver_name: str | None = None,
        operation: str | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, operation=operation, details=details)
        self.sqlstate = sqlstate
        self.driver_name = driver_name

        if sqlstate:
            self.details["sqlstate"] = sqlstate
        if driver_name:
            self.details["driver_name"] = driver_name

    @classmethod
    def from_error_info(
        cls,
        info: "ErrorInfo",
        operation: str | None = None,
        driver_name: str | None = None,
    ) -> "DriverError":
        """
        由驱动错误信息构造结构化异常

        Args:
            info: 驱动返回的 ErrorInfo(sqlstate, code, message)
            operation: 失败的操作名称
            driver_name: 驱动名称

        Returns:
            DriverError: 携带错误代码和消息的异常实例
        """
        return cls(
            info.message or "未知的驱动错误",
            info.code,
            sqlstate=info.sqlstate,
            driver_name=driver_name,
            operation=operation,
        )


class ConfigError(DsnToolError):
    """
    配置相关异常

    处理DSN存储文件读取、解析、验证等过程中出现的错误。

    Attributes:
        config_file (str | None): 相关的配置文件路径
        config_key (str | None): 相关的配置键（通常为DSN名称）
    """

    def __init__(
        self,
        message: str,
        error_code: Any = None,
        config_file: str | None = None,
        config_key: str | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, details)
        self.config_file = config_file
        self.config_key = config_key

        if config_file:
            self.details["config_file"] = config_file
        if config_key:
            self.details["config_key"] = config_key


class CryptoError(DsnToolError):
    """
    加密解密相关异常

    Attributes:
        operation (str | None): 加密操作类型（encrypt/decrypt/derive_key）
    """

    def __init__(
        self,
        message: str,
        error_code: Any = None,
        operation: str | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, details)
        self.operation = operation

        if operation:
            self.details["operation"] = operation
