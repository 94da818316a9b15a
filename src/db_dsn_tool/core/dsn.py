"""
连接描述符模块

各数据库驱动的连接字符串格式各不相同。Dsn 提供统一的内存表示：
一个驱动名称加上一组有序的键值配置，可序列化为驱动连接字符串，
也可转换为普通字典，并能直接交给驱动建立连接。

连接字符串格式：
- SQLite: ``sqlite:<host>:<k=v>;<k=v>``（host 作为文件路径内联）
- 其他:   ``<driver>:<k=v>;<k=v>``
凭据（user/pass）永远不会出现在连接字符串中，而是单独传给驱动。
"""

from typing import TYPE_CHECKING, Any, Dict, Mapping
from urllib.parse import quote_plus

from ..utils.logging_utils import get_logger
from .exceptions import MissingDriverError

if TYPE_CHECKING:
    from ..drivers.sqlalchemy_driver import SQLAlchemyConnection

logger = get_logger(__name__)

# 连接字符串中不包含的凭据键
CREDENTIAL_KEYS = ("user", "pass")


def _normalize_key(key: Any) -> Any:
    return key.lower() if isinstance(key, str) else key


def _normalize_driver(driver: Any) -> str:
    if not driver or not isinstance(driver, str):
        raise MissingDriverError("`driver` 必须是非空字符串")
    return driver.lower()


def build_pair_string(config: Mapping[Any, Any], separator: str = ";") -> str:
    """
    将配置编码为 ``key=value`` 键值对字符串

    值按表单编码处理，布尔值转换为 1/0，值为 None 的键被忽略。

    Example:
        >>> build_pair_string({"host": "example.org", "port": 1234})
        'host=example.org;port=1234'
    """
    pairs = []
    for key, value in config.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = int(value)
        pairs.append(f"{quote_plus(str(key))}={quote_plus(str(value))}")
    return separator.join(pairs)


class Dsn:
    """
    连接描述符

    Attributes:
        MYSQL, MYSQL_SOCKET, DBLIB, SQLSRV, PGSQL, SQLITE, OCI: 常用驱动名称

    Example:
        >>> dsn = Dsn({"driver": "pgsql", "host": "example.org", "user": "u", "pass": "p"})
        >>> dsn.serialize()
        'pgsql:host=example.org'
        >>> dsn.get("USER")
        'u'
    """

    MYSQL = "mysql"
    MYSQL_SOCKET = "mysql_socket"
    DBLIB = "dblib"
    SQLSRV = "sql_server"
    PGSQL = "pgsql"
    SQLITE = "sqlite"
    OCI = "oci"

    def __init__(self, config: Mapping[Any, Any]) -> None:
        """
        由映射构造描述符

        Args:
            config: 配置映射，键不区分大小写，必须包含 `driver`

        Raises:
            MissingDriverError: 当缺少 `driver` 或其值为空时
        """
        self._config: Dict[Any, Any] = {
            _normalize_key(key): value for key, value in config.items()
        }
        if "driver" not in self._config:
            raise MissingDriverError()
        self._driver = _normalize_driver(self._config.pop("driver"))

    @property
    def driver(self) -> str:
        return self._driver

    def get(self, key: str) -> Any:
        """读取配置项（不区分大小写），不存在时返回None"""
        key = _normalize_key(key)
        if key == "driver":
            return self._driver
        return self._config.get(key)

    def set(self, key: str, value: Any) -> Any:
        """写入配置项（不区分大小写），返回写入的值"""
        key = _normalize_key(key)
        if key == "driver":
            self._driver = _normalize_driver(value)
            return self._driver
        self._config[key] = value
        return value

    def serialize(self) -> str:
        """
        生成驱动连接字符串

        Returns:
            str: 不包含 user/pass 的连接字符串
        """
        prefix = f"{self._driver}:"
        config = dict(self._config)

        if self._driver == self.SQLITE:
            host = config.pop("host", None)
            prefix += f"{'' if host is None else host}:"

        for key in CREDENTIAL_KEYS:
            config.pop(key, None)

        return prefix + build_pair_string(config)

    def to_dict(self) -> Dict[Any, Any]:
        """返回包含 `driver` 的扁平字典，driver 位于首位"""
        return {"driver": self._driver, **self._config}

    def connect(
        self, options: Mapping[str, Any] | None = None, connector: Any = None
    ) -> "SQLAlchemyConnection":
        """
        使用连接字符串和凭据建立数据库连接

        Args:
            options: 传给驱动的连接选项
            connector: 驱动连接器，默认为 SQLAlchemyConnector

        Returns:
            驱动连接对象

        Raises:
            DriverError: 当连接失败时
        """
        if connector is None:
            from ..drivers.sqlalchemy_driver import SQLAlchemyConnector

            connector = SQLAlchemyConnector()

        logger.debug(f"连接数据库: {self.serialize()}")
        return connector.connect(
            self.serialize(), self.get("user"), self.get("pass"), options
        )

    def __str__(self) -> str:
        return self.serialize()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dsn):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        masked = {
            key: ("***" if key == "pass" and value else value)
            for key, value in self.to_dict().items()
        }
        return f"Dsn({masked!r})"
