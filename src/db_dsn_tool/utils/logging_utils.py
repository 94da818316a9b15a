"""
日志配置模块

基于标准库 logging 为 db_dsn_tool 提供统一的日志入口：
- setup_logging: 配置应用 logger（滚动文件 + 可选控制台输出）
- get_logger: 模块级 logger，名称位于 db_dsn_tool 命名空间下
- set_log_level: 运行时调整日志级别

各模块通过 ``logger = get_logger(__name__)`` 获取 logger，
未调用 setup_logging 时日志沿用 root logger 的配置。
"""

import logging
import logging.handlers
import sys
from pathlib import Path

from .path_utils import PathHelper

DEFAULT_APP_NAME = "db_dsn_tool"

DEFAULT_LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s "
    + "[%(filename)s:%(lineno)d]"
)

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}
VALID_LOG_LEVELS = list(LOG_LEVEL_MAP.keys())


def setup_logging(
    app_name: str = DEFAULT_APP_NAME,
    level: str = "INFO",
    log_to_console: bool = False,
    log_to_file: bool = True,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    log_format: str | None = None,
    log_dir: str | Path | None = None,
) -> logging.Logger:
    """
    配置应用 logger

    重复调用会先移除已有的 handler，不会产生重复输出。

    Args:
        app_name: 应用名称，同时作为 logger 名称和日志文件名
        level: 日志级别（DEBUG/INFO/WARNING/ERROR/CRITICAL，不区分大小写）
        log_to_console: 是否输出到标准错误
        log_to_file: 是否输出到滚动日志文件
        max_file_size: 单个日志文件的最大字节数
        backup_count: 保留的滚动文件数量
        log_format: 自定义格式，None 使用 DEFAULT_LOG_FORMAT
        log_dir: 日志目录，None 时使用 ``<用户配置目录>/<app_name>/logs``

    Returns:
        logging.Logger: 配置好的应用 logger

    Raises:
        ValueError: 当日志级别无效或未启用任何输出时
        OSError: 当无法创建日志目录或文件时

    Example:
        >>> logger = setup_logging(level="DEBUG", log_to_console=True, log_to_file=False)
        >>> logger.debug("日志已就绪")
    """
    log_level = _validate_log_level(level)

    if not log_to_file and not log_to_console:
        raise ValueError("至少需要启用一种日志输出方式（控制台或文件）")

    formatter = logging.Formatter(log_format or DEFAULT_LOG_FORMAT)

    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    if log_to_file:
        if log_dir is None:
            log_dir_path = PathHelper.get_user_config_dir(app_name) / "logs"
        else:
            log_dir_path = Path(log_dir)

        try:
            log_dir_path.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=str(log_dir_path / f"{app_name}.log"),
                maxBytes=max_file_size,
                backupCount=backup_count,
                encoding="utf-8",
            )
        except OSError as e:
            raise OSError(f"无法创建日志文件 {log_dir_path}: {str(e)}") from e

        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(log_level)
        logger.addHandler(console_handler)

    logger.debug(f"日志系统初始化完成 - 应用: {app_name}, 级别: {level.upper()}")
    return logger


def _validate_log_level(level: str) -> int:
    """将日志级别字符串转换为 logging 常量，无效时抛出 ValueError"""
    level_upper = str(level).upper()
    if level_upper not in LOG_LEVEL_MAP:
        raise ValueError(f"无效的日志级别: '{level}'，有效值为: {VALID_LOG_LEVELS}")
    return LOG_LEVEL_MAP[level_upper]


def get_logger(name: str) -> logging.Logger:
    """
    获取指定名称的 logger

    Example:
        >>> logger = get_logger(__name__)
    """
    return logging.getLogger(name)


def set_log_level(logger_name: str, level: str) -> None:
    """
    动态设置 logger 及其全部 handler 的级别

    Raises:
        ValueError: 当日志级别无效时
    """
    log_level = _validate_log_level(level)
    logger = get_logger(logger_name)
    logger.setLevel(log_level)

    for handler in logger.handlers:
        handler.setLevel(log_level)
