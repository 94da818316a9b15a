"""
路径工具模块

提供跨平台的用户配置目录定位，DSN 存储文件、密钥文件和日志文件都放在这里。
"""

import os
import platform
from pathlib import Path


class PathHelper:
    """
    路径辅助类，所有方法均为静态方法

    Example:
        >>> config_dir = PathHelper.get_user_config_dir("db_dsn_tool")
    """

    @staticmethod
    def get_user_config_dir(app_name: str = "db_dsn_tool") -> Path:
        """
        获取并创建应用的用户配置目录

        - Windows: %APPDATA%\\{app_name}
        - macOS: ~/Library/Application Support/{app_name}
        - Linux: $XDG_CONFIG_HOME/{app_name}，未设置时为 ~/.config/{app_name}

        标准目录无法创建时回退到当前目录下的 ``.{app_name}``。

        Args:
            app_name: 应用名称

        Returns:
            Path: 已存在的配置目录

        Raises:
            ValueError: 当应用名称为空或不是字符串时
            OSError: 当标准目录和回退目录都无法创建时
        """
        if not app_name or not isinstance(app_name, str):
            raise ValueError("应用名称不能为空且必须是字符串")

        system = platform.system().lower()
        if system == "windows":
            base_dir = Path(os.environ.get("APPDATA", Path.home()))
        elif system == "darwin":
            base_dir = Path.home() / "Library" / "Application Support"
        else:
            base_dir = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")

        config_dir = base_dir / app_name
        try:
            config_dir.mkdir(parents=True, exist_ok=True)
            return config_dir
        except OSError as e:
            fallback_dir = Path.cwd() / f".{app_name}"
            try:
                fallback_dir.mkdir(exist_ok=True)
            except OSError:
                raise OSError(f"无法创建配置目录: {str(e)}") from e
            return fallback_dir
