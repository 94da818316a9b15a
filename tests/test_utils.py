"""
工具模块测试（路径与日志）
"""

import logging
import shutil
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from db_dsn_tool.utils.logging_utils import get_logger, set_log_level, setup_logging
from db_dsn_tool.utils.path_utils import PathHelper


class TestPathHelper:
    """PathHelper测试类"""

    def setup_method(self):
        """测试方法 setup"""
        self.test_dir = Path(tempfile.mkdtemp())

    def teardown_method(self):
        """测试方法 teardown"""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_get_user_config_dir_windows(self, monkeypatch):
        """测试Windows系统下的配置目录"""
        monkeypatch.setenv("APPDATA", str(self.test_dir / "Roaming"))

        with patch("db_dsn_tool.utils.path_utils.platform.system", return_value="Windows"):
            config_dir = PathHelper.get_user_config_dir("test_app")

        assert config_dir == self.test_dir / "Roaming" / "test_app"
        assert config_dir.exists()

    def test_get_user_config_dir_macos(self):
        """测试macOS系统下的配置目录"""
        with patch("db_dsn_tool.utils.path_utils.platform.system", return_value="Darwin"):
            with patch("db_dsn_tool.utils.path_utils.Path.home", return_value=self.test_dir):
                config_dir = PathHelper.get_user_config_dir("test_app")

        assert config_dir == self.test_dir / "Library" / "Application Support" / "test_app"
        assert config_dir.exists()

    def test_get_user_config_dir_linux(self, monkeypatch):
        """测试Linux系统下的配置目录"""
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)

        with patch("db_dsn_tool.utils.path_utils.platform.system", return_value="Linux"):
            with patch("db_dsn_tool.utils.path_utils.Path.home", return_value=self.test_dir):
                config_dir = PathHelper.get_user_config_dir("test_app")

        assert config_dir == self.test_dir / ".config" / "test_app"
        assert config_dir.exists()

    def test_get_user_config_dir_xdg(self, monkeypatch):
        """测试XDG_CONFIG_HOME优先"""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(self.test_dir / "xdg"))

        with patch("db_dsn_tool.utils.path_utils.platform.system", return_value="Linux"):
            config_dir = PathHelper.get_user_config_dir("test_app")

        assert config_dir == self.test_dir / "xdg" / "test_app"

    def test_get_user_config_dir_fallback(self, monkeypatch):
        """测试标准目录无法创建时回退到当前目录"""
        blocker = self.test_dir / "blocker"
        blocker.write_text("", encoding="utf-8")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(blocker))
        monkeypatch.chdir(self.test_dir)

        with patch("db_dsn_tool.utils.path_utils.platform.system", return_value="Linux"):
            config_dir = PathHelper.get_user_config_dir("test_app")

        assert config_dir == self.test_dir / ".test_app"
        assert config_dir.exists()

    @pytest.mark.parametrize("app_name", ["", None, 42])
    def test_invalid_app_name(self, app_name):
        """测试无效的应用名称"""
        with pytest.raises(ValueError):
            PathHelper.get_user_config_dir(app_name)


class TestLogging:
    """日志配置测试类"""

    APP_NAME = "test_db_dsn_tool_logging"

    def setup_method(self):
        """测试方法 setup"""
        self.test_dir = Path(tempfile.mkdtemp())

    def teardown_method(self):
        """测试方法 teardown"""
        logger = logging.getLogger(self.APP_NAME)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_setup_file_logging(self):
        """测试文件日志"""
        logger = setup_logging(self.APP_NAME, level="debug", log_dir=self.test_dir)
        logger.info("写入日志文件")
        for handler in logger.handlers:
            handler.flush()

        log_file = self.test_dir / f"{self.APP_NAME}.log"
        assert log_file.exists()
        assert "写入日志文件" in log_file.read_text(encoding="utf-8")
        assert logger.level == logging.DEBUG

    def test_setup_console_logging(self):
        """测试控制台日志"""
        logger = setup_logging(self.APP_NAME, log_to_console=True, log_to_file=False)

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_repeated_setup_replaces_handlers(self):
        """测试重复配置不叠加handler"""
        setup_logging(self.APP_NAME, log_to_console=True, log_to_file=False)
        logger = setup_logging(self.APP_NAME, log_to_console=True, log_to_file=False)

        assert len(logger.handlers) == 1

    def test_no_output(self):
        """测试未启用任何输出"""
        with pytest.raises(ValueError):
            setup_logging(self.APP_NAME, log_to_console=False, log_to_file=False)

    def test_invalid_level(self):
        """测试无效的日志级别"""
        with pytest.raises(ValueError):
            setup_logging(self.APP_NAME, level="VERBOSE", log_dir=self.test_dir)

    def test_set_log_level(self):
        """测试动态调整日志级别"""
        logger = setup_logging(self.APP_NAME, log_to_console=True, log_to_file=False)
        set_log_level(self.APP_NAME, "ERROR")

        assert logger.level == logging.ERROR
        assert all(handler.level == logging.ERROR for handler in logger.handlers)

    def test_get_logger(self):
        """测试获取命名logger"""
        assert get_logger("db_dsn_tool.core.query").name == "db_dsn_tool.core.query"


if __name__ == "__main__":
    pytest.main()
