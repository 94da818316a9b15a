"""
查询测试

参数绑定规则使用 SQLite 内存数据库验证，延迟执行规则使用语句替身验证。
"""

import io
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from db_dsn_tool.core.exceptions import DriverError
from db_dsn_tool.core.query import Query
from db_dsn_tool.core.types import (
    FETCH_GROUP,
    ErrorInfo,
    ExecutionState,
    FetchStyle,
    ParamType,
)
from db_dsn_tool.drivers.sqlalchemy_driver import SQLAlchemyConnector


def bind_cases():
    """绑定用例，每次调用生成新的流对象"""
    return [
        ("select 'foo'", ["foo"], {}),
        ("select ?", ["test"], {0: "test"}),
        ("select ?", ["test"], {"0": "test"}),
        ("select ?, ?", ["a", "b"], {1: "b", 0: "a"}),
        ("select :p", ["test"], {"p": "test"}),
        ("select :p", ["test"], {":p": "test"}),
        ("select :p", [0], {"p": False}),
        ("select :p", [b"payload"], {"p": io.BytesIO(b"payload")}),
    ]


FETCHERS = [
    ("fetch", "fetch", 12.34),
    ("fetch", "fetch", ["value"]),
    ("fetch", "fetch", {"col": "value"}),
    ("fetch_all", "fetch_all", [12.34]),
    ("fetch_object", "fetch_object", SimpleNamespace(a=12)),
    ("fetch_scalar", "fetch_column", 42),
    ("fetch_array", "fetch", {"col": "value"}),
    ("fetch_list", "fetch", ["value"]),
]


def make_statement(column_count=0, executes=True):
    """创建语句替身"""
    statement = MagicMock()
    statement.column_count.return_value = column_count
    statement.execute.return_value = executes
    statement.error_info.return_value = ErrorInfo("HY000", 1, "near \"x\": syntax error")
    return statement


class TestQueryBinding:
    """参数绑定测试类"""

    def setup_method(self):
        """测试方法 setup"""
        self.connection = SQLAlchemyConnector().connect("sqlite::memory::")

    def teardown_method(self):
        """测试方法 teardown"""
        self.connection.close()

    def _row(self, statement):
        return statement.fetch(FetchStyle.NUM)

    @pytest.mark.parametrize("sql, expected, params", bind_cases())
    def test_bind_in_constructor(self, sql, expected, params):
        """测试构造时绑定参数"""
        statement = self.connection.prepare(sql)
        query = Query(statement, params)

        assert self._row(query.execute()) == expected
        assert query.statement is statement

    @pytest.mark.parametrize("sql, expected, params", bind_cases())
    def test_bind_params(self, sql, expected, params):
        """测试显式绑定参数"""
        query = Query(self.connection.prepare(sql))
        query.bind_params(params)

        assert self._row(query.execute()) == expected

    @pytest.mark.parametrize("sql, expected, params", bind_cases())
    def test_bind_on_execute(self, sql, expected, params):
        """测试执行时绑定参数"""
        query = Query(self.connection.prepare(sql))

        assert self._row(query.execute(params)) == expected

    @pytest.mark.parametrize("sql, expected, params", bind_cases())
    def test_fetch_scalar(self, sql, expected, params):
        """测试取单列值"""
        query = Query(self.connection.prepare(sql), params)

        assert query.fetch_scalar() == expected[0]

    def test_bind_list_params(self):
        """测试列表参数按下标绑定"""
        query = Query(self.connection.prepare("select ?, ?"), ["x", "y"])

        assert query.fetch_list() == ["x", "y"]

    def test_colon_inside_literal(self):
        """测试字符串中的冒号不影响延迟执行"""
        assert Query(self.connection.prepare("select 'at :noon'")).fetch_scalar() == "at :noon"
        assert Query(self.connection.prepare("select ?, 'at :noon'"), ["x"]).fetch_list() == [
            "x",
            "at :noon",
        ]

    def test_execute_overrides_bound_values(self):
        """测试执行时参数覆盖已绑定值"""
        query = Query(self.connection.prepare("select :p"), {"p": "old"})

        assert self._row(query.execute({"p": "new"})) == ["new"]

    def test_fetch_shapes(self):
        """测试各种取数形状"""
        sql = "select 1 as id, 'alice' as name"

        assert Query(self.connection.prepare(sql)).fetch_array() == {"id": 1, "name": "alice"}
        assert Query(self.connection.prepare(sql)).fetch_list() == [1, "alice"]
        assert Query(self.connection.prepare(sql)).fetch_all(FetchStyle.NUM) == [[1, "alice"]]

        obj = Query(self.connection.prepare(sql)).fetch_object()
        assert (obj.id, obj.name) == (1, "alice")

        target = SimpleNamespace()
        assert Query(self.connection.prepare(sql)).fetch_into(target) is target
        assert target.name == "alice"

    def test_fetch_array_keeps_modifier(self):
        """测试关联取数保留修饰位"""
        query = Query(self.connection.prepare("select 1 as id"))

        assert query.fetch_array(FetchStyle.LAZY) == {"id": 1}

    def test_fetch_returns_none_when_exhausted(self):
        """测试取完后返回None"""
        query = Query(self.connection.prepare("select 1"))

        assert query.fetch(FetchStyle.COLUMN) == 1
        assert query.fetch() is None


class TestQueryExecution:
    """延迟执行测试类"""

    def test_initial_state(self):
        """测试初始执行状态"""
        assert Query(make_statement(0)).state is ExecutionState.NOT_EXECUTED
        assert Query(make_statement(2)).state is ExecutionState.EXECUTED

    def test_bind_param_shifts_numeric_ids(self):
        """测试位置编号加一"""
        statement = make_statement()
        query = Query(statement)

        query.bind_param(0, "a")
        query.bind_param(2, "c")
        query.bind_param("1", "b")
        query.bind_param(":name", "n")

        assert [c.args for c in statement.bind_value.call_args_list] == [
            (1, "a"),
            (3, "c"),
            (2, "b"),
            (":name", "n"),
        ]

    def test_bind_param_false_as_zero(self):
        """测试False绑定为0"""
        statement = make_statement()
        Query(statement).bind_param("flag", False)

        statement.bind_value.assert_called_once_with("flag", 0)

    def test_bind_param_stream_as_lob(self):
        """测试流对象按大对象绑定"""
        statement = make_statement()
        stream = io.BytesIO(b"data")
        Query(statement).bind_param(0, stream)

        statement.bind_value.assert_called_once_with(1, stream, ParamType.LOB)

    def test_execute_failure(self):
        """测试执行失败抛出驱动异常"""
        statement = make_statement(executes=False)
        query = Query(statement)

        with pytest.raises(DriverError) as exc_info:
            query.execute()

        assert exc_info.value.error_code == 1
        assert exc_info.value.message == 'near "x": syntax error'
        assert exc_info.value.sqlstate == "HY000"
        assert not query.executed

    def test_execute_returns_statement(self):
        """测试执行返回语句"""
        statement = make_statement()
        query = Query(statement)

        assert query.execute() is statement
        assert query.executed

    @pytest.mark.parametrize("method, statement_method, result", FETCHERS)
    def test_fetch_executes(self, method, statement_method, result):
        """测试首次取数时执行"""
        statement = make_statement(0)
        getattr(statement, statement_method).return_value = result
        query = Query(statement)

        assert getattr(query, method)() == result
        statement.execute.assert_called_once_with()
        getattr(statement, statement_method).assert_called_once()

    @pytest.mark.parametrize("method, statement_method, result", FETCHERS)
    def test_fetch_never_executes(self, method, statement_method, result):
        """测试已有结果列时不执行"""
        statement = make_statement(1)
        getattr(statement, statement_method).return_value = result
        query = Query(statement)

        assert getattr(query, method)() == result
        statement.execute.assert_not_called()

    @pytest.mark.parametrize("method, statement_method, result", FETCHERS)
    def test_fetch_executes_once(self, method, statement_method, result):
        """测试显式执行后不再隐式执行"""
        statement = make_statement(0)
        getattr(statement, statement_method).return_value = result
        query = Query(statement)

        query.execute()
        assert getattr(query, method)() == result
        assert getattr(query, method)() == result
        statement.execute.assert_called_once_with()

    def test_repeated_fetch_executes_once(self):
        """测试多次取数只执行一次"""
        statement = make_statement(0)
        query = Query(statement)

        query.fetch()
        query.fetch_all()
        query.fetch_scalar()

        statement.execute.assert_called_once_with()

    def test_fetch_array_forces_assoc(self):
        """测试关联取数样式合并"""
        statement = make_statement(1)
        query = Query(statement)

        query.fetch_array()
        query.fetch_array(FetchStyle.LAZY | FETCH_GROUP, "extra")

        assert statement.fetch.call_args_list[0].args == (FetchStyle.ASSOC,)
        assert statement.fetch.call_args_list[1].args == (FETCH_GROUP | FetchStyle.ASSOC, "extra")

    def test_fetch_list_forces_num(self):
        """测试下标取数样式合并"""
        statement = make_statement(1)
        query = Query(statement)

        query.fetch_list()
        query.fetch_list(FetchStyle.ASSOC)

        assert statement.fetch.call_args_list[0].args == (FetchStyle.NUM,)
        assert statement.fetch.call_args_list[1].args == (FetchStyle.NUM,)

    def test_fetch_into(self):
        """测试写入已有对象"""
        statement = make_statement(1)
        target = SimpleNamespace()
        Query(statement).fetch_into(target)

        statement.fetch.assert_called_once_with(FetchStyle.INTO, target)


if __name__ == "__main__":
    pytest.main()
