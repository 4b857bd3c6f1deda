"""写语句分类测试"""

import pytest

from ycache.sql import WriteOp, classify, get_primary_table, strip_identifier


class TestClassify:
    """测试 classify"""

    @pytest.mark.parametrize("sql,expected", [
        ("INSERT INTO orders (id) VALUES (1)", WriteOp.INSERT),
        ("insert into orders values (1)", WriteOp.INSERT),
        ("   \n\tUPDATE orders SET status = 1", WriteOp.UPDATE),
        ("Delete FROM orders WHERE id = 1", WriteOp.DELETE),
    ])
    def test_write_statements(self, sql, expected):
        assert classify(sql) == expected
        assert classify(sql).is_write is True

    @pytest.mark.parametrize("sql", [
        "SELECT * FROM orders",
        "CALL refresh_orders()",
        "CREATE TABLE orders (id INT)",
        "WITH x AS (SELECT 1) UPDATE orders SET a = 1",
        "-- UPDATE orders SET a = 1",
        "",
    ])
    def test_non_write_statements(self, sql):
        """只看开头的关键字，其余一律为 NONE"""
        assert classify(sql) == WriteOp.NONE
        assert classify(sql).is_write is False

    def test_keyword_must_be_at_start(self):
        assert classify("SELECT 1; DELETE FROM orders") == WriteOp.NONE


class TestGetPrimaryTable:
    """测试 get_primary_table"""

    def test_insert(self):
        assert get_primary_table("INSERT INTO orders (id) VALUES (1)") == "orders"
        assert get_primary_table("INSERT INTO orders(id) VALUES (1)") == "orders"

    def test_update(self):
        assert get_primary_table("UPDATE orders SET status = 1 WHERE id = 2") == "orders"

    def test_update_with_alias(self):
        assert get_primary_table("UPDATE orders o SET o.status = 1") == "orders"
        assert get_primary_table("UPDATE orders AS o SET o.status = 1") == "orders"

    def test_delete(self):
        assert get_primary_table("DELETE FROM orders WHERE id = 1") == "orders"
        assert get_primary_table("DELETE FROM orders") == "orders"

    @pytest.mark.parametrize("sql", [
        "UPDATE `orders` SET status = 1",
        'UPDATE "orders" SET status = 1',
        "UPDATE [orders] SET status = 1",
    ])
    def test_quoted_identifier(self, sql):
        assert get_primary_table(sql) == "orders"

    def test_schema_qualified_and_lower_case(self):
        assert get_primary_table('INSERT INTO "public"."Orders" (id) VALUES (1)') == "orders"
        assert get_primary_table("DELETE FROM shop.ORDERS WHERE id = 1") == "orders"

    def test_multi_table_update_not_supported(self):
        assert get_primary_table("UPDATE orders, customers SET orders.a = 1") is None
        assert get_primary_table(
            "UPDATE orders JOIN customers ON orders.customer_id = customers.id SET orders.a = 1"
        ) is None

    def test_delete_without_from_not_supported(self):
        assert get_primary_table("DELETE orders WHERE id = 1") is None

    def test_non_write_returns_none(self):
        assert get_primary_table("SELECT * FROM orders") is None

    def test_explicit_op(self):
        sql = "UPDATE orders SET a = 1"
        assert get_primary_table(sql, WriteOp.UPDATE) == "orders"
        assert get_primary_table(sql, WriteOp.INSERT) is None


class TestStripIdentifier:
    """测试 strip_identifier"""

    def test_strip_quotes(self):
        assert strip_identifier("`orders`.`id`") == "orders.id"
        assert strip_identifier('"orders"') == "orders"
        assert strip_identifier("[dbo].[orders]") == "dbo.orders"
