"""关联表过滤测试"""

from ycache.sql import extract_relations, filter_technical_tables, get_affected_tables


class TestFilterTechnicalTables:
    """测试 filter_technical_tables"""

    def test_default_patterns(self):
        relations = [
            "orders", "role_user", "pivot_tags", "model_has_roles",
            "article_viewer", "media", "products",
        ]
        assert filter_technical_tables(relations) == ["orders", "products"]

    def test_exact_names_only(self):
        """article_viewer / media 是精确匹配"""
        assert filter_technical_tables(["media_files", "social_media", "article_viewers"]) == [
            "media_files", "social_media", "article_viewers",
        ]

    def test_suffix_and_prefix_positions(self):
        assert filter_technical_tables(["user_profiles", "users", "order_pivot"]) == [
            "user_profiles", "users", "order_pivot",
        ]

    def test_custom_patterns(self):
        assert filter_technical_tables(["orders", "audit_log"], patterns=[r"^audit_"]) == ["orders"]

    def test_empty_patterns_disable_filter(self):
        assert filter_technical_tables(["role_user"], patterns=[]) == ["role_user"]


class TestExtractRelations:
    """测试 extract_relations / get_affected_tables"""

    SQL = (
        "UPDATE orders SET a = 1 WHERE id IN (SELECT o.id FROM orders o "
        "JOIN shop.products ON orders.product_id = products.id "
        "JOIN role_user ON orders.user_id = role_user.user_id "
        "JOIN products ON orders.product_id = products.id)"
    )

    def test_extract_relations(self):
        """过滤技术表、只取最后一段、去重"""
        assert extract_relations(self.SQL) == ["products"]

    def test_affected_tables_include_primary(self):
        assert get_affected_tables(self.SQL) == ["products", "orders"]

    def test_affected_tables_for_read(self):
        assert get_affected_tables("SELECT * FROM a JOIN b ON a.b_id = b.id") == []
