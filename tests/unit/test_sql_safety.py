"""
Unit tests for utils.sql_safety
"""

import pytest

from tablesync.models import TableRef
from utils.sql_safety import quote_ident, quote_ident_full, validate_identifier


class TestQuoteIdent:
    @pytest.mark.parametrize("identifier, expected", [
        ("users", '"users"'),
        ("Users", '"Users"'),
        ('odd"name', '"odd""name"'),
        ("with space", '"with space"'),
        ("percent%s", '"percent%s"'),
        ("users; DROP TABLE users", '"users; DROP TABLE users"'),
    ])
    def test_quoting(self, identifier, expected):
        assert quote_ident(identifier) == expected

    def test_full_table_name(self):
        assert quote_ident_full(TableRef("sales", "Order Items")) == '"sales"."Order Items"'


class TestValidateIdentifier:
    def test_empty_rejected(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            validate_identifier("")

    def test_nul_rejected(self):
        with pytest.raises(ValueError, match="NUL"):
            quote_ident("bad\x00name")
