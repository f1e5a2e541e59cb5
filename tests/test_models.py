"""
test_models.py: tests for the order statement builders
"""

import pytest

from orders_api.database import DatabaseError
from orders_api.models import MUTABLE_ORDER_COLUMNS, build_patch_statement, replace_order


def test_mutable_columns_exclude_order_number():
    assert MUTABLE_ORDER_COLUMNS == (
        "ORD_AMOUNT",
        "ADVANCE_AMOUNT",
        "ORD_DATE",
        "CUST_CODE",
        "AGENT_CODE",
        "ORD_DESCRIPTION",
    )


def test_patch_statement_sets_only_given_columns():
    sql = str(build_patch_statement(1, {"ORD_AMOUNT": 500}))
    assert "SET" in sql and "ORD_AMOUNT" in sql
    assert "ADVANCE_AMOUNT" not in sql
    assert "WHERE orders.\"ORD_NUM\"" in sql or "WHERE orders.ORD_NUM" in sql


def test_patch_statement_refuses_empty_fields():
    with pytest.raises(DatabaseError, match="no fields"):
        build_patch_statement(1, {})


def test_patch_statement_refuses_unknown_columns():
    with pytest.raises(DatabaseError, match="BOGUS"):
        build_patch_statement(1, {"ORD_AMOUNT": 1, "BOGUS": 2})


def test_replace_sets_every_mutable_column():
    sql = str(replace_order(1, {"ORD_AMOUNT": 1}))
    for name in MUTABLE_ORDER_COLUMNS:
        assert name in sql


def test_patch_statement_matches_columns_ignoring_case():
    sql = str(build_patch_statement(1, {"ord_amount": 1, "Cust_Code": "C00004"}))
    assert "ORD_AMOUNT" in sql and "CUST_CODE" in sql
    assert "ord_amount" not in sql


def test_patch_statement_accepts_order_number():
    sql = str(build_patch_statement(1, {"ORD_NUM": 2}))
    assert sql.startswith("UPDATE orders SET")
    assert "ORD_NUM" in sql.split("WHERE")[0]
