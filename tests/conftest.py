"""
conftest.py: shared test fixtures for the Orders API

Points the app at a throwaway SQLite file, creates the sample tables from
orders_api.models, seeds a few agents, customers and orders, and hands out a
FastAPI TestClient.

- DATABASE_URL must be set before any orders_api module is imported
- Every test gets freshly created and seeded tables
"""

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="orders-api-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "sample.db")

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event, insert

from orders_api.database import engine
from orders_api.main import app
from orders_api.models import Agent, Base, Customer, Order


@event.listens_for(engine, "connect")
def _enable_fk(dbapi_conn, _):
    """SQLite ignores foreign keys by default, turn them on."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


AGENTS = [
    {"AGENT_CODE": "A005", "AGENT_NAME": "Anderson", "WORKING_AREA": "Brisban",
     "COMMISSION": Decimal("0.13"), "PHONE_NO": "045-21447739", "COUNTRY": ""},
    {"AGENT_CODE": "A010", "AGENT_NAME": "Santakumar", "WORKING_AREA": "Chennai",
     "COMMISSION": Decimal("0.14"), "PHONE_NO": "007-22388644", "COUNTRY": ""},
]

CUSTOMERS = [
    {"CUST_CODE": "C00004", "CUST_NAME": "Winston", "CUST_CITY": "Brisban",
     "WORKING_AREA": "Brisban", "CUST_COUNTRY": "Australia", "GRADE": 1,
     "OPENING_AMT": Decimal("5000.00"), "RECEIVE_AMT": Decimal("8000.00"),
     "PAYMENT_AMT": Decimal("7000.00"), "OUTSTANDING_AMT": Decimal("6000.00"),
     "PHONE_NO": "AAAAAAA", "AGENT_CODE": "A005"},
    {"CUST_CODE": "C00007", "CUST_NAME": "Ramanathan", "CUST_CITY": "Chennai",
     "WORKING_AREA": "Chennai", "CUST_COUNTRY": "India", "GRADE": 1,
     "OPENING_AMT": Decimal("7000.00"), "RECEIVE_AMT": Decimal("11000.00"),
     "PAYMENT_AMT": Decimal("9000.00"), "OUTSTANDING_AMT": Decimal("9000.00"),
     "PHONE_NO": "GHRDWSD", "AGENT_CODE": "A010"},
]

ORDERS = [
    {"ORD_NUM": 200100, "ORD_AMOUNT": Decimal("1000.00"), "ADVANCE_AMOUNT": Decimal("600.00"),
     "ORD_DATE": date(2008, 8, 1), "CUST_CODE": "C00004", "AGENT_CODE": "A005",
     "ORD_DESCRIPTION": "SOD"},
    {"ORD_NUM": 200110, "ORD_AMOUNT": Decimal("3000.00"), "ADVANCE_AMOUNT": Decimal("500.00"),
     "ORD_DATE": date(2008, 4, 15), "CUST_CODE": "C00007", "AGENT_CODE": "A010",
     "ORD_DESCRIPTION": "SOD"},
]


@pytest.fixture(autouse=True)
def sample_db():
    """Create and seed the sample tables, then drop them after the test."""
    Base.metadata.create_all(bind=engine)
    with engine.begin() as conn:
        conn.execute(insert(Agent.__table__), AGENTS)
        conn.execute(insert(Customer.__table__), CUSTOMERS)
        conn.execute(insert(Order.__table__), ORDERS)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def new_order():
    """Body for POST /orders, with values sent as strings the way clients usually do."""
    return {
        "ORD_NUM": "200134",
        "ORD_AMOUNT": "4200.00",
        "ADVANCE_AMOUNT": "1800.00",
        "ORD_DATE": "2008-06-29",
        "CUST_CODE": "C00004",
        "AGENT_CODE": "A005",
        "ORD_DESCRIPTION": "SOD",
    }
