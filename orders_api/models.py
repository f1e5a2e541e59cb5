from typing import Any, Dict, Optional

from sqlalchemy import Column, Date, ForeignKey, Integer, Numeric, String, delete, insert, select, update

from .database import Base, DatabaseError  # Import the Base class from our database setup


# The tables below mirror the "sample" schema. The service never creates or
# alters them; they describe the columns used to build order statements.

class Agent(Base):
    __tablename__ = "agents"

    AGENT_CODE = Column(String(6), primary_key=True)
    AGENT_NAME = Column(String(40))
    WORKING_AREA = Column(String(35))
    COMMISSION = Column(Numeric(10, 2))
    PHONE_NO = Column(String(15))
    COUNTRY = Column(String(25))


class Customer(Base):
    # Singular, as in the sample database.
    __tablename__ = "customer"

    CUST_CODE = Column(String(6), primary_key=True)
    CUST_NAME = Column(String(40), nullable=False)
    CUST_CITY = Column(String(35))
    WORKING_AREA = Column(String(35), nullable=False)
    CUST_COUNTRY = Column(String(20), nullable=False)
    GRADE = Column(Integer)
    OPENING_AMT = Column(Numeric(12, 2), nullable=False)
    RECEIVE_AMT = Column(Numeric(12, 2), nullable=False)
    PAYMENT_AMT = Column(Numeric(12, 2), nullable=False)
    OUTSTANDING_AMT = Column(Numeric(12, 2), nullable=False)
    PHONE_NO = Column(String(17), nullable=False)
    AGENT_CODE = Column(String(6), ForeignKey("agents.AGENT_CODE"))


# Defines the 'orders' table, the only one this service writes to.
class Order(Base):
    __tablename__ = "orders"

    ORD_NUM = Column(Integer, primary_key=True, autoincrement=False)  # Business-level order number.
    ORD_AMOUNT = Column(Numeric(12, 2), nullable=False)
    ADVANCE_AMOUNT = Column(Numeric(12, 2), nullable=False)
    ORD_DATE = Column(Date, nullable=False)
    CUST_CODE = Column(String(6), ForeignKey("customer.CUST_CODE"), nullable=False)
    AGENT_CODE = Column(String(6), ForeignKey("agents.AGENT_CODE"), nullable=False)
    ORD_DESCRIPTION = Column(String(60), nullable=False)


orders = Order.__table__

# PUT rewrites everything but the key.
MUTABLE_ORDER_COLUMNS = tuple(c.name for c in orders.columns if not c.primary_key)


def order_column_name(name: str) -> Optional[str]:
    """Resolve a column name the way MariaDB does, ignoring case."""
    for column in orders.columns:
        if column.name.lower() == name.lower():
            return column.name
    return None


def select_orders():
    return select(orders)


def select_order(ord_num: int):
    return select(orders).where(orders.c.ORD_NUM == ord_num)


def insert_order(fields: Dict[str, Any]):
    return insert(orders).values(**fields)


def replace_order(ord_num: int, fields: Dict[str, Any]):
    """UPDATE every mutable column; columns missing from ``fields`` become NULL."""
    values = {name: fields.get(name) for name in MUTABLE_ORDER_COLUMNS}
    return update(orders).where(orders.c.ORD_NUM == ord_num).values(**values)


def build_patch_statement(ord_num: int, fields: Dict[str, Any]):
    """UPDATE only the columns named in ``fields``.

    Names match order columns regardless of case. ORD_NUM is accepted too,
    so a PATCH can renumber an order. Raises DatabaseError for an empty
    field set (there would be no SET clause) and for names that are not
    order columns, the same way the database itself would refuse them.
    """
    if not fields:
        raise DatabaseError("no fields to update")
    values = {}
    unknown = []
    for name, value in fields.items():
        column = order_column_name(name)
        if column is None:
            unknown.append(name)
        else:
            values[column] = value
    if unknown:
        raise DatabaseError(f"unknown order columns: {', '.join(sorted(unknown))}")
    return update(orders).where(orders.c.ORD_NUM == ord_num).values(**values)


def delete_order(ord_num: int):
    return delete(orders).where(orders.c.ORD_NUM == ord_num)
