# --- Imports ---
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, ConfigDict, model_validator

from .config import get_settings
from .database import DatabaseError, engine, get_db, ping, run_query
from .logging_config import setup_logging
from .models import (
    build_patch_statement,
    delete_order,
    insert_order,
    order_column_name,
    replace_order,
    select_order,
    select_orders,
)

setup_logging()
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Server listening at http://{}:{}", settings.host, settings.port)
    yield
    # Close every pooled connection on shutdown.
    engine.dispose()


# --- App Instance ---
app = FastAPI(
    title="Orders API",
    version="1.0.0",
    description="APIs to add and modify Orders",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Request Models ---
class OrderUpdate(BaseModel):
    """Mutable order fields. Values are coerced, not validated; absent ones are sent as NULL."""
    ORD_AMOUNT: Optional[Decimal] = None
    ADVANCE_AMOUNT: Optional[Decimal] = None
    ORD_DATE: Optional[date] = None
    CUST_CODE: Optional[str] = None
    AGENT_CODE: Optional[str] = None
    ORD_DESCRIPTION: Optional[str] = None


class OrderCreate(OrderUpdate):
    """A new order, including its order number."""
    ORD_NUM: Optional[int] = None


class OrderPatch(OrderCreate):
    """Partial update. Unknown keys are kept so the statement builder can refuse them."""
    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _column_case(cls, data):
        # "ord_amount" still gets coerced as ORD_AMOUNT.
        if isinstance(data, dict):
            return {order_column_name(key) or key: value for key, value in data.items()}
        return data

    def changed_fields(self) -> dict:
        return {**self.model_dump(exclude_unset=True), **(self.model_extra or {})}


def failed(message: str, exc: Exception) -> JSONResponse:
    logger.error("{}: {}", message, exc)
    return JSONResponse(status_code=500, content={"error": message})


# Input the models cannot coerce is reported like any other failed statement.
INPUT_ERRORS = {
    "GET": "Failed to fetch order",
    "POST": "Failed to add order",
    "PUT": "Failed to update order",
    "PATCH": "Failed to update order",
    "DELETE": "Failed to delete order",
}


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    message = INPUT_ERRORS.get(request.method, "Invalid request")
    logger.warning("{} {}: {}", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=500, content={"error": message})


# --- Endpoints ---
@app.get("/")
def root():
    """Health check endpoint."""
    return {"message": "Orders API is running"}


@app.get("/health")
def health():
    """Readiness probe: runs SELECT 1 on a pooled connection."""
    try:
        with get_db() as db:
            ping(db)
    except DatabaseError as e:
        logger.error("Health check failed: {}", e)
        return JSONResponse(status_code=500, content={"status": "error"})
    return {"status": "ok"}


# Each handler acquires, uses and releases its connection on its own worker thread.

@app.get("/agents")
def list_agents():
    """Retrieves all agents."""
    try:
        return run_query("SELECT * FROM agents")
    except DatabaseError as e:
        return failed("Failed to fetch agents", e)


@app.get("/customers")
def list_customers():
    """Retrieves all customers."""
    try:
        return run_query("SELECT * FROM customer")
    except DatabaseError as e:
        return failed("Failed to fetch customers", e)


@app.get("/orders")
def list_orders():
    """Retrieves all orders."""
    try:
        return run_query(select_orders())
    except DatabaseError as e:
        return failed("Failed to fetch orders", e)


# Retrieves the order(s) with the given order number.
@app.get("/orders/{ord_num}")
def get_order(ord_num: int):
    try:
        rows = run_query(select_order(ord_num))
    except DatabaseError as e:
        return failed("Failed to fetch order", e)

    if not rows:
        return JSONResponse(status_code=404, content={"message": "Order not found"})
    return rows


@app.post("/orders", status_code=201)
def create_order(order: OrderCreate):
    """
    Adds a new order.
    - Missing fields are inserted as NULL and left for the database to reject.
    - A duplicate ORD_NUM is reported like any other database failure.
    """
    try:
        run_query(insert_order(order.model_dump()))
    except DatabaseError as e:
        return failed("Failed to add order", e)
    logger.info("Order {} added", order.ORD_NUM)
    return {"message": "Order added successfully"}


@app.put("/orders/{ord_num}")
def update_order(ord_num: int, order: OrderUpdate):
    """Replaces every mutable field. Succeeds even if no order has this number."""
    try:
        run_query(replace_order(ord_num, order.model_dump()))
    except DatabaseError as e:
        return failed("Failed to update order", e)
    return {"message": "Order updated successfully"}


@app.patch("/orders/{ord_num}")
def patch_order(ord_num: int, patch: Optional[OrderPatch] = None):
    """Updates only the fields present in the body. An empty body is an error."""
    fields = patch.changed_fields() if patch is not None else {}
    try:
        run_query(build_patch_statement(ord_num, fields))
    except DatabaseError as e:
        return failed("Failed to update order", e)
    return {"message": "Order updated partially"}


@app.delete("/orders/{ord_num}")
def remove_order(ord_num: int):
    """Deletes an order. Succeeds even if no order has this number."""
    try:
        run_query(delete_order(ord_num))
    except DatabaseError as e:
        return failed("Failed to delete order", e)
    return {"message": "Order deleted successfully"}


def run():
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
