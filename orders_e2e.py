#!/usr/bin/env python3
"""
Orders API - live smoke test

Walks the full order lifecycle against a running server.

Run:
  python orders_e2e.py

Optional env:
  ORDERS_BASE=http://localhost:3000
  TEST_ORD_NUM=990001
  TEST_CUST_CODE=C00004
  TEST_AGENT_CODE=A005
  DEBUG=1
"""

from __future__ import annotations

import os
import sys
import time
from dataclasses import dataclass
from typing import Any, Dict, List

import requests


# =========================
# Simple CLI UI (ANSI)
# =========================

class Style:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    CYAN = "\033[96m"
    BLUE = "\033[94m"
    GRAY = "\033[90m"


def section_title(text: str):
    print(f"\n{Style.BLUE}{Style.BOLD}── {text} ──{Style.RESET}")


def info(msg: str):
    print(f"{Style.CYAN}ℹ {msg}{Style.RESET}")


def ok(msg: str):
    print(f"{Style.GREEN}✔ {msg}{Style.RESET}")


def fail(msg: str):
    print(f"{Style.RED}✘ {msg}{Style.RESET}")


# =========================
# Config
# =========================

ORDERS_BASE = os.getenv("ORDERS_BASE", "http://localhost:3000")
ORD_NUM = int(os.getenv("TEST_ORD_NUM", "990001"))
CUST_CODE = os.getenv("TEST_CUST_CODE", "C00004")
AGENT_CODE = os.getenv("TEST_AGENT_CODE", "A005")
DEBUG = os.getenv("DEBUG", "0").strip() in {"1", "true", "True", "YES", "yes"}

NEW_ORDER = {
    "ORD_NUM": ORD_NUM,
    "ORD_AMOUNT": "4200.00",
    "ADVANCE_AMOUNT": "1800.00",
    "ORD_DATE": "2008-06-29",
    "CUST_CODE": CUST_CODE,
    "AGENT_CODE": AGENT_CODE,
    "ORD_DESCRIPTION": "SOD",
}


@dataclass
class StepResult:
    name: str
    success: bool
    details: str = ""


# =========================
# HTTP helpers
# =========================

def http(method: str, path: str, **kwargs) -> requests.Response:
    kwargs.setdefault("timeout", 8)
    if DEBUG:
        print(f"{Style.GRAY}… {method} {ORDERS_BASE}{path} {kwargs}{Style.RESET}")
    return requests.request(method, ORDERS_BASE + path, **kwargs)


def wait_for_health(timeout: int = 30) -> bool:
    start = time.time()
    while time.time() - start < timeout:
        try:
            if http("GET", "/health").status_code == 200:
                ok("Orders API is healthy.")
                return True
        except requests.exceptions.RequestException as e:
            if DEBUG:
                print(f"not ready: {e}")
        time.sleep(1)
    fail(f"Orders API did not become healthy in {timeout} seconds.")
    return False


def expect(name: str, resp: requests.Response, status: int) -> StepResult:
    success = resp.status_code == status
    msg = f"{resp.request.method} {resp.url} -> {resp.status_code} (expected {status}) body={resp.text[:200]}"
    (ok if success else fail)(msg)
    return StepResult(name, success, msg)


def check(name: str, condition: bool, details: str) -> StepResult:
    (ok if condition else fail)(details)
    return StepResult(name, condition, details)


# =========================
# Scenario
# =========================

def order_lifecycle() -> List[StepResult]:
    results: List[StepResult] = []
    path = f"/orders/{ORD_NUM}"

    section_title("Read-only tables")
    results.append(expect("List agents", http("GET", "/agents"), 200))
    results.append(expect("List customers", http("GET", "/customers"), 200))

    section_title("Create")
    http("DELETE", path)  # leftovers from an earlier run
    results.append(expect("Missing order is 404", http("GET", path), 404))
    results.append(expect("Create order", http("POST", "/orders", json=NEW_ORDER), 201))
    results.append(expect("Duplicate order is 500", http("POST", "/orders", json=NEW_ORDER), 500))

    resp = http("GET", path)
    results.append(expect("Fetch created order", resp, 200))
    if resp.status_code == 200:
        row: Dict[str, Any] = resp.json()[0]
        results.append(check(
            "Created fields",
            row.get("CUST_CODE") == CUST_CODE and float(row.get("ORD_AMOUNT", 0)) == 4200.0,
            f"row={row}",
        ))

    section_title("Partial update")
    results.append(expect("Patch amount", http("PATCH", path, json={"ORD_AMOUNT": 500}), 200))
    row = http("GET", path).json()[0]
    results.append(check(
        "Only ORD_AMOUNT changed",
        float(row["ORD_AMOUNT"]) == 500.0 and float(row["ADVANCE_AMOUNT"]) == 1800.0,
        f"row={row}",
    ))
    results.append(expect("Empty patch is 500", http("PATCH", path, json={}), 500))

    section_title("Full update")
    replacement = {k: v for k, v in NEW_ORDER.items() if k != "ORD_NUM"}
    replacement["ORD_DESCRIPTION"] = "Replaced"
    results.append(expect("Replace order", http("PUT", path, json=replacement), 200))

    section_title("Delete")
    results.append(expect("Delete order", http("DELETE", path), 200))
    results.append(expect("Deleted order is 404", http("GET", path), 404))
    return results


def print_results(results: List[StepResult]):
    passed = sum(1 for r in results if r.success)
    print(f"\n{Style.BOLD}================ RESULTS ================{Style.RESET}")
    for r in results:
        color = Style.GREEN if r.success else Style.RED
        print(f"{color}{'✅' if r.success else '❌'} {r.name}{Style.RESET}")
    print(f"Total: {len(results)}  |  Passed: {Style.GREEN}{passed}{Style.RESET}  |  "
          f"Failed: {Style.RED}{len(results) - passed}{Style.RESET}")


def main():
    info(f"Target: {ORDERS_BASE}")
    if not wait_for_health():
        sys.exit(1)
    results = order_lifecycle()
    print_results(results)
    if not all(r.success for r in results):
        sys.exit(1)


if __name__ == "__main__":
    main()
