#!/usr/bin/env python3
"""Smoke test for the price-change endpoints against a running server."""

import sys

import httpx


BASE_URL = "http://127.0.0.1:8001"


def preview(payload: dict) -> dict | None:
    print("=" * 60)
    print("POST /api/v1/price-changes/preview")
    print("=" * 60)
    try:
        response = httpx.post(f"{BASE_URL}/api/v1/price-changes/preview", json=payload, timeout=10.0)
        response.raise_for_status()
        data = response.json()
        print(f"Affected services: {data['affected_count']}")
        print(f"Current range: {data['current_price_range']['min']} - {data['current_price_range']['max']}")
        print(f"New range:     {data['new_price_range']['min']} - {data['new_price_range']['max']}")
        return data
    except httpx.HTTPStatusError as e:
        print(f"HTTP Error: {e.response.status_code}")
        print(f"Response: {e.response.text}")
        return None


def apply(payload: dict) -> dict | None:
    print("\n" + "=" * 60)
    print("POST /api/v1/price-changes")
    print("=" * 60)
    try:
        response = httpx.post(f"{BASE_URL}/api/v1/price-changes", json=payload, timeout=10.0)
        response.raise_for_status()
        entry = response.json()
        print(f"Applied {entry['description']} to {entry['affected_count']} services (id={entry['id']})")
        return entry
    except httpx.HTTPStatusError as e:
        print(f"HTTP Error: {e.response.status_code}")
        print(f"Response: {e.response.text}")
        return None


def revert(entry_id: str) -> bool:
    print("\n" + "=" * 60)
    print(f"POST /api/v1/price-changes/{entry_id}/revert")
    print("=" * 60)
    try:
        response = httpx.post(f"{BASE_URL}/api/v1/price-changes/{entry_id}/revert", timeout=10.0)
        response.raise_for_status()
        counter = response.json()
        print(f"Reverted, counter entry {counter['id']} restored {counter['affected_count']} prices")
        return True
    except httpx.HTTPStatusError as e:
        print(f"HTTP Error: {e.response.status_code}")
        print(f"Response: {e.response.text}")
        return False


def show_journal() -> None:
    print("\n" + "=" * 60)
    print("GET /api/v1/price-changes")
    print("=" * 60)
    response = httpx.get(f"{BASE_URL}/api/v1/price-changes", timeout=10.0)
    response.raise_for_status()
    for entry in response.json()["entries"]:
        flags = "reverted" if entry["is_reverted"] else ("revertible" if entry["can_revert"] else "")
        print(f"  {entry['created_at']}  {entry['description']:<30} {flags}")


def main():
    try:
        httpx.get(f"{BASE_URL}/health", timeout=5.0)
    except httpx.HTTPError:
        print("Server is not running!")
        print("   Please start it with: uvicorn price_ledger.main:app --reload --port 8001")
        sys.exit(1)

    payload = {"kind": "increase", "amount": "10", "is_percentage": True}
    if len(sys.argv) > 1:
        payload["category_id"] = sys.argv[1]

    if preview(payload) is None:
        sys.exit(1)
    entry = apply(payload)
    if entry is None:
        sys.exit(1)
    show_journal()
    if not revert(entry["id"]):
        sys.exit(1)
    show_journal()


if __name__ == "__main__":
    main()
