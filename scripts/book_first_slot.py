#!/usr/bin/env python3
from __future__ import annotations

import argparse
import uuid
from datetime import date, timedelta

import httpx
from httpx import ConnectError


def main() -> None:
    parser = argparse.ArgumentParser(description="Book the first free slot against a running server")
    parser.add_argument("--url", default="http://127.0.0.1:8001")
    parser.add_argument("--shop", default="shop_glow_studio")
    parser.add_argument("--service", default="svc_haircut")
    parser.add_argument("--date", default=(date.today() + timedelta(days=1)).isoformat())
    parser.add_argument("--customer", default="customer_demo")
    parser.add_argument("--coupon", default="")
    parser.add_argument("--payment", default="offline", choices=["offline", "online", "wallet"])
    args = parser.parse_args()

    try:
        resp = httpx.get(
            f"{args.url}/appointments/time-slots",
            params={"shopId": args.shop, "serviceId": args.service, "date": args.date},
            timeout=10.0,
        )
    except ConnectError:
        print("Connection refused. Is the FastAPI server running?")
        print("Try: uvicorn booking_engine.main:app --reload --port 8001")
        return

    if resp.status_code != 200:
        print(resp.status_code, resp.text)
        return
    slots = resp.json()["availableSlots"]
    print(f"{len(slots)} free slots on {args.date}")
    if not slots:
        return

    body = {
        "shopId": args.shop,
        "serviceId": args.service,
        "date": args.date,
        "startTime": slots[0]["startTime"],
        "endTime": slots[0]["endTime"],
        "paymentMethod": args.payment,
    }
    if args.coupon:
        body["couponCode"] = args.coupon

    resp = httpx.post(
        f"{args.url}/appointments",
        json=body,
        headers={"X-User-Id": args.customer, "Idempotency-Key": str(uuid.uuid4())},
        timeout=10.0,
    )
    print(resp.status_code)
    if resp.text:
        print(resp.text)


if __name__ == "__main__":
    main()
