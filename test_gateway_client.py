import asyncio
import json

import httpx
import pytest

from mallboard.connectors.gateway.client import GatewayClient, GatewayError
from mallboard.core.malls import Mall
from mallboard.models.dashboard_models import ProductSalesPoint


def _client(handler):
    return GatewayClient(base_url="http://gateway.test", transport=httpx.MockTransport(handler))


def test_fetch_product_sales():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json={
                "success": True,
                "mall": "qoo10",
                "code": "Q1",
                "dailySales": [{"date": "2024-01-01", "sales": 1200, "quantity": 2}],
                "totalSales": 1200,
                "totalQuantity": 2,
            },
        )

    async def run():
        client = _client(handler)
        try:
            return await client.fetch_product_sales(Mall.QOO10, "Q1", "2024-01-01", "2024-01-31")
        finally:
            await client.close()

    points = asyncio.run(run())

    assert seen["path"] == "/qoo10/product-sales/Q1"
    assert seen["params"] == {"startDate": "2024-01-01", "endDate": "2024-01-31"}
    assert points == [ProductSalesPoint(date="2024-01-01", sales=1200, quantity=2)]


def test_save_product_sales_sends_wire_names():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "savedCount": 1})

    async def run():
        client = _client(handler)
        try:
            return await client.save_product_sales(
                Mall.RAKUTEN, "R1", [ProductSalesPoint(date="2024-01-01", sales=10, quantity=1)]
            )
        finally:
            await client.close()

    assert asyncio.run(run()) == 1
    assert seen["body"] == {
        "mall": "rakuten",
        "code": "R1",
        "dailySales": [{"date": "2024-01-01", "sales": 10, "quantity": 1}],
    }


def test_http_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, json={"detail": "boom"})

    async def run():
        client = _client(handler)
        try:
            await client.fetch_product_sales(Mall.AMAZON, "A1", "2024-01-01", "2024-01-02")
        finally:
            await client.close()

    with pytest.raises(GatewayError) as excinfo:
        asyncio.run(run())
    assert excinfo.value.status_code == 500
    assert str(excinfo.value) == "boom"
    assert len(calls) == 1


def test_unsuccessful_payload_raises():
    def handler(request):
        return httpx.Response(
            200, json={"success": False, "mall": "qoo10", "code": "Q1", "message": "no key"}
        )

    async def run():
        client = _client(handler)
        try:
            await client.fetch_product_sales(Mall.QOO10, "Q1", "2024-01-01", "2024-01-02")
        finally:
            await client.close()

    with pytest.raises(GatewayError, match="no key"):
        asyncio.run(run())


def test_malformed_payload_raises():
    def handler(request):
        return httpx.Response(200, json={"dailySales": "nope"})

    async def run():
        client = _client(handler)
        try:
            await client.fetch_product_sales(Mall.QOO10, "Q1", "2024-01-01", "2024-01-02")
        finally:
            await client.close()

    with pytest.raises(GatewayError, match="Malformed"):
        asyncio.run(run())


def test_list_error_body_raises_gateway_error():
    def handler(request):
        return httpx.Response(502, json=["upstream timeout"])

    async def run():
        client = _client(handler)
        try:
            await client.fetch_product_sales(Mall.RAKUTEN, "R1", "2024-01-01", "2024-01-02")
        finally:
            await client.close()

    with pytest.raises(GatewayError) as excinfo:
        asyncio.run(run())
    assert excinfo.value.status_code == 502


def test_html_error_body_raises_gateway_error():
    def handler(request):
        return httpx.Response(503, text="<html>Service Unavailable</html>")

    async def run():
        client = _client(handler)
        try:
            await client.save_product_sales(Mall.QOO10, "Q1", [])
        finally:
            await client.close()

    with pytest.raises(GatewayError) as excinfo:
        asyncio.run(run())
    assert excinfo.value.status_code == 503
    assert "503" in str(excinfo.value)


def test_non_json_success_body_raises():
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    async def run():
        client = _client(handler)
        try:
            await client.fetch_product_sales(Mall.QOO10, "Q1", "2024-01-01", "2024-01-02")
        finally:
            await client.close()

    with pytest.raises(GatewayError, match="non-JSON"):
        asyncio.run(run())


def test_payload_without_success_flag_raises():
    def handler(request):
        return httpx.Response(200, json={"mall": "qoo10", "code": "Q1", "dailySales": []})

    async def run():
        client = _client(handler)
        try:
            await client.fetch_product_sales(Mall.QOO10, "Q1", "2024-01-01", "2024-01-02")
        finally:
            await client.close()

    with pytest.raises(GatewayError, match="Malformed"):
        asyncio.run(run())


def test_amazon_sync_rejects_list_body():
    def handler(request):
        return httpx.Response(200, json=[1, 2])

    async def run():
        client = _client(handler)
        try:
            await client.sync_amazon_sales("2024-01-01", "2024-01-02")
        finally:
            await client.close()

    with pytest.raises(GatewayError, match="Malformed"):
        asyncio.run(run())
