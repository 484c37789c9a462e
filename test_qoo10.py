import asyncio
from datetime import date
from urllib.parse import parse_qs

import httpx
import pytest

from mallboard.connectors.qoo10.client import Qoo10APIError, Qoo10Client
from mallboard.connectors.qoo10.transformer import (
    aggregate_orders_by_date,
    order_amount,
    product_daily_sales,
    to_marketplace_items,
)
from mallboard.models.catalog_models import CredentialSettings, MallCredential
from mallboard.models.dashboard_models import MarketplaceItem
from mallboard.services import marketplace_service
from mallboard.store.credentials import save_credentials


def _order(pack_no, day, price, option=0, qty=1, item="I1"):
    return {
        "PackNo": pack_no,
        "OrderDate": f"{day} 10:00:00",
        "OrderPrice": str(price),
        "OptionPrice": str(option),
        "OrderQty": str(qty),
        "ItemNo": item,
    }


def test_order_amount_is_gmv():
    assert order_amount(_order("P1", "2024-01-01", 1000, option=200, qty=2)) == 2400


def test_aggregate_by_date():
    orders = [
        _order("P1", "2024-01-01", 1000),
        _order("P2", "2024-01-01", 500, qty=2),
        _order("P3", "2024-01-02", 300),
        {"PackNo": "P4", "OrderPrice": "100"},
    ]
    assert aggregate_orders_by_date(orders) == {"2024-01-01": 2000.0, "2024-01-02": 300.0}


def test_product_daily_sales_zero_fills_range():
    orders = [
        _order("P1", "2024-01-02", 1000, qty=2),
        _order("P2", "2024-01-02", 999, item="OTHER"),
        {**_order("P3", "2024-01-03", 500), "ItemNo": "", "SellerItemCode": "I1"},
    ]
    points = product_daily_sales(orders, "I1", "2024-01-01", "2024-01-03")
    assert [(p.date, p.sales, p.quantity) for p in points] == [
        ("2024-01-01", 0, 0),
        ("2024-01-02", 2000, 2),
        ("2024-01-03", 500, 1),
    ]


def test_fetch_orders_pages_and_dedupes():
    requests = []

    def handler(request):
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        requests.append(form)
        assert request.headers["GiosisCertificationKey"] == "KEY"
        status, page = form["ShippingStatus"], int(form["Page"])
        if status == "3":
            return httpx.Response(500)
        if status == "1":
            # The API keeps returning the last page once results run out
            orders = [_order("P1", "2024-01-01", 100)] if page == 1 else [
                _order("P2", "2024-01-01", 200)
            ]
            return httpx.Response(200, json={"ResultCode": 0, "ResultObject": orders})
        if status == "4":
            # Same pack already seen under status 1
            return httpx.Response(
                200,
                json={"ResultCode": 0, "ResultObject": [_order("P1", "2024-01-01", 100)] if page == 1 else []},
            )
        return httpx.Response(200, json={"ResultCode": 0, "ResultObject": []})

    async def run():
        client = Qoo10Client(" KEY ", base_url="http://qoo10.test", transport=httpx.MockTransport(handler))
        try:
            return await client.fetch_orders("2024-01-01", "2024-01-31")
        finally:
            await client.close()

    orders = asyncio.run(run())

    assert sorted(o["PackNo"] for o in orders) == ["P1", "P2"]
    status_one_pages = [r["Page"] for r in requests if r["ShippingStatus"] == "1"]
    assert status_one_pages == ["1", "2", "3"]
    assert requests[0]["SearchStartDate"] == "20240101"
    assert requests[0]["SearchEndDate"] == "20240131"


def test_non_zero_result_code_stops_paging():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"ResultCode": -10001, "ResultMsg": "bad key"})

    async def run():
        client = Qoo10Client("KEY", base_url="http://qoo10.test", transport=httpx.MockTransport(handler))
        try:
            return await client.fetch_orders_by_status("2024-01-01", "2024-01-31", "1")
        finally:
            await client.close()

    assert asyncio.run(run()) == []
    assert len(calls) == 1


def _client(handler):
    return Qoo10Client("KEY", base_url="http://qoo10.test", transport=httpx.MockTransport(handler))


def test_html_body_raises_typed_error():
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    async def run():
        client = _client(handler)
        try:
            return await client.fetch_orders("2024-01-01", "2024-01-31")
        finally:
            await client.close()

    with pytest.raises(Qoo10APIError, match="non-JSON"):
        asyncio.run(run())


def test_list_body_raises_typed_error():
    def handler(request):
        return httpx.Response(200, json=["unexpected"])

    async def run():
        client = _client(handler)
        try:
            return await client.fetch_orders_page("2024-01-01", "2024-01-31", "1")
        finally:
            await client.close()

    with pytest.raises(Qoo10APIError, match="unexpected body"):
        asyncio.run(run())


def test_product_sales_route_maps_html_body_to_bad_gateway(client, session, monkeypatch):
    save_credentials(session, CredentialSettings(qoo10=MallCredential(api_key="KEY")))

    real_client = marketplace_service.qoo10_client
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
    monkeypatch.setattr(
        marketplace_service,
        "qoo10_client",
        lambda credentials, _transport=None: real_client(credentials, transport),
    )

    resp = client.get(
        "/qoo10/product-sales/Q1", params={"startDate": "2024-01-01", "endDate": "2024-01-02"}
    )
    assert resp.status_code == 502


def test_list_items_unwraps_nested_list():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["form"] = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        return httpx.Response(
            200,
            json={
                "ResultCode": 0,
                "ResultObject": {
                    "Items": [
                        {"ItemCode": "1001", "ItemTitle": "Serum 30ml", "ItemPrice": "2500", "ItemQty": "12"},
                        {"ItemTitle": "no code"},
                        "junk",
                    ]
                },
            },
        )

    async def run():
        client = _client(handler)
        try:
            return await client.list_items(page=2, item_status="S1")
        finally:
            await client.close()

    rows = asyncio.run(run())

    assert seen["path"] == "/ItemsLookup.GetAllGoodsInfo"
    assert seen["form"]["ItemStatus"] == "S1"
    assert seen["form"]["Page"] == "2"
    items = to_marketplace_items(rows)
    assert [(i.code, i.name, i.price, i.quantity) for i in items] == [
        ("1001", "Serum 30ml", 2500.0, 12)
    ]


def test_item_detail_error_code_raises():
    def handler(request):
        return httpx.Response(200, json={"ResultCode": -1, "ResultMsg": "no item"})

    async def run():
        client = _client(handler)
        try:
            return await client.get_item_detail("1001")
        finally:
            await client.close()

    with pytest.raises(Qoo10APIError, match="no item") as excinfo:
        asyncio.run(run())
    assert excinfo.value.result_code == -1


def test_item_detail_takes_first_row():
    def handler(request):
        return httpx.Response(200, json={"ResultCode": "0", "ResultObject": [{"ItemCode": "1001"}]})

    async def run():
        client = _client(handler)
        try:
            return await client.get_item_detail("1001")
        finally:
            await client.close()

    assert asyncio.run(run()) == {"ItemCode": "1001"}


def test_connection_check_searches_past_week():
    seen = {}

    def handler(request):
        seen["form"] = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        return httpx.Response(200, json={"ResultCode": -10001, "ResultMsg": "invalid key"})

    credentials = CredentialSettings(qoo10=MallCredential(api_key="KEY"))
    check = asyncio.run(
        marketplace_service.check_qoo10_connection(
            credentials, today=date(2024, 3, 10), transport=httpx.MockTransport(handler)
        )
    )

    assert check == {"ok": False, "result_code": -10001, "result_msg": "invalid key"}
    assert seen["form"]["SearchStartDate"] == "20240304"
    assert seen["form"]["SearchEndDate"] == "20240310"
    assert seen["form"]["ShippingStatus"] == "1"


def test_item_routes(client, monkeypatch):
    async def fake_check(credentials, today=None, transport=None):
        return {"ok": True, "result_code": 0, "result_msg": "SUCCESS"}

    async def fake_list(credentials, page=1, item_status="S2", transport=None):
        return [MarketplaceItem(code="1001", name="Serum", status=item_status)]

    async def fake_detail(credentials, item_code, transport=None):
        return {"ItemCode": item_code}

    monkeypatch.setattr(marketplace_service, "check_qoo10_connection", fake_check)
    monkeypatch.setattr(marketplace_service, "list_qoo10_items", fake_list)
    monkeypatch.setattr(marketplace_service, "get_qoo10_item", fake_detail)

    check = client.get("/qoo10/test-connection").json()
    assert check["success"] is True
    assert check["resultCode"] == 0

    listing = client.get("/qoo10/products", params={"page": 3, "status": "S1"}).json()
    assert listing["page"] == 3
    assert listing["count"] == 1
    assert listing["products"][0]["code"] == "1001"
    assert listing["products"][0]["status"] == "S1"

    assert client.get("/qoo10/product/1001").json()["product"] == {"ItemCode": "1001"}


def test_item_routes_without_credentials(client):
    assert client.get("/qoo10/test-connection").status_code == 400
    assert client.get("/qoo10/products").status_code == 400
    assert client.get("/qoo10/product/1001").status_code == 400
