import asyncio
import json
from datetime import date
from urllib.parse import parse_qs

import httpx
from sqlmodel import select

from mallboard.connectors.gateway.client import GatewayError
from mallboard.core.malls import Mall
from mallboard.models.catalog_models import CredentialSettings, MallCredential
from mallboard.models.dashboard_models import ProductSalesPoint
from mallboard.models.sales_models import DailySalesRecord, ProductSalesRecord
from mallboard.services import marketplace_service
from mallboard.services.mall_sales_sync import run_daily_batch, sync_mall_daily_sales
from mallboard.store.credentials import save_credentials
from mallboard.store.sales import list_daily_sales


def _qoo10_transport(orders):
    def handler(request):
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        page_orders = orders if form["ShippingStatus"] == "2" and form["Page"] == "1" else []
        return httpx.Response(200, json={"ResultCode": 0, "ResultObject": page_orders})

    return httpx.MockTransport(handler)


def _qoo10_order(pack_no, day, price, qty=1):
    return {
        "PackNo": pack_no,
        "OrderDate": f"{day} 12:00:00",
        "OrderPrice": price,
        "OptionPrice": 0,
        "OrderQty": qty,
        "ItemNo": "I1",
    }


def test_qoo10_sync_upserts_by_date_and_source(session):
    save_credentials(session, CredentialSettings(qoo10=MallCredential(api_key="KEY")))
    transport = _qoo10_transport(
        [_qoo10_order("P1", "2024-01-01", 1000, 2), _qoo10_order("P2", "2024-01-02", 500)]
    )
    session.add(DailySalesRecord(date="2024-01-01", amazon=300, source="manual"))
    session.commit()

    result = asyncio.run(
        sync_mall_daily_sales(session, Mall.QOO10, "2024-01-01", "2024-01-02", transport=transport)
    )
    assert result.saved_dates == ["2024-01-01", "2024-01-02"]
    assert result.order_count == 2
    assert result.daily_sales == {"2024-01-01": 2000, "2024-01-02": 500}

    # A second run rewrites the same rows instead of adding new ones
    asyncio.run(
        sync_mall_daily_sales(session, Mall.QOO10, "2024-01-01", "2024-01-02", transport=transport)
    )
    rows = list_daily_sales(session, "2024-01-01", "2024-01-02")
    assert [(r.date, r.source, r.amazon, r.qoo10) for r in rows] == [
        ("2024-01-01", "manual", 300, 0),
        ("2024-01-01", "qoo10-api", 0, 2000),
        ("2024-01-02", "qoo10-api", 0, 500),
    ]


def test_rakuten_sync_searches_through_next_midnight(session):
    save_credentials(
        session,
        CredentialSettings(rakuten=MallCredential(service_secret="s", license_key="k")),
    )
    searches = []

    def handler(request):
        body = json.loads(request.content)
        if request.url.path.endswith("/order/searchOrder/"):
            searches.append(body)
            return httpx.Response(200, json={"orderNumberList": ["N1"]})
        return httpx.Response(
            200,
            json={
                "OrderModelList": [
                    {"orderNumber": "N1", "orderDatetime": "2024-01-31T22:00:00+0900", "totalPrice": 4200}
                ]
            },
        )

    result = asyncio.run(
        sync_mall_daily_sales(
            session, Mall.RAKUTEN, "2024-01-01", "2024-01-31", transport=httpx.MockTransport(handler)
        )
    )

    assert searches[0]["endDatetime"] == "2024-02-01T00:00:00+0900"
    assert result.saved_dates == ["2024-01-31"]
    rows = list_daily_sales(session, "2024-01-31", "2024-01-31")
    assert rows[0].rakuten == 4200
    assert rows[0].source == "rakuten-order-api"


class FakeGateway:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    async def sync_amazon_sales(self, date_start, date_stop):
        self.calls.append((date_start, date_stop))
        if self.fail:
            raise GatewayError("gateway down", 502)
        return {"success": True, "message": "ok"}


def test_daily_batch_isolates_malls(session):
    gateway = FakeGateway()

    log = asyncio.run(run_daily_batch(session, gateway, today=date(2024, 3, 31)))

    assert log.status == "partial"
    assert gateway.calls == [("2024-03-01", "2024-03-30")]
    detail = {r["mall"]: r for r in json.loads(log.detail_json)}
    assert detail["amazon"]["success"] is True
    assert detail["qoo10"]["success"] is False
    assert "not configured" in detail["rakuten"]["message"]


def test_daily_batch_all_failed(session):
    log = asyncio.run(run_daily_batch(session, FakeGateway(fail=True), today=date(2024, 3, 31)))
    assert log.status == "failed"
    assert log.id is not None


def test_product_sales_route(client, monkeypatch):
    async def fake_fetch(credentials, mall, code, date_start, date_stop, transport=None):
        return [
            ProductSalesPoint(date="2024-01-01", sales=100, quantity=1),
            ProductSalesPoint(date="2024-01-02", sales=250, quantity=2),
        ]

    monkeypatch.setattr(marketplace_service, "fetch_product_sales", fake_fetch)

    resp = client.get(
        "/qoo10/product-sales/Q1", params={"startDate": "2024-01-01", "endDate": "2024-01-02"}
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["totalSales"] == 350
    assert body["totalQuantity"] == 3
    assert body["dailySales"][1] == {"date": "2024-01-02", "sales": 250, "quantity": 2}


def test_product_sales_route_errors(client):
    assert client.get("/amazon/product-sales/A1").status_code == 501
    assert client.get("/qoo10/product-sales/Q1").status_code == 400
    assert client.get("/yahoo/product-sales/Y1").status_code == 404


def test_save_product_sales_route_upserts(client, session):
    body = {
        "mall": "rakuten",
        "code": "serum-30ml",
        "dailySales": [{"date": "2024-01-01", "sales": 100, "quantity": 1}],
    }
    assert client.post("/sync/save-product-sales", json=body).json() == {
        "success": True,
        "savedCount": 1,
    }
    body["dailySales"][0]["sales"] = 150
    client.post("/sync/save-product-sales", json=body)

    rows = session.exec(select(ProductSalesRecord)).all()
    assert [(r.mall, r.code, r.date, r.sales) for r in rows] == [
        ("rakuten", "serum-30ml", "2024-01-01", 150)
    ]


def test_qoo10_sync_route_without_credentials(client):
    resp = client.post("/qoo10/sync-sales", params={"startDate": "2024-01-01", "endDate": "2024-01-02"})
    assert resp.status_code == 400
