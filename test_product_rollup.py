import asyncio

import httpx

from mallboard.analyzer.product_rollup import merge_product_sales, rollup_product_sales
from mallboard.connectors.gateway.client import GatewayClient, GatewayError
from mallboard.core.malls import Mall
from mallboard.models.catalog_models import ProductSkuMapping
from mallboard.models.dashboard_models import ProductSalesPoint
from mallboard.store.sales import save_product_sales


class FakeGateway:
    def __init__(self, responses=None, failures=None):
        self.responses = responses or {}
        self.failures = failures or {}
        self.calls = []

    async def fetch_product_sales(self, mall, code, date_start, date_stop):
        self.calls.append((mall.value, code, date_start, date_stop))
        if (mall.value, code) in self.failures:
            raise GatewayError(self.failures[(mall.value, code)], 502)
        return self.responses.get((mall.value, code), [])


def _point(day, sales, quantity=1):
    return ProductSalesPoint(date=day, sales=sales, quantity=quantity)


def test_merge_sums_same_date():
    merged = merge_product_sales(
        [
            [_point("2024-01-02", 100, 1), _point("2024-01-01", 50, 2)],
            [_point("2024-01-02", 30, 3)],
        ]
    )
    assert [(p.date, p.sales, p.quantity) for p in merged] == [
        ("2024-01-01", 50, 2),
        ("2024-01-02", 130, 4),
    ]


def test_no_codes_means_no_network_call(session):
    gateway = FakeGateway()
    mapping = ProductSkuMapping(product_name="Serum")

    result = asyncio.run(
        rollup_product_sales(session, gateway, [mapping], "2024-01-01", "2024-01-31")
    )

    assert gateway.calls == []
    assert result.series == []
    assert result.total_sales == 0


def test_failed_mall_counts_as_zero(session):
    gateway = FakeGateway(
        responses={("amazon", "A1"): [_point("2024-01-01", 1000, 2)]},
        failures={("rakuten", "R1"): "rakuten down"},
    )
    mapping = ProductSkuMapping(product_name="Serum", amazon_code="A1", rakuten_code="R1")

    result = asyncio.run(
        rollup_product_sales(session, gateway, [mapping], "2024-01-01", "2024-01-31")
    )

    assert [c[:2] for c in gateway.calls] == [("amazon", "A1"), ("rakuten", "R1")]
    assert result.total_sales == 1000
    assert result.total_quantity == 2
    assert result.failed == {"rakuten:R1": "rakuten down"}
    assert result.by_mall == {"amazon": 1000}


def test_stored_rows_are_used_before_gateway(session):
    save_product_sales(session, Mall.QOO10, "Q1", [_point("2024-01-05", 700, 1)])
    gateway = FakeGateway(responses={("amazon", "A1"): [_point("2024-01-05", 300, 1)]})
    mappings = [
        ProductSkuMapping(product_name="Serum", qoo10_code="Q1"),
        ProductSkuMapping(product_name="Serum", amazon_code="A1"),
    ]

    result = asyncio.run(
        rollup_product_sales(session, gateway, mappings, "2024-01-01", "2024-01-31")
    )

    assert [c[:2] for c in gateway.calls] == [("amazon", "A1")]
    assert result.cached_malls == ["qoo10"]
    assert [(p.date, p.sales, p.quantity) for p in result.series] == [
        ("2024-01-05", 1000, 2)
    ]


def test_points_outside_range_are_dropped(session):
    gateway = FakeGateway(
        responses={
            ("amazon", "A1"): [_point("2023-12-31", 999), _point("2024-01-01", 10)]
        }
    )
    mapping = ProductSkuMapping(product_name="Serum", amazon_code="A1")

    result = asyncio.run(
        rollup_product_sales(session, gateway, [mapping], "2024-01-01", "2024-01-31")
    )
    assert result.total_sales == 10


def _amazon_ok_rakuten_list_error(request):
    if request.url.path.startswith("/rakuten/"):
        return httpx.Response(502, json=["upstream timeout"])
    return httpx.Response(
        200,
        json={
            "success": True,
            "mall": "amazon",
            "code": "A1",
            "dailySales": [{"date": "2024-01-03", "sales": 100, "quantity": 1}],
        },
    )


def test_unparseable_gateway_error_counts_as_failed_mall(session):
    mapping = ProductSkuMapping(product_name="Serum", amazon_code="A1", rakuten_code="R1")

    async def run():
        gateway = GatewayClient(
            base_url="http://gateway.test",
            transport=httpx.MockTransport(_amazon_ok_rakuten_list_error),
        )
        try:
            return await rollup_product_sales(
                session, gateway, [mapping], "2024-01-01", "2024-01-31"
            )
        finally:
            await gateway.close()

    result = asyncio.run(run())

    assert result.total_sales == 100
    assert result.by_mall == {"amazon": 100}
    assert list(result.failed) == ["rakuten:R1"]
