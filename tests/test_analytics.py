from souvenir_shop.models import utcnow

from .conftest import make_souvenir


async def _order(client, customer, souvenir_id, total):
    r = await client.post(
        "/orders",
        json={"items": [{"souvenir_id": souvenir_id, "quantity": 1, "price_at_time": total}], "total_price": total},
        headers=customer["headers"],
    )
    return r.json()["order_id"]


async def test_dashboard_analytics(client, admin, customer):
    runner = await make_souvenir(client, admin)
    await make_souvenir(client, admin, name="Clay Pot", category="Pottery", price=10.0, stock=3)
    await _order(client, customer, runner["id"], 100)
    cancelled = await _order(client, customer, runner["id"], 50)
    await client.patch(f"/orders/{cancelled}/status", json={"status": "CANCELLED"}, headers=admin["headers"])

    r = await client.get("/admin/analytics", headers=admin["headers"])
    assert r.status_code == 200
    data = r.json()
    assert data["total_revenue"] == 100.0
    assert data["total_orders"] == 2
    assert data["approved_users"] == 2
    assert data["inventory_value"] == 630.0
    assert data["order_status"] == {"PENDING_WHATSAPP": 1, "COMPLETED": 0, "CANCELLED": 1}
    assert data["categories"] == [{"name": "Pottery", "count": 1}, {"name": "Textiles", "count": 1}]

    timeline = data["revenue_timeline"]
    assert len(timeline) == 30
    assert timeline[-1] == {"date": utcnow().date().isoformat(), "amount": 100.0}
    assert sum(day["amount"] for day in timeline) == 100.0


async def test_analytics_window_and_access(client, admin, customer):
    r = await client.get("/admin/analytics", params={"days": 7}, headers=admin["headers"])
    assert len(r.json()["revenue_timeline"]) == 7
    assert r.json()["total_revenue"] == 0
    assert (await client.get("/admin/analytics", headers=customer["headers"])).status_code == 403
