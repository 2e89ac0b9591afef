"""API tests for Inventory endpoints."""

from httpx import AsyncClient

API = "/api/v1/inventory"


async def _create_item(client: AsyncClient, name: str = "Bottled water") -> int:
    response = await client.post(
        f"{API}/stock",
        json={"category": "Food", "name": name, "unit": "bottle", "safety_stock": 5},
    )
    assert response.status_code == 201
    return response.json()["data"]["id"]


async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


async def test_actor_header_required(client: AsyncClient):
    response = await client.get(f"{API}/stock", headers={"X-Actor-Id": ""})
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert "X-Actor-Id" in body["message"]


async def test_stock_change_flow(client: AsyncClient, reasons):
    item_id = await _create_item(client)

    response = await client.post(
        f"{API}/changes",
        json={
            "item_stock_id": item_id,
            "change_type": "INCREASE",
            "change_amount": 12,
            "reason": "其他（請說明）",
        },
    )
    assert response.status_code == 201
    log = response.json()["data"]
    assert log["new_quantity"] == 12
    assert log["item_name"] == "Bottled water"
    assert log["actor_id"] == "staff-001"
    assert log["is_absolute"] is False

    response = await client.post(
        f"{API}/changes",
        json={"item_stock_id": item_id, "change_type": "DECREASE", "change_amount": 2, "reason": "過期"},
    )
    assert response.status_code == 201

    response = await client.get(f"{API}/stock/{item_id}")
    stock = response.json()["data"]
    assert stock["total_stock"] == 10
    assert stock["is_below_safety_stock"] is False

    response = await client.get(f"{API}/logs", params={"item_stock_id": item_id})
    page = response.json()["data"]
    assert page["total"] == 2
    assert [entry["change_type"] for entry in page["items"]] == ["DECREASE", "INCREASE"]


async def test_insufficient_stock_returns_400(client: AsyncClient, reasons):
    item_id = await _create_item(client)

    response = await client.post(
        f"{API}/changes",
        json={"item_stock_id": item_id, "change_type": "DECREASE", "change_amount": 1, "reason": "遺失"},
    )
    assert response.status_code == 400
    assert response.json()["success"] is False

    response = await client.get(f"{API}/stock/{item_id}")
    assert response.json()["data"]["total_stock"] == 0


async def test_unknown_reason_returns_422(client: AsyncClient, reasons):
    item_id = await _create_item(client)

    response = await client.post(
        f"{API}/changes",
        json={"item_stock_id": item_id, "change_type": "INCREASE", "change_amount": 1, "reason": "捐贈"},
    )
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "reason"


async def test_non_positive_amount_returns_422(client: AsyncClient, reasons):
    item_id = await _create_item(client)

    response = await client.post(
        f"{API}/changes",
        json={"item_stock_id": item_id, "change_type": "INCREASE", "change_amount": 0, "reason": "其他（請說明）"},
    )
    assert response.status_code == 422


async def test_duplicate_item_returns_409(client: AsyncClient):
    await _create_item(client)

    response = await client.post(f"{API}/stock", json={"category": "Food", "name": "Bottled water"})
    assert response.status_code == 409


async def test_missing_item_returns_404(client: AsyncClient):
    response = await client.get(f"{API}/stock/999")
    assert response.status_code == 404


async def test_stocktake_and_reversal(client: AsyncClient):
    item_id = await _create_item(client)

    response = await client.post(f"{API}/stocktake", json={"item_stock_id": item_id, "new_quantity": 7})
    assert response.status_code == 201

    response = await client.post(
        f"{API}/stocktake",
        json={"item_stock_id": item_id, "new_quantity": 4, "notes": "Recount"},
    )
    log = response.json()["data"]
    assert log["is_absolute"] is True
    assert log["reason"] == "盤點調整"
    assert log["change_type"] == "DECREASE"
    assert log["change_amount"] == 3

    response = await client.get(f"{API}/logs/{log['id']}")
    assert response.status_code == 200
    assert response.json()["data"]["notes"] == "Recount"

    response = await client.delete(f"{API}/logs/{log['id']}")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["reversed_log_id"] == log["id"]
    assert data["item_stock"]["total_stock"] == 7

    response = await client.get(f"{API}/logs/{log['id']}")
    assert response.status_code == 404

    response = await client.delete(f"{API}/logs/{log['id']}")
    assert response.status_code == 404


async def test_stocktake_batch(client: AsyncClient):
    water = await _create_item(client, "Water")
    rice = await _create_item(client, "Rice")

    response = await client.post(
        f"{API}/stocktake/batch",
        json={
            "counts": [
                {"item_stock_id": water, "new_quantity": 30},
                {"item_stock_id": rice, "new_quantity": 6},
            ],
            "notes": "Weekly count",
        },
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["updated_count"] == 2
    assert data["skipped_count"] == 0
    assert {entry["item_stock_id"] for entry in data["logs"]} == {water, rice}


async def test_list_reasons(client: AsyncClient, reasons):
    response = await client.get(f"{API}/reasons", params={"change_type": "INCREASE"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert [r["reason"] for r in data] == ["其他（請說明）"]
