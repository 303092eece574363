"""Tests for public winery browsing and listing creation."""

import pytest
from httpx import AsyncClient

from conftest import WEEKDAY_SLOT, WEEKEND_SLOT, winery_data


@pytest.mark.asyncio
class TestBrowse:
    async def test_list_with_default_filters(self, unauthenticated_client: AsyncClient, make_winery):
        await make_winery(name="Bravo")
        await make_winery(name="Alpha")
        await make_winery(name="Empty", tasting_info=[])

        response = await unauthenticated_client.get("/api/winery")
        assert response.status_code == 200
        assert [w["name"] for w in response.json()] == ["Alpha", "Bravo"]

    async def test_list_filters_from_query(self, unauthenticated_client: AsyncClient, make_winery):
        reds = winery_data(name="Reds")
        reds["tasting_info"][0]["wine_types"] = ["Red"]
        await make_winery(**reds)
        whites = winery_data(name="Whites")
        whites["tasting_info"][0]["wine_types"] = ["White"]
        await make_winery(**whites)

        response = await unauthenticated_client.get(
            "/api/winery", params={"wine_type": "white", "ava": "Napa Valley"}
        )
        assert [w["name"] for w in response.json()] == ["Whites"]

    async def test_search_with_filters_body(self, unauthenticated_client: AsyncClient, make_winery):
        await make_winery(name="Cheap")
        response = await unauthenticated_client.post(
            "/api/winery/search", json={"price_range": [50, 100]}
        )
        assert response.status_code == 200
        assert response.json() == []

    async def test_get_winery(self, unauthenticated_client: AsyncClient, make_winery):
        winery = await make_winery()
        response = await unauthenticated_client.get(f"/api/winery/{winery.id}")
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(winery.id)
        assert data["payment_method"]["type"] == "pay_winery"

    async def test_get_winery_invalid_id_is_404(self, unauthenticated_client: AsyncClient, init_test_db):
        response = await unauthenticated_client.get("/api/winery/not-an-id")
        assert response.status_code == 404

    async def test_tasting_slots_grouped_by_date(self, unauthenticated_client: AsyncClient, make_winery):
        winery = await make_winery()
        response = await unauthenticated_client.get(f"/api/winery/{winery.id}/tastings/0/slots")
        assert response.status_code == 200
        data = response.json()
        assert data["weekend_premium_percent"] == 50
        assert data["max_guests_per_slot"] == 8
        assert data["days"] == [
            {"date": "2030-06-01", "times": [WEEKEND_SLOT], "weekend": True},
            {"date": "2030-06-03", "times": [WEEKDAY_SLOT], "weekend": False},
        ]

    async def test_tasting_slots_unknown_tasting(self, unauthenticated_client: AsyncClient, make_winery):
        winery = await make_winery()
        response = await unauthenticated_client.get(f"/api/winery/{winery.id}/tastings/3/slots")
        assert response.status_code == 404


@pytest.mark.asyncio
class TestCreate:
    async def test_create_sets_owner(self, client: AsyncClient, test_user):
        response = await client.post("/api/winery", json=winery_data())
        assert response.status_code == 201
        assert response.json()["owner_id"] == str(test_user.id)

    async def test_create_accepts_legacy_payment_method(self, client: AsyncClient):
        response = await client.post(
            "/api/winery", json=winery_data(payment_method="pay_stripe")
        )
        assert response.status_code == 201
        assert response.json()["payment_method"] == {
            "type": "pay_stripe",
            "external_booking_link": "",
        }

    async def test_create_returns_all_validation_errors(self, client: AsyncClient):
        response = await client.post("/api/winery", json={"name": "Half done"})
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert "Description is required" in detail
        assert "At least one tasting must be added" in detail

    async def test_create_rejects_unparseable_slot(self, client: AsyncClient):
        data = winery_data()
        data["tasting_info"][0]["booking_info"]["available_slots"] = ["Saturday 2pm"]

        response = await client.post("/api/winery", json=data)
        assert response.status_code == 422
        assert "Invalid booking slot" in response.text

    async def test_create_normalises_slots_to_utc(self, client: AsyncClient, unauthenticated_client: AsyncClient):
        data = winery_data()
        data["tasting_info"][0]["booking_info"]["available_slots"] = ["2030-06-01T17:00:00+02:00"]

        response = await client.post("/api/winery", json=data)
        assert response.status_code == 201
        booking_info = response.json()["tasting_info"][0]["booking_info"]
        assert booking_info["available_slots"] == [WEEKEND_SLOT]

        winery_id = response.json()["id"]
        response = await unauthenticated_client.get(f"/api/winery/{winery_id}/tastings/0/slots")
        assert response.status_code == 200

    async def test_create_requires_auth(self, unauthenticated_client: AsyncClient):
        response = await unauthenticated_client.post("/api/winery", json=winery_data())
        assert response.status_code == 401
