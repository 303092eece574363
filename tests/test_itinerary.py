"""Tests for itinerary editing endpoints."""

import pytest
from httpx import AsyncClient

from winetrail.models import Itinerary

from conftest import WEEKDAY_SLOT, WEEKEND_SLOT, winery_data


def _closed_winery_data() -> dict:
    data = winery_data(name="Closed Cellars")
    data["tasting_info"][0]["booking_info"]["max_guests_per_slot"] = 0
    return data


@pytest.mark.asyncio
class TestItinerary:
    async def test_empty_itinerary_created_on_first_read(self, client: AsyncClient, test_user):
        response = await client.get("/api/itinerary")
        assert response.status_code == 200
        assert response.json()["items"] == []
        assert await Itinerary.find_one(Itinerary.user_id == test_user.id) is not None

    async def test_requires_auth(self, unauthenticated_client: AsyncClient):
        response = await unauthenticated_client.get("/api/itinerary")
        assert response.status_code == 401

    async def test_add_winery_once(self, client: AsyncClient, make_winery):
        winery = await make_winery()
        response = await client.post("/api/itinerary/items", json={"winery_id": str(winery.id)})
        assert response.status_code == 201
        item = response.json()["items"][0]
        assert item["winery_name"] == "Ridge Top Cellars"
        assert item["booking_details"]["tasting"] is True

        response = await client.post("/api/itinerary/items", json={"winery_id": str(winery.id)})
        assert response.status_code == 409
        assert response.json()["detail"] == "Winery already in itinerary!"

    async def test_select_slot_adds_winery_with_pairing(self, client: AsyncClient, make_winery):
        winery = await make_winery()
        response = await client.post(
            f"/api/itinerary/items/{winery.id}/slot",
            json={"slot": WEEKEND_SLOT, "number_of_people": 2, "food_pairing": "Cheese Board"},
        )
        assert response.status_code == 200
        details = response.json()["items"][0]["booking_details"]
        assert details["selected_date"] == "2030-06-01"
        assert details["selected_time"] == WEEKEND_SLOT
        assert details["number_of_people"] == 2
        assert details["food_pairings"] == [{"name": "Cheese Board", "price": 25.0}]

    async def test_select_slot_rejects_unknown_slot(self, client: AsyncClient, make_winery):
        winery = await make_winery()
        response = await client.post(
            f"/api/itinerary/items/{winery.id}/slot",
            json={"slot": "2031-01-01T10:00:00Z", "number_of_people": 2},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Selected date is not available for booking."

    async def test_select_slot_needs_party_size(self, client: AsyncClient, make_winery):
        winery = await make_winery()
        response = await client.post(
            f"/api/itinerary/items/{winery.id}/slot", json={"slot": WEEKEND_SLOT}
        )
        assert response.status_code == 400

    async def test_select_slot_when_not_accepting_bookings(self, client: AsyncClient, make_winery):
        winery = await make_winery(**_closed_winery_data())
        response = await client.post(
            f"/api/itinerary/items/{winery.id}/slot",
            json={"slot": WEEKEND_SLOT, "number_of_people": 2},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "This winery is not accepting bookings at this time."

    async def test_update_details_applies_slot_checks(self, client: AsyncClient, make_winery):
        winery = await make_winery(**_closed_winery_data())
        await client.post("/api/itinerary/items", json={"winery_id": str(winery.id)})

        response = await client.put(
            f"/api/itinerary/items/{winery.id}",
            json={"selected_time": WEEKDAY_SLOT, "number_of_people": 2},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "This winery is not accepting bookings at this time."

        itinerary = (await client.get("/api/itinerary")).json()
        assert itinerary["items"][0]["booking_details"]["selected_time"] is None

    async def test_update_details_needs_party_size_for_a_time(self, client: AsyncClient, make_winery):
        winery = await make_winery()
        await client.post("/api/itinerary/items", json={"winery_id": str(winery.id)})

        response = await client.put(
            f"/api/itinerary/items/{winery.id}",
            json={"selected_time": WEEKDAY_SLOT, "number_of_people": 0},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Please select the number of people before choosing a date."

    async def test_items_sorted_by_time(self, client: AsyncClient, make_winery):
        later = await make_winery(name="Later")
        earlier = await make_winery(name="Earlier")
        unscheduled = await make_winery(name="Unscheduled")

        await client.post("/api/itinerary/items", json={"winery_id": str(unscheduled.id)})
        await client.post(
            f"/api/itinerary/items/{later.id}/slot", json={"slot": WEEKDAY_SLOT, "number_of_people": 1}
        )
        response = await client.post(
            f"/api/itinerary/items/{earlier.id}/slot", json={"slot": WEEKEND_SLOT, "number_of_people": 1}
        )
        assert [i["winery_name"] for i in response.json()["items"]] == ["Earlier", "Later", "Unscheduled"]

    async def test_update_details_resets_extras_on_tasting_change(self, client: AsyncClient, make_winery):
        winery = await make_winery()
        winery.tasting_info.append(winery.tasting_info[0].model_copy(deep=True))
        await winery.save()
        await client.post(
            f"/api/itinerary/items/{winery.id}/slot",
            json={"slot": WEEKEND_SLOT, "number_of_people": 2, "food_pairing": "Cheese Board"},
        )

        response = await client.put(
            f"/api/itinerary/items/{winery.id}",
            json={
                "selected_tasting_index": 1,
                "number_of_people": 2,
                "food_pairings": [{"name": "Cheese Board", "price": 25}],
            },
        )
        assert response.status_code == 200
        details = response.json()["items"][0]["booking_details"]
        assert details["selected_tasting_index"] == 1
        assert details["food_pairings"] == []

    async def test_update_missing_item_is_404(self, client: AsyncClient, make_winery):
        winery = await make_winery()
        response = await client.put(f"/api/itinerary/items/{winery.id}", json={})
        assert response.status_code == 404

    async def test_remove_and_clear(self, client: AsyncClient, make_winery):
        first = await make_winery(name="First")
        second = await make_winery(name="Second")
        await client.post("/api/itinerary/items", json={"winery_id": str(first.id)})
        await client.post("/api/itinerary/items", json={"winery_id": str(second.id)})

        response = await client.delete(f"/api/itinerary/items/{first.id}")
        assert [i["winery_name"] for i in response.json()["items"]] == ["Second"]

        response = await client.delete(f"/api/itinerary/items/{first.id}")
        assert response.status_code == 404

        response = await client.delete("/api/itinerary")
        assert response.json()["items"] == []

    async def test_ride_link_to_earliest_winery(self, client: AsyncClient, make_winery):
        later = await make_winery(name="Later")
        earlier = await make_winery(
            name="Earlier",
            location={"address": "1 Early Ln, Sonoma, CA", "latitude": 38.29, "longitude": -122.46},
        )
        await client.post(
            f"/api/itinerary/items/{later.id}/slot",
            json={"slot": WEEKDAY_SLOT, "number_of_people": 2},
        )
        await client.post(
            f"/api/itinerary/items/{earlier.id}/slot",
            json={"slot": WEEKEND_SLOT, "number_of_people": 2},
        )

        response = await client.get(
            "/api/itinerary/ride", params={"service": "uber", "lat": 37.77, "lon": -122.42}
        )
        assert response.status_code == 200
        assert "dropoff[latitude]=38.29" in response.json()["url"]

    async def test_ride_link_needs_items(self, client: AsyncClient):
        response = await client.get(
            "/api/itinerary/ride", params={"service": "lyft", "lat": 37.77, "lon": -122.42}
        )
        assert response.status_code == 400
