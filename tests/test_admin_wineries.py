"""Tests for owner listing management and the wizard endpoints."""

import pytest
from httpx import AsyncClient

from winetrail.main import app
from winetrail.models import Winery
from winetrail.services.image_storage import ImageStorageService, get_image_storage

from conftest import PNG_BYTES, WEEKDAY_SLOT, WEEKEND_SLOT, winery_data


@pytest.mark.asyncio
class TestManage:
    async def test_owner_sees_only_own_listings(self, client: AsyncClient, test_user, other_user, make_winery):
        await make_winery(owner=test_user, name="Mine")
        await make_winery(owner=other_user, name="Theirs")

        response = await client.get("/api/admin/wineries")
        assert [w["name"] for w in response.json()] == ["Mine"]

    async def test_admin_sees_all_listings(self, admin_client: AsyncClient, test_user, other_user, make_winery):
        await make_winery(owner=test_user)
        await make_winery(owner=other_user)

        response = await admin_client.get("/api/admin/wineries")
        assert len(response.json()) == 2

    async def test_patch_replaces_sent_fields(self, client: AsyncClient, test_user, make_winery):
        winery = await make_winery(owner=test_user)
        response = await client.patch(
            f"/api/admin/wineries/{winery.id}",
            json={"name": "Renamed", "payment_method": {"type": "pay_stripe"}},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Renamed"
        assert data["payment_method"]["type"] == "pay_stripe"
        assert data["tasting_info"][0]["tasting_title"] == "Estate Flight"

        stored = await Winery.get(winery.id)
        assert stored.name == "Renamed"

    async def test_patch_validates_merged_listing(self, client: AsyncClient, test_user, make_winery):
        winery = await make_winery(owner=test_user)
        response = await client.patch(f"/api/admin/wineries/{winery.id}", json={"description": ""})
        assert response.status_code == 400
        assert response.json()["detail"] == ["Description is required"]

    async def test_patch_rejects_unparseable_slot(self, client: AsyncClient, test_user, make_winery):
        winery = await make_winery(owner=test_user)
        tastings = winery_data()["tasting_info"]
        tastings[0]["booking_info"]["available_slots"] = ["next weekend"]

        response = await client.patch(f"/api/admin/wineries/{winery.id}", json={"tasting_info": tastings})
        assert response.status_code == 422

        stored = await Winery.get(winery.id)
        assert stored.tasting_info[0].booking_info.available_slots == [WEEKEND_SLOT, WEEKDAY_SLOT]

    async def test_other_user_cannot_edit(self, other_client: AsyncClient, test_user, make_winery):
        winery = await make_winery(owner=test_user)
        response = await other_client.patch(f"/api/admin/wineries/{winery.id}", json={"name": "Hijack"})
        assert response.status_code == 403

    async def test_admin_can_delete_any(self, admin_client: AsyncClient, test_user, make_winery):
        winery = await make_winery(owner=test_user)
        response = await admin_client.delete(f"/api/admin/wineries/{winery.id}")
        assert response.status_code == 204
        assert await Winery.get(winery.id) is None


@pytest.mark.asyncio
class TestWizard:
    async def test_add_and_remove_tasting(self, client: AsyncClient, test_user, make_winery):
        winery = await make_winery(owner=test_user)
        base = f"/api/admin/wineries/{winery.id}/tastings"

        response = await client.post(base, params={"after_index": 0})
        assert response.status_code == 201
        assert len(response.json()["tasting_info"]) == 2

        response = await client.delete(f"{base}/1")
        assert len(response.json()["tasting_info"]) == 1

    async def test_food_pairing_wine_tour_feature(self, client: AsyncClient, test_user, make_winery):
        winery = await make_winery(owner=test_user)
        base = f"/api/admin/wineries/{winery.id}/tastings/0"

        await client.post(f"{base}/food-pairings", json={"name": "Oysters", "price": 18})
        await client.post(f"{base}/wines", json={"name": "Zin", "description": "Jammy", "year": 2020})
        await client.post(f"{base}/tours", json={"description": "Vineyard walk", "cost": 10})
        response = await client.post(f"{base}/features", json={"description": "Glass", "cost": 5})
        assert response.status_code == 201

        tasting = response.json()["tasting_info"][0]
        assert [o["name"] for o in tasting["food_pairing_options"]] == ["Cheese Board", "Oysters"]
        assert tasting["wine_details"][0]["name"] == "Zin"
        assert tasting["tours"]["available"] is True
        assert tasting["other_features"] == [{"description": "Glass", "cost": 5.0}]

        response = await client.delete(f"{base}/food-pairings/0")
        assert [o["name"] for o in response.json()["tasting_info"][0]["food_pairing_options"]] == ["Oysters"]

    async def test_invalid_wizard_input_is_400(self, client: AsyncClient, test_user, make_winery):
        winery = await make_winery(owner=test_user)
        response = await client.post(
            f"/api/admin/wineries/{winery.id}/tastings/0/wines", json={"name": "Zin", "description": ""}
        )
        assert response.status_code == 400

    async def test_set_slots_and_external_link(self, client: AsyncClient, test_user, make_winery):
        winery = await make_winery(owner=test_user)
        base = f"/api/admin/wineries/{winery.id}/tastings/0"

        response = await client.put(f"{base}/slots", json={"slots": ["2030-07-04T17:00:00+02:00"]})
        assert response.json()["tasting_info"][0]["booking_info"]["available_slots"] == [
            "2030-07-04T15:00:00Z"
        ]

        response = await client.put(f"{base}/external-link", json={"external_booking_link": "book.example"})
        assert response.json()["tasting_info"][0]["booking_info"]["external_booking_link"] == "book.example"

    async def test_upload_tasting_images(self, client: AsyncClient, test_user, make_winery, temp_image_dir):
        winery = await make_winery(owner=test_user)
        app.dependency_overrides[get_image_storage] = lambda: ImageStorageService(
            backend="local", storage_path=temp_image_dir
        )
        try:
            response = await client.post(
                f"/api/admin/wineries/{winery.id}/tastings/0/images",
                files=[("files", ("a.png", PNG_BYTES, "image/png"))],
            )
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 201
        images = response.json()["tasting_info"][0]["images"]
        assert len(images) == 2
        assert images[1].startswith("/api/images/")
        assert len(list(temp_image_dir.iterdir())) == 1
