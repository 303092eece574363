"""Tests for the listing wizard operations and validation."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from winetrail.models.winery import BookingInfo, Winery
from winetrail.services import listing
from winetrail.services.errors import ListingValidationError

from conftest import winery_data


@pytest.fixture
def winery() -> Winery:
    return Winery(**winery_data())


class TestTastings:
    def test_first_tasting_is_the_initial_template(self):
        winery = Winery(name="New")
        listing.add_tasting(winery)
        assert len(winery.tasting_info) == 1
        assert winery.tasting_info[0].tasting_title == "Tasting 1"
        assert winery.tasting_info[0].booking_info.max_guests_per_slot == 1

    def test_add_tasting_after_index(self, winery):
        listing.add_tasting(winery)
        listing.add_tasting(winery, after_index=0)
        assert len(winery.tasting_info) == 3
        assert winery.tasting_info[0].tasting_title == "Estate Flight"
        assert winery.tasting_info[1].tasting_title == ""

    def test_remove_missing_tasting_is_404(self, winery):
        with pytest.raises(ListingValidationError) as exc:
            listing.remove_tasting(winery, 5)
        assert exc.value.status_code == 404


class TestTastingItems:
    def test_food_pairing_add_and_remove(self, winery):
        option = listing.add_food_pairing(winery, 0, "Charcuterie", 30)
        assert option.id
        assert [o.name for o in winery.tasting_info[0].food_pairing_options] == [
            "Cheese Board",
            "Charcuterie",
        ]
        listing.remove_food_pairing(winery, 0, 0)
        assert [o.name for o in winery.tasting_info[0].food_pairing_options] == ["Charcuterie"]

    def test_food_pairing_requires_name(self, winery):
        with pytest.raises(ListingValidationError):
            listing.add_food_pairing(winery, 0, "  ", 10)

    def test_wine_requires_name_and_description(self, winery):
        with pytest.raises(ListingValidationError):
            listing.add_wine(winery, 0, "Cabernet", "")
        wine = listing.add_wine(winery, 0, "Cabernet", "Bold red", year=2019)
        assert wine.year == 2019
        assert winery.tasting_info[0].wine_details == [wine]

    def test_tour_makes_tours_available(self, winery):
        listing.add_tour(winery, 0, "Barrel cave", 20)
        tours = winery.tasting_info[0].tours
        assert tours.available is True
        assert tours.tour_options[0].cost == 20

    def test_tour_rejects_negative_cost(self, winery):
        with pytest.raises(ListingValidationError):
            listing.add_tour(winery, 0, "Barrel cave", -1)

    def test_remove_missing_feature_is_404(self, winery):
        listing.add_other_feature(winery, 0, "Souvenir glass", 5)
        with pytest.raises(ListingValidationError) as exc:
            listing.remove_other_feature(winery, 0, 3)
        assert exc.value.status_code == 404


class TestSlotsAndImages:
    def test_slots_stored_as_utc_iso(self, winery):
        local = datetime(2030, 6, 1, 8, 0, tzinfo=timezone(timedelta(hours=-7)))
        listing.set_available_slots(winery, 0, [local, datetime(2030, 6, 2, 12, 0)])
        assert winery.tasting_info[0].booking_info.available_slots == [
            "2030-06-01T15:00:00Z",
            "2030-06-02T12:00:00Z",
        ]

    def test_booking_info_normalises_slot_strings(self):
        info = BookingInfo(available_slots=["2030-06-01T08:00:00-07:00", "2030-06-02T12:00:00"])
        assert info.available_slots == ["2030-06-01T15:00:00Z", "2030-06-02T12:00:00Z"]

    @pytest.mark.parametrize("slot", ["Saturday 2pm", "", 42])
    def test_booking_info_rejects_non_datetime_slots(self, slot):
        with pytest.raises(ValidationError):
            BookingInfo(available_slots=[slot])

    def test_external_link_trimmed(self, winery):
        listing.set_external_booking_link(winery, 0, "  https://book.example/x ")
        assert winery.tasting_info[0].booking_info.external_booking_link == "https://book.example/x"

    def test_distribute_images_in_tasting_order(self, winery):
        listing.add_tasting(winery)
        listing.distribute_images(winery, {0: 1, 1: 2}, ["a.jpg", "b.jpg", "c.jpg"])
        assert winery.tasting_info[0].images == ["https://images.example/flight.jpg", "a.jpg"]
        assert winery.tasting_info[1].images == ["b.jpg", "c.jpg"]

    def test_distribute_images_stops_when_urls_run_out(self, winery):
        listing.add_tasting(winery)
        listing.distribute_images(winery, {0: 2, 1: 1}, ["a.jpg"])
        assert winery.tasting_info[0].images[-1] == "a.jpg"
        assert winery.tasting_info[1].images == []


class TestValidation:
    def test_complete_listing_is_valid(self, winery):
        listing.validate_listing(winery)

    def test_basic_info_errors(self):
        errors = listing.listing_errors(Winery(name=" "))
        assert "Winery name is required" in errors
        assert "Phone number is required" in errors
        assert "At least one tasting must be added" in errors

    def test_tasting_errors_are_numbered(self, winery):
        listing.add_tasting(winery)
        with pytest.raises(ListingValidationError) as exc:
            listing.validate_listing(winery)
        assert exc.value.status_code == 400
        assert "Tasting #2: Tasting title is required" in exc.value.errors
        assert "Tasting #2: At least one image is required" in exc.value.errors
        assert not any(e.startswith("Tasting #1") for e in exc.value.errors)

    def test_external_link_replaces_times(self, winery):
        tasting = winery.tasting_info[0]
        tasting.available_times = []
        assert "Tasting #1: At least one available time must be selected" in listing.listing_errors(winery)
        tasting.booking_info.external_booking_link = "https://book.example"
        assert listing.listing_errors(winery) == []
