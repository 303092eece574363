"""Owner/admin listing management: edits, deletion and the wizard steps."""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from pydantic import ValidationError

from winetrail.models.winery import Winery
from winetrail.routers._common import get_owned_winery
from winetrail.schemas.winery import (
    ExternalLinkRequest,
    FoodPairingRequest,
    OtherFeatureRequest,
    SlotsRequest,
    TourRequest,
    WineRequest,
    WineryResponse,
    WineryUpdate,
)
from winetrail.services import listing
from winetrail.services.auth import RequireAuth
from winetrail.services.errors import ListingValidationError
from winetrail.services.image_storage import ImageStorageService, get_image_storage

logger = logging.getLogger(__name__)

router = APIRouter()


async def _apply(winery: Winery, operation: Callable[[Winery], Any]) -> WineryResponse:
    """Run one wizard operation and persist the result."""
    try:
        operation(winery)
    except ListingValidationError as e:
        raise e.to_http() from e

    winery.updated_at = datetime.now(timezone.utc)
    await winery.save()
    return WineryResponse.from_winery(winery)


async def list_my_wineries(current_user: RequireAuth) -> list[WineryResponse]:
    """Listings the caller manages; admins see every listing."""
    if current_user.is_admin:
        query = Winery.find_all()
    else:
        query = Winery.find(Winery.owner_id == current_user.id)
    wineries = await query.sort(-Winery.updated_at).to_list()
    return [WineryResponse.from_winery(w) for w in wineries]


async def update_winery(
    winery_id: str,
    winery_update: WineryUpdate,
    current_user: RequireAuth,
) -> WineryResponse:
    """Replace the fields sent and validate the merged listing."""
    winery = await get_owned_winery(winery_id, current_user)

    merged = winery.model_dump()
    merged.update(winery_update.model_dump(exclude_unset=True, exclude_none=True))
    merged["updated_at"] = datetime.now(timezone.utc)
    try:
        updated = Winery.model_validate(merged)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False),
        ) from e

    try:
        listing.validate_listing(updated)
    except ListingValidationError as e:
        raise e.to_http() from e

    await updated.replace()
    logger.info("Winery %s updated by user %s", winery.id, current_user.id)
    return WineryResponse.from_winery(updated)


async def delete_winery(winery_id: str, current_user: RequireAuth) -> None:
    winery = await get_owned_winery(winery_id, current_user)
    await winery.delete()
    logger.info("Winery %s deleted by user %s", winery_id, current_user.id)


async def add_tasting(
    winery_id: str,
    current_user: RequireAuth,
    after_index: Optional[int] = None,
) -> WineryResponse:
    winery = await get_owned_winery(winery_id, current_user)
    return await _apply(winery, lambda w: listing.add_tasting(w, after_index))


async def remove_tasting(winery_id: str, tasting_index: int, current_user: RequireAuth) -> WineryResponse:
    winery = await get_owned_winery(winery_id, current_user)
    return await _apply(winery, lambda w: listing.remove_tasting(w, tasting_index))


async def add_food_pairing(
    winery_id: str,
    tasting_index: int,
    body: FoodPairingRequest,
    current_user: RequireAuth,
) -> WineryResponse:
    winery = await get_owned_winery(winery_id, current_user)
    return await _apply(
        winery, lambda w: listing.add_food_pairing(w, tasting_index, body.name, body.price)
    )


async def remove_food_pairing(
    winery_id: str,
    tasting_index: int,
    option_index: int,
    current_user: RequireAuth,
) -> WineryResponse:
    winery = await get_owned_winery(winery_id, current_user)
    return await _apply(
        winery, lambda w: listing.remove_food_pairing(w, tasting_index, option_index)
    )


async def add_wine(
    winery_id: str,
    tasting_index: int,
    body: WineRequest,
    current_user: RequireAuth,
) -> WineryResponse:
    winery = await get_owned_winery(winery_id, current_user)
    return await _apply(
        winery,
        lambda w: listing.add_wine(
            w,
            tasting_index,
            body.name,
            body.description,
            year=body.year,
            tasting_notes=body.tasting_notes,
            photo=body.photo,
        ),
    )


async def remove_wine(
    winery_id: str,
    tasting_index: int,
    wine_index: int,
    current_user: RequireAuth,
) -> WineryResponse:
    winery = await get_owned_winery(winery_id, current_user)
    return await _apply(winery, lambda w: listing.remove_wine(w, tasting_index, wine_index))


async def add_tour(
    winery_id: str,
    tasting_index: int,
    body: TourRequest,
    current_user: RequireAuth,
) -> WineryResponse:
    winery = await get_owned_winery(winery_id, current_user)
    return await _apply(
        winery, lambda w: listing.add_tour(w, tasting_index, body.description, body.cost)
    )


async def remove_tour(
    winery_id: str,
    tasting_index: int,
    tour_index: int,
    current_user: RequireAuth,
) -> WineryResponse:
    winery = await get_owned_winery(winery_id, current_user)
    return await _apply(winery, lambda w: listing.remove_tour(w, tasting_index, tour_index))


async def add_other_feature(
    winery_id: str,
    tasting_index: int,
    body: OtherFeatureRequest,
    current_user: RequireAuth,
) -> WineryResponse:
    winery = await get_owned_winery(winery_id, current_user)
    return await _apply(
        winery,
        lambda w: listing.add_other_feature(w, tasting_index, body.description, body.cost),
    )


async def remove_other_feature(
    winery_id: str,
    tasting_index: int,
    feature_index: int,
    current_user: RequireAuth,
) -> WineryResponse:
    winery = await get_owned_winery(winery_id, current_user)
    return await _apply(
        winery, lambda w: listing.remove_other_feature(w, tasting_index, feature_index)
    )


async def set_slots(
    winery_id: str,
    tasting_index: int,
    body: SlotsRequest,
    current_user: RequireAuth,
) -> WineryResponse:
    winery = await get_owned_winery(winery_id, current_user)
    return await _apply(
        winery, lambda w: listing.set_available_slots(w, tasting_index, body.slots)
    )


async def set_external_link(
    winery_id: str,
    tasting_index: int,
    body: ExternalLinkRequest,
    current_user: RequireAuth,
) -> WineryResponse:
    winery = await get_owned_winery(winery_id, current_user)
    return await _apply(
        winery,
        lambda w: listing.set_external_booking_link(w, tasting_index, body.external_booking_link),
    )


async def upload_tasting_images(
    winery_id: str,
    tasting_index: int,
    current_user: RequireAuth,
    storage: Annotated[ImageStorageService, Depends(get_image_storage)],
    files: list[UploadFile] = File(...),
) -> WineryResponse:
    """Upload images and append their URLs to a tasting."""
    winery = await get_owned_winery(winery_id, current_user)
    try:
        listing.get_tasting(winery, tasting_index)
    except ListingValidationError as e:
        raise e.to_http() from e

    urls = await storage.save_images(files)
    return await _apply(
        winery, lambda w: listing.distribute_images(w, {tasting_index: len(urls)}, urls)
    )


router.add_api_route("", list_my_wineries, methods=["GET"])
router.add_api_route("/{winery_id}", update_winery, methods=["PATCH"])
router.add_api_route("/{winery_id}", delete_winery, methods=["DELETE"], status_code=204)

_tasting = "/{winery_id}/tastings/{tasting_index}"
router.add_api_route("/{winery_id}/tastings", add_tasting, methods=["POST"], status_code=201)
router.add_api_route(_tasting, remove_tasting, methods=["DELETE"])
router.add_api_route(f"{_tasting}/food-pairings", add_food_pairing, methods=["POST"], status_code=201)
router.add_api_route(f"{_tasting}/food-pairings/{{option_index}}", remove_food_pairing, methods=["DELETE"])
router.add_api_route(f"{_tasting}/wines", add_wine, methods=["POST"], status_code=201)
router.add_api_route(f"{_tasting}/wines/{{wine_index}}", remove_wine, methods=["DELETE"])
router.add_api_route(f"{_tasting}/tours", add_tour, methods=["POST"], status_code=201)
router.add_api_route(f"{_tasting}/tours/{{tour_index}}", remove_tour, methods=["DELETE"])
router.add_api_route(f"{_tasting}/features", add_other_feature, methods=["POST"], status_code=201)
router.add_api_route(f"{_tasting}/features/{{feature_index}}", remove_other_feature, methods=["DELETE"])
router.add_api_route(f"{_tasting}/slots", set_slots, methods=["PUT"])
router.add_api_route(f"{_tasting}/external-link", set_external_link, methods=["PUT"])
router.add_api_route(f"{_tasting}/images", upload_tasting_images, methods=["POST"], status_code=201)
