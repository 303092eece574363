"""Standalone image uploads."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel

from winetrail.services.auth import RequireAuth
from winetrail.services.image_storage import ImageStorageService, get_image_storage

logger = logging.getLogger(__name__)

router = APIRouter()


class UploadResponse(BaseModel):
    urls: list[str]


async def upload_images(
    current_user: RequireAuth,
    storage: Annotated[ImageStorageService, Depends(get_image_storage)],
    files: list[UploadFile] = File(...),
) -> UploadResponse:
    """Store images and return their URLs in upload order."""
    urls = await storage.save_images(files)
    logger.info("User %s uploaded %d image(s)", current_user.id, len(urls))
    return UploadResponse(urls=urls)


router.add_api_route("/images", upload_images, methods=["POST"], status_code=201)
