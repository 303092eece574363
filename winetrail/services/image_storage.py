"""Listing image uploads: local disk or ImgBB hosting."""

import base64
import logging
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
import httpx
from fastapi import HTTPException, UploadFile, status

from winetrail.config import settings

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}

# (magic bytes, offset, extension)
IMAGE_MAGIC_SIGNATURES = [
    (b"\xff\xd8\xff", 0, ".jpg"),
    (b"\x89PNG\r\n\x1a\n", 0, ".png"),
    (b"GIF87a", 0, ".gif"),
    (b"GIF89a", 0, ".gif"),
    (b"RIFF", 0, ".webp"),  # plus "WEBP" at offset 8
]


def detect_image_type(content: bytes) -> str | None:
    """Detect image type from magic bytes; None if not a supported image."""
    if len(content) < 12:
        return None

    for magic, offset, ext in IMAGE_MAGIC_SIGNATURES:
        if content[offset:offset + len(magic)] == magic:
            if ext == ".webp" and content[8:12] != b"WEBP":
                continue
            return ext
    return None


class ImageStorageService:
    """Validates uploaded images and stores them on the configured backend.

    ``local`` writes files under ``data/images`` and serves them from
    ``/api/images``; ``imgbb`` uploads the base64 content to ImgBB and
    returns the hosted URL.
    """

    def __init__(
        self,
        backend: Optional[str] = None,
        storage_path: Path | None = None,
        max_size_bytes: int | None = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.backend = backend or settings.image_backend
        self.storage_path = storage_path or settings.image_storage_path
        self.max_size_bytes = max_size_bytes or settings.max_upload_size_bytes
        self._client = client
        if self.backend == "local":
            self.storage_path.mkdir(parents=True, exist_ok=True)

    async def _read_validated(self, upload_file: UploadFile) -> tuple[bytes, str]:
        if upload_file.filename:
            declared = Path(upload_file.filename).suffix.lower()
            if declared not in ALLOWED_EXTENSIONS:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Invalid file type. Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
                )

        content = await upload_file.read()
        if len(content) > self.max_size_bytes:
            max_mb = self.max_size_bytes / (1024 * 1024)
            raise HTTPException(
                status_code=status.HTTP_413_CONTENT_TOO_LARGE,
                detail=f"File size exceeds maximum allowed size of {max_mb:.1f} MB",
            )

        ext = detect_image_type(content)
        if ext is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid file content. File does not appear to be a valid image.",
            )
        return content, ext

    async def save_image(self, upload_file: UploadFile) -> str:
        """Store one upload and return its public URL."""
        content, ext = await self._read_validated(upload_file)
        if self.backend == "imgbb":
            return await self._upload_imgbb(content, upload_file.filename)
        return await self._save_local(content, ext)

    async def save_images(self, files: list[UploadFile]) -> list[str]:
        """Store uploads in order; the URL list matches ``files``."""
        return [await self.save_image(f) for f in files]

    async def _save_local(self, content: bytes, ext: str) -> str:
        filename = f"{uuid.uuid4()}{ext}"
        async with aiofiles.open(self.storage_path / filename, "wb") as f:
            await f.write(content)
        return self.get_image_url(filename)

    async def _upload_imgbb(self, content: bytes, filename: Optional[str]) -> str:
        api_key = settings.imgbb_api_key
        if not api_key:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Image hosting is not configured",
            )

        data = {"key": api_key, "image": base64.b64encode(content).decode("ascii")}
        if filename:
            data["name"] = Path(filename).stem

        try:
            if self._client is not None:
                resp = await self._client.post(settings.imgbb_upload_url, data=data)
            else:
                async with httpx.AsyncClient(timeout=30.0) as client:
                    resp = await client.post(settings.imgbb_upload_url, data=data)
        except httpx.HTTPError as e:
            logger.error("ImgBB upload failed: %s", e)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail="Image upload failed"
            ) from e

        payload = resp.json() if resp.status_code < 400 else {}
        url = (payload.get("data") or {}).get("url")
        if not url:
            logger.error("ImgBB upload rejected: status=%s body=%s", resp.status_code, resp.text[:200])
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Image upload failed")
        return url

    def get_image_path(self, filename: str) -> Path | None:
        """Full path of a locally stored image, or None."""
        file_path = self.storage_path / Path(filename).name
        if file_path.exists():
            return file_path
        return None

    def get_image_url(self, filename: str) -> str:
        return f"/api/images/{filename}"


def get_image_storage() -> ImageStorageService:
    return ImageStorageService()
