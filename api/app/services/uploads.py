"""
Image Upload Service - signed direct uploads to Cloudinary
"""
from typing import Dict, Any
import logging
import time
import uuid

import cloudinary
import cloudinary.utils

from app.config import settings

logger = logging.getLogger(__name__)


class UploadNotConfiguredError(Exception):
    """Cloudinary credentials are missing"""


class UploadService:
    """
    The browser uploads straight to Cloudinary; the API only signs the
    request and later stores the resulting URL.
    """

    _configured = False

    @classmethod
    def configure(cls) -> None:
        if not settings.CLOUDINARY_ENABLED:
            raise UploadNotConfiguredError("Cloudinary credentials are not configured")
        if not cls._configured:
            cloudinary.config(
                cloud_name=settings.CLOUDINARY_CLOUD_NAME,
                api_key=settings.CLOUDINARY_API_KEY,
                api_secret=settings.CLOUDINARY_API_SECRET,
                secure=True,
            )
            cls._configured = True

    @classmethod
    def get_upload_signature(cls) -> Dict[str, Any]:
        """Parameters for one signed upload into the configured folder"""
        cls.configure()

        timestamp = int(time.time())
        folder = settings.CLOUDINARY_FOLDER
        public_id = f"{folder}/{uuid.uuid4()}"

        signature = cloudinary.utils.api_sign_request(
            {
                "timestamp": timestamp,
                "public_id": public_id,
                "folder": folder,
            },
            settings.CLOUDINARY_API_SECRET,
        )

        logger.debug(f"Signed upload for {public_id}")
        return {
            "upload_type": "cloudinary",
            "signature": signature,
            "timestamp": timestamp,
            "cloud_name": settings.CLOUDINARY_CLOUD_NAME,
            "api_key": settings.CLOUDINARY_API_KEY,
            "public_id": public_id,
            "folder": folder,
        }

    @staticmethod
    def is_cloudinary_url(url: str) -> bool:
        return "cloudinary.com" in (url or "")

    @staticmethod
    def normalize_image_url(raw_url: str) -> str:
        """
        Accept Cloudinary/web URLs and object-storage paths; Cloudinary URLs
        are forced to https.

        Raises:
            ValueError: anything that is not an http(s) URL or /objects/ path
        """
        url = (raw_url or "").strip()
        if not url:
            raise ValueError("Image URL is required")
        if url.startswith("/objects/"):
            return url
        if url.startswith("http://") and UploadService.is_cloudinary_url(url):
            return "https://" + url[len("http://"):]
        if url.startswith(("https://", "http://")):
            return url
        raise ValueError("Unsupported image URL")
