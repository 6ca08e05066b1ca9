"""
Media uploads

Files arrive as multipart parts, are staged under UPLOAD_DIR and forwarded
to the asset host. The staged copy is removed only after the host accepts
it; when the host fails the file stays on disk so it can be inspected or
re-sent by hand.
"""

import logging
import os
import random
import shutil
import time
from typing import List, Optional

import cloudinary
import cloudinary.uploader
from fastapi import UploadFile

import config
from errors import UploadRejected, UploadTooLarge, UpstreamFailure

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {"jpeg", "jpg", "png", "gif", "webp"}
VIDEO_EXTENSIONS = {"mp4", "mov"}
ALLOWED_EXTENSIONS = IMAGE_EXTENSIONS | VIDEO_EXTENSIONS
ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "video/mp4",
    "video/quicktime",
    "video/mov",
}

os.makedirs(config.UPLOAD_DIR, exist_ok=True)


class CloudinaryHost:
    """Remote asset host. `upload` returns the public URL of the stored file."""

    def __init__(self, folder: str = config.CLOUDINARY_FOLDER):
        self.folder = folder
        cloudinary.config(
            cloud_name=config.CLOUDINARY_CLOUD_NAME,
            api_key=config.CLOUDINARY_API_KEY,
            api_secret=config.CLOUDINARY_API_SECRET,
            secure=True,
        )

    def upload(self, path: str) -> str:
        result = cloudinary.uploader.upload(
            path,
            folder=self.folder,
            resource_type="auto",
            transformation=[{"quality": "auto", "fetch_format": "auto"}],
        )
        return result["secure_url"]


_asset_host: Optional[CloudinaryHost] = None


def get_asset_host() -> CloudinaryHost:
    global _asset_host
    if _asset_host is None:
        _asset_host = CloudinaryHost()
    return _asset_host


def credentials_status() -> dict:
    return {
        "cloud_name": "Set" if config.CLOUDINARY_CLOUD_NAME else "Missing",
        "api_key": "Set" if config.CLOUDINARY_API_KEY else "Missing",
        "api_secret": "Set" if config.CLOUDINARY_API_SECRET else "Missing",
    }


def extension_of(filename: str) -> str:
    return os.path.splitext(filename)[1].lower().lstrip(".")


def is_allowed(filename: str, content_type: Optional[str]) -> bool:
    # both the declared type and the extension have to match
    mime = (content_type or "").split(";")[0].strip().lower()
    return mime in ALLOWED_MIME_TYPES and extension_of(filename) in ALLOWED_EXTENSIONS


def file_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


def accept_upload(files: Optional[List[UploadFile]]) -> Optional[UploadFile]:
    """Check count, type and size of the attached files. Returns the single file or None."""
    files = [f for f in (files or []) if f is not None and f.filename]
    if not files:
        return None
    if len(files) > 1:
        raise UploadRejected("Only one file may be uploaded per request")
    upload = files[0]
    if not is_allowed(upload.filename, upload.content_type):
        raise UploadRejected()
    if file_size(upload) > config.MAX_UPLOAD_BYTES:
        raise UploadTooLarge("File exceeds the 50 MB limit")
    return upload


def staged_name(filename: str) -> str:
    unique = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{unique}-{os.path.basename(filename)}"


def stage_upload(upload: UploadFile, upload_dir: str = config.UPLOAD_DIR) -> str:
    os.makedirs(upload_dir, exist_ok=True)
    path = os.path.join(upload_dir, staged_name(upload.filename))
    upload.file.seek(0)
    with open(path, "wb") as out:
        shutil.copyfileobj(upload.file, out)
    return path


def publish_upload(upload: UploadFile, host, upload_dir: str = config.UPLOAD_DIR) -> str:
    """Stage the file, send it to the asset host and return its public URL."""
    path = stage_upload(upload, upload_dir)
    try:
        url = host.upload(path)
    except Exception as exc:
        logger.exception("Asset host upload failed, staged file kept at %s", path)
        raise UpstreamFailure("Upload failed", detail=str(exc)) from exc
    try:
        os.remove(path)
    except OSError as exc:
        logger.warning("Error deleting local file %s: %s", path, exc)
    return url
