import os
import re
import hashlib
import logging
import datetime as dt
from typing import Tuple

from fastapi import UploadFile

from backend.seniors_api.database import UPLOADS_DIR
from backend.seniors_api.settings import get_settings
from backend.seniors_api.services.errors import ConfigurationError, ValidationFailed

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^a-zA-Z0-9_.-]")


def _safe_name(filename: str) -> str:
    base = os.path.basename(filename or "upload")
    return _UNSAFE.sub("_", base) or "upload"


def _ensure_dir(path: str) -> str:
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(f"Upload storage is not writable: {path}") from e
    return path


def save_upload(file: UploadFile, *subdirs: str) -> Tuple[str, str, str]:
    """
    Write an uploaded file under the uploads directory.

    Returns (stored path, original filename, sha256 hex digest).
    """
    dest_dir = _ensure_dir(os.path.join(UPLOADS_DIR, *subdirs))
    payload = file.file.read()

    limit = get_settings().max_upload_mb * 1024 * 1024
    if len(payload) > limit:
        raise ValidationFailed(f"File {file.filename} exceeds {get_settings().max_upload_mb} MB")

    stamp = dt.datetime.now().strftime("%Y%m%d%H%M%S%f")
    dest_path = os.path.join(dest_dir, f"{stamp}-{_safe_name(file.filename)}")
    with open(dest_path, "wb") as out:
        out.write(payload)

    digest = hashlib.sha256(payload).hexdigest()
    logger.info(f"Stored upload {file.filename} -> {dest_path}")
    return dest_path, file.filename or os.path.basename(dest_path), digest


def remove_upload(path: str) -> None:
    if path and os.path.exists(path):
        try:
            os.remove(path)
        except OSError as e:
            logger.warning(f"Could not remove upload {path}: {e}")
