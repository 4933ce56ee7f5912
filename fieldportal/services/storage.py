"""Image persistence for receipts and waste logs.

Files go to the external blob service when ``BLOB_UPLOAD_URL`` is set,
otherwise under ``UPLOAD_DIR`` (served at ``UPLOAD_URL_PREFIX``).
"""
from __future__ import annotations
import base64
import binascii
import logging
import os
import re
import uuid

import httpx
from fastapi import HTTPException

from fieldportal.core.config import settings

logger = logging.getLogger("fieldportal.storage")

DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w\-\./\+]+);base64,(?P<b64>.+)$", re.I | re.S)

IMAGE_MIMES = {"image/png", "image/jpeg", "image/jpg", "image/webp"}

EXT_MAP = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
}


def _ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def decode_data_url(data_url: str, *, allowed_mimes: set[str] = IMAGE_MIMES) -> tuple[str, bytes]:
    m = DATA_URL_RE.match(data_url or "")
    if not m:
        raise HTTPException(status_code=400, detail="Invalid data URL")
    mime = (m.group("mime") or "").lower()
    if mime not in {x.lower() for x in allowed_mimes}:
        raise HTTPException(status_code=400, detail=f"Unsupported MIME type: {mime}")
    try:
        blob = base64.b64decode(m.group("b64"), validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="Invalid base64 payload")
    return mime, blob


def _filename(mime: str) -> str:
    return f"{uuid.uuid4().hex}{EXT_MAP.get(mime, '.bin')}"


def _save_local(blob: bytes, subdir: str, fname: str) -> str:
    folder = os.path.join(settings.upload_dir, subdir) if subdir else settings.upload_dir
    _ensure_dir(folder)
    with open(os.path.join(folder, fname), "wb") as fh:
        fh.write(blob)
    prefix = settings.upload_url_prefix.rstrip("/")
    return f"{prefix}/{subdir}/{fname}" if subdir else f"{prefix}/{fname}"


async def _upload_blob(blob: bytes, mime: str, subdir: str, fname: str) -> str:
    pathname = f"{subdir}/{fname}" if subdir else fname
    url = f"{settings.blob_upload_url.rstrip('/')}/{pathname}"
    headers = {"content-type": mime}
    if settings.blob_token:
        headers["authorization"] = f"Bearer {settings.blob_token}"

    timeout = httpx.Timeout(settings.blob_timeout_seconds)
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            r = await client.put(url, content=blob, headers=headers)
        r.raise_for_status()
        stored = r.json().get("url")
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Blob upload of %s failed: %s", pathname, e)
        raise HTTPException(status_code=500, detail=f"Blob upload failed: {e}")
    if not stored:
        raise HTTPException(status_code=500, detail="Blob upload failed: no URL in response")
    logger.info("Uploaded %s (%d bytes) to blob storage", pathname, len(blob))
    return stored


async def store_bytes(blob: bytes, mime: str, subdir: str) -> str:
    """Persist ``blob`` and return the URL it can be fetched from."""
    fname = _filename(mime)
    if settings.blob_enabled:
        return await _upload_blob(blob, mime, subdir, fname)
    return _save_local(blob, subdir, fname)


def read_local(url: str) -> bytes | None:
    """Bytes for a URL produced by ``_save_local``; None for anything else."""
    prefix = settings.upload_url_prefix.rstrip("/") + "/"
    if not url or not url.startswith(prefix):
        return None
    rel = url[len(prefix):]
    root = os.path.abspath(settings.upload_dir)
    path = os.path.abspath(os.path.join(root, rel))
    if not path.startswith(root + os.sep) or not os.path.exists(path):
        return None
    with open(path, "rb") as fh:
        return fh.read()


async def fetch_image_bytes(url: str) -> bytes | None:
    local = read_local(url)
    if local is not None:
        return local
    if not url.startswith("https://"):
        return None
    timeout = httpx.Timeout(settings.blob_timeout_seconds)
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        r = await client.get(url)
    if r.status_code != 200 or not r.content:
        return None
    return r.content
