"""Object storage for audio and template images.

Resources are addressed by a path inside a single logical bucket:
    {base_dir}/{bucket}/{path}
A resource can also be a dereferenceable http(s) URL; reads accept either.
"""

from __future__ import annotations

import asyncio
import io
import mimetypes
from pathlib import Path

import httpx
from PIL import Image, ImageOps

from fieldscribe.config import get_settings
from fieldscribe.errors import TransportError, StoragePathError

_settings = get_settings()


def _get_base() -> Path:
    return Path(_settings.storage.base_dir) / _settings.storage.bucket


def is_remote(ref: str) -> bool:
    return ref.startswith("http://") or ref.startswith("https://")


def resolve_path(path: str) -> Path:
    """Absolute location of a bucket path. Raises StoragePathError if it leaves the bucket."""
    base = _get_base().resolve()
    target = (base / path).resolve()
    if target == base or not target.is_relative_to(base):
        raise StoragePathError(f"Invalid object path: {path}")
    return target


def _save_sync(data: bytes, path: str) -> str:
    target = resolve_path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    return path


async def save_object(data: bytes, path: str) -> str:
    """Store bytes under a bucket path. Returns the path."""
    return await asyncio.to_thread(_save_sync, data, path)


def read_object_sync(path: str) -> bytes:
    p = resolve_path(path)
    if not p.exists():
        raise FileNotFoundError(f"Object not found: {path}")
    return p.read_bytes()


async def read_object(ref: str, client: httpx.AsyncClient | None = None) -> bytes:
    """Read a bucket path or fetch a public URL."""
    if not is_remote(ref):
        return await asyncio.to_thread(read_object_sync, ref)

    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=60.0)
    try:
        resp = await client.get(ref)
        if resp.status_code >= 400:
            raise TransportError(
                f"Failed to download {ref}: HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        return resp.content
    except httpx.HTTPError as e:
        raise TransportError(f"Failed to download {ref}: {e}", original_error=e) from e
    finally:
        if owns_client:
            await client.aclose()


def public_url(path: str) -> str:
    """Public URL for a bucket path, or the path itself when no base URL is configured."""
    base = _settings.storage.public_base_url.rstrip("/")
    if not base or is_remote(path):
        return path
    return f"{base}/{_settings.storage.bucket}/{path.lstrip('/')}"


def guess_media_type(name: str, default: str = "application/octet-stream") -> str:
    mt, _ = mimetypes.guess_type(name.split("?", 1)[0])
    return mt or default


def normalize_image(data: bytes, max_side: int | None = None) -> tuple[bytes, str]:
    """Apply EXIF orientation and downscale oversize images for vision calls.

    Returns (jpeg_or_png_bytes, media_type).
    """
    max_side = max_side or _settings.storage.max_image_side
    img = Image.open(io.BytesIO(data))
    img = ImageOps.exif_transpose(img)
    if max(img.size) > max_side:
        img.thumbnail((max_side, max_side))
    buf = io.BytesIO()
    if img.mode in ("RGBA", "LA", "P"):
        img.save(buf, "PNG")
        return buf.getvalue(), "image/png"
    img.convert("RGB").save(buf, "JPEG", quality=90)
    return buf.getvalue(), "image/jpeg"
