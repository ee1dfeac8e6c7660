import io

import httpx
import pytest
from PIL import Image

from fieldscribe.errors import TransportError, StoragePathError
from fieldscribe.services import media_store


@pytest.fixture
def bucket(tmp_path, monkeypatch):
    monkeypatch.setattr(media_store._settings.storage, "base_dir", str(tmp_path))
    return tmp_path / media_store._settings.storage.bucket


def _jpeg(size=(100, 50), color="red"):
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, "JPEG")
    return buf.getvalue()


async def test_save_and_read_object(bucket):
    path = await media_store.save_object(b"hello", "templates/01A/form.jpg")
    assert path == "templates/01A/form.jpg"
    assert (bucket / "templates" / "01A" / "form.jpg").read_bytes() == b"hello"
    assert await media_store.read_object(path) == b"hello"


async def test_read_missing_object(bucket):
    with pytest.raises(FileNotFoundError):
        await media_store.read_object("nope.jpg")


async def test_read_outside_bucket_is_rejected(bucket):
    (bucket.parent / "secret.txt").write_bytes(b"TOPSECRET")
    with pytest.raises(StoragePathError):
        await media_store.read_object("../secret.txt")
    with pytest.raises(StoragePathError):
        await media_store.read_object(str(bucket.parent / "secret.txt"))


async def test_save_outside_bucket_is_rejected(bucket):
    with pytest.raises(StoragePathError):
        await media_store.save_object(b"x", "audio/../../escaped.webm")
    assert not (bucket.parent / "escaped.webm").exists()
    with pytest.raises(StoragePathError):
        await media_store.save_object(b"x", "audio/..")


async def test_dot_segments_inside_bucket_are_allowed(bucket):
    await media_store.save_object(b"ok", "audio/01A/../01B/visit.webm")
    assert (bucket / "audio" / "01B" / "visit.webm").read_bytes() == b"ok"


async def test_read_remote_object():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, content=b"img")))
    assert await media_store.read_object("https://cdn.example.com/form.jpg", client=client) == b"img"


async def test_read_remote_object_http_error():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(404)))
    with pytest.raises(TransportError) as exc_info:
        await media_store.read_object("https://cdn.example.com/missing.jpg", client=client)
    assert exc_info.value.status_code == 404


def test_public_url(monkeypatch):
    monkeypatch.setattr(media_store._settings.storage, "public_base_url", "https://cdn.example.com/storage/")
    assert media_store.public_url("audio/a.mp3") == "https://cdn.example.com/storage/findings/audio/a.mp3"
    assert media_store.public_url("https://x.example.com/a.mp3") == "https://x.example.com/a.mp3"


def test_is_remote():
    assert media_store.is_remote("https://cdn.example.com/a.mp3")
    assert not media_store.is_remote("audio/a.mp3")


def test_normalize_image_downscales_oversize():
    data, media_type = media_store.normalize_image(_jpeg((4000, 1000)), max_side=1000)
    assert media_type == "image/jpeg"
    img = Image.open(io.BytesIO(data))
    assert img.size == (1000, 250)


def test_normalize_image_keeps_small_images():
    data, _ = media_store.normalize_image(_jpeg((300, 200)), max_side=1000)
    assert Image.open(io.BytesIO(data)).size == (300, 200)


def test_normalize_image_png_with_alpha_stays_png():
    buf = io.BytesIO()
    Image.new("RGBA", (10, 10), (0, 0, 0, 0)).save(buf, "PNG")
    _, media_type = media_store.normalize_image(buf.getvalue(), max_side=100)
    assert media_type == "image/png"


def test_normalize_image_applies_exif_orientation():
    img = Image.new("RGB", (200, 100), "blue")
    exif = Image.Exif()
    exif[0x0112] = 6  # rotate 90 CW on display
    buf = io.BytesIO()
    img.save(buf, "JPEG", exif=exif.tobytes())

    data, _ = media_store.normalize_image(buf.getvalue(), max_side=1000)
    assert Image.open(io.BytesIO(data)).size == (100, 200)
