import io

import httpx
import pytest
from PIL import Image

from artspark.core.errors import PermanentIOError, TransientIOError
from artspark.features.submissions.transfer import (
    HttpImageTransfer,
    SimulatedImageTransfer,
    compress_image,
    object_path,
)


def _png_bytes(width=3000, height=1500, mode="RGBA"):
    buf = io.BytesIO()
    Image.new(mode, (width, height), color=(200, 80, 40, 255) if mode == "RGBA" else 128).save(buf, format="PNG")
    return buf.getvalue()


def test_compress_downscales_and_reencodes():
    out = compress_image(_png_bytes())
    with Image.open(io.BytesIO(out)) as img:
        assert img.format == "JPEG"
        assert max(img.size) == 2048
        assert img.size == (2048, 1024)


def test_compress_keeps_small_images():
    out = compress_image(_png_bytes(400, 300))
    with Image.open(io.BytesIO(out)) as img:
        assert img.size == (400, 300)


def test_compress_rejects_garbage():
    with pytest.raises(PermanentIOError):
        compress_image(b"definitely not an image")


def test_object_path_layout():
    assert object_path("u1", "sub-9", 2) == "u1/sub-9_2.jpg"


def _transfer(handler):
    return HttpImageTransfer(
        "https://storage.example.com/object",
        bucket="responses",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_http_upload_puts_compressed_jpeg(tmp_path):
    image_path = tmp_path / "photo.png"
    image_path.write_bytes(_png_bytes(800, 600))
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["type"] = request.headers.get("content-type")
        return httpx.Response(200, json={"Key": "ok"})

    url = await _transfer(handler).compress_and_upload(str(image_path), "u1", "sub-1", 0)

    assert url == "https://storage.example.com/object/responses/u1/sub-1_0.jpg"
    assert seen == {
        "method": "PUT",
        "url": url,
        "auth": "Bearer secret",
        "type": "image/jpeg",
    }


@pytest.mark.asyncio
async def test_http_upload_accepts_file_uri(tmp_path):
    image_path = tmp_path / "photo.png"
    image_path.write_bytes(_png_bytes(100, 100))

    url = await _transfer(lambda request: httpx.Response(201)).compress_and_upload(image_path.as_uri(), "u1", "s", 1)
    assert url.endswith("/u1/s_1.jpg")


@pytest.mark.asyncio
async def test_server_errors_are_transient(tmp_path):
    image_path = tmp_path / "photo.png"
    image_path.write_bytes(_png_bytes(100, 100))

    with pytest.raises(TransientIOError):
        await _transfer(lambda request: httpx.Response(503)).compress_and_upload(str(image_path), "u1", "s", 0)


@pytest.mark.asyncio
async def test_client_errors_are_permanent(tmp_path):
    image_path = tmp_path / "photo.png"
    image_path.write_bytes(_png_bytes(100, 100))

    with pytest.raises(PermanentIOError):
        await _transfer(lambda request: httpx.Response(403)).compress_and_upload(str(image_path), "u1", "s", 0)


@pytest.mark.asyncio
async def test_network_errors_are_transient(tmp_path):
    image_path = tmp_path / "photo.png"
    image_path.write_bytes(_png_bytes(100, 100))

    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(TransientIOError):
        await _transfer(handler).compress_and_upload(str(image_path), "u1", "s", 0)


@pytest.mark.asyncio
async def test_missing_local_file_is_permanent(tmp_path):
    with pytest.raises(PermanentIOError):
        await _transfer(lambda request: httpx.Response(200)).compress_and_upload(
            str(tmp_path / "gone.jpg"), "u1", "s", 0
        )


@pytest.mark.asyncio
async def test_simulated_transfer_records_uploads():
    transfer = SimulatedImageTransfer()
    url = await transfer.compress_and_upload("/local/a.jpg", "u1", "sub", 0)
    assert transfer.uploads[url] == "/local/a.jpg"

    transfer.fail_with = TransientIOError("down")
    with pytest.raises(TransientIOError):
        await transfer.compress_and_upload("/local/a.jpg", "u1", "sub", 1)
