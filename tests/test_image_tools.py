from io import BytesIO

import pytest
from PIL import Image

from core.config import settings
from services.uploads import IncomingFile, prepare_image
from utils.image_tools import compress_image_bytes, inspect_image


def _image(fmt, mode="RGB"):
    buf = BytesIO()
    Image.new(mode, (8, 8)).save(buf, fmt)
    return buf.getvalue()


def test_inspect_known_formats():
    assert inspect_image(_image("PNG")) == ("png", "image/png")
    assert inspect_image(_image("JPEG")) == ("jpg", "image/jpeg")
    assert inspect_image(_image("GIF", mode="P")) == ("gif", "image/gif")


def test_inspect_rejects_garbage():
    with pytest.raises(ValueError):
        inspect_image(b"definitely not an image")


def test_compress_turns_png_with_alpha_into_jpeg():
    data, ext, content_type = compress_image_bytes(_image("PNG", mode="RGBA"), quality=60)
    assert (ext, content_type) == ("jpg", "image/jpeg")
    assert Image.open(BytesIO(data)).format == "JPEG"


def test_prepare_image_keeps_bytes_without_compression(monkeypatch):
    monkeypatch.setattr(settings, "PHOTO_COMPRESS_QUALITY", None)
    original = _image("PNG")
    data, ext, _ = prepare_image(IncomingFile("a.png", original, "image/png"))
    assert data == original
    assert ext == "png"


def test_prepare_image_compresses_when_configured(monkeypatch):
    monkeypatch.setattr(settings, "PHOTO_COMPRESS_QUALITY", 70)
    _, ext, content_type = prepare_image(IncomingFile("a.png", _image("PNG"), "image/png"))
    assert (ext, content_type) == ("jpg", "image/jpeg")


def _mpo():
    buf = BytesIO()
    Image.new("RGB", (8, 8)).save(buf, "MPO", save_all=True, append_images=[Image.new("RGB", (8, 8))])
    return buf.getvalue()


def test_camera_mpo_is_stored_as_jpeg():
    assert inspect_image(_mpo()) == ("jpg", "image/jpeg")


def test_other_pillow_formats_use_pillow_mime():
    assert inspect_image(_image("BMP")) == ("bmp", "image/bmp")


def test_huge_dimensions_are_refused(oversized_png):
    with pytest.raises(ValueError, match="Image dimensions are too large"):
        inspect_image(oversized_png)
    with pytest.raises(ValueError, match="Image dimensions are too large"):
        compress_image_bytes(oversized_png)
