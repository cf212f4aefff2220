# utils/image_tools.py

from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

# Pillow format name -> (extension, content type) where Image.MIME is not what browsers expect
FORMATS = {
    "JPEG": ("jpg", "image/jpeg"),
    # Multi-picture JPEG written by most phone cameras
    "MPO": ("jpg", "image/jpeg"),
    "PNG": ("png", "image/png"),
    "GIF": ("gif", "image/gif"),
    "WEBP": ("webp", "image/webp"),
}

_UNREADABLE = (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError)


def _open_error(exc: Exception) -> ValueError:
    if isinstance(exc, Image.DecompressionBombError):
        return ValueError("Image dimensions are too large")
    return ValueError("Only image files are allowed")


def describe_format(fmt: str) -> tuple[str, str]:
    fmt = (fmt or "").upper()
    if fmt in FORMATS:
        return FORMATS[fmt]
    mime = Image.MIME.get(fmt)
    if not mime:
        raise ValueError(f"Unsupported image format: {fmt or 'unknown'}")
    return fmt.lower(), mime


def inspect_image(data: bytes) -> tuple[str, str]:
    """
    Checks that the bytes decode as an image Pillow understands.

    Returns (ext, content_type).
    Raises ValueError if the file is not an image or is too large to decode.
    """
    try:
        with Image.open(BytesIO(data)) as img:
            img.verify()
            fmt = img.format
    except _UNREADABLE as exc:
        raise _open_error(exc)

    return describe_format(fmt)


def compress_image_bytes(
    data: bytes,
    quality: int = 85
) -> tuple[bytes, str, str]:
    """
    Recompresses an image in memory:
    - Applies the EXIF orientation and drops EXIF afterwards.
    - Converts to RGB to strip the alpha channel.
    - Keeps WebP as WebP, everything else becomes progressive JPEG.

    Returns (compressed_bytes, ext, content_type).
    Raises ValueError if the file is not recognised as an image.
    """
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except _UNREADABLE as exc:
        raise _open_error(exc)

    orig_fmt = (img.format or "JPEG").upper()
    img = ImageOps.exif_transpose(img)

    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    buf = BytesIO()

    if orig_fmt == "WEBP":
        img.save(buf, "WEBP", quality=quality)
        return buf.getvalue(), "webp", "image/webp"

    img.save(
        buf,
        "JPEG",
        quality=quality,
        optimize=True,
        progressive=True
    )
    return buf.getvalue(), "jpg", "image/jpeg"
