"""
Normalizes uploaded product photos before they reach the asset store.
"""
import io
from dataclasses import dataclass

from PIL import Image, ImageOps

from .exceptions import DecodeError, UnsupportedMediaError

MAX_EDGE = 1920

JPEG_QUALITY = 85

ALPHA_MODES = ("RGBA", "LA", "PA", "RGBa", "La")


@dataclass(frozen=True)
class TranscodedImage:
    data: bytes
    mime_type: str
    extension: str
    width: int
    height: int


def target_size(width, height, max_edge=MAX_EDGE):
    longest = max(width, height)
    if longest <= max_edge:
        return width, height

    scale = max_edge / longest
    if width >= height:
        return max_edge, max(1, round(height * scale))
    return max(1, round(width * scale)), max_edge


def has_transparency(img):
    return img.mode in ALPHA_MODES or "transparency" in img.info


def _decode(raw):
    try:
        with Image.open(io.BytesIO(raw)) as source:
            source.load()
            return ImageOps.exif_transpose(source)
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Could not decode image: {exc}") from exc


def transcode(raw, declared_mime_type, max_edge=MAX_EDGE, jpeg_quality=None):
    """
    Decode, downscale and re-encode an image.

    Images that can carry transparency come out as PNG, everything else is
    flattened and written as JPEG. The choice depends on the decoded
    pixels, never on the declared type or a file extension.

    Raises:
        UnsupportedMediaError: ``declared_mime_type`` is not an image type.
        DecodeError: the bytes are not a readable image.
    """
    if not declared_mime_type or not declared_mime_type.lower().startswith("image/"):
        raise UnsupportedMediaError(f"Not an image: {declared_mime_type or 'unknown type'}")
    if not raw:
        raise DecodeError("Could not decode image: empty file")

    img = _decode(raw)
    transparent = has_transparency(img)

    if transparent:
        img = img.convert("RGBA")
    elif img.mode != "RGB":
        img = img.convert("RGB")

    size = target_size(img.width, img.height, max_edge)
    if size != img.size:
        img = img.resize(size, Image.Resampling.LANCZOS)

    output_buffer = io.BytesIO()
    if transparent:
        img.save(output_buffer, format="PNG", optimize=True)
        mime_type, extension = "image/png", "png"
    else:
        quality = jpeg_quality or JPEG_QUALITY
        img.save(output_buffer, format="JPEG", quality=quality, optimize=True)
        mime_type, extension = "image/jpeg", "jpg"

    return TranscodedImage(
        data=output_buffer.getvalue(),
        mime_type=mime_type,
        extension=extension,
        width=img.width,
        height=img.height,
    )
