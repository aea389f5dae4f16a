"""Resolution of the opaque photograph/signature references into images."""

import base64
import binascii
import io

from PIL import Image, UnidentifiedImageError

DATA_URL_PREFIX = "data:image/"


class ImageResolutionError(Exception):
    pass


def is_data_url(ref: str) -> bool:
    header, sep, _ = ref.partition(",")
    return bool(sep) and header.startswith(DATA_URL_PREFIX) and header.endswith(";base64")


def decode_image_ref(ref: str) -> bytes:
    """
    Raw bytes behind an image reference.

    Only base64 ``data:image/...`` URLs are accepted; nothing is read from disk.
    """
    if not ref:
        raise ImageResolutionError("empty image reference")
    if not is_data_url(ref):
        raise ImageResolutionError("image reference is not a base64 data:image URL")

    payload = ref.partition(",")[2]
    try:
        return base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageResolutionError(f"invalid base64 image payload: {e}") from e


def load_image(ref: str) -> Image.Image:
    """Decode and verify the reference; the returned image is fully loaded."""
    data = decode_image_ref(ref)
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (Image.DecompressionBombError, Image.DecompressionBombWarning) as e:
        raise ImageResolutionError(f"image too large: {e}") from e
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageResolutionError(f"not a readable image: {e}") from e
    if img.mode not in ("RGB", "RGBA", "L"):
        img = img.convert("RGBA")
    return img


def to_data_url(data: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
