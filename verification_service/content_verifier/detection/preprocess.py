"""
Image decoding and tensor preparation.

Uploaded images are kept in the session as `data:` URLs, the same form a
browser preview uses. Before inference they are decoded, resized with
nearest-neighbour sampling, scaled to [0, 1] and given a batch dimension,
producing a `[1, size, size, 3]` float32 tensor.
"""

from __future__ import annotations

import base64
import binascii
import io
from typing import Optional, Tuple

import numpy as np
import torch
from PIL import Image, UnidentifiedImageError

from ..config import INPUT_SIZE
from ..errors import ImageDecodeError

_DATA_URL_PREFIX = "data:"
_BASE64_MARKER = ";base64,"


def is_image_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.lower().startswith("image/")


def encode_data_url(data: bytes, content_type: str) -> str:
    payload = base64.b64encode(data).decode("ascii")
    return f"{_DATA_URL_PREFIX}{content_type}{_BASE64_MARKER}{payload}"


def decode_data_url(url: str) -> Tuple[bytes, str]:
    """Split a base64 `data:` URL into (raw bytes, content type)."""
    if not url.startswith(_DATA_URL_PREFIX) or _BASE64_MARKER not in url:
        raise ImageDecodeError("Failed to load image: not a base64 data URL")

    header, _, payload = url[len(_DATA_URL_PREFIX):].partition(_BASE64_MARKER)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError(f"Failed to load image: {exc}") from exc
    return data, header


def preprocess_image(data: bytes, size: int = INPUT_SIZE) -> torch.Tensor:
    """Decode `data` and return a normalised NHWC batch of one image."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            rgb = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageDecodeError(f"Failed to load image: {exc}") from exc

    resized = rgb.resize((size, size), resample=Image.Resampling.NEAREST)
    pixels = np.array(resized, dtype=np.float32)

    with torch.inference_mode():
        return torch.from_numpy(pixels).div(255.0).unsqueeze(0)
