"""Image decoding for incoming colour and depth frames."""

from __future__ import annotations

from typing import Any, Protocol

import cv2
import numpy as np

from .errors import SensorDecodeError


class ImageDecoder(Protocol):
    def decode(self, data: Any) -> np.ndarray:
        """Turn a transport payload into a 2D (or HxWxC) array.

        Raises:
            SensorDecodeError: If the payload is not a valid image
        """
        ...


class OpenCVImageDecoder:
    """Decodes encoded buffers with ``cv2.imdecode``; passes arrays through.

    Images are decoded with ``IMREAD_UNCHANGED`` so 16-bit depth maps keep
    their bit depth.
    """

    def decode(self, data: Any) -> np.ndarray:
        if isinstance(data, np.ndarray) and data.ndim in (2, 3) and data.dtype != object:
            image = data
        elif isinstance(data, (bytes, bytearray, memoryview)) or (
            isinstance(data, np.ndarray) and data.ndim == 1
        ):
            buffer = np.frombuffer(bytes(data), dtype=np.uint8)
            if buffer.size == 0:
                raise SensorDecodeError("Empty image buffer")
            try:
                image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
            except cv2.error as exc:
                raise SensorDecodeError(f"OpenCV could not decode image: {exc}") from exc
            if image is None:
                raise SensorDecodeError("OpenCV could not decode image buffer")
        else:
            raise SensorDecodeError(
                f"Unsupported image payload of type {type(data).__name__}"
            )

        if image.size == 0:
            raise SensorDecodeError(f"Image has no pixels (shape {image.shape})")
        return image
