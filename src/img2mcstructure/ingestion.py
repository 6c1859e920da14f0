"""
Frame Ingestion Module

This module handles:
- Decoding a still image or every frame of an animated GIF
- Image sources given as a file path, an http(s) URL or a base64 data URI
- Optional clamping of oversized frames with nearest-neighbor resizing
- Exposing frames as RGBA arrays with a packed-color pixel iterator

Frames are fully materialized before conversion starts; the engine never
sees partial input.
"""

import base64
import binascii
import io
import logging
import re
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple, Union

import numpy as np
import requests
from PIL import Image, ImageSequence, UnidentifiedImageError

from .constants import MAX_HEIGHT, MAX_WIDTH
from .errors import FrameDecodeError

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")

REQUEST_TIMEOUT = 30


class Frame:
    """
    A single decoded RGBA frame.

    Pixel values are exposed packed as 0xRRGGBBAA integers so that identical
    colors compare equal as a single int.
    """

    def __init__(self, rgba: np.ndarray):
        """
        Initialize the frame.

        Args:
            rgba: Array of shape (H, W, 4)
        """
        if rgba.ndim != 3 or rgba.shape[2] != 4:
            raise ValueError("Frame array must have shape (H, W, 4)")
        self._rgba = rgba.astype(np.uint8)

    @classmethod
    def from_image(cls, image: Image.Image) -> "Frame":
        """Create a frame from a PIL image (converted to RGBA)."""
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(np.array(image, dtype=np.uint8))

    @property
    def rgba(self) -> np.ndarray:
        """The RGBA pixel array."""
        return self._rgba

    @property
    def width(self) -> int:
        return self._rgba.shape[1]

    @property
    def height(self) -> int:
        return self._rgba.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        """Frame size as (width, height)."""
        return (self.width, self.height)

    def packed(self) -> np.ndarray:
        """Array of shape (H, W) with packed 0xRRGGBBAA values."""
        channels = self._rgba.astype(np.uint32)
        return (
            (channels[:, :, 0] << 24)
            | (channels[:, :, 1] << 16)
            | (channels[:, :, 2] << 8)
            | channels[:, :, 3]
        )

    def iterate_with_colors(self) -> Iterator[Tuple[int, int, int]]:
        """
        Iterate over every pixel, row by row.

        Yields:
            Tuples of (x, y, packed_color)
        """
        packed = self.packed()
        for y in range(self.height):
            row = packed[y]
            for x in range(self.width):
                yield (x, y, int(row[x]))

    def resize(self, width: int, height: int) -> "Frame":
        """Nearest-neighbor resize, returning a new frame."""
        image = Image.fromarray(self._rgba)
        image = image.resize((width, height), Image.Resampling.NEAREST)
        return Frame.from_image(image)


def frames_from_image(image: Image.Image) -> List[Frame]:
    """
    Split a PIL image into frames.

    Animated images (GIF) yield one frame per animation frame, still images
    a single frame.
    """
    return [Frame.from_image(page.copy()) for page in ImageSequence.Iterator(image)]


def decode_bytes(data: bytes) -> List[Frame]:
    """Decode raw encoded image bytes."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            return frames_from_image(image)
    except UnidentifiedImageError as e:
        raise FrameDecodeError(f"Unsupported image data: {e}") from e


def decode_file(path: Union[str, Path]) -> List[Frame]:
    """Decode an image file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    return decode_bytes(path.read_bytes())


def decode_url(url: str) -> List[Frame]:
    """Fetch and decode an image over http(s)."""
    try:
        response = requests.get(url, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        raise FrameDecodeError(f"Failed to fetch {url}: {e}") from e

    return decode_bytes(response.content)


def decode_base64(uri: str) -> List[Frame]:
    """Decode a base64 string, with or without a data:image/... prefix."""
    payload = _DATA_URI.sub("", uri, count=1)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise FrameDecodeError(f"Invalid base64 image data: {e}") from e

    return decode_bytes(data)


def decode(source: Union[str, Path], clamp: bool = False) -> List[Frame]:
    """
    Decode an image from a URL, a data URI or a file path.

    Args:
        source: Image URL, base64 data URI, or file path
        clamp: Resize frames larger than MAX_WIDTH x MAX_HEIGHT

    Returns:
        List of frames (one for still images)
    """
    if isinstance(source, str) and source.startswith(("http://", "https://")):
        frames = decode_url(source)
    elif isinstance(source, str) and source.startswith("data:image"):
        frames = decode_base64(source)
    else:
        frames = decode_file(source)

    logger.debug("Decoded %d frame(s)", len(frames))

    if clamp:
        frames = clamp_frames(frames)

    return frames


def clamp_size(
    width: int,
    height: int,
    max_width: int = MAX_WIDTH,
    max_height: int = MAX_HEIGHT
) -> Tuple[int, int]:
    """
    Fit (width, height) inside the bounds, keeping the aspect ratio.

    Height is bounded first, then width.
    """
    if height > max_height:
        width = max(1, round(width * max_height / height))
        height = max_height
    if width > max_width:
        height = max(1, round(height * max_width / width))
        width = max_width
    return (width, height)


def clamp_frames(
    frames: Sequence[Frame],
    max_width: int = MAX_WIDTH,
    max_height: int = MAX_HEIGHT
) -> List[Frame]:
    """
    Resize every frame above the maximum width/height.

    Args:
        frames: Decoded frames
        max_width: Maximum frame width
        max_height: Maximum frame height

    Returns:
        New list of frames; frames within bounds are passed through
    """
    clamped = []
    for frame in frames:
        size = clamp_size(frame.width, frame.height, max_width, max_height)
        if size != frame.size:
            logger.debug("Clamping frame %dx%d to %dx%d", *frame.size, *size)
            frame = frame.resize(*size)
        clamped.append(frame)
    return clamped


def frames_from_arrays(arrays: Sequence[np.ndarray]) -> List[Frame]:
    """Wrap (H, W, 4) RGBA arrays as frames."""
    return [Frame(array) for array in arrays]
