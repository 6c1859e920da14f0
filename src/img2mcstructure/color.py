"""
Color Matching Module

Handles:
- Packing/unpacking of 32-bit RGBA pixel values (0xRRGGBBAA)
- Euclidean RGB distance
- Nearest-color lookup against a block palette
- The per-pixel decision: masked, default, or nearest block

Tie-breaking: the scan only replaces the current best entry when a candidate
is strictly closer, so equidistant candidates resolve to the one listed first.
"""

import math
from typing import Optional, Sequence, Tuple

import numpy as np
from numba import njit

from .blocks import RGB, BlockRef, SourceBlock
from .constants import BLOCK_VERSION, DEFAULT_BLOCK, MASK_ALPHA, MASK_BLOCK
from .errors import EmptyPaletteError


def pack_color(r: int, g: int, b: int, a: int = 255) -> int:
    """Pack RGBA components into a single 0xRRGGBBAA integer."""
    return ((r & 0xFF) << 24) | ((g & 0xFF) << 16) | ((b & 0xFF) << 8) | (a & 0xFF)


def unpack_color(packed: int) -> Tuple[int, int, int, int]:
    """Split a packed 0xRRGGBBAA integer into (r, g, b, a)."""
    return (
        (packed >> 24) & 0xFF,
        (packed >> 16) & 0xFF,
        (packed >> 8) & 0xFF,
        packed & 0xFF,
    )


def color_distance(color1: RGB, color2: RGB) -> float:
    """
    Euclidean distance between two RGB colors.

    Args:
        color1: RGB color to compare
        color2: RGB color to compare

    Returns:
        Distance in RGB space (0 for identical colors)
    """
    return math.sqrt(
        (color1[0] - color2[0]) ** 2
        + (color1[1] - color2[1]) ** 2
        + (color1[2] - color2[2]) ** 2
    )


def nearest_color(color: RGB, palette: Sequence[SourceBlock]) -> SourceBlock:
    """
    Find the palette block closest to the given color.

    Args:
        color: RGB color to match
        palette: Candidate blocks, in priority order

    Returns:
        The closest block; the earliest one on a tie

    Raises:
        EmptyPaletteError: If the palette has no entries
    """
    if not palette:
        raise EmptyPaletteError()

    best = palette[0]
    best_distance = math.inf

    for block in palette:
        distance = color_distance(color, block.color)
        if distance < best_distance:
            best_distance = distance
            best = block

    return best


MASK_REF = BlockRef(MASK_BLOCK, {}, BLOCK_VERSION)
DEFAULT_REF = BlockRef(DEFAULT_BLOCK, {}, BLOCK_VERSION)


def _to_ref(block: SourceBlock) -> BlockRef:
    return BlockRef(block.id, dict(block.states), block.version or BLOCK_VERSION)


def classify_pixel(
    packed: int,
    palette: Optional[Sequence[SourceBlock]],
    mask_alpha: int = MASK_ALPHA
) -> BlockRef:
    """
    Decide which block a single pixel becomes.

    Args:
        packed: Pixel color as 0xRRGGBBAA
        palette: Candidate blocks (may be None or empty)
        mask_alpha: Pixels with alpha below this value are masked

    Returns:
        MASK_REF for transparent pixels, DEFAULT_REF when nothing can be
        resolved, otherwise a reference to the nearest block
    """
    r, g, b, a = unpack_color(packed)

    if a < mask_alpha:
        return MASK_REF

    if not palette:
        return DEFAULT_REF

    return _to_ref(nearest_color((r, g, b), palette))


@njit(cache=True)
def _nearest_index(r: int, g: int, b: int, colors: np.ndarray) -> int:
    """
    Index of the row of `colors` closest to (r, g, b).

    Compares squared distances, which orders candidates exactly like the
    Euclidean distance does.
    """
    best = -1
    best_distance = 0
    for i in range(colors.shape[0]):
        dr = r - colors[i, 0]
        dg = g - colors[i, 1]
        db = b - colors[i, 2]
        distance = dr * dr + dg * dg + db * db
        if best < 0 or distance < best_distance:
            best = i
            best_distance = distance
    return best


class ColorMatcher:
    """
    Nearest-color search bound to one block palette.

    The palette colors are stored as an (N, 3) int64 matrix so lookups run
    through a compiled linear scan instead of Python-level iteration.
    """

    def __init__(
        self,
        palette: Optional[Sequence[SourceBlock]],
        mask_alpha: int = MASK_ALPHA
    ):
        """
        Initialize the matcher.

        Args:
            palette: Candidate blocks (None or empty resolves everything to
                the default block)
            mask_alpha: Pixels with alpha below this value are masked
        """
        self.palette = list(palette or [])
        self.mask_alpha = mask_alpha
        self._colors = np.array(
            [block.color for block in self.palette], dtype=np.int64
        ).reshape(-1, 3)

    def __len__(self) -> int:
        return len(self.palette)

    def nearest(self, color: RGB) -> SourceBlock:
        """
        Closest palette block to an RGB color.

        Raises:
            EmptyPaletteError: If the palette has no entries
        """
        if not self.palette:
            raise EmptyPaletteError()
        r, g, b = color
        return self.palette[_nearest_index(int(r), int(g), int(b), self._colors)]

    def classify(self, packed: int) -> BlockRef:
        """Same decision as classify_pixel, using the compiled scan."""
        r, g, b, a = unpack_color(packed)

        if a < self.mask_alpha:
            return MASK_REF

        if not self.palette:
            return DEFAULT_REF

        return _to_ref(self.nearest((r, g, b)))
