"""
Voxel Grid Construction

This module provides:
- VoxelGrid: flat int32 index layers for a width x height x depth volume
- VoxelGridBuilder: converts decoded frames into a VoxelGrid and its
  structure palette

Layout: frame z becomes depth slice z, pixel rows are stored top-down and
columns mirrored (width - x - 1), so the offset of cell (x, y, z) is
z * width * height + y * width + (width - x - 1).
"""

from dataclasses import dataclass, field
import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .blocks import PaletteEntry, SourceBlock
from .constants import EMPTY_CELL, MASK_ALPHA, MAX_DEPTH
from .errors import DimensionMismatchError
from .ingestion import Frame
from .palette import PaletteBuilder

logger = logging.getLogger(__name__)


def cell_index(x: int, y: int, z: int, width: int, height: int) -> int:
    """Flat offset of pixel (x, y) of frame z."""
    return z * width * height + y * width + (width - x - 1)


def empty_layer(width: int, height: int, depth: int) -> np.ndarray:
    """A layer of width * height * depth unset cells."""
    return np.full(width * height * depth, EMPTY_CELL, dtype=np.int32)


@dataclass
class VoxelGrid:
    """
    Primary and water index layers of a structure.

    Each cell is EMPTY_CELL or an index into the structure palette. The water
    layer is required by the .mcstructure format and is left unset.
    """

    width: int
    height: int
    depth: int
    primary_layer: np.ndarray = field(default=None, repr=False)
    water_layer: np.ndarray = field(default=None, repr=False)

    def __post_init__(self):
        """Allocate missing layers."""
        if self.primary_layer is None:
            self.primary_layer = empty_layer(self.width, self.height, self.depth)
        if self.water_layer is None:
            self.water_layer = empty_layer(self.width, self.height, self.depth)

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Grid dimensions (width, height, depth)."""
        return (self.width, self.height, self.depth)

    @property
    def volume(self) -> int:
        return self.width * self.height * self.depth

    def get(self, x: int, y: int, z: int) -> int:
        """Primary layer value for pixel (x, y) of frame z."""
        return int(self.primary_layer[cell_index(x, y, z, self.width, self.height)])

    def count_blocks(self) -> int:
        """Number of primary cells holding a block."""
        return int(np.count_nonzero(self.primary_layer != EMPTY_CELL))

    def filled_primary(self) -> np.ndarray:
        """Primary layer with unset cells dropped."""
        return self.primary_layer[self.primary_layer != EMPTY_CELL]


class VoxelGridBuilder:
    """
    Builds a VoxelGrid from decoded frames.

    Frames are visited in order, then rows, then columns; the palette order
    and therefore every index in the grid depends only on the input.
    """

    def __init__(
        self,
        source_palette: Optional[Sequence[SourceBlock]],
        max_depth: int = MAX_DEPTH,
        mask_alpha: int = MASK_ALPHA
    ):
        """
        Initialize the builder.

        Args:
            source_palette: Blocks pixels are matched against
            max_depth: Frames beyond this count are ignored
            mask_alpha: Pixels with alpha below this value are left unset
        """
        self.max_depth = max_depth
        self.palette = PaletteBuilder(source_palette, mask_alpha)

    def build(self, frames: Sequence[Frame]) -> VoxelGrid:
        """
        Convert frames into a voxel grid.

        Args:
            frames: Decoded frames, all the size of the first one

        Returns:
            VoxelGrid; the structure palette is available as self.palette

        Raises:
            DimensionMismatchError: If a frame differs in size from frame 0
        """
        if not frames:
            raise ValueError("At least one frame required")

        width, height = frames[0].width, frames[0].height
        depth = min(self.max_depth, len(frames))

        if depth < len(frames):
            logger.debug("Ignoring %d frame(s) beyond depth %d", len(frames) - depth, depth)

        for z in range(depth):
            if frames[z].size != (width, height):
                raise DimensionMismatchError(z, (width, height), frames[z].size)

        grid = VoxelGrid(width, height, depth)
        layer = grid.primary_layer

        for z in range(depth):
            for x, y, c in frames[z].iterate_with_colors():
                layer[cell_index(x, y, z, width, height)] = self.palette.resolve(c)

        logger.debug(
            "Built %dx%dx%d grid: %d blocks, %d palette entries, %d distinct pixels",
            width, height, depth, grid.count_blocks(), len(self.palette),
            self.palette.memo_size
        )
        return grid


def build_grid(
    frames: Sequence[Frame],
    source_palette: Optional[Sequence[SourceBlock]],
    max_depth: int = MAX_DEPTH,
    mask_alpha: int = MASK_ALPHA
) -> Tuple[VoxelGrid, List[PaletteEntry]]:
    """
    Build a grid and its structure palette in one call.

    Returns:
        Tuple of (grid, palette_entries)
    """
    builder = VoxelGridBuilder(source_palette, max_depth, mask_alpha)
    grid = builder.build(frames)
    return grid, builder.palette.entries
