"""
Structure Document

The logical content of a .mcstructure file before NBT encoding. Layers are
kept dense (width * height * depth cells, unset cells included); the unset
cells of the primary layer are only dropped when block indices are emitted.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import numpy as np

from .blocks import PaletteEntry
from .constants import EMPTY_CELL, FORMAT_VERSION
from .grid import VoxelGrid


@dataclass
class StructureDocument:
    """
    Size, origin, index layers and block palette of a structure.

    Attributes:
        size: (width, height, depth)
        primary_layer: Dense int32 block indices
        water_layer: Dense int32 water indices (all unset)
        block_palette: Structure palette entries
        origin: World origin, always (0, 0, 0)
        format_version: .mcstructure format version
    """

    size: Tuple[int, int, int]
    primary_layer: np.ndarray = field(repr=False)
    water_layer: np.ndarray = field(repr=False)
    block_palette: List[PaletteEntry] = field(default_factory=list)
    origin: Tuple[int, int, int] = (0, 0, 0)
    format_version: int = FORMAT_VERSION
    entities: List[Dict[str, Any]] = field(default_factory=list)
    block_position_data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_grid(cls, grid: VoxelGrid, block_palette: List[PaletteEntry]) -> "StructureDocument":
        """Wrap a freshly built grid and its palette."""
        return cls(
            size=grid.shape,
            primary_layer=grid.primary_layer.copy(),
            water_layer=grid.water_layer.copy(),
            block_palette=list(block_palette),
        )

    def block_indices(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Index layers as written to the file.

        The primary layer has its unset cells removed, the water layer is
        emitted at full length.
        """
        primary = self.primary_layer[self.primary_layer != EMPTY_CELL]
        return primary, self.water_layer
