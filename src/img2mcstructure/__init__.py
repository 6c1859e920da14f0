"""
img2mcstructure
===============

Convert images and animated GIFs into Minecraft Bedrock .mcstructure files.

Every pixel is matched to the nearest block of a block database by RGB
distance; frames are stacked into a voxel volume, optionally rotated, and
written as little-endian NBT.

Key Features:
- Deterministic nearest-color block matching (first entry wins ties)
- Deduplicated, first-use ordered structure palettes
- Frame stacking along the x, y or z axis
- Decoding from files, http(s) URLs and base64 data URIs
- setblock (.mcfunction) output as an alternative to structures

Example Usage:
    from img2mcstructure import StructureGenerator

    generator = StructureGenerator()
    generator.load_image("sprite.gif")
    generator.load_palette({"minecraft:stone": "#808080"})
    generator.convert(axis="y")
    generator.export_mcstructure("sprite.mcstructure")
"""

__version__ = "1.0.0"
__author__ = "img2mcstructure Team"

from .blocks import BlockRef, PaletteEntry, SourceBlock
from .color import ColorMatcher, classify_pixel, color_distance, nearest_color
from .palette import PaletteBuilder, create_palette, load_palette_file
from .ingestion import Frame, decode
from .grid import VoxelGrid, VoxelGridBuilder
from .document import StructureDocument
from .rotate import Axis, rotate_structure
from .structure import construct_decoded, create_mcstructure, encode, img2mcstructure
from .mcfunction import construct_commands, img2mcfunction
from .generator import StructureGenerator, BatchProcessor
from .errors import (
    Img2McStructureError,
    PaletteDecodeError,
    EmptyPaletteError,
    DimensionMismatchError,
    InvalidAxisError,
    FrameDecodeError,
)

__all__ = [
    "StructureGenerator",
    "BatchProcessor",
    "SourceBlock",
    "BlockRef",
    "PaletteEntry",
    "ColorMatcher",
    "classify_pixel",
    "color_distance",
    "nearest_color",
    "PaletteBuilder",
    "create_palette",
    "load_palette_file",
    "Frame",
    "decode",
    "VoxelGrid",
    "VoxelGridBuilder",
    "StructureDocument",
    "Axis",
    "rotate_structure",
    "construct_decoded",
    "create_mcstructure",
    "encode",
    "img2mcstructure",
    "construct_commands",
    "img2mcfunction",
    "Img2McStructureError",
    "PaletteDecodeError",
    "EmptyPaletteError",
    "DimensionMismatchError",
    "InvalidAxisError",
    "FrameDecodeError",
]
