"""
Block Palette Module

Two palettes take part in a conversion:

- The source palette: every block a pixel may become, with its reference
  color. Built once from a block database ({"minecraft:stone": "#808080"}).
- The structure palette: the deduplicated blocks a structure actually uses,
  in first-use order. Grid cells store indices into it.

PaletteBuilder owns the structure palette for a single conversion and a memo
keyed by raw pixel value, so repeated pixel colors skip both the
nearest-color search and the palette lookup.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from .blocks import RGB, BlockRef, PaletteEntry, SourceBlock
from .color import MASK_REF, ColorMatcher
from .constants import BLOCK_VERSION, EMPTY_CELL, MASK_ALPHA
from .errors import PaletteDecodeError

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


def parse_hex_color(hex_color: str, block_id: str = "") -> RGB:
    """
    Decode a "#RRGGBB" string.

    Args:
        hex_color: Color string, leading '#' optional
        block_id: Block the color belongs to (for error messages)

    Returns:
        (r, g, b) tuple

    Raises:
        PaletteDecodeError: If the string is not a 6-digit hex color
    """
    match = _HEX_COLOR.match(str(hex_color).strip())
    if match is None:
        raise PaletteDecodeError(block_id, hex_color)

    digits = match.group(1)
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def create_palette(
    db: Mapping[str, str],
    block_filter: Optional[Callable[[str], bool]] = None
) -> List[SourceBlock]:
    """
    Convert a block database into source palette entries.

    Args:
        db: Mapping of block id to "#RRGGBB" color, in priority order
        block_filter: Optional predicate on block ids; rejected ids are skipped

    Returns:
        List of SourceBlock, in database order

    Raises:
        PaletteDecodeError: On the first malformed color
    """
    palette = []

    for block_id, hex_color in db.items():
        if block_filter is not None and not block_filter(block_id):
            continue

        hex_color = str(hex_color)
        palette.append(SourceBlock(
            id=block_id,
            hex_color=hex_color,
            color=parse_hex_color(hex_color, block_id),
            states={},
            version=BLOCK_VERSION,
        ))

    logger.debug("Created source palette with %d of %d blocks", len(palette), len(db))
    return palette


def load_palette_file(
    path: Union[str, Path],
    block_filter: Optional[Callable[[str], bool]] = None
) -> List[SourceBlock]:
    """
    Load a JSON block database from disk.

    Args:
        path: Path to a JSON object mapping block ids to hex colors
        block_filter: Optional predicate on block ids

    Returns:
        List of SourceBlock
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Block database not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        db = json.load(f)

    if not isinstance(db, dict):
        raise ValueError(f"Block database must be a JSON object: {path}")

    return create_palette(db, block_filter)


class PaletteBuilder:
    """
    Deduplicated, order-stable structure palette for one conversion.

    Palette order is the order in which distinct (name, states) pairs are
    first registered. The pixel memo is never invalidated; create a new
    builder for every conversion.
    """

    def __init__(
        self,
        source_palette: Optional[Sequence[SourceBlock]] = None,
        mask_alpha: int = MASK_ALPHA
    ):
        """
        Initialize the builder.

        Args:
            source_palette: Blocks pixels are matched against
            mask_alpha: Pixels with alpha below this value are masked
        """
        self.matcher = ColorMatcher(source_palette, mask_alpha)
        self._entries: List[PaletteEntry] = []
        self._memo: Dict[int, Tuple[BlockRef, int]] = {}

    def register_or_get(
        self,
        name: str,
        states: Optional[Dict[str, Any]] = None,
        version: Optional[int] = None
    ) -> int:
        """
        Get the palette index of a block, adding it if missing.

        Args:
            name: Block id
            states: Block states (compared by deep equality)
            version: Block state version, BLOCK_VERSION when omitted

        Returns:
            Index of the block in the structure palette
        """
        states = states or {}

        for index, entry in enumerate(self._entries):
            if entry.matches(name, states):
                return index

        self._entries.append(PaletteEntry(
            version=version if version is not None else BLOCK_VERSION,
            name=name,
            states=dict(states),
        ))
        logger.debug("Palette entry %d: %s", len(self._entries) - 1, name)
        return len(self._entries) - 1

    def resolve(self, packed: int) -> int:
        """
        Palette index for a raw pixel value.

        Masked pixels return EMPTY_CELL and never enter the palette.

        Args:
            packed: Pixel color as 0xRRGGBBAA

        Returns:
            Structure palette index, or EMPTY_CELL
        """
        cached = self._memo.get(packed)
        if cached is not None:
            return cached[1]

        block = self.matcher.classify(packed)
        if block is MASK_REF:
            index = EMPTY_CELL
        else:
            index = self.register_or_get(block.id, block.states, block.version)

        self._memo[packed] = (block, index)
        return index

    def lookup(self, packed: int) -> Optional[BlockRef]:
        """Block a pixel value resolved to, if it has been seen."""
        cached = self._memo.get(packed)
        return cached[0] if cached is not None else None

    @property
    def entries(self) -> List[PaletteEntry]:
        """The structure palette (a copy)."""
        return list(self._entries)

    @property
    def memo_size(self) -> int:
        """Number of distinct pixel values seen."""
        return len(self._memo)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[PaletteEntry]:
        return iter(self._entries)
