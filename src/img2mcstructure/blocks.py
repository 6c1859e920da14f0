"""
Block Records

- SourceBlock: a candidate block with its reference color (block database)
- BlockRef: the identity resolved for a single pixel
- PaletteEntry: a block as written into a structure's block palette
"""

from dataclasses import dataclass, field
from typing import Any, Dict, NamedTuple, Tuple

from .constants import BLOCK_VERSION

RGB = Tuple[int, int, int]


@dataclass(frozen=True)
class SourceBlock:
    """
    A block that pixels may be matched against.

    Attributes:
        id: Namespaced block identifier (e.g. "minecraft:stone")
        hex_color: Reference color as given in the database ("#RRGGBB")
        color: RGB decoding of hex_color
        states: Block states written into the structure palette
        version: Block state version
    """

    id: str
    hex_color: str
    color: RGB
    states: Dict[str, Any] = field(default_factory=dict, compare=False)
    version: int = BLOCK_VERSION


class BlockRef(NamedTuple):
    """Block identity chosen for one pixel."""

    id: str
    states: Dict[str, Any]
    version: int = BLOCK_VERSION


@dataclass
class PaletteEntry:
    """Entry of a structure block palette."""

    version: int
    name: str
    states: Dict[str, Any] = field(default_factory=dict)

    def matches(self, name: str, states: Dict[str, Any]) -> bool:
        """Deep equality on (name, states); version is not part of identity."""
        return self.name == name and self.states == states
