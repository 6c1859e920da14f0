"""
Exception hierarchy for the conversion engine.
"""


class Img2McStructureError(Exception):
    """Base class for all conversion errors."""


class PaletteDecodeError(Img2McStructureError, ValueError):
    """A block database entry has a malformed hex color."""

    def __init__(self, block_id: str, hex_color: str):
        super().__init__(f"Invalid hex color {hex_color!r} for block {block_id!r}")
        self.block_id = block_id
        self.hex_color = hex_color


class EmptyPaletteError(Img2McStructureError, ValueError):
    """Nearest-color search was given no candidates."""

    def __init__(self):
        super().__init__("Cannot find nearest color in an empty palette")


class DimensionMismatchError(Img2McStructureError, ValueError):
    """A frame does not have the same size as the first frame."""

    def __init__(self, index: int, expected: tuple, actual: tuple):
        super().__init__(
            f"Frame {index} has size {actual[0]}x{actual[1]}, "
            f"expected {expected[0]}x{expected[1]}"
        )
        self.index = index
        self.expected = expected
        self.actual = actual


class InvalidAxisError(Img2McStructureError, ValueError):
    """Axis value is not one of x, y or z."""

    def __init__(self, value):
        super().__init__(f"Invalid axis {value!r}, expected one of 'x', 'y', 'z'")
        self.value = value


class FrameDecodeError(Img2McStructureError):
    """An image source could not be read or decoded."""
