"""
Structure Rotation

Re-orients the primary layer of a StructureDocument across an axis. Each
transform reads the dense layer as a (depth, height, width) volume, writes a
new dense layer with the column order mirrored, and returns a new document
with the permuted size. The input document is never modified.

- X: size (d, h, w); dst[z, y, w-x-1] = src[z, y, x]
- Y: size (w, d, h); dst[z, y, w-x-1] = src[z, h-y-1, x]
- Z: size (w, h, d); dst[z, y, w-x-1] = src[d-z-1, y, x]

Rotating over Z twice restores the original layer.
"""

from dataclasses import replace
from enum import Enum
import logging
from typing import Union

import numpy as np

from .document import StructureDocument
from .errors import InvalidAxisError

logger = logging.getLogger(__name__)


class Axis(Enum):
    """Axis frames are stacked along."""
    X = "x"
    Y = "y"
    Z = "z"

    @classmethod
    def parse(cls, value: Union[str, "Axis"]) -> "Axis":
        """
        Convert a string to an Axis.

        Raises:
            InvalidAxisError: For anything other than x, y or z
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidAxisError(value) from None


def _volume(document: StructureDocument) -> np.ndarray:
    width, height, depth = document.size
    return document.primary_layer.reshape(depth, height, width)


def _with_layer(document, layer, size) -> StructureDocument:
    return replace(
        document,
        size=size,
        primary_layer=np.ascontiguousarray(layer).reshape(-1).astype(np.int32),
        water_layer=document.water_layer.copy(),
        block_palette=list(document.block_palette),
    )


def rotate_over_x(document: StructureDocument) -> StructureDocument:
    """Repack the layer for X-major stacking."""
    width, height, depth = document.size
    layer = _volume(document)[:, :, ::-1]
    return _with_layer(document, layer, (depth, height, width))


def rotate_over_y(document: StructureDocument) -> StructureDocument:
    """Stack frames along Y; rows are read bottom-up."""
    width, height, depth = document.size
    layer = _volume(document)[:, ::-1, ::-1]
    return _with_layer(document, layer, (width, depth, height))


def rotate_over_z(document: StructureDocument) -> StructureDocument:
    """Stack frames along Z; frame order is reversed."""
    width, height, depth = document.size
    layer = _volume(document)[::-1, :, ::-1]
    return _with_layer(document, layer, (width, height, depth))


def rotate_structure(document: StructureDocument, axis: Union[str, Axis]) -> StructureDocument:
    """
    Rotate a structure over the given axis.

    Y and Z select their transforms; every other axis uses the X transform.
    """
    axis = Axis.parse(axis)
    logger.debug("Rotating %s structure over %s", document.size, axis.value)

    if axis is Axis.Y:
        return rotate_over_y(document)

    if axis is Axis.Z:
        return rotate_over_z(document)

    return rotate_over_x(document)
