"""
.mcstructure Encoder

Builds a StructureDocument from decoded frames and serializes it as a Bedrock
structure file: uncompressed NBT, little-endian, with a named root compound.

Document tree:
- format_version: Int
- size: List[Int] (x, y, z)
- structure:
    - block_indices: List[List[Int]] (primary without unset cells, water)
    - entities: List[Compound]
    - palette.default:
        - block_palette: List[Compound] (name, states, version)
        - block_position_data: Compound
- structure_world_origin: List[Int]
"""

import io
import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from nbtlib import Byte, Compound, Double, File, Int, List, String

from .blocks import SourceBlock
from .constants import DEFAULT_STRUCTURE_NAME, MASK_ALPHA, MAX_DEPTH
from .document import StructureDocument
from .grid import VoxelGridBuilder
from .ingestion import Frame, decode
from .palette import create_palette
from .rotate import Axis, rotate_structure

logger = logging.getLogger(__name__)

BYTEORDER = "little"


def construct_decoded(
    frames: Sequence[Frame],
    palette: Optional[Sequence[SourceBlock]],
    max_depth: int = MAX_DEPTH,
    mask_alpha: int = MASK_ALPHA
) -> StructureDocument:
    """
    Convert frames into an unrotated structure document.

    Args:
        frames: Decoded frames
        palette: Blocks permitted in the structure
        max_depth: Maximum number of frames stacked
        mask_alpha: Pixels with alpha below this value are left empty

    Returns:
        StructureDocument with dense layers
    """
    builder = VoxelGridBuilder(palette, max_depth, mask_alpha)
    grid = builder.build(frames)
    return StructureDocument.from_grid(grid, builder.palette.entries)


def _state_tag(value: Any):
    if isinstance(value, bool):
        return Byte(int(value))
    if isinstance(value, int):
        return Int(value)
    if isinstance(value, float):
        return Double(value)
    if isinstance(value, str):
        return String(value)
    raise TypeError(f"Unsupported block state value: {value!r}")


def _states_tag(states: Dict[str, Any]) -> Compound:
    return Compound({key: _state_tag(value) for key, value in states.items()})


def _int_list(values) -> List:
    return List[Int]([Int(int(v)) for v in values])


def to_nbt(document: StructureDocument) -> Compound:
    """
    Build the NBT tree of a structure document.

    Only this function knows about tag types; the document holds plain ints.
    """
    primary, water = document.block_indices()

    block_palette = List[Compound]([
        Compound({
            "name": String(entry.name),
            "states": _states_tag(entry.states),
            "version": Int(entry.version),
        })
        for entry in document.block_palette
    ])

    return Compound({
        "format_version": Int(document.format_version),
        "size": _int_list(document.size),
        "structure": Compound({
            "block_indices": List[List[Int]]([_int_list(primary), _int_list(water)]),
            "entities": List[Compound]([Compound(e) for e in document.entities]),
            "palette": Compound({
                "default": Compound({
                    "block_palette": block_palette,
                    "block_position_data": Compound(document.block_position_data),
                }),
            }),
        }),
        "structure_world_origin": _int_list(document.origin),
    })


def write_nbt(root: Compound, name: str = DEFAULT_STRUCTURE_NAME) -> bytes:
    """Serialize a root compound under the given name, little-endian and uncompressed."""
    buffer = io.BytesIO()
    File(root, root_name=name).write(buffer, byteorder=BYTEORDER)
    return buffer.getvalue()


def read_nbt(data: bytes) -> Tuple[str, File]:
    """
    Parse a little-endian NBT file.

    Returns:
        Tuple of (root_name, root_compound)
    """
    nbt_file = File.parse(io.BytesIO(bytes(data)), byteorder=BYTEORDER)
    return nbt_file.root_name, nbt_file


def encode(
    document: StructureDocument,
    name: str = DEFAULT_STRUCTURE_NAME,
    axis: Union[str, Axis] = Axis.X
) -> bytes:
    """
    Encode a structure document as .mcstructure bytes.

    Args:
        document: Unrotated structure document
        name: Root tag name
        axis: Axis to rotate over; X leaves the document as built

    Returns:
        NBT bytes
    """
    axis = Axis.parse(axis)
    if axis is not Axis.X:
        document = rotate_structure(document, axis)

    data = write_nbt(to_nbt(document), name)
    logger.debug("Encoded %s structure as %d bytes", document.size, len(data))
    return data


def create_mcstructure(
    frames: Sequence[Frame],
    palette: Optional[Sequence[SourceBlock]],
    axis: Union[str, Axis] = Axis.X,
    name: str = DEFAULT_STRUCTURE_NAME,
    max_depth: int = MAX_DEPTH
) -> bytes:
    """
    Convert decoded frames straight to .mcstructure bytes.

    Args:
        frames: Decoded frames
        palette: Blocks permitted in the structure
        axis: Axis to rotate the structure over
        name: Root tag name

    Returns:
        NBT bytes
    """
    axis = Axis.parse(axis)
    return encode(construct_decoded(frames, palette, max_depth), name, axis)


def img2mcstructure(
    source: str,
    db: Mapping[str, str],
    axis: Union[str, Axis] = Axis.X,
    clamp: bool = False
) -> bytes:
    """
    Convert an image source to .mcstructure bytes.

    Args:
        source: Image URL, data URI, or file path
        db: Block database mapping block ids to hex colors
        axis: Axis to rotate the structure over
        clamp: Resize frames larger than the maximum width/height

    Returns:
        NBT bytes
    """
    axis = Axis.parse(axis)
    frames = decode(source, clamp=clamp)
    return create_mcstructure(frames, create_palette(db), axis)
