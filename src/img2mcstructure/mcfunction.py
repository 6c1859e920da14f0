"""
setblock Command Generation

Alternative output to .mcstructure: one `setblock` command per opaque pixel,
relative to the executing entity, with pixel coordinates counted from 1.
Frames are laid out on the same plane; only the first MAX_DEPTH frames are
used.
"""

import logging
from typing import List, Mapping, Sequence, Tuple

from .blocks import SourceBlock
from .color import MASK_REF, ColorMatcher
from .constants import MASK_ALPHA, MAX_DEPTH
from .ingestion import Frame, decode
from .palette import create_palette

logger = logging.getLogger(__name__)


def construct_commands(
    frames: Sequence[Frame],
    palette: Sequence[SourceBlock],
    offset: Tuple[int, int, int] = (0, 0, 0),
    max_depth: int = MAX_DEPTH,
    mask_alpha: int = MASK_ALPHA
) -> List[str]:
    """
    Build setblock commands for every opaque pixel.

    Args:
        frames: Decoded frames
        palette: Blocks pixels are matched against
        offset: (x, y, z) added to every coordinate
        max_depth: Maximum number of frames used

    Returns:
        List of command lines
    """
    matcher = ColorMatcher(palette, mask_alpha)
    ox, oy, oz = offset
    lines = []

    for frame in frames[:max_depth]:
        for x, y, c in frame.iterate_with_colors():
            block = matcher.classify(c)
            if block is MASK_REF:
                continue

            lines.append(
                f"setblock ~{x + 1 + ox}~{abs(frame.height - (y + 1) + oy)}~{oz} {block.id} replace"
            )

    logger.debug("Generated %d setblock commands", len(lines))
    return lines


def img2mcfunction(
    source: str,
    db: Mapping[str, str],
    offset: Tuple[int, int, int] = (0, 0, 0),
    clamp: bool = False
) -> str:
    """
    Convert an image source to an .mcfunction script.

    Args:
        source: Image URL, data URI, or file path
        db: Block database mapping block ids to hex colors
        offset: Coordinate offset applied to every command

    Returns:
        Newline-joined setblock commands
    """
    frames = decode(source, clamp=clamp)
    return "\n".join(construct_commands(frames, create_palette(db), offset))
