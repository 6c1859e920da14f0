"""
Main StructureGenerator Class

This is the primary interface for the conversion pipeline.
It orchestrates:
1. Frame decoding (file, URL, or data URI; optional clamping)
2. Block palette loading
3. Voxel grid construction
4. Optional rotation
5. Export to .mcstructure or .mcfunction

Example Usage:
    generator = StructureGenerator()
    generator.load_image("sprite.gif")
    generator.load_palette("blocks.json")
    generator.convert(axis="y")
    generator.export_mcstructure("sprite.mcstructure")
"""

import logging
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .blocks import PaletteEntry, SourceBlock
from .constants import DEFAULT_STRUCTURE_NAME, MASK_ALPHA, MAX_DEPTH
from .document import StructureDocument
from .grid import VoxelGrid, VoxelGridBuilder
from .ingestion import Frame, clamp_frames, decode, frames_from_arrays
from .mcfunction import construct_commands
from .palette import create_palette, load_palette_file
from .rotate import Axis, rotate_structure
from .structure import write_nbt, to_nbt

logger = logging.getLogger(__name__)


class StructureGenerator:
    """
    High-level interface for image to structure conversion.

    Attributes:
        frames: The loaded frames
        palette: The source block palette
        grid: The voxel grid built by convert()
        document: The (possibly rotated) structure document
    """

    def __init__(
        self,
        max_depth: int = MAX_DEPTH,
        mask_alpha: int = MASK_ALPHA,
        clamp: bool = False
    ):
        """
        Initialize the StructureGenerator.

        Args:
            max_depth: Maximum number of frames stacked into the structure
            mask_alpha: Pixels with alpha below this value are left empty
            clamp: Resize frames larger than the maximum width/height on load
        """
        self.max_depth = max_depth
        self.mask_alpha = mask_alpha
        self.clamp = clamp

        self._frames: List[Frame] = []
        self._palette: List[SourceBlock] = []
        self._grid: Optional[VoxelGrid] = None
        self._block_palette: List[PaletteEntry] = []
        self._document: Optional[StructureDocument] = None
        self._axis: Axis = Axis.X

    def load_image(self, source: Union[str, Path]) -> "StructureGenerator":
        """
        Decode an image or animated GIF.

        Args:
            source: File path, http(s) URL, or base64 data URI

        Returns:
            self for method chaining
        """
        return self.load_frames(decode(source))

    def load_frames(self, frames: Sequence[Frame]) -> "StructureGenerator":
        """
        Use already decoded frames.

        Returns:
            self for method chaining
        """
        frames = list(frames)
        if self.clamp:
            frames = clamp_frames(frames)

        self._frames = frames
        self._grid = None
        self._document = None
        logger.info("Loaded %d frame(s)", len(frames))
        return self

    def load_arrays(self, arrays: Sequence[np.ndarray]) -> "StructureGenerator":
        """
        Load frames from (H, W, 4) RGBA arrays.

        Returns:
            self for method chaining
        """
        return self.load_frames(frames_from_arrays(arrays))

    def load_palette(
        self,
        palette: Union[str, Path, Mapping[str, str], Sequence[SourceBlock]],
        block_filter: Optional[Callable[[str], bool]] = None
    ) -> "StructureGenerator":
        """
        Set the blocks pixels may become.

        Args:
            palette: Path to a JSON block database, a mapping of block id to
                hex color, or prebuilt SourceBlocks
            block_filter: Optional predicate on block ids

        Returns:
            self for method chaining
        """
        if isinstance(palette, (str, Path)):
            blocks = load_palette_file(palette, block_filter)
        elif isinstance(palette, Mapping):
            blocks = create_palette(palette, block_filter)
        else:
            blocks = [b for b in palette if block_filter is None or block_filter(b.id)]

        self._palette = blocks
        self._grid = None
        self._document = None
        logger.info("Loaded %d palette block(s)", len(blocks))
        return self

    def convert(self, axis: Union[str, Axis] = Axis.X) -> "StructureGenerator":
        """
        Build the voxel grid and the structure document.

        Args:
            axis: Axis to rotate the structure over

        Returns:
            self for method chaining
        """
        if not self._frames:
            raise RuntimeError("No frames loaded. Call load_image() first.")

        self._axis = Axis.parse(axis)

        builder = VoxelGridBuilder(self._palette, self.max_depth, self.mask_alpha)
        self._grid = builder.build(self._frames)
        self._block_palette = builder.palette.entries

        document = StructureDocument.from_grid(self._grid, self._block_palette)
        if self._axis is not Axis.X:
            document = rotate_structure(document, self._axis)
        self._document = document

        logger.info(
            "Converted %d frame(s) to %s structure with %d block type(s)",
            len(self._frames), document.size, len(self._block_palette)
        )
        return self

    def to_bytes(self, name: str = DEFAULT_STRUCTURE_NAME) -> bytes:
        """Encode the converted structure."""
        if self._document is None:
            self.convert()
        return write_nbt(to_nbt(self._document), name)

    def export_mcstructure(
        self,
        output_path: Union[str, Path],
        name: str = DEFAULT_STRUCTURE_NAME
    ) -> Path:
        """
        Write a .mcstructure file.

        Args:
            output_path: Output file path
            name: Root tag name

        Returns:
            The written path
        """
        output_path = Path(output_path)
        output_path.write_bytes(self.to_bytes(name))
        logger.info("Exported %s", output_path)
        return output_path

    def export_mcfunction(
        self,
        output_path: Union[str, Path],
        offset: Tuple[int, int, int] = (0, 0, 0)
    ) -> Path:
        """
        Write an .mcfunction file of setblock commands.

        Args:
            output_path: Output file path
            offset: Coordinate offset applied to every command

        Returns:
            The written path
        """
        if not self._frames:
            raise RuntimeError("No frames loaded. Call load_image() first.")

        lines = construct_commands(
            self._frames, self._palette, offset, self.max_depth, self.mask_alpha
        )
        output_path = Path(output_path)
        output_path.write_text("\n".join(lines), encoding="utf-8")
        logger.info("Exported %s", output_path)
        return output_path

    @property
    def frames(self) -> List[Frame]:
        return list(self._frames)

    @property
    def palette(self) -> List[SourceBlock]:
        return list(self._palette)

    @property
    def grid(self) -> Optional[VoxelGrid]:
        """Get the current voxel grid."""
        return self._grid

    @property
    def document(self) -> Optional[StructureDocument]:
        """Get the current structure document."""
        return self._document

    @property
    def block_palette(self) -> List[PaletteEntry]:
        """Structure palette from the last conversion."""
        return list(self._block_palette)

    @property
    def block_count(self) -> int:
        """Get the number of placed blocks."""
        if self._grid is None:
            return 0
        return self._grid.count_blocks()

    def get_stats(self) -> dict:
        """
        Get conversion statistics.

        Returns:
            Dictionary with conversion statistics
        """
        if self._document is None:
            return {"error": "No structure"}

        return {
            "frames": len(self._frames),
            "grid_size": self._grid.shape,
            "structure_size": self._document.size,
            "axis": self._axis.value,
            "block_count": self.block_count,
            "palette_size": len(self._block_palette),
            "blocks": [entry.name for entry in self._block_palette],
        }


class BatchProcessor:
    """
    Batch processing for multiple images.

    Useful for converting a directory of images with one block database.
    """

    def __init__(self, palette, block_filter=None, **generator_kwargs):
        """
        Initialize batch processor.

        Args:
            palette: Block database path, mapping, or SourceBlocks
            block_filter: Optional predicate on block ids
            **generator_kwargs: Arguments passed to StructureGenerator
        """
        self.generator_kwargs = generator_kwargs
        self._palette = StructureGenerator(**generator_kwargs).load_palette(
            palette, block_filter
        ).palette

    def process_directory(
        self,
        input_dir: Union[str, Path],
        output_dir: Union[str, Path],
        pattern: str = "*.png",
        axis: Union[str, Axis] = Axis.X,
        formats: Optional[list] = None
    ) -> List[Path]:
        """
        Convert all matching images in a directory.

        Args:
            input_dir: Input directory
            output_dir: Output directory
            pattern: Glob pattern for input files
            axis: Axis to rotate structures over
            formats: Output formats ("mcstructure", "mcfunction")

        Returns:
            List of output paths
        """
        input_dir = Path(input_dir)
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        formats = formats or ["mcstructure"]
        axis = Axis.parse(axis)

        outputs = []

        for image_path in sorted(input_dir.glob(pattern)):
            generator = StructureGenerator(**self.generator_kwargs)
            generator.load_image(image_path)
            generator.load_palette(self._palette)

            if "mcstructure" in formats:
                generator.convert(axis)
                outputs.append(generator.export_mcstructure(
                    output_dir / f"{image_path.stem}.mcstructure",
                    name=image_path.stem
                ))

            if "mcfunction" in formats:
                outputs.append(generator.export_mcfunction(
                    output_dir / f"{image_path.stem}.mcfunction"
                ))

        return outputs
