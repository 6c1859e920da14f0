#!/usr/bin/env python3
"""
img2mcstructure Demo Script

This script demonstrates the full conversion pipeline by:
1. Creating a synthetic animated sprite (no external images needed)
2. Converting it against a small block database
3. Exporting a structure per axis plus an .mcfunction script
4. Printing statistics

Run with: python examples/demo.py
"""

import sys
from pathlib import Path
import numpy as np
import time

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from img2mcstructure import StructureGenerator

BLOCKS = {
    "minecraft:white_concrete": "#cfd5d6",
    "minecraft:red_concrete": "#8e2121",
    "minecraft:blue_concrete": "#2d2f8f",
    "minecraft:yellow_concrete": "#f1af15",
    "minecraft:black_concrete": "#080a0f",
}


def create_test_frames(size: int = 16, count: int = 4) -> list:
    """
    Create a growing circle animation.

    Returns:
        List of RGBA arrays of shape (size, size, 4)
    """
    frames = []
    center = size // 2

    for i in range(count):
        rgba = np.zeros((size, size, 4), dtype=np.uint8)
        radius = 2 + i * (size // 2 - 2) / max(1, count - 1)

        for y in range(size):
            for x in range(size):
                dist = np.hypot(x - center, y - center)
                if dist < radius:
                    rgba[y, x] = [200, 40, 40, 255] if dist < radius / 2 else [240, 180, 30, 255]

        frames.append(rgba)

    return frames


def main():
    output_dir = Path(__file__).parent / "output"
    output_dir.mkdir(exist_ok=True)

    frames = create_test_frames()

    for axis in ("x", "y", "z"):
        start = time.time()

        generator = StructureGenerator()
        generator.load_arrays(frames)
        generator.load_palette(BLOCKS)
        generator.convert(axis)
        path = generator.export_mcstructure(output_dir / f"circle_{axis}.mcstructure", name="circle")

        stats = generator.get_stats()
        print(f"Axis {axis}: {path.name}")
        print(f"  Structure size: {stats['structure_size']}")
        print(f"  Blocks placed: {stats['block_count']}")
        print(f"  Palette: {', '.join(stats['blocks'])}")
        print(f"  Time: {time.time() - start:.3f}s")

    generator.export_mcfunction(output_dir / "circle.mcfunction", offset=(0, 1, 0))
    print(f"\nOutput directory: {output_dir}")


if __name__ == "__main__":
    main()
