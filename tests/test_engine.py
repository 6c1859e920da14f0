"""
Unit tests for the conversion engine.
"""

import io
import sys
from pathlib import Path
import numpy as np
import unittest

from nbtlib import File

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from img2mcstructure.blocks import SourceBlock
from img2mcstructure.color import (
    DEFAULT_REF, MASK_REF, ColorMatcher, classify_pixel, color_distance,
    nearest_color, pack_color, unpack_color,
)
from img2mcstructure.constants import BLOCK_VERSION, DEFAULT_BLOCK, EMPTY_CELL, MASK_BLOCK
from img2mcstructure.document import StructureDocument
from img2mcstructure.errors import (
    DimensionMismatchError, EmptyPaletteError, InvalidAxisError, PaletteDecodeError,
)
from img2mcstructure.grid import VoxelGrid, VoxelGridBuilder, build_grid, cell_index
from img2mcstructure.ingestion import Frame
from img2mcstructure.palette import PaletteBuilder, create_palette, parse_hex_color
from img2mcstructure.rotate import (
    Axis, rotate_over_x, rotate_over_y, rotate_over_z, rotate_structure,
)
from img2mcstructure.structure import (
    construct_decoded, create_mcstructure, encode, read_nbt, to_nbt, write_nbt,
)


def solid_frame(width, height, rgba):
    """Frame filled with a single RGBA color."""
    array = np.zeros((height, width, 4), dtype=np.uint8)
    array[:, :] = rgba
    return Frame(array)


def dense_document(width, height, depth):
    """Document whose primary layer holds 0..volume-1."""
    volume = width * height * depth
    return StructureDocument(
        size=(width, height, depth),
        primary_layer=np.arange(volume, dtype=np.int32),
        water_layer=np.full(volume, EMPTY_CELL, dtype=np.int32),
    )


class TestColorMatching(unittest.TestCase):
    """Tests for color distance and nearest-color search."""

    def setUp(self):
        self.palette = create_palette({
            "minecraft:black_wool": "#000000",
            "minecraft:stone": "#808080",
            "minecraft:white_wool": "#ffffff",
            "minecraft:red_wool": "#ff0000",
        })

    def test_distance_zero_for_same_color(self):
        for color in [(0, 0, 0), (12, 200, 99), (255, 255, 255)]:
            assert color_distance(color, color) == 0

    def test_distance_symmetric(self):
        a, b = (10, 20, 30), (200, 5, 90)
        assert color_distance(a, b) == color_distance(b, a)
        assert color_distance((0, 0, 0), (3, 4, 0)) == 5

    def test_nearest_exact_match(self):
        assert nearest_color((128, 128, 128), self.palette).id == "minecraft:stone"
        assert nearest_color((250, 10, 10), self.palette).id == "minecraft:red_wool"

    def test_nearest_tie_keeps_first_entry(self):
        palette = create_palette({"first": "#000000", "second": "#020202"})
        assert nearest_color((1, 1, 1), palette).id == "first"

        reversed_palette = create_palette({"second": "#020202", "first": "#000000"})
        assert nearest_color((1, 1, 1), reversed_palette).id == "second"

    def test_nearest_empty_palette(self):
        with self.assertRaises(EmptyPaletteError):
            nearest_color((0, 0, 0), [])
        with self.assertRaises(EmptyPaletteError):
            ColorMatcher([]).nearest((0, 0, 0))

    def test_matcher_agrees_with_linear_scan(self):
        rng = np.random.default_rng(7)
        matcher = ColorMatcher(self.palette)
        for color in rng.integers(0, 256, size=(200, 3)):
            color = tuple(int(c) for c in color)
            assert matcher.nearest(color) == nearest_color(color, self.palette)

    def test_matcher_tie_keeps_first_entry(self):
        palette = create_palette({"first": "#000000", "second": "#020202"})
        assert ColorMatcher(palette).nearest((1, 1, 1)).id == "first"

    def test_pack_unpack(self):
        packed = pack_color(0x12, 0x34, 0x56, 0x78)
        assert packed == 0x12345678
        assert unpack_color(packed) == (0x12, 0x34, 0x56, 0x78)


class TestClassifyPixel(unittest.TestCase):
    """Tests for the per-pixel block decision."""

    def setUp(self):
        self.palette = create_palette({"minecraft:stone": "#808080"})

    def test_transparent_pixels_are_masked(self):
        for alpha in (0, 1, 64, 127):
            for palette in (self.palette, [], None):
                block = classify_pixel(pack_color(128, 128, 128, alpha), palette)
                assert block.id == MASK_BLOCK
                assert block == MASK_REF

    def test_opaque_pixel_resolves_to_nearest(self):
        block = classify_pixel(pack_color(120, 130, 125, 128), self.palette)
        assert block.id == "minecraft:stone"
        assert block.states == {}
        assert block.version == BLOCK_VERSION

    def test_no_palette_resolves_to_default(self):
        assert classify_pixel(pack_color(1, 2, 3, 255), None) == DEFAULT_REF
        assert classify_pixel(pack_color(1, 2, 3, 255), []).id == DEFAULT_BLOCK

    def test_matcher_classify_matches_function(self):
        matcher = ColorMatcher(self.palette)
        for packed in (pack_color(1, 2, 3, 0), pack_color(200, 100, 50, 255)):
            assert matcher.classify(packed) == classify_pixel(packed, self.palette)

    def test_custom_mask_alpha(self):
        packed = pack_color(128, 128, 128, 200)
        assert classify_pixel(packed, self.palette, mask_alpha=255) == MASK_REF


class TestSourcePalette(unittest.TestCase):
    """Tests for block database decoding."""

    def test_hex_decoding(self):
        assert parse_hex_color("#808080") == (128, 128, 128)
        assert parse_hex_color("FF0a00") == (255, 10, 0)

    def test_malformed_hex(self):
        for value in ("#12345", "#1234567", "#gggggg", "", "red"):
            with self.assertRaises(PaletteDecodeError):
                parse_hex_color(value)

    def test_create_palette_fails_fast(self):
        with self.assertRaises(PaletteDecodeError) as ctx:
            create_palette({"minecraft:stone": "#808080", "minecraft:dirt": "#80808"})
        assert ctx.exception.block_id == "minecraft:dirt"

    def test_create_palette_entries(self):
        palette = create_palette({"minecraft:stone": "#808080", "minecraft:glass": "#c0f0ff"})
        assert [b.id for b in palette] == ["minecraft:stone", "minecraft:glass"]
        assert palette[1].color == (0xC0, 0xF0, 0xFF)
        assert palette[1].hex_color == "#c0f0ff"
        assert palette[0].version == BLOCK_VERSION

    def test_block_filter(self):
        palette = create_palette(
            {"minecraft:glass": "#ffffff", "minecraft:stone": "#808080"},
            block_filter=lambda block_id: "glass" in block_id
        )
        assert [b.id for b in palette] == ["minecraft:glass"]


class TestPaletteBuilder(unittest.TestCase):
    """Tests for the structure palette."""

    def test_register_deduplicates(self):
        builder = PaletteBuilder()
        assert builder.register_or_get("minecraft:stone") == 0
        assert builder.register_or_get("minecraft:dirt") == 1
        assert builder.register_or_get("minecraft:stone", {}) == 0
        assert len(builder) == 2

    def test_register_compares_states_deeply(self):
        builder = PaletteBuilder()
        a = builder.register_or_get("minecraft:wool", {"color": "red"})
        b = builder.register_or_get("minecraft:wool", {"color": "red"})
        c = builder.register_or_get("minecraft:wool", {"color": "blue"})
        assert a == b == 0
        assert c == 1

    def test_register_version_default(self):
        builder = PaletteBuilder()
        builder.register_or_get("minecraft:stone")
        builder.register_or_get("minecraft:dirt", version=17959425)
        entries = builder.entries
        assert entries[0].version == BLOCK_VERSION
        assert entries[1].version == 17959425

    def test_resolve_memoizes_raw_pixel_value(self):
        palette = create_palette({"minecraft:stone": "#808080"})
        builder = PaletteBuilder(palette)

        gray = pack_color(128, 128, 128, 255)
        near_gray = pack_color(130, 126, 128, 255)

        assert builder.resolve(gray) == 0
        assert builder.resolve(gray) == 0
        assert builder.resolve(near_gray) == 0
        assert builder.memo_size == 2
        assert len(builder) == 1
        assert builder.lookup(near_gray).id == "minecraft:stone"

    def test_masked_pixels_stay_unset(self):
        builder = PaletteBuilder(create_palette({"minecraft:stone": "#808080"}))
        assert builder.resolve(pack_color(128, 128, 128, 0)) == EMPTY_CELL
        assert len(builder) == 0
        assert builder.lookup(pack_color(128, 128, 128, 0)) == MASK_REF

    def test_first_use_order(self):
        palette = create_palette({"a": "#000000", "b": "#ffffff"})
        builder = PaletteBuilder(palette)
        builder.resolve(pack_color(255, 255, 255))
        builder.resolve(pack_color(0, 0, 0))
        assert [e.name for e in builder] == ["b", "a"]


class TestVoxelGridBuilder(unittest.TestCase):
    """Tests for grid construction."""

    def setUp(self):
        self.palette = create_palette({
            "minecraft:stone": "#808080",
            "minecraft:red_wool": "#ff0000",
        })

    def test_single_color_frame(self):
        grid, entries = build_grid([solid_frame(2, 2, (128, 128, 128, 255))], self.palette)
        assert [e.name for e in entries] == ["minecraft:stone"]
        assert grid.primary_layer.tolist() == [0, 0, 0, 0]
        assert grid.water_layer.tolist() == [-1, -1, -1, -1]
        assert grid.shape == (2, 2, 1)

    def test_transparent_frame_leaves_cells_unset(self):
        frames = [
            solid_frame(1, 1, (128, 128, 128, 255)),
            solid_frame(1, 1, (128, 128, 128, 0)),
        ]
        grid, entries = build_grid(frames, self.palette)

        assert grid.primary_layer.tolist() == [0, EMPTY_CELL]
        assert len(entries) == 1

        document = StructureDocument.from_grid(grid, entries)
        primary, water = document.block_indices()
        assert len(primary) == 1
        assert len(water) == 2

    def test_columns_are_mirrored(self):
        array = np.zeros((1, 2, 4), dtype=np.uint8)
        array[0, 0] = (255, 0, 0, 255)
        array[0, 1] = (128, 128, 128, 255)
        grid, entries = build_grid([Frame(array)], self.palette)

        # x=0 is red and registered first, stored at the mirrored offset 1
        assert [e.name for e in entries] == ["minecraft:red_wool", "minecraft:stone"]
        assert grid.primary_layer.tolist() == [1, 0]
        assert grid.get(0, 0, 0) == 0

    def test_cell_index_layout(self):
        assert cell_index(0, 0, 0, 4, 3) == 3
        assert cell_index(3, 0, 0, 4, 3) == 0
        assert cell_index(0, 1, 0, 4, 3) == 7
        assert cell_index(0, 0, 1, 4, 3) == 15

    def test_depth_is_capped(self):
        frames = [solid_frame(1, 1, (128, 128, 128, 255)) for _ in range(3)]
        grid = VoxelGridBuilder(self.palette, max_depth=2).build(frames)
        assert grid.depth == 2
        assert len(grid.primary_layer) == 2

    def test_dimension_mismatch(self):
        frames = [solid_frame(2, 2, (0, 0, 0, 255)), solid_frame(3, 2, (0, 0, 0, 255))]
        with self.assertRaises(DimensionMismatchError) as ctx:
            build_grid(frames, self.palette)
        assert ctx.exception.index == 1

    def test_no_frames(self):
        with self.assertRaises(ValueError):
            build_grid([], self.palette)

    def test_indices_within_palette(self):
        rng = np.random.default_rng(3)
        array = rng.integers(0, 256, size=(6, 5, 4), dtype=np.uint8)
        grid, entries = build_grid([Frame(array)], self.palette)
        filled = grid.filled_primary()
        assert np.all(filled < len(entries))
        assert np.all(filled >= 0)
        assert len({(e.name, tuple(e.states.items())) for e in entries}) == len(entries)

    def test_empty_palette_uses_default_block(self):
        grid, entries = build_grid([solid_frame(2, 1, (10, 20, 30, 255))], [])
        assert [e.name for e in entries] == [DEFAULT_BLOCK]
        assert grid.primary_layer.tolist() == [0, 0]

    def test_grid_defaults(self):
        grid = VoxelGrid(2, 3, 4)
        assert grid.volume == 24
        assert grid.count_blocks() == 0


class TestRotation(unittest.TestCase):
    """Tests for structure rotation."""

    def test_rotate_z_preserves_size_and_is_involution(self):
        document = dense_document(2, 3, 4)
        once = rotate_over_z(document)
        twice = rotate_over_z(once)

        assert once.size == (2, 3, 4)
        assert not np.array_equal(once.primary_layer, document.primary_layer)
        assert np.array_equal(twice.primary_layer, document.primary_layer)

    def test_rotate_z_mapping(self):
        w, h, d = 2, 3, 4
        document = dense_document(w, h, d)
        rotated = rotate_over_z(document)
        src = document.primary_layer
        for z in range(d):
            for y in range(h):
                for x in range(w):
                    key = z * w * h + y * w + (w - x - 1)
                    assert rotated.primary_layer[key] == src[(d - z - 1) * w * h + y * w + x]

    def test_rotate_y_mapping(self):
        w, h, d = 2, 3, 4
        document = dense_document(w, h, d)
        rotated = rotate_over_y(document)
        src = document.primary_layer

        assert rotated.size == (w, d, h)
        for z in range(d):
            for y in range(h):
                for x in range(w):
                    key = z * w * h + y * w + (w - x - 1)
                    assert rotated.primary_layer[key] == src[z * w * h + (h - y - 1) * w + x]

    def test_rotate_x_mapping(self):
        w, h, d = 2, 3, 4
        document = dense_document(w, h, d)
        rotated = rotate_over_x(document)
        src = document.primary_layer

        assert rotated.size == (d, h, w)
        for z in range(d):
            for y in range(h):
                for x in range(w):
                    key = z * w * h + y * w + (w - x - 1)
                    assert rotated.primary_layer[key] == src[z * w * h + y * w + x]

    def test_rotation_does_not_modify_input(self):
        document = dense_document(2, 2, 2)
        before = document.primary_layer.copy()
        rotated = rotate_structure(document, "y")

        assert rotated is not document
        assert document.size == (2, 2, 2)
        assert np.array_equal(document.primary_layer, before)
        assert rotated.primary_layer.dtype == np.int32
        assert len(rotated.water_layer) == 8

    def test_dispatch(self):
        document = dense_document(2, 3, 4)
        assert rotate_structure(document, Axis.X).size == (4, 3, 2)
        assert rotate_structure(document, "Y").size == (2, 4, 3)
        assert rotate_structure(document, "z").size == (2, 3, 4)

    def test_invalid_axis(self):
        with self.assertRaises(InvalidAxisError):
            Axis.parse("w")
        with self.assertRaises(InvalidAxisError):
            rotate_structure(dense_document(1, 1, 1), "diagonal")


class TestStructureEncoder(unittest.TestCase):
    """Tests for .mcstructure encoding."""

    def setUp(self):
        self.palette = create_palette({
            "minecraft:stone": "#808080",
            "minecraft:red_wool": "#ff0000",
        })
        self.frames = [
            solid_frame(2, 2, (128, 128, 128, 255)),
            solid_frame(2, 2, (250, 0, 0, 255)),
            solid_frame(2, 2, (0, 0, 0, 0)),
        ]

    def test_root_header(self):
        data = encode(construct_decoded(self.frames, self.palette), name="pixel")
        assert data[:1] == b"\x0a"
        assert data[1:3] == (5).to_bytes(2, "little")
        assert data[3:8] == b"pixel"

    def test_named_root_file(self):
        data = create_mcstructure(self.frames, self.palette, name="pixel")
        nbt_file = File.parse(io.BytesIO(data), byteorder="little")

        assert nbt_file.root_name == "pixel"
        assert set(nbt_file.keys()) == {
            "format_version", "size", "structure", "structure_world_origin"
        }

        name, root = read_nbt(data)
        assert name == "pixel"
        assert isinstance(root, File)
        assert write_nbt(root, name) == data

    def test_document_tree(self):
        document = construct_decoded(self.frames, self.palette)
        name, root = read_nbt(encode(document))

        assert name == "img2mcstructure"
        assert root["format_version"] == 1
        assert [int(v) for v in root["size"]] == [2, 2, 3]
        assert [int(v) for v in root["structure_world_origin"]] == [0, 0, 0]

        structure = root["structure"]
        primary, water = structure["block_indices"]
        assert [int(v) for v in primary] == [0, 0, 0, 0, 1, 1, 1, 1]
        assert len(water) == 12
        assert all(int(v) == -1 for v in water)
        assert len(structure["entities"]) == 0

        default = structure["palette"]["default"]
        assert [str(e["name"]) for e in default["block_palette"]] == [
            "minecraft:stone", "minecraft:red_wool"
        ]
        assert int(default["block_palette"][0]["version"]) == BLOCK_VERSION
        assert len(default["block_palette"][0]["states"]) == 0
        assert len(default["block_position_data"]) == 0

    def test_rotated_size(self):
        document = construct_decoded(self.frames, self.palette)
        _, root = read_nbt(encode(document, axis="y"))
        assert [int(v) for v in root["size"]] == [2, 3, 2]

    def test_explicit_x_is_rotated_by_rotator_only(self):
        document = construct_decoded(self.frames, self.palette)
        _, root = read_nbt(encode(document, axis="x"))
        assert [int(v) for v in root["size"]] == [2, 2, 3]

    def test_deterministic_output(self):
        first = create_mcstructure(self.frames, self.palette, axis="z")
        second = create_mcstructure(self.frames, self.palette, axis="z")
        assert first == second

    def test_states_are_typed(self):
        document = construct_decoded(self.frames[:1], self.palette)
        document.block_palette[0].states = {"color": "red", "age": 3, "lit": True}
        _, root = read_nbt(write_nbt(to_nbt(document)))
        states = root["structure"]["palette"]["default"]["block_palette"][0]["states"]
        assert str(states["color"]) == "red"
        assert int(states["age"]) == 3
        assert int(states["lit"]) == 1

    def test_invalid_axis(self):
        document = construct_decoded(self.frames, self.palette)
        with self.assertRaises(InvalidAxisError):
            encode(document, axis="q")


if __name__ == "__main__":
    unittest.main(verbosity=2)
