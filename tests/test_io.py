"""
Unit tests for palettes, cube sources, serializers and the CLI.
"""

import sys
from pathlib import Path
import json
import tempfile
import numpy as np
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from voxel_mapper import MapConverter, ConversionSettings
from voxel_mapper.cli import main
from voxel_mapper.encoding import SparseVoxelMap, make_blocks
from voxel_mapper.errors import SerializationError, UnknownBlockTypeError
from voxel_mapper.palette import BlockPalette
from voxel_mapper.serializers import (
    BinarySerializer,
    JsonSerializer,
    get_serializer,
    serializer_for_path,
)
from voxel_mapper.sources import (
    SceneCubeSource,
    snap_positions,
    texture_id_from_material,
)

PALETTE_DATA = {
    "block_types": [
        {"name": "air"},
        {"name": "bedrock", "top": 16},
        {"name": "stone", "top": 0},
        {"name": "dirt", "top": 1, "side": 2},
        {"name": "grass", "top": 3, "bottom": 1, "side": 2},
    ]
}

SCENE_DATA = {
    "cubes": [
        {"position": [10.5, 2.5, -3.5], "material": "blockade_1"},
        {"position": [11.5, 2.5, -3.5], "material": "blockade_3"},
        {"position": [10.5, 3.5, -2.5], "type": "grass"},
    ]
}


def sample_map() -> SparseVoxelMap:
    blocks = make_blocks([0, 1, 1], [0, 1, 2], [0, 0, 2], [1, 2, 3])
    return SparseVoxelMap("sample", blocks, (2, 64, 3))


def records(voxel_map) -> list:
    return [(b.x, b.y, b.z, b.type) for b in voxel_map]


class TestPalette(unittest.TestCase):
    """Tests for the block palette."""

    def test_index_of(self):
        """Test name lookups."""
        palette = BlockPalette.from_dict(PALETTE_DATA)
        assert palette.index_of("stone") == 2
        assert palette.type_count() == 5
        assert palette.name_of(4) == "grass"
        assert "dirt" in palette

        with self.assertRaises(UnknownBlockTypeError):
            palette.index_of("marble")

    def test_index_of_texture(self):
        """Test that the first type using a texture on any face wins."""
        palette = BlockPalette.from_dict(PALETTE_DATA)
        assert palette.index_of_texture(0) == 2
        assert palette.index_of_texture(1) == 3  # dirt top before grass bottom
        assert palette.index_of_texture(3) == 4

        with self.assertRaises(UnknownBlockTypeError):
            palette.index_of_texture(99)

    def test_duplicate_names_rejected(self):
        """Test that names must be unique."""
        with self.assertRaises(ValueError):
            BlockPalette.from_names(["air", "stone", "stone"])


class TestSceneCubeSource(unittest.TestCase):
    """Tests for reading authored scenes."""

    def test_material_parsing(self):
        """Test texture ids from material names."""
        assert texture_id_from_material("blockade_7") == 6
        with self.assertRaises(ValueError):
            texture_id_from_material("blockade")

    def test_snap_positions(self):
        """Test flooring object centres onto the grid."""
        snapped = snap_positions([[0.5, 0.5, -0.5], [2.9, -1.5, 0.0]])
        assert snapped.tolist() == [[0, 0, -1], [3, -2, 0]]

    def test_load_from_dict(self):
        """Test resolving materials and names to block types."""
        source = SceneCubeSource(BlockPalette.from_dict(PALETTE_DATA))
        positions, types = source.load_from_dict(SCENE_DATA).cubes()

        assert positions.tolist() == [[10, 2, -4], [11, 2, -4], [10, 3, -3]]
        assert types.tolist() == [2, 3, 4]
        assert len(source) == 3

    def test_unknown_material(self):
        """Test that an unused texture fails."""
        source = SceneCubeSource(BlockPalette.from_dict(PALETTE_DATA))
        scene = {"cubes": [{"position": [0, 0, 0], "material": "blockade_50"}]}
        with self.assertRaises(UnknownBlockTypeError):
            source.load_from_dict(scene)

    def test_not_loaded(self):
        """Test access before loading."""
        source = SceneCubeSource(BlockPalette.from_dict(PALETTE_DATA))
        with self.assertRaises(RuntimeError):
            source.cubes()


class TestSerializers(unittest.TestCase):
    """Tests for the map encodings."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_json_layout(self):
        """Test the human-readable document layout."""
        document = json.loads(JsonSerializer().encode(sample_map()))
        assert document == {
            "name": "sample",
            "size": [2, 64, 3],
            "blocks": [[0, 0, 0, 1], [1, 1, 0, 2], [1, 2, 2, 3]],
        }

    def test_encodings_agree(self):
        """Test that both encodings restore the same map."""
        voxel_map = sample_map()
        for serializer in (JsonSerializer(), BinarySerializer()):
            path = serializer.serialize(voxel_map, self.dir, voxel_map.name)
            assert path.name == "sample" + serializer.extension

            loaded = serializer.load(path)
            assert loaded.name == "sample"
            assert tuple(loaded.size) == (2, 64, 3)
            assert records(loaded) == records(voxel_map)

    def test_binary_is_compact(self):
        """Test the fixed 7-byte block record."""
        data = BinarySerializer().encode(sample_map())
        header = 4 + 4 + 2 + len("sample") + 12 + 4
        assert len(data) == header + 3 * 7

    def test_binary_bad_magic(self):
        """Test rejecting foreign files."""
        with self.assertRaises(SerializationError):
            BinarySerializer().decode(b"VOX \x96\x00\x00\x00")

    def test_binary_truncated(self):
        """Test rejecting a cut-off file."""
        path = self.dir / "cut.vmap"
        path.write_bytes(BinarySerializer().encode(sample_map())[:-3])
        with self.assertRaises(SerializationError):
            BinarySerializer().load(path)

    def test_json_invalid(self):
        """Test rejecting malformed JSON maps."""
        with self.assertRaises(SerializationError):
            JsonSerializer().decode('{"name": "x"}')

    def test_missing_file(self):
        """Test loading a file that does not exist."""
        with self.assertRaises(SerializationError):
            JsonSerializer().load(self.dir / "missing.json")

    def test_empty_name(self):
        """Test that a map needs a file name."""
        with self.assertRaises(SerializationError):
            JsonSerializer().serialize(sample_map(), self.dir, "")

    def test_failed_encode_keeps_existing_file(self):
        """Test that a negative size fails before the target is touched."""
        voxel_map = sample_map()
        voxel_map.grow(dz=-4)
        for serializer in (JsonSerializer(), BinarySerializer()):
            existing = serializer.path_for(self.dir, "sample")
            existing.write_bytes(b"previous map")

            with self.assertRaises(SerializationError):
                serializer.serialize(voxel_map, self.dir, "sample")
            assert existing.read_bytes() == b"previous map"
        assert sorted(p.name for p in self.dir.iterdir()) == ["sample.json", "sample.vmap"]

    def test_overwrite_replaces_file(self):
        """Test that serializing over an existing file replaces it whole."""
        path = self.dir / "sample.vmap"
        path.write_bytes(b"previous map" * 100)
        BinarySerializer().serialize(sample_map(), self.dir, "sample")

        assert records(BinarySerializer().load(path)) == records(sample_map())
        assert not (self.dir / "sample.vmap.tmp").exists()

    def test_binary_truncated_header(self):
        """Test rejecting a file cut inside the header."""
        data = BinarySerializer().encode(sample_map())[:9]
        with self.assertRaises(SerializationError):
            BinarySerializer().decode(data)

    def test_lookup(self):
        """Test serializer lookup by name and extension."""
        assert isinstance(get_serializer("binary"), BinarySerializer)
        assert isinstance(serializer_for_path("maps/a.json"), JsonSerializer)
        with self.assertRaises(ValueError):
            get_serializer("xml")
        with self.assertRaises(ValueError):
            serializer_for_path("maps/a.txt")

    def test_reencode(self):
        """Test converting a stored JSON map to binary."""
        json_path = JsonSerializer().serialize(sample_map(), self.dir, "sample")
        settings = ConversionSettings(output_dir=str(self.dir / "binary"))
        converter = MapConverter(None, settings, BinarySerializer())

        path = converter.reencode(json_path)
        assert path == self.dir / "binary" / "sample.vmap"
        assert records(BinarySerializer().load(path)) == records(sample_map())


class TestCommandLine(unittest.TestCase):
    """Tests for the voxmap CLI."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)
        self.palette = self.dir / "palette.json"
        self.palette.write_text(json.dumps(PALETTE_DATA))
        self.scene = self.dir / "arena.scene.json"
        self.scene.write_text(json.dumps(SCENE_DATA))
        self.rules = self.dir / "rules.json"
        self.rules.write_text(json.dumps({
            "remappings": [{"old_name": "dirt", "new_name": "stone"}],
            "copy_rules": [{"from": [0, 1, 0], "to": [2, 3, 2], "kind": "Rotate180"}],
        }))

    def tearDown(self):
        self.tmp.cleanup()

    def test_convert(self):
        """Test converting a scene to a binary map."""
        out = self.dir / "maps"
        code = main([
            str(self.scene), "--palette", str(self.palette), "--rules", str(self.rules),
            "-f", "binary", "--output-dir", str(out),
        ])
        assert code == 0

        loaded = BinarySerializer().load(out / "arena.vmap")
        assert loaded.name == "arena"
        # 3 cubes + 2x2 bedrock + 3 rotated copies
        assert len(loaded) == 10
        assert 3 not in loaded.count_by_type()

    def test_reencode(self):
        """Test the re-encode mode."""
        json_path = JsonSerializer().serialize(sample_map(), self.dir, "sample")
        code = main([str(json_path), "--reencode", "-f", "binary"])
        assert code == 0
        assert (self.dir / "sample.vmap").exists()

    def test_batch(self):
        """Test converting a directory of scenes."""
        out = self.dir / "batch"
        code = main([
            "--batch", str(self.dir), "--palette", str(self.palette),
            "--output-dir", str(out),
        ])
        assert code == 0
        assert (out / "arena.json").exists()

    def test_errors(self):
        """Test failing runs return a non-zero status."""
        assert main([str(self.scene)]) == 1
        assert main([str(self.dir / "missing.json"), "--palette", str(self.palette)]) == 1

        bad_rules = self.dir / "bad.json"
        bad_rules.write_text(json.dumps({
            "copy_rules": [{"from": [0, 0, 0], "to": [1, 1, 1], "kind": "MirrorZ", "axis": "X"}]
        }))
        out = self.dir / "never"
        code = main([
            str(self.scene), "--palette", str(self.palette), "--rules", str(bad_rules),
            "--output-dir", str(out),
        ])
        assert code == 1
        assert not out.exists()


if __name__ == "__main__":
    unittest.main(verbosity=2)
