from __future__ import annotations

import json

import pytest

from tests.manifests import EXAMPLE_MANIFEST
from vitebridge.domain.manifest import Chunk, Manifest, parse_manifest
from vitebridge.infrastructure.exceptions import ManifestParseError


class TestParseManifest:
    """Parsing the manifest written by vite build."""

    def test_parses_all_chunks(self):
        manifest = parse_manifest(EXAMPLE_MANIFEST)

        assert len(manifest) == 5
        bar = manifest["views/bar.js"]
        assert bar.file == "assets/bar-gkvgaI9m.js"
        assert bar.name == "bar"
        assert bar.is_entry is True
        assert bar.imports == ["_shared-B7PI925R.js"]
        assert bar.dynamic_imports == ["baz.js"]
        assert manifest["baz.js"].is_dynamic_entry is True

    def test_absent_fields_use_defaults(self):
        manifest = parse_manifest(b'{"_vendor.js": {"file": "assets/vendor.js"}}')
        chunk = manifest["_vendor.js"]

        assert chunk.src == ""
        assert chunk.css == []
        assert chunk.imports == []
        assert chunk.is_entry is False

    def test_null_fields_behave_as_absent(self):
        manifest = parse_manifest('{"a.js": {"file": "a.js", "css": null, "imports": null, "isEntry": null}}')

        assert manifest["a.js"].css == []
        assert manifest["a.js"].imports == []
        assert manifest["a.js"].is_entry is False

    def test_unknown_fields_are_ignored(self):
        manifest = parse_manifest('{"a.js": {"file": "a.js", "assets": ["logo.svg"], "isEntry": true}}')

        assert manifest["a.js"].is_entry is True

    def test_empty_manifest(self):
        manifest = parse_manifest("{}")

        assert len(manifest) == 0
        assert manifest.get_entry_point() is None
        assert manifest.get_entry_points() == []

    @pytest.mark.parametrize(
        "data",
        [
            "not json",
            "{",
            "[]",
            '{"a.js": "assets/a.js"}',
            '{"a.js": {"css": "assets/a.css"}}',
            '{"a.js": {"imports": [1, 2]}}',
        ],
    )
    def test_malformed_manifest_raises_parse_error(self, data):
        with pytest.raises(ManifestParseError) as exc_info:
            parse_manifest(data, path=".vite/manifest.json")

        assert "parse manifest" in str(exc_info.value)
        assert exc_info.value.path == ".vite/manifest.json"


class TestEntryPoints:
    def test_get_entry_points_returns_only_entries(self):
        manifest = parse_manifest(EXAMPLE_MANIFEST)

        assert [chunk.src for chunk in manifest.get_entry_points()] == ["views/bar.js", "views/foo.js"]

    def test_entry_points_independent_of_key_order(self):
        original = json.loads(EXAMPLE_MANIFEST)
        reordered = dict(reversed(list(original.items())))

        first = {chunk.src for chunk in parse_manifest(EXAMPLE_MANIFEST).get_entry_points()}
        second = {chunk.src for chunk in parse_manifest(json.dumps(reordered)).get_entry_points()}
        expected = {value["src"] for value in original.values() if value.get("isEntry")}

        assert first == second == expected

    def test_get_entry_point_returns_an_entry(self):
        manifest = parse_manifest(EXAMPLE_MANIFEST)

        assert manifest.get_entry_point() in manifest.get_entry_points()

    def test_find_entry_matches_src_of_entries_only(self):
        manifest = parse_manifest(EXAMPLE_MANIFEST)

        assert manifest.find_entry("views/foo.js").file == "assets/foo-BRBmoGS9.js"
        assert manifest.find_entry("baz.js") is None
        assert manifest.find_entry("views/missing.js") is None

    def test_get_chunk(self):
        manifest = parse_manifest(EXAMPLE_MANIFEST)

        assert manifest.get_chunk("baz.js").name == "baz"
        assert manifest.get_chunk("nope.js") is None


def test_manifest_is_read_only():
    manifest = Manifest({"a.js": Chunk(file="a.js", is_entry=True)})

    with pytest.raises(TypeError):
        manifest["b.js"] = Chunk(file="b.js")  # type: ignore[index]
    with pytest.raises(Exception):
        manifest["a.js"].file = "other.js"  # type: ignore[misc]
