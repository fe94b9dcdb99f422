"""Tests for manifest parsing and snapshots."""

from __future__ import annotations

from pathlib import Path

from sitedeploy.deploy.snapshot import (
    ManifestLocation,
    Snapshot,
    parse_manifest,
    read_manifest,
    remote_key,
    serialize_manifest,
    write_manifest,
)


def test_parse_manifest_reads_sha1sum_output():
    raw = (
        "da39a3ee5e6b4b0d3255bfef95601890afd80709  ./css/a.css\n"
        "2fd4e1c67a2d28fced849ee1bb76e7391b93eb12  ./index.html\n"
    )

    snapshot = parse_manifest(raw)

    assert dict(snapshot) == {
        "./css/a.css": "da39a3ee5e6b4b0d3255bfef95601890afd80709",
        "./index.html": "2fd4e1c67a2d28fced849ee1bb76e7391b93eb12",
    }


def test_parse_manifest_drops_malformed_lines():
    raw = "h1  ./a.css\nno-separator-here\n  ./missing-hash\nh2 ./single-space\r\nh3  ./b.js\r\n"

    snapshot = parse_manifest(raw)

    assert dict(snapshot) == {"./a.css": "h1", "./b.js": "h3"}


def test_parse_manifest_keeps_spaces_inside_paths():
    snapshot = parse_manifest(b"h1  ./my  file.txt\n")

    assert snapshot["./my  file.txt"] == "h1"


def test_parse_manifest_empty_input_is_empty_snapshot():
    assert len(parse_manifest("")) == 0
    assert len(parse_manifest(None)) == 0
    assert len(parse_manifest(b"")) == 0


def test_snapshot_compares_against_plain_mappings():
    snapshot = Snapshot({"./a.css": "h1"})

    assert snapshot == {"./a.css": "h1"}
    assert snapshot.paths == frozenset({"./a.css"})
    assert hash(snapshot) == hash(Snapshot([("./a.css", "h1")]))


def test_serialize_manifest_sorts_by_path():
    text = serialize_manifest({"./b.js": "h2", "./a.css": "h1"})

    assert text == "h1  ./a.css\nh2  ./b.js\n"
    assert parse_manifest(text) == {"./a.css": "h1", "./b.js": "h2"}


def test_read_manifest_missing_file_is_empty(tmp_path: Path):
    assert len(read_manifest(tmp_path / "nope.txt")) == 0


def test_write_manifest_creates_parent(tmp_path: Path):
    target = ManifestLocation().local_path(tmp_path)

    write_manifest({"./a.css": "h1"}, target)

    assert target == tmp_path / ".metadata" / "checksums.txt"
    assert read_manifest(target) == {"./a.css": "h1"}


def test_remote_key_strips_dot_slash():
    assert remote_key("./css/a.css") == "css/a.css"
    assert remote_key(".metadata/checksums.txt") == ".metadata/checksums.txt"
    assert ManifestLocation("meta", "sums.txt").key == "meta/sums.txt"


def test_parse_manifest_drops_broken_line_between_valid_entries():
    snapshot = parse_manifest("abcd1234  ./x.html\nbroken-line\nef56  ./y.css\n")

    assert dict(snapshot) == {"./x.html": "abcd1234", "./y.css": "ef56"}
