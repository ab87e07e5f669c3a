"""Unit tests for the character map normalizer and resource loading."""

import base64

import pytest

from nlptok import CharMap, CharMapNormalizer, ResourceLoadError, load_charmap


def normalizer(table: bytes) -> CharMapNormalizer:
    return CharMapNormalizer(CharMap.from_bytes(table))


# Table decoding
# ---------------------------------------------------------------------------


def test_parse_rules_and_comments():
    """Comments and blank lines are skipped."""
    charmap = CharMap.from_bytes(b"# comment\n\n00A0\t0020\n0061 0062\t0063\n")
    assert len(charmap) == 2
    assert charmap.get("\u00a0") == " "
    assert charmap.get("ab") == "c"
    assert charmap.max_source_length == 2


def test_empty_table_is_falsy():
    """An empty table is falsy."""
    assert not CharMap.from_bytes(b"")
    assert not CharMap()


def test_base64_table():
    """Base64 tables decode like plain ones."""
    payload = base64.b64encode(b"00A0\t0020\n")
    assert CharMap.from_base64(payload).get("\u00a0") == " "


@pytest.mark.parametrize(
    "table",
    [b"\xff\xfe", b"zz\t0020\n", b"00A0 0020\n", b"\t0020\n"],
    ids=["not-utf8", "bad-hex", "no-tab", "empty-source"],
)
def test_corrupt_table_raises(table):
    """Malformed rules raise ResourceLoadError."""
    with pytest.raises(ResourceLoadError):
        CharMap.from_bytes(table)


def test_invalid_base64_raises():
    """Invalid base64 raises with the cause attached."""
    with pytest.raises(ResourceLoadError) as exc:
        CharMap.from_base64("not base64!!")
    assert exc.value.__cause__ is not None


def test_packaged_table_loads():
    """The packaged table has rules."""
    charmap = load_charmap()
    assert len(charmap) > 0
    assert charmap.get("\u00a0") == " "
    assert charmap.get("\u200b") == ""


def test_missing_resource_raises():
    """A missing resource names the file."""
    with pytest.raises(ResourceLoadError, match="missing.tsv"):
        load_charmap("missing.tsv")


# Normalization
# ---------------------------------------------------------------------------


def test_replacement():
    """Mapped characters are replaced."""
    out = normalizer(b"00A0\t0020\n").normalize("a\u00a0b")
    assert out.text == "a b"
    assert out.original_span(0, 3) == (0, 3)


def test_deletion_keeps_alignment():
    """Deleted characters keep offsets aligned."""
    out = normalizer(b"200B\t\n").normalize("a\u200bb")
    assert out.text == "ab"
    assert out.starts == (0, 2)
    assert out.original_span(1, 2) == (2, 3)


def test_expansion_maps_to_source_span():
    """Expanded characters map back to their source."""
    out = normalizer(b"2026\t002E 002E 002E\n").normalize("x\u2026")
    assert out.text == "x..."
    assert out.original_span(1, 4) == (1, 2)
    assert out.original_span(0, 1) == (0, 1)


def test_longest_match_wins():
    """The longest source sequence wins."""
    out = normalizer(b"0061\t0078\n0061 0062\t0063\n").normalize("aba")
    assert out.text == "cx"


def test_identity_for_unmapped_text():
    """Unmapped text passes through."""
    out = normalizer(b"00A0\t0020\n").normalize("hello")
    assert out.text == "hello"
    assert out.original_span(1, 3) == (1, 3)
