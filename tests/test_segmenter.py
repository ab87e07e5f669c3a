"""Unit tests for unigram segmentation."""

import pytest

from nlptok import UnigramSegmenter, Vocabulary


def segmenter(pieces: dict[str, float], never_split=(), word_prefix="") -> UnigramSegmenter:
    tokens = ["[UNK]", "[PAD]"] + list(pieces)
    scores = [0.0, 0.0] + list(pieces.values())
    return UnigramSegmenter(Vocabulary(tokens, scores), "[UNK]", never_split, word_prefix)


def texts(tokens) -> list[str]:
    return [tok.text for tok in tokens]


# Best parse
# ---------------------------------------------------------------------------


def test_hello_segments_into_known_pieces():
    """hello splits into he + llo."""
    seg = segmenter({"he": 0.0, "llo": 0.0})
    tokens = seg.segment("hello")
    assert texts(tokens) == ["he", "llo"]
    assert [tok.id for tok in tokens] == [2, 3]
    assert [(tok.start, tok.end) for tok in tokens] == [(0, 2), (2, 5)]


def test_highest_score_wins():
    """The best scoring split wins."""
    seg = segmenter({"a": -1.0, "bc": -1.0, "ab": -1.0, "c": -1.0, "abc": -1.5})
    assert texts(seg.segment("abc")) == ["abc"]


def test_ties_prefer_leftmost_longest():
    """Ties prefer the longest leftmost piece."""
    seg = segmenter({"a": -1.0, "bc": -1.0, "ab": -1.0, "c": -1.0})
    assert texts(seg.segment("abc")) == ["ab", "c"]


def test_scores_are_passed_through():
    """Piece scores come from the vocabulary."""
    seg = segmenter({"he": -0.25, "llo": -3.5})
    assert [tok.score for tok in seg.segment("hello")] == [-0.25, -3.5]


# Unknown characters
# ---------------------------------------------------------------------------


def test_unknown_run_is_merged():
    """Consecutive unknown characters form one token."""
    seg = segmenter({"a": -1.0})
    tokens = seg.segment("axyz")
    assert texts(tokens) == ["a", "xyz"]
    assert tokens[1].id == seg.unk_id == 0
    assert tokens[1].score is None
    assert (tokens[1].start, tokens[1].end) == (1, 4)


def test_every_id_is_in_range_or_unknown():
    """Every id is a valid vocabulary index."""
    seg = segmenter({"he": 0.0, "llo": 0.0, "wor": -1.0, "ld": -1.0})
    for tok in seg.segment("hello world, qq!"):
        assert 0 <= tok.id < 6


def test_unknown_token_must_exist():
    """The unknown token must be in the vocabulary."""
    with pytest.raises(ValueError):
        UnigramSegmenter(Vocabulary(["[PAD]"]), "[UNK]")


# Pre-splitting
# ---------------------------------------------------------------------------


def test_whitespace_and_punctuation_split():
    """Whitespace separates words and punctuation stands alone."""
    seg = segmenter({"he": 0.0, "llo": 0.0, ",": 0.0})
    tokens = seg.segment("  hello,\thello ")
    assert texts(tokens) == ["he", "llo", ",", "he", "llo"]
    assert (tokens[2].start, tokens[2].end) == (7, 8)
    assert tokens[3].start == 9


def test_empty_text():
    """Empty text yields no tokens."""
    assert segmenter({"a": 0.0}).segment("") == []
    assert segmenter({"a": 0.0}).segment("   ") == []


# Never-split literals
# ---------------------------------------------------------------------------


def test_never_split_literal_is_atomic():
    """Never-split literals are emitted whole."""
    seg = segmenter({"he": 0.0, "llo": 0.0, "[CLS]": 0.0}, never_split={"[CLS]"})
    tokens = seg.segment("hello[CLS]hello")
    assert texts(tokens) == ["he", "llo", "[CLS]", "he", "llo"]
    assert tokens[2].id == 4
    assert (tokens[2].start, tokens[2].end) == (5, 10)


def test_never_split_literal_outside_vocab_is_unknown():
    """Unknown never-split literals map to [UNK]."""
    seg = segmenter({"c": 0.0}, never_split={"c++"})
    tokens = seg.segment("c c++")
    assert texts(tokens) == ["c", "c++"]
    assert tokens[1].id == seg.unk_id


def test_longer_literal_preferred():
    """Overlapping literals match longest first."""
    seg = segmenter({"<a>": 0.0, "<a><b>": 0.0}, never_split={"<a>", "<a><b>"})
    assert texts(seg.segment("<a><b><a>")) == ["<a><b>", "<a>"]


# Word prefix
# ---------------------------------------------------------------------------


def test_word_prefix_is_part_of_first_piece():
    """The word prefix attaches to the first piece."""
    seg = segmenter({"▁he": 0.0, "llo": 0.0, "▁wor": 0.0, "ld": 0.0}, word_prefix="▁")
    tokens = seg.segment("hello world")
    assert texts(tokens) == ["▁he", "llo", "▁wor", "ld"]
    assert [(tok.start, tok.end) for tok in tokens] == [(0, 2), (2, 5), (6, 9), (9, 11)]
