"""Unit tests for the analysis pipeline."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from nlptok import AnalysisPipeline, CharMap, CharMapNormalizer, InnerTokenization, UnigramSegmenter, Vocabulary
from nlptok.segmenter import SegmentedToken


@pytest.fixture
def vocab():
    return Vocabulary(["[UNK]", "[PAD]", "he", "llo", "wor", "ld", "the", "cat"])


@pytest.fixture
def pipeline(vocab):
    return AnalysisPipeline(UnigramSegmenter(vocab, "[UNK]"))


def test_positions_start_at_zero_and_increase(pipeline):
    """Positions begin at zero and grow by one per token."""
    for text in ["hello world", "the cat", "a b c d", "hello"]:
        result = pipeline.analyze(text)
        assert result.positions[0] == 0
        assert all(b >= a for a, b in zip(result.positions, result.positions[1:]))
        assert result.positions == list(range(len(result)))


def test_empty_text(pipeline):
    """Empty text yields no tokens."""
    result = pipeline.analyze("")
    assert len(result) == 0
    assert result.ids == []


def test_ids_match_tokens(pipeline):
    """ids mirrors the token list."""
    result = pipeline.analyze("hello world")
    assert result.ids == [2, 3, 4, 5]


def test_normalization_runs_first(vocab):
    """Text is normalized before segmentation."""
    charmap = CharMap.from_bytes(b"00A0\t0020\n0048\t0068\n")
    pipeline = AnalysisPipeline(UnigramSegmenter(vocab, "[UNK]"), CharMapNormalizer(charmap))
    result = pipeline.analyze("Hello\u00a0world")
    assert result.ids == [2, 3, 4, 5]
    # offsets point back into the original text
    assert [(t.start, t.end) for t in result.tokens] == [(0, 2), (2, 5), (6, 9), (9, 11)]


def test_empty_table_is_identity(vocab):
    """An empty table leaves text untouched."""
    pipeline = AnalysisPipeline(UnigramSegmenter(vocab, "[UNK]"), CharMapNormalizer(CharMap()))
    assert pipeline.normalizer is None
    assert pipeline.analyze("Hello").ids == [0, 3]


def test_offsets_skip_deleted_characters(vocab):
    """Offsets point into the original text after deletions."""
    charmap = CharMap.from_bytes(b"200B\t\n")
    pipeline = AnalysisPipeline(UnigramSegmenter(vocab, "[UNK]"), CharMapNormalizer(charmap))
    result = pipeline.analyze("he\u200bllo")
    assert result.ids == [2, 3]
    assert [(t.start, t.end) for t in result.tokens] == [(0, 2), (3, 6)]


def test_zero_increment_shares_position():
    """A zero increment repeats the previous position."""
    class GroupingSegmenter:
        def segment(self, text):
            return [
                SegmentedToken("a", 0, None, 0, 1),
                SegmentedToken("b", 0, None, 1, 2, position_increment=0),
                SegmentedToken("c", 0, None, 2, 3),
            ]

    result = AnalysisPipeline(GroupingSegmenter()).analyze("abc")
    assert result.positions == [0, 0, 1]


def test_mismatched_lengths_rejected():
    """Tokens and positions must line up."""
    with pytest.raises(ValueError):
        InnerTokenization([SegmentedToken("a", 0, None, 0, 1)], [])


def test_shared_pipeline_is_safe_across_threads(pipeline):
    """One pipeline gives the same output from many threads."""
    texts = ["hello world " * (i % 7 + 1) for i in range(200)]
    expected = [pipeline.analyze(t).ids for t in texts]
    with ThreadPoolExecutor(max_workers=8) as pool:
        actual = list(pool.map(lambda t: pipeline.analyze(t).ids, texts))
    assert actual == expected
