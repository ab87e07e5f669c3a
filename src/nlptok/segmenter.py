"""Unigram subword segmentation over a scored vocabulary."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Final

import regex as re

from .types import Score, TokenId
from .vocab import Vocabulary

# sentencepiece penalty applied below the lowest piece score for unknown characters
UNK_PENALTY: Final[float] = 10.0

# whitespace is dropped, each punctuation character is its own word
_WORD_PATTERN: Final[str] = r"\p{P}|[^\s\p{P}]+"

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SegmentedToken:
    """One piece emitted by the segmenter, offsets are into the segmented text."""

    text: str
    id: TokenId
    score: Score | None
    start: int
    end: int
    position_increment: int = 1


class UnigramSegmenter:
    """
    Splits text into the highest scoring sequence of vocabulary pieces.

    Never-split literals are cut out first and emitted whole. The rest of
    the text is split on whitespace and punctuation, and every word is
    parsed independently. The score of a parse is the sum of its piece
    scores; among equal scores the parse that takes the longest piece at
    the leftmost position wins. Characters no piece covers become the
    unknown token, consecutive unknown characters are merged.

    The segmenter holds only immutable tables, each call works on local
    state.
    """

    def __init__(
        self,
        vocab: Vocabulary,
        unknown_token: str,
        never_split: Iterable[str] = (),
        word_prefix: str = "",
    ) -> None:
        unk_id = vocab.get(unknown_token)
        if unk_id is None:
            raise ValueError(f"unknown token {unknown_token!r} is not in the vocabulary")

        self.vocab = vocab
        self.unknown_token = unknown_token
        self.unk_id: TokenId = unk_id
        self.word_prefix = word_prefix
        self.never_split: frozenset[str] = frozenset(s for s in never_split if s)

        scores = vocab.scores()
        self.unk_score: Score = (min(scores) if scores else 0.0) - UNK_PENALTY
        self.max_piece_len: int = max((len(tok) for tok in vocab.to_list()), default=1)

        # longest literal first so that overlapping literals prefer the longer match
        literals = sorted(self.never_split, key=lambda s: (-len(s), s))
        self._never_split_pat: re.Pattern[str] | None = (
            re.compile("(" + "|".join(re.escape(lit) for lit in literals) + ")")
            if literals
            else None
        )
        self._word_pat: re.Pattern[str] = re.compile(_WORD_PATTERN)

    def segment(self, text: str) -> list[SegmentedToken]:
        """Segment ``text`` into scored vocabulary pieces."""
        tokens: list[SegmentedToken] = []
        for start, end, is_literal in self._split_never_split(text):
            if is_literal:
                tokens.append(self._literal_token(text[start:end], start, end))
                continue
            for m in self._word_pat.finditer(text, start, end):
                tokens.extend(self._segment_word(m.group(0), m.start()))
        return tokens

    def _split_never_split(self, text: str) -> list[tuple[int, int, bool]]:
        """Return ``(start, end, is_literal)`` spans covering ``text``."""
        if self._never_split_pat is None:
            return [(0, len(text), False)]

        spans: list[tuple[int, int, bool]] = []
        pos = 0
        for m in self._never_split_pat.finditer(text):
            if m.start() > pos:
                spans.append((pos, m.start(), False))
            spans.append((m.start(), m.end(), True))
            pos = m.end()
        if pos < len(text):
            spans.append((pos, len(text), False))
        return spans

    def _literal_token(self, literal: str, start: int, end: int) -> SegmentedToken:
        token_id = self.vocab.get(literal)
        if token_id is None:
            return SegmentedToken(literal, self.unk_id, None, start, end)
        return SegmentedToken(literal, token_id, self.vocab.score_of(token_id), start, end)

    def _segment_word(self, word: str, offset: int) -> list[SegmentedToken]:
        """Best parse of one whitespace/punctuation delimited word."""
        # the prefix marker is part of the first piece but covers no input text
        prefix_len = len(self.word_prefix)
        chars = self.word_prefix + word
        n = len(chars)

        # best[i] is the best score of chars[i:], choice[i] the piece length taken at i;
        # a length of -1 marks an unknown character
        best: list[Score] = [0.0] * (n + 1)
        choice: list[int] = [0] * n
        for i in range(n - 1, -1, -1):
            best_score: Score | None = None
            best_len = -1
            # longest piece first, strict comparison keeps the longest on ties
            for length in range(min(self.max_piece_len, n - i), 0, -1):
                token_id = self.vocab.get(chars[i : i + length])
                if token_id is None:
                    continue
                score = self.vocab.score_of(token_id) + best[i + length]
                if best_score is None or score > best_score:
                    best_score, best_len = score, length
            if best_score is None:
                best_score = self.unk_score + best[i + 1]
            choice[i] = best_len
            best[i] = best_score

        pieces: list[SegmentedToken] = []
        unk_start: int | None = None
        i = 0
        while i < n:
            length = choice[i]
            if length == -1:
                if unk_start is None:
                    unk_start = i
                i += 1
                continue
            if unk_start is not None:
                pieces.append(self._unknown(chars, unk_start, i, offset, prefix_len))
                unk_start = None
            piece = chars[i : i + length]
            token_id = self.vocab.get(piece)
            assert token_id is not None
            pieces.append(
                SegmentedToken(
                    piece,
                    token_id,
                    self.vocab.score_of(token_id),
                    offset + max(i - prefix_len, 0),
                    offset + max(i + length - prefix_len, 0),
                )
            )
            i += length
        if unk_start is not None:
            pieces.append(self._unknown(chars, unk_start, n, offset, prefix_len))
        return pieces

    def _unknown(
        self, chars: str, start: int, end: int, offset: int, prefix_len: int
    ) -> SegmentedToken:
        return SegmentedToken(
            chars[start:end],
            self.unk_id,
            None,
            offset + max(start - prefix_len, 0),
            offset + max(end - prefix_len, 0),
        )
