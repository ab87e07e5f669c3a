"""
Analysis pipeline: normalization followed by segmentation with position tracking.
"""

import logging
from dataclasses import dataclass, field

from .normalizer import CharMapNormalizer, identity
from .segmenter import SegmentedToken, UnigramSegmenter
from .types import Position, TokenId

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class InnerTokenization:
    """Tokens of one input string with their position indices."""

    tokens: list[SegmentedToken] = field(default_factory=list)
    positions: list[Position] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.tokens) != len(self.positions):
            raise ValueError(
                f"tokens and positions differ in length ({len(self.tokens)} != {len(self.positions)})"
            )

    def __len__(self) -> int:
        return len(self.tokens)

    @property
    def ids(self) -> list[TokenId]:
        return [tok.id for tok in self.tokens]


class AnalysisPipeline:
    """
    Feeds raw text through normalization then segmentation.

    The pipeline keeps no per-call fields: ``analyze`` builds every
    intermediate value locally and returns a new ``InnerTokenization``, so
    a single instance can serve concurrent callers.
    """

    def __init__(
        self,
        segmenter: UnigramSegmenter,
        normalizer: CharMapNormalizer | None = None,
    ) -> None:
        self.segmenter = segmenter
        # an empty table is the identity normalization
        self.normalizer = normalizer if normalizer is not None and normalizer.charmap else None

    def analyze(self, text: str) -> InnerTokenization:
        """Tokenize ``text``; token offsets refer to ``text`` itself."""
        normalized = self.normalizer.normalize(text) if self.normalizer else identity(text)

        segmented = self.segmenter.segment(normalized.text)

        tokens: list[SegmentedToken] = []
        positions: list[Position] = []
        curr_pos = 0
        for tok in segmented:
            # the first token is always at position 0
            if positions:
                curr_pos += tok.position_increment
            positions.append(curr_pos)
            start, end = normalized.original_span(tok.start, tok.end)
            tokens.append(
                SegmentedToken(
                    tok.text, tok.id, tok.score, start, end, tok.position_increment
                )
            )

        log.debug(f"analyzed {len(text)} chars into {len(tokens)} tokens")
        return InnerTokenization(tokens, positions)
