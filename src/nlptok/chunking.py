"""Window sizing and splitting of long token sequences into overlapping chunks."""

import logging
from collections.abc import Sequence
from typing import Final

from .errors import ConfigurationError
from .types import Position, Span

# [CLS] seq [SEP]
SINGLE_SEQUENCE_EXTRA_TOKENS: Final[int] = 2
# [CLS] seq1 [SEP] seq2 [SEP]
SEQUENCE_PAIR_EXTRA_TOKENS: Final[int] = 3

log = logging.getLogger(__name__)


def num_extra_tokens(with_special_tokens: bool, *, pair: bool = False) -> int:
    """Number of slots special tokens take up in one window."""
    if not with_special_tokens:
        return 0
    return SEQUENCE_PAIR_EXTRA_TOKENS if pair else SINGLE_SEQUENCE_EXTRA_TOKENS


class ChunkPlanner:
    """
    Plans overlapping windows over a token sequence.

    Each window holds ``max_window_size - extra_tokens`` content tokens. The
    default span is half of that, so every window after the first repeats
    the last ``span`` tokens of its predecessor and no token is dropped.
    """

    def __init__(self, max_window_size: int, extra_tokens: int) -> None:
        """
        :raises ConfigurationError: If the window leaves no room for a positive span.
        """
        if max_window_size <= extra_tokens:
            raise ConfigurationError(
                f"window size [{max_window_size}] must be greater than the "
                f"number of special tokens [{extra_tokens}]"
            )
        self.max_window_size = max_window_size
        self.extra_tokens = extra_tokens
        self.window_content_size = max_window_size - extra_tokens
        self.default_span = self.window_content_size // 2
        if self.default_span <= 0:
            raise ConfigurationError(
                f"window size [{max_window_size}] is too small to chunk with "
                f"[{extra_tokens}] special tokens"
            )

    def validate_span(self, span: int) -> None:
        """
        :raises ConfigurationError: If ``span`` is not in ``(0, window content size)``.
        """
        if not 0 < span < self.window_content_size:
            raise ConfigurationError(
                f"span [{span}] must be positive and less than the window content "
                f"size [{self.window_content_size}]"
            )

    def plan(self, positions: Sequence[Position], span: int | None = None) -> list[Span]:
        """
        Split a sequence into ``(start, end)`` windows.

        A window that is not the last one never ends between two tokens that
        share a position, and the next window never starts between them.
        Each window keeps at least one token so planning always progresses.

        :param positions: Position index of every content token.
        :param span: Overlap between consecutive windows; defaults to ``default_span``.
        """
        span = self.default_span if span is None else span
        self.validate_span(span)

        n = len(positions)
        if n <= self.window_content_size:
            return [(0, n)]

        windows: list[Span] = []
        start = 0
        while True:
            end = min(start + self.window_content_size, n)
            if end < n:
                while end > start + 1 and positions[end] == positions[end - 1]:
                    end -= 1
            windows.append((start, end))
            if end >= n:
                break

            next_start = max(end - span, start + 1)
            while next_start < end and positions[next_start] == positions[next_start - 1]:
                next_start += 1
            start = next_start

        log.debug(f"planned {len(windows)} windows over {n} tokens (span {span})")
        return windows
