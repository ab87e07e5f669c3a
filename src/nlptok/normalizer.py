"""
Character remapping normalizer driven by a precompiled table.

A table is UTF-8 text with one rule per line::

    SRC<TAB>TGT

where each side is a space separated list of hexadecimal code points. An
empty target deletes the source string. Lines starting with ``#`` are
comments. Tables may be stored raw or base64 encoded.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from importlib import resources
from typing import Final

from .errors import ResourceLoadError

DEFAULT_RESOURCE: Final[str] = "charmap.tsv"
_RESOURCE_PACKAGE: Final[str] = "nlptok.resources"

log = logging.getLogger(__name__)


def _parse_codepoints(field: str) -> str:
    return "".join(chr(int(cp, 16)) for cp in field.split())


class CharMap:
    """Immutable source -> replacement table."""

    __slots__ = ("_rules", "_max_len")

    def __init__(self, rules: dict[str, str] | None = None) -> None:
        self._rules: dict[str, str] = dict(rules or {})
        self._max_len: int = max((len(src) for src in self._rules), default=0)

    def __len__(self) -> int:
        return len(self._rules)

    def __bool__(self) -> bool:
        return bool(self._rules)

    @property
    def max_source_length(self) -> int:
        return self._max_len

    def get(self, source: str) -> str | None:
        return self._rules.get(source)

    @classmethod
    def from_bytes(cls, data: bytes, *, resource: str | None = None) -> "CharMap":
        """
        Decode a raw table.

        :raises ResourceLoadError: If the table is not UTF-8 or a rule is malformed.
        """
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ResourceLoadError(
                "normalization table is not valid utf-8", resource=resource
            ) from e

        rules: dict[str, str] = {}
        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip() or line.lstrip().startswith("#"):
                continue
            # split from the left only, the target may be empty
            parts = line.split("\t", 1)
            if len(parts) != 2:
                raise ResourceLoadError(
                    f"normalization rule must be tab delimited at line {lineno}",
                    resource=resource,
                )
            try:
                src, tgt = _parse_codepoints(parts[0]), _parse_codepoints(parts[1])
            except ValueError as e:
                raise ResourceLoadError(
                    f"invalid code point at line {lineno}", resource=resource
                ) from e
            if not src:
                raise ResourceLoadError(
                    f"empty normalization source at line {lineno}", resource=resource
                )
            rules[src] = tgt

        return cls(rules)

    @classmethod
    def from_base64(cls, data: str | bytes, *, resource: str | None = None) -> "CharMap":
        """
        Decode a base64 encoded table.

        :raises ResourceLoadError: If the payload is not valid base64 or not a valid table.
        """
        try:
            raw = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ResourceLoadError(
                "normalization table is not valid base64", resource=resource
            ) from e
        return cls.from_bytes(raw, resource=resource)


def load_charmap(resource: str | None = None) -> CharMap:
    """
    Load a packaged normalization table.

    :param resource: File name inside ``nlptok.resources``; defaults to the
        bundled table. Names ending in ``.b64`` are base64 decoded.
    :raises ResourceLoadError: If the resource cannot be read or decoded.
    """
    name = resource or DEFAULT_RESOURCE
    try:
        data = resources.files(_RESOURCE_PACKAGE).joinpath(name).read_bytes()
    except OSError as e:
        raise ResourceLoadError(
            "unable to read normalization resource", resource=name
        ) from e

    if name.endswith(".b64"):
        charmap = CharMap.from_base64(data.strip(), resource=name)
    else:
        charmap = CharMap.from_bytes(data, resource=name)

    log.info(f"loaded normalization table {name} with {len(charmap)} rules")
    return charmap


@dataclass(frozen=True)
class NormalizedText:
    """Normalized text and, per normalized character, the original span it came from."""

    text: str
    starts: tuple[int, ...]
    ends: tuple[int, ...]
    original_length: int

    def original_span(self, start: int, end: int) -> tuple[int, int]:
        """Map the normalized span ``[start, end)`` back onto the original text."""
        if start >= end:
            # empty span: anchor at the next original character
            anchor = self.starts[start] if start < len(self.starts) else self.original_length
            return anchor, anchor
        return self.starts[start], self.ends[end - 1]


class CharMapNormalizer:
    """Applies a ``CharMap`` using longest-match replacement."""

    def __init__(self, charmap: CharMap) -> None:
        self.charmap = charmap

    def normalize(self, text: str) -> NormalizedText:
        """Normalize ``text`` and record the alignment back to ``text``."""
        out: list[str] = []
        starts: list[int] = []
        ends: list[int] = []
        max_len = self.charmap.max_source_length

        i = 0
        while i < len(text):
            replaced = False
            # longest source first
            for length in range(min(max_len, len(text) - i), 0, -1):
                target = self.charmap.get(text[i : i + length])
                if target is None:
                    continue
                out.append(target)
                starts.extend([i] * len(target))
                ends.extend([i + length] * len(target))
                i += length
                replaced = True
                break
            if not replaced:
                out.append(text[i])
                starts.append(i)
                ends.append(i + 1)
                i += 1

        return NormalizedText(
            text="".join(out),
            starts=tuple(starts),
            ends=tuple(ends),
            original_length=len(text),
        )


def identity(text: str) -> NormalizedText:
    """Alignment for text that is passed through unchanged."""
    idx = tuple(range(len(text)))
    return NormalizedText(
        text=text,
        starts=idx,
        ends=tuple(i + 1 for i in idx),
        original_length=len(text),
    )
