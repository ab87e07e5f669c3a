"""Tokenization settings."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Final

from .errors import ConfigurationError
from .vocab import CONTROL_TOKENS

DEFAULT_MAX_SEQUENCE_LENGTH: Final[int] = 512
# span value that disables windowing
NO_SPAN: Final[int] = -1


class Truncate(str, Enum):
    """What to do with inputs longer than the window when windowing is off."""

    FIRST = "first"
    SECOND = "second"
    BALANCED = "balanced"
    NONE = "none"

    @classmethod
    def get(cls, name: "str | Truncate") -> "Truncate":
        """Get truncate policy by name (case-insensitive)."""
        if isinstance(name, Truncate):
            return name
        try:
            return cls[name.upper()]
        except KeyError:
            raise ConfigurationError(
                f"unknown truncate policy: {name!r}. "
                f"Valid policies: {', '.join(t.value for t in cls)}"
            )


def list_truncate_policies() -> list[str]:
    """Return available truncate policy names."""
    return [t.value for t in Truncate]


@dataclass(frozen=True)
class TokenizationConfig:
    """
    Immutable tokenizer settings.

    ``never_split`` always contains the control token literals in addition
    to any caller supplied strings.
    """

    with_special_tokens: bool = True
    max_sequence_length: int = DEFAULT_MAX_SEQUENCE_LENGTH
    never_split: frozenset[str] = field(default=CONTROL_TOKENS)
    truncate: Truncate = Truncate.FIRST
    span: int = NO_SPAN

    def __post_init__(self) -> None:
        invalid: list[str] = []
        if not isinstance(self.with_special_tokens, bool):
            invalid.append(f"with_special_tokens={self.with_special_tokens!r}")
        if (
            isinstance(self.max_sequence_length, bool)
            or not isinstance(self.max_sequence_length, int)
            or self.max_sequence_length <= 0
        ):
            invalid.append(f"max_sequence_length={self.max_sequence_length!r}")
        if isinstance(self.span, bool) or not isinstance(self.span, int):
            invalid.append(f"span={self.span!r}")
        elif self.span != NO_SPAN and self.span <= 0:
            invalid.append(f"span={self.span!r}")
        if invalid:
            raise ConfigurationError("invalid tokenization settings", invalid_options=invalid)

        object.__setattr__(self, "truncate", Truncate.get(self.truncate))
        object.__setattr__(self, "never_split", frozenset(self.never_split) | CONTROL_TOKENS)

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> "TokenizationConfig":
        """
        Build settings from a mapping such as a parsed JSON model config.

        :raises ConfigurationError: On unknown keys (all of them are listed) or invalid values.
        """
        known = {"with_special_tokens", "max_sequence_length", "never_split", "truncate", "span"}
        unknown = set(options) - known
        if unknown:
            raise ConfigurationError("unknown tokenization options", invalid_options=unknown)

        kwargs = dict(options)
        if "never_split" in kwargs:
            kwargs["never_split"] = _as_literal_set(kwargs["never_split"])
        return cls(**kwargs)

    def with_changes(self, **changes: Any) -> "TokenizationConfig":
        """Return a copy with ``changes`` applied and validated."""
        if "never_split" in changes:
            changes["never_split"] = _as_literal_set(changes["never_split"])
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "with_special_tokens": self.with_special_tokens,
            "max_sequence_length": self.max_sequence_length,
            "never_split": sorted(self.never_split),
            "truncate": self.truncate.value,
            "span": self.span,
        }


def _as_literal_set(values: Iterable[str] | None) -> frozenset[str]:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        raise ConfigurationError("never_split must be a collection of strings, not a string")
    literals = frozenset(values)
    bad = [repr(v) for v in literals if not isinstance(v, str) or not v]
    if bad:
        raise ConfigurationError("never_split entries must be non-empty strings", invalid_options=bad)
    return literals
