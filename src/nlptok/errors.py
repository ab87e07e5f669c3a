"""Custom exception hierarchy for nlptok tokenization errors."""

from collections.abc import Iterable


class NlpTokError(Exception):
    """Base exception for all nlptok errors."""


class ConfigurationError(NlpTokError):
    """Raised when a tokenizer cannot be built from the supplied vocabulary or settings."""

    def __init__(
        self,
        message: str,
        *,
        missing_tokens: Iterable[str] | None = None,
        invalid_options: Iterable[str] | None = None,
    ) -> None:
        """Initialize with optional missing tokens and invalid options that get appended to the message."""
        missing = sorted(set(missing_tokens)) if missing_tokens else []
        invalid = sorted(set(invalid_options)) if invalid_options else []
        extra = " "
        if missing:
            extra += f"(missing: {', '.join(missing)}) "
        if invalid:
            extra += f"(invalid: {', '.join(invalid)}) "
        super().__init__((message + extra).rstrip())
        self.missing_tokens = missing
        self.invalid_options = invalid


class ResourceLoadError(NlpTokError):
    """Raised when a packaged resource or vocabulary file cannot be read or decoded."""

    def __init__(self, message: str, *, resource: str | None = None) -> None:
        extra = " "
        if resource:
            extra += f"(resource: {resource}) "
        super().__init__((message + extra).rstrip())
        self.resource = resource


class InputTooLongError(NlpTokError):
    """Raised when an input exceeds the window size and may be neither truncated nor chunked."""

    def __init__(
        self,
        message: str,
        *,
        num_tokens: int,
        max_length: int,
        sequence_id: int | None = None,
    ) -> None:
        extra = f" (tokens: {num_tokens}) (max: {max_length})"
        if sequence_id is not None:
            extra += f" (sequence: {sequence_id})"
        super().__init__(message + extra)
        self.num_tokens = num_tokens
        self.max_length = max_length
        self.sequence_id = sequence_id


class VocabularyError(NlpTokError):
    """Raised when vocabulary lookups fail."""

    def __init__(self, message: str, *, invalid_id: int | None = None) -> None:
        extra = " "
        # decoding: id not in vocab
        if invalid_id is not None:
            extra += f"(invalid id: {invalid_id}) "
        super().__init__((message + extra).rstrip())
        self.invalid_id = invalid_id


class SpecialTokenError(NlpTokError):
    """Raised when a special token is requested but not configured."""

    def __init__(self, message: str, *, kind: str | None = None) -> None:
        if kind:
            message = f"{message} (kind: {kind})"
        super().__init__(message)
        self.kind = kind
