"""Exception types raised by the question-pair pipeline."""
from __future__ import annotations

from typing import Iterable


class QuestionDupError(Exception):
    """Base class for all pipeline errors."""


class InvalidInputError(QuestionDupError, TypeError):
    """Raised when the tokenizer receives something other than a string."""


class SchemaMismatchError(QuestionDupError, ValueError):
    """Raised when feature streams or matrices do not line up by key or column."""

    def __init__(self, message: str, keys: Iterable = ()) -> None:
        self.keys = list(keys)
        if self.keys:
            preview = ", ".join(str(k) for k in self.keys[:10])
            more = f" (+{len(self.keys) - 10} more)" if len(self.keys) > 10 else ""
            message = f"{message}: {preview}{more}"
        super().__init__(message)


class ConfigError(QuestionDupError, ValueError):
    """Raised for malformed pipeline configuration."""
