"""Exception taxonomy shared by the encoders and builders."""

from __future__ import annotations

from typing import Any, Iterable


class OlgaError(Exception):
    """Base class for codec failures."""


class ValidationError(OlgaError, ValueError):
    """Raised when a caller-supplied record is invalid.

    Every problem found in a single pass is kept in :attr:`errors` so callers
    can report them together.
    """

    def __init__(self, errors: Iterable[str] | str) -> None:
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "validation failed")


class InvalidAssetNameError(ValidationError):
    """Raised when an asset name cannot be mapped to an asset id."""


class InvalidAddressError(ValidationError):
    """Raised when an address cannot be converted to an output script."""


class CapacityError(OlgaError, ValueError):
    """Raised when a configured size or count ceiling is exceeded."""


class OutputLimitError(CapacityError):
    def __init__(self, required: int, limit: int) -> None:
        self.required = required
        self.limit = limit
        super().__init__(
            f"Payload needs {required} data outputs but the limit is {limit}; "
            "raise max_outputs or shrink the payload"
        )


class EnvelopeSizeError(CapacityError):
    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(
            f"OP_RETURN data is {size} bytes, exceeding the {limit} byte limit; "
            "shorten the description"
        )


class SelectionError(OlgaError, RuntimeError):
    """Raised when UTXO selection reports a failure."""

    def __init__(
        self, reason: str, message: str, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.details = dict(details or {})
