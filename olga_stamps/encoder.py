"""SRC-20 encoder mapping token operations to transaction outputs."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .assembler import assemble_outputs
from .chunking import embed_payload
from .config import load_encoding_options
from .diagnostics import Diagnostics
from .fees import estimate_transaction_size
from .model import (
    EmbeddedOutput,
    EncodingOptions,
    NormalizedRecord,
    OperationKind,
    SerializedPayload,
    TokenOperation,
    TxOutput,
)
from .serializer import normalize, serialize
from .validation import validate_operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncodingResult:
    """Outputs and payload details for one encoded operation."""

    kind: OperationKind
    record: NormalizedRecord
    payload: SerializedPayload
    data_outputs: list[EmbeddedOutput]
    outputs: list[TxOutput]

    @property
    def total_size(self) -> int:
        return len(self.payload.data)

    @property
    def compressed(self) -> bool:
        return self.payload.compressed

    @property
    def json_data(self) -> str:
        return self.payload.json_text

    @property
    def estimated_tx_size(self) -> int:
        return estimate_transaction_size(len(self.data_outputs))

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "json_data": self.json_data,
            "total_size": self.total_size,
            "compressed": self.compressed,
            "estimated_tx_size": self.estimated_tx_size,
            "outputs": [output.to_dict() for output in self.outputs],
        }


class SRC20Encoder:
    """Encode SRC-20 operations into ordered transaction outputs.

    Encoding is pure: it performs no I/O and keeps no state between calls,
    so one instance may be shared across threads.
    """

    def __init__(self, options: EncodingOptions | None = None) -> None:
        self.options = options or EncodingOptions.default()

    @classmethod
    def from_config(cls, **kwargs: Any) -> "SRC20Encoder":
        """Build an encoder from ``~/.olga_stamps.yaml`` and ``OLGA_*`` variables.

        Keyword arguments are passed to :func:`~olga_stamps.config.load_encoding_options`.
        """

        return cls(load_encoding_options(**kwargs))

    def validate(self, operation: TokenOperation | Mapping[str, Any]) -> list[str]:
        return validate_operation(operation)

    def encode(
        self,
        operation: TokenOperation | Mapping[str, Any],
        *,
        options: EncodingOptions | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> EncodingResult:
        """Validate, serialize, embed and order the outputs for *operation*.

        Raises :class:`~olga_stamps.errors.ValidationError` for invalid
        records and :class:`~olga_stamps.errors.OutputLimitError` when the
        payload needs more outputs than allowed.
        """

        options = options or self.options
        record = normalize(operation, diagnostics)
        kind = record.kind
        if kind is None:  # pragma: no cover - normalize() rejects unknown operations
            raise TypeError(f"Unsupported operation: {record.get('op')!r}")

        payload = serialize(record, options, diagnostics)
        data_outputs = embed_payload(payload.data, options.dust_value, options.max_outputs)
        outputs = assemble_outputs(kind, data_outputs, options)
        logger.info(
            "Encoded SRC-20 %s %s: %d bytes, %d data outputs, compressed=%s",
            kind.value,
            record.get("tick"),
            len(payload.data),
            len(data_outputs),
            payload.compressed,
        )
        return EncodingResult(
            kind=kind,
            record=record,
            payload=payload,
            data_outputs=data_outputs,
            outputs=outputs,
        )

    def encode_smallest(
        self,
        operation: TokenOperation | Mapping[str, Any],
        *,
        diagnostics: Diagnostics | None = None,
    ) -> EncodingResult:
        """Encode with and without compression and keep the one with fewer outputs."""

        plain = self.encode(
            operation,
            options=self.options.with_overrides(use_compression=False),
            diagnostics=diagnostics,
        )
        compressed = self.encode(
            operation,
            options=self.options.with_overrides(use_compression=True, compression_threshold=0),
            diagnostics=diagnostics,
        )
        if len(compressed.data_outputs) < len(plain.data_outputs):
            return compressed
        return plain


def encode_src20(
    operation: TokenOperation | Mapping[str, Any],
    options: EncodingOptions | None = None,
    diagnostics: Diagnostics | None = None,
) -> EncodingResult:
    return SRC20Encoder(options).encode(operation, diagnostics=diagnostics)
