"""Bitcoin Stamps: file data in embedded outputs plus a Counterparty issuance.

Output order is the OP_RETURN issuance first, followed by the data outputs.
Stamp data is framed exactly like SRC-20 payloads but never compressed or
tagged.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .asset_id import MAX_NUMERIC_ASSET_ID, MIN_NUMERIC_ASSET_ID
from .assembler import order_outputs
from .chunking import embed_payload, extract_payload
from .config import load_encoding_options
from .diagnostics import Diagnostics
from .errors import CapacityError, ValidationError
from .issuance import (
    IssuanceMessage,
    build_issuance_message,
    build_issuance_output,
    decode_tx,
    unwrap_envelope,
)
from .model import EmbeddedOutput, EncodingOptions, TxOutput

logger = logging.getLogger(__name__)

STAMP_MAX_SIZE = 100_000
STAMP_DESCRIPTION_PREFIX = "stamp:"

_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "PNG"),
    (b"GIF87a", "GIF"),
    (b"GIF89a", "GIF"),
    (b"\xff\xd8\xff", "JPEG"),
)


def detect_format(data: bytes) -> str:
    """Guess the file format of *data* from its magic bytes."""

    for signature, name in _SIGNATURES:
        if data.startswith(signature):
            return name
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "WEBP"
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return "UNKNOWN"
    stripped = text.strip()
    if stripped[:1] in ("{", "["):
        return "JSON"
    return "TEXT" if text else "UNKNOWN"


def default_cpid(funding_txid: str) -> str:
    """Derive a deterministic numeric asset name from the funding txid."""

    digest = int.from_bytes(hashlib.sha256(funding_txid.encode("ascii")).digest(), "big")
    span = MAX_NUMERIC_ASSET_ID - MIN_NUMERIC_ASSET_ID + 1
    return f"A{MIN_NUMERIC_ASSET_ID + digest % span}"


@dataclass(frozen=True)
class StampEncodingResult:
    cpid: str
    format: str
    message: IssuanceMessage
    issuance_output: TxOutput
    data_outputs: list[EmbeddedOutput]
    outputs: list[TxOutput]

    @property
    def data_size(self) -> int:
        return sum(len(output.script) - 2 for output in self.data_outputs)


@dataclass(frozen=True)
class DecodedStamp:
    message: IssuanceMessage
    data: bytes
    format: str

    @property
    def asset(self) -> str:
        return self.message.asset_name

    @property
    def filename(self) -> str | None:
        description = self.message.description or ""
        if description.lower().startswith(STAMP_DESCRIPTION_PREFIX):
            return description[len(STAMP_DESCRIPTION_PREFIX) :] or None
        return None


class StampEncoder:
    """Build the outputs for a stamp issuance."""

    def __init__(self, options: EncodingOptions | None = None) -> None:
        self.options = options or EncodingOptions.default()

    @classmethod
    def from_config(cls, **kwargs: Any) -> "StampEncoder":
        return cls(load_encoding_options(**kwargs))

    def encode(
        self,
        data: bytes,
        funding_txid: str,
        *,
        cpid: str | None = None,
        supply: int = 1,
        filename: str | None = None,
        locked: bool = True,
        divisible: bool = False,
        key_length: int | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> StampEncodingResult:
        if not data:
            raise ValidationError("Stamp data must not be empty")
        if len(data) > STAMP_MAX_SIZE:
            raise CapacityError(
                f"Stamp data is {len(data)} bytes, exceeding the {STAMP_MAX_SIZE} byte limit"
            )

        asset = cpid or default_cpid(funding_txid)
        message = build_issuance_message(
            asset,
            supply,
            divisible=divisible,
            locked=locked,
            description=STAMP_DESCRIPTION_PREFIX + (filename or ""),
            diagnostics=diagnostics,
        )
        issuance_output = build_issuance_output(message, funding_txid, key_length)
        data_outputs = embed_payload(data, self.options.dust_value, self.options.max_outputs)
        file_format = detect_format(data)
        logger.info(
            "Encoded %s stamp %s: %d bytes in %d data outputs",
            file_format,
            asset,
            len(data),
            len(data_outputs),
        )
        return StampEncodingResult(
            cpid=asset,
            format=file_format,
            message=message,
            issuance_output=issuance_output,
            data_outputs=data_outputs,
            outputs=order_outputs(data_outputs, envelope=issuance_output),
        )


def decode_stamp(
    outputs: Iterable[TxOutput], key_hex: str, key_length: int | None = None
) -> DecodedStamp | None:
    """Recover the issuance and file data from stamp outputs, or ``None``."""

    outputs = list(outputs)
    envelope = next((o for o in outputs if unwrap_envelope(o.script) is not None), None)
    if envelope is None:
        return None
    decoded = decode_tx(envelope.script, key_hex, key_length)
    if not decoded.valid or decoded.message is None:
        return None
    data = extract_payload(outputs)
    if data is None:
        return None
    return DecodedStamp(message=decoded.message, data=data, format=detect_format(data))
