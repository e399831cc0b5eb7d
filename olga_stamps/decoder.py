"""Decoding of SRC-20 records from transaction outputs.

Every entry point returns ``None`` when the outputs carry no SRC-20 data,
including corrupt or foreign payloads; callers probe transactions freely.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Protocol

from .chunking import extract_payload, is_embedded_script
from .diagnostics import DECODE_FALLBACK, Diagnostics, emit
from .model import NormalizedRecord, OperationKind, TokenOperation, TxOutput
from .serializer import denormalize, deserialize, has_stamp_tag, record_from_wire
from .transaction import TransactionParseError, parse_transaction

logger = logging.getLogger(__name__)


class RawTransactionSource(Protocol):
    def getrawtransaction(self, txid: str, verbose: bool = False) -> Any: ...


def decode_record(
    outputs: Iterable[TxOutput | bytes], diagnostics: Diagnostics | None = None
) -> NormalizedRecord | None:
    """Return the normalized record carried by *outputs*, or ``None``."""

    payload = extract_payload(outputs)
    if payload is None:
        return None
    raw = deserialize(payload)
    if raw is None:
        return None
    try:
        return record_from_wire(raw, diagnostics)
    except OverflowError as exc:
        logger.debug("SRC-20 record has an unrepresentable number: %s", exc)
        return None


def decode_outputs(
    outputs: Iterable[TxOutput | bytes], diagnostics: Diagnostics | None = None
) -> TokenOperation | None:
    """Return the token operation carried by *outputs*, or ``None``."""

    record = decode_record(outputs, diagnostics)
    if record is None:
        return None
    operation = denormalize(record)
    if operation is None:
        emit(
            diagnostics,
            DECODE_FALLBACK,
            "SRC-20 record has an unknown operation or ticker",
            op=record.get("op"),
        )
    return operation


def decode_from_tx_hex(
    raw_hex: str | bytes, diagnostics: Diagnostics | None = None
) -> TokenOperation | None:
    """Decode the SRC-20 operation in a raw transaction."""

    try:
        tx = parse_transaction(raw_hex)
    except TransactionParseError as exc:
        logger.debug("Could not parse transaction: %s", exc)
        return None
    return decode_outputs(tx.outputs, diagnostics)


def decode_from_txid(
    txid: str, rpc: RawTransactionSource, diagnostics: Diagnostics | None = None
) -> TokenOperation | None:
    """Fetch *txid* through *rpc* and decode it.

    RPC failures propagate; only missing or foreign data yields ``None``.
    """

    raw_hex = rpc.getrawtransaction(txid, verbose=False)
    if not isinstance(raw_hex, str):
        logger.debug("getrawtransaction returned %r for %s", type(raw_hex), txid)
        return None
    return decode_from_tx_hex(raw_hex, diagnostics)


def contains_src20_data(outputs: Iterable[TxOutput | bytes]) -> bool:
    """Cheap check: do the embedded outputs start with the stamp tag?"""

    payload = extract_payload(outputs)
    return payload is not None and has_stamp_tag(payload)


def count_embedded_outputs(outputs: Iterable[TxOutput | bytes]) -> int:
    return sum(
        1
        for item in outputs
        if is_embedded_script(item if isinstance(item, (bytes, bytearray)) else item.script)
    )


def get_operation_type(outputs: Iterable[TxOutput | bytes]) -> OperationKind | None:
    operation = decode_outputs(list(outputs))
    return operation.kind if operation is not None else None


def get_ticker(outputs: Iterable[TxOutput | bytes]) -> str | None:
    operation = decode_outputs(list(outputs))
    return operation.tick if operation is not None else None
