"""SRC-20 payload serializer.

Records are normalized (lower-case protocol and operation, upper-case
ticker, numeric amounts) and rendered as compact JSON.  When compression is
enabled and the JSON is long enough, the record is also packed with msgpack
and deflated; the deflated form is kept only when it is strictly smaller.
Either body is prefixed with the ``stamp:`` tag.

The inverse side sniffs the body: inflate (zlib, then raw deflate) and
unpack, or parse the bytes directly when no compression was applied.
"""

from __future__ import annotations

import json
import logging
import zlib
from collections.abc import Mapping, Sequence
from typing import Any

import msgpack
from msgpack.exceptions import UnpackException

from .diagnostics import COMPRESSION_FAILED, COMPRESSION_SKIPPED, Diagnostics, emit
from .model import (
    DEPLOY_METADATA_FIELDS,
    PROTOCOL,
    STAMP_TAG,
    DeployOperation,
    EncodingOptions,
    MintOperation,
    NormalizedRecord,
    OperationKind,
    SerializedPayload,
    TokenOperation,
    TransferOperation,
    unknown_operation,
)
from .numeric import (
    canonical_number,
    format_js_number,
    normalize_number,
    parse_integer,
    to_wire_number,
)
from .validation import ensure_valid, operation_from_mapping

logger = logging.getLogger(__name__)

_DECODE_ERRORS = (ValueError, TypeError, RecursionError, UnpackException)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _amount_text(value: Any) -> str:
    if _is_number(value):
        return format_js_number(value)
    return str(value).strip()


def _normalize_transfer_amount(amount: Any, diagnostics: Diagnostics | None) -> Any:
    if isinstance(amount, Sequence) and not isinstance(amount, str):
        if len(amount) > 1:
            return ",".join(_amount_text(part) for part in amount)
        amount = amount[0]
    if isinstance(amount, str) and "," in amount:
        return amount
    return normalize_number(amount, diagnostics)


def _normalize_mint_amount(amount: Any, diagnostics: Diagnostics | None) -> Any:
    if isinstance(amount, Sequence) and not isinstance(amount, str):
        amount = amount[0]
    return normalize_number(amount, diagnostics)


def normalize(
    operation: TokenOperation | Mapping[str, Any],
    diagnostics: Diagnostics | None = None,
) -> NormalizedRecord:
    """Validate *operation* and return its canonical wire record.

    Raises :class:`~olga_stamps.errors.ValidationError` listing every
    problem when the record is invalid.
    """

    if isinstance(operation, Mapping):
        operation = operation_from_mapping(operation)
    else:
        ensure_valid(operation)

    items: list[tuple[str, Any]] = [
        ("p", operation.protocol.lower()),
        ("op", operation.kind.value.lower()),
        ("tick", operation.tick.upper()),
    ]
    if isinstance(operation, DeployOperation):
        items.append(("max", normalize_number(operation.max_supply, diagnostics)))
        items.append(("lim", normalize_number(operation.limit, diagnostics)))
        if operation.decimals is not None and operation.decimals != "":
            items.append(("dec", parse_integer(operation.decimals)))
        for name in DEPLOY_METADATA_FIELDS:
            value = getattr(operation, name)
            if value:
                items.append((name, value))
    elif isinstance(operation, MintOperation):
        items.append(("amt", _normalize_mint_amount(operation.amount, diagnostics)))
    elif isinstance(operation, TransferOperation):
        items.append(("amt", _normalize_transfer_amount(operation.amount, diagnostics)))
        if operation.dest is not None:
            items.append(("dest", operation.dest))
    else:
        unknown_operation(operation)
    return NormalizedRecord(items)


def _json_value(value: Any) -> str:
    if _is_number(value):
        text = format_js_number(value)
        return "null" if text in ("NaN", "Infinity", "-Infinity") else text
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def to_canonical_json(record: Mapping[str, Any]) -> str:
    """Render *record* as compact JSON with JavaScript number formatting."""

    members = (
        f"{json.dumps(str(key), ensure_ascii=False)}:{_json_value(value)}"
        for key, value in record.items()
    )
    return "{" + ",".join(members) + "}"


def pack_record(record: Mapping[str, Any]) -> bytes:
    """Pack *record* with msgpack using the number widths msgpack-lite emits."""

    wire = {
        key: to_wire_number(value) if _is_number(value) else value
        for key, value in record.items()
    }
    return msgpack.packb(wire, use_bin_type=True)


def compress_record(record: Mapping[str, Any]) -> bytes:
    return zlib.compress(pack_record(record))


def serialize(
    operation: TokenOperation | Mapping[str, Any] | NormalizedRecord,
    options: EncodingOptions | None = None,
    diagnostics: Diagnostics | None = None,
) -> SerializedPayload:
    """Serialize a token operation into tagged payload bytes."""

    options = options or EncodingOptions.default()
    if isinstance(operation, NormalizedRecord):
        record = operation
    else:
        record = normalize(operation, diagnostics)

    json_text = to_canonical_json(record)
    json_bytes = json_text.encode("utf-8")

    if options.use_compression and len(json_text) > options.compression_threshold:
        try:
            compressed = compress_record(record)
        except (ValueError, TypeError, OverflowError) as exc:
            emit(
                diagnostics,
                COMPRESSION_FAILED,
                f"compression failed, using JSON: {exc}",
            )
        else:
            if len(compressed) < len(json_bytes):
                logger.debug(
                    "Compressed SRC-20 payload %d -> %d bytes", len(json_bytes), len(compressed)
                )
                return SerializedPayload(
                    data=STAMP_TAG + compressed,
                    compressed=True,
                    json_text=json_text,
                    json_size=len(json_bytes),
                    compressed_size=len(compressed),
                )
            emit(
                diagnostics,
                COMPRESSION_SKIPPED,
                "compressed payload is not smaller than JSON",
                json_size=len(json_bytes),
                compressed_size=len(compressed),
            )

    return SerializedPayload(
        data=STAMP_TAG + json_bytes,
        compressed=False,
        json_text=json_text,
        json_size=len(json_bytes),
    )


def has_stamp_tag(data: bytes) -> bool:
    return data[: len(STAMP_TAG)].lower() == STAMP_TAG


def _inflate(body: bytes) -> bytes | None:
    for wbits in (zlib.MAX_WBITS, -zlib.MAX_WBITS):
        try:
            return zlib.decompress(body, wbits)
        except zlib.error:
            continue
    return None


def _unpack(data: bytes) -> Any:
    try:
        return msgpack.unpackb(data, raw=False)
    except _DECODE_ERRORS:
        return None


def _parse_json(data: bytes) -> Any:
    try:
        return json.loads(data.decode("utf-8"))
    except _DECODE_ERRORS:
        return None


def _is_src20(candidate: Any) -> bool:
    if not isinstance(candidate, dict):
        return False
    protocol = candidate.get("p")
    return isinstance(protocol, str) and protocol.lower() == PROTOCOL.lower()


def deserialize(tagged: bytes) -> dict[str, Any] | None:
    """Recover the raw record from tagged payload bytes, or ``None``."""

    if not has_stamp_tag(tagged):
        logger.debug("Payload does not start with the stamp tag")
        return None
    body = tagged[len(STAMP_TAG):]

    attempts = []
    inflated = _inflate(body)
    if inflated is not None:
        attempts.append((inflated, (_unpack, _parse_json)))
    # Uncompressed bodies can occasionally inflate to garbage, so always fall back.
    attempts.append((body, (_parse_json, _unpack)))

    for source, parsers in attempts:
        for parser in parsers:
            candidate = parser(source)
            if _is_src20(candidate):
                return candidate
    logger.debug("No SRC-20 record found in %d byte payload", len(body))
    return None


def record_from_wire(
    data: Mapping[str, Any], diagnostics: Diagnostics | None = None
) -> NormalizedRecord:
    """Canonicalize a decoded mapping using the same number rules as :func:`normalize`.

    Raises :class:`OverflowError` for integers no double can hold.
    """

    return NormalizedRecord(
        (str(key), canonical_number(value, diagnostics) if _is_number(value) else value)
        for key, value in data.items()
    )


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if _is_number(value):
        return format_js_number(value)
    return str(value)


def denormalize(record: Mapping[str, Any]) -> TokenOperation | None:
    """Convert a wire record back to a typed operation with string amounts."""

    op = record.get("op")
    if not isinstance(op, str):
        return None
    try:
        kind = OperationKind(op.upper())
    except ValueError:
        return None

    tick = record.get("tick")
    if not isinstance(tick, str):
        return None
    protocol = str(record.get("p", PROTOCOL)).upper()

    if kind is OperationKind.DEPLOY:
        dec = record.get("dec")
        metadata = {
            name: _text(record[name]) for name in DEPLOY_METADATA_FIELDS if record.get(name) is not None
        }
        return DeployOperation(
            tick=tick,
            max_supply=_text(record.get("max")) or "",
            limit=_text(record.get("lim")) or "",
            decimals=parse_integer(dec) if dec is not None else None,
            protocol=protocol,
            **metadata,
        )
    if kind is OperationKind.MINT:
        return MintOperation(tick=tick, amount=_text(record.get("amt")) or "", protocol=protocol)
    if kind is OperationKind.TRANSFER:
        return TransferOperation(
            tick=tick,
            amount=_text(record.get("amt")) or "",
            dest=_text(record.get("dest")),
            protocol=protocol,
        )
    unknown_operation(kind)
