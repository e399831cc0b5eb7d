"""Chunk-and-embed engine for pseudo-P2WSH data outputs.

A payload is framed with a two byte header (``0x00`` and the payload length
modulo 256), split into 32-byte blocks, and each block becomes the "hash"
field of a ``0x00 0x20 <32 bytes>`` output script.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .errors import OutputLimitError
from .model import (
    DEFAULT_DUST_VALUE,
    DEFAULT_MAX_OUTPUTS,
    EMBEDDED_CHUNK_SIZE,
    EMBEDDED_SCRIPT_SIZE,
    EmbeddedOutput,
    TxOutput,
)

logger = logging.getLogger(__name__)

SCRIPT_HEADER = b"\x00\x20"
HEADER_SIZE = 2


def frame_payload(payload: bytes) -> bytes:
    """Prefix *payload* with ``[0x00, len & 0xFF]``.

    The second byte wraps for payloads over 255 bytes; readers recover the
    real length from the chunk data instead (see :func:`extract_payload`).
    """

    return bytes([0x00, len(payload) & 0xFF]) + payload


def chunk_payload(framed: bytes) -> list[bytes]:
    """Split *framed* into 32-byte blocks, zero-padding the last one."""

    chunks = []
    for offset in range(0, len(framed), EMBEDDED_CHUNK_SIZE):
        chunk = framed[offset : offset + EMBEDDED_CHUNK_SIZE]
        chunks.append(chunk.ljust(EMBEDDED_CHUNK_SIZE, b"\x00"))
    return chunks


def required_outputs(payload_size: int) -> int:
    framed = payload_size + HEADER_SIZE
    return -(-framed // EMBEDDED_CHUNK_SIZE)


def embed_payload(
    payload: bytes,
    dust_value: int = DEFAULT_DUST_VALUE,
    max_outputs: int = DEFAULT_MAX_OUTPUTS,
) -> list[EmbeddedOutput]:
    """Return the data outputs carrying *payload*, in order."""

    needed = required_outputs(len(payload))
    if needed > max_outputs:
        raise OutputLimitError(needed, max_outputs)

    outputs = [
        EmbeddedOutput(script=SCRIPT_HEADER + chunk, value=dust_value)
        for chunk in chunk_payload(frame_payload(payload))
    ]
    logger.debug("Embedded %d payload bytes into %d outputs", len(payload), len(outputs))
    return outputs


def is_embedded_script(script: bytes) -> bool:
    return len(script) == EMBEDDED_SCRIPT_SIZE and script[:2] == SCRIPT_HEADER


def _resolve_length(declared: int, stripped: int, available: int) -> int:
    if declared >= stripped:
        return declared
    # The header only holds the length modulo 256 once payloads pass 255 bytes.
    candidate = stripped + ((declared - stripped) % 256)
    if candidate <= available:
        return candidate
    return stripped


def extract_payload(outputs: Iterable[TxOutput | bytes]) -> bytes | None:
    """Reassemble the payload carried by the embedded outputs in *outputs*.

    Outputs that do not match the template are skipped.  Returns ``None``
    when nothing usable is present.
    """

    data = b"".join(
        script[2:]
        for script in (
            item if isinstance(item, (bytes, bytearray)) else item.script for item in outputs
        )
        if is_embedded_script(script)
    )
    if len(data) < HEADER_SIZE:
        return None

    declared = int.from_bytes(data[:HEADER_SIZE], "big")
    body = data[HEADER_SIZE:]
    stripped = body.rstrip(b"\x00")
    if not stripped:
        return None

    length = _resolve_length(declared, len(stripped), len(body))
    return bytes(body[:length])
