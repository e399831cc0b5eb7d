"""Counterparty issuance messages carried in an RC4-obfuscated OP_RETURN.

Plaintext layout::

    b"CNTRPRTY" | type (1) | asset id (8, BE) | quantity (8, BE) | flags (1) | description

``flags`` packs ``divisible | locked << 1 | reset << 2``.  The whole
plaintext, prefix included, is encrypted with RC4 keyed by the funding
input's txid so the prefix can be checked after decryption.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass

from .asset_id import asset_to_id, id_to_asset
from .diagnostics import Diagnostics
from .errors import EnvelopeSizeError, ValidationError
from .model import TxOutput
from .rc4 import rc4

logger = logging.getLogger(__name__)

PREFIX = b"CNTRPRTY"
MESSAGE_TYPE_ISSUANCE = 20
MESSAGE_TYPE_ISSUANCE_DESCRIPTION = 22
ISSUANCE_TYPES = (MESSAGE_TYPE_ISSUANCE, MESSAGE_TYPE_ISSUANCE_DESCRIPTION)
MAX_OP_RETURN_DATA = 80
MAX_QUANTITY = 2**64 - 1

OP_RETURN = 0x6A
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D

_HEADER = struct.Struct(">BQQB")


@dataclass(frozen=True)
class IssuanceMessage:
    asset_id: int
    quantity: int
    divisible: bool = False
    locked: bool = True
    reset: bool = False
    description: str | None = None
    message_type: int = MESSAGE_TYPE_ISSUANCE_DESCRIPTION

    @property
    def flags(self) -> int:
        return int(self.divisible) | int(self.locked) << 1 | int(self.reset) << 2

    @property
    def asset_name(self) -> str:
        return id_to_asset(self.asset_id)

    def to_bytes(self) -> bytes:
        header = _HEADER.pack(self.message_type, self.asset_id, self.quantity, self.flags)
        if self.description:
            return header + self.description.encode("utf-8")
        return header

    @classmethod
    def from_bytes(cls, data: bytes) -> "IssuanceMessage":
        if len(data) < _HEADER.size:
            raise ValueError(f"Issuance message needs {_HEADER.size} bytes, got {len(data)}")
        message_type, asset_id, quantity, flags = _HEADER.unpack_from(data)
        description = data[_HEADER.size :].decode("utf-8", errors="replace") or None
        return cls(
            asset_id=asset_id,
            quantity=quantity,
            divisible=bool(flags & 0x01),
            locked=bool(flags & 0x02),
            reset=bool(flags & 0x04),
            description=description,
            message_type=message_type,
        )


@dataclass(frozen=True)
class DecodedTx:
    """Result of decrypting an OP_RETURN payload; never raised as an error."""

    prefix: str
    message_type: int
    valid: bool
    payload: bytes = b""
    message: IssuanceMessage | None = None
    error: str | None = None


def build_issuance_message(
    asset: str | int,
    quantity: int,
    *,
    divisible: bool = False,
    locked: bool = True,
    reset: bool = False,
    description: str | None = None,
    diagnostics: Diagnostics | None = None,
) -> IssuanceMessage:
    asset_id = asset if isinstance(asset, int) else asset_to_id(asset, diagnostics)
    if isinstance(quantity, bool) or not isinstance(quantity, int) or not 0 <= quantity <= MAX_QUANTITY:
        raise ValidationError(f"Invalid quantity: must be an integer between 0 and {MAX_QUANTITY}")
    return IssuanceMessage(
        asset_id=asset_id,
        quantity=quantity,
        divisible=divisible,
        locked=locked,
        reset=reset,
        description=description,
    )


def _rc4_key(key_hex: str, key_length: int | None) -> bytes:
    try:
        key = bytes.fromhex(key_hex)
    except ValueError as exc:
        raise ValidationError(f"Invalid RC4 key hex: {key_hex!r}") from exc
    if key_length is not None:
        key = key[:key_length]
    if not key:
        raise ValidationError("RC4 key must not be empty")
    return key


def encrypt_message(
    message: IssuanceMessage | bytes, key_hex: str, key_length: int | None = None
) -> bytes:
    """Prefix and RC4-encrypt *message*.

    *key_hex* is normally the funding input's txid.  The whole decoded txid
    is used as the key unless *key_length* truncates it.
    """

    body = message.to_bytes() if isinstance(message, IssuanceMessage) else bytes(message)
    return rc4(_rc4_key(key_hex, key_length), PREFIX + body)


def build_envelope(data: bytes) -> bytes:
    """Wrap *data* in an ``OP_RETURN`` push script."""

    if len(data) > MAX_OP_RETURN_DATA:
        raise EnvelopeSizeError(len(data), MAX_OP_RETURN_DATA)
    if len(data) <= 75:
        return bytes([OP_RETURN, len(data)]) + data
    return bytes([OP_RETURN, OP_PUSHDATA1, len(data)]) + data


def unwrap_envelope(script: bytes) -> bytes | None:
    """Return the data pushed by an ``OP_RETURN`` script, or ``None``."""

    if len(script) < 2 or script[0] != OP_RETURN:
        return None
    opcode = script[1]
    if 1 <= opcode <= 75:
        start, length = 2, opcode
    elif opcode == OP_PUSHDATA1 and len(script) >= 3:
        start, length = 3, script[2]
    elif opcode == OP_PUSHDATA2 and len(script) >= 4:
        start, length = 4, int.from_bytes(script[2:4], "little")
    else:
        return None
    if start + length != len(script):
        return None
    return script[start:]


def build_issuance_output(
    message: IssuanceMessage, key_hex: str, key_length: int | None = None
) -> TxOutput:
    """Return the zero-value OP_RETURN output carrying *message*."""

    script = build_envelope(encrypt_message(message, key_hex, key_length))
    logger.debug(
        "Built issuance OP_RETURN for asset %s (%d bytes)", message.asset_id, len(script)
    )
    return TxOutput(script=script, value=0)


def _invalid(error: str) -> DecodedTx:
    return DecodedTx(prefix="INVALID", message_type=-1, valid=False, error=error)


def decode_tx(data: bytes | str, key_hex: str, key_length: int | None = None) -> DecodedTx:
    """Decrypt an issuance payload or OP_RETURN script.

    A prefix mismatch is reported with ``valid=False`` and ``message_type=-1``.
    """

    if isinstance(data, str):
        try:
            data = bytes.fromhex(data)
        except ValueError:
            return _invalid("payload is not valid hex")
    unwrapped = unwrap_envelope(data)
    if unwrapped is not None:
        data = unwrapped
    try:
        key = _rc4_key(key_hex, key_length)
    except ValidationError as exc:
        return _invalid(str(exc))
    if not data:
        return _invalid("empty payload")

    plaintext = rc4(key, data)
    if plaintext[: len(PREFIX)] != PREFIX or len(plaintext) <= len(PREFIX):
        logger.debug("Counterparty prefix mismatch")
        return _invalid("prefix mismatch")

    message_type = plaintext[len(PREFIX)]
    body = plaintext[len(PREFIX) :]
    message = None
    if message_type in ISSUANCE_TYPES:
        try:
            message = IssuanceMessage.from_bytes(body)
        except ValueError as exc:
            logger.debug("Truncated issuance message: %s", exc)
    return DecodedTx(
        prefix=PREFIX.decode("ascii"),
        message_type=message_type,
        valid=True,
        payload=body[1:],
        message=message,
    )
