"""Minimal raw transaction (de)serialization.

Only what the decoders need: inputs' previous outpoints and the outputs.
Both legacy and segwit (BIP144) encodings are accepted.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .model import TxOutput


class TransactionParseError(ValueError):
    """Raised when raw transaction bytes are malformed."""


def ser_compact_size(n: int) -> bytes:
    """Serialize an integer as a Bitcoin compact size."""

    if n < 253:
        return bytes([n])
    if n <= 0xFFFF:
        return b"\xfd" + n.to_bytes(2, "little")
    if n <= 0xFFFFFFFF:
        return b"\xfe" + n.to_bytes(4, "little")
    return b"\xff" + n.to_bytes(8, "little")


@dataclass(frozen=True)
class TxInput:
    txid: str
    vout: int
    script_sig: bytes = b""
    sequence: int = 0xFFFFFFFF
    witness: tuple[bytes, ...] = ()


@dataclass
class Transaction:
    version: int
    inputs: list[TxInput] = field(default_factory=list)
    outputs: list[TxOutput] = field(default_factory=list)
    locktime: int = 0

    @property
    def has_witness(self) -> bool:
        return any(txin.witness for txin in self.inputs)

    def serialize(self) -> bytes:
        parts = [self.version.to_bytes(4, "little")]
        if self.has_witness:
            parts.append(b"\x00\x01")
        parts.append(ser_compact_size(len(self.inputs)))
        for txin in self.inputs:
            parts.append(bytes.fromhex(txin.txid)[::-1])
            parts.append(txin.vout.to_bytes(4, "little"))
            parts.append(ser_compact_size(len(txin.script_sig)) + txin.script_sig)
            parts.append(txin.sequence.to_bytes(4, "little"))
        parts.append(ser_compact_size(len(self.outputs)))
        for txout in self.outputs:
            parts.append(txout.value.to_bytes(8, "little"))
            parts.append(ser_compact_size(len(txout.script)) + txout.script)
        if self.has_witness:
            for txin in self.inputs:
                parts.append(ser_compact_size(len(txin.witness)))
                for item in txin.witness:
                    parts.append(ser_compact_size(len(item)) + item)
        parts.append(self.locktime.to_bytes(4, "little"))
        return b"".join(parts)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def read(self, size: int) -> bytes:
        end = self.pos + size
        if end > len(self.data):
            raise TransactionParseError("unexpected end of transaction data")
        chunk = self.data[self.pos : end]
        self.pos = end
        return chunk

    def read_int(self, size: int) -> int:
        return int.from_bytes(self.read(size), "little")

    def read_compact_size(self) -> int:
        first = self.read_int(1)
        if first == 0xFD:
            return self.read_int(2)
        if first == 0xFE:
            return self.read_int(4)
        if first == 0xFF:
            return self.read_int(8)
        return first

    def read_var_bytes(self) -> bytes:
        return self.read(self.read_compact_size())


def parse_transaction(raw: bytes | str) -> Transaction:
    """Parse raw transaction bytes or hex."""

    if isinstance(raw, str):
        try:
            raw = bytes.fromhex(raw.strip())
        except ValueError as exc:
            raise TransactionParseError("transaction hex is invalid") from exc

    reader = _Reader(raw)
    version = reader.read_int(4)
    segwit = False
    if raw[reader.pos : reader.pos + 2] == b"\x00\x01":
        reader.pos += 2
        segwit = True

    inputs = []
    for _ in range(reader.read_compact_size()):
        txid = reader.read(32)[::-1].hex()
        vout = reader.read_int(4)
        script_sig = reader.read_var_bytes()
        sequence = reader.read_int(4)
        inputs.append(TxInput(txid=txid, vout=vout, script_sig=script_sig, sequence=sequence))

    outputs = []
    for _ in range(reader.read_compact_size()):
        value = reader.read_int(8)
        outputs.append(TxOutput(script=reader.read_var_bytes(), value=value))

    if segwit:
        inputs = [
            TxInput(
                txid=txin.txid,
                vout=txin.vout,
                script_sig=txin.script_sig,
                sequence=txin.sequence,
                witness=tuple(reader.read_var_bytes() for _ in range(reader.read_compact_size())),
            )
            for txin in inputs
        ]
    locktime = reader.read_int(4)
    if reader.pos != len(raw):
        raise TransactionParseError("trailing bytes after transaction")
    return Transaction(version=version, inputs=inputs, outputs=outputs, locktime=locktime)
