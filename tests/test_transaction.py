from __future__ import annotations

import pytest

from olga_stamps.model import TxOutput
from olga_stamps.transaction import (
    Transaction,
    TransactionParseError,
    TxInput,
    parse_transaction,
    ser_compact_size,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "00"),
        (252, "fc"),
        (253, "fdfd00"),
        (0xFFFF, "fdffff"),
        (0x10000, "fe00000100"),
        (0x100000000, "ff0000000001000000"),
    ],
)
def test_ser_compact_size(value: int, expected: str) -> None:
    assert ser_compact_size(value).hex() == expected


def test_legacy_round_trip() -> None:
    tx = Transaction(
        version=1,
        inputs=[TxInput(txid="11" * 32, vout=0, script_sig=b"\x00\x01")],
        outputs=[TxOutput(b"\x00\x20" + b"\x01" * 32, 330), TxOutput(b"\x6a\x01\x00", 0)],
        locktime=5,
    )

    parsed = parse_transaction(tx.serialize().hex())

    assert parsed == tx
    assert not parsed.has_witness


def test_segwit_round_trip() -> None:
    tx = Transaction(
        version=2,
        inputs=[
            TxInput(txid="22" * 32, vout=3, witness=(b"\x30" * 72, b"\x02" * 33)),
            TxInput(txid="33" * 32, vout=0, witness=(b"\x30" * 71,)),
        ],
        outputs=[TxOutput(b"\x00\x14" + b"\x09" * 20, 10_000)],
    )

    raw = tx.serialize()

    assert raw[4:6] == b"\x00\x01"
    assert parse_transaction(raw) == tx


def test_txid_byte_order_is_reversed_on_the_wire() -> None:
    txid = bytes(range(32)).hex()
    raw = Transaction(version=1, inputs=[TxInput(txid=txid, vout=0)], outputs=[]).serialize()

    assert raw[5:37] == bytes(range(32))[::-1]


@pytest.mark.parametrize("raw", ["", "zz", "01000000", "0100000001" + "00" * 10])
def test_truncated_transactions_raise(raw: str) -> None:
    with pytest.raises(TransactionParseError):
        parse_transaction(raw)


def test_trailing_bytes_raise() -> None:
    tx = Transaction(version=1, inputs=[TxInput(txid="44" * 32, vout=0)], outputs=[TxOutput(b"\x51", 1)])
    raw = tx.serialize() + b"\x00"

    with pytest.raises(TransactionParseError):
        parse_transaction(raw)
