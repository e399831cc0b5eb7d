from __future__ import annotations

import random

import pytest

from olga_stamps.chunking import embed_payload
from olga_stamps.decoder import (
    contains_src20_data,
    count_embedded_outputs,
    decode_from_tx_hex,
    decode_from_txid,
    decode_outputs,
    decode_record,
    get_operation_type,
    get_ticker,
)
from olga_stamps.encoder import SRC20Encoder
from olga_stamps.model import (
    DeployOperation,
    EmbeddedOutput,
    EncodingOptions,
    MintOperation,
    OperationKind,
    TransferOperation,
    TxOutput,
)
from olga_stamps.serializer import normalize
from olga_stamps.transaction import Transaction, TxInput

OPERATIONS = [
    TransferOperation(tick="kevin", amount="100000.000000000000000000"),
    TransferOperation(tick="KEVIN", amount=["100", "250.5"], dest="bc1qexample"),
    MintOperation(tick="DEMO", amount="1000.5"),
    DeployOperation(tick="DEMO", max_supply="21000000", limit="1000", decimals=18),
    DeployOperation(tick="BIG", max_supply=str(2**64 - 1), limit=str(2**64 - 1)),
    DeployOperation(
        tick="META",
        max_supply="1000000",
        limit="100",
        description="A long description " * 10,
        web="https://example.com",
        img="ipfs:QmHash",
    ),
]


@pytest.mark.parametrize("operation", OPERATIONS)
@pytest.mark.parametrize("use_compression", [True, False])
def test_round_trip_matches_normalized_record(operation: object, use_compression: bool) -> None:
    options = EncodingOptions(use_compression=use_compression, compression_threshold=0)
    result = SRC20Encoder(options).encode(operation)

    assert decode_record(result.outputs) == normalize(operation)


def test_decode_outputs_denormalizes() -> None:
    result = SRC20Encoder().encode(TransferOperation(tick="kevin", amount="100000.000000000000000000"))

    decoded = decode_outputs(result.outputs)

    assert decoded == TransferOperation(tick="KEVIN", amount="100000", protocol="SRC-20")


def test_decode_big_deploy_returns_double_digits() -> None:
    result = SRC20Encoder().encode(DeployOperation(tick="BIG", max_supply=str(2**64 - 1), limit="5"))

    decoded = decode_outputs(result.outputs)

    assert isinstance(decoded, DeployOperation)
    assert decoded.max_supply == "18446744073709552000"
    assert decoded.limit == "5"


def test_random_noise_is_not_decoded() -> None:
    rng = random.Random(1234)
    for _ in range(200):
        noise = bytes(rng.getrandbits(8) for _ in range(32))
        outputs = [EmbeddedOutput(b"\x00\x20" + noise, 330)]

        assert decode_outputs(outputs) is None


def test_garbage_after_tag_is_not_decoded() -> None:
    rng = random.Random(99)
    for size in (10, 100, 400):
        junk = b"stamp:" + bytes(rng.getrandbits(8) for _ in range(size))

        assert decode_outputs(embed_payload(junk)) is None


@pytest.mark.parametrize(
    "payload",
    [
        b'stamp:{"p":"src-20","op":"mint","tick":"A","amt":' + b"9" * 400 + b"}",
        b"stamp:" + b"[" * 50000,
        b'stamp:{"p":"src-20","op":"mint","tick":"A","amt":' + b"[" * 50000,
        b'stamp:["src-20","mint","KEVIN",1]',
        b'stamp:"src-20"',
        b"stamp:null",
        b'stamp:{"p":"src-20","op":7,"tick":"KEVIN","amt":1}',
        b'stamp:{"p":"src-20","op":"mint","tick":["KEVIN"],"amt":1}',
        b'stamp:{"p":"src-20","op":"mint","amt":1}',
        b'stamp:{"p":5,"op":"mint","tick":"KEVIN","amt":1}',
    ],
    ids=[
        "huge-integer",
        "deep-array",
        "deep-amount",
        "array-record",
        "string-record",
        "null-record",
        "numeric-op",
        "list-tick",
        "missing-tick",
        "numeric-protocol",
    ],
)
def test_well_formed_hostile_payloads_are_not_decoded(payload: bytes) -> None:
    outputs = embed_payload(payload)

    assert decode_outputs(outputs) is None
    assert decode_from_tx_hex(_raw_tx(list(outputs))) is None


def test_outputs_without_embedding_are_not_decoded() -> None:
    outputs = [TxOutput(b"\x6a\x04test", 0), TxOutput(b"\x00\x14" + b"\x01" * 20, 1000)]

    assert decode_outputs(outputs) is None
    assert not contains_src20_data(outputs)


def test_helpers_report_kind_and_ticker() -> None:
    outputs = SRC20Encoder().encode(MintOperation(tick="demo", amount="5")).outputs

    assert contains_src20_data(outputs)
    assert get_operation_type(outputs) is OperationKind.MINT
    assert get_ticker(outputs) == "DEMO"
    assert count_embedded_outputs(outputs) == len(outputs)
    assert count_embedded_outputs([o.script for o in outputs]) == len(outputs)


def _raw_tx(outputs: list[TxOutput], witness: bool = False) -> str:
    tx = Transaction(
        version=2,
        inputs=[TxInput(txid="ab" * 32, vout=1, witness=(b"\x01" * 71, b"\x02" * 33) if witness else ())],
        outputs=outputs,
    )
    return tx.serialize().hex()


@pytest.mark.parametrize("witness", [False, True])
def test_decode_from_tx_hex(witness: bool) -> None:
    outputs = SRC20Encoder().encode(MintOperation(tick="DEMO", amount="1000")).outputs
    change = TxOutput(b"\x00\x14" + b"\x05" * 20, 12345)

    decoded = decode_from_tx_hex(_raw_tx(outputs + [change], witness=witness))

    assert decoded == MintOperation(tick="DEMO", amount="1000", protocol="SRC-20")


def test_decode_from_tx_hex_handles_garbage() -> None:
    assert decode_from_tx_hex("zz") is None
    assert decode_from_tx_hex("0200000001") is None


class StubRPC:
    def __init__(self, raw: object) -> None:
        self.raw = raw
        self.calls: list[tuple[str, bool]] = []

    def getrawtransaction(self, txid: str, verbose: bool = False) -> object:
        self.calls.append((txid, verbose))
        return self.raw


def test_decode_from_txid_uses_rpc() -> None:
    outputs = SRC20Encoder().encode(MintOperation(tick="DEMO", amount="7")).outputs
    rpc = StubRPC(_raw_tx(outputs))

    decoded = decode_from_txid("cd" * 32, rpc)

    assert decoded == MintOperation(tick="DEMO", amount="7", protocol="SRC-20")
    assert rpc.calls == [("cd" * 32, False)]


def test_decode_from_txid_without_hex_result() -> None:
    assert decode_from_txid("cd" * 32, StubRPC(None)) is None
