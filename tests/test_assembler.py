from __future__ import annotations

import pytest

from olga_stamps.addresses import address_to_script, segwit_encode
from olga_stamps.assembler import assemble_outputs, carrier_address, order_outputs
from olga_stamps.chunking import embed_payload
from olga_stamps.model import EncodingOptions, OperationKind, TxOutput

SENDER = segwit_encode("bc", 0, bytes(range(20)))
RECIPIENT = segwit_encode("bc", 0, bytes(range(100, 120)))
TESTNET_SENDER = segwit_encode("tb", 0, bytes(range(20)))

ENVELOPE = TxOutput(script=b"\x6a\x02\xab\xcd", value=0)


@pytest.mark.parametrize(
    ("kind", "options", "expected"),
    [
        (OperationKind.TRANSFER, EncodingOptions(from_address=SENDER, to_address=RECIPIENT), RECIPIENT),
        (OperationKind.TRANSFER, EncodingOptions(from_address=SENDER), SENDER),
        (OperationKind.DEPLOY, EncodingOptions(from_address=SENDER, to_address=RECIPIENT), SENDER),
        (OperationKind.MINT, EncodingOptions(from_address=SENDER, to_address=RECIPIENT), SENDER),
        (OperationKind.MINT, EncodingOptions(to_address=RECIPIENT), None),
        (OperationKind.TRANSFER, EncodingOptions(), None),
    ],
)
def test_carrier_address_choice(kind: OperationKind, options: EncodingOptions, expected: str | None) -> None:
    assert carrier_address(kind, options) == expected


def test_order_puts_envelope_before_carrier_and_data() -> None:
    embedded = embed_payload(b"payload")
    carrier = TxOutput(script=b"\x51", value=330)

    ordered = order_outputs(embedded, carrier=carrier, envelope=ENVELOPE)

    assert ordered[0] is ENVELOPE
    assert ordered[1] is carrier
    assert ordered[2:] == embedded


def test_assemble_without_address_emits_only_data_outputs() -> None:
    embedded = embed_payload(b"x" * 40)

    outputs = assemble_outputs(OperationKind.DEPLOY, embedded, EncodingOptions())

    assert outputs == embedded


def test_assemble_uses_network_and_dust_value() -> None:
    options = EncodingOptions(from_address=TESTNET_SENDER, network="testnet", dust_value=546)
    embedded = embed_payload(b"x", dust_value=546)

    outputs = assemble_outputs(OperationKind.MINT, embedded, options, envelope=ENVELOPE)

    assert outputs[0] is ENVELOPE
    assert outputs[1].script == address_to_script(TESTNET_SENDER, "testnet")
    assert outputs[1].value == 546
    assert outputs[2:] == embedded
