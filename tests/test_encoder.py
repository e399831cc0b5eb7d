from __future__ import annotations

import pytest

from olga_stamps.addresses import address_to_script, segwit_encode
from olga_stamps.encoder import SRC20Encoder, encode_src20
from olga_stamps.errors import OutputLimitError, ValidationError
from olga_stamps.model import (
    DeployOperation,
    EncodingOptions,
    MintOperation,
    OperationKind,
    TransferOperation,
)

SENDER = segwit_encode("bc", 0, bytes(range(20)))
RECIPIENT = segwit_encode("bc", 0, bytes(range(100, 120)))

KEVIN = {"p": "SRC-20", "op": "TRANSFER", "tick": "kevin", "amt": "100000.000000000000000000"}


def test_kevin_reference_vector() -> None:
    result = SRC20Encoder().encode(KEVIN)

    assert result.json_data == '{"p":"src-20","op":"transfer","tick":"KEVIN","amt":100000}'
    assert result.total_size == 64
    assert result.compressed is False
    assert len(result.outputs) == 3
    assert result.outputs[0].script.hex() == (
        "002000407374616d703a7b2270223a227372632d3230222c226f70223a227472616e"
    )
    assert all(output.value == 330 for output in result.outputs)


def test_transfer_carrier_goes_to_recipient() -> None:
    options = EncodingOptions(from_address=SENDER, to_address=RECIPIENT)

    result = SRC20Encoder(options).encode(KEVIN)

    assert result.outputs[0].script == address_to_script(RECIPIENT)
    assert result.outputs[0].value == 330
    assert result.outputs[1:] == result.data_outputs


def test_deploy_carrier_goes_to_sender() -> None:
    options = EncodingOptions(from_address=SENDER)
    deploy = DeployOperation(tick="DEMO", max_supply="21000000", limit="1000", decimals=18)

    result = SRC20Encoder(options).encode(deploy)

    assert result.kind is OperationKind.DEPLOY
    assert result.outputs[0].script == address_to_script(SENDER)
    assert len(result.outputs) == len(result.data_outputs) + 1


def test_mint_ignores_recipient_address() -> None:
    options = EncodingOptions(from_address=SENDER, to_address=RECIPIENT)

    result = SRC20Encoder(options).encode(MintOperation(tick="DEMO", amount="1000"))

    assert result.outputs[0].script == address_to_script(SENDER)


def test_transfer_without_recipient_falls_back_to_sender() -> None:
    result = encode_src20(KEVIN, EncodingOptions(from_address=SENDER))

    assert result.outputs[0].script == address_to_script(SENDER)


def test_custom_dust_value() -> None:
    result = encode_src20(KEVIN, EncodingOptions(dust_value=546, to_address=RECIPIENT))

    assert {output.value for output in result.outputs} == {546}


def test_invalid_operation_raises_validation_error() -> None:
    with pytest.raises(ValidationError) as excinfo:
        SRC20Encoder().encode(TransferOperation(tick="TOOLONG", amount="0"))

    assert len(excinfo.value.errors) == 2


def test_output_ceiling_is_enforced() -> None:
    with pytest.raises(OutputLimitError):
        encode_src20(KEVIN, EncodingOptions(max_outputs=2))


def test_encode_smallest_prefers_compression_when_it_saves_outputs() -> None:
    deploy = DeployOperation(tick="DEMO", max_supply="21000000", limit="1000", description="ab" * 100)
    encoder = SRC20Encoder(EncodingOptions(use_compression=False))

    plain = encoder.encode(deploy)
    smallest = encoder.encode_smallest(deploy)

    assert smallest.compressed is True
    assert len(smallest.data_outputs) < len(plain.data_outputs)


def test_result_to_dict_and_size_estimate() -> None:
    result = SRC20Encoder().encode(KEVIN)

    summary = result.to_dict()

    assert summary["total_size"] == 64
    assert len(summary["outputs"]) == 3
    assert result.estimated_tx_size == 10 + 148 + 3 * 43 + 31


def test_validate_returns_errors_without_raising() -> None:
    assert SRC20Encoder().validate({"p": "SRC-20", "op": "MINT", "tick": "te-st", "amt": "1"}) == [
        "Invalid tick format: must be 1-5 alphanumeric characters"
    ]


def test_encoder_from_config_file(tmp_path) -> None:
    config_path = tmp_path / "olga.yaml"
    config_path.write_text("encoding:\n  dust_value: 546\n  use_compression: false\n")

    encoder = SRC20Encoder.from_config(config_path=config_path, env={"OLGA_MAX_OUTPUTS": "10"})
    result = encoder.encode(KEVIN)

    assert encoder.options.max_outputs == 10
    assert result.compressed is False
    assert all(output.value == 546 for output in result.outputs)
