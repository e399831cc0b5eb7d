"""Transaction size and fee arithmetic."""

from __future__ import annotations

import math
from collections.abc import Sequence

from .model import TxOutput
from .transaction import ser_compact_size

TX_OVERHEAD_VBYTES = 10
P2PKH_INPUT_VBYTES = 148
P2WPKH_INPUT_VBYTES = 68
EMBEDDED_OUTPUT_VBYTES = 43
CHANGE_OUTPUT_VBYTES = 31


def estimate_transaction_size(output_count: int) -> int:
    """Rough size of a one-input transaction with *output_count* data outputs.

    Counts the overhead, one legacy input, the data outputs and a change
    output.
    """

    return (
        TX_OVERHEAD_VBYTES
        + P2PKH_INPUT_VBYTES
        + output_count * EMBEDDED_OUTPUT_VBYTES
        + CHANGE_OUTPUT_VBYTES
    )


def output_vsize(output: TxOutput) -> int:
    return 8 + len(ser_compact_size(len(output.script))) + len(output.script)


def estimate_vsize(
    input_count: int,
    outputs: Sequence[TxOutput],
    input_vbytes: int = P2WPKH_INPUT_VBYTES,
    include_change: bool = True,
) -> int:
    """Estimate the virtual size of a transaction spending *input_count* inputs."""

    size = TX_OVERHEAD_VBYTES + input_count * input_vbytes
    size += sum(output_vsize(output) for output in outputs)
    if include_change:
        size += CHANGE_OUTPUT_VBYTES
    return size


def calculate_fee_sats(fee_rate_sat_vb: float, vsize: int) -> int:
    """Return the ceil'd fee in satoshis for the provided vsize."""

    return int(math.ceil(fee_rate_sat_vb * vsize))
