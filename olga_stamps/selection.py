"""Interface to an external UTXO selector and change sizing.

The selection algorithm itself lives outside this package; it is consumed
through :class:`UTXOSelector`, which returns a :class:`SelectionSuccess` or
:class:`SelectionFailure`.  :func:`plan_transaction` only inspects the value
totals to size a change output.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, Union

from .errors import SelectionError
from .fees import calculate_fee_sats, estimate_vsize
from .model import DEFAULT_DUST_VALUE, TxOutput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UTXO:
    txid: str
    vout: int
    value: int
    script: bytes = b""


class SelectionFailureReason(str, Enum):
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    NO_UTXOS_AVAILABLE = "NO_UTXOS_AVAILABLE"
    EXCEEDS_MAX_INPUTS = "EXCEEDS_MAX_INPUTS"
    DUST_OUTPUT = "DUST_OUTPUT"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    SELECTION_FAILED = "SELECTION_FAILED"


@dataclass(frozen=True)
class SelectionSuccess:
    inputs: list[UTXO]
    total_value: int
    change: int
    fee: int
    success: bool = field(default=True, init=False)


@dataclass(frozen=True)
class SelectionFailure:
    reason: SelectionFailureReason
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    success: bool = field(default=False, init=False)


SelectionResult = Union[SelectionSuccess, SelectionFailure]


class UTXOSelector(Protocol):
    def select(
        self,
        utxos: Sequence[UTXO],
        target_value: int,
        fee_rate: float,
        output_count: int,
    ) -> SelectionResult: ...


@dataclass(frozen=True)
class TransactionPlan:
    """Inputs and final ordered outputs ready for signing."""

    inputs: list[UTXO]
    outputs: list[TxOutput]
    fee: int
    change: int

    @property
    def total_input(self) -> int:
        return sum(utxo.value for utxo in self.inputs)

    @property
    def total_output(self) -> int:
        return sum(output.value for output in self.outputs)


def plan_transaction(
    outputs: Sequence[TxOutput],
    utxos: Sequence[UTXO],
    selector: UTXOSelector,
    fee_rate: float,
    change_script: bytes,
    dust_value: int = DEFAULT_DUST_VALUE,
) -> TransactionPlan:
    """Select inputs for *outputs* and append change when it is not dust.

    Raises :class:`~olga_stamps.errors.SelectionError` on selection failure.
    """

    target = sum(output.value for output in outputs)
    result = selector.select(utxos, target, fee_rate, len(outputs) + 1)
    if isinstance(result, SelectionFailure):
        logger.warning("UTXO selection failed: %s (%s)", result.message, result.reason.value)
        raise SelectionError(result.reason.value, result.message, result.details)

    total_in = sum(utxo.value for utxo in result.inputs)
    with_change = calculate_fee_sats(
        fee_rate, estimate_vsize(len(result.inputs), outputs, include_change=True)
    )
    change = total_in - target - with_change
    final_outputs = list(outputs)
    if change >= dust_value:
        final_outputs.append(TxOutput(script=change_script, value=change))
        fee = with_change
    else:
        fee = total_in - target
        change = 0
        without_change = calculate_fee_sats(
            fee_rate, estimate_vsize(len(result.inputs), outputs, include_change=False)
        )
        if fee < without_change:
            raise SelectionError(
                SelectionFailureReason.INSUFFICIENT_FUNDS.value,
                f"Selected inputs cover {total_in} sats but {target + without_change} are needed",
                {"total_input": total_in, "target": target, "fee": without_change},
            )

    logger.debug(
        "Planned transaction: %d inputs, %d outputs, fee=%d, change=%d",
        len(result.inputs),
        len(final_outputs),
        fee,
        change,
    )
    return TransactionPlan(inputs=list(result.inputs), outputs=final_outputs, fee=fee, change=change)
