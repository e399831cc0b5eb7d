"""Output ordering for SRC-20 and stamp transactions.

Shapes produced::

    [envelope?] + [carrier?] + embedded outputs

The issuance envelope, when present, is always first.  TRANSFER pays its
carrier to the recipient; DEPLOY and MINT pay it to the sender.  With no
usable address the caller adds the carrier output itself.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .addresses import address_to_script
from .model import EncodingOptions, OperationKind, TxOutput

logger = logging.getLogger(__name__)


def carrier_address(kind: OperationKind, options: EncodingOptions) -> str | None:
    """Return the address that receives the dust carrier output."""

    if kind is OperationKind.TRANSFER:
        return options.to_address or options.from_address
    if kind in (OperationKind.DEPLOY, OperationKind.MINT):
        return options.from_address
    raise TypeError(f"Unsupported operation kind: {kind!r}")


def carrier_output(kind: OperationKind, options: EncodingOptions) -> TxOutput | None:
    address = carrier_address(kind, options)
    if not address:
        return None
    return TxOutput(script=address_to_script(address, options.network), value=options.dust_value)


def order_outputs(
    embedded: Sequence[TxOutput],
    *,
    carrier: TxOutput | None = None,
    envelope: TxOutput | None = None,
) -> list[TxOutput]:
    outputs: list[TxOutput] = []
    if envelope is not None:
        outputs.append(envelope)
    if carrier is not None:
        outputs.append(carrier)
    outputs.extend(embedded)
    return outputs


def assemble_outputs(
    kind: OperationKind,
    embedded: Sequence[TxOutput],
    options: EncodingOptions,
    envelope: TxOutput | None = None,
) -> list[TxOutput]:
    """Return the ordered outputs for an operation of *kind*."""

    carrier = carrier_output(kind, options)
    if carrier is None:
        logger.debug("No carrier address for %s; emitting data outputs only", kind.value)
    return order_outputs(embedded, carrier=carrier, envelope=envelope)
