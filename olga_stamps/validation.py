"""Validation of SRC-20 records before any encoding work.

Every check runs on every call; the full list of problems is reported at
once through :class:`~olga_stamps.errors.ValidationError`.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from .errors import ValidationError
from .model import (
    DEPLOY_METADATA_FIELDS,
    DeployOperation,
    MintOperation,
    OperationKind,
    TokenOperation,
    TransferOperation,
)
from .numeric import UINT64_MAX, is_integral, parse_decimal, parse_integer

TICK_RE = re.compile(r"^[A-Z0-9]{1,5}$")
MEDIA_REF_RE = re.compile(r"^(ipfs|ar|sia|storj):[A-Za-z0-9]+$")
ACCEPTED_PROTOCOLS = {"SRC-20", "src-20"}
MAX_TICK_LENGTH = 5
MAX_DECIMALS = 18


def _add(errors: list[str], message: str) -> None:
    if message not in errors:
        errors.append(message)


def _is_missing(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, (list, tuple)) and not value)


def _check_tick(errors: list[str], tick: Any) -> None:
    if _is_missing(tick) or not isinstance(tick, str):
        _add(errors, "Missing required field: tick")
        return
    if len(tick) > MAX_TICK_LENGTH:
        _add(errors, f"Invalid tick: exceeds {MAX_TICK_LENGTH} character limit")
    elif not TICK_RE.match(tick.upper()):
        _add(errors, "Invalid tick format: must be 1-5 alphanumeric characters")


def _check_uint64(errors: list[str], name: str, value: Any) -> None:
    if _is_missing(value):
        _add(errors, f"Missing required field: {name}")
        return
    number = parse_integer(value)
    if number is None:
        _add(errors, f"Invalid {name} value format")
    elif number > UINT64_MAX:
        _add(errors, f"Number too large: {name} exceeds maximum allowed ({UINT64_MAX})")
    elif number <= 0:
        _add(errors, f"Invalid {name}: must be positive")


def _amount_parts(amount: Any) -> list[Any]:
    if isinstance(amount, (list, tuple)):
        return list(amount)
    if isinstance(amount, str) and "," in amount:
        return amount.split(",")
    return [amount]


def _check_amount(errors: list[str], amount: Any, kind: OperationKind) -> None:
    if _is_missing(amount):
        _add(errors, "Missing required field: amt")
        return
    if kind is not OperationKind.TRANSFER and isinstance(amount, str) and "," in amount:
        _add(errors, "Invalid amount: multiple amounts are only allowed for TRANSFER")
        return
    for part in _amount_parts(amount):
        parsed = parse_decimal(part)
        if parsed is None:
            _add(errors, "Invalid amount: not a number")
        elif parsed <= 0:
            _add(errors, "Invalid amount: amount must be positive")
        elif is_integral(parsed) and parsed > UINT64_MAX:
            _add(errors, "Amount exceeds maximum allowed (uint64 limit)")


def _check_deploy(errors: list[str], data: Mapping[str, Any]) -> None:
    _check_uint64(errors, "max", data.get("max"))
    _check_uint64(errors, "lim", data.get("lim"))

    dec = data.get("dec")
    if dec is not None and dec != "":
        decimals = parse_integer(dec)
        if decimals is None or not 0 <= decimals <= MAX_DECIMALS:
            _add(errors, f"Invalid decimals: must be between 0 and {MAX_DECIMALS}")

    for name in ("img", "icon"):
        ref = data.get(name)
        if ref is not None and (not isinstance(ref, str) or not MEDIA_REF_RE.match(ref)):
            _add(errors, f"Invalid {name} format: must be protocol:hash (ipfs, ar, sia, storj)")


def collect_errors(data: Mapping[str, Any]) -> list[str]:
    """Return every validation problem in a wire-style mapping."""

    errors: list[str] = []
    protocol = data.get("p")
    if not isinstance(protocol, str) or protocol not in ACCEPTED_PROTOCOLS:
        _add(errors, "Invalid protocol: must be SRC-20")

    op = data.get("op")
    kind: OperationKind | None = None
    if isinstance(op, str):
        try:
            kind = OperationKind(op.upper())
        except ValueError:
            kind = None
    if kind is None:
        _add(errors, "Invalid operation: must be DEPLOY, MINT, or TRANSFER")

    _check_tick(errors, data.get("tick"))

    if kind is OperationKind.DEPLOY:
        _check_deploy(errors, data)
    elif kind in (OperationKind.MINT, OperationKind.TRANSFER):
        _check_amount(errors, data.get("amt"), kind)
    return errors


def validate_operation(operation: TokenOperation | Mapping[str, Any]) -> list[str]:
    """Return the validation errors for an operation or wire mapping."""

    if isinstance(operation, Mapping):
        return collect_errors(operation)
    return collect_errors(operation.to_mapping())


def ensure_valid(operation: TokenOperation | Mapping[str, Any]) -> None:
    errors = validate_operation(operation)
    if errors:
        raise ValidationError(errors)


def operation_from_mapping(data: Mapping[str, Any]) -> TokenOperation:
    """Build a typed operation from a ``{"p": ..., "op": ...}`` mapping."""

    ensure_valid(data)
    kind = OperationKind(str(data["op"]).upper())
    protocol = str(data["p"])
    tick = str(data["tick"])

    if kind is OperationKind.DEPLOY:
        dec = data.get("dec")
        metadata = {
            name: data[name] for name in DEPLOY_METADATA_FIELDS if data.get(name) is not None
        }
        return DeployOperation(
            tick=tick,
            max_supply=data["max"],
            limit=data["lim"],
            decimals=parse_integer(dec) if dec not in (None, "") else None,
            protocol=protocol,
            **metadata,
        )
    amount = data["amt"]
    if isinstance(amount, Sequence) and not isinstance(amount, str):
        amount = tuple(amount)
    if kind is OperationKind.MINT:
        return MintOperation(tick=tick, amount=amount, protocol=protocol)
    return TransferOperation(tick=tick, amount=amount, dest=data.get("dest"), protocol=protocol)
