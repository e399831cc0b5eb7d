"""Counterparty asset name <-> 8-byte asset id conversion."""

from __future__ import annotations

import logging

from .diagnostics import NAMED_ASSET_BURN, SUBASSET_PARENT, Diagnostics, emit
from .errors import InvalidAssetNameError

logger = logging.getLogger(__name__)

B26_DIGITS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
MIN_NAMED_ASSET_ID = 26**3
MAX_NAMED_ASSET_ID = 26**12 - 1
MIN_NUMERIC_ASSET_ID = 26**12 + 1
MAX_NUMERIC_ASSET_ID = 2**64 - 1

SPECIAL_ASSETS = {"BTC": 0, "XCP": 1}


def _encode_numeric(name: str) -> int:
    digits = name[1:]
    if not digits.isdigit() or not digits.isascii():
        raise InvalidAssetNameError(f"Invalid numeric asset name: {name}")
    asset_id = int(digits)
    if not MIN_NUMERIC_ASSET_ID <= asset_id <= MAX_NUMERIC_ASSET_ID:
        raise InvalidAssetNameError(
            f"Numeric asset id out of range ({MIN_NUMERIC_ASSET_ID}..{MAX_NUMERIC_ASSET_ID}): {name}"
        )
    return asset_id


def _encode_named(name: str) -> int:
    if not 4 <= len(name) <= 12:
        raise InvalidAssetNameError(f"Named assets must be 4-12 characters: {name}")
    asset_id = 0
    for char in name:
        index = B26_DIGITS.find(char)
        if index < 0:
            raise InvalidAssetNameError(f"Invalid character {char!r} in asset name: {name}")
        asset_id = asset_id * 26 + index
    if asset_id < MIN_NAMED_ASSET_ID:
        raise InvalidAssetNameError(f"Asset name too short: {name}")
    return asset_id


def asset_to_id(name: str, diagnostics: Diagnostics | None = None) -> int:
    """Return the 64-bit asset id for *name*.

    ``A<digits>`` names map to their number; alphabetic names are read as
    base-26 with ``A`` as zero.  A sub-asset (``PARENT.child``) resolves to the
    parent's id.
    """

    if not name:
        raise InvalidAssetNameError("Asset name must not be empty")
    if name in SPECIAL_ASSETS:
        return SPECIAL_ASSETS[name]

    if "." in name:
        parent, _, child = name.partition(".")
        if not child:
            raise InvalidAssetNameError(f"Sub-asset name is missing its child part: {name}")
        emit(
            diagnostics,
            SUBASSET_PARENT,
            f"sub-asset {name} is issued under the parent asset id",
            parent=parent,
        )
        name = parent

    if name.startswith("A"):
        return _encode_numeric(name)

    asset_id = _encode_named(name)
    emit(
        diagnostics,
        NAMED_ASSET_BURN,
        f"named asset {name} requires an XCP burn on issuance",
        asset=name,
    )
    return asset_id


def id_to_asset(asset_id: int) -> str:
    """Return the asset name for *asset_id*."""

    for name, special in SPECIAL_ASSETS.items():
        if asset_id == special:
            return name
    if asset_id > MAX_NUMERIC_ASSET_ID or asset_id < 0:
        raise InvalidAssetNameError(f"Asset id out of range: {asset_id}")
    if asset_id >= MIN_NUMERIC_ASSET_ID:
        return f"A{asset_id}"
    if not MIN_NAMED_ASSET_ID <= asset_id <= MAX_NAMED_ASSET_ID:
        raise InvalidAssetNameError(f"Asset id is not a valid named asset: {asset_id}")

    chars: list[str] = []
    while asset_id > 0:
        asset_id, remainder = divmod(asset_id, 26)
        chars.append(B26_DIGITS[remainder])
    return "".join(reversed(chars))


def is_numeric_asset(name: str) -> bool:
    try:
        return name.startswith("A") and _encode_numeric(name.partition(".")[0]) > 0
    except InvalidAssetNameError:
        return False
