"""Address <-> output script conversion for Bitcoin networks.

Base58Check covers P2PKH/P2SH; bech32 (BIP173) and bech32m (BIP350) cover
segwit v0 and v1+ programs.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from .errors import InvalidAddressError

B58_DIGITS = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
BECH32_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
BECH32_CONST = 1
BECH32M_CONST = 0x2BC830A3


@dataclass(frozen=True)
class NetworkParams:
    name: str
    hrp: str
    p2pkh_version: int
    p2sh_version: int


NETWORKS = {
    "mainnet": NetworkParams("mainnet", "bc", 0x00, 0x05),
    "testnet": NetworkParams("testnet", "tb", 0x6F, 0xC4),
    "signet": NetworkParams("signet", "tb", 0x6F, 0xC4),
    "regtest": NetworkParams("regtest", "bcrt", 0x6F, 0xC4),
}


def get_network(network: str) -> NetworkParams:
    try:
        return NETWORKS[network]
    except KeyError as exc:
        raise InvalidAddressError(f"Unknown network: {network}") from exc


def _double_sha256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def base58_check_encode(payload: bytes, version: int) -> str:
    data = bytes([version]) + payload
    data += _double_sha256(data)[:4]
    value = int.from_bytes(data, "big")
    output: list[str] = []
    while value > 0:
        value, remainder = divmod(value, 58)
        output.append(B58_DIGITS[remainder])
    leading_zeros = len(data) - len(data.lstrip(b"\x00"))
    return B58_DIGITS[0] * leading_zeros + "".join(reversed(output))


def base58_check_decode(address: str) -> tuple[int, bytes]:
    """Return ``(version, payload)`` after verifying the checksum."""

    value = 0
    for char in address:
        index = B58_DIGITS.find(char)
        if index < 0:
            raise InvalidAddressError(f"Invalid base58 character {char!r} in {address}")
        value = value * 58 + index
    raw = value.to_bytes((value.bit_length() + 7) // 8, "big") if value else b""
    leading_zeros = len(address) - len(address.lstrip(B58_DIGITS[0]))
    raw = b"\x00" * leading_zeros + raw
    if len(raw) < 5:
        raise InvalidAddressError(f"Address too short: {address}")
    data, checksum = raw[:-4], raw[-4:]
    if _double_sha256(data)[:4] != checksum:
        raise InvalidAddressError(f"Bad base58 checksum: {address}")
    return data[0], data[1:]


def bech32_polymod(values: list[int]) -> int:
    generator = [0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3]
    chk = 1
    for value in values:
        top = chk >> 25
        chk = (chk & 0x1FFFFFF) << 5 ^ value
        for i in range(5):
            chk ^= generator[i] if ((top >> i) & 1) else 0
    return chk


def bech32_hrp_expand(hrp: str) -> list[int]:
    return [ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp]


def _convertbits(data: list[int] | bytes, frombits: int, tobits: int, pad: bool = True) -> list[int] | None:
    acc = 0
    bits = 0
    ret: list[int] = []
    maxv = (1 << tobits) - 1
    max_acc = (1 << (frombits + tobits - 1)) - 1
    for value in data:
        if value < 0 or value >> frombits:
            return None
        acc = ((acc << frombits) | value) & max_acc
        bits += frombits
        while bits >= tobits:
            bits -= tobits
            ret.append((acc >> bits) & maxv)
    if pad:
        if bits:
            ret.append((acc << (tobits - bits)) & maxv)
    elif bits >= frombits or ((acc << (tobits - bits)) & maxv):
        return None
    return ret


def segwit_encode(hrp: str, witver: int, witprog: bytes) -> str:
    const = BECH32M_CONST if witver >= 1 else BECH32_CONST
    data = [witver] + (_convertbits(witprog, 8, 5) or [])
    polymod = bech32_polymod(bech32_hrp_expand(hrp) + data + [0] * 6) ^ const
    checksum = [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]
    return hrp + "1" + "".join(BECH32_CHARSET[d] for d in data + checksum)


def segwit_decode(hrp: str, address: str) -> tuple[int, bytes]:
    """Decode a segwit address for *hrp* into ``(version, program)``."""

    if address.lower() != address and address.upper() != address:
        raise InvalidAddressError(f"Mixed-case bech32 address: {address}")
    address = address.lower()
    pos = address.rfind("1")
    if pos < 1 or pos + 7 > len(address) or len(address) > 90:
        raise InvalidAddressError(f"Malformed bech32 address: {address}")
    if address[:pos] != hrp:
        raise InvalidAddressError(f"Address {address} is not for the {hrp} network")
    data: list[int] = []
    for char in address[pos + 1 :]:
        index = BECH32_CHARSET.find(char)
        if index < 0:
            raise InvalidAddressError(f"Invalid bech32 character {char!r} in {address}")
        data.append(index)

    witver = data[0]
    const = bech32_polymod(bech32_hrp_expand(hrp) + data)
    expected = BECH32M_CONST if witver >= 1 else BECH32_CONST
    if const != expected:
        raise InvalidAddressError(f"Bad bech32 checksum: {address}")
    program = _convertbits(data[1:-6], 5, 8, pad=False)
    if program is None or witver > 16 or not 2 <= len(program) <= 40:
        raise InvalidAddressError(f"Invalid witness program in {address}")
    if witver == 0 and len(program) not in (20, 32):
        raise InvalidAddressError(f"Invalid v0 witness program length in {address}")
    return witver, bytes(program)


def address_to_script(address: str, network: str = "mainnet") -> bytes:
    """Return the scriptPubKey paying *address* on *network*."""

    params = get_network(network)
    if not address:
        raise InvalidAddressError("Address must not be empty")

    if address.lower().startswith(params.hrp + "1"):
        witver, program = segwit_decode(params.hrp, address)
        opcode = 0x00 if witver == 0 else 0x50 + witver
        return bytes([opcode, len(program)]) + program

    version, payload = base58_check_decode(address)
    if len(payload) != 20:
        raise InvalidAddressError(f"Unexpected base58 payload length in {address}")
    if version == params.p2pkh_version:
        return b"\x76\xa9\x14" + payload + b"\x88\xac"
    if version == params.p2sh_version:
        return b"\xa9\x14" + payload + b"\x87"
    raise InvalidAddressError(f"Address {address} is not valid on {network}")


def script_to_address(script: bytes, network: str = "mainnet") -> str | None:
    """Return the address for a standard output script, if any."""

    params = get_network(network)
    if len(script) == 25 and script[:3] == b"\x76\xa9\x14" and script[23:] == b"\x88\xac":
        return base58_check_encode(script[3:23], params.p2pkh_version)
    if len(script) == 23 and script[:2] == b"\xa9\x14" and script[22] == 0x87:
        return base58_check_encode(script[2:22], params.p2sh_version)
    if 4 <= len(script) <= 42 and script[1] == len(script) - 2:
        opcode = script[0]
        if opcode == 0x00:
            return segwit_encode(params.hrp, 0, script[2:])
        if 0x51 <= opcode <= 0x60:
            return segwit_encode(params.hrp, opcode - 0x50, script[2:])
    return None
