"""RC4 keystream cipher used to obfuscate Counterparty messages.

Each call builds its own permutation table from the key, so the function is
safe to use from several threads with different keys.
"""

from __future__ import annotations


def _key_schedule(key: bytes) -> list[int]:
    state = list(range(256))
    j = 0
    key_length = len(key)
    for i in range(256):
        j = (j + state[i] + key[i % key_length]) % 256
        state[i], state[j] = state[j], state[i]
    return state


def rc4(key: bytes, data: bytes) -> bytes:
    """XOR *data* with the RC4 keystream derived from *key*.

    The operation is its own inverse.
    """

    if not key:
        raise ValueError("RC4 key must not be empty")
    if not data:
        return b""

    state = _key_schedule(bytes(key))
    out = bytearray(len(data))
    i = j = 0
    for index, byte in enumerate(data):
        i = (i + 1) % 256
        j = (j + state[i]) % 256
        state[i], state[j] = state[j], state[i]
        out[index] = byte ^ state[(state[i] + state[j]) % 256]
    return bytes(out)


encrypt = rc4
decrypt = rc4


def rc4_hex(key_hex: str, data_hex: str) -> str:
    """Hex-in, hex-out convenience wrapper around :func:`rc4`."""

    return rc4(bytes.fromhex(key_hex), bytes.fromhex(data_hex)).hex()
