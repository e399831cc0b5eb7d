from __future__ import annotations

import os

import pytest

from olga_stamps.rc4 import decrypt, encrypt, rc4, rc4_hex

try:
    from cryptography.hazmat.decrepit.ciphers.algorithms import ARC4
except ImportError:  # cryptography < 43
    from cryptography.hazmat.primitives.ciphers.algorithms import ARC4
from cryptography.hazmat.primitives.ciphers import Cipher


@pytest.mark.parametrize(
    ("key", "plaintext", "expected"),
    [
        (b"Key", b"Plaintext", "bbf316e8d940af0ad3"),
        (b"Wiki", b"pedia", "1021bf0420"),
        (b"Secret", b"Attack at dawn", "45a01f645fc35b383552544b9bf5"),
    ],
)
def test_rc4_known_vectors(key: bytes, plaintext: bytes, expected: str) -> None:
    assert rc4(key, plaintext).hex() == expected


@pytest.mark.parametrize("key_size", [5, 16, 32])
def test_rc4_matches_cryptography(key_size: int) -> None:
    key = os.urandom(key_size)
    data = os.urandom(97)

    reference = Cipher(ARC4(key), mode=None).encryptor().update(data)

    assert rc4(key, data) == reference


@pytest.mark.parametrize("key_size", [1, 3, 32, 300])
@pytest.mark.parametrize("data_size", [0, 1, 31, 256, 1000])
def test_rc4_is_symmetric(key_size: int, data_size: int) -> None:
    key = os.urandom(key_size)
    data = os.urandom(data_size)

    assert decrypt(key, encrypt(key, data)) == data


def test_rc4_empty_plaintext_returns_empty() -> None:
    assert rc4(b"key", b"") == b""


def test_rc4_rejects_empty_key() -> None:
    with pytest.raises(ValueError):
        rc4(b"", b"data")


def test_rc4_hex_wrapper() -> None:
    assert rc4_hex(b"Key".hex(), b"Plaintext".hex()) == "bbf316e8d940af0ad3"
