"""Domain models for SRC-20 records and the outputs that carry them.

Token operations are a closed set of frozen dataclasses.  Pipeline stages
dispatch over :data:`TokenOperation` with ``isinstance`` chains that end in
:func:`unknown_operation`, so a new variant fails loudly until every stage
handles it.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, ClassVar, NoReturn, Union

PROTOCOL = "SRC-20"
STAMP_TAG = b"stamp:"
DEFAULT_DUST_VALUE = 330
EMBEDDED_SCRIPT_SIZE = 34
EMBEDDED_CHUNK_SIZE = 32
MAX_TX_SIZE = 100_000
DEFAULT_MAX_OUTPUTS = MAX_TX_SIZE // EMBEDDED_SCRIPT_SIZE
DEFAULT_COMPRESSION_THRESHOLD = 100
DEPLOY_METADATA_FIELDS = ("description", "x", "web", "email", "tg", "img", "icon")

Amount = Union[str, int, float]


class OperationKind(str, Enum):
    DEPLOY = "DEPLOY"
    MINT = "MINT"
    TRANSFER = "TRANSFER"


@dataclass(frozen=True)
class DeployOperation:
    """Create a new ticker with a supply cap and per-mint limit."""

    kind: ClassVar[OperationKind] = OperationKind.DEPLOY

    tick: str
    max_supply: Amount
    limit: Amount
    decimals: int | str | None = None
    description: str | None = None
    x: str | None = None
    web: str | None = None
    email: str | None = None
    tg: str | None = None
    img: str | None = None
    icon: str | None = None
    protocol: str = PROTOCOL

    def to_mapping(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "p": self.protocol,
            "op": self.kind.value,
            "tick": self.tick,
            "max": self.max_supply,
            "lim": self.limit,
        }
        if self.decimals is not None:
            data["dec"] = self.decimals
        for name in DEPLOY_METADATA_FIELDS:
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


@dataclass(frozen=True)
class MintOperation:
    kind: ClassVar[OperationKind] = OperationKind.MINT

    tick: str
    amount: Amount | Sequence[Amount]
    protocol: str = PROTOCOL

    def to_mapping(self) -> dict[str, Any]:
        return {"p": self.protocol, "op": self.kind.value, "tick": self.tick, "amt": self.amount}


@dataclass(frozen=True)
class TransferOperation:
    """Move tokens; ``amount`` may list several comma-joined amounts."""

    kind: ClassVar[OperationKind] = OperationKind.TRANSFER

    tick: str
    amount: Amount | Sequence[Amount]
    dest: str | None = None
    protocol: str = PROTOCOL

    def to_mapping(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "p": self.protocol,
            "op": self.kind.value,
            "tick": self.tick,
            "amt": self.amount,
        }
        if self.dest is not None:
            data["dest"] = self.dest
        return data


TokenOperation = Union[DeployOperation, MintOperation, TransferOperation]


def unknown_operation(operation: object) -> NoReturn:
    raise TypeError(f"Unsupported token operation: {type(operation).__name__}")


class NormalizedRecord(Mapping[str, Any]):
    """Immutable, ordered wire form of a token operation."""

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[str, Any] | Sequence[tuple[str, Any]]) -> None:
        self._items = dict(items)

    def __getitem__(self, key: str) -> Any:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"NormalizedRecord({self._items!r})"

    def __hash__(self) -> int:
        return hash(tuple(self._items.items()))

    @property
    def kind(self) -> OperationKind | None:
        op = self._items.get("op")
        if not isinstance(op, str):
            return None
        try:
            return OperationKind(op.upper())
        except ValueError:
            return None

    def to_dict(self) -> dict[str, Any]:
        return dict(self._items)


@dataclass(frozen=True)
class SerializedPayload:
    """Tagged payload bytes and the path that produced them."""

    data: bytes
    compressed: bool
    json_text: str
    json_size: int
    compressed_size: int | None = None

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class TxOutput:
    script: bytes
    value: int

    def to_dict(self) -> dict[str, Any]:
        return {"script": self.script.hex(), "value": self.value}


@dataclass(frozen=True)
class EmbeddedOutput(TxOutput):
    """A ``0x00 0x20 <32 bytes>`` output whose hash field carries payload data."""

    def __post_init__(self) -> None:
        if len(self.script) != EMBEDDED_SCRIPT_SIZE or self.script[:2] != b"\x00\x20":
            raise ValueError("Embedded outputs must use the 34-byte 0x00 0x20 script template")

    @property
    def chunk(self) -> bytes:
        return self.script[2:]


@dataclass
class EncodingOptions:
    """Configuration consumed by the encoders.

    ``max_outputs`` is a relay-policy sanity ceiling derived from a 100 KB
    transaction, not a protocol limit; callers may raise it.
    """

    dust_value: int = DEFAULT_DUST_VALUE
    max_outputs: int = DEFAULT_MAX_OUTPUTS
    use_compression: bool = True
    compression_threshold: int = DEFAULT_COMPRESSION_THRESHOLD
    from_address: str | None = None
    to_address: str | None = None
    network: str = "mainnet"

    @classmethod
    def default(cls) -> "EncodingOptions":
        return cls()

    def with_overrides(self, **changes: Any) -> "EncodingOptions":
        return replace(self, **changes)
