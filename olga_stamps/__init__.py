"""SRC-20 and Bitcoin Stamps transaction output codec."""

from .decoder import (
    contains_src20_data,
    count_embedded_outputs,
    decode_from_tx_hex,
    decode_from_txid,
    decode_outputs,
    decode_record,
    get_operation_type,
    get_ticker,
)
from .diagnostics import DiagnosticEvent, Diagnostics
from .encoder import EncodingResult, SRC20Encoder, encode_src20
from .errors import (
    CapacityError,
    EnvelopeSizeError,
    InvalidAddressError,
    InvalidAssetNameError,
    OlgaError,
    OutputLimitError,
    SelectionError,
    ValidationError,
)
from .model import (
    DeployOperation,
    EmbeddedOutput,
    EncodingOptions,
    MintOperation,
    NormalizedRecord,
    OperationKind,
    TokenOperation,
    TransferOperation,
    TxOutput,
)
from .serializer import normalize, serialize
from .stamps import StampEncoder, decode_stamp
from .validation import operation_from_mapping, validate_operation

__all__ = [
    "CapacityError",
    "DeployOperation",
    "DiagnosticEvent",
    "Diagnostics",
    "EmbeddedOutput",
    "EncodingOptions",
    "EncodingResult",
    "EnvelopeSizeError",
    "InvalidAddressError",
    "InvalidAssetNameError",
    "MintOperation",
    "NormalizedRecord",
    "OlgaError",
    "OperationKind",
    "OutputLimitError",
    "SRC20Encoder",
    "SelectionError",
    "StampEncoder",
    "TokenOperation",
    "TransferOperation",
    "TxOutput",
    "ValidationError",
    "contains_src20_data",
    "count_embedded_outputs",
    "decode_from_tx_hex",
    "decode_from_txid",
    "decode_outputs",
    "decode_record",
    "decode_stamp",
    "encode_src20",
    "get_operation_type",
    "get_ticker",
    "normalize",
    "operation_from_mapping",
    "serialize",
    "validate_operation",
]
