"""
Raw transaction envelope.

A serialized transaction is the CBOR array [body, witness_set, valid,
auxiliary_data] (older eras omit `valid`). The helpers here split it into the
raw bytes of each element and join them back without re-encoding, so the body
(and therefore the transaction hash) and the auxiliary data survive any number
of witness rounds byte for byte.
"""

import io
from dataclasses import dataclass
from typing import Optional, Union

from cbor2pure import CBORDecoder, dumps
from nacl.encoding import RawEncoder
from nacl.hash import blake2b
from pycardano import AuxiliaryDataHash, TransactionId
from pycardano.serialization import RawCBOR, default_encoder

TRANSACTION_HASH_SIZE = 32
AUXILIARY_DATA_HASH_SIZE = 32

CBOR_ARRAY = 4  # major type


@dataclass(frozen=True)
class TxParts:
    """Raw CBOR of each top-level transaction element."""
    body: bytes
    witness_set: bytes
    valid: bool = True
    auxiliary_data: Optional[bytes] = None


def split_tx(raw_tx: Union[bytes, str]) -> TxParts:
    if isinstance(raw_tx, str):
        raw_tx = bytes.fromhex(raw_tx)
    if not raw_tx or raw_tx[0] >> 5 != CBOR_ARRAY or (raw_tx[0] & 0x1F) not in (3, 4):
        raise ValueError("not a serialized transaction")

    stream = io.BytesIO(raw_tx)
    stream.seek(1)
    decoder = CBORDecoder(stream)
    items = []
    for _ in range(raw_tx[0] & 0x1F):
        start = stream.tell()
        value = decoder.decode()
        items.append((raw_tx[start:stream.tell()], value))
    if stream.tell() != len(raw_tx):
        raise ValueError("trailing bytes after transaction")

    if len(items) == 3:
        (body, _), (witness_set, _), (aux, aux_value) = items
        valid = True
    else:
        (body, _), (witness_set, _), (_, valid), (aux, aux_value) = items
    return TxParts(body, witness_set, valid, None if aux_value is None else aux)


def join_tx(parts: TxParts) -> bytes:
    aux = RawCBOR(parts.auxiliary_data) if parts.auxiliary_data else None
    return dumps([RawCBOR(parts.body), RawCBOR(parts.witness_set), parts.valid, aux], default=default_encoder)


def body_hash(body: bytes) -> TransactionId:
    return TransactionId(blake2b(body, TRANSACTION_HASH_SIZE, encoder=RawEncoder))


def auxiliary_data_hash(auxiliary_data: bytes) -> AuxiliaryDataHash:
    """Hash of the auxiliary data exactly as it will be serialized."""
    return AuxiliaryDataHash(blake2b(auxiliary_data, AUXILIARY_DATA_HASH_SIZE, encoder=RawEncoder))
