"""
Signers and witness assembly.

A witness is a signature over the transaction body hash plus the key that
made it. Witnesses are independent of each other, so multisig participants
can sign the same raw transaction separately and the results combined in any
order.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Protocol, Union, runtime_checkable

from pycardano import (
    Address,
    Network,
    PaymentSigningKey,
    PaymentVerificationKey,
    TransactionWitnessSet,
    VerificationKey,
    VerificationKeyWitness,
)

from .encoding import body_hash, join_tx, split_tx
from .policy import PolicyScript

logger = logging.getLogger(__name__)


@runtime_checkable
class TxSigner(Protocol):
    """Anything able to sign a transaction hash."""

    @property
    def verification_key(self) -> VerificationKey: ...

    def sign(self, data: bytes) -> bytes: ...


class KeySigner:
    """Signs with a payment signing key held in memory."""

    def __init__(self, signing_key: PaymentSigningKey):
        self.signing_key = signing_key
        self._verification_key = PaymentVerificationKey.from_signing_key(signing_key)

    @classmethod
    def from_cbor_hex(cls, cbor_hex: str) -> "KeySigner":
        """Key in the `cborHex` form found in cardano-cli key files ("5820...")."""
        return cls(PaymentSigningKey.from_cbor(cbor_hex))

    @classmethod
    def load(cls, path: str) -> "KeySigner":
        """Load a cardano-cli text envelope `.skey` file."""
        return cls(PaymentSigningKey.load(path))

    @property
    def verification_key(self) -> VerificationKey:
        return self._verification_key

    @property
    def key_hash(self) -> str:
        return self._verification_key.hash().payload.hex()

    def address(self, network: Network = Network.TESTNET) -> Address:
        """Enterprise address of this key."""
        return Address(payment_part=self._verification_key.hash(), network=network)

    def sign(self, data: bytes) -> bytes:
        return self.signing_key.sign(data)


class RemoteSigner:
    """Delegates signing to an external device or service (hardware wallet, KMS)."""

    def __init__(self, verification_key: VerificationKey, sign_func: Callable[[bytes], bytes]):
        self._verification_key = verification_key
        self._sign_func = sign_func

    @property
    def verification_key(self) -> VerificationKey:
        return self._verification_key

    def sign(self, data: bytes) -> bytes:
        return self._sign_func(data)


@dataclass(frozen=True)
class Witness:
    """Signature of one key over a transaction hash."""
    key_hash: str
    vkey_witness: VerificationKeyWitness

    @classmethod
    def from_vkey_witness(cls, vkey_witness: VerificationKeyWitness) -> "Witness":
        return cls(key_hash=vkey_witness.vkey.hash().payload.hex(), vkey_witness=vkey_witness)

    @classmethod
    def from_cbor(cls, data: Union[bytes, str]) -> "Witness":
        return cls.from_vkey_witness(VerificationKeyWitness.from_cbor(data))

    def to_cbor(self) -> bytes:
        return self.vkey_witness.to_cbor()


def get_tx_hash(raw_tx: Union[bytes, str]) -> bytes:
    """Body hash of a serialized transaction (what every witness signs)."""
    return body_hash(split_tx(raw_tx).body).payload


def create_witness(tx_hash: Union[bytes, str], signer: TxSigner) -> Witness:
    if isinstance(tx_hash, str):
        tx_hash = bytes.fromhex(tx_hash)
    signature = signer.sign(tx_hash)
    return Witness.from_vkey_witness(VerificationKeyWitness(signer.verification_key, signature))


def combine_witnesses(raw_tx: Union[bytes, str], witnesses: Iterable[Union[Witness, bytes]]) -> bytes:
    """
    Merge witnesses into a raw transaction.

    Witnesses already present in `raw_tx` are kept. Duplicates (same key hash)
    are collapsed and the result is ordered by key hash, so the output does
    not depend on the order witnesses arrive in. Only the witness set is
    re-encoded; body and auxiliary data bytes are kept as they are.
    """
    parts = split_tx(raw_tx)
    witness_set = TransactionWitnessSet.from_cbor(parts.witness_set)

    by_key = {}
    for vkey_witness in list(witness_set.vkey_witnesses or []):
        w = Witness.from_vkey_witness(vkey_witness)
        by_key[w.key_hash] = w
    for w in witnesses:
        if not isinstance(w, Witness):
            w = Witness.from_cbor(w)
        if w.key_hash in by_key:
            logger.debug(f"Skipping duplicate witness for key {w.key_hash[:16]}..")
            continue
        by_key[w.key_hash] = w

    merged: List[VerificationKeyWitness] = [by_key[k].vkey_witness for k in sorted(by_key)]
    witness_set = replace(witness_set, vkey_witnesses=merged or None)
    return join_tx(replace(parts, witness_set=witness_set.to_cbor()))


def count_policy_signers(policy: PolicyScript, witnesses: Iterable[Witness]) -> int:
    """
    Distinct witnessing keys that belong to `policy`.

    Informational only: the ledger decides whether the threshold is met.
    """
    keys = set(policy.key_hashes)
    return len({w.key_hash for w in witnesses if w.key_hash in keys})
