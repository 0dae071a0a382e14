"""Minimum fee estimation by serializing a draft with placeholder witnesses."""

import logging
from typing import List, Optional

from pycardano import PaymentVerificationKey, Transaction, TransactionWitnessSet, VerificationKeyWitness

from .encoding import TxParts, join_tx
from .params import ProtocolParameters

logger = logging.getLogger(__name__)

FAKE_SIGNATURE = bytes(64)


def fake_vkey_witnesses(count: int) -> List[VerificationKeyWitness]:
    """Distinct placeholder witnesses with real key/signature sizes."""
    return [
        VerificationKeyWitness(PaymentVerificationKey(i.to_bytes(32, "big")), FAKE_SIGNATURE)
        for i in range(1, count + 1)
    ]


def estimate_fee(draft: Transaction, witness_count: int, params: ProtocolParameters,
                 auxiliary_data: Optional[bytes] = None) -> int:
    """
    Minimum fee of `draft` once it carries `witness_count` vkey witnesses.

    `auxiliary_data` is raw CBOR sent alongside the draft; when omitted the
    draft's own auxiliary data is used. The draft is not modified. Callers are
    expected to widen still-unknown amounts (fee, change) beforehand so the
    measured size is an upper bound.
    """
    witness_set = draft.transaction_witness_set
    sized_witnesses = TransactionWitnessSet(
        vkey_witnesses=fake_vkey_witnesses(witness_count) or None,
        native_scripts=witness_set.native_scripts if witness_set else None,
    )
    if auxiliary_data is None and draft.auxiliary_data is not None:
        auxiliary_data = draft.auxiliary_data.to_cbor()
    size = len(join_tx(TxParts(draft.transaction_body.to_cbor(), sized_witnesses.to_cbor(),
                               auxiliary_data=auxiliary_data)))
    if params.max_tx_size and size > params.max_tx_size:
        logger.warning(f"Transaction size {size} exceeds max tx size {params.max_tx_size}")

    fee = params.min_fee(size)
    logger.debug(f"Estimated fee {fee} for {size} bytes, {witness_count} witnesses")
    return fee
