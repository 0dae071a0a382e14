"""
End-to-end send flows built from provider, selection, builder and witnesses.

    signed, tx_hash = await create_tx(provider, signer, receiver, 1_000_000)
    raw, tx_hash = await prepare_multisig_tx(provider, policy, fee_policy, receiver, 1_000_000)
    signed = assemble_all_witnesses(raw, signers)
"""

import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from pycardano import Address, Network

from .builder import DEFAULT_TTL_INCREMENT, TxBuilder
from .metadata import encode_metadata
from .policy import PolicyScript
from .providers.base import TxProvider, configure_from_provider
from .selection import select_utxos
from .types import LOVELACE, TxOutput, get_tokens_from_sum
from .witness import TxSigner, combine_witnesses, create_witness, get_tx_hash

logger = logging.getLogger(__name__)

POTENTIAL_FEE = 300_000
MIN_UTXO_VALUE = 1_000_000
MAX_INPUTS = 20


def default_threshold(key_count: int) -> int:
    """More than two thirds of the keys."""
    return key_count * 2 // 3 + 1


def signer_address(signer: TxSigner, network: Network = Network.TESTNET) -> str:
    """Enterprise address of the signer's payment key."""
    return str(Address(payment_part=signer.verification_key.hash(), network=network))


async def create_tx(
    provider: TxProvider,
    signer: TxSigner,
    receiver_address: str,
    send_amount: int,
    metadata: Optional[Dict[Any, Any]] = None,
    potential_fee: int = POTENTIAL_FEE,
    min_utxo_value: int = MIN_UTXO_VALUE,
    max_inputs: int = MAX_INPUTS,
    ttl_increment: int = DEFAULT_TTL_INCREMENT,
    network: Network = Network.TESTNET,
) -> Tuple[bytes, str]:
    """
    Send `send_amount` lovelace from the signer's enterprise address.

    Every native token found on the selected inputs goes back to the sender
    with the change. Returns (signed transaction, hash).
    """
    sender = signer_address(signer, network)
    builder = await configure_from_provider(TxBuilder(ttl_increment), provider)
    if metadata:
        builder.set_metadata(encode_metadata(metadata))

    utxos = await provider.get_utxos(sender)
    selection = select_utxos(utxos, {LOVELACE: send_amount + potential_fee + min_utxo_value}, max_inputs)

    builder.add_inputs(*selection.inputs)
    builder.add_outputs(
        TxOutput(receiver_address, send_amount),
        TxOutput(sender, selection.lovelace - send_amount, get_tokens_from_sum(selection.totals)),
    )
    builder.settle_fee(witness_count=1)

    raw, tx_hash = builder.build()
    return builder.sign_tx(raw, [signer]), tx_hash


async def prepare_multisig_tx(
    provider: TxProvider,
    policy: PolicyScript,
    fee_policy: PolicyScript,
    receiver_address: str,
    send_amount: int,
    metadata: Optional[Dict[Any, Any]] = None,
    potential_fee: int = POTENTIAL_FEE,
    min_utxo_value: int = MIN_UTXO_VALUE,
    max_inputs: int = MAX_INPUTS,
    ttl_increment: int = DEFAULT_TTL_INCREMENT,
    network: Network = Network.TESTNET,
) -> Tuple[bytes, str]:
    """
    Unsigned transaction paying from the `policy` script address, with the fee
    paid from the `fee_policy` script address.

    Output order: receiver, multisig change, fee change. The fee change is
    dropped when it comes out exactly zero. Returns (raw transaction, hash).
    """
    multisig_address = str(policy.address(network))
    fee_address = str(fee_policy.address(network))

    builder = await configure_from_provider(TxBuilder(ttl_increment), provider)
    if metadata:
        builder.set_metadata(encode_metadata(metadata))

    multisig_utxos = await provider.get_utxos(multisig_address)
    fee_utxos = await provider.get_utxos(fee_address)
    inputs = select_utxos(multisig_utxos, {LOVELACE: send_amount + min_utxo_value}, max_inputs)
    fee_inputs = select_utxos(fee_utxos, {LOVELACE: potential_fee + min_utxo_value}, max_inputs)

    builder.add_outputs(
        TxOutput(receiver_address, send_amount),
        TxOutput(multisig_address, inputs.lovelace - send_amount, get_tokens_from_sum(inputs.totals)),
        TxOutput(fee_address, fee_inputs.lovelace, get_tokens_from_sum(fee_inputs.totals)),
    )
    builder.add_inputs_with_script(policy, *inputs.inputs)
    builder.add_inputs_with_script(fee_policy, *fee_inputs.inputs)

    fee = builder.settle_fee(change_index=-1)
    logger.debug(f"Multisig fee {fee}, {policy.count + fee_policy.count} potential signers")
    return builder.build()


def assemble_all_witnesses(tx_raw: bytes, signers: Sequence[TxSigner]) -> bytes:
    """Witness `tx_raw` with every signer (e.g. all multisig participants) at once."""
    tx_hash = get_tx_hash(tx_raw)
    return combine_witnesses(tx_raw, [create_witness(tx_hash, s) for s in signers])


async def create_multisig_tx(
    provider: TxProvider,
    signers: Sequence[TxSigner],
    fee_signers: Sequence[TxSigner],
    receiver_address: str,
    send_amount: int,
    metadata: Optional[Dict[Any, Any]] = None,
    network: Network = Network.TESTNET,
    **kwargs,
) -> Tuple[bytes, str]:
    """
    Build and sign a multisig payment.

    Policies are derived from the signers' key hashes with the default
    threshold; every signer given here witnesses the transaction.
    """
    policy = PolicyScript([s.verification_key.hash().payload.hex() for s in signers],
                          default_threshold(len(signers)))
    fee_policy = PolicyScript([s.verification_key.hash().payload.hex() for s in fee_signers],
                              default_threshold(len(fee_signers)))
    raw, tx_hash = await prepare_multisig_tx(provider, policy, fee_policy, receiver_address, send_amount,
                                             metadata=metadata, network=network, **kwargs)
    return assemble_all_witnesses(raw, [*signers, *fee_signers]), tx_hash
