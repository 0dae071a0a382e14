"""
Cardano transaction funding and assembly.

Structure:
    cardano_tx/
    ├── types.py          # Token, TokenAmount, Utxo, TxInput, TxOutput
    ├── errors.py         # CardanoTxError hierarchy
    ├── policy.py         # Multisig (atLeast) policy scripts
    ├── selection.py      # Coin selection
    ├── fee.py            # Fee estimation
    ├── builder.py        # TxBuilder state machine
    ├── witness.py        # Signers and witness assembly
    ├── encoding.py       # Raw transaction envelope (split/join without re-encoding)
    ├── metadata.py       # Transaction metadata
    ├── params.py         # Protocol parameters
    ├── confirm.py        # Submit and wait for confirmation
    ├── helpers.py        # Single-signer and multisig send flows
    ├── blockchain/       # Ogmios client
    └── providers/        # Ogmios, Blockfrost, cardano-cli

Usage:
    from cardano_tx import TxBuilder, select_utxos, LOVELACE
    from cardano_tx.providers import create_provider
    from cardano_tx.helpers import create_tx
"""

from .builder import BuilderState, TxBuilder
from .errors import (
    BuilderMisuse,
    CardanoTxError,
    ConfirmationTimeout,
    InsufficientFunds,
    InvalidTokenName,
    NegativeChange,
    OutputNotRemovable,
    PolicyScriptInvalid,
    ProviderUnavailable,
)
from .fee import estimate_fee
from .metadata import encode_metadata
from .params import ProtocolParameters
from .policy import PolicyScript
from .selection import SelectionResult, select_utxos
from .types import LOVELACE, Token, TokenAmount, TxInput, TxOutput, Utxo
from .witness import KeySigner, RemoteSigner, TxSigner, Witness, combine_witnesses, create_witness

__all__ = [
    # Types
    "LOVELACE",
    "Token",
    "TokenAmount",
    "TxInput",
    "TxOutput",
    "Utxo",
    # Building
    "BuilderState",
    "TxBuilder",
    "ProtocolParameters",
    "PolicyScript",
    "SelectionResult",
    "select_utxos",
    "estimate_fee",
    "encode_metadata",
    # Signing
    "TxSigner",
    "KeySigner",
    "RemoteSigner",
    "Witness",
    "create_witness",
    "combine_witnesses",
    # Errors
    "CardanoTxError",
    "InsufficientFunds",
    "BuilderMisuse",
    "NegativeChange",
    "OutputNotRemovable",
    "InvalidTokenName",
    "PolicyScriptInvalid",
    "ProviderUnavailable",
    "ConfirmationTimeout",
]
