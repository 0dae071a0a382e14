"""
Transaction builder.

A TxBuilder assembles exactly one transaction and moves through fixed states:

    EMPTY -> CONFIGURED -> POPULATED -> SIZED -> FINALIZED -> WITNESSED

configure() sets protocol parameters and TTL, add_* calls populate inputs and
outputs, set_fee()/settle_fee() size it, build() serializes it and sign_tx()
attaches witnesses. Going back to an earlier state raises BuilderMisuse; use a
fresh builder per transaction.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union

from pycardano import Transaction, TransactionBody, TransactionWitnessSet

from .encoding import TxParts, auxiliary_data_hash, join_tx
from .errors import BuilderMisuse, NegativeChange, OutputNotRemovable
from .fee import estimate_fee
from .params import ProtocolParameters
from .policy import PolicyScript
from .types import TokenAmount, TxInput, TxOutput
from .witness import TxSigner, Witness, combine_witnesses, create_witness, get_tx_hash

logger = logging.getLogger(__name__)

DEFAULT_TTL_INCREMENT = 200

# Widest values the fee and change fields can realistically take, so a draft
# measured with them is never smaller than the final transaction.
FEE_PLACEHOLDER = 2**32 - 1
CHANGE_PLACEHOLDER = 2**64 - 1


class BuilderState(Enum):
    EMPTY = 0
    CONFIGURED = 1
    POPULATED = 2
    SIZED = 3
    FINALIZED = 4
    WITNESSED = 5


class TxBuilder:
    """Single-use, single-threaded transaction assembler."""

    def __init__(self, default_ttl_increment: int = DEFAULT_TTL_INCREMENT):
        self.default_ttl_increment = default_ttl_increment
        self._state = BuilderState.EMPTY
        self._params: Optional[ProtocolParameters] = None
        self._ttl = 0
        self._inputs: List[TxInput] = []
        self._scripts: Dict[str, PolicyScript] = {}
        self._has_plain_inputs = False
        self._outputs: List[TxOutput] = []
        self._metadata: Optional[bytes] = None
        self._fee = 0
        self._raw: Optional[bytes] = None

    @property
    def state(self) -> BuilderState:
        return self._state

    @property
    def ttl(self) -> int:
        return self._ttl

    @property
    def fee(self) -> int:
        return self._fee

    @property
    def inputs(self) -> Tuple[TxInput, ...]:
        return tuple(self._inputs)

    @property
    def outputs(self) -> Tuple[TxOutput, ...]:
        return tuple(self._outputs)

    @property
    def protocol_parameters(self) -> Optional[ProtocolParameters]:
        return self._params

    def _require(self, operation: str, *allowed: BuilderState):
        if self._state not in allowed:
            raise BuilderMisuse(operation, allowed, self._state)

    # Configure

    def configure(self, params: ProtocolParameters, current_slot: int, ttl_increment: int = 0) -> "TxBuilder":
        """Set protocol parameters and TTL = current_slot + ttl_increment (default increment if 0)."""
        self._require("configure", BuilderState.EMPTY)
        self._params = params
        self._ttl = current_slot + (ttl_increment or self.default_ttl_increment)
        self._state = BuilderState.CONFIGURED
        return self

    # Populate

    def set_metadata(self, metadata: bytes) -> "TxBuilder":
        """Attach auxiliary data CBOR verbatim (see metadata.encode_metadata); empty clears it."""
        self._require("set metadata", BuilderState.CONFIGURED, BuilderState.POPULATED)
        self._metadata = bytes(metadata) if metadata else None
        return self

    def add_inputs(self, *inputs: TxInput) -> "TxBuilder":
        self._require("add inputs", BuilderState.CONFIGURED, BuilderState.POPULATED)
        self._inputs.extend(inputs)
        if inputs:
            self._has_plain_inputs = True
        self._state = BuilderState.POPULATED
        return self

    def add_inputs_with_script(self, policy: PolicyScript, *inputs: TxInput) -> "TxBuilder":
        """Add inputs locked by `policy`; the script goes into the witness set."""
        self._require("add inputs", BuilderState.CONFIGURED, BuilderState.POPULATED)
        self._inputs.extend(inputs)
        self._scripts.setdefault(policy.derive_policy_id(), policy)
        self._state = BuilderState.POPULATED
        return self

    def add_outputs(self, *outputs: TxOutput) -> "TxBuilder":
        self._require("add outputs", BuilderState.CONFIGURED, BuilderState.POPULATED)
        self._outputs.extend(outputs)
        self._state = BuilderState.POPULATED
        return self

    def update_output_amount(self, index: int, amount: int,
                             tokens: Optional[Sequence[TokenAmount]] = None) -> "TxBuilder":
        """Rewrite an output's lovelace (and optionally tokens); index -1 is the last output."""
        self._require("update output", BuilderState.POPULATED, BuilderState.SIZED)
        if amount < 0:
            raise NegativeChange(amount, self._fee)
        output = self._outputs[index]
        output.amount = amount
        if tokens is not None:
            output.tokens = list(tokens)
        return self

    def remove_output(self, index: int) -> "TxBuilder":
        """Drop an output; only allowed when it carries no tokens."""
        self._require("remove output", BuilderState.POPULATED, BuilderState.SIZED)
        output = self._outputs[index]
        if output.has_tokens:
            raise OutputNotRemovable(index, output.tokens)
        del self._outputs[index]
        return self

    # Size

    def default_witness_count(self) -> int:
        """One witness for plain inputs plus every key of each spending script."""
        return int(self._has_plain_inputs) + sum(p.count for p in self._scripts.values())

    def _check_populated(self, operation: str):
        self._require(operation, BuilderState.POPULATED, BuilderState.SIZED)
        if not self._inputs or not self._outputs:
            raise BuilderMisuse(operation, (BuilderState.POPULATED,), self._state,
                                reason="transaction needs at least one input and one output")

    def calculate_fee(self, witness_count: int = 0, change_index: Optional[int] = -1) -> int:
        """
        Minimum fee for the current draft.

        The change output at `change_index` (None for no change) and the fee
        are measured at their widest encoding, so the result stays valid after
        the change amount is rewritten.
        """
        self._check_populated("calculate fee")
        draft = self._assemble(FEE_PLACEHOLDER, change_index)
        return estimate_fee(draft, witness_count or self.default_witness_count(), self._params,
                            auxiliary_data=self._metadata)

    def set_fee(self, fee: int) -> "TxBuilder":
        self._check_populated("set fee")
        self._fee = fee
        self._state = BuilderState.SIZED
        return self

    def settle_fee(self, witness_count: int = 0, change_index: int = -1) -> int:
        """
        Calculate the fee, set it and pay it from the change output.

        The change output must already hold inputs minus payments. A change
        that ends up exactly zero and carries no tokens is removed.

        Raises:
            NegativeChange: change is smaller than the fee.
            OutputNotRemovable: change is zero but carries tokens.
        """
        self._require("settle fee", BuilderState.POPULATED)
        fee = self.calculate_fee(witness_count, change_index)
        change = self._outputs[change_index]
        remaining = change.amount - fee
        if remaining < 0:
            raise NegativeChange(change.amount, fee)
        if remaining == 0 and change.has_tokens:
            raise OutputNotRemovable(change_index, change.tokens)

        self.set_fee(fee)
        if remaining == 0:
            logger.debug("Change output is empty after fee, removing it")
            self.remove_output(change_index)
        else:
            change.amount = remaining
        return fee

    # Finalize

    def _assemble(self, fee: int, change_index: Optional[int] = None) -> Transaction:
        outputs = []
        for output in self._outputs:
            outputs.append(output.to_pycardano())
        if change_index is not None:
            widened = TxOutput(self._outputs[change_index].address, CHANGE_PLACEHOLDER,
                               self._outputs[change_index].tokens)
            outputs[change_index] = widened.to_pycardano()

        body = TransactionBody(
            inputs=[i.to_pycardano() for i in self._inputs],
            outputs=outputs,
            fee=fee,
            ttl=self._ttl,
            auxiliary_data_hash=auxiliary_data_hash(self._metadata) if self._metadata else None,
        )
        scripts = [p.to_native_script() for _, p in sorted(self._scripts.items())]
        witness_set = TransactionWitnessSet(native_scripts=scripts or None)
        return Transaction(body, witness_set)

    def build(self) -> Tuple[bytes, str]:
        """Serialize the sized transaction; returns (raw CBOR, transaction hash hex)."""
        self._require("build", BuilderState.SIZED)
        tx = self._assemble(self._fee)
        self._raw = join_tx(TxParts(tx.transaction_body.to_cbor(), tx.transaction_witness_set.to_cbor(),
                                    auxiliary_data=self._metadata))
        tx_hash = tx.transaction_body.hash().hex()
        self._state = BuilderState.FINALIZED
        logger.info(f"Built transaction {tx_hash}: {len(self._inputs)} inputs, "
                    f"{len(self._outputs)} outputs, fee {self._fee}, ttl {self._ttl}")
        return self._raw, tx_hash

    # Witness

    def sign_tx(self, tx_raw: bytes, signers: Sequence[TxSigner]) -> bytes:
        """Create one witness per signer and attach them all."""
        self._require("sign", BuilderState.FINALIZED)
        tx_hash = get_tx_hash(tx_raw)
        return self.assemble_witnesses(tx_raw, [create_witness(tx_hash, s) for s in signers])

    def assemble_witnesses(self, tx_raw: bytes, witnesses: Sequence[Union[Witness, bytes]]) -> bytes:
        self._require("assemble witnesses", BuilderState.FINALIZED)
        signed = combine_witnesses(tx_raw, witnesses)
        self._state = BuilderState.WITNESSED
        return signed
