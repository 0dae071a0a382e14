"""Shared fixtures: deterministic keys, protocol parameters and an in-memory provider."""

from typing import Any, Dict, List, Optional

import pytest
from pycardano import PaymentSigningKey

from cardano_tx.params import ProtocolParameters
from cardano_tx.providers.base import ChainTip
from cardano_tx.types import Token, TokenAmount, Utxo
from cardano_tx.witness import KeySigner, get_tx_hash

TEST_TOKEN = Token("1", b"1")
POLICY_ID = "ab" * 28
NATIVE_TOKEN = Token(POLICY_ID, b"WRAPPED")


def make_signer(i: int) -> KeySigner:
    return KeySigner(PaymentSigningKey(bytes([i]) * 32))


def tx_hash(i: int) -> str:
    return f"{i:064x}"


class FakeProvider:
    """In-memory TxProvider. Submitted transactions can credit an address."""

    name = "fake"

    def __init__(self, params: ProtocolParameters, slot: int = 1000):
        self.params = params
        self.tip = ChainTip(slot=slot, block_hash="00" * 32, block_height=10, epoch=1)
        self.utxos: Dict[str, List[Utxo]] = {}
        self.txs: Dict[str, Dict[str, Any]] = {}
        self.submitted: List[bytes] = []
        self.credit_on_submit: Optional[tuple] = None  # (address, lovelace)
        self.closed = False

    async def get_utxos(self, address: str) -> List[Utxo]:
        return list(self.utxos.get(address, []))

    async def get_protocol_parameters(self) -> ProtocolParameters:
        return self.params

    async def get_tip(self) -> ChainTip:
        return self.tip

    async def submit_tx(self, tx_raw: bytes) -> str:
        self.submitted.append(tx_raw)
        tx_id = get_tx_hash(tx_raw).hex()
        if self.credit_on_submit:
            address, amount = self.credit_on_submit
            self.utxos.setdefault(address, []).append(Utxo(tx_id, 0, amount))
        self.txs[tx_id] = {"hash": tx_id}
        return tx_id

    async def get_tx_by_hash(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return self.txs.get(tx_hash)

    async def close(self):
        self.closed = True


@pytest.fixture
def params():
    return ProtocolParameters(min_fee_a=44, min_fee_b=155381, max_tx_size=16384)


@pytest.fixture
def provider(params):
    return FakeProvider(params)


@pytest.fixture
def signers():
    return [make_signer(i) for i in range(1, 7)]


@pytest.fixture
def sender(signers):
    return signers[0]


@pytest.fixture
def receiver_address(signers):
    return str(signers[5].address())


@pytest.fixture
def scenario_utxos():
    """Mixed lovelace/token UTxO set; hashes "1".."8" in provider order."""
    return [
        Utxo("1", 0, 100),
        Utxo("2", 0, 50, (TokenAmount(TEST_TOKEN, 100),)),
        Utxo("3", 0, 150),
        Utxo("4", 0, 200),
        Utxo("5", 0, 160, (TokenAmount(TEST_TOKEN, 50),)),
        Utxo("6", 0, 400),
        Utxo("7", 0, 200, (TokenAmount(TEST_TOKEN, 400),)),
        Utxo("8", 0, 50, (TokenAmount(TEST_TOKEN, 200),)),
    ]
