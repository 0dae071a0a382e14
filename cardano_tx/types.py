"""
Value model: tokens, amounts, UTxOs, inputs and outputs.

Ledger serialization is delegated to pycardano; these types only carry what
coin selection and the builder need.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from pycardano import (
    Address,
    Asset,
    AssetName,
    MultiAsset,
    ScriptHash,
    TransactionId,
    TransactionInput,
    TransactionOutput,
    Value,
)

from .errors import InvalidTokenName

LOVELACE_TOKEN_NAME = "lovelace"
POLICY_ID_HEX_LENGTH = 56  # 28 bytes


def _is_policy_id(text: str) -> bool:
    if len(text) != POLICY_ID_HEX_LENGTH:
        return False
    try:
        bytes.fromhex(text)
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class Token:
    """
    Cardano native token identified by (policy_id, name).

    The chain's own coin is the LOVELACE sentinel: empty policy id and the
    fixed name "lovelace". Name holds the raw bytes (not hex).
    """
    policy_id: str
    name: bytes

    @property
    def is_lovelace(self) -> bool:
        return self.policy_id == "" and self.name == LOVELACE_TOKEN_NAME.encode()

    @classmethod
    def lovelace(cls) -> "Token":
        return cls(policy_id="", name=LOVELACE_TOKEN_NAME.encode())

    @classmethod
    def from_string(cls, full_name: str, name_encoded: bool = True) -> "Token":
        """
        Parse `policy_id.name` ("lovelace" for the coin).

        The name is hex unless `name_encoded` is False, in which case it is
        taken as plain text, e.g. "<policy>.WRAPPED".
        """
        if full_name == LOVELACE_TOKEN_NAME:
            return cls.lovelace()
        policy_id, sep, name = full_name.partition(".")
        if not sep or not _is_policy_id(policy_id):
            raise InvalidTokenName(full_name)
        if not name_encoded:
            return cls(policy_id=policy_id, name=name.encode())
        try:
            return cls(policy_id=policy_id, name=bytes.fromhex(name))
        except ValueError:
            raise InvalidTokenName(full_name) from None

    @classmethod
    def from_unit(cls, unit: str) -> "Token":
        """Parse concatenated policy id + hex name (Blockfrost `unit`, Ogmios asset id)."""
        if unit == LOVELACE_TOKEN_NAME:
            return cls.lovelace()
        unit = unit.replace(".", "")
        policy_id = unit[:POLICY_ID_HEX_LENGTH]
        if not _is_policy_id(policy_id):
            raise InvalidTokenName(unit)
        try:
            return cls(policy_id=policy_id, name=bytes.fromhex(unit[POLICY_ID_HEX_LENGTH:]))
        except ValueError:
            raise InvalidTokenName(unit) from None

    def __str__(self) -> str:
        if self.is_lovelace:
            return LOVELACE_TOKEN_NAME
        return f"{self.policy_id}.{self.name.hex()}"

    def __repr__(self) -> str:
        if self.is_lovelace:
            return "Token(lovelace)"
        return f"Token({self.policy_id[:8]}..{self.name.hex()[:8]})"


LOVELACE = Token.lovelace()


@dataclass(frozen=True)
class TokenAmount:
    """Token with amount."""
    token: Token
    amount: int

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError(f"negative amount {self.amount} for {self.token}")

    def __str__(self) -> str:
        return f"{self.amount} {self.token}"


@dataclass(frozen=True)
class TxInput:
    """Reference to an output of a previous transaction."""
    tx_hash: str
    output_index: int = 0

    def to_pycardano(self) -> TransactionInput:
        return TransactionInput(TransactionId(bytes.fromhex(self.tx_hash)), self.output_index)

    def __str__(self) -> str:
        return f"{self.tx_hash}#{self.output_index}"


@dataclass(frozen=True)
class Utxo:
    """Unspent output snapshot as returned by a provider."""
    tx_hash: str
    output_index: int = 0
    amount: int = 0
    tokens: Tuple[TokenAmount, ...] = ()

    def get_token_amount(self, token: Token) -> int:
        if token.is_lovelace:
            return self.amount
        return sum(t.amount for t in self.tokens if t.token == token)

    def to_input(self) -> TxInput:
        return TxInput(tx_hash=self.tx_hash, output_index=self.output_index)


@dataclass
class TxOutput:
    """Transaction output; amount and tokens may be rewritten while building."""
    address: str
    amount: int = 0
    tokens: List[TokenAmount] = field(default_factory=list)

    @property
    def has_tokens(self) -> bool:
        return any(t.amount > 0 for t in self.tokens)

    def to_pycardano(self) -> TransactionOutput:
        address = Address.decode(self.address)
        if not self.has_tokens:
            return TransactionOutput(address, self.amount)

        assets: Dict[ScriptHash, Dict[AssetName, int]] = {}
        for t in self.tokens:
            if t.amount == 0:
                continue
            policy = ScriptHash(bytes.fromhex(t.token.policy_id))
            assets.setdefault(policy, {})[AssetName(t.token.name)] = t.amount
        multi_asset = MultiAsset({policy: Asset(names) for policy, names in assets.items()})
        return TransactionOutput(address, Value(self.amount, multi_asset))


def _add_sum(result: Dict[Token, int], amount: int, tokens: Iterable[TokenAmount]):
    result[LOVELACE] += amount
    for t in tokens:
        result[t.token] += t.amount


def get_utxos_sum(utxos: Iterable[Utxo]) -> Dict[Token, int]:
    """Sum of every token (lovelace included) carried by the UTxOs."""
    result: Dict[Token, int] = defaultdict(int)
    result[LOVELACE] = 0
    for utxo in utxos:
        _add_sum(result, utxo.amount, utxo.tokens)
    return dict(result)


def get_outputs_sum(outputs: Iterable[TxOutput]) -> Dict[Token, int]:
    """Sum of every token (lovelace included) sent by the outputs."""
    result: Dict[Token, int] = defaultdict(int)
    result[LOVELACE] = 0
    for output in outputs:
        _add_sum(result, output.amount, output.tokens)
    return dict(result)


def get_tokens_from_sum(sum_map: Dict[Token, int], *skip: Token) -> List[TokenAmount]:
    """Non-lovelace entries of a sum map as TokenAmounts, in canonical token order."""
    return [
        TokenAmount(token, amount)
        for token, amount in sorted(sum_map.items(), key=lambda item: str(item[0]))
        if not token.is_lovelace and token not in skip and amount > 0
    ]
