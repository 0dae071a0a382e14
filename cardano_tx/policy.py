"""Threshold multisig policy scripts."""

from dataclasses import dataclass
from typing import Iterable, Tuple

from pycardano import Address, Network, ScriptNofK, ScriptPubkey, VerificationKeyHash

from .errors import PolicyScriptInvalid

KEY_HASH_SIZE = 28


def _normalize_key_hashes(key_hashes: Iterable[str]) -> Tuple[str, ...]:
    normalized = set()
    for key_hash in key_hashes:
        try:
            raw = bytes.fromhex(key_hash)
        except (TypeError, ValueError):
            raise PolicyScriptInvalid(f"malformed key hash {key_hash!r}") from None
        if len(raw) != KEY_HASH_SIZE:
            raise PolicyScriptInvalid(f"key hash {key_hash} is not {KEY_HASH_SIZE} bytes")
        normalized.add(raw.hex())
    return tuple(sorted(normalized))


@dataclass(frozen=True, init=False)
class PolicyScript:
    """
    N-of-M signature script.

    Key hashes are kept as a sorted set, so two scripts built from the same
    keys in any order serialize, hash and derive addresses identically.
    """
    key_hashes: Tuple[str, ...]
    required_signatures: int

    def __init__(self, key_hashes: Iterable[str], required_signatures: int):
        normalized = _normalize_key_hashes(key_hashes)
        if not normalized:
            raise PolicyScriptInvalid("no key hashes")
        if not 1 <= required_signatures <= len(normalized):
            raise PolicyScriptInvalid(
                f"required signatures {required_signatures} out of range 1..{len(normalized)}")
        object.__setattr__(self, "key_hashes", normalized)
        object.__setattr__(self, "required_signatures", required_signatures)

    @property
    def count(self) -> int:
        """Number of keys that may sign."""
        return len(self.key_hashes)

    def to_native_script(self) -> ScriptNofK:
        return ScriptNofK(
            self.required_signatures,
            [ScriptPubkey(VerificationKeyHash(bytes.fromhex(kh))) for kh in self.key_hashes],
        )

    def derive_policy_id(self) -> str:
        return self.to_native_script().hash().payload.hex()

    def to_json(self) -> dict:
        """cardano-cli script JSON."""
        return {
            "type": "atLeast",
            "required": self.required_signatures,
            "scripts": [{"type": "sig", "keyHash": kh} for kh in self.key_hashes],
        }

    def address(self, network: Network = Network.TESTNET) -> Address:
        """Enterprise address guarded by this script."""
        return Address(payment_part=self.to_native_script().hash(), network=network)

    def __str__(self) -> str:
        return f"PolicyScript({self.required_signatures}-of-{self.count}, {self.derive_policy_id()[:16]}..)"
