"""
Protocol parameters normalized from provider-specific JSON.

cardano-cli, Blockfrost and Ogmios each publish the same parameters under
different names and shapes; the builder only ever sees ProtocolParameters.
"""

from dataclasses import dataclass, field
from typing import Any, Dict


def _int(value: Any) -> int:
    """Blockfrost sends large numbers as strings; missing values become 0."""
    if value is None or value == "":
        return 0
    return int(value)


def _lovelace(value: Any) -> int:
    """Ogmios v6 wraps coin values as {"ada": {"lovelace": n}}."""
    if isinstance(value, dict):
        return _int(value.get("ada", {}).get("lovelace"))
    return _int(value)


def _bytes(value: Any) -> int:
    """Ogmios v6 wraps sizes as {"bytes": n}."""
    if isinstance(value, dict):
        return _int(value.get("bytes"))
    return _int(value)


@dataclass(frozen=True)
class ProtocolParameters:
    min_fee_a: int  # lovelace per byte
    min_fee_b: int  # fixed lovelace
    max_tx_size: int = 16384
    utxo_cost_per_byte: int = 0
    key_deposit: int = 0
    pool_deposit: int = 0
    max_value_size: int = 0
    collateral_percentage: int = 0
    max_collateral_inputs: int = 0
    protocol_major_version: int = 0
    protocol_minor_version: int = 0
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def min_fee(self, size: int) -> int:
        """Linear fee for a transaction of `size` bytes."""
        return self.min_fee_b + self.min_fee_a * size

    @classmethod
    def from_cli_json(cls, data: Dict[str, Any]) -> "ProtocolParameters":
        """`cardano-cli query protocol-parameters` output."""
        version = data.get("protocolVersion") or {}
        return cls(
            min_fee_a=_int(data.get("txFeePerByte")),
            min_fee_b=_int(data.get("txFeeFixed")),
            max_tx_size=_int(data.get("maxTxSize")),
            utxo_cost_per_byte=_int(data.get("utxoCostPerByte")),
            key_deposit=_int(data.get("stakeAddressDeposit")),
            pool_deposit=_int(data.get("stakePoolDeposit")),
            max_value_size=_int(data.get("maxValueSize")),
            collateral_percentage=_int(data.get("collateralPercentage")),
            max_collateral_inputs=_int(data.get("maxCollateralInputs")),
            protocol_major_version=_int(version.get("major")),
            protocol_minor_version=_int(version.get("minor")),
            raw=dict(data),
        )

    @classmethod
    def from_blockfrost(cls, data: Dict[str, Any]) -> "ProtocolParameters":
        """Blockfrost `/epochs/latest/parameters` response."""
        return cls(
            min_fee_a=_int(data.get("min_fee_a")),
            min_fee_b=_int(data.get("min_fee_b")),
            max_tx_size=_int(data.get("max_tx_size")),
            utxo_cost_per_byte=_int(data.get("coins_per_utxo_size") or data.get("coins_per_utxo_word")),
            key_deposit=_int(data.get("key_deposit")),
            pool_deposit=_int(data.get("pool_deposit")),
            max_value_size=_int(data.get("max_val_size")),
            collateral_percentage=_int(data.get("collateral_percent")),
            max_collateral_inputs=_int(data.get("max_collateral_inputs")),
            protocol_major_version=_int(data.get("protocol_major_ver")),
            protocol_minor_version=_int(data.get("protocol_minor_ver")),
            raw=dict(data),
        )

    @classmethod
    def from_ogmios(cls, data: Dict[str, Any]) -> "ProtocolParameters":
        """Ogmios v6 `queryLedgerState/protocolParameters` result."""
        version = data.get("version") or {}
        return cls(
            min_fee_a=_int(data.get("minFeeCoefficient")),
            min_fee_b=_lovelace(data.get("minFeeConstant")),
            max_tx_size=_bytes(data.get("maxTransactionSize")),
            utxo_cost_per_byte=_int(data.get("minUtxoDepositCoefficient")),
            key_deposit=_lovelace(data.get("stakeCredentialDeposit")),
            pool_deposit=_lovelace(data.get("stakePoolDeposit")),
            max_value_size=_bytes(data.get("maxValueSize")),
            collateral_percentage=_int(data.get("collateralPercentage")),
            max_collateral_inputs=_int(data.get("maxCollateralInputs")),
            protocol_major_version=_int(version.get("major")),
            protocol_minor_version=_int(version.get("minor")),
            raw=dict(data),
        )

    def to_cli_json(self) -> Dict[str, Any]:
        """Parameters in cardano-cli naming, e.g. for `--protocol-params-file`."""
        return {
            "protocolVersion": {"major": self.protocol_major_version, "minor": self.protocol_minor_version},
            "maxTxSize": self.max_tx_size,
            "txFeeFixed": self.min_fee_b,
            "txFeePerByte": self.min_fee_a,
            "stakeAddressDeposit": self.key_deposit,
            "stakePoolDeposit": self.pool_deposit,
            "utxoCostPerByte": self.utxo_cost_per_byte,
            "maxValueSize": self.max_value_size,
            "collateralPercentage": self.collateral_percentage,
            "maxCollateralInputs": self.max_collateral_inputs,
        }
