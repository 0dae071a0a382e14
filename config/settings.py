"""
Configuration settings - edit values directly here
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Settings:
    """Application settings - configure values below"""

    # ===================
    # Provider: "blockfrost" | "ogmios" | "cli"
    # ===================
    provider_name: str = "blockfrost"

    # ===================
    # Ogmios Configuration
    # ===================
    ogmios_url: str = "ws://localhost:1337"
    ogmios_username: Optional[str] = None
    ogmios_password: Optional[str] = None

    # ===================
    # Blockfrost
    # ===================
    blockfrost_url: str = "https://cardano-preview.blockfrost.io/api/v0"
    blockfrost_project_id: Optional[str] = None

    # ===================
    # cardano-cli / node
    # ===================
    cli_path: str = "cardano-cli"
    socket_path: str = "/opt/cardano/node.socket"
    testnet_magic: Optional[int] = 2  # None for mainnet
    era: str = "ConwayEra"

    # ===================
    # Wallets
    # ===================
    # cardano-cli `cborHex` of payment signing keys. First key sends the
    # single-signer transaction; the first three form the multisig policy and
    # the rest the fee policy.
    signing_keys: List[str] = field(default_factory=list)
    receiver_address: str = "addr_test1wz4k6frsfd9q98rya6zjxtpcmzn83pwc8uyl9yqw25p8qqcx3e0c0"
    receiver_multisig_address: str = "addr_test1wqh4yha0ndhwykrh9cuhr47nh2y97zvkls74h4jq6uhlpacujv3z3"

    # ===================
    # Transactions
    # ===================
    potential_fee: int = 300_000
    min_utxo_value: int = 1_000_000
    ttl_increment: int = 200
    max_inputs: int = 20
    confirmation_retry_count: int = 60
    confirmation_retry_wait: float = 2.0


# Global settings instance - import this
settings = Settings()
