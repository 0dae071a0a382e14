"""Chain data providers: Ogmios, Blockfrost and a local cardano-cli."""

from ..blockchain import OgmiosClient
from .base import ChainTip, TxProvider, configure_from_provider
from .blockfrost import BlockfrostTxProvider
from .cli import CliTxProvider
from .ogmios import OgmiosTxProvider


def create_provider(name: str, settings) -> TxProvider:
    """Create the provider called `name` from a config.settings.Settings instance."""
    if name == "blockfrost":
        return BlockfrostTxProvider(settings.blockfrost_project_id, settings.blockfrost_url)
    if name == "ogmios":
        return OgmiosTxProvider(OgmiosClient(settings.ogmios_url, settings.ogmios_username, settings.ogmios_password))
    if name == "cli":
        return CliTxProvider(settings.socket_path, settings.testnet_magic, settings.cli_path, settings.era)
    raise ValueError(f"Unknown provider: {name}")


__all__ = [
    "ChainTip",
    "TxProvider",
    "configure_from_provider",
    "create_provider",
    "BlockfrostTxProvider",
    "CliTxProvider",
    "OgmiosTxProvider",
]
