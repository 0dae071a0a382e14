"""Provider capability shared by every chain data source."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from ..builder import TxBuilder
from ..errors import CardanoTxError, ProviderUnavailable
from ..params import ProtocolParameters
from ..types import Utxo

logger = logging.getLogger(__name__)


@dataclass
class ChainTip:
    slot: int
    block_hash: str = ""
    block_height: Optional[int] = None
    epoch: Optional[int] = None


@runtime_checkable
class TxProvider(Protocol):
    """
    Read and submit access to a Cardano node.

    Implementations raise ProviderUnavailable for any transport or node
    failure; "nothing found" is an empty list or None, never an error.
    """

    name: str

    async def get_utxos(self, address: str) -> List[Utxo]: ...

    async def get_protocol_parameters(self) -> ProtocolParameters: ...

    async def get_tip(self) -> ChainTip: ...

    async def submit_tx(self, tx_raw: bytes) -> str: ...

    async def get_tx_by_hash(self, tx_hash: str) -> Optional[Dict[str, Any]]: ...

    async def close(self): ...


async def configure_from_provider(builder: TxBuilder, provider: TxProvider, ttl_increment: int = 0) -> TxBuilder:
    """Fetch protocol parameters and tip from `provider` and configure `builder` with them."""
    try:
        params = await provider.get_protocol_parameters()
        tip = await provider.get_tip()
    except CardanoTxError:
        raise
    except Exception as e:
        raise ProviderUnavailable(getattr(provider, "name", type(provider).__name__), str(e)) from e

    logger.debug(f"Configuring builder at slot {tip.slot} via {provider.name}")
    return builder.configure(params, tip.slot, ttl_increment)
