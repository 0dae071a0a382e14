"""Ogmios adapter implementing TxProvider."""

import logging
from typing import Any, Dict, List, Optional

from ..blockchain import OgmiosClient, OgmiosError
from ..errors import ProviderUnavailable
from ..params import ProtocolParameters
from ..types import Token, TokenAmount, TxInput, Utxo
from .base import ChainTip

logger = logging.getLogger(__name__)


def convert_ogmios_utxo(u: Dict[str, Any]) -> Utxo:
    """
    Convert an Ogmios v6 UTxO to Utxo.

    value = {"ada": {"lovelace": n}, "<policy id>": {"<asset name hex>": n}}
    """
    value = u.get("value", {})
    tokens = []
    for policy_id, assets in sorted(value.items()):
        if policy_id == "ada":
            continue
        for name_hex, amount in sorted(assets.items()):
            tokens.append(TokenAmount(Token(policy_id, bytes.fromhex(name_hex)), int(amount)))
    return Utxo(
        tx_hash=u.get("transaction", {}).get("id", ""),
        output_index=u.get("index", 0),
        amount=int(value.get("ada", {}).get("lovelace", 0)),
        tokens=tuple(tokens),
    )


class OgmiosTxProvider:
    """
    Wraps OgmiosClient to provide the TxProvider interface.

    Ogmios only sees the ledger state, so a transaction is found by hash only
    while its first output is still unspent.
    """

    name = "ogmios"

    def __init__(self, ogmios: OgmiosClient):
        self.ogmios = ogmios

    async def get_utxos(self, address: str) -> List[Utxo]:
        try:
            raw = await self.ogmios.get_utxos_by_addresses([address])
        except OgmiosError as e:
            raise ProviderUnavailable(self.name, str(e)) from e
        return [convert_ogmios_utxo(u) for u in raw]

    async def get_protocol_parameters(self) -> ProtocolParameters:
        try:
            raw = await self.ogmios.get_protocol_parameters()
        except OgmiosError as e:
            raise ProviderUnavailable(self.name, str(e)) from e
        return ProtocolParameters.from_ogmios(raw)

    async def get_tip(self) -> ChainTip:
        try:
            tip = await self.ogmios.get_tip()
            height = await self.ogmios.get_block_height()
            epoch = await self.ogmios.get_current_epoch()
        except OgmiosError as e:
            raise ProviderUnavailable(self.name, str(e)) from e
        return ChainTip(slot=tip.get("slot", 0), block_hash=tip.get("id", ""), block_height=height, epoch=epoch)

    async def submit_tx(self, tx_raw: bytes) -> str:
        try:
            tx_id = await self.ogmios.submit_transaction(tx_raw.hex())
        except OgmiosError as e:
            raise ProviderUnavailable(self.name, str(e)) from e
        logger.info(f"Submitted transaction {tx_id} via Ogmios")
        return tx_id

    async def get_tx_by_hash(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        try:
            raw = await self.ogmios.get_utxos_by_inputs([TxInput(tx_hash, 0)])
        except OgmiosError as e:
            raise ProviderUnavailable(self.name, str(e)) from e
        if not raw:
            logger.debug(f"No unspent output 0 for {tx_hash[:16]}...")
            return None
        return {"hash": tx_hash, "outputs": [convert_ogmios_utxo(u) for u in raw]}

    async def close(self):
        await self.ogmios.disconnect()
