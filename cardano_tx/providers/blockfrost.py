"""Blockfrost HTTP adapter implementing TxProvider."""

import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ..errors import ProviderUnavailable
from ..params import ProtocolParameters
from ..types import LOVELACE_TOKEN_NAME, Token, TokenAmount, Utxo
from .base import ChainTip

logger = logging.getLogger(__name__)

DEFAULT_BLOCKFROST_URL = "https://cardano-preprod.blockfrost.io/api/v0"
PAGE_SIZE = 100


def convert_blockfrost_utxo(u: Dict[str, Any]) -> Utxo:
    """amount = [{"unit": "lovelace" | policy+name hex, "quantity": "n"}]"""
    lovelace = 0
    tokens = []
    for a in u.get("amount", []):
        if a["unit"] == LOVELACE_TOKEN_NAME:
            lovelace += int(a["quantity"])
        else:
            tokens.append(TokenAmount(Token.from_unit(a["unit"]), int(a["quantity"])))
    return Utxo(tx_hash=u["tx_hash"], output_index=u.get("output_index", 0), amount=lovelace, tokens=tuple(tokens))


class BlockfrostTxProvider:
    name = "blockfrost"

    def __init__(self, project_id: str, url: str = DEFAULT_BLOCKFROST_URL,
                 session: Optional[aiohttp.ClientSession] = None, timeout: float = 30.0):
        self.url = url.rstrip("/")
        self.project_id = project_id
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers={"project_id": self.project_id}, timeout=self.timeout)
        return self._session

    async def _request(self, method: str, path: str, allow_not_found: bool = False, **kwargs) -> Any:
        session = await self._get_session()
        try:
            async with session.request(method, f"{self.url}{path}", **kwargs) as response:
                if allow_not_found and response.status == 404:
                    return None
                if response.status != 200:
                    message = await response.text()
                    raise ProviderUnavailable(self.name, f"status code {response.status}: {message}")
                return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise ProviderUnavailable(self.name, str(e)) from e

    async def get_utxos(self, address: str) -> List[Utxo]:
        utxos = []
        page = 1
        while True:
            result = await self._request("GET", f"/addresses/{address}/utxos", allow_not_found=True,
                                         params={"page": page, "count": PAGE_SIZE})
            utxos.extend(convert_blockfrost_utxo(u) for u in result or [])
            if not result or len(result) < PAGE_SIZE:
                return utxos
            page += 1

    async def get_protocol_parameters(self) -> ProtocolParameters:
        return ProtocolParameters.from_blockfrost(await self._request("GET", "/epochs/latest/parameters"))

    async def get_tip(self) -> ChainTip:
        block = await self._request("GET", "/blocks/latest")
        return ChainTip(
            slot=block.get("slot") or 0,
            block_hash=block.get("hash", ""),
            block_height=block.get("height"),
            epoch=block.get("epoch"),
        )

    async def submit_tx(self, tx_raw: bytes) -> str:
        tx_id = await self._request("POST", "/tx/submit", data=tx_raw,
                                    headers={"Content-Type": "application/cbor"})
        logger.info(f"Submitted transaction {tx_id} via Blockfrost")
        return tx_id

    async def get_tx_by_hash(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self._request("GET", f"/txs/{tx_hash}", allow_not_found=True)

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()
