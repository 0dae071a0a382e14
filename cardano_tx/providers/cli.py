"""cardano-cli adapter implementing TxProvider (needs a local node socket)."""

import asyncio
import json
import logging
import os
import tempfile
from typing import Any, Dict, List, Optional

from ..errors import ProviderUnavailable
from ..params import ProtocolParameters
from ..types import Token, TokenAmount, Utxo
from ..witness import get_tx_hash
from .base import ChainTip

logger = logging.getLogger(__name__)


def convert_cli_utxos(raw: Dict[str, Any]) -> List[Utxo]:
    """
    Convert `query utxo --out-file` JSON to Utxos.

    {"<hash>#<index>": {"address": ..., "value": {"lovelace": n, "<policy>": {"<name hex>": n}}}}
    """
    utxos = []
    for ref, out in raw.items():
        tx_hash, index = ref.split("#")
        value = out.get("value", {})
        tokens = []
        for policy_id, assets in sorted(value.items()):
            if policy_id == "lovelace":
                continue
            for name_hex, amount in sorted(assets.items()):
                tokens.append(TokenAmount(Token(policy_id, bytes.fromhex(name_hex)), int(amount)))
        utxos.append(Utxo(tx_hash=tx_hash, output_index=int(index),
                          amount=int(value.get("lovelace", 0)), tokens=tuple(tokens)))
    return utxos


class CliTxProvider:
    name = "cardano-cli"

    def __init__(self, socket_path: str, testnet_magic: Optional[int] = None,
                 cli_path: str = "cardano-cli", era: str = "ConwayEra"):
        self.socket_path = socket_path
        self.testnet_magic = testnet_magic
        self.cli_path = cli_path
        self.era = era

    @property
    def network_args(self) -> List[str]:
        if self.testnet_magic is None:
            return ["--mainnet"]
        return ["--testnet-magic", str(self.testnet_magic)]

    async def _run(self, *args: str) -> str:
        cmd = [self.cli_path, *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()
        except OSError as e:
            raise ProviderUnavailable(self.name, f"cannot run {self.cli_path}: {e}") from e
        if proc.returncode != 0:
            raise ProviderUnavailable(self.name, f"exit code {proc.returncode}: {stderr.decode().strip()}")
        return stdout.decode()

    async def _query(self, *args: str) -> Any:
        out = await self._run("query", *args, *self.network_args,
                              "--socket-path", self.socket_path, "--out-file", "/dev/stdout")
        try:
            return json.loads(out)
        except json.JSONDecodeError as e:
            raise ProviderUnavailable(self.name, f"unexpected output: {out[:200]}") from e

    async def get_utxos(self, address: str) -> List[Utxo]:
        return convert_cli_utxos(await self._query("utxo", "--address", address))

    async def get_protocol_parameters(self) -> ProtocolParameters:
        return ProtocolParameters.from_cli_json(await self._query("protocol-parameters"))

    async def get_tip(self) -> ChainTip:
        tip = await self._query("tip")
        return ChainTip(slot=tip.get("slot", 0), block_hash=tip.get("hash", ""),
                        block_height=tip.get("block"), epoch=tip.get("epoch"))

    async def submit_tx(self, tx_raw: bytes) -> str:
        envelope = {"type": f"Witnessed Tx {self.era}", "description": "", "cborHex": tx_raw.hex()}
        fd, path = tempfile.mkstemp(suffix=".signed")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(envelope, f)
            await self._run("transaction", "submit", "--tx-file", path, *self.network_args,
                            "--socket-path", self.socket_path)
        finally:
            os.remove(path)
        tx_id = get_tx_hash(tx_raw).hex()
        logger.info(f"Submitted transaction {tx_id} via cardano-cli")
        return tx_id

    async def get_tx_by_hash(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """Only finds transactions whose first output is still unspent."""
        raw = await self._query("utxo", "--tx-in", f"{tx_hash}#0")
        if not raw:
            return None
        return {"hash": tx_hash, "outputs": raw}

    async def close(self):
        pass
