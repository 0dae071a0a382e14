"""Ogmios WebSocket client (JSON-RPC, Ogmios v6)."""

import asyncio
import base64
import json
import logging
from typing import Any, Dict, List, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.protocol import State

from ..types import TxInput

logger = logging.getLogger(__name__)


class OgmiosError(Exception):
    """Base exception for Ogmios errors."""

class OgmiosConnectionError(OgmiosError):
    """Connection-related errors."""

class OgmiosQueryError(OgmiosError):
    """Query-related errors."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class OgmiosClient:
    """
    Async client for the Ogmios JSON-RPC API.

    Requests on one connection are serialized; Ogmios answers in order, but
    the response id is still checked against the request.
    """

    def __init__(self, url: str = "ws://localhost:1337", username: Optional[str] = None,
                 password: Optional[str] = None, timeout: float = 30.0):
        self.url = url
        self.username = username
        self.password = password
        self.timeout = timeout
        self._ws: Optional[ClientConnection] = None
        self._request_id = 0
        self._lock = asyncio.Lock()

    def _get_headers(self) -> Dict[str, str]:
        if self.username and self.password:
            encoded = base64.b64encode(f"{self.username}:{self.password}".encode()).decode()
            return {"Authorization": f"Basic {encoded}"}
        return {}

    async def connect(self):
        """Open the websocket. Raises OgmiosConnectionError on failure."""
        kwargs = {"max_size": 50 * 1024 * 1024}  # UTxO sets of busy addresses are large
        headers = self._get_headers()
        if headers:
            kwargs["additional_headers"] = headers
        try:
            self._ws = await connect(self.url, **kwargs)
        except ConnectionRefusedError as e:
            logger.error(f"Connection refused. Is Ogmios running at {self.url}?")
            raise OgmiosConnectionError(f"Connection refused: {self.url}") from e
        except (OSError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to connect to Ogmios: {e}")
            raise OgmiosConnectionError(f"Failed to connect to {self.url}: {e}") from e
        logger.info(f"Connected to Ogmios at {self.url}")

    async def disconnect(self):
        if self._ws:
            await self._ws.close()
            self._ws = None
            logger.info("Disconnected from Ogmios")

    @property
    def is_connected(self) -> bool:
        return self._ws is not None and self._ws.state is State.OPEN

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()

    def _next_request_id(self) -> int:
        self._request_id += 1
        return self._request_id

    async def _send_request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Send one JSON-RPC request and return its `result`."""
        if not self.is_connected:
            await self.connect()

        request_id = self._next_request_id()
        request = {"jsonrpc": "2.0", "method": method, "id": request_id}
        if params:
            request["params"] = params

        async with self._lock:
            try:
                await self._ws.send(json.dumps(request))
                response = json.loads(await asyncio.wait_for(self._ws.recv(), timeout=self.timeout))
            except asyncio.TimeoutError:
                raise OgmiosQueryError(f"Request timed out after {self.timeout}s: {method}") from None
            except OSError as e:
                raise OgmiosConnectionError(f"Request failed: {e}") from e

        if response.get("id") not in (None, request_id):
            raise OgmiosQueryError(f"Unexpected response id {response.get('id')} for request {request_id}")
        if "error" in response:
            err = response["error"]
            if isinstance(err, dict):
                raise OgmiosQueryError(f"Ogmios error: {err.get('message', err)}", err.get("code"))
            raise OgmiosQueryError(f"Ogmios error: {err}")
        return response.get("result")

    async def get_tip(self) -> Dict[str, Any]:
        """Ledger tip: {"slot": ..., "id": ...}."""
        result = await self._send_request("queryLedgerState/tip")
        if not isinstance(result, dict):
            raise OgmiosQueryError(f"Unexpected tip result: {result}")
        return result

    async def get_block_height(self) -> Optional[int]:
        result = await self._send_request("queryNetwork/blockHeight")
        return result if isinstance(result, int) else None

    async def get_current_epoch(self) -> int:
        result = await self._send_request("queryLedgerState/epoch")
        return result if isinstance(result, int) else result.get("epoch", 0)

    async def get_protocol_parameters(self) -> Dict[str, Any]:
        return await self._send_request("queryLedgerState/protocolParameters")

    async def get_utxos_by_addresses(self, addresses: List[str]) -> List[Dict[str, Any]]:
        result = await self._send_request("queryLedgerState/utxo", {"addresses": addresses})
        return result if isinstance(result, list) else []

    async def get_utxos_by_inputs(self, inputs: List[TxInput]) -> List[Dict[str, Any]]:
        """Unspent outputs among `inputs`; spent or unknown references are left out."""
        refs = [{"transaction": {"id": i.tx_hash}, "index": i.output_index} for i in inputs]
        result = await self._send_request("queryLedgerState/utxo", {"outputReferences": refs})
        return result if isinstance(result, list) else []

    async def submit_transaction(self, tx_cbor: str) -> str:
        """Submit a signed transaction (CBOR hex); returns its id."""
        result = await self._send_request("submitTransaction", {"transaction": {"cbor": tx_cbor}})
        return (result or {}).get("transaction", {}).get("id", "")
