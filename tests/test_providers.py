"""Provider adapter and Ogmios client tests (transports mocked)."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from websockets.protocol import State

from cardano_tx.blockchain import OgmiosClient, OgmiosError, OgmiosQueryError
from cardano_tx.builder import BuilderState, TxBuilder
from cardano_tx.errors import ProviderUnavailable
from cardano_tx.providers import (
    BlockfrostTxProvider,
    CliTxProvider,
    OgmiosTxProvider,
    configure_from_provider,
    create_provider,
)
from cardano_tx.providers.blockfrost import PAGE_SIZE, convert_blockfrost_utxo
from cardano_tx.providers.cli import convert_cli_utxos
from cardano_tx.providers.ogmios import convert_ogmios_utxo
from cardano_tx.types import TokenAmount, TxInput, Utxo
from config import Settings

from conftest import NATIVE_TOKEN, POLICY_ID, tx_hash

NAME_HEX = b"WRAPPED".hex()


class TestConversions:

    def test_ogmios_utxo(self):
        utxo = convert_ogmios_utxo({
            "transaction": {"id": tx_hash(1)},
            "index": 2,
            "address": "addr_test1...",
            "value": {"ada": {"lovelace": 1500000}, POLICY_ID: {NAME_HEX: 7}},
        })

        assert utxo == Utxo(tx_hash(1), 2, 1500000, (TokenAmount(NATIVE_TOKEN, 7),))

    def test_blockfrost_utxo(self):
        utxo = convert_blockfrost_utxo({
            "tx_hash": tx_hash(1),
            "output_index": 1,
            "amount": [
                {"unit": "lovelace", "quantity": "2000000"},
                {"unit": POLICY_ID + NAME_HEX, "quantity": "9"},
            ],
        })

        assert utxo == Utxo(tx_hash(1), 1, 2000000, (TokenAmount(NATIVE_TOKEN, 9),))

    def test_cli_utxos(self):
        utxos = convert_cli_utxos({
            f"{tx_hash(1)}#0": {"address": "addr_test1...", "value": {"lovelace": 100}},
            f"{tx_hash(2)}#3": {"value": {"lovelace": 200, POLICY_ID: {NAME_HEX: 4}}},
        })

        assert utxos == [
            Utxo(tx_hash(1), 0, 100),
            Utxo(tx_hash(2), 3, 200, (TokenAmount(NATIVE_TOKEN, 4),)),
        ]


class TestOgmiosClient:

    @pytest.fixture
    def client(self):
        client = OgmiosClient("ws://test")
        client._ws = MagicMock(state=State.OPEN)
        client._ws.send = AsyncMock()
        return client

    def reply(self, client, payload):
        client._ws.recv = AsyncMock(return_value=json.dumps(payload))

    @pytest.mark.asyncio
    async def test_request(self, client):
        self.reply(client, {"jsonrpc": "2.0", "id": 1, "result": {"slot": 42, "id": "ab"}})

        assert await client.get_tip() == {"slot": 42, "id": "ab"}
        sent = json.loads(client._ws.send.call_args[0][0])
        assert sent["method"] == "queryLedgerState/tip"
        assert sent["id"] == 1

    @pytest.mark.asyncio
    async def test_error_response(self, client):
        self.reply(client, {"jsonrpc": "2.0", "id": 1, "error": {"code": 3005, "message": "era mismatch"}})

        with pytest.raises(OgmiosQueryError, match="era mismatch") as exc:
            await client.submit_transaction("84a4")
        assert exc.value.code == 3005

    @pytest.mark.asyncio
    async def test_submit(self, client):
        self.reply(client, {"jsonrpc": "2.0", "id": 1, "result": {"transaction": {"id": "cafe"}}})

        assert await client.submit_transaction("84a4") == "cafe"
        assert json.loads(client._ws.send.call_args[0][0])["params"] == {"transaction": {"cbor": "84a4"}}

    @pytest.mark.asyncio
    async def test_utxos_by_inputs(self, client):
        self.reply(client, {"jsonrpc": "2.0", "id": 1, "result": []})

        assert await client.get_utxos_by_inputs([TxInput(tx_hash(2), 3)]) == []
        sent = json.loads(client._ws.send.call_args[0][0])
        assert sent["method"] == "queryLedgerState/utxo"
        assert sent["params"] == {"outputReferences": [{"transaction": {"id": tx_hash(2)}, "index": 3}]}

    def test_basic_auth_header(self):
        client = OgmiosClient("ws://test", "user", "pass")

        assert client._get_headers() == {"Authorization": "Basic dXNlcjpwYXNz"}
        assert OgmiosClient("ws://test")._get_headers() == {}


class TestOgmiosProvider:

    @pytest.fixture
    def ogmios(self):
        return AsyncMock(spec=OgmiosClient)

    @pytest.mark.asyncio
    async def test_get_utxos(self, ogmios):
        ogmios.get_utxos_by_addresses.return_value = [
            {"transaction": {"id": tx_hash(1)}, "index": 0, "value": {"ada": {"lovelace": 10}}},
        ]

        assert await OgmiosTxProvider(ogmios).get_utxos("addr") == [Utxo(tx_hash(1), 0, 10)]
        ogmios.get_utxos_by_addresses.assert_awaited_once_with(["addr"])

    @pytest.mark.asyncio
    async def test_get_tip(self, ogmios):
        ogmios.get_tip.return_value = {"slot": 500, "id": "ab"}
        ogmios.get_block_height.return_value = 20
        ogmios.get_current_epoch.return_value = 3

        tip = await OgmiosTxProvider(ogmios).get_tip()

        assert (tip.slot, tip.block_hash, tip.block_height, tip.epoch) == (500, "ab", 20, 3)

    @pytest.mark.asyncio
    async def test_protocol_parameters(self, ogmios):
        ogmios.get_protocol_parameters.return_value = {
            "minFeeCoefficient": 44, "minFeeConstant": {"ada": {"lovelace": 155381}},
        }

        params = await OgmiosTxProvider(ogmios).get_protocol_parameters()

        assert (params.min_fee_a, params.min_fee_b) == (44, 155381)

    @pytest.mark.asyncio
    async def test_errors_wrapped(self, ogmios):
        ogmios.get_utxos_by_addresses.side_effect = OgmiosError("boom")

        with pytest.raises(ProviderUnavailable, match="boom") as exc:
            await OgmiosTxProvider(ogmios).get_utxos("addr")
        assert exc.value.provider == "ogmios"

    @pytest.mark.asyncio
    async def test_tx_lookup(self, ogmios):
        ogmios.get_utxos_by_inputs.return_value = [
            {"transaction": {"id": tx_hash(1)}, "index": 0, "value": {"ada": {"lovelace": 10}}},
        ]

        tx = await OgmiosTxProvider(ogmios).get_tx_by_hash(tx_hash(1))

        assert tx == {"hash": tx_hash(1), "outputs": [Utxo(tx_hash(1), 0, 10)]}
        ogmios.get_utxos_by_inputs.assert_awaited_once_with([TxInput(tx_hash(1), 0)])

    @pytest.mark.asyncio
    async def test_tx_lookup_not_found(self, ogmios):
        ogmios.get_utxos_by_inputs.return_value = []

        assert await OgmiosTxProvider(ogmios).get_tx_by_hash(tx_hash(1)) is None

    @pytest.mark.asyncio
    async def test_submit_sends_hex(self, ogmios):
        ogmios.submit_transaction.return_value = "cafe"

        assert await OgmiosTxProvider(ogmios).submit_tx(b"\x84\xa4") == "cafe"
        ogmios.submit_transaction.assert_awaited_once_with("84a4")


class TestBlockfrostProvider:

    @pytest.mark.asyncio
    async def test_utxo_pages(self):
        provider = BlockfrostTxProvider("project")
        page = [{"tx_hash": tx_hash(i), "output_index": 0, "amount": [{"unit": "lovelace", "quantity": "1"}]}
                for i in range(PAGE_SIZE)]
        provider._request = AsyncMock(side_effect=[page, page[:3]])

        utxos = await provider.get_utxos("addr")

        assert len(utxos) == PAGE_SIZE + 3
        assert provider._request.await_count == 2

    @pytest.mark.asyncio
    async def test_unknown_address(self):
        provider = BlockfrostTxProvider("project")
        provider._request = AsyncMock(return_value=None)

        assert await provider.get_utxos("addr") == []

    @pytest.mark.asyncio
    async def test_tip(self):
        provider = BlockfrostTxProvider("project")
        provider._request = AsyncMock(return_value={"slot": 77, "hash": "ab", "height": 5, "epoch": 2})

        tip = await provider.get_tip()

        assert (tip.slot, tip.block_hash, tip.block_height, tip.epoch) == (77, "ab", 5, 2)


class TestCliProvider:

    @pytest.mark.asyncio
    async def test_query_args(self):
        provider = CliTxProvider("/tmp/node.socket", testnet_magic=2)
        provider._run = AsyncMock(return_value=json.dumps({"slot": 9, "hash": "ab", "block": 1, "epoch": 0}))

        tip = await provider.get_tip()

        assert tip.slot == 9
        args = provider._run.call_args[0]
        assert args[:2] == ("query", "tip")
        assert "--testnet-magic" in args and "2" in args
        assert "/tmp/node.socket" in args

    def test_mainnet_args(self):
        assert CliTxProvider("/s", testnet_magic=None).network_args == ["--mainnet"]

    @pytest.mark.asyncio
    async def test_tx_lookup(self):
        provider = CliTxProvider("/s", 2)
        provider._run = AsyncMock(return_value="{}")

        assert await provider.get_tx_by_hash(tx_hash(1)) is None

    @pytest.mark.asyncio
    async def test_bad_output(self):
        provider = CliTxProvider("/s", 2)
        provider._run = AsyncMock(return_value="not json")

        with pytest.raises(ProviderUnavailable):
            await provider.get_utxos("addr")


class TestConfigureFromProvider:

    @pytest.mark.asyncio
    async def test_configures(self, provider):
        builder = await configure_from_provider(TxBuilder(), provider, 30)

        assert builder.state is BuilderState.CONFIGURED
        assert builder.ttl == provider.tip.slot + 30
        assert builder.protocol_parameters == provider.params

    @pytest.mark.asyncio
    async def test_failure_wrapped(self, provider):
        provider.get_tip = AsyncMock(side_effect=RuntimeError("node down"))

        with pytest.raises(ProviderUnavailable, match="node down"):
            await configure_from_provider(TxBuilder(), provider)


class TestCreateProvider:

    def test_names(self):
        settings = Settings(blockfrost_project_id="p")

        assert isinstance(create_provider("blockfrost", settings), BlockfrostTxProvider)
        assert isinstance(create_provider("ogmios", settings), OgmiosTxProvider)
        assert isinstance(create_provider("cli", settings), CliTxProvider)

    def test_unknown(self):
        with pytest.raises(ValueError):
            create_provider("nope", Settings())
