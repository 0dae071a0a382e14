"""Value model tests."""

import pytest
from pycardano import AssetName, ScriptHash

from cardano_tx.errors import InvalidTokenName
from cardano_tx.types import (
    LOVELACE,
    Token,
    TokenAmount,
    TxInput,
    TxOutput,
    Utxo,
    get_outputs_sum,
    get_tokens_from_sum,
    get_utxos_sum,
)

from conftest import NATIVE_TOKEN, POLICY_ID, TEST_TOKEN


class TestToken:

    def test_lovelace(self):
        assert str(LOVELACE) == "lovelace"
        assert LOVELACE.is_lovelace
        assert Token.from_string("lovelace") == LOVELACE

    def test_canonical_string(self):
        assert str(TEST_TOKEN) == "1.31"
        assert str(NATIVE_TOKEN) == f"{POLICY_ID}.{b'WRAPPED'.hex()}"

    @pytest.mark.parametrize("name", [b"", b"1", b"WRAPPED", bytes(range(32)), b"."])
    def test_string_round_trip(self, name):
        token = Token(POLICY_ID, name)

        assert Token.from_string(str(token)) == token

    @pytest.mark.parametrize("raw", [
        "abc", "a.b.c", "ab.31", POLICY_ID + ".zz", POLICY_ID + ".123", POLICY_ID, "zz" * 28 + ".31", POLICY_ID + "00.31",
    ])
    def test_invalid_name(self, raw):
        with pytest.raises(InvalidTokenName):
            Token.from_string(raw)

    def test_plain_name(self):
        assert Token.from_string(f"{POLICY_ID}.WRAPPED", name_encoded=False) == NATIVE_TOKEN
        assert Token.from_string(f"{POLICY_ID}.a.b", name_encoded=False) == Token(POLICY_ID, b"a.b")
        with pytest.raises(InvalidTokenName):
            Token.from_string("1.WRAPPED", name_encoded=False)

    def test_from_unit(self):
        assert Token.from_unit(POLICY_ID + b"WRAPPED".hex()) == NATIVE_TOKEN
        assert Token.from_unit("lovelace") == LOVELACE

    @pytest.mark.parametrize("unit", ["ab" * 10, "zz" * 28 + "31", POLICY_ID + "z"])
    def test_invalid_unit(self, unit):
        with pytest.raises(InvalidTokenName):
            Token.from_unit(unit)

    def test_hashable_identity(self):
        assert {Token("1", b"1"): 1}[TEST_TOKEN] == 1


class TestAmounts:

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            TokenAmount(TEST_TOKEN, -1)

    def test_utxo_token_amount(self):
        utxo = Utxo("aa", 1, 100, (TokenAmount(TEST_TOKEN, 7),))

        assert utxo.get_token_amount(LOVELACE) == 100
        assert utxo.get_token_amount(TEST_TOKEN) == 7
        assert utxo.get_token_amount(NATIVE_TOKEN) == 0
        assert utxo.to_input() == TxInput("aa", 1)
        assert str(utxo.to_input()) == "aa#1"

    def test_utxos_sum(self, scenario_utxos):
        assert get_utxos_sum(scenario_utxos) == {LOVELACE: 1310, TEST_TOKEN: 750}
        assert get_utxos_sum([]) == {LOVELACE: 0}

    def test_outputs_sum(self):
        outputs = [TxOutput("a", 10, [TokenAmount(TEST_TOKEN, 2)]), TxOutput("b", 5)]

        assert get_outputs_sum(outputs) == {LOVELACE: 15, TEST_TOKEN: 2}

    def test_tokens_from_sum(self):
        sums = {LOVELACE: 10, TEST_TOKEN: 3, NATIVE_TOKEN: 4, Token("ff" * 28, b"z"): 0}

        assert get_tokens_from_sum(sums) == [TokenAmount(TEST_TOKEN, 3), TokenAmount(NATIVE_TOKEN, 4)]
        assert get_tokens_from_sum(sums, TEST_TOKEN) == [TokenAmount(NATIVE_TOKEN, 4)]


class TestTxOutput:

    def test_plain_output(self, receiver_address):
        out = TxOutput(receiver_address, 1_000_000).to_pycardano()

        assert out.lovelace == 1_000_000
        assert str(out.address) == receiver_address

    def test_multi_asset_output(self, receiver_address):
        out = TxOutput(receiver_address, 2_000_000, [TokenAmount(NATIVE_TOKEN, 5)]).to_pycardano()

        assert out.lovelace == 2_000_000
        assert out.amount.multi_asset[ScriptHash(bytes.fromhex(POLICY_ID))][AssetName(b"WRAPPED")] == 5

    def test_zero_tokens_skipped(self, receiver_address):
        output = TxOutput(receiver_address, 1, [TokenAmount(NATIVE_TOKEN, 0)])

        assert not output.has_tokens
        assert output.to_pycardano().lovelace == 1
