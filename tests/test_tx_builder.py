"""
Tests for the transaction builder state machine.
"""

import pytest
from loguru import logger

from dogewallet.constants import NetworkType
from dogewallet.engine import default_engine
from dogewallet.errors import (
    BuilderFinalized,
    DuplicateUtxo,
    IncompleteSigning,
    IncompleteTransaction,
    InputAlreadySigned,
    InputError,
    InsufficientFunds,
    InvalidAddress,
    InvalidInputIndex,
    KeyMaterialCleared,
    KeyMismatch,
    NetworkMismatch,
    NonPositiveAmount,
    UnknownInputAmount,
)
from dogewallet.wallet.keys import KeyMaterial
from dogewallet.wallet.signing import (
    compute_sighash_legacy,
    deserialize_transaction,
    hash256,
    p2pkh_script,
    p2sh_script,
)
from dogewallet.wallet.tx_builder import BuilderState, TransactionBuilder

TXID_A = "aa" * 32
TXID_B = "bb" * 32


class TestBuilding:
    def test_initial_state(self, builder):
        assert builder.state == BuilderState.EMPTY
        assert builder.signed_count == 0

    def test_add_moves_to_building(self, builder, key):
        builder.add_utxo(TXID_A, 0, amount=1000)
        assert builder.state == BuilderState.BUILDING
        builder.add_output(key.address().value, 900)
        assert builder.state == BuilderState.BUILDING
        assert len(builder.utxos) == 1
        assert len(builder.outputs) == 1

    def test_duplicate_utxo(self, builder):
        builder.add_utxo(TXID_A, 0, amount=1000)
        with pytest.raises(DuplicateUtxo):
            builder.add_utxo(TXID_A, 0, amount=1000)
        assert len(builder.utxos) == 1

    @pytest.mark.parametrize("amount", [0, -1])
    def test_bad_output_amount(self, builder, key, amount):
        with pytest.raises(NonPositiveAmount):
            builder.add_output(key.address().value, amount)
        assert builder.outputs == ()
        assert builder.state == BuilderState.EMPTY

    def test_bad_output_address(self, builder):
        with pytest.raises(InvalidAddress):
            builder.add_output("DnotAnAddress", 100)

    def test_wrong_network_output(self, builder, testnet_key):
        with pytest.raises(InvalidAddress):
            builder.add_output(testnet_key.address().value, 100)


class TestFee:
    def test_fee_example(self, funded_builder):
        assert funded_builder.estimated_fee() == 100

    def test_unknown_amount(self, builder, key):
        builder.add_utxo(TXID_A, 0)
        builder.add_output(key.address().value, 900)
        with pytest.raises(UnknownInputAmount):
            builder.estimated_fee()

    def test_insufficient(self, builder, key):
        builder.add_utxo(TXID_A, 0, amount=100)
        builder.add_output(key.address().value, 900)
        with pytest.raises(InsufficientFunds):
            builder.estimated_fee()

    def test_no_advisory_for_normal_fee(self, funded_builder):
        assert funded_builder.fee_advisory() is None

    def test_advisory_for_high_fee(self, builder, key):
        messages = []
        handler_id = logger.add(messages.append, level="WARNING", format="{message}")
        try:
            builder.add_utxo(TXID_A, 0, amount=10_000)
            builder.add_output(key.address().value, 100)
            advisory = builder.fee_advisory()
        finally:
            logger.remove(handler_id)

        assert advisory is not None
        assert advisory.fee == 9_900
        assert advisory.output_total == 100
        assert len(messages) == 1

    def test_advisory_threshold_configurable(self, key):
        with TransactionBuilder(fee_warning_multiple=200) as builder:
            builder.add_utxo(TXID_A, 0, amount=10_000)
            builder.add_output(key.address().value, 100)
            assert builder.fee_advisory() is None

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            TransactionBuilder(fee_warning_multiple=0)

    def test_change_output(self, funded_builder, key):
        change = funded_builder.add_change_output(key.address().value, fee=40)
        assert change is not None
        assert change.amount == 60
        assert funded_builder.estimated_fee() == 40

    def test_no_change_when_exact(self, funded_builder, key):
        assert funded_builder.add_change_output(key.address().value, fee=100) is None
        assert len(funded_builder.outputs) == 1

    def test_change_insufficient(self, funded_builder, key):
        with pytest.raises(InsufficientFunds):
            funded_builder.add_change_output(key.address().value, fee=101)

    def test_change_defaults_to_first_input_owner(self, funded_builder, key):
        change = funded_builder.add_change_output(None, fee=40)
        assert change is not None
        assert change.address == key.address().value
        assert change.amount == 60

    def test_default_change_needs_p2pkh_input(self, key):
        with TransactionBuilder() as builder:
            builder.add_utxo(TXID_A, 0, amount=1000)
            builder.add_output(key.address().value, 500)
            with pytest.raises(InputError):
                builder.add_change_output(None, fee=10)
            assert len(builder.outputs) == 1

    def test_default_change_rejects_p2sh_input(self, key):
        with TransactionBuilder() as builder:
            builder.add_utxo(TXID_A, 0, amount=1000, script=p2sh_script(bytes(20)))
            builder.add_output(key.address().value, 500)
            with pytest.raises(InputError):
                builder.add_change_output(None, fee=10)


class TestSigning:
    def test_sign_transitions(self, funded_builder, key):
        funded_builder.sign(0, key)
        assert funded_builder.state == BuilderState.FULLY_SIGNED
        assert funded_builder.signed_count == 1
        assert funded_builder.is_signed(0)

    def test_partial_signing(self, funded_builder, key):
        funded_builder.add_utxo(TXID_B, 1, amount=500)
        funded_builder.sign(1, key)
        assert funded_builder.state == BuilderState.PARTIALLY_SIGNED
        funded_builder.sign(0, key)
        assert funded_builder.state == BuilderState.FULLY_SIGNED

    def test_add_after_sign_is_finalized(self, funded_builder, key):
        funded_builder.add_utxo(TXID_B, 1, amount=500)
        funded_builder.sign(0, key)
        with pytest.raises(BuilderFinalized):
            funded_builder.add_output(key.address().value, 10)
        with pytest.raises(BuilderFinalized):
            funded_builder.add_utxo("cc" * 32, 0, amount=10)
        with pytest.raises(BuilderFinalized):
            funded_builder.add_change_output(key.address().value, 10)

    def test_double_sign(self, funded_builder, key):
        funded_builder.sign(0, key)
        with pytest.raises(InputAlreadySigned):
            funded_builder.sign(0, key)

    @pytest.mark.parametrize("index", [-1, 1, 5])
    def test_bad_index(self, funded_builder, key, index):
        with pytest.raises(InvalidInputIndex):
            funded_builder.sign(index, key)

    def test_empty_transaction(self, builder, key):
        with pytest.raises(IncompleteTransaction):
            builder.sign(0, key)

    def test_no_outputs(self, builder, key):
        builder.add_utxo(TXID_A, 0, amount=1000)
        with pytest.raises(IncompleteTransaction):
            builder.sign(0, key)

    def test_wrong_key(self, funded_builder, other_key):
        with pytest.raises(KeyMismatch):
            funded_builder.sign(0, other_key)
        assert funded_builder.state == BuilderState.BUILDING

    def test_network_mismatch(self, funded_builder, testnet_key):
        with pytest.raises(NetworkMismatch):
            funded_builder.sign(0, testnet_key)

    def test_insufficient_funds(self, builder, key):
        builder.add_utxo(TXID_A, 0, amount=100)
        builder.add_output(key.address().value, 900)
        with pytest.raises(InsufficientFunds):
            builder.sign(0, key)

    def test_non_p2pkh_input(self, builder, key):
        builder.add_utxo(TXID_A, 0, amount=1000, script=p2sh_script(bytes(20)))
        builder.add_output(key.address().value, 900)
        with pytest.raises(InputError):
            builder.sign(0, key)

    def test_unknown_script_uses_key_script(self, builder, key):
        builder.add_utxo(TXID_A, 0)
        builder.add_output(key.address().value, 900)
        builder.sign(0, key)
        assert builder.state == BuilderState.FULLY_SIGNED

    def test_cleared_key(self, funded_builder):
        key = KeyMaterial.from_bytes(bytes([0x11] * 32))
        key.clear()
        with pytest.raises(KeyMaterialCleared):
            funded_builder.sign(0, key)
        assert funded_builder.signed_count == 0

    def test_sign_all(self, funded_builder, key):
        funded_builder.add_utxo(TXID_B, 1, amount=500)
        funded_builder.sign_all([key, key])
        assert funded_builder.state == BuilderState.FULLY_SIGNED

    def test_sign_all_wrong_key_count(self, funded_builder, key):
        with pytest.raises(InputError):
            funded_builder.sign_all([key, key])


class TestSerialize:
    def test_before_signing(self, funded_builder):
        with pytest.raises(IncompleteSigning):
            funded_builder.serialize()

    def test_partially_signed(self, funded_builder, key):
        funded_builder.add_utxo(TXID_B, 1, amount=500)
        funded_builder.sign(0, key)
        with pytest.raises(IncompleteSigning):
            funded_builder.serialize()

    def test_unsigned_preview(self, funded_builder):
        raw = funded_builder.serialize_unsigned()
        tx = deserialize_transaction(raw)
        assert tx.inputs[0].script_sig == b""
        assert tx.outputs[0].value == 900
        assert funded_builder.state == BuilderState.BUILDING

    def test_serialized_transaction(self, funded_builder, key, other_key):
        funded_builder.sign(0, key)
        raw = funded_builder.serialize()
        assert funded_builder.state == BuilderState.SERIALIZED

        tx = deserialize_transaction(raw)
        assert tx.version == 1
        assert tx.locktime == 0
        assert tx.inputs[0].txid_le == bytes.fromhex(TXID_A)[::-1]
        assert tx.inputs[0].sequence == 0xFFFFFFFF
        assert tx.outputs[0].value == 900
        assert tx.outputs[0].script == other_key.address().script_pubkey()

        script_sig = tx.inputs[0].script_sig
        sig_len = script_sig[0]
        signature = script_sig[1 : 1 + sig_len]
        pubkey = script_sig[2 + sig_len :]
        assert signature[-1] == 0x01
        assert pubkey == key.public_key

        digest = compute_sighash_legacy(
            tx.inputs, tx.outputs, 0, p2pkh_script(default_engine().hash160(key.public_key))
        )
        assert default_engine().verify(pubkey, digest, signature[:-1])

    def test_serialize_is_cached(self, funded_builder, key):
        funded_builder.sign(0, key)
        assert funded_builder.serialize() == funded_builder.serialize()
        assert funded_builder.to_hex() == funded_builder.serialize().hex()

    def test_txid(self, funded_builder, key):
        with pytest.raises(IncompleteSigning):
            funded_builder.txid()
        funded_builder.sign(0, key)
        raw = funded_builder.serialize()
        assert funded_builder.txid() == hash256(raw)[::-1].hex()

    def test_read_only_after_serialize(self, funded_builder, key):
        funded_builder.sign(0, key)
        funded_builder.serialize()
        with pytest.raises(BuilderFinalized):
            funded_builder.sign(0, key)
        with pytest.raises(BuilderFinalized):
            funded_builder.add_output(key.address().value, 1)

    def test_testnet(self, testnet_key):
        with TransactionBuilder(NetworkType.TESTNET) as builder:
            builder.add_utxo(TXID_A, 0, amount=5000)
            builder.add_output(testnet_key.address().value, 4000)
            builder.sign(0, testnet_key)
            assert len(builder.serialize()) > 0
