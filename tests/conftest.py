"""
Pytest configuration and shared fixtures.
"""

from collections.abc import Iterator

import pytest

from dogewallet.constants import NetworkType
from dogewallet.wallet.keys import KeyMaterial
from dogewallet.wallet.service import HdWallet
from dogewallet.wallet.tx_builder import TransactionBuilder


FUNDING_TXID = "aa" * 32


@pytest.fixture
def test_mnemonic() -> str:
    """Test mnemonic (BIP39 test vector)"""
    return (
        "abandon abandon abandon abandon abandon abandon "
        "abandon abandon abandon abandon abandon about"
    )


@pytest.fixture
def key() -> Iterator[KeyMaterial]:
    with KeyMaterial.from_bytes(bytes([0x11] * 32)) as k:
        yield k


@pytest.fixture
def other_key() -> Iterator[KeyMaterial]:
    with KeyMaterial.from_bytes(bytes([0x22] * 32)) as k:
        yield k


@pytest.fixture
def testnet_key() -> Iterator[KeyMaterial]:
    with KeyMaterial.from_bytes(bytes([0x11] * 32), NetworkType.TESTNET) as k:
        yield k


@pytest.fixture
def wallet(test_mnemonic: str) -> Iterator[HdWallet]:
    with HdWallet.from_mnemonic(test_mnemonic) as w:
        yield w


@pytest.fixture
def builder() -> Iterator[TransactionBuilder]:
    with TransactionBuilder() as b:
        yield b


@pytest.fixture
def funded_builder(builder: TransactionBuilder, key: KeyMaterial, other_key: KeyMaterial):
    """One 1000-koinu input owned by `key`, one 900-koinu output."""
    builder.add_utxo(FUNDING_TXID, 0, amount=1000, script=key.address().script_pubkey())
    builder.add_output(other_key.address().value, 900)
    return builder
