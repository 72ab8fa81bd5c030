"""
Dogecoin HD wallet service with per-account address cursors.
"""

from __future__ import annotations

import threading

from loguru import logger

from dogewallet.constants import (
    BIP44_PURPOSE,
    HARDENED_OFFSET,
    SEED_SIZE,
    NetworkType,
    network_params,
)
from dogewallet.engine.base import CryptoEngine
from dogewallet.engine.coincurve_engine import default_engine
from dogewallet.engine.context import EccContext
from dogewallet.errors import InvalidChildIndex
from dogewallet.wallet.address import Address
from dogewallet.wallet.bip32 import HdNode, bip44_path
from dogewallet.wallet.keys import KeyMaterial
from dogewallet.wallet.mnemonic import Mnemonic


class HdWallet:
    """
    BIP44 hierarchical deterministic wallet.

    Derivation path: m/44'/{coin_type}'/{account}'/{change}/{index}
    - coin_type: 3 (mainnet) or 1 (testnet)
    - change: 0 (external/receive), 1 (internal/change)
    - index: address index, handed out in strictly increasing order by
      derive_new_address()

    The read-derive-advance sequence for the index cursors is guarded by an
    internal lock, so one wallet may be shared between threads.
    """

    def __init__(self, root: HdNode, engine: CryptoEngine | None = None):
        self._ecc = EccContext()
        self.root = root
        self.network = root.network
        self._engine = engine or default_engine()
        self._lock = threading.Lock()
        self._next_index: dict[tuple[int, int], int] = {}

        logger.debug(f"Initialized {self.network.value} HD wallet {root.fingerprint.hex()}")

    @classmethod
    def generate(
        cls, network: NetworkType = NetworkType.MAINNET, engine: CryptoEngine | None = None
    ) -> HdWallet:
        """Create a wallet from a fresh random 64-byte seed"""
        engine = engine or default_engine()
        return cls.from_seed(engine.random_bytes(SEED_SIZE), network, engine)

    @classmethod
    def from_seed(
        cls,
        seed: bytes,
        network: NetworkType = NetworkType.MAINNET,
        engine: CryptoEngine | None = None,
    ) -> HdWallet:
        return cls(HdNode.from_seed(seed, network, engine), engine)

    @classmethod
    def from_mnemonic(
        cls,
        mnemonic: Mnemonic | str,
        passphrase: str = "",
        network: NetworkType = NetworkType.MAINNET,
        engine: CryptoEngine | None = None,
    ) -> HdWallet:
        if isinstance(mnemonic, str):
            mnemonic = Mnemonic.from_phrase(mnemonic, engine)
        return cls.from_seed(mnemonic.to_seed(passphrase), network, engine)

    @classmethod
    def from_extended_key(cls, master_key: str, engine: CryptoEngine | None = None) -> HdWallet:
        """Restore from a serialized master key (dgpv.../tprv...)"""
        return cls(HdNode.from_extended_key(master_key, engine), engine)

    def master_key(self) -> str:
        """Extended private master key. Exposes the secret."""
        return self.root.to_extended_private()

    def master_public_key(self) -> str:
        return self.root.to_extended_public()

    def address_path(self, account: int, change: int, index: int) -> str:
        return bip44_path(self.network, account, change, index)

    def account_path(self, account: int) -> str:
        coin_type = network_params(self.network).bip44_coin_type
        return f"m/{BIP44_PURPOSE}'/{coin_type}'/{account}'"

    def _derive_node(self, account: int, change: int, index: int) -> HdNode:
        return self.root.derive(self.address_path(account, change, index))

    def derive_address(self, account: int, change: int, index: int) -> Address:
        """Address for an explicit (account, change, index); cursors are untouched"""
        with self._derive_node(account, change, index) as node:
            return node.address()

    def derive_by_path(self, path: str) -> Address:
        with self.root.derive(path) as node:
            return node.address()

    def derive_new_address(self, account: int = 0, change: int = 0) -> Address:
        """
        Next unused address for (account, change).

        The cursor only advances once the address exists, so a failed
        derivation never burns an index and two calls never share one.
        """
        with self._lock:
            index = self._next_index.get((account, change), 0)
            if index >= HARDENED_OFFSET:
                raise InvalidChildIndex(f"Address index space exhausted for account {account}")

            address = self.derive_address(account, change, index)
            self._next_index[(account, change)] = index + 1

        logger.debug(f"Derived address #{index} for account {account}, change {change}")
        return address

    def derive_change_address(self, account: int = 0) -> Address:
        return self.derive_new_address(account, change=1)

    def next_index(self, account: int = 0, change: int = 0) -> int:
        with self._lock:
            return self._next_index.get((account, change), 0)

    def reset_index(self, account: int = 0, change: int = 0, index: int = 0) -> None:
        """Explicitly rewind a cursor (the only way it ever decreases)."""
        if not 0 <= index < HARDENED_OFFSET:
            raise InvalidChildIndex(f"Address index out of range: {index}")
        with self._lock:
            self._next_index[(account, change)] = index
        logger.info(f"Reset address cursor for account {account}, change {change} to {index}")

    def key_for(self, account: int, change: int, index: int) -> KeyMaterial:
        """
        Private key for an address, e.g. to sign a transaction input.
        The caller owns the returned key and should clear() it when done.
        """
        node = self._derive_node(account, change, index)
        return node.release_key()

    def close(self) -> None:
        """Zeroize the root key and release the ECC context"""
        self.root.clear()
        self._ecc.close()

    def __enter__(self) -> HdWallet:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
