"""
BIP32 HD key derivation for Dogecoin wallets.
Implements BIP44 derivation paths (m/44'/3'/account'/change/index).
"""

from __future__ import annotations

import hashlib
import hmac

from dogewallet.constants import (
    BIP32_SEED_KEY,
    BIP44_PURPOSE,
    CHAIN_CODE_SIZE,
    COMPRESSED_PUBKEY_SIZE,
    HARDENED_OFFSET,
    MAX_CHILD_INDEX,
    MAX_SEED_SIZE,
    MIN_SEED_SIZE,
    NETWORK_PARAMS,
    NetworkType,
    network_params,
)
from dogewallet.engine.base import CryptoEngine
from dogewallet.engine.coincurve_engine import default_engine
from dogewallet.errors import (
    DerivationError,
    EncodingError,
    InputError,
    InvalidChildIndex,
    InvalidDerivationPath,
    InvalidExtendedKey,
    InvalidSeed,
    PublicDerivationNotHardenable,
)
from dogewallet.wallet.address import Address
from dogewallet.wallet.keys import KeyMaterial, zeroize

EXTENDED_KEY_SIZE = 78
MAX_DEPTH = 0xFF


def bip44_path(network: NetworkType, account: int, change: int, index: int) -> str:
    """m/44'/coin_type'/account'/change/index"""
    if not 0 <= account < HARDENED_OFFSET:
        raise InvalidChildIndex(f"Account out of range: {account}")
    if change not in (0, 1):
        raise InvalidChildIndex(f"Change must be 0 (external) or 1 (internal), got {change}")
    if not 0 <= index < HARDENED_OFFSET:
        raise InvalidChildIndex(f"Address index out of range: {index}")

    coin_type = network_params(network).bip44_coin_type
    return f"m/{BIP44_PURPOSE}'/{coin_type}'/{account}'/{change}/{index}"


def parse_path(path: str) -> list[int]:
    """
    Parse path notation (e.g., "m/44'/3'/0'/0/0") into child indices.
    ' or h indicates hardened derivation.
    """
    if not path.startswith("m"):
        raise InvalidDerivationPath("Path must start with 'm'")

    parts = path.split("/")
    if parts[0] != "m":
        raise InvalidDerivationPath(f"Invalid path root: {parts[0]!r}")

    indices = []
    for part in parts[1:]:
        if not part:
            continue

        hardened = part.endswith(("'", "h", "H"))
        index_str = part[:-1] if hardened else part
        if not index_str.isdigit():
            raise InvalidDerivationPath(f"Invalid path component: {part!r}")

        index = int(index_str)
        if index >= HARDENED_OFFSET:
            raise InvalidDerivationPath(f"Path component out of range: {part!r}")

        indices.append(index + HARDENED_OFFSET if hardened else index)

    if not indices:
        raise InvalidDerivationPath("Path must contain at least one component")
    return indices


class HdNode:
    """
    A node in the BIP32 tree.

    A node is either private (owns a KeyMaterial) or public-only. Deriving a
    child never alters the parent; each child owns its own key material.
    """

    def __init__(
        self,
        chain_code: bytes,
        depth: int = 0,
        child_index: int = 0,
        parent_fingerprint: bytes = b"\x00\x00\x00\x00",
        network: NetworkType = NetworkType.MAINNET,
        key: KeyMaterial | None = None,
        public_key: bytes | None = None,
        engine: CryptoEngine | None = None,
    ):
        if key is None and public_key is None:
            raise ValueError("HdNode needs a private key or a public key")
        if len(chain_code) != CHAIN_CODE_SIZE:
            raise ValueError(f"Chain code must be {CHAIN_CODE_SIZE} bytes")

        self._key = key
        self._public_key = key.public_key if key is not None else public_key
        self.chain_code = bytes(chain_code)
        self.depth = depth
        self.child_index = child_index
        self.parent_fingerprint = bytes(parent_fingerprint)
        self.network = NetworkType(network)
        self._engine = engine or (key.engine if key is not None else default_engine())

    @classmethod
    def from_seed(
        cls,
        seed: bytes,
        network: NetworkType = NetworkType.MAINNET,
        engine: CryptoEngine | None = None,
    ) -> HdNode:
        """Create the master (root) node from a BIP39/BIP32 seed"""
        if not MIN_SEED_SIZE <= len(seed) <= MAX_SEED_SIZE:
            raise InvalidSeed(
                f"Seed must be {MIN_SEED_SIZE}-{MAX_SEED_SIZE} bytes, got {len(seed)}"
            )

        hmac_result = bytearray(hmac.new(BIP32_SEED_KEY, seed, hashlib.sha512).digest())
        try:
            key_bytes = hmac_result[:32]
            chain_code = bytes(hmac_result[32:])
            try:
                key = KeyMaterial(key_bytes, network, engine)
            except InputError as e:
                raise InvalidSeed(f"Seed produces an invalid master key: {e}") from e
        finally:
            zeroize(hmac_result)

        return cls(chain_code, depth=0, network=network, key=key, engine=engine)

    @classmethod
    def from_extended_key(cls, text: str, engine: CryptoEngine | None = None) -> HdNode:
        """Load a serialized extended private or public key (dgpv/dgub, tprv/tpub)."""
        engine = engine or default_engine()
        try:
            payload = bytearray(engine.base58check_decode(text))
        except EncodingError as e:
            raise InvalidExtendedKey(f"Invalid extended key encoding: {e}") from e

        try:
            if len(payload) != EXTENDED_KEY_SIZE:
                raise InvalidExtendedKey(f"Extended key must be {EXTENDED_KEY_SIZE} bytes")

            version = bytes(payload[0:4])
            depth = payload[4]
            parent_fingerprint = bytes(payload[5:9])
            child_index = int.from_bytes(payload[9:13], "big")
            chain_code = bytes(payload[13:45])
            key_data = payload[45:78]

            if depth == 0 and (parent_fingerprint != b"\x00" * 4 or child_index != 0):
                raise InvalidExtendedKey("Root key with non-zero parent fingerprint or index")

            for network, params in NETWORK_PARAMS.items():
                if version == params.xprv_version:
                    if key_data[0] != 0x00:
                        raise InvalidExtendedKey("Private key data must start with 0x00")
                    try:
                        key = KeyMaterial(key_data[1:], network, engine)
                    except InputError as e:
                        raise InvalidExtendedKey(f"Invalid private key: {e}") from e
                    return cls(
                        chain_code, depth, child_index, parent_fingerprint, network, key=key,
                        engine=engine,
                    )
                if version == params.xpub_version:
                    public_key = bytes(key_data)
                    if not engine.is_valid_public_key(public_key):
                        raise InvalidExtendedKey("Invalid public key")
                    return cls(
                        chain_code, depth, child_index, parent_fingerprint, network,
                        public_key=public_key, engine=engine,
                    )

            raise InvalidExtendedKey(f"Unknown extended key version: {version.hex()}")
        finally:
            zeroize(payload)

    @property
    def is_private(self) -> bool:
        return self._key is not None

    @property
    def is_root(self) -> bool:
        return self.depth == 0

    @property
    def is_hardened(self) -> bool:
        return self.child_index >= HARDENED_OFFSET

    @property
    def key(self) -> KeyMaterial:
        """Private key material, still owned by this node."""
        if self._key is None:
            raise DerivationError("Node holds no private key material")
        return self._key

    @property
    def public_key(self) -> bytes:
        """Compressed public key"""
        assert self._public_key is not None
        return self._public_key

    @property
    def fingerprint(self) -> bytes:
        return self._engine.hash160(self.public_key)[:4]

    def derive_child(self, index: int) -> HdNode:
        """Derive the child at `index` (>= 2**31 for hardened)"""
        if not 0 <= index <= MAX_CHILD_INDEX:
            raise InvalidChildIndex(f"Child index out of range: {index}")
        if self.depth >= MAX_DEPTH:
            raise DerivationError("Maximum derivation depth reached")

        hardened = index >= HARDENED_OFFSET

        if self._key is not None:
            child_key, child_chain = self._key.derive_child_key(self.chain_code, index, hardened)
            return HdNode(
                child_chain,
                depth=self.depth + 1,
                child_index=index,
                parent_fingerprint=self.fingerprint,
                network=self.network,
                key=child_key,
                engine=self._engine,
            )

        if hardened:
            raise PublicDerivationNotHardenable(
                f"Hardened child {index - HARDENED_OFFSET}' needs the parent private key"
            )

        child_pub, child_chain = self._engine.derive_child_public(
            self.public_key, self.chain_code, index
        )
        return HdNode(
            child_chain,
            depth=self.depth + 1,
            child_index=index,
            parent_fingerprint=self.fingerprint,
            network=self.network,
            public_key=child_pub,
            engine=self._engine,
        )

    def derive(self, path: str) -> HdNode:
        """
        Derive a descendant from path notation (e.g., "m/44'/3'/0'/0/0").
        Intermediate nodes are zeroized as soon as their child exists.
        """
        node = self
        for index in parse_path(path):
            try:
                child = node.derive_child(index)
            finally:
                if node is not self:
                    node.clear()
            node = child
        return node

    def neuter(self) -> HdNode:
        """Public-only copy of this node"""
        return HdNode(
            self.chain_code,
            self.depth,
            self.child_index,
            self.parent_fingerprint,
            self.network,
            public_key=self.public_key,
            engine=self._engine,
        )

    def release_key(self) -> KeyMaterial:
        """Hand ownership of the private key to the caller; the node becomes public-only."""
        key = self.key
        self._key = None
        return key

    def address(self) -> Address:
        return Address.from_public_key(self.public_key, self.network, self._engine)

    def _serialize_header(self, version: bytes) -> bytearray:
        return bytearray(
            version
            + bytes([self.depth])
            + self.parent_fingerprint
            + self.child_index.to_bytes(4, "big")
            + self.chain_code
        )

    def to_extended_public(self) -> str:
        payload = self._serialize_header(network_params(self.network).xpub_version)
        payload += self.public_key
        assert len(self.public_key) == COMPRESSED_PUBKEY_SIZE
        return self._engine.base58check_encode(bytes(payload))

    def to_extended_private(self) -> str:
        """Serialize with the private key (an exposure of the secret)."""
        key = self.key
        payload = self._serialize_header(network_params(self.network).xprv_version)
        with key.expose_secret_once() as secret:
            payload += b"\x00"
            payload += secret
            try:
                return self._engine.base58check_encode(bytes(payload))
            finally:
                zeroize(payload)

    def clear(self) -> None:
        """Zeroize the node's private key, if any."""
        if self._key is not None:
            self._key.clear()

    def __enter__(self) -> HdNode:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.clear()

    def __repr__(self) -> str:
        kind = "private" if self.is_private else "public"
        return (
            f"HdNode({kind}, network={self.network.value}, depth={self.depth}, "
            f"index={self.child_index}, fingerprint={self.fingerprint.hex()})"
        )
