"""
Private key material with guaranteed zeroization.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from loguru import logger

from dogewallet.constants import PRIVATE_KEY_SIZE, NetworkType, network_params
from dogewallet.engine.base import CryptoEngine
from dogewallet.engine.coincurve_engine import default_engine
from dogewallet.errors import (
    EncodingError,
    InvalidKeyLength,
    InvalidKeyRange,
    InvalidKeyType,
    InvalidWif,
    KeyMaterialCleared,
)

if TYPE_CHECKING:
    from dogewallet.wallet.address import Address


def zeroize(buffer: bytearray) -> None:
    """Overwrite a mutable buffer with zeros in place."""
    buffer[:] = bytes(len(buffer))


class KeyMaterial:
    """
    A 32-byte secp256k1 private key bound to a network.

    The secret lives in a single bytearray owned by this object. It is
    overwritten with zeros exactly once: on clear(), when a with-block exits,
    or when the object is garbage collected. Instances refuse to be copied or
    pickled.

    Use expose_secret_once() to obtain raw bytes; everything else (signing,
    public key, address) works without handing the secret to the caller.
    """

    def __init__(
        self,
        secret: bytearray,
        network: NetworkType = NetworkType.MAINNET,
        engine: CryptoEngine | None = None,
    ):
        # Takes ownership of `secret`; it is zeroized on any failure below.
        if not isinstance(secret, bytearray):
            raise InvalidKeyType(
                f"Private key must be a bytearray, got {type(secret).__name__}"
                " (use KeyMaterial.from_bytes for immutable data)"
            )
        self._secret = secret
        self._cleared = False
        self._exposed = False
        self.network = NetworkType(network)
        self._engine = engine or default_engine()

        try:
            if len(secret) != PRIVATE_KEY_SIZE:
                raise InvalidKeyLength(
                    f"Private key must be {PRIVATE_KEY_SIZE} bytes, got {len(secret)}"
                )
            if not self._engine.is_valid_secret(secret):
                raise InvalidKeyRange("Private key is outside the valid secp256k1 range")
            self._public_key = self._engine.public_key(secret)
        except BaseException:
            self.clear()
            raise

    @classmethod
    def generate(
        cls, network: NetworkType = NetworkType.MAINNET, engine: CryptoEngine | None = None
    ) -> KeyMaterial:
        """Create a key from fresh randomness"""
        engine = engine or default_engine()
        secret, _ = engine.generate_keypair()
        return cls(secret, network, engine)

    @classmethod
    def from_bytes(
        cls,
        data: bytes | bytearray,
        network: NetworkType = NetworkType.MAINNET,
        engine: CryptoEngine | None = None,
    ) -> KeyMaterial:
        """
        Import raw key bytes.

        The bytes are copied into a buffer owned by the new instance; callers
        remain responsible for their own copy.
        """
        if len(data) != PRIVATE_KEY_SIZE:
            raise InvalidKeyLength(f"Private key must be {PRIVATE_KEY_SIZE} bytes, got {len(data)}")
        return cls(bytearray(data), network, engine)

    @classmethod
    def from_wif(cls, wif: str, engine: CryptoEngine | None = None) -> KeyMaterial:
        """Import a compressed-key WIF string; the network comes from its prefix."""
        engine = engine or default_engine()
        try:
            payload = bytearray(engine.base58check_decode(wif))
        except EncodingError as e:
            raise InvalidWif(f"Invalid WIF: {e}") from e

        try:
            if len(payload) != 1 + PRIVATE_KEY_SIZE + 1 or payload[-1] != 0x01:
                raise InvalidWif("Only compressed-key WIF strings are supported")

            for network in NetworkType:
                if payload[0] == network_params(network).wif_prefix:
                    break
            else:
                raise InvalidWif(f"Unknown WIF prefix: 0x{payload[0]:02x}")

            return cls(payload[1 : 1 + PRIVATE_KEY_SIZE], network, engine)
        finally:
            zeroize(payload)

    @property
    def public_key(self) -> bytes:
        """Compressed (33-byte) public key."""
        return self._public_key

    @property
    def engine(self) -> CryptoEngine:
        return self._engine

    @property
    def cleared(self) -> bool:
        return self._cleared

    def address(self) -> Address:
        from dogewallet.wallet.address import Address

        return Address.from_public_key(self._public_key, self.network, self._engine)

    def _require_secret(self) -> bytearray:
        if self._cleared:
            raise KeyMaterialCleared("Key material has been cleared")
        return self._secret

    @contextmanager
    def _scoped_secret(self) -> Iterator[bytearray]:
        scoped = bytearray(self._require_secret())
        try:
            yield scoped
        finally:
            zeroize(scoped)

    @contextmanager
    def expose_secret_once(self) -> Iterator[bytearray]:
        """
        Yield a scoped copy of the raw secret.

        The copy is zeroed when the with-block exits, whether normally or by
        exception. Do not keep references to it.
        """
        self._require_secret()
        if not self._exposed:
            self._exposed = True
            logger.warning(f"Raw private key exposed for {self.address()}")
        with self._scoped_secret() as secret:
            yield secret

    def export_wif(self) -> str:
        """Export as a compressed-key WIF string (an exposure of the secret)."""
        prefix = network_params(self.network).wif_prefix
        with self.expose_secret_once() as secret:
            payload = bytearray([prefix])
            payload += secret
            payload += b"\x01"
            try:
                return self._engine.base58check_encode(bytes(payload))
            finally:
                zeroize(payload)

    def sign(self, digest: bytes) -> bytes:
        """ECDSA-sign a 32-byte digest; returns a DER signature."""
        with self._scoped_secret() as secret:
            return self._engine.sign(secret, digest)

    def sign_recoverable(self, digest: bytes) -> bytes:
        with self._scoped_secret() as secret:
            return self._engine.sign_recoverable(secret, digest)

    def derive_child_key(
        self, chain_code: bytes, index: int, hardened: bool
    ) -> tuple[KeyMaterial, bytes]:
        """BIP32 private child derivation; returns (child key, child chain code)."""
        with self._scoped_secret() as secret:
            child_secret, child_chain = self._engine.derive_child(
                secret, chain_code, index, hardened
            )
        return KeyMaterial(child_secret, self.network, self._engine), child_chain

    def clear(self) -> None:
        """Zeroize the secret. Safe to call more than once."""
        if getattr(self, "_cleared", True):
            return
        self._cleared = True
        zeroize(self._secret)

    def __enter__(self) -> KeyMaterial:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.clear()

    def __del__(self) -> None:
        self.clear()

    def __copy__(self) -> KeyMaterial:
        raise TypeError("KeyMaterial cannot be copied")

    def __deepcopy__(self, memo: dict) -> KeyMaterial:
        raise TypeError("KeyMaterial cannot be copied")

    def __reduce__(self):
        raise TypeError("KeyMaterial cannot be pickled")

    def __repr__(self) -> str:
        state = "cleared" if self._cleared else self._public_key.hex()
        return f"KeyMaterial(network={self.network.value}, pubkey={state})"
