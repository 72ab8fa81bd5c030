"""
Base crypto engine interface.

The wallet core never performs curve arithmetic, hashing or base58 encoding
itself: it delegates to an engine implementing this interface. Engines are
stateless apart from the process-wide ECC context (see engine.context).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from dogewallet.constants import NetworkType

if TYPE_CHECKING:
    from dogewallet.wallet.signing import TxInput, TxOutput


class CryptoEngine(ABC):
    """
    Abstract crypto/encoding engine.

    Methods that take private key bytes accept any bytes-like object and
    must not keep a reference to it after returning.
    """

    # Entropy and keys

    @abstractmethod
    def random_bytes(self, size: int) -> bytes:
        """Draw cryptographically secure random bytes"""

    @abstractmethod
    def generate_keypair(self) -> tuple[bytearray, bytes]:
        """Generate a (private key, compressed public key) pair"""

    @abstractmethod
    def is_valid_secret(self, secret: bytes | bytearray) -> bool:
        """Check that secret is a valid secp256k1 scalar (0 < k < n)"""

    @abstractmethod
    def public_key(self, secret: bytes | bytearray) -> bytes:
        """Compressed public key for a private key"""

    @abstractmethod
    def is_valid_public_key(self, pubkey: bytes) -> bool:
        """Check that pubkey encodes a point on the curve"""

    # ECDSA

    @abstractmethod
    def sign(self, secret: bytes | bytearray, digest: bytes) -> bytes:
        """Sign a 32-byte digest, returning a low-S DER signature"""

    @abstractmethod
    def verify(self, pubkey: bytes, digest: bytes, signature: bytes) -> bool:
        """Verify a DER signature over a 32-byte digest"""

    @abstractmethod
    def sign_recoverable(self, secret: bytes | bytearray, digest: bytes) -> bytes:
        """Sign a digest, returning 65 bytes: r || s || recovery id"""

    @abstractmethod
    def recover_public_key(self, signature: bytes, digest: bytes, compressed: bool = True) -> bytes:
        """Recover the public key from a 65-byte r || s || recovery id signature"""

    # BIP32

    @abstractmethod
    def derive_child(
        self, parent_key: bytes | bytearray, chain_code: bytes, index: int, hardened: bool
    ) -> tuple[bytearray, bytes]:
        """Private parent -> private child (CKDpriv). Returns (child key, child chain code)"""

    @abstractmethod
    def derive_child_public(
        self, parent_pubkey: bytes, chain_code: bytes, index: int
    ) -> tuple[bytes, bytes]:
        """Public parent -> public child (CKDpub). Returns (child pubkey, child chain code)"""

    # BIP39

    @abstractmethod
    def word_list(self) -> list[str]:
        """Ordered list of the 2048 BIP39 English words"""

    @abstractmethod
    def pbkdf(self, password: bytes, salt: bytes, iterations: int) -> bytes:
        """PBKDF2-HMAC-SHA512 key stretching (64-byte output)"""

    # Hashing and encoding

    @abstractmethod
    def hash160(self, data: bytes) -> bytes:
        """RIPEMD160(SHA256(data))"""

    @abstractmethod
    def hash256(self, data: bytes) -> bytes:
        """SHA256(SHA256(data))"""

    @abstractmethod
    def base58check_encode(self, payload: bytes) -> str:
        """Base58 encode with a 4-byte double-SHA256 checksum"""

    @abstractmethod
    def base58check_decode(self, text: str) -> bytes:
        """Decode base58check, raising EncodingError on a bad checksum or alphabet"""

    @abstractmethod
    def address_from_pubkey(self, pubkey: bytes, network: NetworkType) -> str:
        """P2PKH address for a compressed public key"""

    # Transactions

    @abstractmethod
    def serialize_transaction(
        self,
        inputs: list[TxInput],
        outputs: list[TxOutput],
        version: int,
        locktime: int,
    ) -> bytes:
        """Canonical wire encoding of a legacy transaction"""

    def close(self) -> None:
        """Release engine resources"""
        pass
