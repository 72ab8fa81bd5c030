"""
Crypto engine backed by coincurve (libsecp256k1), hashlib, base58 and the
BIP39 word list shipped with the mnemonic package.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from functools import cached_property
from typing import TYPE_CHECKING

import base58
from coincurve import PrivateKey, PublicKey
from mnemonic import Mnemonic as Bip39Wordlist

from dogewallet.constants import (
    COMPRESSED_PUBKEY_SIZE,
    PRIVATE_KEY_SIZE,
    SECP256K1_N,
    SEED_SIZE,
    NetworkType,
    network_params,
)
from dogewallet.engine.base import CryptoEngine
from dogewallet.engine.context import active_context
from dogewallet.errors import EncodingError, InvalidChildKey, InvalidKeyRange, SigningError

if TYPE_CHECKING:
    from dogewallet.wallet.signing import TxInput, TxOutput


class CoincurveEngine(CryptoEngine):
    """
    Default engine.

    coincurve copies secrets into its own immutable buffers for the duration
    of a call; the copies are dropped before each method returns.
    """

    def random_bytes(self, size: int) -> bytes:
        return secrets.token_bytes(size)

    def generate_keypair(self) -> tuple[bytearray, bytes]:
        while True:
            candidate = bytearray(secrets.token_bytes(PRIVATE_KEY_SIZE))
            if self.is_valid_secret(candidate):
                return candidate, self.public_key(candidate)
            candidate[:] = bytes(len(candidate))

    def is_valid_secret(self, secret: bytes | bytearray) -> bool:
        if len(secret) != PRIVATE_KEY_SIZE:
            return False
        return 0 < int.from_bytes(secret, "big") < SECP256K1_N

    def _private_key(self, secret: bytes | bytearray) -> PrivateKey:
        if not self.is_valid_secret(secret):
            raise InvalidKeyRange("Private key is outside the valid secp256k1 range")
        return PrivateKey(bytes(secret), context=active_context())

    def public_key(self, secret: bytes | bytearray) -> bytes:
        return self._private_key(secret).public_key.format(compressed=True)

    def is_valid_public_key(self, pubkey: bytes) -> bool:
        try:
            PublicKey(pubkey, context=active_context())
        except (ValueError, TypeError):
            return False
        return True

    def sign(self, secret: bytes | bytearray, digest: bytes) -> bytes:
        if len(digest) != 32:
            raise SigningError(f"Digest must be 32 bytes, got {len(digest)}")
        try:
            return self._private_key(secret).sign(digest, hasher=None)
        except ValueError as e:
            raise SigningError(f"ECDSA signing failed: {e}") from e

    def verify(self, pubkey: bytes, digest: bytes, signature: bytes) -> bool:
        try:
            key = PublicKey(pubkey, context=active_context())
            return key.verify(signature, digest, hasher=None)
        except (ValueError, TypeError):
            return False

    def sign_recoverable(self, secret: bytes | bytearray, digest: bytes) -> bytes:
        if len(digest) != 32:
            raise SigningError(f"Digest must be 32 bytes, got {len(digest)}")
        try:
            return self._private_key(secret).sign_recoverable(digest, hasher=None)
        except ValueError as e:
            raise SigningError(f"Recoverable signing failed: {e}") from e

    def recover_public_key(self, signature: bytes, digest: bytes, compressed: bool = True) -> bytes:
        try:
            key = PublicKey.from_signature_and_message(
                signature, digest, hasher=None, context=active_context()
            )
        except (ValueError, TypeError) as e:
            raise SigningError(f"Public key recovery failed: {e}") from e
        return key.format(compressed=compressed)

    def derive_child(
        self, parent_key: bytes | bytearray, chain_code: bytes, index: int, hardened: bool
    ) -> tuple[bytearray, bytes]:
        if hardened:
            data = b"\x00" + bytes(parent_key) + index.to_bytes(4, "big")
        else:
            data = self.public_key(parent_key) + index.to_bytes(4, "big")

        hmac_result = hmac.new(chain_code, data, hashlib.sha512).digest()
        key_offset = hmac_result[:32]
        child_chain = hmac_result[32:]

        offset_int = int.from_bytes(key_offset, "big")
        if offset_int >= SECP256K1_N:
            raise InvalidChildKey(f"Derived tweak out of range at index {index}")

        parent_key_int = int.from_bytes(parent_key, "big")
        child_key_int = (parent_key_int + offset_int) % SECP256K1_N

        if child_key_int == 0:
            raise InvalidChildKey(f"Derived key is zero at index {index}")

        return bytearray(child_key_int.to_bytes(32, "big")), child_chain

    def derive_child_public(
        self, parent_pubkey: bytes, chain_code: bytes, index: int
    ) -> tuple[bytes, bytes]:
        data = parent_pubkey + index.to_bytes(4, "big")
        hmac_result = hmac.new(chain_code, data, hashlib.sha512).digest()
        key_offset = hmac_result[:32]
        child_chain = hmac_result[32:]

        if int.from_bytes(key_offset, "big") >= SECP256K1_N:
            raise InvalidChildKey(f"Derived tweak out of range at index {index}")

        try:
            parent = PublicKey(parent_pubkey, context=active_context())
            child = parent.add(key_offset)
        except ValueError as e:
            raise InvalidChildKey(f"Public derivation failed at index {index}: {e}") from e

        return child.format(compressed=True), child_chain

    @cached_property
    def _words(self) -> list[str]:
        return list(Bip39Wordlist("english").wordlist)

    def word_list(self) -> list[str]:
        return self._words

    def pbkdf(self, password: bytes, salt: bytes, iterations: int) -> bytes:
        return hashlib.pbkdf2_hmac("sha512", password, salt, iterations, dklen=SEED_SIZE)

    def hash160(self, data: bytes) -> bytes:
        h = hashlib.new("ripemd160")
        h.update(hashlib.sha256(data).digest())
        return h.digest()

    def hash256(self, data: bytes) -> bytes:
        return hashlib.sha256(hashlib.sha256(data).digest()).digest()

    def base58check_encode(self, payload: bytes) -> str:
        return base58.b58encode_check(payload).decode("ascii")

    def base58check_decode(self, text: str) -> bytes:
        try:
            return base58.b58decode_check(text)
        except ValueError as e:
            raise EncodingError(f"Invalid base58check string: {e}") from e

    def address_from_pubkey(self, pubkey: bytes, network: NetworkType) -> str:
        if len(pubkey) != COMPRESSED_PUBKEY_SIZE:
            raise EncodingError(f"Invalid compressed pubkey length: {len(pubkey)}")
        if not self.is_valid_public_key(pubkey):
            raise EncodingError("Public key is not a valid curve point")

        params = network_params(network)
        return self.base58check_encode(bytes([params.p2pkh_prefix]) + self.hash160(pubkey))

    def serialize_transaction(
        self,
        inputs: list[TxInput],
        outputs: list[TxOutput],
        version: int,
        locktime: int,
    ) -> bytes:
        from dogewallet.wallet.signing import serialize_transaction

        return serialize_transaction(inputs, outputs, version, locktime)


_default_engine: CryptoEngine | None = None


def default_engine() -> CryptoEngine:
    """Shared engine used when callers do not pass one explicitly."""
    global _default_engine
    if _default_engine is None:
        _default_engine = CoincurveEngine()
    return _default_engine
