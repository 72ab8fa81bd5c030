"""
BIP39 mnemonic phrases: generation, validation and seed derivation.
"""

from __future__ import annotations

import hashlib
import unicodedata
from collections.abc import Sequence

from dogewallet.constants import (
    MNEMONIC_STRENGTHS,
    MNEMONIC_WORD_COUNTS,
    PBKDF2_ROUNDS,
    NetworkType,
)
from dogewallet.engine.base import CryptoEngine
from dogewallet.engine.coincurve_engine import default_engine
from dogewallet.errors import (
    ChecksumMismatch,
    DerivationError,
    InvalidWordCount,
    UnknownWord,
    UnsupportedStrength,
)
from dogewallet.wallet.address import Address


def _normalize(text: str) -> str:
    return unicodedata.normalize("NFKD", text)


def _checksum_bits(entropy: bytes) -> int:
    """First len(entropy)*8/32 bits of SHA256(entropy)."""
    bits = len(entropy) * 8 // 32
    return hashlib.sha256(entropy).digest()[0] >> (8 - bits)


class Mnemonic:
    """
    An immutable, checksum-verified BIP39 word sequence.

    Construct through generate(), from_phrase() or from_entropy(); the
    constructor itself assumes the words were already validated.
    """

    def __init__(self, words: Sequence[str], engine: CryptoEngine | None = None):
        self._words = tuple(words)
        self._engine = engine or default_engine()

    @classmethod
    def generate(cls, strength: int = 256, engine: CryptoEngine | None = None) -> Mnemonic:
        """Create a random mnemonic with `strength` bits of entropy."""
        if strength not in MNEMONIC_STRENGTHS:
            allowed = ", ".join(str(s) for s in MNEMONIC_STRENGTHS)
            raise UnsupportedStrength(f"Strength must be one of {allowed}, got {strength}")
        engine = engine or default_engine()
        return cls.from_entropy(engine.random_bytes(strength // 8), engine)

    @classmethod
    def from_entropy(cls, entropy: bytes, engine: CryptoEngine | None = None) -> Mnemonic:
        strength = len(entropy) * 8
        if strength not in MNEMONIC_STRENGTHS:
            raise UnsupportedStrength(f"Unsupported entropy length: {len(entropy)} bytes")
        engine = engine or default_engine()
        word_list = engine.word_list()

        checksum_len = strength // 32
        bits = (int.from_bytes(entropy, "big") << checksum_len) | _checksum_bits(entropy)
        word_count = MNEMONIC_STRENGTHS[strength]

        words = [
            word_list[(bits >> (11 * (word_count - 1 - i))) & 0x7FF] for i in range(word_count)
        ]
        return cls(words, engine)

    @classmethod
    def from_phrase(cls, words: str | Sequence[str], engine: CryptoEngine | None = None) -> Mnemonic:
        """
        Parse and verify a user-supplied phrase.

        Raises InvalidWordCount, UnknownWord or ChecksumMismatch; a phrase
        that fails any check is never corrected.
        """
        engine = engine or default_engine()
        if isinstance(words, str):
            word_seq = _normalize(words).split()
        else:
            word_seq = [_normalize(w).strip() for w in words]

        if len(word_seq) not in MNEMONIC_WORD_COUNTS:
            allowed = ", ".join(str(c) for c in MNEMONIC_WORD_COUNTS)
            raise InvalidWordCount(f"Mnemonic must have {allowed} words, got {len(word_seq)}")

        index_of = {word: i for i, word in enumerate(engine.word_list())}
        bits = 0
        for position, word in enumerate(word_seq):
            index = index_of.get(word)
            if index is None:
                raise UnknownWord(word, position)
            bits = (bits << 11) | index

        strength = MNEMONIC_WORD_COUNTS[len(word_seq)]
        checksum_len = strength // 32
        entropy = (bits >> checksum_len).to_bytes(strength // 8, "big")
        checksum = bits & ((1 << checksum_len) - 1)

        if checksum != _checksum_bits(entropy):
            raise ChecksumMismatch("Mnemonic checksum does not match")

        return cls(word_seq, engine)

    @classmethod
    def is_valid(cls, words: str | Sequence[str], engine: CryptoEngine | None = None) -> bool:
        try:
            cls.from_phrase(words, engine)
        except DerivationError:
            return False
        return True

    @property
    def words(self) -> tuple[str, ...]:
        return self._words

    @property
    def phrase(self) -> str:
        return " ".join(self._words)

    @property
    def strength(self) -> int:
        return MNEMONIC_WORD_COUNTS[len(self._words)]

    @property
    def entropy(self) -> bytes:
        index_of = {word: i for i, word in enumerate(self._engine.word_list())}
        bits = 0
        for word in self._words:
            bits = (bits << 11) | index_of[word]
        return (bits >> (self.strength // 32)).to_bytes(self.strength // 8, "big")

    def to_seed(self, passphrase: str = "") -> bytes:
        """64-byte BIP39 seed (PBKDF2-HMAC-SHA512, 2048 rounds)."""
        password = _normalize(self.phrase).encode("utf-8")
        salt = _normalize("mnemonic" + passphrase).encode("utf-8")
        return self._engine.pbkdf(password, salt, PBKDF2_ROUNDS)

    def derive_path(
        self,
        account: int = 0,
        index: int = 0,
        passphrase: str = "",
        change: int = 0,
        network: NetworkType = NetworkType.MAINNET,
    ) -> Address:
        """
        Address at m/44'/coin'/account'/change/index for this phrase.

        Any failure along seed -> root -> path -> address is raised as
        DerivationError chained to the underlying cause.
        """
        from dogewallet.wallet.bip32 import HdNode, bip44_path

        try:
            path = bip44_path(network, account, change, index)
            with HdNode.from_seed(self.to_seed(passphrase), network, self._engine) as root:
                with root.derive(path) as node:
                    return node.address()
        except DerivationError:
            raise
        except Exception as e:
            raise DerivationError(f"Failed to derive address for account {account}: {e}") from e

    def derive_change_address(
        self,
        account: int = 0,
        index: int = 0,
        passphrase: str = "",
        network: NetworkType = NetworkType.MAINNET,
    ) -> Address:
        return self.derive_path(account, index, passphrase, change=1, network=network)

    def __len__(self) -> int:
        return len(self._words)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mnemonic):
            return NotImplemented
        return self._words == other._words

    def __hash__(self) -> int:
        return hash(self._words)

    def __repr__(self) -> str:
        return f"Mnemonic(<{len(self._words)} words>)"
