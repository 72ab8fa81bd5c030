"""
Exception hierarchy for the wallet core.

Every fallible operation raises a distinct subclass so callers can branch on
the exception type instead of matching message strings.
"""

from __future__ import annotations


class WalletError(Exception):
    """Base class for all wallet errors."""


# Input errors


class InputError(WalletError):
    """Malformed or unacceptable caller-supplied data."""


class InvalidKeyLength(InputError):
    pass


class InvalidKeyRange(InputError):
    pass


class InvalidKeyType(InputError):
    pass


class InvalidWif(InputError):
    pass


class InvalidAddress(InputError):
    pass


class InvalidAmount(InputError):
    pass


class NonPositiveAmount(InvalidAmount):
    pass


class AmountOutOfRange(InvalidAmount):
    pass


class InvalidTxid(InputError):
    pass


class DuplicateUtxo(InputError):
    def __init__(self, txid: str, vout: int):
        super().__init__(f"UTXO {txid}:{vout} already added")
        self.txid = txid
        self.vout = vout


class UnsupportedStrength(InputError):
    pass


class KeyMismatch(InputError):
    pass


class NetworkMismatch(InputError):
    pass


class InvalidInputIndex(InputError):
    pass


class UnknownInputAmount(InputError):
    pass


class InsufficientFunds(InputError):
    pass


# Derivation errors


class DerivationError(WalletError):
    """Mnemonic, seed or HD derivation failure."""


class MnemonicError(DerivationError):
    pass


class InvalidWordCount(MnemonicError):
    pass


class UnknownWord(MnemonicError):
    def __init__(self, word: str, position: int):
        super().__init__(f"Word #{position + 1} is not in the word list")
        self.word = word
        self.position = position


class ChecksumMismatch(MnemonicError):
    pass


class InvalidSeed(DerivationError):
    pass


class InvalidChildIndex(DerivationError):
    pass


class InvalidChildKey(DerivationError):
    pass


class InvalidDerivationPath(DerivationError):
    pass


class InvalidExtendedKey(DerivationError):
    pass


class PublicDerivationNotHardenable(DerivationError):
    pass


# State errors


class StateError(WalletError):
    """Operation is not legal in the object's current state."""


class BuilderFinalized(StateError):
    pass


class IncompleteSigning(StateError):
    pass


class IncompleteTransaction(StateError):
    pass


class InputAlreadySigned(StateError):
    pass


class KeyMaterialCleared(StateError):
    pass


# Collaborator errors


class CollaboratorError(WalletError):
    """The crypto/encoding engine rejected input or failed internally."""


class EncodingError(CollaboratorError):
    pass


class SigningError(CollaboratorError):
    pass
