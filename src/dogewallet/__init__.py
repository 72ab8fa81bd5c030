"""
dogewallet - Safe Dogecoin wallet core

Key generation, BIP39/BIP44 derivation, address validation and legacy
transaction signing with zeroized key material.
"""

__version__ = "0.1.0"

from dogewallet.config import WalletSettings, get_settings
from dogewallet.constants import NetworkType
from dogewallet.errors import (
    CollaboratorError,
    DerivationError,
    InputError,
    StateError,
    WalletError,
)
from dogewallet.wallet import (
    Address,
    BuilderState,
    HdWallet,
    KeyMaterial,
    Mnemonic,
    TransactionBuilder,
)

__all__ = [
    "Address",
    "BuilderState",
    "CollaboratorError",
    "DerivationError",
    "HdWallet",
    "InputError",
    "KeyMaterial",
    "Mnemonic",
    "NetworkType",
    "StateError",
    "TransactionBuilder",
    "WalletError",
    "WalletSettings",
    "get_settings",
]
