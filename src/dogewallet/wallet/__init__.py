"""
Wallet components: keys, addresses, mnemonics, HD derivation and
transaction building.
"""

from dogewallet.wallet.address import Address
from dogewallet.wallet.bip32 import HdNode, bip44_path, parse_path
from dogewallet.wallet.keys import KeyMaterial, zeroize
from dogewallet.wallet.message import message_hash, sign_message, verify_message
from dogewallet.wallet.mnemonic import Mnemonic
from dogewallet.wallet.models import (
    Output,
    OutputSet,
    Utxo,
    UtxoSet,
    format_amount,
    parse_amount,
)
from dogewallet.wallet.service import HdWallet
from dogewallet.wallet.tx_builder import BuilderState, FeeAdvisory, TransactionBuilder

__all__ = [
    "Address",
    "BuilderState",
    "FeeAdvisory",
    "HdNode",
    "HdWallet",
    "KeyMaterial",
    "Mnemonic",
    "Output",
    "OutputSet",
    "TransactionBuilder",
    "Utxo",
    "UtxoSet",
    "bip44_path",
    "format_amount",
    "message_hash",
    "parse_amount",
    "parse_path",
    "sign_message",
    "verify_message",
    "zeroize",
]
