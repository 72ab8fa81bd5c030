"""
Dogecoin network parameters and protocol constants.

Version bytes follow Dogecoin Core's chainparams:
- mainnet P2PKH addresses start with 'D', testnet with 'n'
- BIP32 extended keys use the "dgpv"/"dgub" prefixes on mainnet
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class NetworkType(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"


@dataclass(frozen=True)
class NetworkParams:
    p2pkh_prefix: int
    p2sh_prefix: int
    wif_prefix: int
    xprv_version: bytes
    xpub_version: bytes
    bip44_coin_type: int


NETWORK_PARAMS: dict[NetworkType, NetworkParams] = {
    NetworkType.MAINNET: NetworkParams(
        p2pkh_prefix=0x1E,
        p2sh_prefix=0x16,
        wif_prefix=0x9E,
        xprv_version=bytes.fromhex("02fac398"),
        xpub_version=bytes.fromhex("02facafd"),
        bip44_coin_type=3,
    ),
    NetworkType.TESTNET: NetworkParams(
        p2pkh_prefix=0x71,
        p2sh_prefix=0xC4,
        wif_prefix=0xF1,
        xprv_version=bytes.fromhex("04358394"),
        xpub_version=bytes.fromhex("043587cf"),
        bip44_coin_type=1,
    ),
}


def network_params(network: NetworkType | str) -> NetworkParams:
    """Get the parameter set for a network."""
    return NETWORK_PARAMS[NetworkType(network)]


# Key sizes
PRIVATE_KEY_SIZE = 32
COMPRESSED_PUBKEY_SIZE = 33
CHAIN_CODE_SIZE = 32

# secp256k1 curve order
SECP256K1_N = int("FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141", 16)

# BIP32
HARDENED_OFFSET = 0x80000000
MAX_CHILD_INDEX = 0xFFFFFFFF
BIP32_SEED_KEY = b"Bitcoin seed"
MIN_SEED_SIZE = 16
MAX_SEED_SIZE = 64
BIP44_PURPOSE = 44

# BIP39: entropy bits -> word count
MNEMONIC_STRENGTHS: dict[int, int] = {
    128: 12,
    160: 15,
    192: 18,
    224: 21,
    256: 24,
}
MNEMONIC_WORD_COUNTS: dict[int, int] = {v: k for k, v in MNEMONIC_STRENGTHS.items()}
PBKDF2_ROUNDS = 2048
SEED_SIZE = 64

# Amounts are expressed in koinu (1 DOGE = 100,000,000 koinu)
KOINU_PER_DOGE = 100_000_000
MAX_MONEY = 10_000_000_000 * KOINU_PER_DOGE

# Transaction format (legacy, non-segwit)
TX_VERSION = 1
TX_LOCKTIME = 0
DEFAULT_SEQUENCE = 0xFFFFFFFF
SIGHASH_ALL = 0x01

# Advisory threshold: warn when fee exceeds this multiple of the output sum
DEFAULT_FEE_WARNING_MULTIPLE = 1.0

MESSAGE_MAGIC = b"\x19Dogecoin Signed Message:\n"
