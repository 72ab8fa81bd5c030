"""
Dogecoin signed messages (compact recoverable signatures, base64 encoded).
"""

from __future__ import annotations

import base64

from dogewallet.constants import MESSAGE_MAGIC
from dogewallet.engine.base import CryptoEngine
from dogewallet.engine.coincurve_engine import default_engine
from dogewallet.errors import WalletError
from dogewallet.wallet.address import Address
from dogewallet.wallet.keys import KeyMaterial
from dogewallet.wallet.signing import encode_varint, hash256

COMPACT_SIGNATURE_SIZE = 65
# Header byte: 27 + recovery id, plus 4 when the key is compressed
HEADER_BASE = 27
HEADER_COMPRESSED = 4


def message_hash(message: str) -> bytes:
    """
    Hash a message using Dogecoin's message signing format.

    Format: SHA256(SHA256("\\x19Dogecoin Signed Message:\\n" + varint(len) + message))
    """
    msg_bytes = message.encode("utf-8")
    return hash256(MESSAGE_MAGIC + encode_varint(len(msg_bytes)) + msg_bytes)


def sign_message(key: KeyMaterial, message: str) -> str:
    """
    Sign a message with a private key.

    Returns:
        Base64 compact signature (header byte, r, s)
    """
    recoverable = key.sign_recoverable(message_hash(message))
    # coincurve layout: r (32) || s (32) || recovery id (1)
    header = HEADER_BASE + HEADER_COMPRESSED + recoverable[64]
    return base64.b64encode(bytes([header]) + recoverable[:64]).decode("ascii")


def verify_message(
    signature_b64: str, message: str, address: str, engine: CryptoEngine | None = None
) -> bool:
    """
    Check that `signature_b64` over `message` was made by the key behind
    `address`. Malformed signatures or addresses verify as False.
    """
    engine = engine or default_engine()

    network = Address.network_of(address, engine)
    if network is None:
        return False

    try:
        signature = base64.b64decode(signature_b64, validate=True)
    except ValueError:
        return False
    if len(signature) != COMPACT_SIGNATURE_SIZE:
        return False

    header = signature[0] - HEADER_BASE
    if not 0 <= header < 8:
        return False
    # Only compressed keys produce addresses here
    if header < HEADER_COMPRESSED:
        return False
    recid = header - HEADER_COMPRESSED

    try:
        pubkey = engine.recover_public_key(
            signature[1:] + bytes([recid]), message_hash(message), compressed=True
        )
    except WalletError:
        return False

    return Address.from_public_key(pubkey, network, engine).value == address
