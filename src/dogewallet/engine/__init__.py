"""
Crypto engine implementations.

Available engines:
- CoincurveEngine: libsecp256k1 via coincurve, base58 and BIP39 word list

The ECC context (engine.context) is reference counted: wallets and
transaction builders hold an EccContext for their lifetime.
"""

from dogewallet.engine.base import CryptoEngine
from dogewallet.engine.coincurve_engine import CoincurveEngine, default_engine
from dogewallet.engine.context import EccContext, active_context, ecc_refcount

__all__ = [
    "CoincurveEngine",
    "CryptoEngine",
    "EccContext",
    "active_context",
    "default_engine",
    "ecc_refcount",
]
