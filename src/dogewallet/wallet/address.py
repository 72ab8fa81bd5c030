"""
Dogecoin address derivation and validation (base58check P2PKH/P2SH).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from dogewallet.constants import NetworkType, network_params
from dogewallet.engine.base import CryptoEngine
from dogewallet.engine.coincurve_engine import default_engine
from dogewallet.errors import EncodingError, InvalidAddress
from dogewallet.wallet.signing import p2pkh_script, p2sh_script

ADDRESS_PAYLOAD_SIZE = 21


@dataclass(frozen=True)
class Address:
    """
    A formatted address, the network it targets and (when derived locally)
    the public key it came from. Holds no secrets.
    """

    value: str
    network: NetworkType
    public_key: bytes | None = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_public_key(
        cls,
        pubkey: bytes,
        network: NetworkType = NetworkType.MAINNET,
        engine: CryptoEngine | None = None,
    ) -> Address:
        """Derive the P2PKH address of a compressed public key."""
        engine = engine or default_engine()
        network = NetworkType(network)
        try:
            value = engine.address_from_pubkey(pubkey, network)
        except EncodingError:
            raise
        except (ValueError, TypeError) as e:
            raise EncodingError(f"Address encoding failed: {e}") from e
        return cls(value=value, network=network, public_key=bytes(pubkey))

    @classmethod
    def from_pubkey_hash(
        cls,
        pubkey_hash: bytes,
        network: NetworkType = NetworkType.MAINNET,
        engine: CryptoEngine | None = None,
    ) -> Address:
        """P2PKH address for a 20-byte HASH160, e.g. one read from a scriptPubKey."""
        if len(pubkey_hash) != ADDRESS_PAYLOAD_SIZE - 1:
            raise InvalidAddress(f"Public key hash must be 20 bytes, got {len(pubkey_hash)}")
        engine = engine or default_engine()
        network = NetworkType(network)
        prefix = network_params(network).p2pkh_prefix
        return cls(value=engine.base58check_encode(bytes([prefix]) + pubkey_hash), network=network)

    @staticmethod
    def _decode(address: str, engine: CryptoEngine) -> bytes | None:
        if not isinstance(address, str) or not address:
            return None
        try:
            payload = engine.base58check_decode(address)
        except EncodingError:
            return None
        if len(payload) != ADDRESS_PAYLOAD_SIZE:
            return None
        return payload

    @classmethod
    def validate(
        cls,
        address: str,
        network: NetworkType = NetworkType.MAINNET,
        engine: CryptoEngine | None = None,
    ) -> bool:
        """Check checksum, length and that the prefix belongs to `network`."""
        payload = cls._decode(address, engine or default_engine())
        if payload is None:
            return False
        params = network_params(network)
        return payload[0] in (params.p2pkh_prefix, params.p2sh_prefix)

    @classmethod
    def network_of(cls, address: str, engine: CryptoEngine | None = None) -> NetworkType | None:
        """Classify a valid address by its version byte; None if invalid."""
        payload = cls._decode(address, engine or default_engine())
        if payload is None:
            return None
        for network in NetworkType:
            params = network_params(network)
            if payload[0] in (params.p2pkh_prefix, params.p2sh_prefix):
                return network
        return None

    @classmethod
    def parse(
        cls,
        address: str,
        network: NetworkType = NetworkType.MAINNET,
        engine: CryptoEngine | None = None,
    ) -> Address:
        """Validate a destination string, raising InvalidAddress on failure."""
        if not cls.validate(address, network, engine):
            raise InvalidAddress(f"Invalid {NetworkType(network).value} address: {address!r}")
        return cls(value=address, network=NetworkType(network))

    def script_pubkey(self, engine: CryptoEngine | None = None) -> bytes:
        """Output script paying to this address."""
        payload = self._decode(self.value, engine or default_engine())
        if payload is None:
            raise InvalidAddress(f"Invalid address: {self.value!r}")

        params = network_params(self.network)
        if payload[0] == params.p2pkh_prefix:
            return p2pkh_script(payload[1:])
        if payload[0] == params.p2sh_prefix:
            return p2sh_script(payload[1:])
        raise InvalidAddress(f"Address {self.value!r} does not belong to {self.network.value}")
