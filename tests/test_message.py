"""
Tests for Dogecoin signed messages.
"""

import base64
import hashlib

from dogewallet.constants import NetworkType
from dogewallet.wallet.keys import KeyMaterial
from dogewallet.wallet.message import message_hash, sign_message, verify_message


class TestMessageHash:
    def test_format(self):
        expected = hashlib.sha256(
            hashlib.sha256(b"\x19Dogecoin Signed Message:\n\x05hello").digest()
        ).digest()
        assert message_hash("hello") == expected

    def test_utf8_length(self):
        # 2 characters, 4 bytes
        assert message_hash("éé") == hashlib.sha256(
            hashlib.sha256("\x19Dogecoin Signed Message:\n\x04éé".encode()).digest()
        ).digest()


class TestSignVerify:
    def test_roundtrip(self, key):
        signature = sign_message(key, "much wow")
        assert verify_message(signature, "much wow", key.address().value)

    def test_testnet_roundtrip(self, testnet_key):
        signature = sign_message(testnet_key, "such test")
        assert verify_message(signature, "such test", testnet_key.address().value)

    def test_compact_format(self, key):
        raw = base64.b64decode(sign_message(key, "hello"))
        assert len(raw) == 65
        assert 31 <= raw[0] <= 34

    def test_different_message(self, key):
        signature = sign_message(key, "much wow")
        assert not verify_message(signature, "so scam", key.address().value)

    def test_different_address(self, key, other_key):
        signature = sign_message(key, "much wow")
        assert not verify_message(signature, "much wow", other_key.address().value)

    def test_same_key_other_network(self):
        with KeyMaterial.from_bytes(bytes([0x33] * 32)) as mainnet, KeyMaterial.from_bytes(
            bytes([0x33] * 32), NetworkType.TESTNET
        ) as testnet:
            signature = sign_message(mainnet, "hi")
            assert verify_message(signature, "hi", testnet.address().value)

    def test_malformed_signature(self, key):
        address = key.address().value
        assert not verify_message("not base64!!", "hello", address)
        assert not verify_message(base64.b64encode(bytes(10)).decode(), "hello", address)
        assert not verify_message(base64.b64encode(bytes(65)).decode(), "hello", address)

    def test_uncompressed_header_rejected(self, key):
        raw = bytearray(base64.b64decode(sign_message(key, "hello")))
        raw[0] -= 4
        assert not verify_message(base64.b64encode(bytes(raw)).decode(), "hello", key.address().value)

    def test_malformed_address(self, key):
        signature = sign_message(key, "hello")
        assert not verify_message(signature, "hello", "garbage")
