"""
Dogecoin transaction wire codec and legacy (pre-segwit) signing digests.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass, replace

from dogewallet.constants import DEFAULT_SEQUENCE, SIGHASH_ALL, TX_LOCKTIME, TX_VERSION
from dogewallet.errors import EncodingError

OP_DUP = 0x76
OP_HASH160 = 0xA9
OP_EQUAL = 0x87
OP_EQUALVERIFY = 0x88
OP_CHECKSIG = 0xAC
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D


@dataclass(frozen=True)
class TxInput:
    txid_le: bytes
    vout: int
    script_sig: bytes = b""
    sequence: int = DEFAULT_SEQUENCE


@dataclass(frozen=True)
class TxOutput:
    value: int
    script: bytes


@dataclass(frozen=True)
class Transaction:
    version: int
    inputs: list[TxInput]
    outputs: list[TxOutput]
    locktime: int


def hash256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def txid_to_le(txid: str) -> bytes:
    """RPC-format (big-endian hex) txid to the little-endian wire order."""
    return bytes.fromhex(txid)[::-1]


def read_varint(data: bytes, offset: int) -> tuple[int, int]:
    first = data[offset]
    offset += 1

    if first < 0xFD:
        return first, offset
    if first == 0xFD:
        value = int.from_bytes(data[offset : offset + 2], "little")
        return value, offset + 2
    if first == 0xFE:
        value = int.from_bytes(data[offset : offset + 4], "little")
        return value, offset + 4
    value = int.from_bytes(data[offset : offset + 8], "little")
    return value, offset + 8


def encode_varint(value: int) -> bytes:
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + value.to_bytes(2, "little")
    if value <= 0xFFFFFFFF:
        return b"\xfe" + value.to_bytes(4, "little")
    return b"\xff" + value.to_bytes(8, "little")


def push_data(data: bytes) -> bytes:
    """Minimal script push of a byte string."""
    length = len(data)
    if length < OP_PUSHDATA1:
        return bytes([length]) + data
    if length <= 0xFF:
        return bytes([OP_PUSHDATA1, length]) + data
    return bytes([OP_PUSHDATA2]) + length.to_bytes(2, "little") + data


def p2pkh_script(pubkey_hash: bytes) -> bytes:
    """OP_DUP OP_HASH160 <20-byte-hash> OP_EQUALVERIFY OP_CHECKSIG"""
    if len(pubkey_hash) != 20:
        raise EncodingError(f"Invalid pubkey hash length: {len(pubkey_hash)}")
    return bytes([OP_DUP, OP_HASH160, 0x14]) + pubkey_hash + bytes([OP_EQUALVERIFY, OP_CHECKSIG])


def p2sh_script(script_hash: bytes) -> bytes:
    """OP_HASH160 <20-byte-hash> OP_EQUAL"""
    if len(script_hash) != 20:
        raise EncodingError(f"Invalid script hash length: {len(script_hash)}")
    return bytes([OP_HASH160, 0x14]) + script_hash + bytes([OP_EQUAL])


def p2pkh_pubkey_hash(script: bytes) -> bytes | None:
    """Return the pubkey hash if script is a standard P2PKH script."""
    if (
        len(script) == 25
        and script[0] == OP_DUP
        and script[1] == OP_HASH160
        and script[2] == 0x14
        and script[23] == OP_EQUALVERIFY
        and script[24] == OP_CHECKSIG
    ):
        return script[3:23]
    return None


def build_script_sig(signature: bytes, pubkey: bytes) -> bytes:
    """scriptSig spending P2PKH: <sig+hashtype> <pubkey>"""
    return push_data(signature) + push_data(pubkey)


def serialize_input(inp: TxInput) -> bytes:
    return (
        inp.txid_le
        + struct.pack("<I", inp.vout)
        + encode_varint(len(inp.script_sig))
        + inp.script_sig
        + struct.pack("<I", inp.sequence)
    )


def serialize_output(out: TxOutput) -> bytes:
    return struct.pack("<Q", out.value) + encode_varint(len(out.script)) + out.script


def serialize_transaction(
    inputs: list[TxInput],
    outputs: list[TxOutput],
    version: int = TX_VERSION,
    locktime: int = TX_LOCKTIME,
) -> bytes:
    """Serialize a legacy transaction to its wire format."""
    result = struct.pack("<I", version)
    result += encode_varint(len(inputs))
    for inp in inputs:
        result += serialize_input(inp)
    result += encode_varint(len(outputs))
    for out in outputs:
        result += serialize_output(out)
    result += struct.pack("<I", locktime)
    return result


def deserialize_transaction(tx_bytes: bytes) -> Transaction:
    try:
        offset = 0
        version = int.from_bytes(tx_bytes[offset : offset + 4], "little")
        offset += 4

        input_count, offset = read_varint(tx_bytes, offset)
        inputs: list[TxInput] = []

        for _ in range(input_count):
            txid_le = tx_bytes[offset : offset + 32]
            offset += 32

            vout = int.from_bytes(tx_bytes[offset : offset + 4], "little")
            offset += 4

            script_len, offset = read_varint(tx_bytes, offset)
            script_sig = tx_bytes[offset : offset + script_len]
            offset += script_len

            sequence = int.from_bytes(tx_bytes[offset : offset + 4], "little")
            offset += 4

            inputs.append(TxInput(txid_le, vout, script_sig, sequence))

        output_count, offset = read_varint(tx_bytes, offset)
        outputs: list[TxOutput] = []

        for _ in range(output_count):
            value = int.from_bytes(tx_bytes[offset : offset + 8], "little")
            offset += 8

            script_len, offset = read_varint(tx_bytes, offset)
            script = tx_bytes[offset : offset + script_len]
            offset += script_len

            outputs.append(TxOutput(value, script))

        if offset + 4 != len(tx_bytes):
            raise ValueError(f"Unexpected length: parsed {offset + 4}, have {len(tx_bytes)}")

        locktime = int.from_bytes(tx_bytes[offset : offset + 4], "little")
        return Transaction(version, inputs, outputs, locktime)

    except Exception as e:
        raise EncodingError(f"Failed to parse transaction: {e}") from e


def compute_sighash_legacy(
    inputs: list[TxInput],
    outputs: list[TxOutput],
    input_index: int,
    script_code: bytes,
    sighash_type: int = SIGHASH_ALL,
    version: int = TX_VERSION,
    locktime: int = TX_LOCKTIME,
) -> bytes:
    """
    Original (pre-BIP143) signature hash.

    Every scriptSig is blanked, the input being signed carries the script code
    of the output it spends, and the 4-byte sighash type is appended before
    double-SHA256. Only SIGHASH_ALL is supported.
    """
    if sighash_type != SIGHASH_ALL:
        raise EncodingError(f"Unsupported sighash type: {sighash_type}")
    if not 0 <= input_index < len(inputs):
        raise EncodingError("Input index out of range")

    stripped = [
        replace(inp, script_sig=script_code if i == input_index else b"")
        for i, inp in enumerate(inputs)
    ]
    preimage = serialize_transaction(stripped, outputs, version, locktime)
    preimage += struct.pack("<I", sighash_type)
    return hash256(preimage)
