"""
Transaction builder: collects UTXOs and outputs, signs P2PKH inputs and
serializes the finished legacy transaction.

Lifecycle:
    EMPTY -> BUILDING          first add_utxo()/add_output()
    BUILDING -> PARTIALLY_SIGNED / FULLY_SIGNED
                               sign(); inputs and outputs are frozen from here
    FULLY_SIGNED -> SERIALIZED serialize(); the builder is then read-only
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from dogewallet.config import get_settings
from dogewallet.constants import (
    SIGHASH_ALL,
    TX_LOCKTIME,
    TX_VERSION,
    NetworkType,
)
from dogewallet.engine.base import CryptoEngine
from dogewallet.engine.coincurve_engine import default_engine
from dogewallet.engine.context import EccContext
from dogewallet.errors import (
    BuilderFinalized,
    IncompleteSigning,
    IncompleteTransaction,
    InputAlreadySigned,
    InputError,
    InsufficientFunds,
    InvalidAmount,
    InvalidInputIndex,
    KeyMismatch,
    NetworkMismatch,
    SigningError,
    UnknownInputAmount,
)
from dogewallet.wallet.address import Address
from dogewallet.wallet.keys import KeyMaterial
from dogewallet.wallet.models import Output, OutputSet, Utxo, UtxoSet
from dogewallet.wallet.signing import (
    TxInput,
    TxOutput,
    build_script_sig,
    compute_sighash_legacy,
    hash256,
    p2pkh_pubkey_hash,
    p2pkh_script,
    txid_to_le,
)


class BuilderState(str, Enum):
    EMPTY = "empty"
    BUILDING = "building"
    PARTIALLY_SIGNED = "partially_signed"
    FULLY_SIGNED = "fully_signed"
    SERIALIZED = "serialized"


_FROZEN_STATES = (
    BuilderState.PARTIALLY_SIGNED,
    BuilderState.FULLY_SIGNED,
    BuilderState.SERIALIZED,
)


@dataclass(frozen=True)
class FeeAdvisory:
    """The implicit fee looks unusually high. Informational only."""

    fee: int
    output_total: int
    multiple: float

    @property
    def message(self) -> str:
        return (
            f"Fee of {self.fee} koinu exceeds {self.multiple}x "
            f"the output total of {self.output_total} koinu"
        )


class TransactionBuilder:
    """
    Builds and signs one legacy (version 1, locktime 0) Dogecoin transaction.

    The fee is implicit: sum of input amounts minus sum of output amounts.
    Amounts are only known for UTXOs added with one, so fee checks apply
    once every input carries its amount.
    """

    def __init__(
        self,
        network: NetworkType = NetworkType.MAINNET,
        engine: CryptoEngine | None = None,
        fee_warning_multiple: float | None = None,
    ):
        if fee_warning_multiple is None:
            fee_warning_multiple = get_settings().fee_warning_multiple
        if fee_warning_multiple <= 0:
            raise ValueError("fee_warning_multiple must be positive")

        self._ecc = EccContext()
        self.network = NetworkType(network)
        self._engine = engine or default_engine()
        self.fee_warning_multiple = fee_warning_multiple

        self._lock = threading.RLock()
        self._utxos = UtxoSet()
        self._outputs = OutputSet(self.network, self._engine)
        self._script_sigs: list[bytes | None] = []
        self._state = BuilderState.EMPTY
        self._serialized: bytes | None = None

    @property
    def state(self) -> BuilderState:
        return self._state

    @property
    def utxos(self) -> tuple[Utxo, ...]:
        return tuple(self._utxos)

    @property
    def outputs(self) -> tuple[Output, ...]:
        return tuple(self._outputs)

    @property
    def signed_count(self) -> int:
        return sum(1 for s in self._script_sigs if s is not None)

    def is_signed(self, index: int) -> bool:
        self._check_index(index)
        return self._script_sigs[index] is not None

    def _check_mutable(self) -> None:
        if self._state in _FROZEN_STATES:
            raise BuilderFinalized(
                f"Cannot modify a transaction once signing has started (state: {self._state.value})"
            )

    def _check_index(self, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidInputIndex(f"Input index must be an integer, got {index!r}")
        if not 0 <= index < len(self._utxos):
            raise InvalidInputIndex(
                f"Input index {index} out of range ({len(self._utxos)} inputs)"
            )

    def add_utxo(
        self,
        txid: str,
        vout: int,
        amount: int | None = None,
        script: bytes | None = None,
    ) -> Utxo:
        """
        Add an input spending txid:vout.

        Args:
            txid: Transaction id in RPC (big-endian hex) form
            vout: Output index within that transaction
            amount: Value of the output in koinu, if known
            script: scriptPubKey of the output, if known

        Returns:
            The stored Utxo
        """
        with self._lock:
            self._check_mutable()
            utxo = self._utxos.add(txid, vout, amount, script)
            self._script_sigs.append(None)
            self._state = BuilderState.BUILDING

        logger.debug(f"Added input {utxo.txid}:{utxo.vout} (#{len(self._utxos) - 1})")
        return utxo

    def add_output(self, address: str, amount: int) -> Output:
        """Add an output paying `amount` koinu to `address`."""
        with self._lock:
            self._check_mutable()
            output = self._outputs.add(address, amount)
            self._state = BuilderState.BUILDING

        logger.debug(f"Added output of {amount} koinu to {address}")
        return output

    def add_change_output(self, address: str | None, fee: int) -> Output | None:
        """
        Send whatever is left after outputs and `fee` back to `address`.

        With no address, change returns to the P2PKH address that owns the
        first input. Returns the change output, or None when nothing is left
        over.
        """
        if isinstance(fee, bool) or not isinstance(fee, int) or fee < 0:
            raise InvalidAmount(f"Fee must be a non-negative integer, got {fee!r}")

        with self._lock:
            self._check_mutable()
            change = self.estimated_fee() - fee
            if change < 0:
                raise InsufficientFunds(
                    f"Inputs cannot cover outputs plus a fee of {fee} koinu "
                    f"(short by {-change})"
                )
            if change == 0:
                return None
            if address is None:
                address = self._first_input_address().value
            return self.add_output(address, change)

    def _first_input_address(self) -> Address:
        utxo = self._utxos[0]
        owner = p2pkh_pubkey_hash(utxo.script) if utxo.script is not None else None
        if owner is None:
            raise InputError(
                f"No change address given and input {utxo.txid}:{utxo.vout} "
                "has no P2PKH script to return change to"
            )
        return Address.from_pubkey_hash(owner, self.network, self._engine)

    def estimated_fee(self) -> int:
        """Sum of input amounts minus sum of output amounts, in koinu."""
        with self._lock:
            if not self._utxos.all_amounts_known():
                raise UnknownInputAmount("Fee is unknown: some inputs have no amount")

            fee = self._utxos.total() - self._outputs.total()
            if fee < 0:
                raise InsufficientFunds(
                    f"Outputs ({self._outputs.total()}) exceed inputs ({self._utxos.total()})"
                )
            return fee

    def fee_advisory(self) -> FeeAdvisory | None:
        """Warn (never fail) when the fee looks like a mistake."""
        fee = self.estimated_fee()
        output_total = self._outputs.total()
        if output_total == 0 or fee <= self.fee_warning_multiple * output_total:
            return None

        advisory = FeeAdvisory(fee, output_total, self.fee_warning_multiple)
        logger.warning(advisory.message)
        return advisory

    def _tx_inputs(self, script_sigs: Sequence[bytes | None] | None = None) -> list[TxInput]:
        sigs = script_sigs if script_sigs is not None else [None] * len(self._utxos)
        return [
            TxInput(txid_le=txid_to_le(u.txid), vout=u.vout, script_sig=sig or b"")
            for u, sig in zip(self._utxos, sigs)
        ]

    def _tx_outputs(self) -> list[TxOutput]:
        return [
            TxOutput(
                value=o.amount,
                script=Address(o.address, self.network).script_pubkey(self._engine),
            )
            for o in self._outputs
        ]

    def _script_code(self, utxo: Utxo, key: KeyMaterial) -> bytes:
        key_hash = self._engine.hash160(key.public_key)
        if utxo.script is None:
            return p2pkh_script(key_hash)

        owner = p2pkh_pubkey_hash(utxo.script)
        if owner is None:
            raise InputError(f"Input {utxo.txid}:{utxo.vout} is not a P2PKH output")
        if owner != key_hash:
            raise KeyMismatch(f"Key does not own input {utxo.txid}:{utxo.vout}")
        return utxo.script

    def sign(self, index: int, key: KeyMaterial) -> None:
        """
        Sign input `index` with `key` (SIGHASH_ALL).

        Inputs and outputs can no longer change once the first input is
        signed, since every signature commits to all of them.
        """
        with self._lock:
            if self._state == BuilderState.SERIALIZED:
                raise BuilderFinalized("Transaction has already been serialized")
            if not self._utxos or not self._outputs:
                raise IncompleteTransaction("Transaction needs at least one input and one output")
            self._check_index(index)
            if self._script_sigs[index] is not None:
                raise InputAlreadySigned(f"Input {index} is already signed")
            if key.network != self.network:
                raise NetworkMismatch(
                    f"Key is for {key.network.value}, transaction is for {self.network.value}"
                )
            if self._utxos.all_amounts_known() and self._outputs.total() > self._utxos.total():
                raise InsufficientFunds(
                    f"Outputs ({self._outputs.total()}) exceed inputs ({self._utxos.total()})"
                )

            utxo = self._utxos[index]
            script_code = self._script_code(utxo, key)
            digest = compute_sighash_legacy(
                self._tx_inputs(), self._tx_outputs(), index, script_code,
                SIGHASH_ALL, TX_VERSION, TX_LOCKTIME,
            )

            signature = key.sign(digest)
            if not self._engine.verify(key.public_key, digest, signature):
                raise SigningError(f"Signature for input {index} failed verification")

            self._script_sigs[index] = build_script_sig(
                signature + bytes([SIGHASH_ALL]), key.public_key
            )
            if self.signed_count == len(self._utxos):
                self._state = BuilderState.FULLY_SIGNED
            else:
                self._state = BuilderState.PARTIALLY_SIGNED

        logger.debug(f"Signed input {index} ({self.signed_count}/{len(self._utxos)})")

    def sign_all(self, keys: Sequence[KeyMaterial]) -> None:
        """Sign every still-unsigned input; keys[i] signs input i."""
        with self._lock:
            if len(keys) != len(self._utxos):
                raise InputError(f"Expected {len(self._utxos)} keys, got {len(keys)}")
            for index, key in enumerate(keys):
                if self._script_sigs[index] is None:
                    self.sign(index, key)

    def serialize_unsigned(self) -> bytes:
        """Wire format with empty scriptSigs, e.g. for inspection before signing."""
        with self._lock:
            if not self._utxos or not self._outputs:
                raise IncompleteTransaction("Transaction needs at least one input and one output")
            return self._engine.serialize_transaction(
                self._tx_inputs(), self._tx_outputs(), TX_VERSION, TX_LOCKTIME
            )

    def serialize(self) -> bytes:
        """
        Final wire bytes of the signed transaction.

        Allowed once every input is signed; later calls return the same bytes.
        """
        with self._lock:
            if self._state == BuilderState.SERIALIZED:
                assert self._serialized is not None
                return self._serialized
            if self._state != BuilderState.FULLY_SIGNED:
                raise IncompleteSigning(
                    f"{self.signed_count} of {len(self._utxos)} inputs signed"
                )

            if self._utxos.all_amounts_known():
                self.fee_advisory()

            raw = self._engine.serialize_transaction(
                self._tx_inputs(self._script_sigs), self._tx_outputs(), TX_VERSION, TX_LOCKTIME
            )
            self._serialized = raw
            self._state = BuilderState.SERIALIZED

        logger.info(f"Serialized transaction {self.txid()} ({len(raw)} bytes)")
        return raw

    def to_hex(self) -> str:
        return self.serialize().hex()

    def txid(self) -> str:
        """Transaction id (big-endian hex) of the serialized transaction."""
        if self._serialized is None:
            raise IncompleteSigning("Transaction has not been serialized yet")
        return hash256(self._serialized)[::-1].hex()

    def close(self) -> None:
        """Release the ECC context reference."""
        self._ecc.close()

    def __enter__(self) -> TransactionBuilder:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"TransactionBuilder(network={self.network.value}, state={self._state.value}, "
            f"inputs={len(self._utxos)}, outputs={len(self._outputs)})"
        )
