"""
Wallet data models: UTXOs, outputs and their ordered, validated collections.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from dogewallet.constants import KOINU_PER_DOGE, MAX_MONEY, NetworkType
from dogewallet.engine.base import CryptoEngine
from dogewallet.errors import (
    AmountOutOfRange,
    DuplicateUtxo,
    InputError,
    InvalidAddress,
    InvalidAmount,
    InvalidTxid,
    NonPositiveAmount,
)
from dogewallet.wallet.address import Address


def parse_amount(amount: str | Decimal) -> int:
    """Convert a DOGE amount ("10.5") to koinu."""
    try:
        value = Decimal(amount)
    except (InvalidOperation, ValueError) as e:
        raise InvalidAmount(f"Invalid amount: {amount!r}") from e
    if not value.is_finite():
        raise InvalidAmount(f"Invalid amount: {amount!r}")

    koinu = value * KOINU_PER_DOGE
    if koinu != koinu.to_integral_value():
        raise InvalidAmount(f"Amount has more than 8 decimal places: {amount}")
    return int(koinu)


def format_amount(koinu: int) -> str:
    """Convert koinu to a DOGE decimal string."""
    return f"{Decimal(koinu) / KOINU_PER_DOGE:.8f}"


def check_amount(amount: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(f"Amount must be an integer number of koinu, got {amount!r}")
    if amount <= 0:
        raise NonPositiveAmount(f"Amount must be positive, got {amount}")
    if amount > MAX_MONEY:
        raise AmountOutOfRange(f"Amount {amount} exceeds maximum of {MAX_MONEY}")
    return amount


@dataclass(frozen=True)
class Utxo:
    """Unspent output being spent: outpoint plus optional value and scriptPubKey"""

    txid: str
    vout: int
    amount: int | None = None
    script: bytes | None = None

    @property
    def outpoint(self) -> tuple[str, int]:
        return (self.txid, self.vout)


@dataclass(frozen=True)
class Output:
    address: str
    amount: int


class UtxoSet:
    """
    Insertion-ordered set of UTXOs, unique by (txid, vout).

    The order is the input order of the serialized transaction.
    """

    def __init__(self) -> None:
        self._utxos: list[Utxo] = []
        self._outpoints: set[tuple[str, int]] = set()

    def add(
        self,
        txid: str,
        vout: int,
        amount: int | None = None,
        script: bytes | None = None,
    ) -> Utxo:
        txid = txid.lower() if isinstance(txid, str) else txid
        if not isinstance(txid, str) or len(txid) != 64:
            raise InvalidTxid(f"txid must be 64 hex characters: {txid!r}")
        try:
            bytes.fromhex(txid)
        except ValueError as e:
            raise InvalidTxid(f"txid is not valid hex: {txid!r}") from e

        if isinstance(vout, bool) or not isinstance(vout, int) or not 0 <= vout <= 0xFFFFFFFF:
            raise InputError(f"Invalid output index: {vout!r}")
        if amount is not None:
            check_amount(amount)

        if (txid, vout) in self._outpoints:
            raise DuplicateUtxo(txid, vout)

        utxo = Utxo(txid=txid, vout=vout, amount=amount, script=script)
        self._utxos.append(utxo)
        self._outpoints.add(utxo.outpoint)
        return utxo

    def all_amounts_known(self) -> bool:
        return all(u.amount is not None for u in self._utxos)

    def total(self) -> int:
        """Sum of known amounts"""
        return sum(u.amount for u in self._utxos if u.amount is not None)

    def __contains__(self, outpoint: object) -> bool:
        return outpoint in self._outpoints

    def __iter__(self) -> Iterator[Utxo]:
        return iter(self._utxos)

    def __len__(self) -> int:
        return len(self._utxos)

    def __getitem__(self, index: int) -> Utxo:
        return self._utxos[index]


class OutputSet:
    """Insertion-ordered outputs; each destination is validated for the set's network."""

    def __init__(
        self, network: NetworkType = NetworkType.MAINNET, engine: CryptoEngine | None = None
    ):
        self.network = NetworkType(network)
        self._engine = engine
        self._outputs: list[Output] = []

    def add(self, address: str, amount: int) -> Output:
        if not Address.validate(address, self.network, self._engine):
            raise InvalidAddress(f"Invalid {self.network.value} address: {address!r}")
        check_amount(amount)

        output = Output(address=address, amount=amount)
        self._outputs.append(output)
        return output

    def total(self) -> int:
        return sum(o.amount for o in self._outputs)

    def __iter__(self) -> Iterator[Output]:
        return iter(self._outputs)

    def __len__(self) -> int:
        return len(self._outputs)

    def __getitem__(self, index: int) -> Output:
        return self._outputs[index]
