"""
Dogecoin Wallet CLI - Generate mnemonics and keys, derive and validate
addresses, render QR codes and sign messages.
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from loguru import logger

from dogewallet.config import WalletSettings, get_settings
from dogewallet.constants import NetworkType
from dogewallet.engine import qr
from dogewallet.errors import WalletError
from dogewallet.wallet.address import Address
from dogewallet.wallet.keys import KeyMaterial
from dogewallet.wallet.message import sign_message, verify_message
from dogewallet.wallet.mnemonic import Mnemonic
from dogewallet.wallet.service import HdWallet

app = typer.Typer(
    name="doge-wallet",
    help="Dogecoin Wallet Core",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def _load_settings(log_level: str | None) -> WalletSettings:
    settings = get_settings()
    setup_logging(log_level or settings.log_level)
    return settings


def _resolve_network(network: str | None, settings: WalletSettings) -> NetworkType:
    if network is None:
        return settings.network
    try:
        return NetworkType(network.lower())
    except ValueError:
        logger.error(f"Unknown network: {network} (use mainnet or testnet)")
        raise typer.Exit(1)


@app.command()
def generate(
    strength: int | None = typer.Option(
        None, "--strength", "-s", help="Entropy bits: 128, 160, 192, 224 or 256"
    ),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Generate a new BIP39 mnemonic phrase."""
    settings = _load_settings(log_level)

    try:
        mnemonic = Mnemonic.generate(strength or settings.mnemonic_strength)
    except WalletError as e:
        logger.error(f"Failed to generate mnemonic: {e}")
        raise typer.Exit(1)

    typer.echo("\n" + "=" * 80)
    typer.echo("GENERATED MNEMONIC - WRITE THIS DOWN AND KEEP IT SAFE!")
    typer.echo("=" * 80)
    typer.echo(f"\n{mnemonic.phrase}\n")
    typer.echo("=" * 80)
    typer.echo("\nAnyone with this phrase can spend your coins.")
    typer.echo("=" * 80 + "\n")


@app.command("new-key")
def new_key(
    network: str | None = typer.Option(None, "--network", "-n", help="mainnet or testnet"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Generate a standalone key pair and print its address and WIF."""
    settings = _load_settings(log_level)
    net = _resolve_network(network, settings)

    with KeyMaterial.generate(net) as key:
        typer.echo(f"Address: {key.address()}")
        typer.echo(f"WIF:     {key.export_wif()}")


@app.command()
def derive(
    mnemonic: str | None = typer.Option(
        None, "--mnemonic", envvar="MNEMONIC", help="BIP39 mnemonic"
    ),
    mnemonic_file: Path | None = typer.Option(
        None, "--mnemonic-file", "-f", help="Path to mnemonic file"
    ),
    passphrase: str = typer.Option("", "--passphrase", "-p", help="BIP39 passphrase"),
    network: str | None = typer.Option(None, "--network", "-n", help="mainnet or testnet"),
    account: int = typer.Option(0, "--account", "-a"),
    change: int = typer.Option(0, "--change", "-c", help="0 = receive, 1 = change"),
    index: int = typer.Option(0, "--index", "-i", help="First address index"),
    count: int = typer.Option(1, "--count", help="Number of addresses"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Derive BIP44 addresses from a mnemonic."""
    settings = _load_settings(log_level)
    net = _resolve_network(network, settings)

    if mnemonic_file:
        if not mnemonic_file.exists():
            logger.error(f"Mnemonic file not found: {mnemonic_file}")
            raise typer.Exit(1)
        mnemonic = mnemonic_file.read_text().strip()

    if not mnemonic:
        logger.error("Mnemonic required. Use --mnemonic, --mnemonic-file, or MNEMONIC env var")
        raise typer.Exit(1)

    try:
        with HdWallet.from_mnemonic(mnemonic, passphrase, net) as wallet:
            for i in range(index, index + count):
                path = wallet.address_path(account, change, i)
                typer.echo(f"{path}  {wallet.derive_address(account, change, i)}")
    except WalletError as e:
        logger.error(f"Derivation failed: {e}")
        raise typer.Exit(1)


@app.command()
def validate(
    address: str = typer.Argument(..., help="Address to check"),
    network: str | None = typer.Option(None, "--network", "-n", help="mainnet or testnet"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Check an address for the given network (exit code 0 if valid)."""
    settings = _load_settings(log_level)
    net = _resolve_network(network, settings)

    if Address.validate(address, net):
        typer.echo(f"{address} is a valid {net.value} address")
        return
    typer.echo(f"{address} is NOT a valid {net.value} address")
    raise typer.Exit(1)


@app.command("qr")
def qr_code(
    text: str = typer.Argument(..., help="Address or payment URI to encode"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Image file to write"),
    image_format: str | None = typer.Option(
        None, "--format", help="png or jpeg (default: from the file extension)"
    ),
    scale: int | None = typer.Option(None, "--scale", help="Pixels per QR module"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Render a QR code as terminal text or as a PNG/JPEG image."""
    settings = _load_settings(log_level)

    try:
        if output is None:
            typer.echo(qr.to_string(text))
            return
        qr.write_image(
            text,
            output,
            image_format=image_format,
            size_multiplier=scale or settings.qr_size_multiplier,
        )
    except WalletError as e:
        logger.error(f"QR encoding failed: {e}")
        raise typer.Exit(1)

    typer.echo(f"QR code written to {output}")


@app.command("sign-message")
def sign_message_cmd(
    message: str = typer.Argument(..., help="Message to sign"),
    wif: str = typer.Option(..., "--wif", envvar="DOGEWALLET_WIF", help="Signing key (WIF)"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Sign a message with a WIF private key."""
    _load_settings(log_level)

    try:
        with KeyMaterial.from_wif(wif) as key:
            signature = sign_message(key, message)
            typer.echo(f"Address:   {key.address()}")
    except WalletError as e:
        logger.error(f"Signing failed: {e}")
        raise typer.Exit(1)

    typer.echo(f"Signature: {signature}")


@app.command("verify-message")
def verify_message_cmd(
    address: str = typer.Argument(..., help="Address of the signer"),
    signature: str = typer.Argument(..., help="Base64 signature"),
    message: str = typer.Argument(..., help="Signed message"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Verify a signed message (exit code 0 if valid)."""
    _load_settings(log_level)

    if verify_message(signature, message, address):
        typer.echo("Signature is valid")
        return
    typer.echo("Signature is NOT valid")
    raise typer.Exit(1)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
