"""
Tests for the command line interface.
"""

import sys

import pytest
from loguru import logger
from typer.testing import CliRunner

from dogewallet.cli import app
from dogewallet.wallet.keys import KeyMaterial
from dogewallet.wallet.message import sign_message
from dogewallet.wallet.service import HdWallet

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DOGEWALLET_NETWORK", raising=False)
    monkeypatch.delenv("MNEMONIC", raising=False)
    yield
    # The CLI points loguru at the runner's captured stderr
    logger.remove()
    logger.add(sys.stderr)


def test_generate():
    result = runner.invoke(app, ["generate", "--strength", "128"])
    assert result.exit_code == 0
    phrase = [line for line in result.stdout.splitlines() if len(line.split()) == 12]
    assert len(phrase) == 1


def test_generate_bad_strength():
    result = runner.invoke(app, ["generate", "--strength", "100"])
    assert result.exit_code == 1


def test_new_key():
    result = runner.invoke(app, ["new-key", "--network", "testnet"])
    assert result.exit_code == 0
    address = result.stdout.split("Address:")[1].split()[0]
    wif = result.stdout.split("WIF:")[1].split()[0]
    assert address.startswith("n")
    with KeyMaterial.from_wif(wif) as key:
        assert key.address().value == address


def test_new_key_unknown_network():
    result = runner.invoke(app, ["new-key", "--network", "regtest"])
    assert result.exit_code == 1


def test_derive(test_mnemonic):
    result = runner.invoke(app, ["derive", "--mnemonic", test_mnemonic, "--count", "2"])
    assert result.exit_code == 0
    with HdWallet.from_mnemonic(test_mnemonic) as wallet:
        assert f"m/44'/3'/0'/0/0  {wallet.derive_address(0, 0, 0)}" in result.stdout
        assert f"m/44'/3'/0'/0/1  {wallet.derive_address(0, 0, 1)}" in result.stdout


def test_derive_from_file(test_mnemonic, tmp_path):
    path = tmp_path / "seed.txt"
    path.write_text(test_mnemonic + "\n")
    result = runner.invoke(app, ["derive", "--mnemonic-file", str(path), "--index", "5"])
    assert result.exit_code == 0
    assert "m/44'/3'/0'/0/5" in result.stdout


def test_derive_requires_mnemonic():
    result = runner.invoke(app, ["derive"])
    assert result.exit_code == 1


def test_derive_bad_mnemonic():
    result = runner.invoke(app, ["derive", "--mnemonic", "abandon " * 12])
    assert result.exit_code == 1


def test_validate(key):
    address = key.address().value
    assert runner.invoke(app, ["validate", address]).exit_code == 0
    assert runner.invoke(app, ["validate", address, "--network", "testnet"]).exit_code == 1
    assert runner.invoke(app, ["validate", "garbage"]).exit_code == 1


def test_qr_ascii(key):
    result = runner.invoke(app, ["qr", key.address().value])
    assert result.exit_code == 0
    assert len(result.stdout.splitlines()) > 10


def test_qr_file(key, tmp_path):
    output = tmp_path / "qr.png"
    result = runner.invoke(app, ["qr", key.address().value, "--output", str(output)])
    assert result.exit_code == 0
    assert output.read_bytes().startswith(b"\x89PNG")


def test_qr_bad_format(key, tmp_path):
    output = tmp_path / "qr.gif"
    result = runner.invoke(
        app, ["qr", key.address().value, "--output", str(output), "--format", "gif"]
    )
    assert result.exit_code == 1


def test_sign_and_verify_message(key):
    result = runner.invoke(app, ["sign-message", "--wif", key.export_wif(), "much wow"])
    assert result.exit_code == 0
    signature = result.stdout.split("Signature:")[1].split()[0]
    address = key.address().value

    assert runner.invoke(app, ["verify-message", address, signature, "much wow"]).exit_code == 0
    assert runner.invoke(app, ["verify-message", address, signature, "so scam"]).exit_code == 1


def test_verify_message_from_library(key):
    signature = sign_message(key, "hello")
    result = runner.invoke(app, ["verify-message", key.address().value, signature, "hello"])
    assert result.exit_code == 0


def test_sign_message_bad_wif():
    result = runner.invoke(app, ["sign-message", "--wif", "garbage", "hello"])
    assert result.exit_code == 1
