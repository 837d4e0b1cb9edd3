"""
Copyright (c) 2024, the tinyp256 developers
See LICENSE for details
"""

import os

import pytest

from tinyp256 import app, config
from tinyp256.crypto.secp256r1.curve import curve, isValidPublicKey


PRIV_HEX = curve.privateKey(
    61361177301120546798353184446776238059365544349563880419457840251303464899864
).serialize().hex()
PUB_B64 = (
    "BK0BoBphDGOeiuNqHzQabXhSAB+vTU85xDIFgibnImE40TAuxEuv3N+ar7HqDXfJVa2Zd1Sn7kZe+i"
    "2PkXyLDt4="
)


@pytest.fixture(autouse=True)
def noConfigFile(monkeypatch):
    monkeypatch.setattr(config, "fileDefaults", lambda path: {})


def run(capsys, *argv):
    code = app.main(list(argv))
    return code, capsys.readouterr().out.strip().splitlines()


def test_keygen(capsys):
    code, lines = run(capsys, "keygen")
    assert code == 0
    assert len(lines) == 2
    priv = app.privKeyFromHex(lines[0])
    assert len(lines[0]) == 64
    assert isValidPublicKey(lines[1])
    assert priv.pub.b64() == lines[1]


def test_pubkey(capsys):
    code, lines = run(capsys, "pubkey", PRIV_HEX)
    assert code == 0
    assert lines == [PUB_B64]


def test_signVerify(capsys):
    code, lines = run(capsys, "sign", PRIV_HEX, "hello")
    assert code == 0
    sig = lines[0]

    code, lines = run(capsys, "verify", PUB_B64, "hello", sig)
    assert code == 0
    assert lines == ["valid"]

    code, lines = run(capsys, "verify", PUB_B64, "goodbye", sig)
    assert code == 1
    assert lines == ["invalid"]


def test_encryptDecrypt(capsys):
    code, lines = run(capsys, "keygen")
    recipientPriv, recipientPub = lines

    code, lines = run(capsys, "encrypt", PRIV_HEX, recipientPub, "secret words")
    assert code == 0
    envelope = lines[0]

    code, lines = run(capsys, "decrypt", PUB_B64, recipientPriv, envelope)
    assert code == 0
    assert lines == ["secret words"]

    # Wrong sender.
    code, lines = run(capsys, "decrypt", recipientPub, recipientPriv, envelope)
    assert code == 1
    assert lines == ["invalid"]


def test_errors(capsys):
    code, _ = run(capsys, "pubkey", "zz")
    assert code == 1
    code, _ = run(capsys, "pubkey", "00" * 32)
    assert code == 1
    code, _ = run(capsys, "verify", "not base64!", "m", "AAAA")
    assert code == 1
    code, _ = run(capsys, "verify", PUB_B64, "m", "AAAA")
    assert code == 1
    code, _ = run(capsys, "decrypt", PUB_B64, PRIV_HEX, "a.b.c")
    assert code == 1
    code, _ = run(capsys, "encrypt", PRIV_HEX, PUB_B64[:-4], "m")
    assert code == 1


def test_noCommand(capsys):
    code, lines = run(capsys)
    assert code == 2
    assert any("usage" in line for line in lines)


def test_logFile(capsys, tmp_path):
    logPath = tmp_path / "logs" / "tinyp256.log"
    code, _ = run(capsys, "--logfile", str(logPath), "--loglevel", "APP:debug", "keygen")
    assert code == 0
    assert os.path.isdir(tmp_path / "logs")

    blocker = tmp_path / "blocker"
    blocker.write_text("")
    with pytest.raises(SystemExit):
        app.main(["--logfile", str(blocker / "x.log"), "keygen"])
