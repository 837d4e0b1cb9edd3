"""
Copyright (c) 2024, the tinyp256 developers
See LICENSE for details
"""

import logging
import sys

import pytest

from tinyp256 import config
from tinyp256.config import CmdArgs, load


@pytest.fixture
def noConfig(tmp_path):
    return str(tmp_path / "missing.conf")


def test_CmdArgs(noConfig):
    with pytest.raises(SystemExit):
        CmdArgs(["--unknown"], configPath=noConfig)

    with pytest.raises(SystemExit):
        CmdArgs(["--loglevel", ",:"], configPath=noConfig)

    with pytest.raises(SystemExit):
        CmdArgs(["--loglevel", "loud"], configPath=noConfig)

    cfg = CmdArgs([], configPath=noConfig)
    assert cfg.command is None
    assert cfg.logLevel == logging.INFO
    assert cfg.moduleLevels == {}
    assert cfg.logFile is None

    cfg = CmdArgs(["--loglevel", "debug", "keygen"], configPath=noConfig)
    assert cfg.logLevel == logging.DEBUG
    assert cfg.command == "keygen"

    cfg = CmdArgs(["--loglevel", "A:Warning,B:deBug,C:Critical,D:0"], configPath=noConfig)
    assert len(cfg.moduleLevels) == 4
    assert cfg.moduleLevels["A"] == logging.WARNING
    assert cfg.moduleLevels["B"] == logging.DEBUG
    assert cfg.moduleLevels["C"] == logging.CRITICAL
    assert cfg.moduleLevels["D"] == logging.NOTSET


def test_subcommands(noConfig):
    cfg = CmdArgs(["sign", "abcd", "hello world"], configPath=noConfig)
    assert cfg.command == "sign"
    assert cfg.args.privkey == "abcd"
    assert cfg.args.message == "hello world"

    cfg = CmdArgs(["verify", "pub", "msg", "sig"], configPath=noConfig)
    assert (cfg.args.pubkey, cfg.args.message, cfg.args.signature) == (
        "pub",
        "msg",
        "sig",
    )

    cfg = CmdArgs(["decrypt", "pub", "priv", "env"], configPath=noConfig)
    assert (cfg.args.pubkey, cfg.args.privkey, cfg.args.envelope) == (
        "pub",
        "priv",
        "env",
    )

    # Missing positional arguments.
    with pytest.raises(SystemExit):
        CmdArgs(["encrypt", "priv"], configPath=noConfig)
    # Extra positional arguments.
    with pytest.raises(SystemExit):
        CmdArgs(["pubkey", "a", "b"], configPath=noConfig)
    with pytest.raises(SystemExit):
        CmdArgs(["frobnicate"], configPath=noConfig)


def test_configFile(tmp_path):
    path = tmp_path / config.CONFIG_NAME
    path.write_text("loglevel=warning\nlogfile=/var/log/p256.log\n")

    cfg = CmdArgs([], configPath=str(path))
    assert cfg.logLevel == logging.WARNING
    assert cfg.logFile == "/var/log/p256.log"

    # The command line takes precedence.
    cfg = CmdArgs(["--loglevel", "error", "--logfile", "x.log"], configPath=str(path))
    assert cfg.logLevel == logging.ERROR
    assert cfg.logFile == "x.log"

    assert config.fileDefaults(str(tmp_path / "nope.conf")) == {}


def test_logLvl():
    assert config.logLvl("INFO") == logging.INFO
    assert config.logLvl("0") == logging.NOTSET
    with pytest.raises(KeyError):
        config.logLvl("verbose")


def test_load(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["cmd"])
    monkeypatch.setattr(config, "tinyConfig", None)
    cfg = load()
    assert isinstance(cfg, CmdArgs)
    assert load() is cfg
