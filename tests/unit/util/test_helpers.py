"""
Copyright (c) 2024, the tinyp256 developers
See LICENSE for details
"""

import logging
import os

from tinyp256 import P256Error
from tinyp256.util import helpers


def test_formatTraceback():
    # Cannot actually raise an error because pytest intercepts it.
    assert helpers.formatTraceback(P256Error("errmsg")).endswith("P256Error: errmsg\n")


def test_mkdir(tmp_path):
    fpath = tmp_path / "test_file"
    f = open(fpath, "w")
    f.close()
    assert not helpers.mkdir(fpath)
    dpath = tmp_path / "test_dir"
    assert helpers.mkdir(dpath)
    assert os.path.isdir(dpath)
    assert helpers.mkdir(dpath)


def test_prepareLogging(tmp_path):
    path = tmp_path / "test.log"
    helpers.prepareLogging(filepath=path)
    logger = helpers.getLogger("1")
    logger1 = logger
    assert logger.getEffectiveLevel() == logging.INFO

    logger.info("something")
    assert path.is_file()

    helpers.prepareLogging(filepath=path, logLvl=logging.DEBUG)
    logger = helpers.getLogger("2")
    assert logger.getEffectiveLevel() == logging.DEBUG

    helpers.prepareLogging(
        filepath=path,
        logLvl=logging.INFO,
        lvlMap={"1": logging.NOTSET, "3": logging.WARNING},
    )
    logger = helpers.getLogger("3")
    assert logger.getEffectiveLevel() == logging.WARNING
    assert logger1.getEffectiveLevel() == logging.NOTSET


def test_readINI(tmp_path):
    path = tmp_path / "test.conf"
    path.write_text("loglevel=debug\nlogfile = /tmp/p256.log\nother=1\n")
    assert helpers.readINI(path, ["loglevel", "logfile"]) == {
        "loglevel": "debug",
        "logfile": "/tmp/p256.log",
    }
    assert helpers.readINI(path, ["missing"]) == {}

    # Keys in named sections are found too.
    path.write_text("; comment\n[Application Options]\nloglevel=warning\n")
    assert helpers.readINI(path, ["loglevel"]) == {"loglevel": "warning"}
