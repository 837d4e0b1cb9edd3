"""
Copyright (c) 2024, the tinyp256 developers
See LICENSE for details
"""

import pytest

from tinyp256 import P256Error
from tinyp256.crypto import rando


def test_checkLength():
    with pytest.raises(P256Error):
        rando.checkLength(0)
    assert rando.checkLength(1) is None
    assert rando.checkLength(rando.SCALAR_SIZE) is None
    assert rando.checkLength(rando.MaxRandomBytes) is None
    with pytest.raises(P256Error):
        rando.checkLength(rando.MaxRandomBytes + 1)


def test_generateSeed():
    assert len(rando.generateSeed()) == rando.SCALAR_SIZE
    assert len(rando.generateSeed(5)) == 5
    assert rando.generateSeed() != rando.generateSeed()
    with pytest.raises(P256Error):
        rando.generateSeed(-1)


def test_saltAndIV():
    assert len(rando.newSalt()) == rando.SALT_SIZE == 32
    assert len(rando.newIV()) == rando.IV_SIZE == 12
