"""
Copyright (c) 2024, the tinyp256 developers
See LICENSE for details
"""

import os

from tinyp256 import P256Error


SCALAR_SIZE = 32  # 256 bits
SALT_SIZE = 32
IV_SIZE = 12  # 96-bit GCM nonce

MaxRandomBytes = 1024


def checkLength(length):
    """
    Check that a requested random length is usable.

    Args:
        length int: the number of bytes requested.

    Raises:
        P256Error if length is not between 1 and MaxRandomBytes included.
    """
    if length < 1 or length > MaxRandomBytes:
        raise P256Error(f"Invalid random length {length}")


def generateSeed(length=SCALAR_SIZE):
    """
    Generate cryptographically-strong random bytes.

    Returns:
        bytes: a random bytes object of the given length.

    Raises:
        P256Error if length is not between 1 and MaxRandomBytes included.
    """
    checkLength(length)
    return os.urandom(length)


def newSalt():
    """
    Generate a random HKDF salt of SALT_SIZE length.

    Returns:
        bytes: a random object of SALT_SIZE length.
    """
    return generateSeed(SALT_SIZE)


def newIV():
    """
    Generate a random AES-GCM initialization vector of IV_SIZE length.

    Returns:
        bytes: a random object of IV_SIZE length.
    """
    return generateSeed(IV_SIZE)
