"""
Copyright (c) 2024, the tinyp256 developers
See LICENSE for details

Integer arithmetic in the prime fields of the curve. Field elements are plain
Python integers, normalized into [0, m) with Euclidean modulo.
"""

from tinyp256 import P256Error


class InverseDoesNotExist(P256Error):
    """
    The value shares a factor with the modulus. Every modulus used by this
    package is prime, so this indicates a zero operand, which is a logic error.
    """

    pass


def modulo(a, m):
    """
    The Euclidean remainder of a divided by m.

    Python's % already takes the sign of the divisor, so for a positive
    modulus the result is always in [0, m), unlike a truncating remainder.

    Args:
        a (int): The dividend.
        m (int): The modulus. Must be positive.

    Returns:
        int: The remainder in [0, m).
    """
    if m <= 0:
        raise ValueError(f"modulus must be positive, got {m}")
    return a % m


def egcd(a, b):
    """
    Calculate the extended Euclidean algorithm. ax + by = gcd(a,b)

    Args:
        a (int): An integer.
        b (int): Another integer.

    Returns:
        int: Greatest common divisor.
        int: x coefficient of Bezout's identity.
        int: y coefficient of Bezout's identity.
    """
    oldR, r = a, b
    oldX, x = 1, 0
    oldY, y = 0, 1
    while r != 0:
        q = oldR // r
        oldR, r = r, oldR - q * r
        oldX, x = x, oldX - q * x
        oldY, y = y, oldY - q * y
    return oldR, oldX, oldY


def modInv(a, m):
    """
    Modular inverse via the extended Euclidean algorithm.

    Args:
        a (int): An integer. Negative values are reduced first.
        m (int): The modulus.

    Returns:
        int: The modular inverse in [0, m).

    Raises:
        InverseDoesNotExist if gcd(a, m) != 1.
    """
    g, x, _ = egcd(modulo(a, m), m)
    if g != 1:
        raise InverseDoesNotExist(f"{a} has no inverse modulo {m}")
    return modulo(x, m)
