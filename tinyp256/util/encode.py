"""
Copyright (c) 2024, the tinyp256 developers
See LICENSE for details

Byte and integer conversions. Integers are always big-endian. A plain
conversion is minimal-length, and an explicit length left-pads with zeros.
"""

import base64
import binascii

from tinyp256 import DecodeError


def intToBytes(i):
    """
    Encodes a non-negative integer to the minimal number of bytes.

    Args:
        i (int): The integer.

    Returns:
        bytearray: The encoded integer.
    """
    return bytearray(i.to_bytes((i.bit_length() + 7) // 8, byteorder="big"))


def intFromBytes(b):
    """
    Decodes an unsigned integer from bytes.

    Args:
        b (bytes-like): The encoded integer.

    Returns:
        int: The decoded integer.
    """
    return int.from_bytes(b, "big")


def padInt(i, length):
    """
    Encode a non-negative integer into exactly length bytes, left-padded with
    zeros.

    Args:
        i (int): The integer.
        length (int): The output width.

    Returns:
        bytes: The fixed-width encoding.

    Raises:
        ValueError if i is negative or does not fit in length bytes.
    """
    if i < 0:
        raise ValueError(f"cannot pad negative integer {i}")
    if i.bit_length() > length * 8:
        raise ValueError(f"integer too large for {length} bytes")
    return ByteArray(i, length=length).bytes()


def b64encode(b):
    """
    Standard base64 with padding, as a str.

    Args:
        b (bytes-like): The bytes to encode.

    Returns:
        str: The encoded string.
    """
    return base64.b64encode(bytes(b)).decode("ascii")


def b64decode(s):
    """
    Strict standard base64 decoding.

    Args:
        s (str): The base64 string.

    Returns:
        bytes: The decoded bytes.

    Raises:
        DecodeError if s is not valid base64.
    """
    try:
        return base64.b64decode(s, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"invalid base64: {e}")


def decodeBA(b, copy=False):
    """
    Decode into a bytearray.

    Args:
        b (bytes-like, ByteArray, int): The value to decode to a bytearray.
            Integers are minimally encoded to an unsigned integer.

    Returns:
        bytearray: The decoded bytes.
    """
    if isinstance(b, ByteArray):
        return bytearray(b.b) if copy else b.b
    if isinstance(b, bytearray):
        return bytearray(b) if copy else b
    if isinstance(b, bytes):
        return bytearray(b)
    if isinstance(b, int):
        return intToBytes(b) if b else bytearray([0])
    raise TypeError("decodeBA: unknown type %s" % type(b))


class ByteArray:
    """
    ByteArray is a bytearray manager that decodes various input types on the
    fly. An integer argument results in the shortest possible big-endian byte
    representation of the integer, where for bytearray an int argument results
    in a zero-valued bytearray of said length. To get a zero-padded ByteArray
    of length n, use the `length` keyword argument.
    """

    def __init__(self, b=b"", copy=True, length=None):
        """
        Set copy to False if you want to share the memory with another
        bytearray/ByteArray. If the type of b is not bytearray or ByteArray,
        copy has no effect.
        """
        if length:
            self.b = decodeBA(ByteArray(bytearray(length)) | b, copy=False)
        else:
            self.b = decodeBA(b, copy=copy)

    def comp(self, a):
        """
        comp gets the underlying bytearray and length of both this ByteArray
        and a.

        Args:
            a (ByteArray): The other ByteArray.

        Returns:
            bytearray: The other ByteArray's bytearray.
            int: The other ByteArray's length.
            bytearray: This ByteArray's bytearray.
            int: This ByteArray's length.
        """
        a = decodeBA(a)
        aLen, bLen = len(a), len(self.b)
        if aLen > bLen:
            raise ValueError("decode: invalid length %i > %i" % (aLen, bLen))
        return a, aLen, self.b, bLen

    def __eq__(self, a):
        try:
            return bytearray.__eq__(self.b, decodeBA(a))
        except Exception:
            return False

    def __ne__(self, a):
        return not self.__eq__(a)

    def __repr__(self):
        return "ByteArray(" + self.hex() + ")"

    def __len__(self):
        return len(self.b)

    def __or__(self, a):
        a, aLen, b, bLen = self.comp(a)
        b = ByteArray(b)
        for i in range(bLen):
            b[bLen - i - 1] |= a[aLen - i - 1] if i < aLen else 0
        return b

    def __add__(self, a):
        return self.__iadd__(a)

    def __iadd__(self, a):
        """append the bytes and return a new ByteArray"""
        a = decodeBA(a)
        return ByteArray(self.b + a)

    def __getitem__(self, k):
        if isinstance(k, slice):
            return ByteArray(self.b[k.start : k.stop : k.step], copy=False)
        return self.b[k]

    def __setitem__(self, i, v):
        v = decodeBA(v, copy=False)
        if i + len(v) > len(self.b):
            raise ValueError("source bytes too long")
        for j in range(len(v)):
            self.b[i + j] = v[j]

    def hex(self):
        """
        A hexadecimal string representation of the bytes.

        Returns:
            str: The hex bytes.
        """
        return self.b.hex()

    def int(self):
        """The bytes as an integer."""
        return intFromBytes(self.b)

    def bytes(self):
        """The bytes as Python `bytes`."""
        return bytes(self.b)
