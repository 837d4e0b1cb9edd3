"""
Copyright (c) 2024, the tinyp256 developers
See LICENSE for details

Pure Python secp256r1 (NIST P-256) curve implementation.

References:
  [SEC1] Elliptic Curve Cryptography
    https://www.secg.org/sec1-v2.pdf

  [SEC2] Recommended Elliptic Curve Domain Parameters
    https://www.secg.org/sec2-v2.pdf

  [GECC]: Guide to Elliptic Curve Cryptography (Hankerson, Menezes, Vanstone)

All group operations are performed in affine coordinates, with one modular
inversion per addition or doubling. Scalar multiplication branches on the bits
of the scalar, so its running time depends on the scalar.
"""

from tinyp256 import DecodeError, MalformedKey, P256Error, RetryLimitExceeded
from tinyp256.crypto import rando
from tinyp256.util import helpers
from tinyp256.util.encode import ByteArray, b64decode, b64encode, padInt

from .field import modInv, modulo


log = helpers.getLogger("CURVE")

COORDINATE_LEN = 32
PUBKEY_LEN = 65
PUBKEY_UNCOMPRESSED = 0x04  # 0x04 x coord + y coord

# DER SubjectPublicKeyInfo header for an uncompressed P-256 key.
#   SEQUENCE { SEQUENCE { OID id-ecPublicKey, OID prime256v1 }, BIT STRING }
SPKI_PREFIX = bytes.fromhex("3059301306072a8648ce3d020106082a8648ce3d030107034200")

# Upper bound on rejection-sampling rounds. Each round fails with probability
# below 2^-32.
MAX_SCALAR_ATTEMPTS = 2 ** 32


class PointNotOnCurve(P256Error):
    """
    A group operation received a point that does not satisfy the curve
    equation. This is a programming error.
    """

    pass


class Point:
    """
    Point is an element of the curve group. It is either the point at
    infinity, the group identity, or an AffinePoint. Consumers branch on
    isInfinity before touching coordinates.
    """

    __slots__ = ()

    def isInfinity(self):
        raise NotImplementedError


class Infinity(Point):
    """
    The point at infinity. There is exactly one instance, INFINITY.
    """

    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def isInfinity(self):
        return True

    def __eq__(self, other):
        if not isinstance(other, Point):
            return NotImplemented
        return other.isInfinity()

    def __hash__(self):
        return hash("infinity")

    def __repr__(self):
        return "Infinity"


INFINITY = Infinity()


class AffinePoint(Point):
    """
    A point with coordinates (x, y). The constructor does not check the curve
    equation. Use Curve.point or Curve.parsePubKey where an assured-valid point
    is needed.
    """

    __slots__ = ("_x", "_y")

    def __init__(self, x, y):
        self._x = x
        self._y = y

    @property
    def x(self):
        return self._x

    @property
    def y(self):
        return self._y

    def isInfinity(self):
        return False

    def __eq__(self, other):
        if not isinstance(other, Point):
            return NotImplemented
        if other.isInfinity():
            return False
        return self._x == other.x and self._y == other.y

    def __hash__(self):
        return hash((self._x, self._y))

    def __repr__(self):
        return f"AffinePoint({self._x:#066x}, {self._y:#066x})"


def encodeUncompressedKey(point):
    """
    Serialize a point in the 65-byte uncompressed SEC format,
    0x04 || X(32) || Y(32). The coordinates are always zero-padded to 32
    bytes.

    Args:
        point (AffinePoint): The point to encode.

    Returns:
        bytes: The 65-byte encoding.
    """
    if point.isInfinity():
        raise ValueError("the point at infinity has no uncompressed encoding")
    return (
        bytes([PUBKEY_UNCOMPRESSED])
        + padInt(point.x, COORDINATE_LEN)
        + padInt(point.y, COORDINATE_LEN)
    )


def decodeUncompressedKey(pubKeyB):
    """
    Parse a 65-byte uncompressed SEC encoding. The curve equation is not
    checked, see Curve.parsePubKey.

    Args:
        pubKeyB (bytes-like): The encoded key.

    Returns:
        AffinePoint: The decoded coordinates.

    Raises:
        MalformedKey if the length is not 65 or the format byte is not 0x04.
    """
    pkLen = len(pubKeyB)
    if pkLen != PUBKEY_LEN:
        raise MalformedKey(f"invalid pub key length {pkLen}")
    if pubKeyB[0] != PUBKEY_UNCOMPRESSED:
        raise MalformedKey(f"invalid magic in pubkey: {pubKeyB[0]}")
    b = ByteArray(pubKeyB)
    return AffinePoint(b[1:33].int(), b[33:].int())


class PublicKey:
    """
    PublicKey is a P-256 public key, a non-infinity point Q = d*G.
    """

    def __init__(self, curve, point):
        """
        Since this accepts an arbitrary point, it allows creation of public
        keys that are not valid points on the curve. Use Curve.parsePubKey
        for untrusted input.
        """
        if point.isInfinity():
            raise ValueError("a public key cannot be the point at infinity")
        self.curve = curve
        self.point = point

    @property
    def x(self):
        return self.point.x

    @property
    def y(self):
        return self.point.y

    def serializeUncompressed(self):
        """
        serializeUncompressed serializes a public key in a 65-byte uncompressed
        format.
        """
        return encodeUncompressedKey(self.point)

    def serializeSPKI(self):
        """
        serializeSPKI wraps the uncompressed key in a DER SubjectPublicKeyInfo
        structure, the form most platform ECDSA verifiers import.
        """
        return SPKI_PREFIX + self.serializeUncompressed()

    def b64(self):
        """
        The base64 encoding of the uncompressed key, as sent on the wire.
        """
        return b64encode(self.serializeUncompressed())

    def __eq__(self, other):
        """
        A PublicKey is equivalent to another if they both have the same point.
        """
        if not isinstance(other, PublicKey):
            return NotImplemented
        return self.point == other.point

    def __hash__(self):
        return hash(self.point)


class PrivateKey:
    """
    PrivateKey stores a P-256 private scalar and its corresponding public key.
    """

    def __init__(self, curve, k, pub):
        self.curve = curve
        self.key = k
        self.pub = pub

    def serialize(self):
        """
        The private scalar as 32 big-endian bytes.
        """
        return padInt(self.key, COORDINATE_LEN)


def fromHex(hx):
    return int(hx, 16)


class Curve:
    def __init__(self):
        bitSize = 256
        # p = 2^256 - 2^224 + 2^192 + 2^96 - 1
        p = fromHex("FFFFFFFF00000001000000000000000000000000FFFFFFFFFFFFFFFFFFFFFFFF")
        self.P = p
        self.A = p - 3
        self.B = fromHex(
            "5AC635D8AA3A93E7B3EBBD55769886BC651D06B0CC53B0F63BCE3C3E27D2604B"
        )
        self.N = fromHex(
            "FFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551"
        )
        self.Gx = fromHex(
            "6B17D1F2E12C4247F8BCE6E563A440F277037D812DEB33A0F4A13945D898C296"
        )
        self.Gy = fromHex(
            "4FE342E2FE1A7F9B8EE7EB4A7C0F9E162BCE33576B315ECECBB6406837BF51F5"
        )
        self.G = AffinePoint(self.Gx, self.Gy)
        self.BitSize = bitSize
        self.H = 1
        self.byteSize = bitSize // 8

    def isOnCurve(self, point):
        """
        isOnCurve returns True if the point is the point at infinity or if its
        coordinates are field elements satisfying y² = x³ + ax + b (mod p).
        """
        if point.isInfinity():
            return True
        x, y = point.x, point.y
        if not (0 <= x < self.P and 0 <= y < self.P):
            return False
        lhs = y * y % self.P
        rhs = (x * x * x + self.A * x + self.B) % self.P
        return lhs == rhs

    def point(self, x, y):
        """
        point creates an AffinePoint, ensuring it is on the curve.

        Raises:
            PointNotOnCurve if (x, y) is not on the curve.
        """
        pt = AffinePoint(x, y)
        if not self.isOnCurve(pt):
            raise PointNotOnCurve(f"[{x:#x}, {y:#x}] isn't on the P-256 curve")
        return pt

    def negate(self, point):
        """
        negate returns -point. The point at infinity is its own negation.
        """
        if point.isInfinity():
            return point
        return AffinePoint(point.x, modulo(-point.y, self.P))

    def slope(self, p1, p2):
        """
        slope returns the slope of the line through two affine points, or the
        tangent slope when they are equal. None is returned when the line is
        vertical, i.e. p1 = -p2, which includes doubling a point with y = 0.
        """
        P = self.P
        if modulo(p1.x - p2.x, P) == 0 and modulo(p1.y + p2.y, P) == 0:
            return None
        if p1 == p2:
            # Tangent: (3x² + a) / 2y
            return modulo((3 * p1.x * p1.x + self.A) * modInv(2 * p1.y, P), P)
        # Chord: (y2 - y1) / (x2 - x1)
        return modulo((p2.y - p1.y) * modInv(p2.x - p1.x, P), P)

    def add(self, p1, p2):
        """
        add returns the group sum p1 + p2.

        Raises:
            PointNotOnCurve if either operand is off the curve.
        """
        if not self.isOnCurve(p1):
            raise PointNotOnCurve("LHS of add is not on the curve")
        if not self.isOnCurve(p2):
            raise PointNotOnCurve("RHS of add is not on the curve")

        # A point at infinity is the identity according to the group law for
        # elliptic curve cryptography.  Thus, ∞ + P = P and P + ∞ = P.
        if p1.isInfinity():
            return p2
        if p2.isInfinity():
            return p1

        m = self.slope(p1, p2)
        if m is None:
            return INFINITY

        P = self.P
        xr = modulo(m * m - p1.x - p2.x, P)
        yr = modulo(m * (p1.x - xr) - p1.y, P)
        return AffinePoint(xr, yr)

    def double(self, point):
        """
        double returns 2 * point.
        """
        return self.add(point, point)

    def scalarMult(self, k, point):
        """
        scalarMult returns k * point using right-to-left double-and-add. A
        negative k multiplies the negated point.

        Raises:
            PointNotOnCurve if point is off the curve.
        """
        if not self.isOnCurve(point):
            raise PointNotOnCurve("cannot multiply a point that is not on the curve")
        if k < 0:
            return self.scalarMult(-k, self.negate(point))

        # Point Q = ∞ (point at infinity).
        result = INFINITY
        addend = point
        while k:
            if k & 1:
                result = self.add(result, addend)
            k >>= 1
            if k:
                addend = self.double(addend)
        return result

    def scalarBaseMult(self, k):
        """
        scalarBaseMult returns k*G where G is the base point of the group.
        """
        return self.scalarMult(k, self.G)

    def publicKey(self, k):
        """
        Create a public key from integer private key k.

        Raises:
            ValueError if k is not in [1, N-1].
        """
        if not 1 <= k < self.N:
            raise ValueError("private key is outside the range [1, N-1]")
        return PublicKey(self, self.scalarBaseMult(k))

    def privateKey(self, k):
        """
        Create a PrivateKey, with its public key, from the integer scalar k.
        """
        return PrivateKey(self, k, self.publicKey(k))

    def parsePubKey(self, pubKeyB):
        """
        parsePubKey parses a P-256 public key in the uncompressed ANSI X9.62
        format and checks that it is a point on the curve.

          <format byte = 0x04><32-byte X coordinate><32-byte Y coordinate>

        Raises:
            MalformedKey if the encoding is invalid or the point is off the
                curve.
        """
        pt = decodeUncompressedKey(pubKeyB)
        if not self.isOnCurve(pt):
            raise MalformedKey("pubkey isn't on the P-256 curve")
        return PublicKey(self, pt)


# curve is a global instance of the Curve that implements the P-256 curve
# parameters.
curve = Curve()


def generateSafeScalar():
    """
    generateSafeScalar draws 256 random bits until they form an integer in
    [1, N-1], so the result is never zero or a multiple of the group order.

    Returns:
        int: The scalar.

    Raises:
        RetryLimitExceeded if MAX_SCALAR_ATTEMPTS draws are all out of range.
    """
    for attempt in range(MAX_SCALAR_ATTEMPTS):
        k = ByteArray(rando.generateSeed(rando.SCALAR_SIZE)).int()
        if 1 <= k < curve.N:
            if attempt:
                log.debug(f"scalar accepted after {attempt + 1} draws")
            return k
    raise RetryLimitExceeded(f"no usable scalar in {MAX_SCALAR_ATTEMPTS} draws")


def generateKey():
    """
    generateKey generates a public and private key pair.
    """
    for _ in range(MAX_SCALAR_ATTEMPTS):
        k = generateSafeScalar()
        q = curve.scalarBaseMult(k)
        if not q.isInfinity():
            return PrivateKey(curve, k, PublicKey(curve, q))
        log.debug("generated key maps to the point at infinity, retrying")
    raise RetryLimitExceeded(f"no usable key in {MAX_SCALAR_ATTEMPTS} draws")


def privKeyFromBytes(pk):
    """
    privKeyFromBytes creates a PrivateKey from its 32-byte big-endian encoding.

    Args:
        pk (bytes-like): The private key bytes.

    Returns:
        PrivateKey: The private key structure.

    Raises:
        MalformedKey if the length is not 32 or the scalar is not in [1, N-1].
    """
    if len(pk) != COORDINATE_LEN:
        raise MalformedKey(f"invalid private key length {len(pk)}")
    k = ByteArray(pk).int()
    if not 1 <= k < curve.N:
        raise MalformedKey("private key is outside the range [1, N-1]")
    return curve.privateKey(k)


def isValidPublicKey(b64Key):
    """
    isValidPublicKey checks that a base64 string decodes to a well-formed
    uncompressed public key on the curve.

    Args:
        b64Key (str): The base64-encoded key.

    Returns:
        bool: True if the key is usable.
    """
    try:
        curve.parsePubKey(b64decode(b64Key))
    except DecodeError:
        return False
    return True
