"""
Copyright (c) 2024, the tinyp256 developers
See LICENSE for details

ECDSA over P-256.

References:
  [SEC1] Elliptic Curve Cryptography, section 4.1
    https://www.secg.org/sec1-v2.pdf

  [NSA] Suite B Implementer's Guide to FIPS 186-3
"""

import hashlib

from tinyp256 import DecodeError, MalformedSignature, RetryLimitExceeded
from tinyp256.util import helpers
from tinyp256.util.encode import ByteArray, b64decode, b64encode, padInt

from .secp256r1.curve import (
    PublicKey,
    curve as Curve,
    decodeUncompressedKey,
    generateSafeScalar,
)
from .secp256r1.field import modInv


log = helpers.getLogger("ECDSA")

SIGNATURE_LEN = 64
SCALAR_LEN = 32

# Upper bound on nonce draws when signing.
MAX_NONCE_ATTEMPTS = 2 ** 32


def canonicalizeInt(val):
    """
    canonicalizeInt returns the bytes for the passed big integer adjusted as
    necessary to ensure that a big-endian encoded integer can't possibly be
    misinterpreted as a negative number.  This can happen when the most
    significant bit is set, so it is padded by a leading zero byte in this case.
    Also, the returned bytes will have at least a single byte when the passed
    value is 0.  This is required for DER encoding.

    Args:
        val (int): The value to encode.

    Returns:
        ByteArray: The encoded integer with any necessary zero padding.
    """
    b = ByteArray(val)
    if (b[0] & 0x80) != 0:
        b = ByteArray(0, length=len(b) + 1) | b
    return b


def canonicalPadding(b):
    """
    canonicalPadding checks whether a big-endian encoded integer could
    possibly be misinterpreted as a negative number, or if there is any
    unnecessary leading zero padding.

    Raises:
        MalformedSignature if the encoding is not canonical.
    """
    if b[0] & 0x80 == 0x80:
        raise MalformedSignature("negative number")
    if len(b) > 1 and b[0] == 0x00 and b[1] & 0x80 != 0x80:
        raise MalformedSignature("excessive padding")


class Signature:
    """
    The Signature class represents an ECDSA-algorithm signature (r, s).
    """

    def __init__(self, r, s):
        self.r = r
        self.s = s

    def __eq__(self, other):
        if not isinstance(other, Signature):
            return NotImplemented
        return self.r == other.r and self.s == other.s

    def __hash__(self):
        return hash((self.r, self.s))

    def __repr__(self):
        return f"Signature(r={self.r:#x}, s={self.s:#x})"

    def serialize(self):
        """
        serialize returns the signature in the fixed-width 64-byte form,
        r(32) || s(32), both zero-padded big-endian.
        """
        return padInt(self.r, SCALAR_LEN) + padInt(self.s, SCALAR_LEN)

    @staticmethod
    def parse(sigBytes):
        """
        Parse the fixed-width 64-byte form. The values of r and s are not
        range-checked here; verify rejects out-of-range values.

        Args:
            sigBytes (bytes-like): The 64 signature bytes.

        Returns:
            Signature: The decoded signature.

        Raises:
            MalformedSignature if the length is not 64.
        """
        if len(sigBytes) != SIGNATURE_LEN:
            raise MalformedSignature(f"invalid signature length {len(sigBytes)}")
        b = ByteArray(sigBytes)
        return Signature(b[:SCALAR_LEN].int(), b[SCALAR_LEN:].int())

    def serializeDER(self):
        """
        serializeDER returns the ECDSA signature in the strict DER format
        expected by platform verifiers.

        0x30 <length> 0x02 <length r> r 0x02 <length s> s
        """
        # Ensure the encoded bytes for the r and s values are canonical and
        # thus suitable for DER encoding.
        rb = canonicalizeInt(self.r)
        sb = canonicalizeInt(self.s)

        # total length of returned signature is 1 byte for each magic and
        # length (6 total), plus lengths of r and s
        length = 6 + len(rb) + len(sb)
        b = ByteArray(0, length=length)

        b[0] = 0x30
        b[1] = ByteArray(length - 2, length=1)
        b[2] = 0x02
        b[3] = ByteArray(len(rb), length=1)
        offset = 4
        b[offset] = rb
        offset += len(rb)
        b[offset] = 0x02
        offset += 1
        b[offset] = ByteArray(len(sb), length=1)
        offset += 1
        b[offset] = sb
        return b.bytes()

    @staticmethod
    def parseDER(sigBytes):
        """
        Parse a strict DER signature.

        Args:
            sigBytes (byte-like): The bytes of the signature.

        Returns:
            Signature: the ECDSA Signature.

        Raises:
            MalformedSignature on any framing, padding or range error.
        """
        # minimal message is when both numbers are 1 bytes. adding up to:
        # 0x30 + len + 0x02 + 0x01 + <byte> + 0x2 + 0x01 + <byte>
        if len(sigBytes) < 8:
            raise MalformedSignature("malformed signature: too short")

        # 0x30
        index = 0
        if sigBytes[index] != 0x30:
            raise MalformedSignature("malformed signature: no header magic")
        index += 1
        # length of remaining message
        siglen = sigBytes[index]
        index += 1
        if siglen + 2 != len(sigBytes):
            raise MalformedSignature("malformed signature: bad length")

        # 0x02
        if sigBytes[index] != 0x02:
            raise MalformedSignature("malformed signature: no 1st int marker")
        index += 1

        # Length of signature r.
        rLen = sigBytes[index]
        # must be positive, must be able to fit in another 0x2, <len> <s>
        # hence the -3. We assume that the length must be at least one byte.
        index += 1
        if rLen <= 0 or rLen > len(sigBytes) - index - 3:
            raise MalformedSignature("malformed signature: bogus r length")

        # Then r itself.
        rBytes = sigBytes[index : index + rLen]
        canonicalPadding(rBytes)

        index += rLen
        # 0x02. length already checked in previous if.
        if sigBytes[index] != 0x02:
            raise MalformedSignature("malformed signature: no 2nd int marker")
        index += 1

        # Length of signature s.
        sLen = sigBytes[index]
        index += 1
        # s should be the rest of the bytes.
        if sLen <= 0 or sLen > len(sigBytes) - index:
            raise MalformedSignature("malformed signature: bogus S length")

        # Then s itself.
        sBytes = sigBytes[index : index + sLen]
        canonicalPadding(sBytes)

        index += sLen
        # sanity check length parsing
        if index != len(sigBytes):
            raise MalformedSignature(
                f"malformed signature: bad final length {index} != {len(sigBytes)}"
            )

        signature = Signature(
            ByteArray(rBytes).int(), ByteArray(sBytes).int()
        )

        # r and s must be in [1, N-1]
        if signature.r < 1:
            raise MalformedSignature("signature r is less than one")
        if signature.s < 1:
            raise MalformedSignature("signature s is less than one")
        if signature.r >= Curve.N:
            raise MalformedSignature("signature r is >= curve.N")
        if signature.s >= Curve.N:
            raise MalformedSignature("signature s is >= curve.N")

        return signature


def hashToInt(h):
    """
    hashToInt converts a hash value to an integer. [SECG] truncates the hash
    to the bit-length of the curve order first. OpenSSL does the same, and
    right shifts excess bits from the number if the hash is too large, and we
    mirror that too.

    Args:
        h (byte-like): The hash to convert.

    Returns:
        int: The integer.
    """
    orderBits = Curve.N.bit_length()
    orderBytes = (orderBits + 7) // 8
    if len(h) > orderBytes:
        h = h[:orderBytes]

    ret = int.from_bytes(h, byteorder="big")
    excess = len(h) * 8 - orderBits
    if excess > 0:
        ret = ret >> excess
    return ret


def sign(privKey, inHash):
    """
    sign generates an ECDSA signature of inHash with a random nonce.

    Args:
        privKey (PrivateKey): The signing key.
        inHash (byte-like): The message hash.

    Returns:
        Signature: The signature.

    Raises:
        RetryLimitExceeded if no usable nonce is found in MAX_NONCE_ATTEMPTS
            draws.
    """
    N = Curve.N
    d = privKey.key
    e = hashToInt(inHash)

    for _ in range(MAX_NONCE_ATTEMPTS):
        k = generateSafeScalar()
        R = Curve.scalarBaseMult(k)
        if R.isInfinity():
            log.debug("nonce point is the point at infinity, retrying")
            continue
        r = R.x % N
        if r == 0:
            log.debug("calculated R is zero, retrying")
            continue
        s = modInv(k, N) * (e + r * d) % N
        if s == 0:
            log.debug("calculated S is zero, retrying")
            continue
        return Signature(r, s)

    raise RetryLimitExceeded(f"no usable nonce in {MAX_NONCE_ATTEMPTS} draws")


def verify(pub, inHash, sig):
    """
    verify checks the signature sig of inHash against the public key. All
    cryptographic failures, including an invalid public key, return False.

    Args:
        pub (PublicKey or Point): The public key.
        inHash (byte-like): The thing being signed.
        sig (Signature): The signature.

    Returns:
        bool: True if the signature verifies the key.
    """
    # See [NSA] 3.4.2
    N = Curve.N
    Q = pub.point if isinstance(pub, PublicKey) else pub

    if Q.isInfinity():
        log.debug("public key is the point at infinity")
        return False
    if not Curve.isOnCurve(Q):
        log.debug("public key is not on the curve")
        return False
    if not Curve.scalarMult(N, Q).isInfinity():
        log.debug("public key is not in the prime-order subgroup")
        return False

    r, s = sig.r, sig.s
    if not 1 <= r < N or not 1 <= s < N:
        log.debug("signature values out of range")
        return False

    e = hashToInt(inHash)

    w = modInv(s, N)

    u1 = (e * w) % N
    u2 = (r * w) % N

    X = Curve.add(Curve.scalarBaseMult(u1), Curve.scalarMult(u2, Q))

    if X.isInfinity():
        log.debug("verification point is the point at infinity")
        return False
    return X.x % N == r


def sha256(b):
    return hashlib.sha256(bytes(b)).digest()


def signMessage(privKey, msg):
    """
    Sign the SHA-256 hash of msg.

    Args:
        privKey (PrivateKey): The signing key.
        msg (byte-like): The message.

    Returns:
        Signature: The signature.
    """
    return sign(privKey, sha256(msg))


def verifyMessage(pubKeyB, msg, sigB):
    """
    Verify a raw 64-byte signature of the SHA-256 hash of msg against an
    uncompressed public key. This is the check a server performs when a
    client connects.

    Args:
        pubKeyB (bytes-like): The 65-byte uncompressed public key.
        msg (bytes-like): The signed message.
        sigB (bytes-like): The 64-byte signature.

    Returns:
        bool: True if the signature is valid.

    Raises:
        MalformedKey or MalformedSignature for wrongly-sized or tagged input.
    """
    pt = decodeUncompressedKey(pubKeyB)
    sig = Signature.parse(sigB)
    return verify(pt, sha256(msg), sig)


def signToken(privKey, token):
    """
    Sign a bearer token, producing base64(token) "." base64(signature).

    Args:
        privKey (PrivateKey): The client's key.
        token (str): The token issued by the server.

    Returns:
        str: The signed token.
    """
    tb = token.encode("utf-8")
    sig = signMessage(privKey, tb)
    return f"{b64encode(tb)}.{b64encode(sig.serialize())}"


def verifySignedToken(pubKeyB, signedToken):
    """
    Verify a token produced by signToken.

    Args:
        pubKeyB (bytes-like): The client's uncompressed public key.
        signedToken (str): base64(token) "." base64(signature).

    Returns:
        str or None: The token if the signature verifies, else None.

    Raises:
        DecodeError if the signed token is structurally invalid.
    """
    parts = signedToken.split(".")
    if len(parts) != 2:
        raise DecodeError(f"signed token has {len(parts)} parts, expected 2")
    tb = b64decode(parts[0])
    if not verifyMessage(pubKeyB, tb, b64decode(parts[1])):
        return None
    try:
        return tb.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"token is not UTF-8: {e}")
