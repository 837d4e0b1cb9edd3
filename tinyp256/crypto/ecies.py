"""
Copyright (c) 2024, the tinyp256 developers
See LICENSE for details

ECIES hybrid encryption over P-256, and the encrypt-then-sign envelope used for
chat payloads.

A message for recipient key Q is sealed with a fresh ephemeral scalar r. The
shared point P = r*Q is run through HKDF-SHA256 with a random salt to produce an
AES-256-GCM key. The recipient recovers P as d*R.
"""

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from tinyp256 import DecodeError, MalformedEnvelope, P256Error
from tinyp256.util import helpers
from tinyp256.util.encode import ByteArray, b64decode, b64encode

from . import rando
from .ecdsa import Signature, sha256, signMessage, verify
from .secp256r1.curve import (
    PublicKey,
    curve as Curve,
    decodeUncompressedKey,
    encodeUncompressedKey,
    generateSafeScalar,
)


log = helpers.getLogger("ECIES")

KEY_SIZE = 32  # AES-256
TAG_SIZE = 16
HKDF_INFO = b"\x01"

ENVELOPE_SEGMENTS = 4
SIGNED_ENVELOPE_SEGMENTS = 2


class AuthenticationFailed(P256Error):
    """
    The ciphertext did not authenticate under the derived key, or the
    ephemeral key is not a curve point.
    """

    pass


class EphemeralKeyDegenerate(P256Error):
    """
    The ephemeral exchange produced the point at infinity.
    """

    pass


def deriveKey(sharedX, salt):
    """
    Derive the AES-256 key from the x coordinate of the shared point.

    Args:
        sharedX (int): The shared x coordinate.
        salt (bytes-like): The 32-byte salt carried in the envelope.

    Returns:
        bytes: The 32-byte key.
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=bytes(salt),
        info=HKDF_INFO,
    )
    return hkdf.derive(ByteArray(sharedX).bytes())


def decodeSegment(s, what):
    try:
        return b64decode(s)
    except DecodeError as e:
        raise MalformedEnvelope(f"{what}: {e}")


class Envelope:
    """
    An ECIES ciphertext with everything the recipient needs to open it.
    """

    def __init__(self, ephemeralKey, salt, iv, ciphertext):
        """
        Args:
            ephemeralKey (AffinePoint): R = r*G.
            salt (bytes): The HKDF salt.
            iv (bytes): The AES-GCM nonce.
            ciphertext (bytes): The encrypted message with the GCM tag
                appended.
        """
        self.ephemeralKey = ephemeralKey
        self.salt = salt
        self.iv = iv
        self.ciphertext = ciphertext

    def __eq__(self, other):
        if not isinstance(other, Envelope):
            return NotImplemented
        return (
            self.ephemeralKey == other.ephemeralKey
            and self.salt == other.salt
            and self.iv == other.iv
            and self.ciphertext == other.ciphertext
        )

    def serialize(self):
        """
        The wire form, b64(R).b64(salt).b64(ciphertext).b64(iv).

        Returns:
            str: The serialized envelope.
        """
        return ".".join(
            (
                b64encode(encodeUncompressedKey(self.ephemeralKey)),
                b64encode(self.salt),
                b64encode(self.ciphertext),
                b64encode(self.iv),
            )
        )

    @staticmethod
    def parse(s):
        """
        Parse the wire form produced by serialize.

        Args:
            s (str): The serialized envelope.

        Returns:
            Envelope: The envelope.

        Raises:
            MalformedEnvelope if the segment count, base64 or salt, IV or
                ciphertext lengths are wrong.
            MalformedKey if the ephemeral key is not a 65-byte uncompressed
                key.
        """
        parts = s.split(".")
        if len(parts) != ENVELOPE_SEGMENTS:
            raise MalformedEnvelope(
                f"envelope has {len(parts)} segments, expected {ENVELOPE_SEGMENTS}"
            )
        keyB = decodeSegment(parts[0], "ephemeral key")
        salt = decodeSegment(parts[1], "salt")
        ciphertext = decodeSegment(parts[2], "ciphertext")
        iv = decodeSegment(parts[3], "iv")
        if len(salt) != rando.SALT_SIZE:
            raise MalformedEnvelope(f"invalid salt length {len(salt)}")
        if len(iv) != rando.IV_SIZE:
            raise MalformedEnvelope(f"invalid iv length {len(iv)}")
        if len(ciphertext) < TAG_SIZE:
            raise MalformedEnvelope(f"ciphertext too short: {len(ciphertext)}")
        return Envelope(decodeUncompressedKey(keyB), salt, iv, ciphertext)


def encrypt(pubKey, message):
    """
    Encrypt message for the holder of pubKey.

    Args:
        pubKey (PublicKey): The recipient's key.
        message (bytes-like): The plaintext.

    Returns:
        Envelope: The sealed message.

    Raises:
        EphemeralKeyDegenerate if the ephemeral or shared point is the point
            at infinity.
    """
    Q = pubKey.point if isinstance(pubKey, PublicKey) else pubKey
    r = generateSafeScalar()
    R = Curve.scalarBaseMult(r)
    P = Curve.scalarMult(r, Q)
    if R.isInfinity() or P.isInfinity():
        raise EphemeralKeyDegenerate("ephemeral exchange produced infinity")

    salt = rando.newSalt()
    iv = rando.newIV()
    key = deriveKey(P.x, salt)
    ciphertext = AESGCM(key).encrypt(iv, bytes(message), None)
    return Envelope(R, salt, iv, ciphertext)


def decrypt(privKey, envelope):
    """
    Open an envelope with the recipient's private key.

    Args:
        privKey (PrivateKey): The recipient's key.
        envelope (Envelope): The sealed message.

    Returns:
        bytes: The plaintext.

    Raises:
        AuthenticationFailed if the ephemeral key is off the curve or the
            ciphertext does not authenticate.
        EphemeralKeyDegenerate if d*R is the point at infinity.
    """
    R = envelope.ephemeralKey
    if not Curve.isOnCurve(R):
        log.debug("ephemeral key is not on the curve")
        raise AuthenticationFailed("ephemeral key is not on the curve")
    P = Curve.scalarMult(privKey.key, R)
    if P.isInfinity():
        raise EphemeralKeyDegenerate("shared point is the point at infinity")

    key = deriveKey(P.x, envelope.salt)
    try:
        return AESGCM(key).decrypt(envelope.iv, envelope.ciphertext, None)
    except InvalidTag:
        log.debug("ciphertext failed authentication")
        raise AuthenticationFailed("ciphertext failed authentication")


class SignedEnvelope:
    """
    An Envelope together with the sender's signature over its serialized
    string.
    """

    def __init__(self, envelope, signature, envelopeString=None):
        """
        Args:
            envelope (Envelope): The sealed message.
            signature (Signature): The signature of sha256(envelopeString).
            envelopeString (str): optional. The exact string that was signed.
                Defaults to envelope.serialize().
        """
        self.envelope = envelope
        self.signature = signature
        self.envelopeString = (
            envelopeString if envelopeString is not None else envelope.serialize()
        )

    def serialize(self):
        """
        The wire form, b64(envelopeString).b64(signature).

        Returns:
            str: The serialized signed envelope.
        """
        return (
            b64encode(self.envelopeString.encode("ascii"))
            + "."
            + b64encode(self.signature.serialize())
        )

    @staticmethod
    def parse(s):
        """
        Parse the wire form produced by serialize.

        Args:
            s (str): The serialized signed envelope.

        Returns:
            SignedEnvelope: The signed envelope.

        Raises:
            MalformedEnvelope if the segment count, base64 or inner envelope
                is wrong.
            MalformedSignature if the signature is not 64 bytes.
            MalformedKey if the ephemeral key encoding is wrong.
        """
        parts = s.split(".")
        if len(parts) != SIGNED_ENVELOPE_SEGMENTS:
            raise MalformedEnvelope(
                f"signed envelope has {len(parts)} segments, "
                f"expected {SIGNED_ENVELOPE_SEGMENTS}"
            )
        envB = decodeSegment(parts[0], "envelope")
        sigB = decodeSegment(parts[1], "signature")
        try:
            envelopeString = envB.decode("ascii")
        except UnicodeDecodeError:
            raise MalformedEnvelope("envelope is not ASCII")
        envelope = Envelope.parse(envelopeString)
        return SignedEnvelope(envelope, Signature.parse(sigB), envelopeString)


def schemeEncrypt(senderPrivKey, recipientPubKey, message):
    """
    Encrypt message for the recipient and sign the resulting envelope.

    Args:
        senderPrivKey (PrivateKey): The sender's signing key.
        recipientPubKey (PublicKey): The recipient's key.
        message (bytes-like): The plaintext.

    Returns:
        str: b64(envelopeString).b64(signature).
    """
    envelope = encrypt(recipientPubKey, message)
    envelopeString = envelope.serialize()
    sig = signMessage(senderPrivKey, envelopeString.encode("ascii"))
    return SignedEnvelope(envelope, sig, envelopeString).serialize()


class VerifiedMessage:
    """
    The outcome of schemeVerifyAndDecrypt. message is None unless valid.
    """

    def __init__(self, valid, message=None):
        self.valid = valid
        self.message = message

    def __repr__(self):
        return f"VerifiedMessage(valid={self.valid})"


def schemeVerifyAndDecrypt(senderPubKey, recipientPrivKey, signed):
    """
    Verify the sender's signature on a signed envelope and decrypt it. The
    plaintext is only released when the signature verifies and the
    ciphertext authenticates.

    Args:
        senderPubKey (PublicKey): The claimed sender's key.
        recipientPrivKey (PrivateKey): The recipient's key.
        signed (str): The output of schemeEncrypt.

    Returns:
        VerifiedMessage: The result.

    Raises:
        MalformedEnvelope, MalformedSignature or MalformedKey for structural
            errors.
    """
    signedEnvelope = SignedEnvelope.parse(signed)
    sigOK = verify(
        senderPubKey,
        sha256(signedEnvelope.envelopeString.encode("ascii")),
        signedEnvelope.signature,
    )
    if not sigOK:
        log.debug("envelope signature did not verify")

    message = None
    try:
        message = decrypt(recipientPrivKey, signedEnvelope.envelope)
    except (AuthenticationFailed, EphemeralKeyDegenerate) as e:
        log.debug(f"envelope could not be decrypted: {e}")

    valid = sigOK and message is not None
    return VerifiedMessage(valid, message if valid else None)
