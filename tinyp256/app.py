"""
Copyright (c) 2024, the tinyp256 developers
See LICENSE for details

The tinyp256 command line. Private keys are passed as hex scalars and public
keys as base64 uncompressed points. Nothing is written to disk except the
optional log file.
"""

import os
import sys

from tinyp256 import MalformedKey, P256Error, config
from tinyp256.crypto import ecdsa, ecies
from tinyp256.crypto.secp256r1.curve import curve, generateKey, privKeyFromBytes
from tinyp256.util import helpers
from tinyp256.util.encode import b64decode, b64encode


log = helpers.getLogger("APP")


def privKeyFromHex(s):
    """
    Parse a hex-encoded 32-byte private key.

    Raises:
        MalformedKey if s is not hex or does not encode a valid scalar.
    """
    try:
        b = bytes.fromhex(s)
    except ValueError:
        raise MalformedKey("private key is not hex")
    return privKeyFromBytes(b)


def pubKeyFromB64(s):
    """
    Parse a base64-encoded uncompressed public key.

    Raises:
        DecodeError if s is not base64 or not a valid key.
    """
    return curve.parsePubKey(b64decode(s))


def keygen(args):
    priv = generateKey()
    print(priv.serialize().hex())
    print(priv.pub.b64())
    return 0


def pubkey(args):
    print(privKeyFromHex(args.privkey).pub.b64())
    return 0


def sign(args):
    priv = privKeyFromHex(args.privkey)
    sig = ecdsa.signMessage(priv, args.message.encode("utf-8"))
    print(b64encode(sig.serialize()))
    return 0


def verify(args):
    ok = ecdsa.verifyMessage(
        b64decode(args.pubkey), args.message.encode("utf-8"), b64decode(args.signature)
    )
    print("valid" if ok else "invalid")
    return 0 if ok else 1


def encrypt(args):
    priv = privKeyFromHex(args.privkey)
    pub = pubKeyFromB64(args.pubkey)
    print(ecies.schemeEncrypt(priv, pub, args.message.encode("utf-8")))
    return 0


def decrypt(args):
    pub = pubKeyFromB64(args.pubkey)
    priv = privKeyFromHex(args.privkey)
    res = ecies.schemeVerifyAndDecrypt(pub, priv, args.envelope)
    if not res.valid:
        print("invalid")
        return 1
    print(res.message.decode("utf-8", errors="replace"))
    return 0


commands = {
    "keygen": keygen,
    "pubkey": pubkey,
    "sign": sign,
    "verify": verify,
    "encrypt": encrypt,
    "decrypt": decrypt,
}


def main(argv=None):
    """
    Run a tinyp256 command.

    Args:
        argv (list(str)): optional. Command-line arguments. If not provided,
            the process-wide configuration from config.load is used.

    Returns:
        int: The process exit code.
    """
    cfg = config.load() if argv is None else config.CmdArgs(argv)

    if cfg.logFile:
        logDir = os.path.dirname(cfg.logFile)
        if logDir and not helpers.mkdir(logDir):
            sys.exit(f"log directory {logDir} is a file")
    helpers.prepareLogging(cfg.logFile, logLvl=cfg.logLevel, lvlMap=cfg.moduleLevels)

    if cfg.command is None:
        cfg.parser.print_help()
        return 2

    try:
        return commands[cfg.command](cfg.args)
    except P256Error as e:
        log.error(f"{cfg.command} failed: {e}")
        log.debug(helpers.formatTraceback(e))
        return 1
