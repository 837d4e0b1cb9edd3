"""
Copyright (c) 2024, the tinyp256 developers
See LICENSE for details
"""


class P256Error(Exception):
    pass


class DecodeError(P256Error):
    """
    A structural decoding failure, such as a wrong length, a missing tag or a
    wrong segment count. It signals a protocol violation, not a failed
    cryptographic check.
    """

    pass


class MalformedKey(DecodeError):
    pass


class MalformedSignature(DecodeError):
    pass


class MalformedEnvelope(DecodeError):
    pass


class RetryLimitExceeded(P256Error):
    """
    A rejection-sampling loop hit its iteration cap. With a working random
    source this cannot happen in practice.
    """

    pass
