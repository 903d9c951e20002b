"""Exception taxonomy shared by the key resolver and the crypto operations.

Lower layers raise builtin exceptions; the facade and resolver translate them into the classes below so callers can
tell parse failures, operation failures and generation failures apart.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0


class JSRSAError(Exception):
    """Base class of every error raised by jsrsa."""


class KeyParseError(JSRSAError):
    """A key string could not be turned into key material."""


class CryptoError(JSRSAError):
    """An encrypt/decrypt/sign/verify call could not be completed."""


class MalformedEncoding(KeyParseError, CryptoError):
    """No PEM block found, or the payload is not valid base64."""


class UnrecognizedKeyFormat(KeyParseError):
    """The PEM block decodes but matches none of the known RSA key structures."""


class MessageTooLong(CryptoError):
    """The payload does not fit into the modulus with PKCS#1 v1.5 padding."""


class NoPrivateKey(CryptoError):
    """A private key operation was requested while only a public key is held."""


class DecryptionFailed(CryptoError):
    """Decryption error.

    Deliberately covers every failure cause (length, range, padding) alike.
    """


class MalformedSignature(CryptoError):
    """The signature length cannot belong to the held modulus."""


class GenerationError(JSRSAError):
    """Key generation failed. Not retried."""
