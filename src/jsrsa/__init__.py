"""JSEncrypt-compatible RSA in Python.

Provides a stateful RSA facade mirroring the JSEncrypt browser library: PEM key import in four formats, lazy key
generation, PKCS#1 v1.5 encryption/decryption and SHA-256 PKCS#1 v1.5 signatures, all exchanged as base64.

Typical usage example:

    js = JSEncrypt()
    c = js.encrypt("Hi there!")
    r = js.decrypt(c)
    other = JSEncrypt()
    other.set_key(js.get_private_key())
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from jsrsa.errors import CryptoError
from jsrsa.errors import DecryptionFailed
from jsrsa.errors import GenerationError
from jsrsa.errors import JSRSAError
from jsrsa.errors import KeyParseError
from jsrsa.errors import MalformedEncoding
from jsrsa.errors import MalformedSignature
from jsrsa.errors import MessageTooLong
from jsrsa.errors import NoPrivateKey
from jsrsa.errors import UnrecognizedKeyFormat
from jsrsa.jsencrypt import JSEncrypt
from jsrsa.jsencrypt import KeyPair
from jsrsa.jsencrypt import KeyState
from jsrsa.keys import RSAPrivKey
from jsrsa.keys import RSAPubKey
from jsrsa.resolver import KeyFormat
from jsrsa.resolver import resolve_key

__version__ = "0.1.0"
__all__ = [
    "JSEncrypt",
    "KeyPair",
    "KeyState",
    "KeyFormat",
    "resolve_key",
    "RSAPrivKey",
    "RSAPubKey",
    "JSRSAError",
    "KeyParseError",
    "CryptoError",
    "MalformedEncoding",
    "UnrecognizedKeyFormat",
    "MessageTooLong",
    "NoPrivateKey",
    "DecryptionFailed",
    "MalformedSignature",
    "GenerationError",
]
