"""Turns encoded key strings into key material.

A PEM block carries no trustworthy tag telling PKCS#1 from PKCS#8/X.509 or private from public, so each candidate
structure is tried in a fixed priority order and the first one that decodes cleanly wins.

Typical usage example:

    resolved = resolve_key(pem_text)
    if resolved.private is not None:
        ...
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import enum
import logging
import typing

from pyasn1 import error

from jsrsa import errors
from jsrsa import pem
from jsrsa.keys import RSAPrivKey
from jsrsa.keys import RSAPubKey

logger = logging.getLogger(__name__)


class KeyFormat(enum.Enum):
    """The key structures understood by `resolve_key`, in trial order."""
    PRIVATE_CLASSIC = "PKCS#1 RSAPrivateKey"
    PRIVATE_TAGGED = "PKCS#8 PrivateKeyInfo"
    PUBLIC_TAGGED = "X.509 SubjectPublicKeyInfo"
    PUBLIC_CLASSIC = "PKCS#1 RSAPublicKey"


class ResolvedKey(typing.NamedTuple):
    """Outcome of a successful resolution.

    `public` is always set; `private` only for the two private formats, in which case `public` is `private.pub`.
    """
    format: KeyFormat
    private: RSAPrivKey | None
    public: RSAPubKey


_PARSERS: tuple[tuple[KeyFormat, typing.Callable[[bytes], RSAPrivKey | RSAPubKey]], ...] = (
    (KeyFormat.PRIVATE_CLASSIC, RSAPrivKey.from_pkcs1),
    (KeyFormat.PRIVATE_TAGGED, RSAPrivKey.from_pkcs8),
    (KeyFormat.PUBLIC_TAGGED, RSAPubKey.from_spki),
    (KeyFormat.PUBLIC_CLASSIC, RSAPubKey.from_pkcs1),
)


def parse_der(der: bytes) -> ResolvedKey:
    """Resolves DER bytes against each known key structure in order.

    Args:
        der: The decoded PEM payload.

    Returns:
        The first structure that decodes without error.

    Raises:
        UnrecognizedKeyFormat: If no structure matches.
    """
    for fmt, parser in _PARSERS:
        try:
            key = parser(der)
        except (error.PyAsn1Error, ValueError) as exc:
            logger.debug("Key payload is not %s: %s", fmt.value, exc)
            continue
        if isinstance(key, RSAPrivKey):
            return ResolvedKey(fmt, key, key.pub)
        return ResolvedKey(fmt, None, key)
    raise errors.UnrecognizedKeyFormat("Failed to parse key: no known RSA key structure matches.")


def resolve_key(encoded: str) -> ResolvedKey:
    """Resolves a PEM string into key material.

    The PEM label is ignored; only the payload decides the format.

    Args:
        encoded: Text containing one PEM block.

    Returns:
        The resolved key.

    Raises:
        MalformedEncoding: If no PEM block with a base64 payload is found.
        UnrecognizedKeyFormat: If the payload is not a known RSA key structure.
    """
    try:
        label, der = pem.decode_pem(encoded)
    except ValueError as exc:
        raise errors.MalformedEncoding(f"Failed to parse PEM block: {exc}") from exc
    resolved = parse_der(der)
    logger.debug("Resolved %s block as %s", label, resolved.format.value)
    return resolved
