"""The stateful, JSEncrypt-compatible RSA facade.

One `JSEncrypt` instance owns at most one key pair. A key is either imported with `set_key` or generated lazily the
first time an operation needs one. Ciphertexts and signatures travel as standard base64, keys as PEM.

Instances are not thread-safe; use one per thread or serialize access.

Typical usage example:

    js = JSEncrypt()
    js.set_public_key(peer_pem)
    token = js.encrypt("secret")

    own = JSEncrypt(default_key_size=2048)
    pub_pem = own.get_public_key()
    plain = own.decrypt(token)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64
import binascii
import enum
import functools
import logging
import typing

from jsrsa import errors
from jsrsa import pem
from jsrsa import resolver
from jsrsa.keys import RSAPrivKey
from jsrsa.keys import RSAPubKey

logger = logging.getLogger(__name__)

DEFAULT_KEY_SIZE = 1024


class KeyState(enum.Enum):
    """Where the held key material came from."""
    EMPTY = "empty"
    GENERATED = "generated"
    IMPORTED = "imported"


class KeyPair(typing.NamedTuple):
    """The held key material. Never private without public."""
    private: RSAPrivKey | None
    public: RSAPubKey | None

    @classmethod
    def from_private(cls, private: RSAPrivKey) -> "KeyPair":
        """Pairs a private key with its own public half."""
        return cls(private, private.pub)

    @classmethod
    def from_public(cls, public: RSAPubKey) -> "KeyPair":
        """A public-only pair."""
        return cls(None, public)


_Op = typing.TypeVar("_Op", bound=typing.Callable[..., typing.Any])


def _logged(func: _Op) -> _Op:
    """Emits a warning record for failed operations when the instance was created with ``log=True``."""

    @functools.wraps(func)
    def wrapper(self: "JSEncrypt", *args: typing.Any, **kwargs: typing.Any) -> typing.Any:
        """Runs the operation, reporting library errors before re-raising them."""
        try:
            return func(self, *args, **kwargs)
        except errors.JSRSAError as exc:
            if self.log:
                logger.warning("%s failed: %s: %s", func.__name__, type(exc).__name__, exc)
            raise

    return typing.cast(_Op, wrapper)


def _to_bytes(data: str | bytes) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else data


def _b64decode(data: str | bytes) -> bytes:
    """Strict standard base64 decoding that tolerates CR and LF line breaks."""
    stripped = _to_bytes(data).replace(b"\r", b"").replace(b"\n", b"")
    try:
        return base64.b64decode(stripped, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise errors.MalformedEncoding(f"Invalid base64 input: {exc}") from exc


class JSEncrypt:
    """RSA key holder exposing PKCS#1 v1.5 encryption and SHA-256 signatures.

    Attributes:
        default_key_size: Bits of the key generated when an operation finds no key. Only read at generation time,
            changing it afterward does not touch an already generated key.
        log: When True, failed operations are also reported through the module logger.
    """

    def __init__(self, default_key_size: int = DEFAULT_KEY_SIZE, log: bool = False) -> None:
        self.default_key_size = default_key_size
        self.log = log
        self._pair = KeyPair(None, None)
        self._state = KeyState.EMPTY

    @property
    def state(self) -> KeyState:
        return self._state

    @property
    def key_pair(self) -> KeyPair:
        """The held key material, without triggering generation."""
        return self._pair

    @_logged
    def set_key(self, encoded: str) -> None:
        """Imports a PEM key, replacing any key material held so far.

        PKCS#1 private, PKCS#8 private, X.509 public and PKCS#1 public keys are accepted, whatever the PEM label
        says. Importing a public key drops a previously held private key. On failure the held material is kept.

        Args:
            encoded: The PEM text.

        Raises:
            MalformedEncoding: If no PEM block with a base64 payload is present.
            UnrecognizedKeyFormat: If the payload is none of the accepted key structures.
        """
        resolved = resolver.resolve_key(encoded)
        if resolved.private is not None:
            self._pair = KeyPair.from_private(resolved.private)
        else:
            self._pair = KeyPair.from_public(resolved.public)
        self._state = KeyState.IMPORTED
        logger.debug("Imported %d-bit key (%s)", resolved.public.mod.bit_length(), resolved.format.value)

    def set_private_key(self, encoded: str) -> None:
        """Alias of `set_key`.

        Like JSEncrypt, this does not insist on a private key: a public key passed here is imported as public-only.
        """
        self.set_key(encoded)

    def set_public_key(self, encoded: str) -> None:
        """Alias of `set_key`.

        A private key passed here is imported whole, private half included.
        """
        self.set_key(encoded)

    @_logged
    def ensure_key_pair(self) -> KeyPair:
        """Returns the held key pair, generating one first if the instance holds nothing.

        Generation happens at most once and is never retried.

        Raises:
            GenerationError: If prime search fails or `default_key_size` is not usable.
        """
        return self._ensure_key_pair()

    get_key = ensure_key_pair

    def _ensure_key_pair(self) -> KeyPair:
        if self._pair.public is not None:
            return self._pair
        logger.debug("No key held, generating %d-bit key pair", self.default_key_size)
        try:
            private = RSAPrivKey.generate(self.default_key_size)
        except (RuntimeError, ValueError) as exc:
            raise errors.GenerationError(f"Key generation failed: {exc}") from exc
        self._pair = KeyPair.from_private(private)
        self._state = KeyState.GENERATED
        return self._pair

    def _private(self) -> RSAPrivKey:
        private = self._ensure_key_pair().private
        if private is None:
            raise errors.NoPrivateKey("Only a public key is held.")
        return private

    @_logged
    def get_private_key(self) -> str:
        """Exports the private key as PKCS#1 PEM (``RSA PRIVATE KEY``), generating a key pair if none is held.

        Raises:
            NoPrivateKey: If only a public key is held.
        """
        return pem.encode_pem(pem.PEM_LABELS["PKCS1_PRIV"], self._private().to_pkcs1())

    @_logged
    def get_public_key(self) -> str:
        """Exports the public key as X.509 SubjectPublicKeyInfo PEM (``PUBLIC KEY``), generating if necessary."""
        return pem.encode_pem(pem.PEM_LABELS["SPKI"], self._ensure_key_pair().public.to_spki())

    export_private_key = get_private_key
    export_public_key = get_public_key

    @_logged
    def get_private_key_b64(self) -> str:
        """The PKCS#1 private key DER as single-line base64, without PEM markers."""
        return base64.b64encode(self._private().to_pkcs1()).decode("ascii")

    @_logged
    def get_public_key_b64(self) -> str:
        """The SubjectPublicKeyInfo DER as single-line base64, without PEM markers."""
        return base64.b64encode(self._ensure_key_pair().public.to_spki()).decode("ascii")

    @_logged
    def encrypt(self, plaintext: str | bytes) -> str:
        """Encrypts with the public key using PKCS#1 v1.5 padding.

        Args:
            plaintext: The payload; text is UTF-8 encoded. At most modulus bytes minus 11.

        Returns:
            The ciphertext in standard base64.

        Raises:
            MessageTooLong: If the payload does not fit the modulus.
        """
        public = self._ensure_key_pair().public
        try:
            ciphertext = public.encrypt(_to_bytes(plaintext))
        except ValueError as exc:
            raise errors.MessageTooLong(str(exc)) from exc
        return base64.b64encode(ciphertext).decode("ascii")

    @_logged
    def decrypt(self, ciphertext: str | bytes) -> bytes:
        """Decrypts a base64 ciphertext with the private key.

        Raises:
            MalformedEncoding: If `ciphertext` is not valid base64.
            NoPrivateKey: If only a public key is held.
            DecryptionFailed: If the ciphertext does not decrypt to a well-formed padded message.
        """
        private = self._private()
        raw = _b64decode(ciphertext)
        try:
            return private.decrypt(raw)
        except RuntimeError as exc:
            raise errors.DecryptionFailed("Decryption error.") from exc

    @_logged
    def sign(self, message: str | bytes) -> str:
        """Signs the SHA-256 digest of `message` with PKCS#1 v1.5 padding.

        Returns:
            The signature in standard base64.

        Raises:
            NoPrivateKey: If only a public key is held.
            MessageTooLong: If the key is too short to carry a SHA-256 DigestInfo.
        """
        private = self._private()
        try:
            signature = private.sign(_to_bytes(message))
        except ValueError as exc:
            raise errors.MessageTooLong(str(exc)) from exc
        return base64.b64encode(signature).decode("ascii")

    @_logged
    def verify(self, message: str | bytes, signature: str | bytes) -> bool:
        """Verifies a base64 SHA-256 PKCS#1 v1.5 signature over `message`.

        A signature that does not match is a regular outcome and yields False; only structurally impossible input
        raises.

        Raises:
            MalformedEncoding: If `signature` is not valid base64.
            MalformedSignature: If the signature length does not match the modulus.
        """
        public = self._ensure_key_pair().public
        raw = _b64decode(signature)
        try:
            return public.verify(_to_bytes(message), raw)
        except ValueError as exc:
            raise errors.MalformedSignature(str(exc)) from exc
