"""RSA key objects: the raw primitive, PKCS#1 v1.5 encryption and signatures, and DER key codecs.

Everything here works on bytes and raises builtin exceptions; base64 wrapping, lazy key handling and the jsrsa error
taxonomy belong to the facade in `jsrsa.jsencrypt`.

Typical usage example:

    pk = RSAPrivKey.generate(1024)
    c = pk.pub.encrypt(b"Hi there!")
    r = pk.decrypt(c)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import hashlib
import hmac
from secrets import token_bytes

from pyasn1.codec.der import decoder
from pyasn1.codec.der import encoder
from pyasn1.codec.native import encoder as localize
from pyasn1.type import univ
from pyasn1_modules import rfc5208
from pyasn1_modules import rfc5280
from pyasn1_modules import rfc8017

from jsrsa import keygen

# Leading zero, block type, separator and the minimum eight padding bytes.
PKCS1_OVERHEAD = 11


def bytes_to_integer(msg: bytes) -> int:
    """OS2IP: big-endian unsigned bytes to integer."""
    return int.from_bytes(msg, byteorder="big", signed=False)


def integer_to_bytes(msg: int, fixedlen: int) -> bytes:
    """I2OSP: integer to a big-endian byte string of exactly `fixedlen` bytes."""
    return msg.to_bytes(fixedlen, byteorder="big", signed=False)


def _decode_exact(der: bytes, spec):
    """DER-decodes `der` against `spec`, refusing trailing data.

    Raises:
        pyasn1.error.PyAsn1Error: If the structure does not match.
        ValueError: If bytes are left over after the structure.
    """
    decoded, rest = decoder.decode(der, asn1Spec=spec)
    if rest:
        raise ValueError(f"{len(rest)} trailing bytes after {spec.__class__.__name__}")
    return decoded


def _rsa_algorithm() -> rfc5280.AlgorithmIdentifier:
    algid = rfc5280.AlgorithmIdentifier()
    algid["algorithm"] = rfc8017.rsaEncryption
    algid["parameters"] = univ.Null("")
    return algid


def sha256_digest_info(message: bytes) -> bytes:
    """DER `DigestInfo` carrying the SHA-256 digest of `message`."""
    algid = rfc8017.DigestAlgorithm()
    algid["algorithm"] = rfc8017.id_sha256
    algid["parameters"] = univ.Null("")
    payload = rfc8017.DigestInfo()
    payload["digestAlgorithm"] = algid
    payload["digest"] = hashlib.sha256(message).digest()
    return encoder.encode(payload)


class RSAKey:
    """Template for the components strictly mandatory in both a public and a private key.

    Attributes:
        mod: The modulus of the keypair.
        expo: The exponent of the key, whether private or public.
        bsize: Length of the modulus in bytes.
    """

    def __init__(self, mod: int, expo: int) -> None:
        self.mod = mod
        self.expo = expo
        self.bsize = (self.mod.bit_length() + 7) // 8

    def c_rsa(self, message: int) -> int:
        """Performs the core RSA operation.

        Args:
            message: The integer representative.

        Returns:
            ``message ** expo mod mod``

        Raises:
            ValueError: If the representative is out of range for the current key.
        """
        if not 0 <= message < self.mod:
            raise ValueError("Message representative must be in range [0, mod-1]")
        return pow(message, self.expo, self.mod)


class RSAPubKey(RSAKey):
    """Public key: PKCS#1 v1.5 encryption, signature verification and public key codecs."""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RSAPubKey):
            return NotImplemented
        return (self.mod, self.expo) == (other.mod, other.expo)

    def __hash__(self) -> int:
        return hash((self.mod, self.expo))

    def encrypt(self, message: bytes) -> bytes:
        """Encrypts according to RSAES-PKCS1-v1_5.

        A fresh random padding string is drawn on every call, so equal inputs give different ciphertexts.

        Args:
            message: The payload, at most ``bsize - 11`` bytes.

        Returns:
            The ciphertext, exactly `bsize` bytes.

        Raises:
            ValueError: If the message is too long for the key.
        """
        if len(message) > self.bsize - PKCS1_OVERHEAD:
            raise ValueError(f"Message too long: {len(message)} > {self.bsize - PKCS1_OVERHEAD} bytes")
        ps = _nonzero_bytes(self.bsize - len(message) - 3)
        em = bytes_to_integer(b"\x00\x02" + ps + b"\x00" + message)
        return integer_to_bytes(self.c_rsa(em), self.bsize)

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Checks an RSASSA-PKCS1-v1_5 SHA-256 signature.

        The expected encoded message is rebuilt and compared as a whole, so nothing of a forged signature's inner
        structure is ever parsed.

        Args:
            message: The signed payload.
            signature: The raw signature.

        Returns:
            True if the signature matches, False otherwise.

        Raises:
            ValueError: If the signature length does not equal the modulus length.
        """
        if len(signature) != self.bsize:
            raise ValueError(f"Signature must be {self.bsize} bytes, got {len(signature)}")
        try:
            rec = integer_to_bytes(self.c_rsa(bytes_to_integer(signature)), self.bsize)
            expected = _signature_block(sha256_digest_info(message), self.bsize)
        except ValueError:
            return False
        return hmac.compare_digest(rec, expected)

    def to_pkcs1(self) -> bytes:
        """DER `RSAPublicKey` (PKCS#1)."""
        keydata = rfc8017.RSAPublicKey()
        keydata["modulus"] = self.mod
        keydata["publicExponent"] = self.expo
        return encoder.encode(keydata)

    def to_spki(self) -> bytes:
        """DER `SubjectPublicKeyInfo` wrapping the PKCS#1 structure, tagged rsaEncryption."""
        spki = rfc5280.SubjectPublicKeyInfo()
        spki["algorithm"] = _rsa_algorithm()
        spki["subjectPublicKey"] = univ.BitString.fromOctetString(self.to_pkcs1())
        return encoder.encode(spki)

    @classmethod
    def from_pkcs1(cls, der: bytes) -> "RSAPubKey":
        """Imports a DER `RSAPublicKey`.

        Raises:
            pyasn1.error.PyAsn1Error: If `der` is not an RSAPublicKey.
            ValueError: On trailing data or nonsensical numbers.
        """
        pykeyd = localize.encode(_decode_exact(der, rfc8017.RSAPublicKey()))
        if pykeyd["modulus"] <= 0 or pykeyd["publicExponent"] <= 1:
            raise ValueError("RSA public key numbers out of range")
        return cls(pykeyd["modulus"], pykeyd["publicExponent"])

    @classmethod
    def from_spki(cls, der: bytes) -> "RSAPubKey":
        """Imports a DER `SubjectPublicKeyInfo`, requiring the rsaEncryption algorithm.

        Raises:
            pyasn1.error.PyAsn1Error: If the structure does not match.
            ValueError: If the algorithm is not RSA or the inner key is invalid.
        """
        spki = _decode_exact(der, rfc5280.SubjectPublicKeyInfo())
        if spki["algorithm"]["algorithm"] != rfc8017.rsaEncryption:
            raise ValueError(f"Public key algorithm {spki['algorithm']['algorithm']} is not RSA")
        return cls.from_pkcs1(spki["subjectPublicKey"].asOctets())


class RSAPrivKey(RSAKey):
    """RSA private key with CRT acceleration.

    Attributes:
        mod: The modulus of the keypair.
        expo: The private exponent of the key.
        pub: The matching public key.
        p: Private Prime 1.
        q: Private Prime 2.
        exp1: CRT Component dmp1.
        exp2: CRT Component dmq1.
        coeff: CRT Component iqmp.
    """

    def __init__(self,
                 mod: int,
                 pub_exp: int,
                 priv_exp: int,
                 p: int | None = None,
                 q: int | None = None,
                 exp1: int | None = None,
                 exp2: int | None = None,
                 coeff: int | None = None) -> None:
        super().__init__(mod, priv_exp)
        self.pub: RSAPubKey = RSAPubKey(mod, pub_exp)
        self.p: int | None = None
        self.q: int | None = None
        self.exp1: int | None = None
        self.exp2: int | None = None
        self.coeff: int | None = None
        if p and q:
            self.p = p
            self.q = q
            self.exp1 = exp1 if exp1 is not None else priv_exp % (p - 1)
            self.exp2 = exp2 if exp2 is not None else priv_exp % (q - 1)
            self.coeff = coeff if coeff is not None else pow(q, -1, p)

    def c_rsa(self, message: int) -> int:
        """Private RSA operation, using the CRT when the primes are known.

        Raises:
            ValueError: If the message is out of range for the current key.
        """
        if not self.p or not self.q:
            return super().c_rsa(message)
        if not 0 <= message < self.mod:
            raise ValueError("Message representative must be in range [0, mod-1]")
        m_1 = pow(message, self.exp1, self.p)
        m_2 = pow(message, self.exp2, self.q)
        h = ((m_1 - m_2) * self.coeff) % self.p
        return m_2 + self.q * h

    def decrypt(self, ciphertext: bytes) -> bytes:
        """Decrypts according to RSAES-PKCS1-v1_5.

        Every failure raises the same error, and the padding scan always runs over the whole block.

        Args:
            ciphertext: The raw ciphertext, exactly `bsize` bytes.

        Returns:
            The recovered payload.

        Raises:
            RuntimeError: If decryption fails for any reason.
        """
        if len(ciphertext) != self.bsize or self.bsize < PKCS1_OVERHEAD:
            raise RuntimeError("Decryption error.")
        try:
            m = self.c_rsa(bytes_to_integer(ciphertext))
        except ValueError as exc:
            raise RuntimeError("Decryption error.") from exc
        em = integer_to_bytes(m, self.bsize)
        valid = em[0] == 0x00
        valid &= em[1] == 0x02
        mrkr = 0
        for idx in range(2, self.bsize):
            if em[idx] == 0 and mrkr == 0:
                mrkr = idx
        valid &= mrkr >= PKCS1_OVERHEAD - 1
        if not valid:
            raise RuntimeError("Decryption error.")
        return em[mrkr + 1:]

    def sign(self, message: bytes) -> bytes:
        """Signs according to RSASSA-PKCS1-v1_5 with SHA-256.

        Args:
            message: The payload to sign.

        Returns:
            The raw signature, exactly `bsize` bytes.

        Raises:
            ValueError: If the key is too short to hold the encoded digest.
        """
        em = _signature_block(sha256_digest_info(message), self.bsize)
        return integer_to_bytes(self.c_rsa(bytes_to_integer(em)), self.bsize)

    def to_pkcs1(self) -> bytes:
        """DER `RSAPrivateKey` (PKCS#1, two-prime).

        Raises:
            NotImplementedError: If the key was built without its primes.
        """
        if not self.p or not self.q:
            raise NotImplementedError("CRT-less key export is not supported.")
        interkey = rfc8017.RSAPrivateKey()
        interkey["version"] = 0
        interkey["modulus"] = self.mod
        interkey["publicExponent"] = self.pub.expo
        interkey["privateExponent"] = self.expo
        interkey["prime1"] = self.p
        interkey["prime2"] = self.q
        interkey["exponent1"] = self.exp1
        interkey["exponent2"] = self.exp2
        interkey["coefficient"] = self.coeff
        return encoder.encode(interkey)

    @classmethod
    def from_pkcs1(cls, der: bytes) -> "RSAPrivKey":
        """Imports a DER `RSAPrivateKey`.

        Only two-prime keys are recognized, and the modulus must be the product of the stored primes.

        Raises:
            pyasn1.error.PyAsn1Error: If `der` is not an RSAPrivateKey.
            ValueError: On trailing data, multi-prime keys or inconsistent numbers.
        """
        pykeyd = localize.encode(_decode_exact(der, rfc8017.RSAPrivateKey()))
        if pykeyd["version"] != 0:
            raise ValueError("Multi-prime keys are not supported.")
        if min(pykeyd["prime1"], pykeyd["prime2"]) <= 1 or pykeyd["publicExponent"] <= 1:
            raise ValueError("RSA private key numbers out of range")
        if pykeyd["prime1"] * pykeyd["prime2"] != pykeyd["modulus"]:
            raise ValueError("Modulus does not match the private primes.")
        return cls(pykeyd["modulus"], pykeyd["publicExponent"], pykeyd["privateExponent"], pykeyd["prime1"],
                   pykeyd["prime2"], pykeyd["exponent1"], pykeyd["exponent2"], pykeyd["coefficient"])

    @classmethod
    def from_pkcs8(cls, der: bytes) -> "RSAPrivKey":
        """Imports a DER `PrivateKeyInfo` (PKCS#8), requiring the rsaEncryption algorithm.

        Raises:
            pyasn1.error.PyAsn1Error: If the structure does not match.
            ValueError: On an unsupported wrapper version, a non-RSA algorithm or an invalid inner key.
        """
        decdata = _decode_exact(der, rfc5208.PrivateKeyInfo())
        if decdata["version"] != 0:
            raise ValueError("Unsupported version of private key information wrapper")
        if decdata["privateKeyAlgorithm"]["algorithm"] != rfc8017.rsaEncryption:
            raise ValueError("Private Key Algorithm not supported.")
        return cls.from_pkcs1(decdata["privateKey"].asOctets())

    @classmethod
    def generate(cls, size: int, pub_exp: int = keygen.DEFAULT_PUBLIC_EXPONENT) -> "RSAPrivKey":
        """Generates a fresh key pair.

        Args:
            size: Modulus size in bits.
            pub_exp: The public exponent.

        Returns:
            The new private key; its public half is at `pub`.
        """
        n, e, d, p, q = keygen.generate_key_pair(size, pub_exp)
        return cls(n, e, d, p, q)


def _nonzero_bytes(length: int) -> bytes:
    """Random bytes, none of them zero."""
    out = bytearray()
    while len(out) < length:
        out.extend(b for b in token_bytes(length - len(out)) if b)
    return bytes(out)


def _signature_block(digest_info: bytes, bsize: int) -> bytes:
    """EMSA-PKCS1-v1_5 encoding: ``00 01 FF..FF 00 || DigestInfo``.

    Raises:
        ValueError: If `bsize` is too small for the digest.
    """
    if bsize < len(digest_info) + PKCS1_OVERHEAD:
        raise ValueError("Hash function too large for current key.")
    return b"\x00\x01" + b"\xff" * (bsize - len(digest_info) - 3) + b"\x00" + digest_info
